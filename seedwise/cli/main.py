"""CLI commands for seedwise."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click

from seedwise.autoconfig import generate_configuration
from seedwise.config import CONFIG_FILENAME, Config
from seedwise.constraints import ConstraintDebugger, SampleRowFactory
from seedwise.core.models import DetectionAnalysisContext
from seedwise.detection import DetectionCache, detect_all
from seedwise.exceptions import SeedwiseError
from seedwise.introspection import PostgresIntrospector, StaticIntrospector, build_context
from seedwise.strategies import select_strategy


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load_config(path: Optional[str]) -> Config:
    try:
        return Config.load_or_default(path)
    except (FileNotFoundError, SeedwiseError) as e:
        _fail(str(e))


async def _introspect_database(
    url: str, schema: str, config: Config, verbose: bool
) -> DetectionAnalysisContext:
    introspector = await PostgresIntrospector.connect(url, schema)
    try:
        return await build_context(introspector, config, verbose=verbose)
    finally:
        await introspector.close()


def _load_context(
    schema_file: Optional[str],
    database_url: Optional[str],
    schema: Optional[str],
    config: Config,
    verbose: bool,
) -> DetectionAnalysisContext:
    if schema_file and database_url:
        _fail("--schema-file and --database-url are mutually exclusive")

    try:
        if schema_file:
            introspector = StaticIntrospector.from_json(schema_file)
            return asyncio.run(build_context(introspector, config, verbose=verbose))

        url = database_url or config.database.url
        return asyncio.run(
            _introspect_database(url, schema or config.database.schema_name, config, verbose)
        )
    except json.JSONDecodeError as e:
        _fail(f"Invalid schema file {schema_file}: {e}")
    except (OSError, SeedwiseError) as e:
        _fail(str(e))


_SOURCE_OPTIONS = (
    click.option(
        "--schema-file",
        type=click.Path(exists=True, dir_okay=False),
        help="JSON file with schema facts",
    ),
    click.option("--database-url", help="PostgreSQL connection URL"),
    click.option("--schema", help="Schema to introspect (default: from config)"),
    click.option("--config", "config_path", type=click.Path(), help="Path to seedwise.toml"),
)


def source_options(func):
    """Options shared by commands that read schema facts."""
    for option in reversed(_SOURCE_OPTIONS):
        func = option(func)
    return func


@click.group()
@click.version_option(package_name="seedwise")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """seedwise - schema-aware seeding strategy and configuration detection."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing seedwise.toml")
def init(force: bool) -> None:
    """Write a default seedwise.toml in the current directory."""
    path = Path.cwd() / CONFIG_FILENAME
    if path.exists() and not force:
        _fail(f"{CONFIG_FILENAME} already exists (use --force to overwrite)")

    Config().to_toml(path)
    click.echo(f"✓ Created {path}")


@cli.command()
@source_options
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--no-cache", is_flag=True, help="Ignore the detection cache")
@click.pass_context
def detect(
    ctx: click.Context,
    schema_file: Optional[str],
    database_url: Optional[str],
    schema: Optional[str],
    config_path: Optional[str],
    output_json: bool,
    no_cache: bool,
) -> None:
    """Detect architecture, domain, framework and seeding strategy."""
    config = _load_config(config_path)
    context = _load_context(schema_file, database_url, schema, config, ctx.obj["verbose"])

    cache = None
    if config.cache.enabled and not no_cache:
        cache = DetectionCache.from_config(config.cache)
    result = detect_all(context, config, cache)
    selection = select_strategy(context, config=config.strategies)

    if output_json:
        click.echo(
            json.dumps({"detection": result.to_dict(), "strategy": selection.to_dict()}, indent=2)
        )
        return

    framework = result.framework
    click.echo(
        f"Architecture: {result.architecture.primary_label} "
        f"({result.architecture.confidence:.2f}, {result.architecture.confidence_level})"
    )
    click.echo(
        f"Domain:       {result.domain.primary_label} "
        f"({result.domain.confidence:.2f}, {result.domain.confidence_level})"
    )
    click.echo(
        f"Framework:    {framework.framework} {framework.version} "
        f"({framework.confidence:.2f}, makerkit={'yes' if framework.is_makerkit else 'no'})"
    )
    click.echo(f"Overall:      {result.overall_confidence:.2f}")
    click.echo(f"Agreement:    {result.cross_validation.overall_agreement:.2f}")
    click.echo(f"Strategy:     {selection.strategy_name} ({selection.reason})")

    warnings = (
        context.warnings
        + tuple(result.architecture.warnings)
        + tuple(result.domain.warnings)
        + tuple(selection.warnings)
    )
    for warning in warnings:
        click.echo(f"⚠ {warning}")


@cli.command()
@source_options
@click.option(
    "--mode",
    type=click.Choice(["comprehensive", "minimal", "conservative", "optimized"]),
    help="Generation strategy (default: from config)",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write JSON to this file")
@click.pass_context
def configure(
    ctx: click.Context,
    schema_file: Optional[str],
    database_url: Optional[str],
    schema: Optional[str],
    config_path: Optional[str],
    mode: Optional[str],
    output: Optional[str],
) -> None:
    """Generate a seed configuration from schema detection."""
    config = _load_config(config_path)
    context = _load_context(schema_file, database_url, schema, config, ctx.obj["verbose"])

    detection = detect_all(context, config)
    selection = select_strategy(context, config=config.strategies)
    options = config.autoconfig
    if mode:
        options = options.model_copy(update={"strategy": mode})

    result = generate_configuration(detection, options, selection)
    payload = result.configuration.to_json()

    if output:
        Path(output).write_text(payload + "\n")
        click.echo(
            f"✓ Wrote {output} ({result.metrics.strategy_used}, "
            f"confidence {result.confidence:.2f} {result.confidence_level})"
        )
    else:
        click.echo(payload)

    for warning in result.warnings:
        click.echo(f"⚠ {warning}", err=True)


@cli.command("debug-constraints")
@source_options
@click.option("--table", required=True, help="Table whose constraints are tested")
@click.option("--rows", type=int, help="Synthetic rows per constraint (default: from config)")
@click.option(
    "--format",
    "report_format",
    type=click.Choice(["markdown", "json", "html"]),
    help="Report format (default: from config)",
)
@click.option("--seed", type=int, help="Seed for synthetic rows")
@click.pass_context
def debug_constraints(
    ctx: click.Context,
    schema_file: Optional[str],
    database_url: Optional[str],
    schema: Optional[str],
    config_path: Optional[str],
    table: str,
    rows: Optional[int],
    report_format: Optional[str],
    seed: Optional[int],
) -> None:
    """Test constraint handlers for a table and print a report."""
    config = _load_config(config_path)
    context = _load_context(schema_file, database_url, schema, config, ctx.obj["verbose"])

    constraints = context.constraints_for(table)
    if not constraints:
        _fail(f"No constraints found for table: {table}")

    settings = config.debugging
    if rows is not None:
        settings = settings.model_copy(update={"sample_rows": rows})

    debugger = ConstraintDebugger(config=settings, sample_factory=SampleRowFactory(seed=seed))
    session_id = debugger.start_debugging_session(table, constraints)
    debugger.run_constraint_tests(session_id)
    click.echo(
        debugger.generate_debugging_report(
            session_id, report_format or settings.default_report_format
        )
    )


if __name__ == "__main__":
    cli()
