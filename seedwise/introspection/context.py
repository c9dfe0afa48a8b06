"""
Build a DetectionAnalysisContext from a schema introspector.

Introspection is bounded three ways: at most ``max_concurrent_queries`` lookups
are in flight, each lookup gets ``query_timeout`` seconds, and the whole pass
gets ``max_execution_time`` seconds. A lookup that fails or times out counts as
"absent" and leaves a warning on the context. Connection errors are fatal.

The semaphore bounds in-flight lookups, it does not add server-side
parallelism. PostgresIntrospector shares one AsyncConnection and psycopg
serializes its queries, so lookups against it run one after another;
introspectors backed by independent connections do overlap.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from functools import partial
from typing import Any, Optional

from seedwise.config import Config, IntrospectionConfig
from seedwise.core.models import (
    ConstraintInfo,
    DetectionAnalysisContext,
    TableFact,
)
from seedwise.exceptions import IntrospectionConnectionError
from seedwise.introspection.base import SchemaIntrospector

logger = logging.getLogger(__name__)

# Tables whose presence is checked directly, even if list_tables misses them
# (e.g. tables living in a schema the role can only partially see).
CANDIDATE_TABLES = (
    "accounts",
    "users",
    "profiles",
    "memberships",
    "subscriptions",
    "roles",
    "invitations",
    "notifications",
    "role_permissions",
    "billing_customers",
    "organizations",
    "organization_members",
)

ACCOUNT_FIELD_CANDIDATES = (
    "id",
    "name",
    "email",
    "slug",
    "is_personal_account",
    "primary_owner_user_id",
    "public_data",
    "picture_url",
)

Lookup = tuple[str, Callable[[], Awaitable[Any]], Any]


class _BoundedRunner:
    """Runs lookups under a semaphore, a per-lookup timeout and a global deadline."""

    def __init__(self, settings: IntrospectionConfig, log: logging.Logger):
        self.semaphore = asyncio.Semaphore(settings.max_concurrent_queries)
        self.query_timeout = settings.query_timeout
        self.log = log
        self.warnings: list[str] = []

    async def lookup(self, label: str, factory: Callable[[], Awaitable[Any]], default: Any) -> Any:
        async with self.semaphore:
            try:
                return await asyncio.wait_for(factory(), timeout=self.query_timeout)
            except asyncio.TimeoutError:
                self.log.debug(
                    f"Lookup {label} timed out after {self.query_timeout}s, treating as absent"
                )
                self.warnings.append(f"Lookup timed out: {label}")
                return default
            except IntrospectionConnectionError:
                raise
            except Exception as e:
                self.log.debug(f"Lookup {label} failed ({e}), treating as absent")
                self.warnings.append(f"Lookup failed: {label}")
                return default

    async def run_all(self, lookups: Sequence[Lookup], deadline: float) -> list[Any]:
        """Run lookups concurrently; lookups still pending at the deadline yield their default."""
        if not lookups:
            return []

        loop = asyncio.get_running_loop()
        tasks = [
            asyncio.ensure_future(self.lookup(label, factory, default))
            for label, factory, default in lookups
        ]
        remaining = deadline - loop.time()
        if remaining > 0:
            done, pending = await asyncio.wait(tasks, timeout=remaining)
        else:
            done, pending = set(), set(tasks)

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            message = (
                f"Schema introspection exceeded max_execution_time; "
                f"{len(pending)} lookup(s) did not complete"
            )
            self.log.warning(message)
            self.warnings.append(message)

        return [
            task.result() if task in done else default
            for task, (_, _, default) in zip(tasks, lookups)
        ]


async def build_context(
    introspector: SchemaIntrospector,
    config: Optional[Config] = None,
    *,
    candidate_tables: Sequence[str] = CANDIDATE_TABLES,
    hints: Sequence[str] = (),
    framework_hint: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
    verbose: bool = False,
) -> DetectionAnalysisContext:
    """
    Gather schema facts into an immutable analysis context.

    Args:
        introspector: Capability object answering schema questions
        config: Configuration (introspection bounds are read from it)
        candidate_tables: Table names checked with table_exists
        hints: Business-logic hints supplied by the caller
        framework_hint: Prior belief about the framework family
        logger: Logger for this run (defaults to the module logger)
        verbose: Log a summary of the gathered facts at INFO

    Returns:
        DetectionAnalysisContext with whatever facts could be gathered

    Raises:
        IntrospectionConnectionError: If the database rejects the connection
    """
    settings = config.introspection if config is not None else IntrospectionConfig()
    log = logger or logging.getLogger(__name__)
    runner = _BoundedRunner(settings, log)
    deadline = asyncio.get_running_loop().time() + settings.max_execution_time

    # Phase 1: which tables exist
    lookups: list[Lookup] = [("list_tables", introspector.list_tables, [])]
    lookups.extend(
        (f"table_exists({name})", partial(introspector.table_exists, name), False)
        for name in candidate_tables
    )
    listed, *exists = await runner.run_all(lookups, deadline)

    table_names = list(listed)
    for name, present in zip(candidate_tables, exists):
        if present and name not in table_names:
            table_names.append(name)

    # Phase 2: per-table facts plus schema-wide facts
    lookups = []
    for name in table_names:
        lookups.append((f"list_columns({name})", partial(introspector.list_columns, name), []))
        lookups.append(
            (f"list_constraints({name})", partial(introspector.list_constraints, name), [])
        )
    lookups.append(("list_relationships", introspector.list_relationships, []))
    lookups.append(("list_functions", introspector.list_functions, []))
    lookups.append(("list_triggers", introspector.list_triggers, []))
    results = await runner.run_all(lookups, deadline)

    columns: dict[str, list[str]] = {}
    constraints: list[ConstraintInfo] = []
    for index, name in enumerate(table_names):
        columns[name] = list(results[2 * index])
        constraints.extend(results[2 * index + 1])
    relationships, functions, triggers = results[-3:]

    # Phase 3: point checks for account fields the listing could not see
    if "accounts" in columns and not columns["accounts"]:
        field_lookups: list[Lookup] = [
            (
                f"column_exists(accounts.{column})",
                partial(introspector.column_exists, "accounts", column),
                False,
            )
            for column in ACCOUNT_FIELD_CANDIDATES
        ]
        present = await runner.run_all(field_lookups, deadline)
        columns["accounts"] = [
            column for column, found in zip(ACCOUNT_FIELD_CANDIDATES, present) if found
        ]

    context = DetectionAnalysisContext(
        tables=tuple(TableFact(name=name, columns=tuple(columns[name])) for name in table_names),
        constraints=tuple(constraints),
        relationships=tuple(relationships),
        functions=tuple(functions),
        triggers=tuple(triggers),
        framework_hint=framework_hint,
        business_logic_hints=tuple(hints),
        warnings=tuple(runner.warnings),
        verbose=verbose,
        logger=logger,
    )

    if verbose:
        log.info(
            f"Introspected {len(context.tables)} tables, {len(context.constraints)} constraints, "
            f"{len(context.relationships)} relationships, {len(context.functions)} functions"
        )
    if runner.warnings:
        log.debug(f"Introspection finished with {len(runner.warnings)} evidence gap(s)")

    return context


def build_context_sync(
    introspector: SchemaIntrospector,
    config: Optional[Config] = None,
    **kwargs: Any,
) -> DetectionAnalysisContext:
    """Blocking wrapper around build_context for synchronous callers."""
    return asyncio.run(build_context(introspector, config, **kwargs))
