"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from seedwise.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch) -> Path:
    """Empty working directory so no seedwise.toml is picked up."""
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


class TestInit:
    """Tests for the init command."""

    def test_creates_config(self, runner, workdir) -> None:
        """Test init writes seedwise.toml."""
        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert "✓ Created" in result.output
        assert "[strategies]" in (workdir / "seedwise.toml").read_text()

    def test_refuses_overwrite(self, runner, workdir) -> None:
        """Test init keeps an existing file unless forced."""
        runner.invoke(cli, ["init"])

        refused = runner.invoke(cli, ["init"])
        forced = runner.invoke(cli, ["init", "--force"])

        assert refused.exit_code == 1
        assert "seedwise.toml already exists" in refused.output
        assert forced.exit_code == 0


class TestDetect:
    """Tests for the detect command."""

    def test_text(self, runner, workdir, makerkit_schema_file) -> None:
        """Test the text summary names the framework and strategy."""
        result = runner.invoke(
            cli, ["detect", "--schema-file", makerkit_schema_file, "--no-cache"]
        )

        assert result.exit_code == 0
        assert "Framework:    makerkit v3" in result.output
        assert "Strategy:     makerkit (high_confidence)" in result.output

    def test_json(self, runner, workdir, makerkit_schema_file) -> None:
        """Test --json prints detection and strategy."""
        result = runner.invoke(
            cli, ["detect", "--schema-file", makerkit_schema_file, "--no-cache", "--json"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["detection"]["framework"]["version"] == "v3"
        assert data["detection"]["framework"]["is_makerkit"] is True
        assert data["strategy"]["strategy_name"] == "makerkit"

    def test_config_override(self, runner, workdir, makerkit_schema_file) -> None:
        """Test a strategy override in seedwise.toml is honoured."""
        config = workdir / "custom.toml"
        config.write_text('[strategies]\noverride = "generic"\n\n[cache]\nenabled = false\n')

        result = runner.invoke(
            cli, ["detect", "--schema-file", makerkit_schema_file, "--config", str(config)]
        )

        assert result.exit_code == 0
        assert "Strategy:     generic (manual_override)" in result.output

    def test_missing_config(self, runner, workdir, makerkit_schema_file) -> None:
        """Test an explicit config path must exist."""
        result = runner.invoke(
            cli, ["detect", "--schema-file", makerkit_schema_file, "--config", "nope.toml"]
        )

        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_sources_exclusive(self, runner, workdir, makerkit_schema_file) -> None:
        """Test a schema file and a database URL cannot be combined."""
        result = runner.invoke(
            cli,
            [
                "detect",
                "--schema-file",
                makerkit_schema_file,
                "--database-url",
                "postgresql://localhost/app",
            ],
        )

        assert result.exit_code == 1
        assert "mutually exclusive" in result.output

    def test_invalid_schema_file(self, runner, workdir) -> None:
        """Test unparseable facts files are reported."""
        broken = workdir / "broken.json"
        broken.write_text("{not json")

        result = runner.invoke(cli, ["detect", "--schema-file", str(broken), "--no-cache"])

        assert result.exit_code == 1
        assert "Invalid schema file" in result.output


class TestConfigure:
    """Tests for the configure command."""

    def test_writes_output(self, runner, workdir, makerkit_schema_file) -> None:
        """Test the configuration is written to --output."""
        result = runner.invoke(
            cli,
            ["configure", "--schema-file", makerkit_schema_file]
            + ["--mode", "minimal", "-o", "seed.json"],
        )

        assert result.exit_code == 0
        assert "✓ Wrote seed.json (minimal," in result.output
        data = json.loads((workdir / "seed.json").read_text())
        assert data["framework"]["family"] == "makerkit"
        assert data["framework"]["version"] == "v3"

    def test_optimized(self, runner, workdir, makerkit_schema_file) -> None:
        """Test optimized mode turns on framework RLS compliance."""
        result = runner.invoke(
            cli,
            ["configure", "--schema-file", makerkit_schema_file]
            + ["--mode", "optimized", "-o", "seed.json"],
        )

        assert result.exit_code == 0
        data = json.loads((workdir / "seed.json").read_text())
        assert data["framework"]["enable_rls_compliance"] is True


class TestDebugConstraints:
    """Tests for the debug-constraints command."""

    def test_json_report(self, runner, workdir, makerkit_schema_file) -> None:
        """Test a JSON report is printed for the table."""
        result = runner.invoke(
            cli,
            [
                "debug-constraints",
                "--schema-file",
                makerkit_schema_file,
                "--table",
                "accounts",
                "--seed",
                "1",
                "--format",
                "json",
            ],
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["table_name"] == "accounts"
        assert data["status"] == "completed"
        assert data["summary"]["total_tests"] == 3

    def test_rows_option(self, runner, workdir, makerkit_schema_file) -> None:
        """Test --rows controls the synthetic row count."""
        result = runner.invoke(
            cli,
            [
                "debug-constraints",
                "--schema-file",
                makerkit_schema_file,
                "--table",
                "accounts",
                "--rows",
                "2",
            ],
        )

        assert result.exit_code == 0
        assert result.output.startswith("# Constraint Debugging Report")
        assert "- **Total Tests**: 2" in result.output

    def test_unknown_table(self, runner, workdir, makerkit_schema_file) -> None:
        """Test a table without constraints is an error."""
        result = runner.invoke(
            cli,
            ["debug-constraints", "--schema-file", makerkit_schema_file, "--table", "invoices"],
        )

        assert result.exit_code == 1
        assert "No constraints found for table: invoices" in result.output
