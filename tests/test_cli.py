"""Tests for the tscatalog command line."""

from __future__ import annotations

import json
from pathlib import Path

import polars as pl
import pytest
from typer.testing import CliRunner

from tscatalog.cli import app
from tscatalog.loader import load_file


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestStats:
    """Tests for the stats command."""

    def test_console(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(app, ["stats", str(german_file)])

        assert result.exit_code == 0
        assert "Translation coverage" in result.stdout
        assert "awattar" in result.stdout

    def test_json(self, runner: CliRunner, awattar_file: Path):
        result = runner.invoke(app, ["stats", str(awattar_file), "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["total"] == 20
        assert data["translated"] == 0
        assert data["language"] == "en_US"

    def test_csv_to_file(self, runner: CliRunner, german_file: Path, tmp_path: Path):
        output = tmp_path / "coverage.csv"

        result = runner.invoke(app, ["stats", str(german_file), "-f", "csv", "-o", str(output)])

        assert result.exit_code == 0
        frame = pl.read_csv(output)
        assert frame["context"].to_list() == ["awattar", "DevicePluginAwattar"]

    def test_missing_file(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(app, ["stats", str(tmp_path / "none.ts")])

        assert result.exit_code == 1

    def test_unknown_format(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(app, ["stats", str(german_file), "-f", "xml"])

        assert result.exit_code == 1


class TestLookup:
    """Tests for the lookup command."""

    def test_translated(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(app, ["lookup", str(german_file), "awattar", "Online"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "Verbunden"

    def test_untranslated(self, runner: CliRunner, awattar_file: Path):
        result = runner.invoke(app, ["lookup", str(awattar_file), "awattar", "Online"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "Online"

    def test_comment(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(
            app, ["lookup", str(german_file), "awattar", "Open", "--comment", "verb"]
        )

        assert result.stdout.strip() == "Öffnen"

    def test_count(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(
            app,
            ["lookup", str(german_file), "DevicePluginAwattar", "%n price(s) received", "-n", "5"],
        )

        assert result.stdout.strip() == "5 Preise empfangen"

    def test_miss_falls_back(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(app, ["lookup", str(german_file), "awattar", "Offline"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "Offline"

    def test_miss_strict(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(
            app, ["lookup", str(german_file), "awattar", "Offline", "--strict"]
        )

        assert result.exit_code == 1

    def test_parse_error(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "broken-de.ts"
        path.write_text("<TS><context>", encoding="utf-8")

        result = runner.invoke(app, ["lookup", str(path), "c", "a"])

        assert result.exit_code == 1


class TestCheck:
    """Tests for the check command."""

    def test_clean(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(app, ["check", str(german_file)])

        assert result.exit_code == 0
        assert "No issues found" in result.stdout

    def test_duplicate_fails(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "dup-de.ts"
        path.write_text(
            '<TS version="2.1"><context><name>c</name>'
            '<message><location filename="a.cpp" line="1"/><source>a</source><translation>x</translation></message>'
            '<message><location filename="a.cpp" line="2"/><source>a</source><translation>y</translation></message>'
            "</context></TS>",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["check", str(path), "--format", "json"])

        assert result.exit_code == 1
        issues = json.loads(result.stdout)
        assert issues[0]["issue_type"] == "duplicate_message"
        assert issues[0]["severity"] == "high"

    def test_low_issues_pass(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "noloc-de.ts"
        path.write_text(
            '<TS version="2.1"><context><name>c</name>'
            "<message><source>a</source><translation>x</translation></message>"
            "</context></TS>",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["check", str(path), "--format", "json"])

        assert result.exit_code == 0
        assert [i["issue_type"] for i in json.loads(result.stdout)] == ["no_location"]

    def test_parse_error_fails(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "broken-de.ts"
        path.write_text("<TS>", encoding="utf-8")

        assert runner.invoke(app, ["check", str(path)]).exit_code == 1

    def test_unknown_severity(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(app, ["check", str(german_file), "-s", "urgent"])

        assert result.exit_code == 1


class TestFormat:
    """Tests for the format command."""

    def test_stdout(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(app, ["format", str(german_file)])

        assert result.exit_code == 0
        assert result.stdout.startswith('<?xml version="1.0" encoding="utf-8"?>')
        assert "<source>Online</source>" in result.stdout

    def test_output_file(self, runner: CliRunner, awattar_file: Path, tmp_path: Path):
        output = tmp_path / "awattar-en_US.ts"

        result = runner.invoke(app, ["format", str(awattar_file), "-o", str(output)])

        assert result.exit_code == 0
        assert load_file(output) == load_file(awattar_file)


class TestExport:
    """Tests for the export command."""

    def test_csv(self, runner: CliRunner, awattar_file: Path, tmp_path: Path):
        output = tmp_path / "messages.csv"

        result = runner.invoke(app, ["export", str(awattar_file), "-o", str(output)])

        assert result.exit_code == 0
        assert "Exported 20 messages" in result.stdout
        frame = pl.read_csv(output)
        assert frame.height == 20
        row = frame.filter(pl.col("source") == "Online").row(0, named=True)
        assert row["locations"].count("plugininfo.h") == 2

    def test_json(self, runner: CliRunner, german_file: Path, tmp_path: Path):
        output = tmp_path / "messages.json"

        result = runner.invoke(app, ["export", str(german_file), "-o", str(output)])

        assert result.exit_code == 0
        rows = json.loads(output.read_text(encoding="utf-8"))
        assert rows[0]["source"] == "Online"
        assert rows[0]["translation"] == "Verbunden"

    def test_parquet(self, runner: CliRunner, german_file: Path, tmp_path: Path):
        output = tmp_path / "messages.parquet"

        result = runner.invoke(app, ["export", str(german_file), "-o", str(output)])

        assert result.exit_code == 0
        assert pl.read_parquet(output).height == 8

    def test_unsupported(self, runner: CliRunner, german_file: Path, tmp_path: Path):
        result = runner.invoke(app, ["export", str(german_file), "-o", str(tmp_path / "m.xlsx")])

        assert result.exit_code == 1


class TestGlobalOptions:
    """Tests for --config, --log-level and --log-format."""

    def test_invalid_log_level(self, runner: CliRunner, german_file: Path):
        result = runner.invoke(app, ["--log-level", "loud", "stats", str(german_file)])

        assert result.exit_code == 1

    def test_config_file(self, runner: CliRunner, german_file: Path, tmp_path: Path):
        config = tmp_path / "tscatalog.yaml"
        config.write_text("log_level: ERROR\n")

        result = runner.invoke(app, ["--config", str(config), "lookup", str(german_file), "awattar", "Online"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "Verbunden"

    def test_missing_config_file(self, runner: CliRunner, german_file: Path, tmp_path: Path):
        result = runner.invoke(
            app, ["--config", str(tmp_path / "none.yaml"), "stats", str(german_file)]
        )

        assert result.exit_code == 1
