"""Tests for the staffing CLI (Typer app)."""

import json
import sys

import pytest
from typer.testing import CliRunner

from staffing.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    # Handlers bound to the runner's captured stdout outlive the invocation.
    monkeypatch.setattr(sys.modules["staffing.cli.app"], "configure_logging", lambda **kwargs: None)


@pytest.fixture
def opportunities_file(tmp_path, opportunity_factory, role_factory):
    def write(payload):
        path = tmp_path / "opps.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    write.valid = [
        opportunity_factory("opp-1", client_name="Acme", roles=(
            role_factory("role-1", role_name="Tester", needs_hire=True),
        )).to_wire(),
        opportunity_factory("opp-2", client_name="Globex").to_wire(),
    ]
    return write


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("staffing ")

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "descriptor" in result.output
        assert "demo" in result.output


class TestDescriptor:
    def test_json(self):
        result = runner.invoke(
            app, ["descriptor", "--status", "OnHold", "--client", " Acme ", "--grades", "SE,JT", "--json"],
        )
        assert result.exit_code == 0
        assert '"on-hold"' in result.output
        assert '"acme"' in result.output
        assert '"JT,SE"' in result.output
        assert '"is_default": false' in result.output

    def test_default_table(self):
        result = runner.invoke(app, ["descriptor"])
        assert result.exit_code == 0
        assert "Query:" in result.output
        assert "status=in-progress" in result.output

    def test_unknown_status(self):
        result = runner.invoke(app, ["descriptor", "--status", "archived"])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestRows:
    def test_json_rows(self, opportunities_file):
        path = opportunities_file(opportunities_file.valid)
        result = runner.invoke(app, ["rows", str(path), "--json"])
        assert result.exit_code == 0
        assert '"Tester"' in result.output
        assert '"opp-2"' in result.output

    def test_table(self, opportunities_file):
        path = opportunities_file(opportunities_file.valid)
        result = runner.invoke(app, ["rows", str(path)])
        assert result.exit_code == 0
        assert "Tester" in result.output
        assert "Globex" in result.output

    def test_invalid_elements_skipped(self, opportunities_file):
        path = opportunities_file([*opportunities_file.valid, {"id": "opp-3"}])
        result = runner.invoke(app, ["rows", str(path), "--json"])
        assert result.exit_code == 0
        assert "1 invalid opportunities skipped" in result.output

    def test_nothing_valid(self, opportunities_file):
        path = opportunities_file([{"id": "opp-3"}])
        result = runner.invoke(app, ["rows", str(path)])
        assert result.exit_code == 1
        assert "VALIDATION" in result.output

    def test_not_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(app, ["rows", str(path)])
        assert result.exit_code == 1


class TestDemo:
    def test_happy_path(self):
        result = runner.invoke(app, ["demo", "--latency", "0"])
        assert result.exit_code == 0
        assert "Create: optimistic" in result.output
        assert "Create: settled" in result.output
        assert "Move: settled" in result.output

    def test_failed_move_rolls_back(self):
        result = runner.invoke(app, ["demo", "--fail", "--latency", "0"])
        assert result.exit_code == 0
        assert "Move failed:" in result.output
        assert "Move: rolled back" in result.output


class TestConfig:
    def test_show_json(self):
        result = runner.invoke(app, ["config", "show", "--format", "json"])
        assert result.exit_code == 0
        assert '"temp_id_prefix"' in result.output

    def test_show_env(self):
        result = runner.invoke(app, ["config", "show", "--format", "env"])
        assert result.exit_code == 0
        assert "STAFFING_STALE_TIME_SECONDS=" in result.output

    def test_validate(self):
        result = runner.invoke(app, ["config", "validate"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

