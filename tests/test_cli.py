from __future__ import annotations

import json

import pytest

pytest.importorskip("rich_click")
pytest.importorskip("rich")

from click.testing import CliRunner

import scimfilter
from scimfilter.cli.errors import CLIError, cli_error_for_exception
from scimfilter.cli.main import cli
from scimfilter.exceptions import FilterLimitError, InternalConsistencyError


def test_cli_no_args_shows_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage:" in result.output


def test_cli_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert scimfilter.__version__ in result.output


def test_cli_filter_tree_output() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["filter", 'title pr and userType eq "Employee"'])
    assert result.exit_code == 0
    assert "and" in result.output
    assert "title pr" in result.output
    assert 'userType eq "Employee"' in result.output


def test_cli_filter_json_output() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--json", "filter", 'emails[type eq "work"] or title pr'])
    assert result.exit_code == 0
    payload = json.loads(result.output.strip())
    assert payload["ok"] is True
    assert payload["command"] == "filter"
    assert payload["data"]["ast"]["type"] == "disjunction"
    assert payload["data"]["attributes"] == ["emails.type", "title"]
    assert payload["error"] is None


def test_cli_output_option_json() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--output", "json", "filter", "title pr"])
    assert result.exit_code == 0
    payload = json.loads(result.output.strip())
    assert payload["data"]["ast"]["operator"] == "pr"


def test_cli_path_json_output() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--json", "path", 'emails[type eq "work"].value'])
    assert result.exit_code == 0
    payload = json.loads(result.output.strip())
    assert payload["command"] == "path"
    assert payload["data"]["ast"]["type"] == "value_path"
    assert payload["data"]["ast"]["sub_attribute"] == "value"
    assert payload["data"]["attributes"] == ["emails.type", "emails.value"]


def test_cli_path_attribute() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--json", "path", "name.givenName"])
    assert result.exit_code == 0
    payload = json.loads(result.output.strip())
    assert payload["data"]["attributes"] == ["name.givenName"]


def test_cli_empty_expression() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--json", "filter", "()"])
    assert result.exit_code == 0
    payload = json.loads(result.output.strip())
    assert payload["ok"] is True
    assert payload["data"] is None


def test_cli_syntax_error_exit_code() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["filter", "title pr)"])
    assert result.exit_code == 2
    assert "Error:" in result.output
    assert "after the end of the expression" in result.output
    assert "^" in result.output


def test_cli_syntax_error_json() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--json", "filter", 'name.givenName[value eq "x"]'])
    assert result.exit_code == 2
    payload = json.loads(result.output.strip())
    assert payload["ok"] is False
    assert payload["data"] is None
    assert payload["error"]["type"] == "invalid_value_path"
    assert payload["error"]["scimType"] == "invalidFilter"
    assert payload["error"]["details"] == {"token": "name.givenName", "position": 0}


def test_cli_path_error_scim_type() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--json", "path", "title pr"])
    assert result.exit_code == 2
    payload = json.loads(result.output.strip())
    assert payload["error"]["type"] == "syntax_error"
    assert payload["error"]["scimType"] == "invalidPath"


def test_cli_max_depth_option() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--json", "--max-depth", "1", "filter", "((a pr))"])
    assert result.exit_code == 2
    payload = json.loads(result.output.strip())
    assert payload["error"]["type"] == "limit_exceeded"
    assert payload["error"]["details"] == {"limit": 1, "actual": 2}


def test_cli_max_length_from_env() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["--json", "filter", "title pr"], env={"SCIM_FILTER_MAX_LENGTH": "3"}
    )
    assert result.exit_code == 2
    payload = json.loads(result.output.strip())
    assert payload["error"]["type"] == "limit_exceeded"


def test_cli_option_overrides_env() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--json", "--max-length", "100", "filter", "title pr"],
        env={"SCIM_FILTER_MAX_LENGTH": "3"},
    )
    assert result.exit_code == 0


def test_cli_invalid_env_is_usage_error() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["filter", "title pr"], env={"SCIM_FILTER_MAX_DEPTH": "deep"})
    assert result.exit_code == 2
    assert "SCIM_FILTER_MAX_DEPTH" in result.output


def test_cli_rejects_non_positive_limit_option() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--max-depth", "0", "filter", "title pr"])
    assert result.exit_code == 2


def test_cli_error_for_limit_error() -> None:
    error = cli_error_for_exception(FilterLimitError("Too long.", limit=3, actual=8))
    assert isinstance(error, CLIError)
    assert error.exit_code == 2
    assert error.error_type == "limit_exceeded"
    assert error.scim_type == "invalidFilter"
    assert error.details == {"limit": 3, "actual": 8}
    assert str(error) == "Too long."


def test_cli_error_for_internal_error() -> None:
    error = cli_error_for_exception(InternalConsistencyError("Broken rewrite."))
    assert error.exit_code == 1
    assert error.error_type == "internal_error"
    with pytest.raises(CLIError, match="Broken rewrite"):
        raise error
