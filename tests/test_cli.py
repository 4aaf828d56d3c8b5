"""Tests for the command-line interface."""

import json

import pytest

from fetscr.config import get_settings
from fetscr.main import main, parse_args


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE__URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("GOOGLE__API_KEY", "")
    monkeypatch.setenv("GOOGLE__SEARCH_ENGINE_ID", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestParseArgs:
    def test_serve_overrides(self):
        args = parse_args(["serve", "--transport", "stdio", "--port", "9000"])

        assert args.command == "serve"
        assert args.transport == "stdio"
        assert args.port == 9000

    def test_search_arguments(self):
        args = parse_args(["search", "acct-1", "coffee", "--keywords", "a,b"])

        assert (args.account_id, args.query, args.keywords) == ("acct-1", "coffee", "a,b")

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestCommands:
    def test_create_account_then_plan(self, cli_env, capsys):
        assert main(["create-account", "--account-id", "acct-1", "--plan", "sub1"]) == 0
        created = json.loads(capsys.readouterr().out)
        assert created["id"] == "acct-1"
        assert created["allowed_queries"] == 30

        assert main(["plan", "acct-1"]) == 0
        plan = json.loads(capsys.readouterr().out)
        assert plan["plan_type"] == "sub1"
        assert plan["queries_remaining"] == 30

    def test_set_plan_enterprise(self, cli_env, capsys):
        main(["create-account", "--account-id", "acct-1"])
        capsys.readouterr()

        code = main(
            [
                "set-plan",
                "acct-1",
                "enterprise",
                "--queries",
                "50000",
                "--results-per-query",
                "5",
            ]
        )

        assert code == 0
        plan = json.loads(capsys.readouterr().out)
        assert plan["allowed_queries"] == 10000
        assert plan["results_per_query"] == 5

    def test_history_empty(self, cli_env, capsys):
        main(["create-account", "--account-id", "acct-1"])
        capsys.readouterr()

        assert main(["history", "acct-1"]) == 0
        assert json.loads(capsys.readouterr().out) == []

    def test_unknown_account_exits_nonzero(self, cli_env, capsys):
        assert main(["plan", "nobody"]) == 1

        error = json.loads(capsys.readouterr().err)
        assert error["error_type"] == "AccountNotFoundError"

    def test_search_without_credentials(self, cli_env, capsys):
        assert main(["search", "acct-1", "coffee"]) == 1

        error = json.loads(capsys.readouterr().err)
        assert error["error_type"] == "MissingConfigurationError"

    def test_init_db(self, cli_env, capsys):
        assert main(["init-db"]) == 0

        assert json.loads(capsys.readouterr().out)["success"] is True
