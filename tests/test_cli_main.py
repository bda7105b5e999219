"""Tests for argument parsing and the command dispatch boundary."""

import pytest

from conftest import extract_json, make_args
from envsimple.cli.__main__ import build_parser, main, run_command
from envsimple.errors import NotFoundError


class TestBuildParser:
    def test_global_flags_before_subcommand(self):
        args = build_parser().parse_args(["--json", "--org", "acme", "pull"])
        assert args.json is True
        assert args.org == "acme"
        assert args.command == "pull"

    def test_global_flags_after_subcommand(self):
        args = build_parser().parse_args(["push", "-e", "staging", "--force", "-j"])
        assert args.environment == "staging"
        assert args.force is True
        assert args.json is True

    def test_pull_version(self):
        args = build_parser().parse_args(["pull", "--version", "3", "--token"])
        assert args.version == 3
        assert args.token is True

    def test_negative_version_rejected(self, capsys):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["pull", "--version", "-1"])
        assert exc.value.code == 2

    def test_env_subcommands(self):
        args = build_parser().parse_args(["env", "clone", "production", "qa", "--type", "test"])
        assert (args.env_action, args.source, args.destination, args.type) == (
            "clone",
            "production",
            "qa",
            "test",
        )

    def test_env_delete_permanent(self):
        args = build_parser().parse_args(["env", "delete", "--permanent"])
        assert args.permanent is True

    def test_command_required(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestRunCommand:
    def test_success_is_zero(self, make_app):
        args = make_args(command="help-config")
        assert run_command(lambda a, app: None, args, make_app(args)) == 0

    def test_envsimple_error_exit_code(self, make_app, capsys):
        def handler(args, app):
            raise NotFoundError('Environment "qa"')

        args = make_args(command="pull")
        assert run_command(handler, args, make_app(args)) == 5
        assert capsys.readouterr().err == '✗ Environment "qa" not found\n'

    def test_keyboard_interrupt_is_130(self, make_app, capsys):
        def handler(args, app):
            raise KeyboardInterrupt

        args = make_args(command="pull", json=True)
        assert run_command(handler, args, make_app(args)) == 130
        assert extract_json(capsys.readouterr().out)["error"] == "CANCELLED"

    def test_unexpected_error_is_internal(self, make_app, capsys):
        def handler(args, app):
            raise RuntimeError("kaboom")

        args = make_args(command="pull", json=True)
        assert run_command(handler, args, make_app(args)) == 1
        assert extract_json(capsys.readouterr().out) == {
            "error": "INTERNAL_ERROR",
            "message": "Command failed: kaboom",
        }


class TestMain:
    def test_not_logged_in(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        assert main(["pull", "--json"]) == 3
        assert extract_json(capsys.readouterr().out)["error"] == "AUTHENTICATION_REQUIRED"

    def test_push_without_context(self, logged_in, project_dir, monkeypatch, capsys):
        monkeypatch.chdir(project_dir)
        (project_dir / ".env").write_text("A=1\n")

        assert main(["--json", "push"]) == 2

        payload = extract_json(capsys.readouterr().out)
        assert payload["error"] == "CONTEXT_REQUIRED"

    def test_malformed_shared_context(self, logged_in, project_dir, monkeypatch, capsys):
        monkeypatch.chdir(project_dir)
        (project_dir / ".envsimple").write_text("org: [unclosed\n")

        assert main(["push", "--org", "a", "--project", "b", "-e", "c"]) == 7
        assert capsys.readouterr().err.startswith("✗ ")

    def test_help_config(self, monkeypatch, tmp_path, capsys):
        monkeypatch.chdir(tmp_path)
        assert main(["help-config"]) == 0
        assert "Configuration Files" in capsys.readouterr().out

    def test_version_flag(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert capsys.readouterr().out.startswith("envsimple ")
