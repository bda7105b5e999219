"""
EnvSimple CLI - Versioned .env snapshots for teams.

Usage:
    envsimple login | logout | status
    envsimple pull [--version N] [--token]
    envsimple push [--force] [--token]
    envsimple rollback --target N [--token]
    envsimple print [--raw]
    envsimple versions | log
    envsimple audit [--since TS] [--to TS]
    envsimple env list | create NAME | clone SRC DEST | delete [--permanent]
    envsimple update [--shared]
    envsimple help-config
    envsimple telemetry enable | disable | status

Global flags: --json --debug --org ORG --project PROJECT --environment ENV
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from envsimple import __version__
from envsimple.cli.commands import (
    App,
    cmd_audit,
    cmd_env,
    cmd_help_config,
    cmd_log,
    cmd_login,
    cmd_logout,
    cmd_print,
    cmd_pull,
    cmd_push,
    cmd_rollback,
    cmd_status,
    cmd_telemetry,
    cmd_update,
    cmd_versions,
)
from envsimple.cli.commands.helpers import positive_int
from envsimple.cli.output import Output
from envsimple.errors import CancelledError, EnvSimpleError

# Set up logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

COMMANDS = {
    "login": cmd_login,
    "logout": cmd_logout,
    "status": cmd_status,
    "pull": cmd_pull,
    "push": cmd_push,
    "rollback": cmd_rollback,
    "print": cmd_print,
    "versions": cmd_versions,
    "log": cmd_log,
    "audit": cmd_audit,
    "env": cmd_env,
    "update": cmd_update,
    "help-config": cmd_help_config,
    "telemetry": cmd_telemetry,
}


def _global_flags(default=None) -> argparse.ArgumentParser:
    """Global flags, accepted before or after the subcommand."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--json", "-j", action="store_true", default=default,
                        help="Output in JSON format")
    parser.add_argument("--debug", action="store_true", default=default,
                        help="Enable debug logging")
    parser.add_argument("--org", default=default, help="Organization slug")
    parser.add_argument("--project", default=default, help="Project name")
    parser.add_argument("--environment", "-e", default=default, help="Environment name")
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="envsimple",
        description="CLI-first environment configuration management",
        parents=[_global_flags()],
    )
    parser.add_argument("--version", action="version", version=f"envsimple {__version__}")

    # Subcommand copies must not clobber values given before the subcommand
    common = _global_flags(default=argparse.SUPPRESS)
    subparsers = parser.add_subparsers(dest="command", required=True)

    # auth
    p_login = subparsers.add_parser("login", parents=[common], help="Log in to EnvSimple")
    p_login.add_argument("--device", action="store_true",
                         help="Use the device code flow (default)")
    subparsers.add_parser("logout", parents=[common], help="Log out of EnvSimple")

    # context
    subparsers.add_parser("status", parents=[common],
                          help="Show current context and authentication status")
    p_update = subparsers.add_parser("update", parents=[common],
                                     help="Switch the environment of the current context")
    p_update.add_argument("--shared", action="store_true",
                          help="Update .envsimple instead of .envsimple.local")
    subparsers.add_parser("help-config", parents=[common],
                          help="Explain .envsimple and .envsimple.local")

    # sync
    p_pull = subparsers.add_parser("pull", parents=[common],
                                   help="Pull the latest environment snapshot into .env")
    p_pull.add_argument("--version", "-v", type=positive_int, help="Pull a specific version")
    p_pull.add_argument("--token", action="store_true",
                        help="Authenticate with ENVSIMPLE_SERVICE_TOKEN")

    p_push = subparsers.add_parser("push", parents=[common], help="Push .env as a new version")
    p_push.add_argument("--force", "-f", action="store_true",
                        help="Push without a base version (overwrites remote changes)")
    p_push.add_argument("--token", action="store_true",
                        help="Authenticate with ENVSIMPLE_SERVICE_TOKEN")

    p_rollback = subparsers.add_parser("rollback", parents=[common],
                                       help="Restore an earlier version as a new version")
    p_rollback.add_argument("--target", "-t", type=positive_int,
                            help="Version number to roll back to")
    p_rollback.add_argument("--token", action="store_true",
                            help="Authenticate with ENVSIMPLE_SERVICE_TOKEN")

    # view
    p_print = subparsers.add_parser("print", parents=[common], help="Print environment variables")
    p_print.add_argument("--raw", action="store_true", help="Show unmasked values")
    subparsers.add_parser("versions", parents=[common], help="List all versions")
    subparsers.add_parser("log", parents=[common], help="Show recent version history")
    p_audit = subparsers.add_parser("audit", parents=[common], help="Show organization audit logs")
    p_audit.add_argument("--since", help="Start time (YYYY-MM-DDTHH:MM:SSZ)")
    p_audit.add_argument("--to", help="End time (YYYY-MM-DDTHH:MM:SSZ)")

    # env
    p_env = subparsers.add_parser("env", parents=[common], help="Manage environments")
    env_sub = p_env.add_subparsers(dest="env_action", required=True)
    env_sub.add_parser("list", parents=[common], help="List environments in the project")
    env_create = env_sub.add_parser("create", parents=[common], help="Create an environment")
    env_create.add_argument("name", help="Environment name")
    env_create.add_argument("--type", help="Environment type")
    env_clone = env_sub.add_parser("clone", parents=[common], help="Clone an environment")
    env_clone.add_argument("source", help="Source environment name")
    env_clone.add_argument("destination", help="Destination environment name")
    env_clone.add_argument("--type", help="Destination environment type")
    env_delete = env_sub.add_parser("delete", parents=[common],
                                    help="Delete the current environment")
    env_delete.add_argument("--permanent", action="store_true",
                            help="Permanently delete (cannot be restored)")

    # telemetry
    p_telemetry = subparsers.add_parser("telemetry", parents=[common],
                                        help="Manage anonymous telemetry")
    telemetry_sub = p_telemetry.add_subparsers(dest="telemetry_action", required=True)
    telemetry_sub.add_parser("enable", help="Enable anonymous telemetry")
    telemetry_sub.add_parser("disable", help="Disable telemetry")
    telemetry_sub.add_parser("status", help="Show telemetry status")

    return parser


def report_error(output: Output, error: EnvSimpleError) -> None:
    """Render an error as a JSON payload or a human message."""
    if output.json_mode:
        output.json(error.to_dict(include_details=output.debug))
    else:
        output.error(error.message)


def run_command(handler: Callable, args: argparse.Namespace, app: App) -> int:
    """Run one command handler and map its outcome to an exit code.

    This is the only place errors are turned into exit codes and output.
    """
    try:
        handler(args, app)
        return 0
    except KeyboardInterrupt:
        error = CancelledError()
        report_error(app.output, error)
        return error.exit_code
    except EnvSimpleError as e:
        logger.debug("%s failed: %s (%s)", args.command, e.message, e.code)
        report_error(app.output, e)
        return e.exit_code
    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=app.output.debug)
        report_error(app.output, EnvSimpleError(f"Command failed: {e}", code="INTERNAL_ERROR"))
        return 1
    finally:
        app.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.getLogger("envsimple").setLevel(logging.DEBUG)

    app = App(args)
    return run_command(COMMANDS[args.command], args, app)


if __name__ == "__main__":
    sys.exit(main())
