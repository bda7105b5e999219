"""CLI command modules for envsimple.

Each handler takes the parsed ``args`` and the per-invocation
:class:`~envsimple.cli.commands.helpers.App`.
"""

from envsimple.cli.commands.auth import cmd_login, cmd_logout
from envsimple.cli.commands.context import cmd_help_config, cmd_status, cmd_update
from envsimple.cli.commands.env import cmd_env
from envsimple.cli.commands.helpers import App
from envsimple.cli.commands.sync import cmd_pull, cmd_push, cmd_rollback
from envsimple.cli.commands.telemetry import cmd_telemetry
from envsimple.cli.commands.view import cmd_audit, cmd_log, cmd_print, cmd_versions

__all__ = [
    "App",
    "cmd_audit",
    "cmd_env",
    "cmd_help_config",
    "cmd_log",
    "cmd_login",
    "cmd_logout",
    "cmd_print",
    "cmd_pull",
    "cmd_push",
    "cmd_rollback",
    "cmd_status",
    "cmd_telemetry",
    "cmd_update",
    "cmd_versions",
]
