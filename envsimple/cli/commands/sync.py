"""Sync commands: pull, push, rollback."""

import logging
from typing import TYPE_CHECKING, Optional

from envsimple.core.files import BackupOutcome
from envsimple.errors import ValidationError

if TYPE_CHECKING:
    from envsimple.cli.commands.helpers import App

logger = logging.getLogger(__name__)

_BACKUP_MESSAGES = {
    BackupOutcome.CREATED: "Backed up .env to .env.copy",
    BackupOutcome.APPENDED: "Appended previous .env to .env.copy",
}


def _report_backup(app: "App", outcome: Optional[BackupOutcome]) -> None:
    if outcome is not None:
        app.output.success(_BACKUP_MESSAGES[outcome])


def cmd_pull(args, app: "App"):
    """Pull the current (or a specific) snapshot into .env."""
    output = app.output
    app.require_auth()
    if app.token_mode:
        output.success("Using service token")

    context = app.resolve()
    version = getattr(args, "version", None)

    result = app.sync().pull(context, version=version, skip_confirmation=app.json_mode)

    if result.cancelled:
        if app.json_mode:
            output.json(result.to_dict())
        else:
            output.info("Pull cancelled")
        return

    _report_backup(app, result.backup)
    app.track(
        "cli.pull",
        {
            "environment": context.environment,
            "version": result.version_number,
            "has_overrides": result.overrides_applied > 0,
        },
    )

    if app.json_mode:
        output.json(result.to_dict())
        return

    suffix = f" (v{version})" if version is not None else ""
    output.success(f"Pulled version {result.version_number} from {context.environment}{suffix}")
    output.info(f"{result.keys} keys written to .env")
    if result.overrides_applied:
        output.info(f"{result.overrides_applied} local overrides applied")


def cmd_push(args, app: "App"):
    """Push .env as a new snapshot."""
    output = app.output
    force = bool(getattr(args, "force", False))
    app.require_auth()
    if app.token_mode:
        output.success("Using service token")

    context = app.resolve(interactive=False)
    if force and not app.token_mode:
        output.warning("Force push: this will overwrite remote changes")

    result = app.sync().push(context, force=force)

    if result.excluded_keys:
        output.info(f"Excluded {len(result.excluded_keys)} override keys from push")
    _report_backup(app, result.backup)
    app.track(
        "cli.push",
        {
            "environment": context.environment,
            "version": result.version_number,
            "is_forced": result.is_forced_push,
        },
    )

    if app.json_mode:
        output.json(result.to_dict())
        return

    output.success(f"Pushed version {result.version_number} to {context.environment}")
    if result.is_forced_push:
        output.warning("This was a forced push (base version mismatch ignored)")


def cmd_rollback(args, app: "App"):
    """Restore an earlier version as a new version and pull it."""
    output = app.output
    target = getattr(args, "target", None)
    if target is None:
        raise ValidationError("--target flag is required")

    app.require_auth()
    context = app.resolve(interactive=False)

    outcome = app.sync().rollback(context, target)

    _report_backup(app, outcome.backup)
    app.track(
        "cli.rollback",
        {
            "environment": context.environment,
            "from_version": outcome.rollback.rolled_back_from,
            "to_version": outcome.rollback.rolled_back_to,
        },
    )

    if app.json_mode:
        output.json(outcome.to_dict())
        return

    output.success(
        f"Rolled back from v{outcome.rollback.rolled_back_from} "
        f"to v{outcome.rollback.rolled_back_to}"
    )
    output.info(f"New version: v{outcome.version_number}")
    output.success("Updated .env with rolled back version")
