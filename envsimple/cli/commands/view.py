"""Read-only commands: print, versions, log, audit."""

import re
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from envsimple.cli.output import format_key_value
from envsimple.core.codec import parse_env
from envsimple.core.context import get_local_overrides
from envsimple.core.files import WorkingFile
from envsimple.core.overrides import apply_overrides
from envsimple.errors import ValidationError

if TYPE_CHECKING:
    from envsimple.cli.commands.helpers import App

LOG_LIMIT = 10
AUDIT_LIMIT = 100
ISO_8601_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")


def is_valid_iso8601(value: str) -> bool:
    """Strict ``YYYY-MM-DDTHH:MM:SSZ`` check, including calendar validity."""
    if not ISO_8601_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ")
    except ValueError:
        return False
    return True


def _format_time(value: Optional[str]) -> str:
    if not value:
        return "-"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return value


def cmd_print(args, app: "App"):
    """Show .env variables with local overrides applied."""
    output = app.output
    raw = bool(getattr(args, "raw", False))

    content = WorkingFile(app.cwd).read()
    if not content.strip():
        if app.json_mode:
            output.json({"keys": {}, "count": 0})
        else:
            output.warning(".env file is empty or does not exist")
            output.info('Run "envsimple pull" to fetch environment variables')
        return

    overrides = get_local_overrides(app.cwd)
    env = apply_overrides(parse_env(content), overrides)

    app.track("cli.print", {"count": len(env)})

    if app.json_mode:
        output.json({"keys": env, "count": len(env), "overrides": sorted(overrides)})
        return

    output.info(f"Environment variables ({len(env)} keys):")
    output.info()
    for key in sorted(env):
        marker = " (override)" if key in overrides else ""
        output.info(format_key_value(key, env[key], raw) + marker)


def cmd_versions(args, app: "App"):
    """List every version of the environment."""
    output = app.output
    app.require_auth()
    context = app.resolve(interactive=False)
    ref = app.directory().resolve(context)

    versions = app.remote.list_versions(ref.environment_id)
    app.track("cli.versions", {"count": len(versions)})

    if app.json_mode:
        output.json(
            {"environment": context.environment, "versions": [v.to_dict() for v in versions]}
        )
        return

    output.info(f"Versions for {context.environment}:")
    output.info()
    if not versions:
        output.warning("No versions found")
        return

    rows = [
        [
            str(v.version_number),
            f"{v.size_bytes / 1024:.2f} KB",
            v.created_by_name or v.created_by[:8],
            _format_time(v.created_at),
            "forced" if v.is_forced_push else "normal",
        ]
        for v in versions
    ]
    output.table(["Version", "Size", "Created By", "Created At", "Type"], rows)


def cmd_log(args, app: "App"):
    """Short summary of the most recent versions."""
    output = app.output
    app.require_auth()
    context = app.resolve(interactive=False)
    ref = app.directory().resolve(context)

    versions = app.remote.list_versions(ref.environment_id)
    recent = versions[:LOG_LIMIT]
    app.track("cli.log", {})

    if app.json_mode:
        output.json(
            {
                "environment": context.environment,
                "recent_versions": [v.to_dict() for v in recent],
            }
        )
        return

    output.info(f"Recent versions for {context.environment}:")
    output.info()
    if not recent:
        output.warning("No versions found")
        return

    for v in recent:
        forced = " [FORCED]" if v.is_forced_push else ""
        output.info(f"v{v.version_number} - {_format_time(v.created_at)}{forced}")

    if len(versions) > LOG_LIMIT:
        output.info()
        output.info(f"... and {len(versions) - LOG_LIMIT} more")


def cmd_audit(args, app: "App"):
    """Organization audit logs, optionally bounded by --since/--to."""
    output = app.output
    since = getattr(args, "since", None)
    until = getattr(args, "to", None)

    if since and not is_valid_iso8601(since):
        raise ValidationError("--since must be in ISO 8601 format (YYYY-MM-DDTHH:MM:SSZ)")
    if until and not is_valid_iso8601(until):
        raise ValidationError("--to must be in ISO 8601 format (YYYY-MM-DDTHH:MM:SSZ)")

    app.require_auth()
    context = app.resolve(interactive=False)
    org = app.directory().find_organization(context.org)

    logs = app.remote.get_audit_logs(
        org.id, start_time=since, end_time=until, limit=AUDIT_LIMIT
    )
    app.track("cli.audit", {"count": len(logs)})

    if app.json_mode:
        output.json({"organization": context.org, "logs": logs, "count": len(logs)})
        return

    output.info(f"Audit logs for {context.org}:")
    output.info()
    if not logs:
        output.warning("No audit logs found")
        return

    rows = []
    for log in logs:
        actor = log.get("actor") or {}
        resource = log.get("resource") or {}
        rows.append(
            [
                log.get("action", ""),
                actor.get("name") or actor.get("email") or str(actor.get("id", ""))[:8],
                f"{resource.get('type', '')}/{str(resource.get('id', ''))[:8]}",
                _format_time(log.get("created_at")),
            ]
        )
    output.table(["Action", "Actor", "Resource", "Timestamp"], rows)
