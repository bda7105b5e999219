"""Context files and context resolution.

Resolution priority, short-circuiting:
1. CLI flags (all three present)
2. .envsimple.local (developer-private, may also hold overrides)
3. .envsimple (team-committed, all fields required)
4. Interactive selection (handled by the caller, never here)

Partial flags override the matching field from whichever file supplies it.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from envsimple.errors import ConfigurationError
from envsimple.types import (
    ContextSource,
    EnvMapping,
    LocalContext,
    ResolvedContext,
    SharedContext,
)
from envsimple.utils import LOCAL_CONTEXT_FILE, SHARED_CONTEXT_FILE

logger = logging.getLogger(__name__)

CONTEXT_FIELDS = ("org", "project", "environment")


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid {path.name} file: {e}") from e


def _write_yaml(path: Path, data: Dict[str, Any]) -> None:
    content = yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    path.write_text(content, encoding="utf-8")


def _override_value(value: Any) -> str:
    # YAML turns `DEBUG: true` into a bool; keep the env-file spelling
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def load_shared_context(cwd: Path) -> Optional[SharedContext]:
    """Load ``.envsimple``.

    Returns None if the file does not exist.

    Raises:
        ConfigurationError: If the file exists but is malformed or lacks
            any of org, project, environment.
    """
    path = Path(cwd) / SHARED_CONTEXT_FILE
    if not path.is_file():
        return None

    parsed = _read_yaml(path)
    if not isinstance(parsed, dict):
        raise ConfigurationError(f"Invalid {SHARED_CONTEXT_FILE} file format")

    missing = [
        name
        for name in CONTEXT_FIELDS
        if not parsed.get(name) or not isinstance(parsed.get(name), str)
    ]
    if missing:
        raise ConfigurationError(
            f"{SHARED_CONTEXT_FILE} must contain org, project, and environment fields "
            f"(missing or invalid: {', '.join(missing)})"
        )

    return SharedContext(
        org=parsed["org"], project=parsed["project"], environment=parsed["environment"]
    )


def load_local_context(cwd: Path) -> Optional[LocalContext]:
    """Load ``.envsimple.local``. Returns None if absent or not a mapping."""
    path = Path(cwd) / LOCAL_CONTEXT_FILE
    if not path.is_file():
        return None

    parsed = _read_yaml(path)
    if not isinstance(parsed, dict):
        logger.debug("Ignoring %s: not a mapping", LOCAL_CONTEXT_FILE)
        return None

    overrides_raw = parsed.get("overrides") or {}
    if not isinstance(overrides_raw, dict):
        raise ConfigurationError(f"'overrides' in {LOCAL_CONTEXT_FILE} must be a mapping")

    def _field(name: str) -> Optional[str]:
        value = parsed.get(name)
        return str(value) if value else None

    return LocalContext(
        org=_field("org"),
        project=_field("project"),
        environment=_field("environment"),
        overrides={str(k): _override_value(v) for k, v in overrides_raw.items()},
    )


def save_shared_context(context: SharedContext, cwd: Path) -> Path:
    path = Path(cwd) / SHARED_CONTEXT_FILE
    _write_yaml(path, context.to_dict())
    return path


def save_local_context(context: LocalContext, cwd: Path) -> Path:
    path = Path(cwd) / LOCAL_CONTEXT_FILE
    _write_yaml(path, context.to_dict())
    return path


def switch_local_environment(environment: str, cwd: Path) -> Path:
    """Point ``.envsimple.local`` at another environment, keeping its overrides."""
    local = load_local_context(cwd) or LocalContext()
    local.environment = environment
    return save_local_context(local, cwd)


def resolve_context(
    flags: Mapping[str, Optional[str]],
    cwd: Path,
    skip_local: bool = False,
) -> Optional[ResolvedContext]:
    """Determine the (org, project, environment) a command operates on.

    Never prompts. Returns None when any field stays unresolved; the caller
    either fails or falls back to interactive selection.

    Args:
        flags: org/project/environment values supplied on the command line.
        cwd: Directory holding the context files.
        skip_local: Ignore ``.envsimple.local`` (service-token mode).

    Raises:
        ConfigurationError: If ``.envsimple`` exists but is malformed.
    """
    shared = load_shared_context(cwd)
    local = None if skip_local else load_local_context(cwd)

    flag_org = flags.get("org")
    flag_project = flags.get("project")
    flag_env = flags.get("environment")

    if flag_org and flag_project and flag_env:
        return ResolvedContext(
            org=flag_org, project=flag_project, environment=flag_env, source=ContextSource.FLAGS
        )

    def _pick(flag_value: Optional[str], name: str) -> Optional[str]:
        return (
            flag_value
            or (getattr(local, name) if local else None)
            or (getattr(shared, name) if shared else None)
        )

    org = _pick(flag_org, "org")
    project = _pick(flag_project, "project")
    environment = _pick(flag_env, "environment")

    if org and project and environment:
        source = ContextSource.LOCAL if local is not None else ContextSource.SHARED
        return ResolvedContext(org=org, project=project, environment=environment, source=source)

    return None


def get_local_overrides(cwd: Path) -> EnvMapping:
    local = load_local_context(cwd)
    return dict(local.overrides) if local else {}


def clear_context_if_matches(environment: str, cwd: Path) -> list:
    """Remove context files pointing at a deleted environment.

    Returns the list of removed paths.
    """
    removed = []
    shared_path = Path(cwd) / SHARED_CONTEXT_FILE
    local_path = Path(cwd) / LOCAL_CONTEXT_FILE

    # Load both before deleting either; a malformed shared file is not fatal here
    try:
        shared = load_shared_context(cwd)
    except ConfigurationError as e:
        logger.debug("Not clearing %s: %s", SHARED_CONTEXT_FILE, e)
        shared = None
    local = load_local_context(cwd)

    if local is not None and local.environment == environment and local_path.exists():
        local_path.unlink()
        removed.append(local_path)
    if shared is not None and shared.environment == environment and shared_path.exists():
        shared_path.unlink()
        removed.append(shared_path)
    return removed
