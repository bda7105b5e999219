"""Core sync logic: codec, context resolution, overrides, backups, protocol."""

from envsimple.core.codec import format_env, normalize_content, parse_env
from envsimple.core.sync import PullResult, PushResult, RollbackOutcome, SyncProtocol

__all__ = [
    "PullResult",
    "PushResult",
    "RollbackOutcome",
    "SyncProtocol",
    "format_env",
    "normalize_content",
    "parse_env",
]
