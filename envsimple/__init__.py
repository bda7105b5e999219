"""
EnvSimple - Versioned environment-variable snapshots for teams.

Pull, push and roll back full-state `.env` snapshots against a remote store,
with local per-developer overrides and optimistic-concurrency conflict checks.
"""

from .core.sync import SyncProtocol
from .types import ResolvedContext

try:
    from importlib.metadata import version

    __version__ = version("envsimple")
except Exception:
    __version__ = "0.0.0"

__all__ = ["SyncProtocol", "ResolvedContext"]
