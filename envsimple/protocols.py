"""
envsimple Protocol Definitions
==============================

Interface contracts between the sync core and its collaborators.

- RemoteBackend:  the remote store. Implemented over HTTP by
                  :class:`envsimple.api.client.ApiClient`; tests substitute
                  an in-memory fake.
- SyncDecisions:  the points where the sync protocol needs a yes/no from a
                  human. The CLI supplies a terminal implementation; scripts
                  and tests supply a scripted one. The sync core itself never
                  reads from the terminal.

Error handling:
- RemoteBackend methods raise :mod:`envsimple.errors` subclasses
  (NotFoundError, ConflictError, NetworkError, ...).
- SyncDecisions methods may raise CancelledError / InteractiveRequired.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, Tuple, TypeVar, runtime_checkable

from envsimple.types import (
    Environment,
    Organization,
    Project,
    PushedVersion,
    RollbackResult,
    Snapshot,
    VersionInfo,
)

T = TypeVar("T")


@runtime_checkable
class RemoteBackend(Protocol):
    """Remote verbs consumed by the sync protocol and command glue."""

    def list_organizations(self) -> List[Organization]: ...

    def list_projects(self, org_slug: str) -> List[Project]: ...

    def list_environments(self, project_id: str) -> List[Environment]: ...

    def get_current_snapshot(self, environment_id: str) -> Snapshot: ...

    def get_snapshot_by_version(self, environment_id: str, version_number: int) -> Snapshot: ...

    def push_snapshot(
        self, environment_id: str, plaintext: str, base_version: Optional[int] = None
    ) -> PushedVersion:
        """Submit a full snapshot.

        With ``base_version`` the remote rejects the push with ConflictError
        unless it matches the current version. Without it the push is
        accepted unconditionally and flagged ``is_forced_push``.
        """
        ...

    def rollback(self, environment_id: str, target_version: int) -> RollbackResult:
        """Create a new version whose content equals ``target_version``."""
        ...

    def list_versions(self, environment_id: str) -> List[VersionInfo]: ...

    def create_environment(
        self, project_id: str, name: str, env_type: Optional[str] = None
    ) -> Environment: ...

    def clone_environment(
        self,
        project_id: str,
        source_environment_id: str,
        destination_name: str,
        destination_type: Optional[str] = None,
    ) -> Environment: ...

    def delete_environment(self, environment_id: str, permanent: bool = False) -> None: ...


@runtime_checkable
class SyncDecisions(Protocol):
    """Decision port for the sync protocol."""

    def confirm_overwrite(self, version_number: int, key_count: int) -> bool:
        """Pulling version 0 or an empty snapshot: overwrite the working file?"""
        ...

    def include_override_keys(self, keys: Sequence[str]) -> bool:
        """The working file holds keys that are local overrides: push them?"""
        ...

    def force_after_conflict(self, message: str) -> bool:
        """Push was rejected as stale: retry as a forced push?"""
        ...


@runtime_checkable
class Prompter(Protocol):
    """Low-level interactive prompts."""

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def select(self, message: str, choices: Sequence[Tuple[str, T]]) -> T: ...
