"""Snapshot synchronization between the working file and the remote.

Each operation is a strict sequence of blocking steps; nothing runs
concurrently and nothing local is written before the remote call it depends
on has succeeded.

Pull:     resolve env id -> fetch snapshot -> parse -> confirm if empty ->
          merge overrides -> backup if different -> write -> ignore-file ->
          record base version
Push:     read working file -> confirm/strip override keys -> resolve env id
          -> pick base version -> backup -> submit -> on conflict offer one
          forced retry -> record new version
Rollback: resolve env id -> remote rollback (creates a new version) ->
          fetch new version -> backup -> merge overrides -> write -> record

The only source of truth for concurrency is the remote: the local tracker's
base version is a hint, and a stale base comes back as ConflictError.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from envsimple.core.codec import format_env, parse_env
from envsimple.core.context import get_local_overrides, resolve_context, save_shared_context
from envsimple.core.directory import RemoteDirectory
from envsimple.core.files import BackupChain, BackupOutcome, WorkingFile, ensure_gitignore
from envsimple.core.overrides import apply_overrides, find_override_collisions, strip_keys
from envsimple.errors import ConflictError, EnvSimpleError, ValidationError
from envsimple.protocols import Prompter, RemoteBackend, SyncDecisions
from envsimple.storage.version_tracker import VersionTracker
from envsimple.types import EnvironmentRef, ResolvedContext, RollbackResult

logger = logging.getLogger(__name__)


@dataclass
class PullResult:
    context: ResolvedContext
    version_number: int
    keys: int = 0
    overrides_applied: int = 0
    backup: Optional[BackupOutcome] = None
    requested_version: Optional[int] = None
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "cancelled" if self.cancelled else "success",
            "version": self.version_number,
            "keys": self.keys,
            "overrides_applied": self.overrides_applied,
        }


@dataclass
class PushResult:
    context: ResolvedContext
    version_number: int
    is_forced_push: bool
    keys: int
    base_version: Optional[int] = None
    excluded_keys: List[str] = field(default_factory=list)
    backup: Optional[BackupOutcome] = None
    forced_after_conflict: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "success",
            "version": self.version_number,
            "is_forced_push": self.is_forced_push,
            "keys": self.keys,
        }


@dataclass
class RollbackOutcome:
    context: ResolvedContext
    rollback: RollbackResult
    version_number: int
    keys: int
    backup: Optional[BackupOutcome] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "success", "rollback": self.rollback.to_dict()}


class SyncProtocol:
    """Pull, push and rollback for one project directory.

    Args:
        remote: The remote store.
        tracker: Version tracker store handle.
        cwd: Project directory holding the working and context files.
        decisions: Decision port consulted before overwriting an empty
            snapshot, pushing override keys, or forcing after a conflict.
        token_mode: Service-token mode. Skips the local context and
            overrides, never consults ``decisions`` and pushes without a
            base version.
    """

    def __init__(
        self,
        remote: RemoteBackend,
        tracker: VersionTracker,
        cwd: Path,
        decisions: SyncDecisions,
        token_mode: bool = False,
    ):
        self.remote = remote
        self.tracker = tracker
        self.cwd = Path(cwd)
        self.decisions = decisions
        self.token_mode = token_mode
        self.directory = RemoteDirectory(remote)
        self.working_file = WorkingFile(self.cwd)
        self.backups = BackupChain(self.working_file)

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def resolve(
        self,
        flags: Mapping[str, Optional[str]],
        prompter: Optional[Prompter] = None,
    ) -> ResolvedContext:
        """Resolve the context, falling back to interactive selection.

        Interactive selection happens only when a ``prompter`` is given and
        not in token mode; the chosen context is saved to ``.envsimple``.

        Raises:
            ValidationError: Context unresolved and no prompting possible.
        """
        context = resolve_context(flags, self.cwd, skip_local=self.token_mode)
        if context is not None:
            return context

        if self.token_mode:
            raise ValidationError(
                ".envsimple file or --org, --project, --environment flags are required "
                "when using --token. Service tokens do not support interactive mode.",
                code="CONTEXT_REQUIRED",
            )
        if prompter is None:
            raise ValidationError(
                "No context configured. Use --org, --project, --environment flags "
                "or create .envsimple file.",
                code="CONTEXT_REQUIRED",
            )

        context = self.directory.choose_context(prompter)
        save_shared_context(context.to_shared(), self.cwd)
        logger.info("Saved selected context %s to .envsimple", context.key)
        return context

    def _overrides(self) -> Dict[str, str]:
        return {} if self.token_mode else get_local_overrides(self.cwd)

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def pull(
        self,
        context: ResolvedContext,
        version: Optional[int] = None,
        skip_confirmation: bool = False,
    ) -> PullResult:
        """Fetch a snapshot and write it (with overrides) to the working file.

        Args:
            context: Resolved context.
            version: Explicit version to fetch; current version if None.
            skip_confirmation: Do not ask before writing an empty snapshot.
        """
        ref = self.directory.resolve(context)

        if version is not None:
            snapshot = self.remote.get_snapshot_by_version(ref.environment_id, version)
        else:
            snapshot = self.remote.get_current_snapshot(ref.environment_id)

        base_env = parse_env(snapshot.plaintext)

        if (snapshot.version_number == 0 or not base_env) and not (
            skip_confirmation or self.token_mode
        ):
            if not self.decisions.confirm_overwrite(snapshot.version_number, len(base_env)):
                logger.info("Pull of %s declined by user", context.key)
                return PullResult(
                    context=context,
                    version_number=snapshot.version_number,
                    keys=len(base_env),
                    requested_version=version,
                    cancelled=True,
                )

        overrides = self._overrides()
        final_env = apply_overrides(base_env, overrides)
        content = format_env(final_env)

        backup = self.backups.capture_if_changed(content)
        self.working_file.write(content)
        ensure_gitignore(self.cwd)

        self.tracker.set(context.org, context.project, context.environment, snapshot.version_number)

        return PullResult(
            context=context,
            version_number=snapshot.version_number,
            keys=len(final_env),
            overrides_applied=len(overrides),
            backup=backup,
            requested_version=version,
        )

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def _base_version(self, context: ResolvedContext, ref: EnvironmentRef, force: bool):
        if force or self.token_mode:
            return None

        entry = self.tracker.get(context.org, context.project, context.environment)
        if entry is not None:
            return entry.base_version

        # No tracked base: assume the remote's current version. If even that
        # read fails the push goes out without a base and is accepted as forced.
        try:
            return self.remote.get_current_snapshot(ref.environment_id).version_number
        except EnvSimpleError as e:
            logger.debug("Could not read current version for %s: %s", context.key, e)
            return None

    def push(self, context: ResolvedContext, force: bool = False) -> PushResult:
        """Submit the working file as a new snapshot.

        Raises:
            ValidationError: The working file is missing or empty.
            ConflictError: The base is stale and no forced retry was made.
        """
        content = self.working_file.read()
        if not content.strip():
            raise ValidationError(".env file is empty or does not exist")

        local_env = parse_env(content)
        excluded: List[str] = []

        if not self.token_mode and not force:
            collisions = find_override_collisions(local_env, get_local_overrides(self.cwd))
            if collisions and not self.decisions.include_override_keys(collisions):
                local_env = strip_keys(local_env, collisions)
                excluded = collisions
                logger.info("Excluding %d override keys from push", len(excluded))

        ref = self.directory.resolve(context)
        base_version = self._base_version(context, ref, force)

        backup = self.backups.capture()
        plaintext = format_env(local_env)

        forced_retry = False
        try:
            pushed = self.remote.push_snapshot(ref.environment_id, plaintext, base_version)
        except ConflictError as e:
            if force or self.token_mode or base_version is None:
                raise
            logger.warning(
                "Push of %s rejected: remote is newer than base v%s", context.key, base_version
            )
            if not self.decisions.force_after_conflict(e.message):
                raise ConflictError(
                    "Push conflict - remote version is newer. "
                    'Run "envsimple pull" to sync first, then push again.',
                    details=e.details,
                ) from e
            pushed = self.remote.push_snapshot(ref.environment_id, plaintext, None)
            forced_retry = True
            logger.info("Forced push of %s created v%s", context.key, pushed.version_number)

        self.tracker.set(context.org, context.project, context.environment, pushed.version_number)

        return PushResult(
            context=context,
            version_number=pushed.version_number,
            is_forced_push=pushed.is_forced_push,
            keys=len(local_env),
            base_version=base_version,
            excluded_keys=excluded,
            backup=backup,
            forced_after_conflict=forced_retry,
        )

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def rollback(self, context: ResolvedContext, target_version: Optional[int]) -> RollbackOutcome:
        """Ask the remote to restore ``target_version`` as a new version, then pull it."""
        if target_version is None:
            raise ValidationError("--target flag is required")
        if target_version < 1:
            raise ValidationError(
                f"--target must be a positive version number, got {target_version}"
            )

        ref = self.directory.resolve(context)
        result = self.remote.rollback(ref.environment_id, target_version)
        snapshot = self.remote.get_snapshot_by_version(ref.environment_id, result.version_number)

        backup = self.backups.capture()
        final_env = apply_overrides(parse_env(snapshot.plaintext), self._overrides())
        self.working_file.write(format_env(final_env))

        self.tracker.set(context.org, context.project, context.environment, snapshot.version_number)

        return RollbackOutcome(
            context=context,
            rollback=result,
            version_number=snapshot.version_number,
            keys=len(final_env),
            backup=backup,
        )
