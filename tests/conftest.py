"""
Pytest fixtures and test configuration for envsimple tests.
"""

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from envsimple.core.context import save_local_context, save_shared_context
from envsimple.errors import ConflictError, NotFoundError
from envsimple.storage import CredentialStore, VersionTracker
from envsimple.types import (
    Environment,
    LocalContext,
    Organization,
    Project,
    PushedVersion,
    RollbackResult,
    SharedContext,
    Snapshot,
    VersionInfo,
)


# ============================================================================
# Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch) -> Path:
    """Point ENVSIMPLE_DATA_DIR at a temp dir with telemetry switched off."""
    home = tmp_path / "envsimple-home"
    home.mkdir()
    (home / "telemetry.json").write_text(
        json.dumps({"enabled": False, "anonymous_id": "test-anon-id"})
    )
    monkeypatch.setenv("ENVSIMPLE_DATA_DIR", str(home))
    monkeypatch.delenv("ENVSIMPLE_SERVICE_TOKEN", raising=False)
    monkeypatch.delenv("ENVSIMPLE_API_URL", raising=False)
    return home


@pytest.fixture
def project_dir(tmp_path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def tracker(data_dir) -> VersionTracker:
    return VersionTracker.in_directory(data_dir)


@pytest.fixture
def logged_in(data_dir) -> CredentialStore:
    store = CredentialStore.in_directory(data_dir)
    store.save({"access_token": "test-access-token", "token_type": "Bearer"})
    return store


@pytest.fixture
def shared_context(project_dir) -> SharedContext:
    """A committed .envsimple pointing at acme/payments/production."""
    context = SharedContext(org="acme", project="payments", environment="production")
    save_shared_context(context, project_dir)
    return context


@pytest.fixture
def local_overrides(project_dir):
    """Write a .envsimple.local with the given overrides."""

    def _write(overrides: Dict[str, str], environment: Optional[str] = None) -> LocalContext:
        local = LocalContext(environment=environment, overrides=dict(overrides))
        save_local_context(local, project_dir)
        return local

    return _write


# ============================================================================
# Fake remote
# ============================================================================


class FakeRemote:
    """In-memory remote store with version history and stale-base conflicts.

    Seeded with org ``acme`` -> project ``payments`` -> environments
    ``production`` (env-1) and ``staging`` (env-2), no versions.
    """

    def __init__(self):
        self.organizations = [Organization(id="org-1", name="Acme Inc", slug="acme")]
        self.projects = {
            "acme": [Project(id="proj-1", name="payments", organization_id="org-1")],
        }
        self.environments = {
            "proj-1": [
                Environment(id="env-1", name="production", type="production"),
                Environment(id="env-2", name="staging", type="staging"),
            ],
        }
        self.versions: Dict[str, List[Snapshot]] = {}
        self.pushes: List[Tuple[str, str, Optional[int]]] = []
        self.deleted: List[Tuple[str, bool]] = []
        self.audit_logs: List[Dict[str, Any]] = []
        self.audit_queries: List[Dict[str, Any]] = []
        self.fail_current_reads = False
        self.signed_out = False

    # -- seeding helpers ---------------------------------------------------

    def add_version(self, environment_id: str, plaintext: str, forced: bool = False) -> Snapshot:
        history = self.versions.setdefault(environment_id, [])
        snapshot = Snapshot(
            environment_id=environment_id,
            version_number=len(history) + 1,
            plaintext=plaintext,
            is_forced_push=forced,
            created_at="2026-01-01T00:00:00Z",
        )
        history.append(snapshot)
        return snapshot

    def current_version(self, environment_id: str) -> int:
        return len(self.versions.get(environment_id, []))

    # -- RemoteBackend -----------------------------------------------------

    def list_organizations(self) -> List[Organization]:
        return list(self.organizations)

    def list_projects(self, org_slug: str) -> List[Project]:
        return list(self.projects.get(org_slug, []))

    def list_environments(self, project_id: str) -> List[Environment]:
        envs = self.environments.get(project_id, [])
        for env in envs:
            env.current_version_number = self.current_version(env.id) or None
        return list(envs)

    def get_current_snapshot(self, environment_id: str) -> Snapshot:
        if self.fail_current_reads:
            raise NotFoundError("Environment")
        history = self.versions.get(environment_id, [])
        if not history:
            return Snapshot(environment_id=environment_id, version_number=0, plaintext="")
        return history[-1]

    def get_snapshot_by_version(self, environment_id: str, version_number: int) -> Snapshot:
        for snapshot in self.versions.get(environment_id, []):
            if snapshot.version_number == version_number:
                return snapshot
        raise NotFoundError(f"Version {version_number}")

    def push_snapshot(
        self, environment_id: str, plaintext: str, base_version: Optional[int] = None
    ) -> PushedVersion:
        self.pushes.append((environment_id, plaintext, base_version))
        current = self.current_version(environment_id)
        if base_version is not None and base_version != current:
            raise ConflictError(
                f"Base version {base_version} is stale (current is {current})",
                details={"current_version_number": current},
            )
        snapshot = self.add_version(environment_id, plaintext, forced=base_version is None)
        return PushedVersion(
            id=f"ver-{snapshot.version_number}",
            version_number=snapshot.version_number,
            is_forced_push=snapshot.is_forced_push,
        )

    def rollback(self, environment_id: str, target_version: int) -> RollbackResult:
        target = self.get_snapshot_by_version(environment_id, target_version)
        current = self.current_version(environment_id)
        snapshot = self.add_version(environment_id, target.plaintext)
        return RollbackResult(
            rolled_back_from=current,
            rolled_back_to=target_version,
            version_number=snapshot.version_number,
            version_id=f"ver-{snapshot.version_number}",
        )

    def list_versions(self, environment_id: str) -> List[VersionInfo]:
        return [
            VersionInfo(
                id=f"ver-{s.version_number}",
                version_number=s.version_number,
                size_bytes=len(s.plaintext.encode()),
                created_by="user-123456789",
                created_by_name="Dev One",
                created_at=s.created_at,
                is_forced_push=s.is_forced_push,
            )
            for s in reversed(self.versions.get(environment_id, []))
        ]

    def create_environment(
        self, project_id: str, name: str, env_type: Optional[str] = None
    ) -> Environment:
        env = Environment(id=f"env-{name}", name=name, type=env_type)
        self.environments.setdefault(project_id, []).append(env)
        return env

    def clone_environment(
        self,
        project_id: str,
        source_environment_id: str,
        destination_name: str,
        destination_type: Optional[str] = None,
    ) -> Environment:
        env = self.create_environment(project_id, destination_name, destination_type)
        source = self.versions.get(source_environment_id, [])
        if source:
            self.add_version(env.id, source[-1].plaintext)
        return env

    def delete_environment(self, environment_id: str, permanent: bool = False) -> None:
        self.deleted.append((environment_id, permanent))
        for project_id, envs in self.environments.items():
            self.environments[project_id] = [e for e in envs if e.id != environment_id]

    # -- extra client surface used by CLI commands -------------------------

    def get_audit_logs(
        self,
        organization_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        self.audit_queries.append(
            {
                "organization_id": organization_id,
                "start_time": start_time,
                "end_time": end_time,
                "limit": limit,
            }
        )
        return list(self.audit_logs)

    def get_current_user(self) -> Dict[str, Any]:
        return {"user": {"id": "user-1", "email": "dev@acme.test"}}

    def sign_out(self) -> None:
        self.signed_out = True


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


# ============================================================================
# Decision and prompt ports
# ============================================================================


class ScriptedDecisions:
    """SyncDecisions answering from fixed values and recording each question."""

    def __init__(self, overwrite: bool = True, include: bool = True, force: bool = True):
        self.overwrite = overwrite
        self.include = include
        self.force = force
        self.asked: List[Tuple[str, Any]] = []

    def confirm_overwrite(self, version_number: int, key_count: int) -> bool:
        self.asked.append(("overwrite", (version_number, key_count)))
        return self.overwrite

    def include_override_keys(self, keys: Sequence[str]) -> bool:
        self.asked.append(("include", list(keys)))
        return self.include

    def force_after_conflict(self, message: str) -> bool:
        self.asked.append(("force", message))
        return self.force


@pytest.fixture
def decisions() -> ScriptedDecisions:
    return ScriptedDecisions()


class ScriptedPrompter:
    """Prompter returning queued answers; select answers are choice indexes."""

    def __init__(self, confirms: Sequence[bool] = (), selections: Sequence[int] = ()):
        self.confirms = list(confirms)
        self.selections = list(selections)
        self.messages: List[str] = []

    def confirm(self, message: str, default: bool = False) -> bool:
        self.messages.append(message)
        return self.confirms.pop(0) if self.confirms else default

    def select(self, message, choices):
        self.messages.append(message)
        return choices[self.selections.pop(0)][1]


# ============================================================================
# CLI helpers
# ============================================================================


def make_args(**kwargs) -> argparse.Namespace:
    """Build an argparse.Namespace with the global flag defaults."""
    defaults = {
        "command": None,
        "json": False,
        "debug": False,
        "org": None,
        "project": None,
        "environment": None,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


@pytest.fixture
def make_app(project_dir, data_dir, remote):
    """Build an App wired to the fake remote and the temp project/data dirs."""
    from envsimple.cli.commands import App

    def _make(args: argparse.Namespace, answers: Sequence[str] = ()) -> App:
        queue = list(answers)

        def _input(prompt: str) -> str:
            if not queue:
                raise AssertionError(f"Unexpected prompt: {prompt}")
            return queue.pop(0)

        return App(args, cwd=project_dir, home=data_dir, remote=remote, input_fn=_input)

    return _make


def extract_json(output: str) -> Any:
    """Parse the first JSON document in mixed stdout output."""
    starts = [i for i in (output.find("{"), output.find("[")) if i >= 0]
    return json.loads(output[min(starts):])
