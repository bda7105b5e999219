"""
Shared types for envsimple.

These dataclasses are the vocabulary between the context resolver, the sync
protocol, the local stores and the remote API client. Remote payloads are
converted into them at the client boundary with ``from_dict``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

# Variable name -> value. Used for working-file content, snapshot plaintext
# and merge results alike.
EnvMapping = Dict[str, str]


def utc_now() -> str:
    """Get current timestamp as ISO string in UTC."""
    return datetime.now(timezone.utc).isoformat()


def context_key(org: str, project: str, environment: str) -> str:
    """Key used by the version tracker store."""
    return f"{org}/{project}/{environment}"


# === Enums ===


class ContextSource(str, Enum):
    """Where a resolved context came from."""

    FLAGS = "flags"
    LOCAL = "local"
    SHARED = "shared"
    INTERACTIVE = "interactive"


# === Context ===


@dataclass(frozen=True)
class SharedContext:
    """Team-committed context (.envsimple). All fields required."""

    org: str
    project: str
    environment: str

    def to_dict(self) -> Dict[str, str]:
        return {"org": self.org, "project": self.project, "environment": self.environment}


@dataclass
class LocalContext:
    """Developer-private context (.envsimple.local). All fields optional."""

    org: Optional[str] = None
    project: Optional[str] = None
    environment: Optional[str] = None
    overrides: EnvMapping = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for name in ("org", "project", "environment"):
            value = getattr(self, name)
            if value:
                data[name] = value
        if self.overrides:
            data["overrides"] = dict(self.overrides)
        return data


@dataclass(frozen=True)
class ResolvedContext:
    """The (org, project, environment) triple a command operates against."""

    org: str
    project: str
    environment: str
    source: ContextSource

    @property
    def key(self) -> str:
        return context_key(self.org, self.project, self.environment)

    def to_shared(self) -> SharedContext:
        return SharedContext(org=self.org, project=self.project, environment=self.environment)


# === Version tracking ===


@dataclass
class VersionTrackerEntry:
    """Last known remote version for one context."""

    org: str
    project: str
    environment: str
    base_version: int
    last_synced_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "org": self.org,
            "project": self.project,
            "environment": self.environment,
            "base_version": self.base_version,
            "last_synced_at": self.last_synced_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionTrackerEntry":
        return cls(
            org=data.get("org", ""),
            project=data.get("project", ""),
            environment=data.get("environment", ""),
            base_version=int(data["base_version"]),
            # Older stores wrote last_pulled_at
            last_synced_at=data.get("last_synced_at") or data.get("last_pulled_at") or utc_now(),
        )


# === Remote records ===


@dataclass
class Organization:
    id: str
    name: str
    slug: str
    plan: Optional[str] = None
    is_locked: bool = False
    locked_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Organization":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            slug=data.get("slug", ""),
            plan=data.get("plan"),
            is_locked=bool(data.get("is_locked", False)),
            locked_reason=data.get("locked_reason"),
        )


@dataclass
class Project:
    id: str
    name: str
    organization_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            organization_id=data.get("organization_id"),
        )


@dataclass
class Environment:
    id: str
    name: str
    type: Optional[str] = None
    current_version_number: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Environment":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            type=data.get("type"),
            current_version_number=data.get("current_version_number"),
        )


@dataclass(frozen=True)
class EnvironmentRef:
    """Remote ids behind a resolved context."""

    organization: Organization
    project: Project
    environment: Environment

    @property
    def environment_id(self) -> str:
        return self.environment.id


@dataclass
class Snapshot:
    """A full-content capture of one environment version.

    version_number 0 means nothing has been pushed yet.
    """

    environment_id: str
    version_number: int
    plaintext: str
    is_forced_push: bool = False
    base_version_number: Optional[int] = None
    environment_name: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        return cls(
            environment_id=str(data.get("environment_id", "")),
            version_number=int(data.get("version_number") or 0),
            plaintext=data.get("plaintext") or "",
            is_forced_push=bool(data.get("is_forced_push", False)),
            base_version_number=data.get("base_version_number"),
            environment_name=data.get("environment_name"),
            created_at=data.get("created_at"),
        )


@dataclass
class PushedVersion:
    """Version record returned by a successful push."""

    id: str
    version_number: int
    is_forced_push: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PushedVersion":
        return cls(
            id=str(data.get("id", "")),
            version_number=int(data["version_number"]),
            is_forced_push=bool(data.get("is_forced_push", False)),
        )


@dataclass
class RollbackResult:
    """Remote rollback outcome. version_number is the newly created version."""

    rolled_back_from: int
    rolled_back_to: int
    version_number: int
    version_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RollbackResult":
        return cls(
            rolled_back_from=int(data["rolled_back_from"]),
            rolled_back_to=int(data["rolled_back_to"]),
            version_number=int(data["version_number"]),
            version_id=data.get("version_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version_id": self.version_id,
            "version_number": self.version_number,
            "rolled_back_from": self.rolled_back_from,
            "rolled_back_to": self.rolled_back_to,
        }


@dataclass
class VersionInfo:
    """Entry of an environment's version history."""

    id: str
    version_number: int
    size_bytes: int = 0
    created_by: str = ""
    created_by_name: Optional[str] = None
    created_at: Optional[str] = None
    is_forced_push: bool = False
    base_version_number: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionInfo":
        return cls(
            id=str(data.get("id", "")),
            version_number=int(data["version_number"]),
            size_bytes=int(data.get("size_bytes") or 0),
            created_by=data.get("created_by") or "",
            created_by_name=data.get("created_by_name"),
            created_at=data.get("created_at"),
            is_forced_push=bool(data.get("is_forced_push", False)),
            base_version_number=data.get("base_version_number"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "version_number": self.version_number,
            "size_bytes": self.size_bytes,
            "created_by": self.created_by,
            "created_by_name": self.created_by_name,
            "created_at": self.created_at,
            "is_forced_push": self.is_forced_push,
            "base_version_number": self.base_version_number,
        }
