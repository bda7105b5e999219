"""Local persisted stores: credentials, version tracker, telemetry config."""

from envsimple.storage.credentials import CredentialStore
from envsimple.storage.telemetry import Telemetry, TelemetryStore
from envsimple.storage.version_tracker import VersionTracker

__all__ = ["CredentialStore", "Telemetry", "TelemetryStore", "VersionTracker"]
