"""Anonymous usage telemetry.

Sending is best-effort: failures are logged at debug level and never
surface to the command that triggered them.
"""

import json
import logging
import platform
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

TELEMETRY_FILENAME = "telemetry.json"
TELEMETRY_TIMEOUT = 2.0


class TelemetryStore:
    """Telemetry opt-in flag and anonymous id."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def in_directory(cls, directory: Path) -> "TelemetryStore":
        return cls(Path(directory) / TELEMETRY_FILENAME)

    def load(self) -> Dict[str, Any]:
        """Load the config, creating an enabled default on first use."""
        if self.path.exists():
            try:
                with open(self.path, encoding="utf-8") as f:
                    config = json.load(f)
                if isinstance(config, dict) and "enabled" in config:
                    config.setdefault("anonymous_id", uuid.uuid4().hex)
                    return config
            except (json.JSONDecodeError, OSError) as e:
                logger.debug(f"Failed to load telemetry config: {e}")
            return {"enabled": True, "anonymous_id": uuid.uuid4().hex}

        config = {"enabled": True, "anonymous_id": uuid.uuid4().hex}
        try:
            self.save(config)
        except OSError as e:
            logger.debug(f"Failed to save telemetry config: {e}")
        return config

    def save(self, config: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)

    def set_enabled(self, enabled: bool) -> Dict[str, Any]:
        config = self.load()
        config["enabled"] = enabled
        self.save(config)
        return config


class Telemetry:
    """Sends ``cli.*`` events to the telemetry endpoint if enabled."""

    def __init__(self, store: TelemetryStore, api_url: str, cli_version: str):
        self.store = store
        self.api_url = api_url.rstrip("/")
        self.cli_version = cli_version

    def send_event(self, event: str, properties: Optional[Dict[str, Any]] = None) -> bool:
        """Send one event. Returns True if it was delivered."""
        try:
            config = self.store.load()
        except OSError as e:
            logger.debug(f"Telemetry config unavailable: {e}")
            return False
        if not config.get("enabled"):
            return False

        payload = {
            "event_name": event,
            "anonymous_id": config.get("anonymous_id"),
            "cli_version": self.cli_version,
            "os_type": platform.system().lower(),
            "os_version": platform.release(),
            "properties": properties or {},
        }
        try:
            response = httpx.post(
                f"{self.api_url}/telemetry/events", json=payload, timeout=TELEMETRY_TIMEOUT
            )
            return response.status_code < 300
        except httpx.HTTPError as e:
            logger.debug("Telemetry send failed: %s", e)
            return False
