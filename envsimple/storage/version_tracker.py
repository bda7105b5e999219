"""Local version tracker.

Remembers, per ``org/project/environment``, the last remote version this
machine synced with. The value is only a hint used as the base version of
the next push; the remote validates the base independently.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from envsimple.types import VersionTrackerEntry, context_key, utc_now

logger = logging.getLogger(__name__)

VERSION_TRACKER_FILENAME = "version-tracker.json"


class VersionTracker:
    """JSON-backed store of :class:`VersionTrackerEntry` records.

    Args:
        path: Location of the tracker file. Parent directories are created
            on first save.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def in_directory(cls, directory: Path) -> "VersionTracker":
        return cls(Path(directory) / VERSION_TRACKER_FILENAME)

    def load(self) -> Dict[str, VersionTrackerEntry]:
        """Load all entries. A missing or unreadable file yields an empty store."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.debug(f"Failed to load version tracker: {e}")
            return {}

        if not isinstance(raw, dict):
            return {}

        entries = {}
        for key, value in raw.items():
            try:
                entries[key] = VersionTrackerEntry.from_dict(value)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed version tracker entry {key!r}: {e}")
        return entries

    def save(self, entries: Dict[str, VersionTrackerEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({key: entry.to_dict() for key, entry in entries.items()}, f, indent=2)

    def get(self, org: str, project: str, environment: str) -> Optional[VersionTrackerEntry]:
        return self.load().get(context_key(org, project, environment))

    def set(self, org: str, project: str, environment: str, version: int) -> VersionTrackerEntry:
        """Record ``version`` as the base for this context, overwriting any entry."""
        if version < 0:
            raise ValueError(f"base version must be >= 0, got {version}")

        entries = self.load()
        entry = VersionTrackerEntry(
            org=org,
            project=project,
            environment=environment,
            base_version=version,
            last_synced_at=utc_now(),
        )
        key = context_key(org, project, environment)
        entries[key] = entry
        self.save(entries)
        logger.info("Recorded base version %s for %s", version, key)
        return entry
