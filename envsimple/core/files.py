"""Working file, backup chain and ignore-file maintenance."""

import logging
import shutil
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from envsimple.core.codec import normalize_content
from envsimple.utils import BACKUP_FILE, GITIGNORE_FILE, LOCAL_CONTEXT_FILE, WORKING_FILE

logger = logging.getLogger(__name__)

IGNORED_ENTRIES = (WORKING_FILE, BACKUP_FILE, LOCAL_CONTEXT_FILE)
GITIGNORE_HEADER = "# EnvSimple"


def iso_timestamp() -> str:
    """UTC timestamp with millisecond precision, e.g. 2025-01-02T03:04:05.678Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def backup_separator(timestamp: str) -> str:
    return f"\n\n# ===== Backup from {timestamp} =====\n\n"


class WorkingFile:
    """The ``.env`` file in the project directory."""

    def __init__(self, cwd: Path, name: str = WORKING_FILE):
        self.path = Path(cwd) / name

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> str:
        """Return the file content, or an empty string if it does not exist."""
        if not self.path.is_file():
            return ""
        return self.path.read_text(encoding="utf-8")

    def write(self, content: str) -> None:
        """Full overwrite."""
        self.path.write_text(content, encoding="utf-8")


class BackupOutcome(str, Enum):
    CREATED = "created"
    APPENDED = "appended"


class BackupChain:
    """Append-only backup of the working file (``.env.copy``).

    The first capture copies the working file verbatim. Later captures are
    appended after a timestamped separator; earlier captures are never
    rewritten or pruned.
    """

    def __init__(
        self,
        working_file: WorkingFile,
        name: str = BACKUP_FILE,
        clock: Callable[[], str] = iso_timestamp,
    ):
        self.working_file = working_file
        self.path = working_file.path.parent / name
        self._clock = clock

    def exists(self) -> bool:
        return self.path.is_file()

    def capture(self) -> Optional[BackupOutcome]:
        """Back up the current working file.

        Returns:
            The outcome, or None if there is no working file to back up.
        """
        if not self.working_file.exists():
            return None

        if not self.path.exists():
            shutil.copyfile(self.working_file.path, self.path)
            logger.info("Created %s", self.path.name)
            return BackupOutcome.CREATED

        content = self.working_file.read()
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(backup_separator(self._clock()) + content)
        logger.info("Appended to %s", self.path.name)
        return BackupOutcome.APPENDED

    def capture_if_changed(self, new_content: str) -> Optional[BackupOutcome]:
        """Back up only if ``new_content`` differs from the working file.

        Comparison ignores line-ending differences and surrounding
        whitespace. An empty working file is never backed up.
        """
        if not self.working_file.exists():
            return None

        current = normalize_content(self.working_file.read())
        if not current or current == normalize_content(new_content):
            return None
        return self.capture()


def ensure_gitignore(cwd: Path) -> bool:
    """Make sure ``.gitignore`` lists the local-only envsimple files.

    Returns:
        True if the file was modified.
    """
    path = Path(cwd) / GITIGNORE_FILE
    content = path.read_text(encoding="utf-8") if path.is_file() else ""

    lines = content.split("\n")
    existing = {line.strip() for line in lines if line.strip() and not line.strip().startswith("#")}

    missing = [entry for entry in IGNORED_ENTRIES if entry not in existing]
    if not missing:
        return False

    new_lines = list(lines)
    # Drop the empty element produced by a trailing newline
    if new_lines and new_lines[-1] == "":
        new_lines.pop()
    if new_lines:
        new_lines.append("")
    new_lines.append(GITIGNORE_HEADER)
    new_lines.extend(missing)

    path.write_text("\n".join(new_lines) + "\n", encoding="utf-8")
    logger.debug("Added %s to %s", ", ".join(missing), GITIGNORE_FILE)
    return True
