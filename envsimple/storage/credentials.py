"""Credential storage for the envsimple CLI."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from envsimple.errors import AuthenticationRequired

logger = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "credentials.json"


class CredentialStore:
    """JSON credentials file (``~/.envsimple/credentials.json``).

    The file is written owner read/write only.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def in_directory(cls, directory: Path) -> "CredentialStore":
        return cls(Path(directory) / CREDENTIALS_FILENAME)

    def load(self) -> Optional[Dict[str, Any]]:
        """Load credentials, or None if missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.debug(f"Failed to load credentials file: {e}")
            return None
        return data if isinstance(data, dict) else None

    def save(self, credentials: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(credentials, f, indent=2)
        # Set restrictive permissions (owner read/write only)
        self.path.chmod(0o600)

    def clear(self) -> bool:
        """Remove the credentials file. Returns True if one existed."""
        if self.path.exists():
            self.path.unlink()
            return True
        return False

    def is_authenticated(self) -> bool:
        creds = self.load()
        return bool(creds and creds.get("access_token"))

    def require(self) -> Dict[str, Any]:
        """Return stored credentials or raise AuthenticationRequired."""
        creds = self.load()
        if not creds or not creds.get("access_token"):
            raise AuthenticationRequired('Not logged in. Run "envsimple login" first.')
        return creds

    def access_token(self) -> str:
        return self.require()["access_token"]
