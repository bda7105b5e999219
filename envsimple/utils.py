"""Configuration helpers shared by the CLI, stores and API client."""

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from envsimple.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.envsimple.dev"

# Project-local file names
SHARED_CONTEXT_FILE = ".envsimple"
LOCAL_CONTEXT_FILE = ".envsimple.local"
WORKING_FILE = ".env"
BACKUP_FILE = ".env.copy"
GITIGNORE_FILE = ".gitignore"


def get_envsimple_home() -> Path:
    """Directory holding credentials, the version tracker and telemetry config.

    Honors ``ENVSIMPLE_DATA_DIR``; defaults to ``~/.envsimple``.
    """
    data_dir = os.environ.get("ENVSIMPLE_DATA_DIR")
    if data_dir:
        return Path(data_dir).expanduser()
    return Path.home() / ".envsimple"


def validate_backend_url(url: str, *, allow_localhost_http: bool = True) -> Optional[str]:
    """Validate a backend URL for safe credential transmission.

    Rejects non-http/https schemes, URLs with no host, and remote HTTP
    endpoints (only localhost/127.0.0.1 are allowed over plaintext HTTP).

    Returns:
        The URL unchanged if valid, or ``None`` if rejected (with a
        warning logged for each rejection reason).
    """
    if not url:
        return None

    parsed = urlparse(url)
    if parsed.scheme not in {"https", "http"}:
        logger.warning("Invalid API URL scheme; only http/https allowed.")
        return None
    if not parsed.netloc:
        logger.warning("Invalid API URL; missing host.")
        return None
    if parsed.scheme == "http":
        if not allow_localhost_http:
            logger.warning("HTTP not allowed in this context.")
            return None
        host = parsed.hostname or ""
        if host not in {"localhost", "127.0.0.1"}:
            logger.warning("Refusing non-local http API URL for security.")
            return None
    return url


def get_api_url() -> str:
    """Resolve the API base URL from ``ENVSIMPLE_API_URL``."""
    url = os.environ.get("ENVSIMPLE_API_URL") or DEFAULT_API_URL
    validated = validate_backend_url(url)
    if not validated:
        raise ConfigurationError(
            f"Refusing to use API URL {url!r}: use https:// or http://localhost for development"
        )
    return validated.rstrip("/")


def get_service_token() -> Optional[str]:
    """Service token for non-interactive (CI) use."""
    token = os.environ.get("ENVSIMPLE_SERVICE_TOKEN", "").strip()
    return token or None
