"""Shared helpers for CLI commands."""

import argparse
import logging
import re
from pathlib import Path
from typing import Callable, Dict, Optional

from envsimple.api.client import ApiClient
from envsimple.cli.output import Output
from envsimple.cli.prompts import TerminalDecisions, TerminalPrompter
from envsimple.core.directory import RemoteDirectory
from envsimple.core.sync import SyncProtocol
from envsimple.errors import ValidationError
from envsimple.protocols import RemoteBackend
from envsimple.storage import CredentialStore, Telemetry, TelemetryStore, VersionTracker
from envsimple.types import ContextSource, ResolvedContext
from envsimple.utils import get_api_url, get_envsimple_home, get_service_token

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
MAX_NAME_LENGTH = 100


def validate_name(value: str, field_name: str) -> str:
    """Validate an organization, project or environment name given on the command line."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be a non-empty string")
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(f"{field_name} too long (max {MAX_NAME_LENGTH} characters)")
    if _CONTROL_CHARS.search(value):
        raise ValidationError(f"{field_name} contains control characters")
    return value.strip()


def positive_int(value: str) -> int:
    """argparse type for version numbers."""
    try:
        ivalue = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Version must be an integer, got '{value}'")
    if ivalue < 0:
        raise argparse.ArgumentTypeError(f"Version must be >= 0, got {ivalue}")
    return ivalue


class App:
    """Per-invocation wiring of stores, remote and terminal ports.

    Args:
        args: Parsed command line.
        cwd: Project directory. Defaults to the process working directory.
        home: Data directory. Defaults to ``ENVSIMPLE_DATA_DIR`` / ``~/.envsimple``.
        remote: Remote backend to use instead of an :class:`ApiClient`.
        input_fn: Replaces :func:`input` for prompts.
    """

    def __init__(
        self,
        args: argparse.Namespace,
        cwd: Optional[Path] = None,
        home: Optional[Path] = None,
        remote: Optional[RemoteBackend] = None,
        input_fn: Callable[[str], str] = input,
    ):
        self.args = args
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.home = Path(home) if home is not None else get_envsimple_home()
        self.json_mode = bool(getattr(args, "json", False))
        self.token_mode = bool(getattr(args, "token", False))
        self.output = Output(json_mode=self.json_mode, debug=bool(getattr(args, "debug", False)))

        self.credentials = CredentialStore.in_directory(self.home)
        self.tracker = VersionTracker.in_directory(self.home)
        self.telemetry_store = TelemetryStore.in_directory(self.home)

        self.prompter = TerminalPrompter(
            interactive=not (self.json_mode or self.token_mode), input_fn=input_fn
        )
        self.decisions = TerminalDecisions(self.prompter, self.output)
        self._remote = remote
        self._client: Optional[ApiClient] = None

    @property
    def api_url(self) -> str:
        return get_api_url()

    def flags(self) -> Dict[str, Optional[str]]:
        flags = {}
        for name in ("org", "project", "environment"):
            value = getattr(self.args, name, None)
            flags[name] = validate_name(value, name) if value else None
        return flags

    def service_token(self) -> str:
        token = get_service_token()
        if not token:
            raise ValidationError(
                "ENVSIMPLE_SERVICE_TOKEN environment variable is required when using --token"
            )
        return token

    def require_auth(self) -> None:
        """Fail early with AuthenticationRequired unless a token or login is present."""
        if self.token_mode:
            self.service_token()
        else:
            self.credentials.require()

    @property
    def remote(self) -> RemoteBackend:
        if self._remote is not None:
            return self._remote
        if self._client is None:
            token = self.service_token() if self.token_mode else None
            self._client = ApiClient(
                self.api_url, credentials=self.credentials, service_token=token
            )
        return self._client

    def directory(self) -> RemoteDirectory:
        return RemoteDirectory(self.remote)

    def sync(self) -> SyncProtocol:
        return SyncProtocol(
            self.remote,
            self.tracker,
            self.cwd,
            self.decisions,
            token_mode=self.token_mode,
        )

    def resolve(self, interactive: bool = True) -> ResolvedContext:
        """Resolve the context, prompting for it only if ``interactive`` and allowed."""
        prompter = self.prompter if interactive and self.prompter.interactive else None
        context = self.sync().resolve(self.flags(), prompter=prompter)
        if context.source == ContextSource.INTERACTIVE:
            self.output.success("Context saved to .envsimple")
        return context

    def track(self, event: str, properties: Optional[Dict] = None) -> None:
        """Send a best-effort telemetry event."""
        from envsimple import __version__

        Telemetry(self.telemetry_store, self.api_url, __version__).send_event(event, properties)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
