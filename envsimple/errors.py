"""Error taxonomy for envsimple.

Every failure a command can surface derives from :class:`EnvSimpleError`.
Each subclass carries a stable machine-readable ``code`` (used in ``--json``
output) and the process ``exit_code`` the CLI dispatch boundary returns.
"""

from typing import Any, Optional


class EnvSimpleError(Exception):
    """Base class for all envsimple errors."""

    code = "ERROR"
    exit_code = 1

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        exit_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if exit_code is not None:
            self.exit_code = exit_code
        self.details = details

    def to_dict(self, include_details: bool = False) -> dict:
        data = {"error": self.code, "message": self.message}
        if include_details and self.details is not None:
            data["details"] = self.details
        return data


class ValidationError(EnvSimpleError):
    """Malformed input or flags."""

    code = "VALIDATION_ERROR"
    exit_code = 2


class AuthenticationRequired(EnvSimpleError):
    code = "AUTHENTICATION_REQUIRED"
    exit_code = 3

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, **kwargs)


class PermissionDenied(EnvSimpleError):
    code = "PERMISSION_DENIED"
    exit_code = 4

    def __init__(self, message: str = "Permission denied", **kwargs):
        super().__init__(message, **kwargs)


class NotFoundError(EnvSimpleError):
    """A named organization, project, environment or version does not exist."""

    code = "NOT_FOUND"
    exit_code = 5

    def __init__(self, resource: str, message: Optional[str] = None, **kwargs):
        self.resource = resource
        super().__init__(message or f"{resource} not found", **kwargs)


class ConflictError(EnvSimpleError):
    """Push base version does not match the remote's current version."""

    code = "CONFLICT"
    exit_code = 6


class ConfigurationError(EnvSimpleError):
    """Malformed context file or invalid local configuration."""

    code = "CONFIGURATION_ERROR"
    exit_code = 7


class NetworkError(EnvSimpleError):
    """Transport failure talking to the remote. Never retried automatically."""

    code = "NETWORK_ERROR"
    exit_code = 8


class ApiError(EnvSimpleError):
    """Any other non-success response from the remote."""

    def __init__(
        self, message: str, code: str = "API_ERROR", status_code: Optional[int] = None, **kwargs
    ):
        super().__init__(message, code=code, **kwargs)
        self.status_code = status_code


class CancelledError(EnvSimpleError):
    """The user aborted an interactive prompt."""

    code = "CANCELLED"
    exit_code = 130

    def __init__(self, message: str = "Operation cancelled", **kwargs):
        super().__init__(message, **kwargs)


class InteractiveRequired(CancelledError):
    """A prompt was needed but prompting is disallowed (JSON or token mode)."""

    code = "INTERACTIVE_REQUIRED"

    def __init__(
        self, message: str = "Interactive prompt required but --json mode is enabled", **kwargs
    ):
        super().__init__(message, **kwargs)


def raise_for_response(response) -> None:
    """Map a non-success HTTP response onto the error taxonomy.

    Args:
        response: An ``httpx.Response``.

    Raises:
        EnvSimpleError: The subclass matching the status code.
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    body: Any = None
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error") or "unknown_error"
        message = body.get("message") or body.get("detail") or response.reason_phrase
        details = body.get("details")
    else:
        error = "unknown_error"
        message = response.reason_phrase or "An error occurred"
        details = None

    message = str(message or "An error occurred")

    if status == 401:
        raise AuthenticationRequired(message)
    if status == 403:
        raise PermissionDenied(message)
    if status == 404:
        raise NotFoundError("Resource", message=message)
    if status == 409:
        raise ConflictError(message, details=details)
    if status == 400:
        raise ValidationError(message, details=details)
    raise ApiError(message, code=str(error), status_code=status, details=details)
