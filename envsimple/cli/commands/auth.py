"""Authentication commands: login (device-code flow) and logout."""

import logging
import os
import platform
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict

from envsimple.errors import (
    ApiError,
    AuthenticationRequired,
    EnvSimpleError,
    PermissionDenied,
    ValidationError,
)

if TYPE_CHECKING:
    from envsimple.cli.commands.helpers import App

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = 30 * 24 * 3600


def _client_info() -> Dict[str, Any]:
    from envsimple import __version__

    return {
        "client_name": "envsimple-cli",
        "client_version": __version__,
        "os_name": platform.system().lower(),
        "machine_name": os.environ.get("COMPUTERNAME") or os.environ.get("HOSTNAME") or "unknown",
    }


def _credentials_from_token(token_data: Dict[str, Any]) -> Dict[str, Any]:
    expires_in = int(token_data.get("expires_in") or DEFAULT_TOKEN_LIFETIME)
    expires_at = token_data.get("expires_at") or (
        datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    ).isoformat()
    return {
        "access_token": token_data["access_token"],
        "refresh_token": token_data.get("refresh_token"),
        "token_type": token_data.get("token_type") or "Bearer",
        "expires_in": expires_in,
        "expires_at": expires_at,
    }


def device_code_flow(app: "App") -> Dict[str, Any]:
    """Run the device-code flow and store the resulting credentials.

    Polls at the interval the server asks for until a token arrives or the
    code expires. A 400 response means authorization is still pending.

    Raises:
        AuthenticationRequired: Authorization was denied or timed out.
    """
    output = app.output
    device = app.remote.start_device_flow(_client_info())

    output.info(f"Please visit: {device['verification_url']}")
    output.info(f"And enter code: {device['user_code']}")
    output.info()
    output.info("Waiting for authorization...")

    interval = max(1, int(device.get("interval") or 5))
    deadline = time.monotonic() + int(device.get("expires_in") or 600)

    while time.monotonic() < deadline:
        time.sleep(interval)
        try:
            token_data = app.remote.poll_device_code(device["device_code"])
        except PermissionDenied as e:
            raise AuthenticationRequired("Authentication was denied or expired") from e
        except (ValidationError, ApiError) as e:
            if "denied" in e.message or "expired" in e.message:
                raise AuthenticationRequired("Authentication was denied or expired") from e
            logger.debug("Device authorization pending: %s", e.message)
            continue
        if not token_data or not token_data.get("access_token"):
            continue

        creds = _credentials_from_token(token_data)
        app.credentials.save(creds)
        return creds

    raise AuthenticationRequired("Authentication timed out")


def cmd_login(args, app: "App"):
    """Log in with the device-code flow."""
    output = app.output

    if app.credentials.is_authenticated():
        output.warning("Already logged in")
        if app.json_mode:
            output.json({"status": "already_authenticated"})
        return

    output.info("Starting device code authentication...")
    output.info()
    device_code_flow(app)

    try:
        user = app.remote.get_current_user()
        email = (user.get("user") or {}).get("email") or user.get("email") or "user"
        output.success(f"Logged in as {email}")
    except EnvSimpleError as e:
        logger.debug("Could not fetch user after login: %s", e)
        output.success("Logged in successfully!")

    app.track("cli.login", {"method": "device"})

    if app.json_mode:
        output.json({"status": "success", "message": "Logged in successfully"})


def cmd_logout(args, app: "App"):
    """Revoke the session (best-effort) and delete stored credentials."""
    output = app.output

    if not app.credentials.is_authenticated():
        output.warning("Not logged in")
        if app.json_mode:
            output.json({"status": "not_authenticated"})
        return

    try:
        app.remote.sign_out()
    except EnvSimpleError as e:
        logger.debug("Remote sign-out failed, clearing local credentials anyway: %s", e)

    app.credentials.clear()
    app.track("cli.logout", {})

    if app.json_mode:
        output.json({"status": "success", "message": "Logged out successfully"})
    else:
        output.success("Logged out successfully")
