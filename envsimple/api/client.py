"""HTTP client for the EnvSimple backend.

Implements :class:`envsimple.protocols.RemoteBackend` over ``httpx``. Error
responses are mapped onto :mod:`envsimple.errors`; transport failures are
raised as :class:`~envsimple.errors.NetworkError` and never retried.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from envsimple.errors import AuthenticationRequired, NetworkError, raise_for_response
from envsimple.storage.credentials import CredentialStore
from envsimple.types import (
    Environment,
    Organization,
    Project,
    PushedVersion,
    RollbackResult,
    Snapshot,
    VersionInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class ApiClient:
    """EnvSimple REST client.

    Args:
        base_url: API root, already validated.
        credentials: Store holding the user's access token.
        service_token: Bearer token for non-interactive use; takes
            precedence over stored credentials.
        transport: Optional ``httpx`` transport (tests use MockTransport).
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        credentials: Optional[CredentialStore] = None,
        service_token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.service_token = service_token
        self._client = httpx.Client(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _auth_header(self) -> str:
        if self.service_token:
            return f"Bearer {self.service_token}"
        if self.credentials is None:
            raise AuthenticationRequired('Not logged in. Run "envsimple login" first.')
        return f"Bearer {self.credentials.access_token()}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        require_auth: bool = True,
    ) -> Any:
        headers = {}
        if require_auth:
            headers["Authorization"] = self._auth_header()

        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: Unable to connect to EnvSimple API ({e})") from e

        raise_for_response(response)

        if "application/json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError:
                return None
        return response.text

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def start_device_flow(self, client_info: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/auth/device/start", json=client_info, require_auth=False)

    def poll_device_code(self, device_code: str) -> Dict[str, Any]:
        return self._request(
            "POST", "/auth/device/poll", json={"device_code": device_code}, require_auth=False
        )

    def get_current_user(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    def sign_out(self) -> None:
        self._request("POST", "/api/auth/sign-out")

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_organizations(self) -> List[Organization]:
        data = self._request("GET", "/orgs")
        return [Organization.from_dict(o) for o in (data or {}).get("organizations", [])]

    def get_organization(self, slug: str) -> Organization:
        data = self._request("GET", f"/orgs/{slug}")
        return Organization.from_dict(data["organization"])

    def list_projects(self, org_slug: str, name: Optional[str] = None) -> List[Project]:
        params = {"name": name} if name else None
        data = self._request("GET", f"/orgs/{org_slug}/projects", params=params)
        return [Project.from_dict(p) for p in (data or {}).get("projects", [])]

    def list_environments(self, project_id: str, name: Optional[str] = None) -> List[Environment]:
        params = {"name": name} if name else None
        data = self._request("GET", f"/projects/{project_id}/envs", params=params)
        return [Environment.from_dict(e) for e in (data or {}).get("environments", [])]

    # ------------------------------------------------------------------
    # Environments
    # ------------------------------------------------------------------

    def create_environment(
        self, project_id: str, name: str, env_type: Optional[str] = None
    ) -> Environment:
        body: Dict[str, Any] = {"name": name}
        if env_type:
            body["type"] = env_type
        data = self._request("POST", f"/projects/{project_id}/envs", json=body)
        return Environment.from_dict(data["environment"])

    def clone_environment(
        self,
        project_id: str,
        source_environment_id: str,
        destination_name: str,
        destination_type: Optional[str] = None,
    ) -> Environment:
        body: Dict[str, Any] = {"destination_name": destination_name}
        if destination_type:
            body["destination_type"] = destination_type
        data = self._request(
            "POST", f"/projects/{project_id}/envs/{source_environment_id}/clone", json=body
        )
        return Environment.from_dict(data["environment"])

    def delete_environment(self, environment_id: str, permanent: bool = False) -> None:
        if permanent:
            self._request("DELETE", f"/envs/{environment_id}")
        else:
            self._request("POST", f"/envs/{environment_id}/delete")

    # ------------------------------------------------------------------
    # Snapshots and versions
    # ------------------------------------------------------------------

    def get_current_snapshot(self, environment_id: str) -> Snapshot:
        return Snapshot.from_dict(self._request("GET", f"/envs/{environment_id}/current"))

    def get_snapshot_by_version(self, environment_id: str, version_number: int) -> Snapshot:
        data = self._request("GET", f"/envs/{environment_id}/versions/{version_number}")
        return Snapshot.from_dict(data)

    def push_snapshot(
        self, environment_id: str, plaintext: str, base_version: Optional[int] = None
    ) -> PushedVersion:
        body: Dict[str, Any] = {"plaintext": plaintext}
        if base_version is not None:
            body["base_version_number"] = base_version
        data = self._request("POST", f"/envs/{environment_id}/versions", json=body)
        return PushedVersion.from_dict(data["version"])

    def list_versions(self, environment_id: str) -> List[VersionInfo]:
        data = self._request("GET", f"/envs/{environment_id}/versions")
        return [VersionInfo.from_dict(v) for v in (data or {}).get("versions", [])]

    def rollback(self, environment_id: str, target_version: int) -> RollbackResult:
        data = self._request(
            "POST",
            f"/envs/{environment_id}/rollback",
            json={"target_version_number": target_version},
        )
        return RollbackResult.from_dict(data["rollback"])

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def get_audit_logs(
        self,
        organization_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"organization_id": organization_id, "limit": limit}
        if start_time:
            params["start_time"] = start_time
        if end_time:
            params["end_time"] = end_time
        data = self._request("GET", "/audit-logs", params=params)
        return list((data or {}).get("logs", []))
