"""Tests for envsimple.api.client against an httpx.MockTransport."""

import json

import httpx
import pytest

from envsimple.api import ApiClient
from envsimple.errors import (
    ApiError,
    AuthenticationRequired,
    ConflictError,
    NetworkError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)

BASE_URL = "https://api.envsimple.test"


def _client(handler, **kwargs):
    kwargs.setdefault("service_token", "svc-token")
    return ApiClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


class Recorder:
    """MockTransport handler returning one canned response and keeping requests."""

    def __init__(self, status=200, body=None):
        self.status = status
        self.body = body if body is not None else {}
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    @property
    def last(self):
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


class TestAuthHeader:
    def test_service_token_used(self):
        handler = Recorder(body={"organizations": []})
        _client(handler).list_organizations()
        assert handler.last.headers["Authorization"] == "Bearer svc-token"

    def test_stored_credentials_used(self, logged_in):
        handler = Recorder(body={"organizations": []})
        _client(handler, service_token=None, credentials=logged_in).list_organizations()
        assert handler.last.headers["Authorization"] == "Bearer test-access-token"

    def test_no_credentials_raises_before_request(self):
        handler = Recorder()
        with pytest.raises(AuthenticationRequired):
            _client(handler, service_token=None).list_organizations()
        assert handler.requests == []

    def test_device_flow_unauthenticated(self):
        handler = Recorder(body={"device_code": "d", "user_code": "ABCD"})
        _client(handler, service_token=None).start_device_flow({"client": "envsimple-cli"})
        assert "Authorization" not in handler.last.headers
        assert handler.last.url.path == "/auth/device/start"


class TestEndpoints:
    def test_list_environments_with_name_filter(self):
        handler = Recorder(
            body={"environments": [{"id": "e1", "name": "prod", "current_version_number": 3}]}
        )
        envs = _client(handler).list_environments("p1", name="prod")
        assert handler.last.url.path == "/projects/p1/envs"
        assert handler.last.url.params["name"] == "prod"
        assert envs[0].current_version_number == 3

    def test_current_snapshot(self):
        handler = Recorder(
            body={"environment_id": "e1", "version_number": 4, "plaintext": "A=1\n"}
        )
        snapshot = _client(handler).get_current_snapshot("e1")
        assert handler.last.url.path == "/envs/e1/current"
        assert snapshot.version_number == 4
        assert snapshot.plaintext == "A=1\n"

    def test_empty_snapshot_is_version_zero(self):
        handler = Recorder(body={"environment_id": "e1", "version_number": 0, "plaintext": None})
        snapshot = _client(handler).get_current_snapshot("e1")
        assert snapshot.version_number == 0
        assert snapshot.plaintext == ""

    def test_push_with_base(self):
        handler = Recorder(
            status=201, body={"version": {"id": "v", "version_number": 6, "is_forced_push": False}}
        )
        pushed = _client(handler).push_snapshot("e1", "A=1\n", base_version=5)
        assert handler.last.method == "POST"
        assert handler.last_json() == {"plaintext": "A=1\n", "base_version_number": 5}
        assert pushed.version_number == 6

    def test_push_without_base_omits_field(self):
        handler = Recorder(
            body={"version": {"id": "v", "version_number": 1, "is_forced_push": True}}
        )
        pushed = _client(handler).push_snapshot("e1", "A=1\n")
        assert handler.last_json() == {"plaintext": "A=1\n"}
        assert pushed.is_forced_push is True

    def test_rollback(self):
        handler = Recorder(
            body={
                "rollback": {
                    "rolled_back_from": 7,
                    "rolled_back_to": 3,
                    "version_number": 8,
                    "version_id": "v8",
                }
            }
        )
        result = _client(handler).rollback("e1", 3)
        assert handler.last_json() == {"target_version_number": 3}
        assert result.version_number == 8

    @pytest.mark.parametrize(
        "permanent,method,path",
        [(False, "POST", "/envs/e1/delete"), (True, "DELETE", "/envs/e1")],
    )
    def test_delete_environment(self, permanent, method, path):
        handler = Recorder(body={"success": True})
        _client(handler).delete_environment("e1", permanent=permanent)
        assert (handler.last.method, handler.last.url.path) == (method, path)

    def test_audit_log_params(self):
        handler = Recorder(body={"logs": [{"action": "push"}]})
        logs = _client(handler).get_audit_logs("org-1", start_time="2026-01-01T00:00:00Z")
        params = handler.last.url.params
        assert params["organization_id"] == "org-1"
        assert params["limit"] == "100"
        assert params["start_time"] == "2026-01-01T00:00:00Z"
        assert "end_time" not in params
        assert logs == [{"action": "push"}]


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status,error_cls",
        [
            (400, ValidationError),
            (401, AuthenticationRequired),
            (403, PermissionDenied),
            (404, NotFoundError),
            (409, ConflictError),
        ],
    )
    def test_status_codes(self, status, error_cls):
        handler = Recorder(status=status, body={"error": "x", "message": "server says no"})
        with pytest.raises(error_cls) as exc:
            _client(handler).get_current_snapshot("e1")
        assert exc.value.message == "server says no"

    def test_conflict_keeps_details(self):
        handler = Recorder(
            status=409,
            body={"error": "conflict", "message": "stale", "details": {"current": 7}},
        )
        with pytest.raises(ConflictError) as exc:
            _client(handler).push_snapshot("e1", "A=1\n", base_version=5)
        assert exc.value.details == {"current": 7}

    def test_other_status_is_api_error(self):
        handler = Recorder(status=500, body={"error": "internal", "message": "boom"})
        with pytest.raises(ApiError) as exc:
            _client(handler).list_organizations()
        assert exc.value.status_code == 500
        assert exc.value.code == "internal"
        assert exc.value.exit_code == 1

    def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(ApiError) as exc:
            _client(handler).list_organizations()
        assert exc.value.message == "Bad Gateway"

    def test_transport_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError) as exc:
            _client(handler).list_organizations()
        assert exc.value.exit_code == 8
