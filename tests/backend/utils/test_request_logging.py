from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from backend.utils.middleware import client_ip
from maya_core.logging_config import mask_client_ips, truncate_ip


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("203.0.113.50", "203.0.0.0"),
        ("2001:db8:85a3::8a2e:370:7334", "2001:db8::"),
        ("not-an-ip", "invalid"),
    ],
)
def test_truncate_ip(raw, expected):
    assert truncate_ip(raw) == expected


def test_mask_client_ips_only_touches_address_keys():
    event = {"event": "Request completed", "client_ip": "198.51.100.23", "request_path": "/health"}

    assert mask_client_ips(None, None, event) == {
        "event": "Request completed",
        "client_ip": "198.51.0.0",
        "request_path": "/health",
    }


def test_mask_client_ips_keeps_missing_address():
    assert mask_client_ips(None, None, {"client_ip": None}) == {"client_ip": None}


def test_client_ip_takes_first_forwarded_hop():
    request = MagicMock()
    request.headers = Headers({"x-forwarded-for": " 203.0.113.9 , 10.0.0.2"})

    assert client_ip(request) == "203.0.113.9"


def test_client_ip_without_peer_is_none():
    request = MagicMock()
    request.headers = Headers({})
    request.client = None

    assert client_ip(request) is None


def test_wrong_api_key_is_rejected(test_client: TestClient):
    response = test_client.get("/analytics/stats/summary", headers={"X-API-Key": "wrong"})

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid or missing API key"}


def test_correlation_id_is_echoed(test_client: TestClient, api_headers: dict):
    response = test_client.get("/analytics/stats/summary", headers={**api_headers, "X-Correlation-ID": "abc-123"})

    assert response.headers["X-Correlation-ID"] == "abc-123"
