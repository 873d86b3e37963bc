"""
Client IP Resolution Tests
"""

from fastapi.testclient import TestClient

from core.client_ip import UNKNOWN_IP, resolve_client_ip


def test_forwarded_for_takes_first_entry():
    """X-Forwarded-For wins and only its first entry is used."""
    ip = resolve_client_ip(" 203.0.113.7 , 10.0.0.1, 10.0.0.2", "198.51.100.1", "127.0.0.1")
    assert ip == "203.0.113.7"


def test_real_ip_used_verbatim():
    """X-Real-IP is returned untouched when there is no X-Forwarded-For."""
    assert resolve_client_ip(None, " 198.51.100.1", "127.0.0.1") == " 198.51.100.1"


def test_peer_address_strips_ipv4_mapped_prefix():
    assert resolve_client_ip(None, None, "::ffff:192.0.2.10") == "192.0.2.10"


def test_peer_address_ipv6_kept():
    assert resolve_client_ip(None, None, "2001:db8::1") == "2001:db8::1"


def test_unknown_when_nothing_available():
    assert resolve_client_ip(None, None, None) == UNKNOWN_IP
    assert resolve_client_ip("", "", "") == UNKNOWN_IP


def test_spoofed_value_accepted_as_is():
    """No IP syntax validation is performed."""
    assert resolve_client_ip("not-an-ip", None, "127.0.0.1") == "not-an-ip"


def test_request_headers_resolved(client: TestClient):
    """The stats endpoint reports the proxy-supplied address."""
    response = client.get("/api/stats", headers={"X-Real-IP": "198.51.100.20"})

    assert response.status_code == 200
    assert response.json()["currentIP"] == "198.51.100.20"
