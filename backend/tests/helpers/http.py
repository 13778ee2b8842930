"""HTTP helper utilities for tests."""

from __future__ import annotations

API = "/api/v1"


def bearer(token: str) -> dict[str, str]:
    """Return an ``Authorization`` header carrying ``token``."""
    return {"Authorization": f"Bearer {token}"}


def login(client, email: str, password: str):
    """POST credentials and return the raw response."""
    return client.post(f"{API}/auth/login", json={"email": email, "password": password})


def assert_problem(resp, status: int) -> dict:
    """Check an RFC 7807 error response and return its body."""
    assert resp.status_code == status, resp.get_data(as_text=True)
    assert resp.mimetype == "application/problem+json"
    body = resp.get_json()
    assert body["status"] == status
    assert body["request_id"]
    return body
