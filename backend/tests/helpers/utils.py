"""Tiny helpers shared across test modules."""

from __future__ import annotations

from typing import Any


def bearer(token: str) -> dict[str, str]:
    """Return an ``Authorization`` header carrying ``token``."""
    return {"Authorization": f"Bearer {token}"}


def problem(resp: Any) -> dict[str, Any]:
    """Return the RFC 7807 body of ``resp`` after checking its media type."""
    assert resp.mimetype == "application/problem+json", resp.get_data(as_text=True)
    return resp.get_json()


def login(client: Any, phone_number: str, pin: str) -> dict[str, Any]:
    """Log in through the API and return the ``data`` envelope."""
    resp = client.post("/api/v1/auth/login", json={"phone_number": phone_number, "pin": pin})
    assert resp.status_code == 200, resp.get_data(as_text=True)
    return resp.get_json()["data"]
