"""Integration tests for the authentication endpoints."""

from __future__ import annotations

import pytest
from tests.helpers.http import API, assert_problem, bearer, login
from tests.helpers.otp import RecordingOTPSender

AUTH = f"{API}/auth"


@pytest.fixture()
def outbox(app, monkeypatch):
    """Capture passcodes instead of logging them."""
    sender = RecordingOTPSender()
    monkeypatch.setitem(app.extensions, "otp_sender", sender)
    return sender


def _signup(client, email="a@x.com", password="Secret1"):
    resp = client.post(f"{AUTH}/signup", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.get_data(as_text=True)
    return resp


def _otp_proof(client, outbox, email, otp_type="EMAIL"):
    """Request and verify a passcode; return the guard fields for a gated call."""
    resp = client.post(f"{AUTH}/otp/request", json={"email": email, "otp_type": otp_type})
    assert resp.status_code == 201, resp.get_data(as_text=True)
    data = resp.get_json()["data"]
    assert "otp" not in data
    assert "verification_token" not in data

    resp = client.post(
        f"{AUTH}/otp/verify",
        json={"otp_id": data["otp_id"], "otp_type": otp_type, "otp": outbox.last_otp},
    )
    assert resp.status_code == 200, resp.get_data(as_text=True)
    verified = resp.get_json()["data"]
    assert verified["otp_id"] == data["otp_id"]
    return {
        "otp_id": data["otp_id"],
        "otp_type": otp_type,
        "verification_token": verified["verification_token"],
    }


def test_health(client) -> None:
    resp = client.get(f"{API}/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["blacklist"] == "memory"


def test_login_refresh_scenario(client) -> None:
    """Signup, login, wrong password, wrong token type, then a proper rotation."""
    _signup(client)

    resp = login(client, "a@x.com", "Secret1")
    assert resp.status_code == 200
    pair = resp.get_json()["data"]
    assert pair["token_type"] == "bearer"
    assert {"access_token", "refresh_token", "access_exp", "refresh_exp"} <= pair.keys()

    assert_problem(login(client, "a@x.com", "wrong"), 401)
    assert_problem(login(client, "nobody@x.com", "Secret1"), 404)

    body = assert_problem(client.post(f"{AUTH}/refresh", json={"token": pair["access_token"]}), 401)
    assert body["detail"] == "Invalid token"

    resp = client.post(f"{AUTH}/refresh", json={"token": pair["refresh_token"]})
    assert resp.status_code == 200
    rotated = resp.get_json()["data"]
    assert rotated["refresh_token"] != pair["refresh_token"]

    # the old refresh token is now blacklisted
    assert_problem(client.post(f"{AUTH}/refresh", json={"token": pair["refresh_token"]}), 401)


def test_signup_validation_and_conflict(client) -> None:
    body = assert_problem(client.post(f"{AUTH}/signup", json={"email": "nope", "password": "x"}), 422)
    assert "email" in body["details"]["errors"]

    _signup(client, email="dup@x.com")
    assert_problem(client.post(f"{AUTH}/signup", json={"email": "DUP@x.com", "password": "Secret1"}), 409)


def test_me_and_logout(client) -> None:
    _signup(client, email="me@x.com")
    pair = login(client, "me@x.com", "Secret1").get_json()["data"]

    assert_problem(client.get(f"{AUTH}/me"), 401)

    resp = client.get(f"{AUTH}/me", headers=bearer(pair["access_token"]))
    assert resp.status_code == 200
    me = resp.get_json()["data"]
    assert me["email"] == "me@x.com"
    assert me["is_verified"] is False
    assert "password_hash" not in me

    # a refresh token never opens protected endpoints
    assert_problem(client.get(f"{AUTH}/me", headers=bearer(pair["refresh_token"])), 401)

    resp = client.post(
        f"{AUTH}/logout",
        json={"token": pair["refresh_token"]},
        headers=bearer(pair["access_token"]),
    )
    assert resp.status_code == 200

    body = assert_problem(client.get(f"{AUTH}/me", headers=bearer(pair["access_token"])), 401)
    assert body["detail"] == "Token revoked"
    assert_problem(client.post(f"{AUTH}/refresh", json={"token": pair["refresh_token"]}), 401)

    # logging out the same session again is a conflict
    resp = client.post(
        f"{AUTH}/logout",
        json={"token": pair["refresh_token"]},
        headers=bearer(pair["access_token"]),
    )
    assert_problem(resp, 409)


def test_logout_requires_bearer(client) -> None:
    assert_problem(client.post(f"{AUTH}/logout", json={"token": "x"}), 422)


def test_account_verification_flow(client, outbox) -> None:
    _signup(client, email="v@x.com")
    proof = _otp_proof(client, outbox, "v@x.com")

    resp = client.post(f"{AUTH}/account/verify", json={"email": "v@x.com", **proof})
    assert resp.status_code == 200, resp.get_data(as_text=True)

    # the proof is single use
    assert_problem(client.post(f"{AUTH}/account/verify", json={"email": "v@x.com", **proof}), 401)

    pair = login(client, "v@x.com", "Secret1").get_json()["data"]
    me = client.get(f"{AUTH}/me", headers=bearer(pair["access_token"])).get_json()["data"]
    assert me["is_verified"] is True
    assert me["status"] == "active"


def test_malformed_gated_request_keeps_the_otp(client, outbox) -> None:
    _signup(client, email="m@x.com")
    proof = _otp_proof(client, outbox, "m@x.com")

    assert_problem(client.post(f"{AUTH}/account/verify", json=proof), 422)

    resp = client.post(f"{AUTH}/account/verify", json={"email": "m@x.com", **proof})
    assert resp.status_code == 200


def test_cross_user_otp_is_rejected(client, outbox) -> None:
    _signup(client, email="attacker@x.com")
    _signup(client, email="victim@x.com")
    proof = _otp_proof(client, outbox, "attacker@x.com")

    resp = client.post(
        f"{AUTH}/password/reset",
        json={"email": "victim@x.com", "password": "Hijacked1", **proof},
    )
    assert_problem(resp, 401)
    assert login(client, "victim@x.com", "Secret1").status_code == 200


def test_password_reset_flow(client, outbox, freeze_time) -> None:
    with freeze_time("2026-06-01 09:00:00"):
        _signup(client, email="r@x.com")
        old = login(client, "r@x.com", "Secret1").get_json()["data"]

    with freeze_time("2026-06-01 09:10:00"):
        proof = _otp_proof(client, outbox, "r@x.com", otp_type="AUTHENTICATOR")
        resp = client.post(
            f"{AUTH}/password/reset",
            json={"email": "r@x.com", "password": "Brand-new1", **proof},
        )
        assert resp.status_code == 200, resp.get_data(as_text=True)

        assert_problem(login(client, "r@x.com", "Secret1"), 401)
        assert login(client, "r@x.com", "Brand-new1").status_code == 200
        assert_problem(client.post(f"{AUTH}/refresh", json={"token": old["refresh_token"]}), 401)


def test_otp_verify_rejects_wrong_code(client, outbox) -> None:
    _signup(client, email="w@x.com")
    resp = client.post(f"{AUTH}/otp/request", json={"email": "w@x.com", "otp_type": "EMAIL"})
    otp_id = resp.get_json()["data"]["otp_id"]
    wrong = "000000" if outbox.last_otp != "000000" else "111111"

    body = assert_problem(
        client.post(f"{AUTH}/otp/verify", json={"otp_id": otp_id, "otp_type": "EMAIL", "otp": wrong}),
        401,
    )
    assert wrong not in body["detail"]

    assert_problem(
        client.post(f"{AUTH}/otp/request", json={"email": "w@x.com", "otp_type": "SMS"}),
        422,
    )


def test_login_is_rate_limited_per_address(app, client, monkeypatch) -> None:
    from authcore.infra.redis.rate_limiter import RateLimiter

    monkeypatch.setitem(app.config, "RATELIMIT_ENABLED", True)
    monkeypatch.setitem(app.config, "AUTH_LOGIN_RATE_LIMIT", 2)
    monkeypatch.setitem(app.extensions, "rate_limiter", RateLimiter())

    for _ in range(2):
        assert_problem(login(client, "nobody@x.com", "Secret1"), 404)

    body = assert_problem(login(client, "nobody@x.com", "Secret1"), 429)
    assert body["code"] == "too_many_requests"

    # other endpoints keep their own budget
    assert client.post(f"{AUTH}/signup", json={"email": "rl@x.com", "password": "Secret1"}).status_code == 201


def test_otp_request_alone_cannot_reset_password(client, outbox) -> None:
    """Knowing the email is not enough: the token only comes back from a correct verify."""
    _signup(client, email="target@x.com")
    resp = client.post(f"{AUTH}/otp/request", json={"email": "target@x.com", "otp_type": "EMAIL"})
    data = resp.get_json()["data"]
    assert set(data) == {"otp_id", "otp_type", "expires_at"}

    body = assert_problem(
        client.post(
            f"{AUTH}/password/reset",
            json={
                "email": "target@x.com",
                "password": "Hijacked1",
                "otp_id": data["otp_id"],
                "otp_type": "EMAIL",
                "verification_token": "123456",
            },
        ),
        401,
    )
    assert body["detail"] == "OTP not verified"
    assert login(client, "target@x.com", "Secret1").status_code == 200


def test_otp_locks_after_repeated_misses(app, client, outbox, monkeypatch) -> None:
    from dataclasses import replace

    settings = app.extensions["auth_settings"]
    monkeypatch.setitem(app.extensions, "auth_settings", replace(settings, otp_max_attempts=2))
    _signup(client, email="lock@x.com")
    resp = client.post(f"{AUTH}/otp/request", json={"email": "lock@x.com", "otp_type": "EMAIL"})
    otp_id = resp.get_json()["data"]["otp_id"]
    wrong = "000000" if outbox.last_otp != "000000" else "111111"

    for _ in range(2):
        assert_problem(
            client.post(f"{AUTH}/otp/verify", json={"otp_id": otp_id, "otp_type": "EMAIL", "otp": wrong}),
            401,
        )

    body = assert_problem(
        client.post(
            f"{AUTH}/otp/verify",
            json={"otp_id": otp_id, "otp_type": "EMAIL", "otp": outbox.last_otp},
        ),
        401,
    )
    assert body["detail"] == "Too many attempts"


def test_otp_verify_is_rate_limited_per_record(app, client, outbox, monkeypatch) -> None:
    from authcore.infra.redis.rate_limiter import RateLimiter

    _signup(client, email="rl-otp@x.com")
    resp = client.post(f"{AUTH}/otp/request", json={"email": "rl-otp@x.com", "otp_type": "EMAIL"})
    otp_id = resp.get_json()["data"]["otp_id"]
    wrong = "000000" if outbox.last_otp != "000000" else "111111"

    monkeypatch.setitem(app.config, "RATELIMIT_ENABLED", True)
    monkeypatch.setitem(app.config, "AUTH_OTP_VERIFY_RATE_LIMIT", 2)
    monkeypatch.setitem(app.extensions, "rate_limiter", RateLimiter())

    def attempt(addr):
        return client.post(
            f"{AUTH}/otp/verify",
            json={"otp_id": otp_id, "otp_type": "EMAIL", "otp": wrong},
            environ_overrides={"REMOTE_ADDR": addr},
        )

    assert_problem(attempt("10.0.0.1"), 401)
    assert_problem(attempt("10.0.0.2"), 401)

    # a fresh address does not buy more guesses against the same record
    body = assert_problem(attempt("10.0.0.3"), 429)
    assert body["code"] == "too_many_requests"
