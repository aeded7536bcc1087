"""
Security Test Suite: JWT Authentication

Tests that the JWT verification in dependencies.py correctly:
- Rejects missing Authorization headers
- Rejects malformed tokens
- Rejects expired tokens
- Rejects tokens with invalid signatures
- Accepts properly signed tokens
"""

import time
from uuid import UUID

import jwt
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from video_exchange.api.dependencies import get_current_user_id
from video_exchange.config.settings import get_settings


# ---------------------------------------------------------------------------
# Minimal app that uses the real dependency
# ---------------------------------------------------------------------------

test_app = FastAPI()


@test_app.get("/protected")
async def protected_endpoint(user_id: UUID = Depends(get_current_user_id)):
    return {"user_id": str(user_id)}


client = TestClient(test_app, raise_server_exceptions=False)

USER_ID = "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee"


def _token(payload: dict, secret: str = None) -> str:
    settings = get_settings()
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm="HS256")


# ---------------------------------------------------------------------------
# Tests: rejection scenarios
# ---------------------------------------------------------------------------


class TestJWTRejection:
    """Verify that invalid/missing JWTs are rejected with 401."""

    def test_no_auth_header(self):
        resp = client.get("/protected")
        assert resp.status_code == 401

    def test_malformed_scheme(self):
        resp = client.get("/protected", headers={"Authorization": "Basic abc123"})
        assert resp.status_code == 401

    def test_garbage_token(self):
        resp = client.get("/protected", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401

    def test_wrong_secret(self):
        token = _token({"sub": USER_ID, "exp": int(time.time()) + 3600}, secret="someone-else")
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_expired_token(self):
        token = _token({"sub": USER_ID, "exp": int(time.time()) - 60})
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Token has expired"

    def test_token_without_expiry(self):
        token = _token({"sub": USER_ID})
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_subject_must_be_a_uuid(self):
        token = _token({"sub": "not-a-uuid", "exp": int(time.time()) + 3600})
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid token: malformed user ID"

    def test_raw_uuid_rejected(self):
        """'Bearer <raw-uuid>' is not a token."""
        resp = client.get("/protected", headers={"Authorization": f"Bearer {USER_ID}"})
        assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Tests: acceptance scenarios
# ---------------------------------------------------------------------------


class TestJWTAcceptance:
    """Verify that valid JWTs are accepted."""

    def test_valid_hs256_token(self):
        token = _token({"sub": USER_ID, "exp": int(time.time()) + 3600})
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["user_id"] == USER_ID
