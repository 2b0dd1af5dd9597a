"""Codec de tokens de sesión: emisión, verificación y mapeo de errores."""
from datetime import timedelta

import jwt as pyjwt
import pytest

from saas_auth.core.config import settings
from saas_auth.infrastructure.security import token_codec
from saas_auth.infrastructure.security.token_codec import (
    Expired,
    IdentityClaims,
    InvalidSignature,
    Malformed,
)

CLAIMS = IdentityClaims(id="u1", email="ana@example.com", role="admin", company_id="c1")


def test_issue_then_verify_returns_identity_claims():
    token = token_codec.issue(CLAIMS, timedelta(minutes=5))
    payload = token_codec.verify(token)

    assert IdentityClaims.from_payload(payload) == CLAIMS
    assert payload["type"] == "access"
    assert payload["exp"] > payload["iat"]


def test_tokens_issued_back_to_back_are_distinct():
    a = token_codec.issue(CLAIMS, timedelta(minutes=5))
    b = token_codec.issue(CLAIMS, timedelta(minutes=5))
    assert a != b


def test_expired_token_raises_expired():
    token = token_codec.issue(CLAIMS, timedelta(seconds=-10))
    with pytest.raises(Expired):
        token_codec.verify(token)


def test_foreign_secret_raises_invalid_signature():
    forged = pyjwt.encode(
        {"id": "u1", "email": "ana@example.com", "iat": 1, "exp": 9999999999},
        "some-other-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidSignature):
        token_codec.verify(forged)


def test_garbage_raises_malformed():
    with pytest.raises(Malformed):
        token_codec.verify("not-a-jwt")


def test_missing_identity_claims_is_malformed():
    token = pyjwt.encode(
        {"role": "user", "iat": 1, "exp": 9999999999},
        settings.resolved_jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(Malformed):
        token_codec.verify(token)


def test_kind_mismatch_is_rejected():
    refresh = token_codec.issue(CLAIMS, token_codec.refresh_ttl(), kind="refresh")
    assert token_codec.verify(refresh, kind="refresh")["type"] == "refresh"
    with pytest.raises(Malformed):
        token_codec.verify(refresh, kind="access")


def test_from_user_defaults_role():
    claims = IdentityClaims.from_user({"id": 7, "email": "x@example.com"})
    assert claims.id == "7"
    assert claims.role == "user"
    assert claims.company_id is None
