"""Tests for token issuance, verification and refresh."""

from datetime import timedelta

import pytest
from jose import jwt

from app.application.services.token_service import TokenService
from app.core.exceptions import ExpiredTokenException, InvalidTokenException
from app.domain.schemas.auth import TokenClaims

CLAIMS = TokenClaims(user_id="u-1", email="alice@example.com", role="user")


def test_issue_and_verify_round_trip(tokens):
    token = tokens.issue(CLAIMS)
    assert tokens.verify(token) == CLAIMS


def test_token_embeds_expiry(tokens):
    payload = jwt.get_unverified_claims(tokens.issue(CLAIMS))
    assert payload["sub"] == "u-1"
    assert payload["exp"] - payload["iat"] == 3600


def test_expired_token(tokens):
    token = tokens.issue(CLAIMS, ttl=timedelta(seconds=-5))
    with pytest.raises(ExpiredTokenException):
        tokens.verify(token)


def test_wrong_secret_is_invalid(tokens):
    forged = TokenService("another-secret").issue(CLAIMS)
    with pytest.raises(InvalidTokenException):
        tokens.verify(forged)


def test_tampered_payload_is_invalid(tokens):
    header, payload, signature = tokens.issue(CLAIMS).split(".")
    other = TokenService("test-secret").issue(TokenClaims(user_id="u-1", email="alice@example.com", role="admin"))
    tampered = ".".join([header, other.split(".")[1], signature])
    with pytest.raises(InvalidTokenException):
        tokens.verify(tampered)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_invalid(tokens, token):
    with pytest.raises(InvalidTokenException):
        tokens.verify(token)


def test_token_missing_claims_is_invalid(tokens):
    token = jwt.encode({"sub": "u-1"}, "test-secret", algorithm="HS256")
    with pytest.raises(InvalidTokenException):
        tokens.verify(token)


def test_refresh_keeps_claims(tokens):
    refreshed = tokens.refresh(tokens.issue(CLAIMS, ttl=timedelta(minutes=1)))
    assert tokens.verify(refreshed) == CLAIMS
    payload = jwt.get_unverified_claims(refreshed)
    assert payload["exp"] - payload["iat"] == 3600


def test_refresh_rejects_expired_token(tokens):
    with pytest.raises(ExpiredTokenException):
        tokens.refresh(tokens.issue(CLAIMS, ttl=timedelta(seconds=-1)))
