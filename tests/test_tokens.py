"""Tests for the JWT token issuer."""

from datetime import timedelta

import pytest

from sincut.auth.tokens import TokenConfig, TokenIssuer, TokenKind
from sincut.errors import InvalidToken


@pytest.fixture
def issuer():
    return TokenIssuer(TokenConfig(
        access_secret="access-secret-for-tests",
        refresh_secret="refresh-secret-for-tests",
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    ))


def test_refresh_round_trip(issuer):
    token = issuer.issue_refresh_token(42, "admin")

    claims = issuer.verify(token, TokenKind.REFRESH)

    assert claims.user_id == 42
    assert claims.role == "admin"


def test_access_round_trip(issuer):
    token = issuer.issue_access_token(7, "user")

    claims = issuer.verify(token, TokenKind.ACCESS)

    assert (claims.user_id, claims.role) == (7, "user")


def test_tokens_are_unique(issuer):
    assert issuer.issue_refresh_token(1, "user") != issuer.issue_refresh_token(1, "user")


def test_access_token_rejected_as_refresh(issuer):
    token = issuer.issue_access_token(1, "user")

    with pytest.raises(InvalidToken):
        issuer.verify(token, TokenKind.REFRESH)


def test_refresh_token_rejected_as_access(issuer):
    token = issuer.issue_refresh_token(1, "user")

    with pytest.raises(InvalidToken):
        issuer.verify(token, TokenKind.ACCESS)


def test_tampered_token(issuer):
    token = issuer.issue_refresh_token(1, "user")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(InvalidToken):
        issuer.verify(tampered, TokenKind.REFRESH)


def test_token_signed_with_other_secret(issuer):
    other = TokenIssuer(TokenConfig(
        access_secret="another-access-secret",
        refresh_secret="another-refresh-secret",
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    ))

    with pytest.raises(InvalidToken):
        issuer.verify(other.issue_refresh_token(1, "user"), TokenKind.REFRESH)


def test_expired_token():
    expired_issuer = TokenIssuer(TokenConfig(
        access_secret="access-secret-for-tests",
        refresh_secret="refresh-secret-for-tests",
        access_ttl=timedelta(seconds=-10),
        refresh_ttl=timedelta(seconds=-10),
    ))
    token = expired_issuer.issue_refresh_token(1, "user")

    with pytest.raises(InvalidToken):
        expired_issuer.verify(token, TokenKind.REFRESH)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_garbage(issuer, token):
    with pytest.raises(InvalidToken):
        issuer.verify(token, TokenKind.ACCESS)
