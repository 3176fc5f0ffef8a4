"""
Unit tests for password hashing, token issuing and duration parsing
"""

import pytest
from datetime import timedelta
from jose import JWTError, jwt

from app.core.security import PasswordHasher, TokenIssuer, generate_reset_token, parse_expiration


@pytest.mark.parametrize("value,expected", [
    ("30s", 30),
    ("15m", 900),
    ("1h", 3600),
    ("7d", 604800),
    ("120", 120),
    ("1w", 3600),
    ("h", 3600),
    ("abc", 3600),
    ("", 3600),
    (None, 3600),
])
def test_parse_expiration(value, expected):
    assert parse_expiration(value) == expected


def test_hash_and_verify_password():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash_password("Secret123!")

    assert hashed != "Secret123!"
    assert hasher.verify_password("Secret123!", hashed)
    assert not hasher.verify_password("secret123!", hashed)


def test_refresh_tokens_with_shared_prefix_do_not_collide():
    """Tokens longer than bcrypt's 72 byte limit must still be told apart."""
    hasher = PasswordHasher(rounds=4)
    prefix = "x" * 100
    hashed = hasher.hash_token(prefix + "first")

    assert hasher.verify_token(prefix + "first", hashed)
    assert not hasher.verify_token(prefix + "second", hashed)


def test_reset_token_is_64_hex_chars():
    token = generate_reset_token()

    assert len(token) == 64
    int(token, 16)
    assert token != generate_reset_token()


def test_access_token_carries_claims(token_issuer):
    claims = {"sub": "7", "email": "a@x.com", "role": "admin", "tenant_id": 3}
    token = token_issuer.create_access_token(claims)

    payload = token_issuer.verify_access_token(token)
    assert payload["sub"] == "7"
    assert payload["email"] == "a@x.com"
    assert payload["role"] == "admin"
    assert payload["tenant_id"] == 3
    assert payload["exp"] - payload["iat"] == 3600
    assert "jti" in payload


def test_tokens_issued_together_are_distinct(token_issuer):
    claims = {"sub": "7", "email": "a@x.com", "role": "admin", "tenant_id": 3}

    assert token_issuer.create_refresh_token(claims) != token_issuer.create_refresh_token(claims)


def test_access_and_refresh_secrets_are_not_interchangeable(token_issuer):
    claims = {"sub": "7", "email": "a@x.com", "role": "admin", "tenant_id": 3}
    refresh = token_issuer.create_refresh_token(claims)
    access = token_issuer.create_access_token(claims)

    with pytest.raises(JWTError):
        token_issuer.verify_access_token(refresh)
    with pytest.raises(JWTError):
        token_issuer.verify_refresh_token(access)


def test_expired_token_is_rejected(token_issuer):
    claims = {"sub": "7", "email": "a@x.com", "role": "admin", "tenant_id": 3}
    token = token_issuer.create_refresh_token(claims, expires_delta=timedelta(seconds=-10))

    with pytest.raises(JWTError):
        token_issuer.verify_refresh_token(token)


def test_refresh_lifetime_uses_duration_string():
    issuer = TokenIssuer(
        access_secret="a" * 32,
        refresh_secret="b" * 32,
        access_expiration="15m",
        refresh_expiration="30d",
    )
    token = issuer.create_refresh_token({"sub": "1"})
    payload = jwt.get_unverified_claims(token)

    assert issuer.access_expires_in == 900
    assert payload["exp"] - payload["iat"] == 30 * 86400
