"""Tests for activation tokens and bearer credentials."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from issuetracker_core.errors import DomainError, ErrorKind
from issuetracker_core.models import TokenScope
from issuetracker_core.passwords import hash_password, password_matches
from issuetracker_core.tokens import (
    generate_token,
    hash_token,
    issue_access_token,
    verify_access_token,
)

SECRET = "test-secret"
ISSUER = "issuetracker-test"


class TestActivationTokens:
    """Test token generation."""

    def test_plaintext_is_26_chars(self):
        """Test that every plaintext is exactly 26 base32 characters."""
        for _ in range(50):
            token = generate_token(1, timedelta(days=3))
            assert len(token.plaintext) == 26
            assert "=" not in token.plaintext

    def test_hash_is_sha256_of_plaintext(self):
        """Test that only an irreversible digest is kept."""
        token = generate_token(1, timedelta(days=3))
        assert token.hash == hash_token(token.plaintext)
        assert token.hash != token.plaintext.encode()
        assert len(token.hash) == 32

    def test_expiry_and_scope(self):
        token = generate_token(7, timedelta(days=3), TokenScope.ACTIVATION)
        remaining = token.expiry - datetime.now(timezone.utc)
        assert timedelta(days=2, hours=23) < remaining <= timedelta(days=3)
        assert token.scope == "activation"
        assert token.user_id == 7

    def test_tokens_are_unique(self):
        assert len({generate_token(1, timedelta(days=1)).plaintext for _ in range(100)}) == 100


class TestAccessTokens:
    """Test signing and verification of bearer credentials."""

    def test_round_trip(self):
        """Test that a freshly issued credential verifies to its subject."""
        token = issue_access_token(42, SECRET, ISSUER)
        assert verify_access_token(token, SECRET, ISSUER) == 42

    def test_claims(self):
        """Test the required claim set."""
        token = issue_access_token(42, SECRET, ISSUER)
        claims = jwt.decode(token, SECRET, algorithms=["HS256"], audience=ISSUER)
        assert claims["sub"] == "42"
        assert claims["iss"] == ISSUER
        assert ISSUER in claims["aud"]
        assert claims["exp"] - claims["iat"] == 24 * 3600
        assert claims["nbf"] == claims["iat"]

    @pytest.mark.parametrize(
        "token_factory",
        [
            lambda: issue_access_token(1, "other-secret", ISSUER),
            lambda: issue_access_token(1, SECRET, "someone-else"),
            lambda: issue_access_token(1, SECRET, ISSUER, ttl=timedelta(seconds=-5)),
            lambda: issue_access_token(1, SECRET, ISSUER) + "x",
            lambda: "not.a.jwt",
        ],
        ids=["wrong-secret", "wrong-issuer", "expired", "tampered", "garbage"],
    )
    def test_failures_are_uniform(self, token_factory):
        """Test that every verification failure is INVALID_AUTHENTICATION."""
        with pytest.raises(DomainError) as exc_info:
            verify_access_token(token_factory(), SECRET, ISSUER)
        assert exc_info.value.kind == ErrorKind.INVALID_AUTHENTICATION

    def test_wrong_audience_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "iss": ISSUER, "aud": ["elsewhere"], "iat": now, "nbf": now, "exp": now + timedelta(hours=1)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(DomainError):
            verify_access_token(token, SECRET, ISSUER)

    def test_not_yet_valid_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "1", "iss": ISSUER, "aud": [ISSUER], "iat": now,
                "nbf": now + timedelta(hours=1), "exp": now + timedelta(hours=2),
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(DomainError):
            verify_access_token(token, SECRET, ISSUER)


class TestPasswords:
    """Test password hashing."""

    def test_matches(self):
        hashed = hash_password("pa55word1234", rounds=4)
        assert password_matches("pa55word1234", hashed)
        assert not password_matches("wrong-password", hashed)

    def test_malformed_hash_does_not_match(self):
        assert not password_matches("pa55word1234", b"not-a-bcrypt-hash")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
