"""Activation tokens and signed bearer credentials."""
import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from .errors import DomainError, ErrorKind
from .models import TokenScope

logger = logging.getLogger("issuetracker-core.tokens")

TOKEN_LENGTH = 26
JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class IssuedToken:
    """A freshly generated token. Only `hash` is ever persisted."""

    plaintext: str
    hash: bytes
    user_id: int
    expiry: datetime
    scope: str


def hash_token(plaintext: str) -> bytes:
    """SHA-256 digest of a token plaintext."""
    return hashlib.sha256(plaintext.encode("utf-8")).digest()


def generate_token(user_id: int, ttl: timedelta, scope: TokenScope = TokenScope.ACTIVATION) -> IssuedToken:
    """
    Generate a random token for a user.

    16 random bytes encode to exactly 26 base32 characters once the padding
    is stripped.

    Args:
        user_id: Owner of the token
        ttl: Lifetime from now
        scope: What the token may be redeemed for

    Returns:
        IssuedToken with the plaintext and its hash
    """
    random_bytes = secrets.token_bytes(16)
    plaintext = base64.b32encode(random_bytes).decode("ascii").rstrip("=")
    return IssuedToken(
        plaintext=plaintext,
        hash=hash_token(plaintext),
        user_id=user_id,
        expiry=datetime.now(timezone.utc) + ttl,
        scope=scope.value,
    )


def issue_access_token(user_id: int, secret: str, issuer: str, ttl: timedelta = timedelta(hours=24)) -> str:
    """
    Sign a bearer credential for a user.

    Args:
        user_id: Subject of the credential
        secret: HMAC signing secret
        issuer: Canonical service identity, used for both issuer and audience
        ttl: Lifetime of the credential

    Returns:
        Compact JWS string
    """
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "iss": issuer,
        "aud": [issuer],
        "iat": now,
        "nbf": now,
        "exp": now + ttl,
    }
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def verify_access_token(token: str, secret: str, issuer: str) -> int:
    """
    Verify a bearer credential and return its subject.

    Signature, expiry, not-before, issuer and audience are all checked. Every
    failure is reported the same way.

    Args:
        token: Compact JWS string
        secret: HMAC signing secret
        issuer: Expected issuer and audience

    Returns:
        User id from the subject claim

    Raises:
        DomainError: INVALID_AUTHENTICATION on any failure
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            audience=issuer,
            issuer=issuer,
            options={"require": ["sub", "iss", "aud", "iat", "nbf", "exp"]},
        )
        return int(claims["sub"])
    except (jwt.InvalidTokenError, ValueError) as e:
        logger.debug(f"Rejected bearer credential: {e}")
        raise DomainError(ErrorKind.INVALID_AUTHENTICATION) from e
