"""Security utilities: session tokens and federated ID token verification."""

import hashlib
from datetime import datetime, timedelta, timezone

import jwt

from fbop.config import settings


# --- Session Tokens ---

def create_access_token(uid: str, email: str | None, anonymous: bool) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": uid,
        "email": email,
        "anon": anonymous,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and validate a session token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


# --- Federated ID Tokens ---

def decode_id_token(id_token: str) -> dict:
    """Verify an identity provider's ID token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        id_token,
        settings.federated_token_secret,
        algorithms=["HS256"],
        audience=settings.federated_token_audience,
    )


def federated_uid(issuer: str, subject: str) -> str:
    """Stable principal id for a federated account."""
    return hashlib.sha256(f"{issuer}:{subject}".encode()).hexdigest()[:28]
