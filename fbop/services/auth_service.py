"""Authentication: anonymous and federated principals, session tokens.

Anonymous principals are minted locally. Federated principals come from
an identity provider's signed ID token; the provider's ``sub`` plus
``iss`` map to a stable uid so the same account always returns to the
same family.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

import jwt

from fbop.errors import UnauthenticatedError
from fbop.utils.security import (
    create_access_token,
    decode_id_token,
    decode_token,
    federated_uid,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    uid: str
    email: Optional[str] = None
    anonymous: bool = True


def sign_in_anonymously() -> Principal:
    return Principal(uid=secrets.token_hex(14), anonymous=True)


def sign_in_with_id_token(id_token: str) -> Principal:
    """Verify a federated ID token and return its principal."""
    try:
        claims = decode_id_token(id_token)
    except jwt.PyJWTError as e:
        raise UnauthenticatedError(f"Invalid ID token: {e}") from e

    subject = claims.get("sub")
    if not subject:
        raise UnauthenticatedError("ID token has no subject")

    return Principal(
        uid=federated_uid(claims.get("iss", ""), subject),
        email=claims.get("email"),
        anonymous=False,
    )


def issue_session_token(principal: Principal) -> str:
    return create_access_token(principal.uid, principal.email, principal.anonymous)


def principal_from_token(token: str) -> Principal:
    """Resolve a session token. Raises UnauthenticatedError."""
    try:
        payload = decode_token(token)
    except jwt.PyJWTError as e:
        raise UnauthenticatedError("Invalid or expired token") from e

    if payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthenticatedError("Invalid token type")

    return Principal(
        uid=payload["sub"],
        email=payload.get("email"),
        anonymous=bool(payload.get("anon", True)),
    )


class AuthSession:
    """Client-side sign-in state for one device."""

    def __init__(self, principal: Optional[Principal] = None):
        self._principal = principal

    @property
    def current_principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def is_signed_in(self) -> bool:
        return self._principal is not None

    def sign_in_anonymously(self) -> Principal:
        self._principal = sign_in_anonymously()
        logger.info("Signed in anonymously as %s", self._principal.uid)
        return self._principal

    def sign_in_with_id_token(self, id_token: str) -> Principal:
        self._principal = sign_in_with_id_token(id_token)
        logger.info("Signed in as %s", self._principal.uid)
        return self._principal

    def ensure_signed_in(self) -> Principal:
        """Current principal, signing in anonymously if nobody is."""
        return self._principal or self.sign_in_anonymously()

    def sign_out(self) -> None:
        self._principal = None
