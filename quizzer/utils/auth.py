"""Authentication helpers for credentials, session tokens and verification tokens."""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets
import time
from typing import Any, Dict

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from quizzer.errors import ExpiredToken, InvalidEmail, InvalidToken

# Session and token expiry windows (seconds).
SESSION_TTL_SECONDS = 24 * 60 * 60
REMEMBER_ME_TTL_SECONDS = 30 * 24 * 60 * 60
VERIFICATION_TTL_SECONDS = 24 * 60 * 60

JWT_ALGORITHM = "HS256"

_EMAIL_PATTERN = re.compile(
    r'^(([^<>()\[\].,;:\s@"]+(\.[^<>()\[\].,;:\s@"]+)*)|(".+"))'
    r'@(([^<>()\[\].,;:\s@"]+\.)+[^<>()\[\].,;:\s@"]{2,})$',
    re.IGNORECASE,
)


def now_seconds() -> int:
    """Return the current UNIX timestamp in seconds."""
    return int(time.time())


def validate_user_mail(user_mail: Any) -> str:
    """Return the lower-cased e-mail address or raise :class:`InvalidEmail`."""
    if not isinstance(user_mail, str):
        raise InvalidEmail("UserMail must be a string")

    candidate = user_mail.strip().lower()
    if not _EMAIL_PATTERN.match(candidate):
        raise InvalidEmail(f"Malformed UserMail {candidate!r}")
    return candidate


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str | None, password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def generate_session_id() -> str:
    """Return a new random session token."""
    return secrets.token_urlsafe(32)


def hash_session_id(session_id: str) -> str:
    return hashlib.sha256(session_id.encode("utf-8")).hexdigest()


def session_id_matches(session_id_hash: str | None, session_id: str) -> bool:
    if not session_id_hash:
        return False
    return hmac.compare_digest(session_id_hash, hash_session_id(session_id))


def session_lifetime(remember_me: bool) -> int:
    return REMEMBER_ME_TTL_SECONDS if remember_me else SESSION_TTL_SECONDS


def create_verification_token(user_mail: str, secret: str, ttl_seconds: int = VERIFICATION_TTL_SECONDS) -> str:
    """Sign a token proving control of ``user_mail``."""
    issued_at = now_seconds()
    payload = {
        "userMail": user_mail,
        "iat": issued_at,
        "exp": issued_at + ttl_seconds,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_verification_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Validate a verification token and return its claims.

    Raises:
        ExpiredToken: if the ``exp`` claim has passed.
        InvalidToken: for a bad signature or malformed token.
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "userMail"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredToken(str(exc)) from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(str(exc)) from exc

    if not isinstance(claims.get("userMail"), str):
        raise InvalidToken("Token does not name a UserMail")
    return claims
