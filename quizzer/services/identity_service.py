"""Resolve connection credentials to user identities and track per-connection roles."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol
from urllib.parse import quote

from quizzer.errors import (
    BadCredentials,
    BadToken,
    ConnectionClosed,
    EmailInUse,
    InvalidToken,
    MailDispatchError,
    NoSuchUser,
    SessionExpired,
)
from quizzer.models import LoginResult, MailVerificationCredentials
from quizzer.services.content_store import ContentStore
from quizzer.storage import ConnectionRegistry
from quizzer.utils.auth import (
    create_verification_token,
    decode_verification_token,
    generate_session_id,
    hash_password,
    hash_session_id,
    now_seconds,
    session_id_matches,
    session_lifetime,
    validate_user_mail,
    verify_password,
)

_LOGGER = logging.getLogger(__name__)

VERIFICATION_PATH = "/verification"


class VerificationMailer(Protocol):
    def send_verification_mail(
        self,
        credentials: MailVerificationCredentials,
        recipient: str,
        verification_url: str,
    ) -> None: ...


def build_verification_url(website_url: str, token: str) -> str:
    return f"{website_url.rstrip('/')}{VERIFICATION_PATH}?jwtToken={quote(token, safe='')}"


class IdentityManager:
    """
    Login, signup and mail verification against ``UserBase`` records.

    User document fields: ``userMail``, ``passwordHash``, ``isMailVerified``,
    ``sessionIdHash`` and ``maxSessionTime`` (UNIX seconds). Admin status is
    read from the store once per login and then kept on the connection.
    """

    def __init__(
        self,
        store: ContentStore,
        connections: ConnectionRegistry,
        credentials: Optional[MailVerificationCredentials],
        mailer: VerificationMailer,
    ) -> None:
        self._store = store
        self._connections = connections
        self._credentials = credentials
        self._mailer = mailer

    def _authenticate(self, connection_id: str, user_mail: str) -> bool:
        is_admin = self._store.is_admin(user_mail)
        # Closed handles stay closed; only the connect event opens one.
        state = self._connections.get(connection_id)
        if state is None:
            raise ConnectionClosed(f"Connection {connection_id} closed before login completed")
        state.user_mail = user_mail
        state.is_admin = is_admin
        return is_admin

    def login_by_password(
        self,
        connection_id: str,
        user_mail: Any,
        password: str,
        remember_me: bool = False,
    ) -> LoginResult:
        """
        Authenticate with a password and issue a new session token.

        Raises:
            InvalidEmail: if ``user_mail`` is malformed.
            NoSuchUser, BadCredentials: both carry the same client reason.
            StoreError: if the user record cannot be read or written.
            ConnectionClosed: if the connection closed while logging in.
        """
        user_mail = validate_user_mail(user_mail)
        user = self._store.get_user(user_mail)
        if user is None:
            raise NoSuchUser(f"No user record for {user_mail}")
        if not verify_password(user.get("passwordHash"), password):
            raise BadCredentials(f"Password mismatch for {user_mail}")

        session_id = generate_session_id()
        max_session_time = now_seconds() + session_lifetime(remember_me)
        self._store.upsert_user(
            user_mail,
            {"sessionIdHash": hash_session_id(session_id), "maxSessionTime": max_session_time},
        )

        is_admin = self._authenticate(connection_id, user_mail)
        _LOGGER.info("Password login succeeded (admin=%s)", is_admin)
        return LoginResult(
            user_mail=user_mail,
            is_admin=is_admin,
            is_mail_verified=bool(user.get("isMailVerified")),
            max_session_time=max_session_time,
            session_id=session_id,
        )

    def login_by_session_id(self, connection_id: str, user_mail: Any, session_id: str) -> LoginResult:
        """
        Re-authenticate with a previously issued session token; no new token is issued.

        Raises:
            InvalidEmail, NoSuchUser, SessionExpired, BadToken, StoreError,
            ConnectionClosed.
        """
        user_mail = validate_user_mail(user_mail)
        user = self._store.get_user(user_mail)
        if user is None:
            raise NoSuchUser(f"No user record for {user_mail}")

        max_session_time = int(user.get("maxSessionTime") or 0)
        if now_seconds() > max_session_time:
            raise SessionExpired(f"Session for {user_mail} expired")
        if not session_id_matches(user.get("sessionIdHash"), session_id):
            raise BadToken(f"Session token mismatch for {user_mail}")

        is_admin = self._authenticate(connection_id, user_mail)
        return LoginResult(
            user_mail=user_mail,
            is_admin=is_admin,
            is_mail_verified=bool(user.get("isMailVerified")),
            max_session_time=max_session_time,
        )

    def signup(self, website_url: str, user_mail: Any, password: str) -> str:
        """
        Create an unverified user and mail a signed verification link.

        Signing up again before verifying replaces the stored password and
        sends a fresh link.

        Raises:
            InvalidEmail, EmailInUse, StoreError, MailDispatchError.
        """
        user_mail = validate_user_mail(user_mail)
        if self._credentials is None or not self._credentials.jwt_secret:
            raise MailDispatchError("Verification credentials are not loaded")

        existing = self._store.get_user(user_mail)
        if existing is not None and existing.get("isMailVerified"):
            raise EmailInUse(f"{user_mail} is already registered")

        self._store.upsert_user(
            user_mail,
            {"passwordHash": hash_password(password), "isMailVerified": False},
        )

        token = create_verification_token(user_mail, self._credentials.jwt_secret)
        self._mailer.send_verification_mail(
            self._credentials,
            user_mail,
            build_verification_url(website_url, token),
        )
        _LOGGER.info("Signup recorded, verification mail dispatched")
        return user_mail

    def verify(self, token: str) -> str:
        """
        Mark the user named by a verification token as verified.

        Raises:
            InvalidToken, ExpiredToken, StoreError.
        """
        if self._credentials is None or not self._credentials.jwt_secret:
            raise InvalidToken("Verification credentials are not loaded")

        claims = decode_verification_token(token, self._credentials.jwt_secret)
        user_mail = claims["userMail"]
        if self._store.get_user(user_mail) is None:
            raise InvalidToken(f"Token names unknown user {user_mail}")

        self._store.upsert_user(user_mail, {"isMailVerified": True})
        return user_mail

    def logout(self, connection_id: str) -> None:
        self._connections.close(connection_id)

    def has_admin_privileges(self, connection_id: str) -> bool:
        state = self._connections.get(connection_id)
        return state is not None and state.is_admin
