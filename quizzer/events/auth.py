"""userLogin / userSignup / userVerification event handlers."""

from __future__ import annotations

from typing import Any

from flask import current_app, request
from flask_socketio import SocketIO, emit

from quizzer.context import QuizzerContext
from quizzer.errors import (
    GENERIC_FAILURE_REASON,
    AuthError,
    InvalidEmail,
    MailDispatchError,
    StoreError,
)
from quizzer.utils.auth import validate_user_mail


def register(socketio: SocketIO, context: QuizzerContext) -> None:
    identity = context.identity

    @socketio.on("userLogin")
    def user_login(credentials: Any = None):
        """Log in with either a session id or a password."""
        if not isinstance(credentials, dict):
            return

        try:
            user_mail = validate_user_mail(credentials.get("userMail"))
        except InvalidEmail as exc:
            emit("loginUnsuccessful", exc.reason)
            return

        session_id = credentials.get("sessionId")
        password = credentials.get("password")

        try:
            if isinstance(session_id, str):
                result = identity.login_by_session_id(request.sid, user_mail, session_id)
            elif isinstance(password, str):
                result = identity.login_by_password(
                    request.sid,
                    user_mail,
                    password,
                    remember_me=credentials.get("rememberMe") is True,
                )
            else:
                return
        except AuthError as exc:
            emit("loginUnsuccessful", exc.reason)
            return
        except StoreError:
            current_app.logger.error("Login failed on a store error", exc_info=True)
            emit("loginUnsuccessful", GENERIC_FAILURE_REASON)
            return

        emit("loginSuccess", result.to_payload())
        if identity.has_admin_privileges(request.sid):
            emit("adminPrivilegeGranted")

    @socketio.on("userSignup")
    def user_signup(credentials: Any = None):
        if not isinstance(credentials, dict):
            return

        try:
            user_mail = validate_user_mail(credentials.get("userMail"))
        except InvalidEmail as exc:
            emit("signupUnsuccessful", exc.reason)
            return

        password = credentials.get("password")
        website_url = credentials.get("websiteURL")
        if not isinstance(password, str) or not isinstance(website_url, str):
            return

        try:
            identity.signup(website_url, user_mail, password)
        except AuthError as exc:
            emit("signupUnsuccessful", exc.reason)
            return
        except (StoreError, MailDispatchError):
            current_app.logger.error("Signup failed", exc_info=True)
            emit("signupUnsuccessful", GENERIC_FAILURE_REASON)
            return

        emit("signupSuccess")

    @socketio.on("userVerification")
    def user_verification(data: Any = None):
        if not isinstance(data, dict):
            return

        token = data.get("jwtToken")
        if not isinstance(token, str) or not token:
            return

        try:
            identity.verify(token)
        except AuthError as exc:
            emit("verificationUnsuccessful", exc.reason)
            return
        except StoreError:
            current_app.logger.error("Verification failed on a store error", exc_info=True)
            emit("verificationUnsuccessful", GENERIC_FAILURE_REASON)
            return

        emit("verificationSuccess")
