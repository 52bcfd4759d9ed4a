"""Verification mail dispatch through Gmail SMTP with OAuth2 (XOAUTH2)."""

from __future__ import annotations

import base64
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

import httpx

from quizzer.errors import MailDispatchError
from quizzer.models import MailVerificationCredentials

_LOGGER = logging.getLogger(__name__)

TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
SMTP_HOST = "smtp.gmail.com"
SMTP_PORT = 465

VERIFICATION_SUBJECT = "Quizzer: verify your e-mail address"
VERIFICATION_BODY = (
    "Welcome to Quizzer!\n\n"
    "Open the link below to verify your e-mail address. "
    "The link expires in 24 hours.\n\n"
    "{url}\n"
)


class GmailMailer:
    """
    Send verification mails from the configured Gmail account.

    Notes
    - An access token is refreshed from the stored refresh token for every mail;
      signup volume is low.
    - All transport errors surface as :class:`MailDispatchError`.
    """

    def __init__(self, *, timeout: float = 15.0, client: Optional[httpx.Client] = None) -> None:
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _fetch_access_token(self, credentials: MailVerificationCredentials) -> str:
        try:
            response = self._client.post(
                TOKEN_ENDPOINT,
                data={
                    "client_id": credentials.google_client_id,
                    "client_secret": credentials.google_client_secret,
                    "refresh_token": credentials.google_refresh_token,
                    "grant_type": "refresh_token",
                },
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise MailDispatchError(f"Failed to refresh Gmail access token: {exc}") from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise MailDispatchError("Token endpoint returned no access_token")
        return access_token

    def send_verification_mail(
        self,
        credentials: MailVerificationCredentials,
        recipient: str,
        verification_url: str,
    ) -> None:
        if not credentials.can_send_mail:
            raise MailDispatchError("Mail credentials are not configured")

        access_token = self._fetch_access_token(credentials)

        message = EmailMessage()
        message["From"] = credentials.gmail_address
        message["To"] = recipient
        message["Subject"] = VERIFICATION_SUBJECT
        message.set_content(VERIFICATION_BODY.format(url=verification_url))

        auth_string = f"user={credentials.gmail_address}\x01auth=Bearer {access_token}\x01\x01"
        encoded = base64.b64encode(auth_string.encode("utf-8")).decode("ascii")

        try:
            with smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, timeout=self._timeout) as smtp:
                smtp.ehlo()
                code, response = smtp.docmd("AUTH", f"XOAUTH2 {encoded}")
                if code != 235:
                    raise MailDispatchError(f"Gmail rejected XOAUTH2 login ({code}): {response!r}")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDispatchError(f"Failed to send verification mail: {exc}") from exc

        _LOGGER.info("Verification mail sent")
