"""Value types shared across the quizzer services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

DEFAULT_QUIZ_SET_VERSION = "0.0.0"


@dataclass(frozen=True)
class MailVerificationCredentials:
    """Signing secret and Gmail OAuth settings, loaded once from the root record."""

    jwt_secret: str
    gmail_address: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    google_refresh_token: str = ""

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "MailVerificationCredentials":
        return cls(
            jwt_secret=document.get("jwtSecret") or "",
            gmail_address=document.get("gmailAddress") or "",
            google_client_id=document.get("GOOGLE_CLIENT_ID") or "",
            google_client_secret=document.get("GOOGLE_CLIENT_SECRET") or "",
            google_redirect_uri=document.get("GOOGLE_REDIRECT_URI") or "",
            google_refresh_token=document.get("GOOGLE_REFRESH_TOKEN") or "",
        )

    @property
    def can_send_mail(self) -> bool:
        return bool(
            self.gmail_address
            and self.google_client_id
            and self.google_client_secret
            and self.google_refresh_token
        )


@dataclass(frozen=True)
class RootConfig:
    """The ``_Root`` initializer record."""

    credentials: Optional[MailVerificationCredentials]
    quiz_set_version: str = DEFAULT_QUIZ_SET_VERSION


@dataclass(frozen=True)
class WordEntry:
    collection_name: str
    word: str
    meaning: str

    def to_payload(self) -> Dict[str, str]:
        return {
            "collectionName": self.collection_name,
            "word": self.word,
            "meaning": self.meaning,
        }


@dataclass
class LoginResult:
    """Outcome of a successful login, serialized into the ``loginSuccess`` event."""

    user_mail: str
    is_admin: bool
    is_mail_verified: bool
    max_session_time: int
    session_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": True,
            "userMail": self.user_mail,
            "isMailVerified": self.is_mail_verified,
            "maxSessionTime": self.max_session_time * 1000,
        }
        if self.session_id is not None:
            payload["sessionId"] = self.session_id
        return payload
