"""Service layer modules for the Quizzer server."""

from . import content_store, identity_service, mail_service, quiz_cache

__all__ = [
    "content_store",
    "identity_service",
    "mail_service",
    "quiz_cache",
]
