"""Process-scoped wiring of the store, cache, identity manager and connections."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from quizzer.errors import StoreUnavailable
from quizzer.models import MailVerificationCredentials, RootConfig
from quizzer.services.content_store import ContentStore
from quizzer.services.identity_service import IdentityManager, VerificationMailer
from quizzer.services.mail_service import GmailMailer
from quizzer.services.quiz_cache import QuizCache
from quizzer.storage import ConnectionRegistry

_LOGGER = logging.getLogger(__name__)


@dataclass
class QuizzerContext:
    store: ContentStore
    cache: QuizCache
    identity: IdentityManager
    connections: ConnectionRegistry
    credentials: Optional[MailVerificationCredentials]
    words_file: str
    degraded: bool = False


def create_context(
    store: Optional[ContentStore] = None,
    mailer: Optional[VerificationMailer] = None,
) -> QuizzerContext:
    """
    Connect to the store and build every component once.

    A store that cannot be reached leaves the server running on an empty
    cache instead of failing startup.
    """
    store = store or ContentStore()
    cache = QuizCache(store)
    degraded = False

    try:
        root, collections = store.connect()
    except StoreUnavailable:
        _LOGGER.error("DB connection error, serving from an empty quiz cache", exc_info=True)
        root, collections = RootConfig(credentials=None), {}
        degraded = True

    cache.load(root, collections)
    connections = ConnectionRegistry()
    identity = IdentityManager(store, connections, root.credentials, mailer or GmailMailer())

    return QuizzerContext(
        store=store,
        cache=cache,
        identity=identity,
        connections=connections,
        credentials=root.credentials,
        words_file=os.getenv("WORDS_FILE", "words.txt"),
        degraded=degraded,
    )
