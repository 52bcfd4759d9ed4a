"""Shared pytest fixtures backed by an in-memory MongoDB."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Tuple

import mongomock
import pytest

# Ensure the application package is importable during tests.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from quizzer import database  # noqa: E402
from quizzer.context import create_context  # noqa: E402
from quizzer.main import create_app, get_socketio  # noqa: E402
from quizzer.utils.auth import hash_password  # noqa: E402

JWT_SECRET = "unit-test-signing-secret-0123456789abcdef0123456789"


class RecordingMailer:
    """Stands in for the Gmail mailer and keeps every verification link."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []

    def send_verification_mail(self, credentials, recipient, verification_url):
        self.sent.append((recipient, verification_url))


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch: pytest.MonkeyPatch):
    """Provide an isolated in-memory MongoDB database for each test."""
    test_db_name = "test_quizzer"
    monkeypatch.setenv("MONGODB_DATABASE", test_db_name)

    client = mongomock.MongoClient()
    db = client[test_db_name]

    monkeypatch.setattr(database, "get_mongo_client", lambda: client)
    monkeypatch.setattr(database, "get_database", lambda: db)

    yield db

    client.drop_database(test_db_name)


@pytest.fixture
def root_record(mongo_db):
    mongo_db["_Root"].insert_one(
        {
            "identifier": "initializer",
            "jwtSecret": JWT_SECRET,
            "gmailAddress": "quizzer@example.com",
            "quizSetVersion": "1.0.0",
        }
    )
    return mongo_db["_Root"].find_one({"identifier": "initializer"})


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def context(root_record, mailer, tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WORDS_FILE", str(tmp_path / "words.txt"))
    return create_context(mailer=mailer)


@pytest.fixture
def app(context):
    return create_app(context)


@pytest.fixture
def socket_client(app):
    client = get_socketio(app).test_client(app)
    yield client
    if client.is_connected():
        client.disconnect()


@pytest.fixture
def register_user(context):
    """Create a user record directly in the store."""

    def _register(user_mail: str, password: str = "secret", verified: bool = True, admin: bool = False):
        context.store.upsert_user(
            user_mail,
            {"passwordHash": hash_password(password), "isMailVerified": verified},
        )
        if admin:
            context.store.grant_admin(user_mail)

    return _register
