"""Durable access to quiz words, user records and the root record in MongoDB."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Dict, Optional, Tuple

from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from quizzer import database
from quizzer.errors import StoreError, StoreUnavailable
from quizzer.models import DEFAULT_QUIZ_SET_VERSION, MailVerificationCredentials, RootConfig

_LOGGER = logging.getLogger(__name__)

ROOT_COLLECTION = "_Root"
USER_COLLECTION = "UserBase"
ADMIN_COLLECTION = "AdminBase"
RESERVED_COLLECTIONS = frozenset({ROOT_COLLECTION, USER_COLLECTION, ADMIN_COLLECTION})
ROOT_IDENTIFIER = "initializer"

QuizCollections = Dict[str, Dict[str, str]]


class ContentStore:
    """Adapter owning the document store connection.

    Quiz collections hold one document per word (``{word, meaning}``), the
    ``UserBase`` collection holds one document per ``userMail`` and the
    ``_Root`` collection holds the initializer record.
    """

    def __init__(self) -> None:
        self._database: Optional[Database] = None

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    def _db(self) -> Database:
        if self._database is None:
            raise StoreUnavailable("Document store is not connected")
        return self._database

    def _collection(self, name: str) -> Collection:
        return self._db()[name]

    def connect(self) -> Tuple[RootConfig, QuizCollections]:
        """
        Open the store connection and enumerate its contents.

        Returns:
            The root configuration record and, for every quiz collection,
            its full ``word -> meaning`` mapping.

        Raises:
            StoreUnavailable: if the store cannot be reached.
        """
        try:
            db = database.get_database()
            collection_names = db.list_collection_names()
        except PyMongoError as exc:
            raise StoreUnavailable(f"Unable to connect to document store: {exc}") from exc

        self._database = db
        root = RootConfig(credentials=None)
        collections: QuizCollections = {}

        try:
            for name in collection_names:
                if name == ROOT_COLLECTION:
                    root = self._read_root_config()
                elif name not in RESERVED_COLLECTIONS:
                    collections[name] = self._read_collection(name)
        except PyMongoError as exc:
            self._database = None
            raise StoreUnavailable(f"Unable to enumerate document store: {exc}") from exc

        _LOGGER.info("Connected to document store with %d quiz collections", len(collections))
        return root, collections

    def _read_root_config(self) -> RootConfig:
        document = self._collection(ROOT_COLLECTION).find_one({"identifier": ROOT_IDENTIFIER})
        if not document:
            _LOGGER.warning("Root collection has no initializer record")
            return RootConfig(credentials=None)
        return RootConfig(
            credentials=MailVerificationCredentials.from_document(document),
            quiz_set_version=document.get("quizSetVersion") or DEFAULT_QUIZ_SET_VERSION,
        )

    def _read_collection(self, name: str) -> Dict[str, str]:
        words: Dict[str, str] = {}
        for document in self._collection(name).find({}, {"_id": 0, "word": 1, "meaning": 1}):
            if "word" in document:
                words[document["word"]] = document.get("meaning", "")
        return words

    def read_collection(self, name: str) -> Dict[str, str]:
        try:
            return self._read_collection(name)
        except PyMongoError as exc:
            raise StoreError(f"Failed to read quiz collection {name!r}: {exc}") from exc

    def get_meaning(self, collection_name: str, word: str) -> Optional[str]:
        try:
            document = self._collection(collection_name).find_one({"word": word})
        except PyMongoError as exc:
            raise StoreError(f"Failed to read word {word!r}: {exc}") from exc
        return document.get("meaning") if document else None

    def upsert_word(self, collection_name: str, word: str, meaning: str) -> None:
        """
        Write or replace the document keyed by ``word``.

        The collection is created by MongoDB on first write.

        Raises:
            StoreError: if the write fails.
        """
        try:
            self._collection(collection_name).update_one(
                {"word": word},
                {"$set": {"word": word, "meaning": meaning}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise StoreError(f"Failed to upsert word {word!r} into {collection_name!r}: {exc}") from exc

    def get_user(self, user_mail: str) -> Optional[Dict[str, Any]]:
        """Return the ``UserBase`` document for ``user_mail`` or None."""
        try:
            document = self._collection(USER_COLLECTION).find_one({"userMail": user_mail})
        except PyMongoError as exc:
            raise StoreError(f"Failed to read user record: {exc}") from exc

        if document:
            # Convert ObjectId to string
            document["_id"] = str(document["_id"])
        return document

    def upsert_user(self, user_mail: str, fields: Dict[str, Any]) -> None:
        """
        Merge ``fields`` into the user document, creating it if absent.

        Fields not supplied are left untouched.
        """
        update = dict(fields)
        update["userMail"] = user_mail
        try:
            self._collection(USER_COLLECTION).update_one(
                {"userMail": user_mail},
                {"$set": update},
                upsert=True,
            )
        except PyMongoError as exc:
            raise StoreError(f"Failed to save user record: {exc}") from exc

    def is_admin(self, user_mail: str) -> bool:
        """Check membership of ``user_mail`` in the privileged ``AdminBase`` set."""
        try:
            return self._collection(ADMIN_COLLECTION).find_one({"userMail": user_mail}) is not None
        except PyMongoError as exc:
            raise StoreError(f"Failed to read admin membership: {exc}") from exc

    def grant_admin(self, user_mail: str) -> None:
        try:
            self._collection(ADMIN_COLLECTION).update_one(
                {"userMail": user_mail},
                {"$set": {"userMail": user_mail}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise StoreError(f"Failed to grant admin membership: {exc}") from exc

    def ensure_root_record(self) -> bool:
        """
        Create the initializer record with a fresh signing secret if missing.

        Returns:
            True if the record was created, False if it already existed.
        """
        document = {
            "identifier": ROOT_IDENTIFIER,
            "jwtSecret": secrets.token_urlsafe(48),
            "quizSetVersion": DEFAULT_QUIZ_SET_VERSION,
        }
        try:
            result = self._collection(ROOT_COLLECTION).update_one(
                {"identifier": ROOT_IDENTIFIER},
                {"$setOnInsert": document},
                upsert=True,
            )
        except PyMongoError as exc:
            raise StoreError(f"Failed to initialize root record: {exc}") from exc
        return result.upserted_id is not None

    def set_quiz_set_version(self, version: str) -> None:
        try:
            self._collection(ROOT_COLLECTION).update_one(
                {"identifier": ROOT_IDENTIFIER},
                {"$set": {"quizSetVersion": version}},
            )
        except PyMongoError as exc:
            raise StoreError(f"Failed to update quiz set version: {exc}") from exc

    def disconnect(self) -> None:
        """Release the store connection. Safe to call more than once."""
        self._database = None
        try:
            if database.close_mongo_connection():
                _LOGGER.info("DB Connection Closed")
        except PyMongoError:
            _LOGGER.error("Error While Closing DB Connection", exc_info=True)
