"""In-memory mirror of every quiz collection plus the content version token."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Mapping, Tuple

from quizzer.errors import ValidationError
from quizzer.models import DEFAULT_QUIZ_SET_VERSION, RootConfig, WordEntry
from quizzer.services.content_store import RESERVED_COLLECTIONS, ContentStore
from quizzer.utils.text import merge_meanings, normalize_meaning, normalize_word

_LOGGER = logging.getLogger(__name__)


class QuizCache:
    """
    Derived copy of the quiz collections held in the store.

    Writes go through the store first and are mirrored here only once the
    store accepted them. Readers get the live mapping and must not mutate it.
    """

    def __init__(self, store: ContentStore) -> None:
        self._store = store
        self._quiz_set: Dict[str, Dict[str, str]] = {}
        self._version = DEFAULT_QUIZ_SET_VERSION
        self._seed_lock = threading.Lock()

    def load(self, root: RootConfig, collections: Mapping[str, Mapping[str, str]]) -> None:
        """Seed the cache from the store enumeration returned by ``connect()``."""
        self._quiz_set = {name: dict(words) for name, words in collections.items()}
        self._version = root.quiz_set_version
        _LOGGER.info(
            "Quiz cache loaded: %d collections, version %s",
            len(self._quiz_set),
            self._version,
        )

    def get_version(self) -> str:
        return self._version

    def get_snapshot(self) -> Dict[str, Dict[str, str]]:
        return self._quiz_set

    def get_meaning(self, collection_name: str, word: str) -> str | None:
        return self._quiz_set.get(collection_name, {}).get(word)

    @staticmethod
    def _check_collection_name(collection_name: str) -> None:
        if collection_name in RESERVED_COLLECTIONS:
            raise ValidationError(f"{collection_name!r} is not a quiz collection")

    def insert_word(self, collection_name: str, word: str, meaning: str) -> WordEntry:
        """
        Insert ``word`` into ``collection_name``, accumulating meanings.

        Raises:
            ValidationError: if ``collection_name`` is a reserved collection.
            StoreError: if the store rejected the write; the cache is left as is.
        """
        self._check_collection_name(collection_name)

        collection = self._quiz_set.get(collection_name)
        if collection is None:
            # Unknown to the cache; the store may still hold it.
            loaded = self._store.read_collection(collection_name)
            with self._seed_lock:
                collection = self._quiz_set.setdefault(collection_name, loaded)

        word = normalize_word(word)
        meaning = merge_meanings(collection.get(word), normalize_meaning(meaning))

        self._store.upsert_word(collection_name, word, meaning)
        collection[word] = meaning
        return WordEntry(collection_name, word, meaning)

    def insert_words(self, collection_name: str, pairs: Iterable[Tuple[str, str]]) -> List[WordEntry]:
        """Insert pairs one after the other, stopping at the first store failure."""
        self._check_collection_name(collection_name)
        inserted: List[WordEntry] = []
        for word, meaning in pairs:
            inserted.append(self.insert_word(collection_name, word, meaning))
        return inserted
