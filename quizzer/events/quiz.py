"""Quiz content events: admin word insertion and version/snapshot queries."""

from __future__ import annotations

from typing import Any

from flask import current_app, request
from flask_socketio import SocketIO, emit

from quizzer.context import QuizzerContext
from quizzer.errors import StoreError, ValidationError
from quizzer.utils.text import read_word_meaning_file


def register(socketio: SocketIO, context: QuizzerContext) -> None:
    cache = context.cache
    identity = context.identity

    @socketio.on("addNewWord")
    def add_new_word(data: Any = None):
        # Unprivileged connections get no answer at all.
        if not identity.has_admin_privileges(request.sid):
            return
        if not isinstance(data, dict):
            return

        collection_name = data.get("collectionName")
        word = data.get("word")
        meaning = data.get("meaning")
        if not all(isinstance(value, str) for value in (collection_name, word, meaning)):
            return

        try:
            entry = cache.insert_word(collection_name, word, meaning)
        except ValidationError:
            return
        except StoreError:
            current_app.logger.error("Failed to insert word into %s", collection_name, exc_info=True)
            emit("addWordUnsuccessful", data)
            return

        emit("addWordSuccess", entry.to_payload())

    @socketio.on("addWordsFromFile")
    def add_words_from_file(data: Any = None):
        if not identity.has_admin_privileges(request.sid):
            return
        if not isinstance(data, dict):
            return

        collection_name = data.get("collectionName")
        if not isinstance(collection_name, str) or not collection_name:
            return

        try:
            pairs = read_word_meaning_file(context.words_file)
            inserted = cache.insert_words(collection_name, pairs)
        except ValidationError:
            return
        except (OSError, UnicodeDecodeError, StoreError):
            current_app.logger.error(
                "Failed to insert words from %s into %s",
                context.words_file,
                collection_name,
                exc_info=True,
            )
            emit("addWordsFromFileUnsuccessful")
            return

        emit("addWordsFromFileSuccess", {"collectionName": collection_name, "count": len(inserted)})

    @socketio.on("sendLatestQuizSetVersion")
    def send_latest_quiz_set_version(*_args):
        emit("latestQuizSetVersion", cache.get_version())

    @socketio.on("sendQuizSet")
    def send_quiz_set(*_args):
        emit(
            "latestQuizSet",
            {
                "quizSetVersion": cache.get_version(),
                "quizSet": cache.get_snapshot(),
            },
        )
