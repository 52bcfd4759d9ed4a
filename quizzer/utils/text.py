"""Text normalization for quiz words and meanings."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union

_LOGGER = logging.getLogger(__name__)

MEANING_SEPARATOR = " / "

# A run of punctuation glued to the next token gets a trailing space.
_MEANING_PUNCTUATION = re.compile(r"([^A-Za-z0-9\s]+)(?=\S)")
_WORD_PUNCTUATION = re.compile(r"([^A-Za-z0-9\s-]+)(?=\S)")


def normalize_meaning(meaning: str) -> str:
    """Trim the meaning and put a space after punctuation (``a,b`` -> ``a, b``)."""
    return _MEANING_PUNCTUATION.sub(r"\1 ", meaning.strip()).strip()


def normalize_word(word: str) -> str:
    """Like :func:`normalize_meaning`, but hyphens count as part of the word."""
    return _WORD_PUNCTUATION.sub(r"\1 ", word.strip()).strip()


def merge_meanings(existing: str | None, meaning: str) -> str:
    """
    Accumulate ``meaning`` onto ``existing``.

    Meanings are joined with ``" / "`` unless the new meaning equals the
    existing value ignoring case.
    """
    if not existing:
        return meaning

    folded = meaning.casefold()
    if existing.casefold() == folded:
        return existing
    return f"{existing}{MEANING_SEPARATOR}{meaning}"


def iter_word_meaning_lines(lines: Iterable[str]) -> Iterator[Tuple[str, str]]:
    """Yield ``(word, meaning)`` pairs from ``word: meaning`` lines."""
    for number, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        word, sep, meaning = line.partition(":")
        word = word.strip()
        meaning = meaning.strip()
        if not sep or not word or not meaning:
            _LOGGER.warning("Skipping malformed word list line %d: %r", number, line)
            continue
        yield word, meaning


def read_word_meaning_file(path: Union[str, Path]) -> List[Tuple[str, str]]:
    """Read every ``(word, meaning)`` pair from a word list file."""
    with open(path, encoding="utf-8") as handle:
        return list(iter_word_meaning_lines(handle))
