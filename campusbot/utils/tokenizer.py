"""
Tokenizer utilities for text normalization
Handles mixed Korean/English chat input
"""
import re
from typing import Iterable, List, Optional, Tuple, Union

from campusbot.core.errors import MalformedEntryError


# Anything that is not a-z, a Hangul syllable, a digit or whitespace
_NON_WORD = re.compile(r"[^a-z0-9가-힣\s]")
_WHITESPACE = re.compile(r"\s+")

MIN_TOKEN_LENGTH = 2


def normalize(text: Optional[str]) -> str:
    """
    Reduce raw text to its comparable form.
    Lowercases, replaces punctuation/symbols with spaces,
    collapses whitespace and trims. Never fails.
    """
    if not text:
        return ""
    text = _NON_WORD.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(normalized: str) -> List[str]:
    """
    Split normalized text into tokens.
    Drops tokens shorter than 2 characters, keeps order and duplicates.
    """
    return [t for t in normalized.split() if len(t) >= MIN_TOKEN_LENGTH]


def parse_keywords(raw: Union[str, Iterable[str], None], entry_id=None) -> Tuple[str, ...]:
    """
    Parse stored keyword data into an ordered keyword set.
    Accepts the comma-joined column value or an already split sequence.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        parts = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        parts = raw
    else:
        raise MalformedEntryError(
            f"Unsupported keyword data of type {type(raw).__name__}", entry_id=entry_id
        )

    keywords = []
    for part in parts:
        if not isinstance(part, str):
            raise MalformedEntryError(
                f"Keyword {part!r} is not a string", entry_id=entry_id
            )
        keyword = normalize(part)
        if keyword and keyword not in keywords:
            keywords.append(keyword)
    return tuple(keywords)
