"""Title normalization and similarity scoring."""

from __future__ import annotations

import re
import unicodedata
from difflib import SequenceMatcher
from typing import Iterable

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_LEADING_ARTICLE = re.compile(r"^(?:the|a|an)\s+")


def normalize_title(text: str) -> str:
    """Return a comparison form of ``text``.

    Accents are folded, ``&`` becomes ``and``, punctuation is dropped, and a leading
    English article is removed.
    """
    folded = unicodedata.normalize("NFKD", text)
    folded = "".join(char for char in folded if not unicodedata.combining(char))
    folded = folded.lower().replace("&", " and ")
    folded = _PUNCTUATION.sub(" ", folded.replace("_", " "))
    folded = _WHITESPACE.sub(" ", folded).strip()
    return _LEADING_ARTICLE.sub("", folded)


def similarity(left: str, right: str) -> float:
    """Return a 0..1 similarity ratio between two titles."""
    a = normalize_title(left)
    b = normalize_title(right)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


def best_similarity(query: str, titles: Iterable[str]) -> float:
    """Return the highest similarity of ``query`` against any of ``titles``."""
    return max((similarity(query, title) for title in titles if title), default=0.0)


__all__ = ["normalize_title", "similarity", "best_similarity"]
