"""Matching of media files to metadata records."""

from .similarity import best_similarity, normalize_title, similarity
from .models import Match, MatchReport
from .engine import MatchEngine

__all__ = [
    "Match",
    "MatchEngine",
    "MatchReport",
    "best_similarity",
    "normalize_title",
    "similarity",
]
