"""Bilingual dictionaries and word scoring for Lang-Lines."""

from .models import WordEntry, MatchResult, ScoreBreakdown, LoadReport
from .index import DictionaryIndex
from .loader import (
    BUNDLED_DATA_DIR,
    DictionaryLoadError,
    dictionary_path,
    parse_document,
    load_dictionary,
    load_languages,
    sort_dictionary,
)
from .scoring import score, breakdown, score_match

__all__ = [
    # Models
    "WordEntry",
    "MatchResult",
    "ScoreBreakdown",
    "LoadReport",
    # Lookup
    "DictionaryIndex",
    # Loading
    "BUNDLED_DATA_DIR",
    "DictionaryLoadError",
    "dictionary_path",
    "parse_document",
    "load_dictionary",
    "load_languages",
    "sort_dictionary",
    # Scoring
    "score",
    "breakdown",
    "score_match",
]
