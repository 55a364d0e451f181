"""Word scoring: letters times language bonus, then tile multipliers."""

from typing import Optional, Sequence

from .models import MatchResult, ScoreBreakdown


# Points per letter for a word found in the priority (learning) language
PRIORITY_LANGUAGE_BONUS = 3
# Points per letter for a word found in any other registered language
OTHER_LANGUAGE_BONUS = 1


def score(
    word: str,
    matched_lang: str,
    priority_lang: Optional[str],
    multipliers: Sequence[int] = (),
) -> int:
    """
    Score a matched word.

    base = len(word) * 3 if it matched in the priority language, else * 1.
    Each multiplier tile used then multiplies the running total.
    """
    return breakdown(word, matched_lang, priority_lang, multipliers).total


def breakdown(
    word: str,
    matched_lang: str,
    priority_lang: Optional[str],
    multipliers: Sequence[int] = (),
) -> ScoreBreakdown:
    """Score a matched word, keeping the intermediate values for display."""
    bonus = PRIORITY_LANGUAGE_BONUS if matched_lang == priority_lang else OTHER_LANGUAGE_BONUS
    base = len(word) * bonus

    total = base
    for m in multipliers:
        total *= m

    return ScoreBreakdown(
        word=word.upper(),
        matched_language=matched_lang,
        base=base,
        multipliers=list(multipliers),
        total=total,
    )


def score_match(match: MatchResult, priority_lang: Optional[str]) -> ScoreBreakdown:
    """Breakdown for a dictionary match, using the multipliers it carries."""
    return breakdown(match.word, match.matched_language, priority_lang, match.multipliers)
