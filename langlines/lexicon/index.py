"""Per-language word stores with priority-language lookup."""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .models import WordEntry, MatchResult

log = logging.getLogger(__name__)


class DictionaryIndex:
    """
    Holds one word -> entry store per registered language.

    Lookups try the priority language first, then every other language in
    the order it was first registered. Keys are stored uppercased.
    """

    def __init__(self):
        self._order: List[str] = []
        self._stores: Dict[str, Dict[str, WordEntry]] = {}

    @property
    def languages(self) -> List[str]:
        """Registered language codes in registration order."""
        return list(self._order)

    def register_language(self, lang: str, entries: Mapping[str, WordEntry | dict]) -> None:
        """
        Register (or replace) the store for `lang`.

        Plain dict values are validated into WordEntry. A replaced language
        keeps its original position in the fallback order.

        Raises:
            pydantic.ValidationError: If a value is not a valid entry
        """
        store = {
            word.upper(): entry if isinstance(entry, WordEntry) else WordEntry.model_validate(entry)
            for word, entry in entries.items()
        }
        if lang not in self._stores:
            self._order.append(lang)
        self._stores[lang] = store
        log.info("Registered %s words for lang: %s", f"{len(store):,}", lang)

    def has_language(self, lang: str) -> bool:
        return lang in self._stores

    def word_count(self, lang: str) -> int:
        return len(self._stores.get(lang, {}))

    def check_word(
        self,
        word: str,
        priority_lang: Optional[str] = None,
        multipliers: Sequence[int] = (),
    ) -> Optional[MatchResult]:
        """
        Look up `word`, preferring `priority_lang` when it is registered.

        Returns None when no registered dictionary contains the word, including
        when nothing has been loaded yet.
        """
        upper = word.upper()
        if not upper:
            return None

        if priority_lang is not None:
            entry = self._stores.get(priority_lang, {}).get(upper)
            if entry is not None:
                return MatchResult(
                    word=upper,
                    matched_language=priority_lang,
                    entry=entry,
                    multipliers=list(multipliers),
                )

        for lang in self._order:
            if lang == priority_lang:
                continue
            entry = self._stores[lang].get(upper)
            if entry is not None:
                return MatchResult(
                    word=upper,
                    matched_language=lang,
                    entry=entry,
                    multipliers=list(multipliers),
                )

        return None

    def get_entry(self, word: str, lang: str) -> Optional[WordEntry]:
        """Direct lookup in a single language."""
        return self._stores.get(lang, {}).get(word.upper())

    def clear(self) -> None:
        """Drop every registered language."""
        self._order.clear()
        self._stores.clear()
