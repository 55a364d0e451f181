"""Data models for dictionary lookup and scoring."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict


class WordEntry(BaseModel):
    """A dictionary entry: a definition plus translations keyed by language code."""
    model_config = ConfigDict(populate_by_name=True)

    definition: str = Field(default="", alias="def")
    translations: Dict[str, str] = Field(default_factory=dict)

    def translation(self, lang: str) -> Optional[str]:
        """Translation into `lang`, if the entry carries one."""
        return self.translations.get(lang)


class MatchResult(BaseModel):
    """Result of a successful dictionary lookup."""
    word: str
    matched_language: str
    entry: WordEntry
    multipliers: List[int] = Field(default_factory=list)


class ScoreBreakdown(BaseModel):
    """Points for one word, with the multipliers kept in selection order."""
    word: str
    matched_language: str
    base: int
    multipliers: List[int] = Field(default_factory=list)
    total: int

    def describe(self) -> str:
        """Display form such as '+3 *2 *3 = 18', or '+3' without multipliers."""
        if not self.multipliers:
            return f"+{self.base}"
        mults = "".join(f" *{m}" for m in self.multipliers)
        return f"+{self.base}{mults} = {self.total}"

    def headline(self) -> str:
        """Word, language and score, e.g. 'CASA (ES) +12 *2 = 24'."""
        return f"{self.word} ({self.matched_language.upper()}) {self.describe()}"


class LoadReport(BaseModel):
    """Outcome of loading a set of dictionary sources."""
    loaded: Dict[str, int] = Field(default_factory=dict)  # lang -> word count
    failed: Dict[str, str] = Field(default_factory=dict)  # lang -> error message

    @property
    def ok(self) -> bool:
        return not self.failed
