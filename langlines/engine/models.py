"""
Pydantic models for the puzzle engine.

This module contains the data models (configuration, cells, pointer events,
notifications, resolution and round results) used throughout the engine. The
logic classes (GridState, SelectionTracker, MatchResolver, PuzzleEngine,
RoundSession) live in their own modules.
"""

import string
from typing import Dict, List, Optional, Literal, Tuple
from pydantic import BaseModel, Field, model_validator

from ..lexicon.models import ScoreBreakdown


# Type aliases
Position = Tuple[int, int]  # (row, col)
PointerKind = Literal["down", "move", "up"]
EventKind = Literal[
    "selection_changed",
    "word_matched",
    "word_rejected",
    "gravity_started",
    "compaction_started",
    "resolution_complete",
    "grid_reloaded",
    "grid_shuffled",
    "interactive_changed",
]


class GameConfig(BaseModel):
    """Configuration for a round of play."""
    rows: int = Field(default=8, ge=1)
    cols: int = Field(default=8, ge=1)
    home_lang: str = "en"
    learning_lang: str = "es"
    dictionary_dir: Optional[str] = None  # None -> bundled sample dictionaries
    alphabet: str = string.ascii_uppercase
    vowels: str = "AEIOU"
    vowel_ratio: float = Field(default=0.4, ge=0.0, le=1.0)
    special_tiles: List[int] = Field(default_factory=lambda: [2, 2, 2, 3, 3])
    gravity_step_seconds: float = Field(default=0.1, ge=0.0)  # per slot fallen
    compaction_seconds: float = Field(default=0.2, ge=0.0)
    min_word_length: int = Field(default=1, ge=1)
    min_preview_length: int = Field(default=3, ge=1)
    round_seconds: Optional[float] = Field(default=None, gt=0.0)
    round_number: int = Field(default=1, ge=1)
    starting_score: int = Field(default=0, ge=0)
    seed: Optional[int] = None

    @model_validator(mode="after")
    def _check_consistency(self) -> "GameConfig":
        self.alphabet = self.alphabet.upper()
        self.vowels = self.vowels.upper()
        if self.home_lang == self.learning_lang:
            raise ValueError("home_lang and learning_lang must differ")
        if any(v not in self.alphabet for v in self.vowels):
            raise ValueError(f"vowels '{self.vowels}' must all be in the alphabet")
        if self.vowel_ratio > 0 and not self.vowels:
            raise ValueError("vowels must not be empty when vowel_ratio is above 0")
        if not self.consonants:
            raise ValueError("alphabet must contain at least one consonant")
        if any(m not in (2, 3) for m in self.special_tiles):
            raise ValueError("special tile multipliers must be 2 or 3")
        if self.rows * self.cols < len(self.special_tiles):
            raise ValueError(
                f"A {self.rows}x{self.cols} grid cannot hold "
                f"{len(self.special_tiles)} special tiles"
            )
        return self

    @property
    def consonants(self) -> str:
        return "".join(c for c in self.alphabet if c not in self.vowels)

    @property
    def languages(self) -> List[str]:
        """Languages in registration order: home first, then learning."""
        return [self.home_lang, self.learning_lang]

    def other_language(self, lang: str) -> str:
        return self.learning_lang if lang == self.home_lang else self.home_lang


class Tile(BaseModel):
    """A letter tile. Tiles move between cells; their content never changes."""
    tile_id: int
    letter: str = Field(..., min_length=1)
    multiplier: int = Field(default=1, ge=1, le=3)


class Cell(BaseModel):
    """One fixed grid position, either empty or holding exactly one tile."""
    row: int
    col: int
    tile: Optional[Tile] = None

    @property
    def position(self) -> Position:
        return (self.row, self.col)

    @property
    def occupied(self) -> bool:
        return self.tile is not None

    @property
    def letter(self) -> Optional[str]:
        return self.tile.letter if self.tile else None

    @property
    def multiplier(self) -> int:
        return self.tile.multiplier if self.tile else 1


class PointerEvent(BaseModel):
    """
    A pointer event already resolved to a cell.

    `row`/`col` are None when the pointer is not within tolerance of any cell.
    """
    kind: PointerKind
    row: Optional[int] = None
    col: Optional[int] = None

    @property
    def position(self) -> Optional[Position]:
        if self.row is None or self.col is None:
            return None
        return (self.row, self.col)

    @classmethod
    def down(cls, row: int, col: int) -> "PointerEvent":
        return cls(kind="down", row=row, col=col)

    @classmethod
    def move(cls, row: Optional[int], col: Optional[int]) -> "PointerEvent":
        return cls(kind="move", row=row, col=col)

    @classmethod
    def up(cls) -> "PointerEvent":
        return cls(kind="up")


class Selection(BaseModel):
    """A committed gesture: the traced word and the multipliers it crossed."""
    word: str
    multipliers: List[int] = Field(default_factory=list)  # only factors > 1, in order
    path: List[Position] = Field(default_factory=list)


class MoveRecord(BaseModel):
    """One tile moved by gravity or compaction."""
    tile_id: int
    source: Position
    target: Position
    distance: int  # slots travelled


class ResolutionReport(BaseModel):
    """Everything a match resolution did, for presentation and metrics."""
    cleared: List[Position] = Field(default_factory=list)
    gravity_moves: List[MoveRecord] = Field(default_factory=list)
    compaction_moves: List[MoveRecord] = Field(default_factory=list)
    gravity_seconds: float = 0.0
    compaction_seconds: float = 0.0
    lines_cleared: int = 0
    grid_empty: bool = False


class EngineEvent(BaseModel):
    """Notification pushed to presentation-layer subscribers."""
    kind: EventKind
    word: str = ""
    multipliers: List[int] = Field(default_factory=list)
    preview: Optional[ScoreBreakdown] = None
    score: Optional[ScoreBreakdown] = None
    report: Optional[ResolutionReport] = None
    interactive: Optional[bool] = None


class WordOutcome(BaseModel):
    """Result of committing a selection against the dictionaries."""
    selection: Selection
    matched: bool = False
    matched_language: Optional[str] = None
    score: Optional[ScoreBreakdown] = None
    reason: str = ""  # why an unmatched word was rejected


class FoundWord(BaseModel):
    """A word scored during a round."""
    word: str
    lang: str
    score: int
    definition: str = ""
    translation: Optional[str] = None
    trans_def: Optional[str] = None


class RoundResult(BaseModel):
    """Result of a finished round."""
    round: int
    score: int = 0
    found_words: List[FoundWord] = Field(default_factory=list)
    lines_cleared: int = 0
    goal_met: bool = False
    home_lang: str = ""
    learning_lang: str = ""
    end_reason: str = ""
    started_at: str = ""
    ended_at: str = ""
    duration_seconds: float = 0.0

    def next_round_config(self, config: GameConfig) -> GameConfig:
        """
        Configuration for the following round, carrying the score forward.

        Raises:
            ValueError: If the round goal was not met
        """
        if not self.goal_met:
            raise ValueError(f"Round {self.round} goal not met; retry instead")
        return config.model_copy(update={
            "round_number": self.round + 1,
            "starting_score": self.score,
        })

    def retry_config(self, config: GameConfig) -> GameConfig:
        """Configuration for replaying this round from a zero score."""
        return config.model_copy(update={
            "round_number": self.round,
            "starting_score": 0,
        })

    def summary(self) -> Dict:
        return {
            "round": self.round,
            "score": self.score,
            "words": len(self.found_words),
            "lines_cleared": self.lines_cleared,
            "goal_met": self.goal_met,
        }
