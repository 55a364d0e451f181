import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .engine import PuzzleEngine
from .models import GameConfig, EngineEvent, FoundWord, RoundResult
from .resolver import Clock
from ..lexicon import DictionaryIndex, ScoreBreakdown

log = logging.getLogger(__name__)


class RoundSession(BaseModel):
    """
    One timed round of play on top of a PuzzleEngine.

    Keeps the running score and the words found, and finalizes the round when
    the timer runs out, when asked to, or when a match leaves the grid empty.
    The round goal is to clear at least as many lines as the round number.

    Attributes:
        engine: The puzzle engine for this round
        config: Round configuration
        score: Running score, starting from the carried-over score
        found_words: Matched words in the order they were found
        is_complete: Whether the round has been finalized
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    engine: PuzzleEngine
    config: GameConfig
    score: int = 0
    found_words: List[FoundWord] = Field(default_factory=list)
    is_complete: bool = False
    end_reason: str = ""
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    def model_post_init(self, __context) -> None:
        """Listen to the engine for matches and completed resolutions."""
        self.engine.subscribe(self._on_engine_event)

    @classmethod
    def create(
        cls,
        config: Optional[GameConfig] = None,
        index: Optional[DictionaryIndex] = None,
        clock: Optional[Clock] = None,
    ) -> "RoundSession":
        """
        Factory method to create a round with a fresh engine and grid.

        Args:
            config: Round configuration (round number and carried score included)
            index: Dictionaries to validate against
            clock: Clock for physics phases and the round timer

        Returns:
            A new RoundSession, not yet started
        """
        config = config or GameConfig()
        engine = PuzzleEngine.create(config, index=index, clock=clock)
        return cls(engine=engine, config=config, score=config.starting_score)

    @property
    def round_number(self) -> int:
        return self.config.round_number

    @property
    def goal_met(self) -> bool:
        return self.engine.lines_cleared() >= self.round_number

    def start(self) -> None:
        """Generate the grid and open input for this round."""
        self.engine.start()
        self.score = self.config.starting_score
        self.found_words = []
        self.is_complete = False
        self.end_reason = ""
        self.started_at = datetime.now()
        self.ended_at = None
        log.info(
            "Round %d started (%s -> %s)",
            self.round_number, self.config.home_lang, self.config.learning_lang,
        )

    def _on_engine_event(self, event: EngineEvent) -> None:
        if self.is_complete:
            return
        if event.kind == "word_matched" and event.score:
            self.record_word(event.score)
        elif event.kind == "resolution_complete" and event.report and event.report.grid_empty:
            self._finalize("Grid cleared")

    def record_word(self, breakdown: ScoreBreakdown) -> FoundWord:
        """Add a matched word to the round, with its definition and translation."""
        lang = breakdown.matched_language
        other = self.config.other_language(lang)
        entry = self.engine.index.get_entry(breakdown.word, lang)

        translation = entry.translation(other) if entry else None
        trans_entry = self.engine.index.get_entry(translation, other) if translation else None

        found = FoundWord(
            word=breakdown.word,
            lang=lang,
            score=breakdown.total,
            definition=entry.definition if entry else "",
            translation=translation,
            trans_def=trans_entry.definition if trans_entry and trans_entry.definition else None,
        )
        self.found_words.append(found)
        self.score += breakdown.total
        log.info("%s scored, total %d", breakdown.headline(), self.score)
        return found

    async def finish(self, reason: str = "Finished") -> RoundResult:
        """
        End the round.

        Input is disabled first; a match still resolving is allowed to finish
        so its lines count. Calling finish again returns the same result.
        """
        if self.is_complete:
            return self.get_result()
        self.engine.set_interactive(False)
        await self.engine.wait_until_idle()
        if not self.is_complete:
            self._finalize(reason)
        return self.get_result()

    def _finalize(self, reason: str) -> None:
        self.engine.set_interactive(False)
        self.is_complete = True
        self.end_reason = reason
        self.ended_at = datetime.now()
        log.info(
            "Round %d finished: %s (score %d, lines %d, goal %s)",
            self.round_number, reason, self.score,
            self.engine.lines_cleared(), "met" if self.goal_met else "missed",
        )

    async def expire_after(self, seconds: Optional[float] = None) -> Optional[RoundResult]:
        """
        Round timer: wait on the engine clock, then finish the round.

        Returns None if no duration is configured.
        """
        seconds = seconds if seconds is not None else self.config.round_seconds
        if seconds is None:
            return None
        await self.engine.clock.sleep(seconds)
        return await self.finish("Time up")

    def get_result(self) -> RoundResult:
        """
        Get the round result.

        Returns:
            RoundResult with score, words and the goal check
        """
        ended_at = self.ended_at or datetime.now()
        duration = (ended_at - self.started_at).total_seconds() if self.started_at else 0.0
        return RoundResult(
            round=self.round_number,
            score=self.score,
            found_words=list(self.found_words),
            lines_cleared=self.engine.lines_cleared(),
            goal_met=self.goal_met,
            home_lang=self.config.home_lang,
            learning_lang=self.config.learning_lang,
            end_reason=self.end_reason,
            started_at=self.started_at.isoformat() if self.started_at else "",
            ended_at=ended_at.isoformat(),
            duration_seconds=duration,
        )

    def save_result(self, path: str | Path) -> None:
        """
        Save the round result to a JSON file.

        Args:
            path: Path to save the result file
        """
        result = self.get_result()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(result.model_dump(), f, indent=2, default=str)
