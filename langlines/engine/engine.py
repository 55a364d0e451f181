import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from .grid import GridState
from .models import GameConfig, PointerEvent, Selection, EngineEvent, WordOutcome, ResolutionReport
from .resolver import Clock, MatchResolver, AsyncioClock, EngineBusyError, lines_cleared, is_grid_empty
from .selection import SelectionTracker
from ..lexicon import DictionaryIndex, LoadReport, BUNDLED_DATA_DIR, dictionary_path, load_languages
from ..lexicon.scoring import score_match

log = logging.getLogger(__name__)

EventListener = Callable[[EngineEvent], None]


class PuzzleEngine:
    """
    Top-level puzzle engine.

    Routes pointer events through the selection tracker, validates committed
    words against the dictionaries, scores matches and runs the match
    resolution. While a resolution is pending the engine is busy: new
    selections, reloads and shuffles are ignored rather than queued.

    Matches schedule their resolution as a task on the running asyncio loop,
    so push_event must be called from inside one when a match is possible.

    Attributes:
        config: Round configuration
        grid: The tile grid
        index: Dictionaries used for validation
        tracker: Gesture selection state machine
        resolver: Applies matches to the grid
    """

    def __init__(
        self,
        config: GameConfig,
        grid: GridState,
        index: DictionaryIndex,
        clock: Optional[Clock] = None,
    ):
        self.config = config
        self.grid = grid
        self.index = index
        self.clock = clock or AsyncioClock()
        self.tracker = SelectionTracker(grid, on_change=self._on_selection_change)
        self.resolver = MatchResolver(
            grid,
            clock=self.clock,
            gravity_step_seconds=config.gravity_step_seconds,
            compaction_seconds=config.compaction_seconds,
        )
        self._listeners: List[EventListener] = []
        self._interactive = True
        self._busy = False
        self._resolution: Optional[asyncio.Task] = None

    @classmethod
    def create(
        cls,
        config: Optional[GameConfig] = None,
        index: Optional[DictionaryIndex] = None,
        clock: Optional[Clock] = None,
        **config_kwargs: Any
    ) -> "PuzzleEngine":
        """
        Factory method to create an engine with a freshly generated grid.

        Args:
            config: Optional GameConfig instance
            index: Dictionaries to validate against (empty if not given)
            clock: Clock for physics phase timing (real time if not given)
            **config_kwargs: Config parameters if config not provided

        Returns:
            Configured PuzzleEngine instance
        """
        if config is None:
            config = GameConfig(**config_kwargs)
        grid = GridState.create(config)
        return cls(config, grid, index if index is not None else DictionaryIndex(), clock)

    def start(self) -> None:
        """
        Start a round: regenerate the grid and enable input.

        Raises:
            EngineBusyError: If a match resolution is still pending
        """
        if self._busy:
            raise EngineBusyError("Cannot start a round while a match resolves")
        self.tracker.cancel()
        self.grid.reload()
        self._interactive = True
        self._emit(EngineEvent(kind="grid_reloaded"))

    # ------------------------------------------------------------------
    # Notifications

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register a listener for engine events. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _emit(self, event: EngineEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _on_selection_change(self, word: str, multipliers: List[int]) -> None:
        preview = None
        if len(word) >= self.config.min_preview_length:
            match = self.index.check_word(word, self.config.learning_lang, multipliers)
            if match:
                preview = score_match(match, self.config.learning_lang)
        self._emit(EngineEvent(
            kind="selection_changed",
            word=word,
            multipliers=multipliers,
            preview=preview,
        ))

    # ------------------------------------------------------------------
    # State

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def interactive(self) -> bool:
        return self._interactive

    def lines_cleared(self) -> int:
        return lines_cleared(self.grid)

    def is_grid_empty(self) -> bool:
        return is_grid_empty(self.grid)

    def render(self) -> str:
        return self.grid.render()

    def get_state(self) -> dict:
        return {
            "interactive": self._interactive,
            "busy": self._busy,
            "selection": self.tracker.word,
            "lines_cleared": self.lines_cleared(),
            "grid_empty": self.is_grid_empty(),
            "languages": self.index.languages,
            "grid": self.grid.get_state(),
        }

    # ------------------------------------------------------------------
    # Dictionaries

    async def load_dictionaries(self, data_dir: Optional[str | Path] = None) -> LoadReport:
        """
        Load the home and learning dictionaries, home language first.

        Failures are reported in the returned LoadReport; the engine keeps
        working with whatever did load.
        """
        data_dir = data_dir or self.config.dictionary_dir or BUNDLED_DATA_DIR
        sources = {lang: dictionary_path(data_dir, lang) for lang in self.config.languages}
        report = await load_languages(self.index, sources)
        if report.ok:
            log.info("Dictionaries loaded: %s", ", ".join(report.loaded))
        return report

    async def reload_dictionaries(self, data_dir: Optional[str | Path] = None) -> LoadReport:
        """Drop every dictionary, then load them again."""
        log.info("Reloading dictionaries...")
        self.index.clear()
        return await self.load_dictionaries(data_dir)

    # ------------------------------------------------------------------
    # Input

    def set_interactive(self, interactive: bool) -> None:
        """
        Enable or disable input.

        Disabling always cancels any in-progress selection and emits an empty
        selection_changed event, however often it is called.
        """
        changed = interactive != self._interactive
        self._interactive = interactive
        if not interactive:
            self.tracker.cancel()
        if changed:
            self._emit(EngineEvent(kind="interactive_changed", interactive=interactive))

    def push_event(self, event: PointerEvent) -> Optional[WordOutcome]:
        """
        Feed one pointer event.

        Returns:
            A WordOutcome when the event committed a selection, else None
        """
        if not self._interactive:
            return None
        if event.kind == "down" and self._busy:
            log.debug("Ignoring new selection while a match resolves")
            return None

        selection = self.tracker.push_event(event)
        if selection is None:
            return None
        return self.submit(selection)

    def submit(self, selection: Selection) -> WordOutcome:
        """
        Validate and score a committed selection, starting resolution on a match.

        Raises:
            RuntimeError: If the selection matches but no asyncio loop is
                running; nothing is scored or removed in that case
        """
        if len(selection.word) < self.config.min_word_length:
            return self._reject(selection, f"shorter than {self.config.min_word_length} letters")

        match = self.index.check_word(
            selection.word,
            self.config.learning_lang,
            selection.multipliers,
        )
        log.debug(
            "Selected word: %s, Match: %s, Multipliers: %s",
            selection.word,
            match.matched_language if match else None,
            ",".join(str(m) for m in selection.multipliers),
        )
        if match is None:
            return self._reject(selection, "not in any dictionary")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError("Matches resolve on the running asyncio loop; none is running") from None

        breakdown = score_match(match, self.config.learning_lang)
        outcome = WordOutcome(
            selection=selection,
            matched=True,
            matched_language=match.matched_language,
            score=breakdown,
        )
        self._emit(EngineEvent(
            kind="word_matched",
            word=breakdown.word,
            multipliers=breakdown.multipliers,
            score=breakdown,
        ))
        self._start_resolution(loop, selection)
        return outcome

    def _reject(self, selection: Selection, reason: str) -> WordOutcome:
        self._emit(EngineEvent(
            kind="word_rejected",
            word=selection.word,
            multipliers=selection.multipliers,
        ))
        return WordOutcome(selection=selection, reason=reason)

    # ------------------------------------------------------------------
    # Resolution

    def _start_resolution(self, loop: asyncio.AbstractEventLoop, selection: Selection) -> None:
        self._busy = True
        self._resolution = loop.create_task(self._resolve(selection))

    def _on_phase(self, phase: str, report: ResolutionReport) -> None:
        self._emit(EngineEvent(kind=phase, report=report.model_copy(deep=True)))

    async def _resolve(self, selection: Selection) -> ResolutionReport:
        try:
            report = await self.resolver.commit_match(selection.path, on_phase=self._on_phase)
        finally:
            self._busy = False
            self._resolution = None
        self._emit(EngineEvent(kind="resolution_complete", word=selection.word, report=report))
        return report

    async def wait_until_idle(self) -> Optional[ResolutionReport]:
        """Wait for a pending resolution, if any, to finish completely."""
        task = self._resolution
        if task is None:
            return None
        return await task

    # ------------------------------------------------------------------
    # Structural requests

    def _can_restructure(self, action: str) -> bool:
        if self._busy:
            log.warning("Ignoring %s while a match resolves", action)
            return False
        if not self._interactive:
            log.debug("Ignoring %s while input is disabled", action)
            return False
        if self.tracker.state == "selecting":
            self.tracker.cancel()
        return True

    def reload(self) -> bool:
        """Replace every tile with a fresh grid. Returns False if ignored."""
        if not self._can_restructure("reload"):
            return False
        self.grid.reload()
        log.info("Grid reloaded")
        self._emit(EngineEvent(kind="grid_reloaded"))
        return True

    def shuffle(self) -> bool:
        """Shuffle the remaining tiles in place. Returns False if ignored."""
        if not self._can_restructure("shuffle"):
            return False
        self.grid.shuffle()
        log.info("Grid shuffled")
        self._emit(EngineEvent(kind="grid_shuffled"))
        return True
