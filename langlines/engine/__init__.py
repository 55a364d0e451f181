"""Puzzle engine for Lang-Lines."""

from .models import (
    GameConfig,
    Tile,
    Cell,
    Position,
    PointerEvent,
    Selection,
    MoveRecord,
    ResolutionReport,
    EngineEvent,
    WordOutcome,
    FoundWord,
    RoundResult,
)
from .grid import GridState
from .selection import SelectionTracker, is_adjacent
from .resolver import (
    MatchResolver,
    EngineBusyError,
    Clock,
    AsyncioClock,
    InstantClock,
    apply_gravity,
    compact_columns,
    lines_cleared,
    is_grid_empty,
)
from .engine import PuzzleEngine
from .rounds import RoundSession

__all__ = [
    "GameConfig",
    "Tile",
    "Cell",
    "Position",
    "PointerEvent",
    "Selection",
    "MoveRecord",
    "ResolutionReport",
    "EngineEvent",
    "WordOutcome",
    "FoundWord",
    "RoundResult",
    "GridState",
    "SelectionTracker",
    "is_adjacent",
    "MatchResolver",
    "EngineBusyError",
    "Clock",
    "AsyncioClock",
    "InstantClock",
    "apply_gravity",
    "compact_columns",
    "lines_cleared",
    "is_grid_empty",
    "PuzzleEngine",
    "RoundSession",
]
