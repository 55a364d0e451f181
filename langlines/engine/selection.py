"""
Gesture selection state machine.

Turns a stream of pointer events over a GridState into an ordered path of
adjacent occupied cells:

    Idle --down on occupied cell--> Selecting
    Selecting --move onto new adjacent cell--> Selecting (extend)
    Selecting --move onto second-to-last cell--> Selecting (retract)
    Selecting --up--> Idle (commit)

Anything else (out of bounds, empty cell, non-adjacent cell, re-entering an
older cell) is ignored without changing state.
"""

import logging
from typing import Callable, List, Literal, Optional

from .grid import GridState
from .models import PointerEvent, Selection, Position

log = logging.getLogger(__name__)

TrackerState = Literal["idle", "selecting"]
SelectionListener = Callable[[str, List[int]], None]


def is_adjacent(a: Position, b: Position) -> bool:
    """True if two cells are within one step (Chebyshev distance <= 1)."""
    return abs(a[0] - b[0]) <= 1 and abs(a[1] - b[1]) <= 1


class SelectionTracker:
    """Builds a selection path from pointer events; see the module docstring."""

    def __init__(self, grid: GridState, on_change: Optional[SelectionListener] = None):
        self.grid = grid
        self.on_change = on_change
        self._path: List[Position] = []

    @property
    def state(self) -> TrackerState:
        return "selecting" if self._path else "idle"

    @property
    def path(self) -> List[Position]:
        return list(self._path)

    @property
    def word(self) -> str:
        return "".join(self.grid.tile_at(r, c).letter for r, c in self._path)

    @property
    def multipliers(self) -> List[int]:
        """Factors greater than 1 crossed so far, in selection order."""
        factors = [self.grid.tile_at(r, c).multiplier for r, c in self._path]
        return [m for m in factors if m > 1]

    def push_event(self, event: PointerEvent) -> Optional[Selection]:
        """
        Feed one pointer event.

        Returns:
            The committed Selection on pointer-up while selecting, else None
        """
        if event.kind == "down":
            self.begin(event.position)
        elif event.kind == "move":
            self.enter(event.position)
        elif event.kind == "up":
            return self.commit()
        return None

    def begin(self, pos: Optional[Position]) -> bool:
        """Start a new path at `pos` if it holds a tile. Replaces any open path."""
        if pos is None or not self.grid.is_occupied(*pos):
            return False
        self._path = [pos]
        self._notify()
        return True

    def enter(self, pos: Optional[Position]) -> bool:
        """Handle the pointer entering a cell while selecting."""
        if not self._path or pos is None or not self.grid.is_occupied(*pos):
            return False

        # Backtracking only ever undoes the last step
        if len(self._path) >= 2 and pos == self._path[-2]:
            self._path.pop()
            self._notify()
            return True

        if pos in self._path or not is_adjacent(pos, self._path[-1]):
            return False

        self._path.append(pos)
        self._notify()
        return True

    def commit(self) -> Optional[Selection]:
        """End the gesture, returning the traced word. Idle trackers return None."""
        if not self._path:
            return None
        selection = Selection(word=self.word, multipliers=self.multipliers, path=self.path)
        self._path = []
        self._notify()
        log.debug("Committed selection %s via %s", selection.word, selection.path)
        return selection

    def cancel(self) -> None:
        """Drop any in-progress path. Always notifies with an empty selection."""
        self._path = []
        self._notify()

    def _notify(self) -> None:
        if self.on_change:
            self.on_change(self.word, self.multipliers)
