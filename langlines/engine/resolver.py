"""
Match resolution: tile removal, gravity, then column compaction.

Both physics phases are timed. The data for a phase is applied at once, then
the resolver waits on its Clock for as long as the phase animation lasts, so
nothing downstream sees "resolved" before the presentation could have caught
up. Tests swap in InstantClock to skip the waiting.
"""

import asyncio
import logging
from typing import List, Protocol, Sequence

from .grid import GridState
from .models import MoveRecord, ResolutionReport, Position

log = logging.getLogger(__name__)


class EngineBusyError(RuntimeError):
    """A structural mutation was started while another one was in flight."""


class Clock(Protocol):
    async def sleep(self, seconds: float) -> None:
        ...


class AsyncioClock:
    """Real time, via asyncio.sleep."""

    async def sleep(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)


class InstantClock:
    """Returns immediately, recording each requested wait."""

    def __init__(self):
        self.waits: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.waits.append(seconds)
        # Yield once so other tasks observe the in-flight state
        await asyncio.sleep(0)

    @property
    def elapsed(self) -> float:
        return sum(self.waits)


def apply_gravity(grid: GridState) -> List[MoveRecord]:
    """
    Drop every tile in each column by the number of empty slots below it.

    Columns are independent and the vertical order of surviving tiles is
    preserved. A column without gaps is left untouched.
    """
    moves: List[MoveRecord] = []
    for col in range(grid.cols):
        empty_spots = 0
        for row in range(grid.rows - 1, -1, -1):
            tile = grid.tile_at(row, col)
            if tile is None:
                empty_spots += 1
            elif empty_spots > 0:
                target = (row + empty_spots, col)
                grid.move((row, col), target)
                moves.append(MoveRecord(
                    tile_id=tile.tile_id,
                    source=(row, col),
                    target=target,
                    distance=empty_spots,
                ))
    return moves


def compact_columns(grid: GridState) -> List[MoveRecord]:
    """
    Close fully empty columns by pulling columns in from the left.

    Scans right to left. Each empty column receives the whole of the nearest
    non-empty column to its left (rows unchanged); the emptied source column
    is handled when the scan reaches it.
    """
    moves: List[MoveRecord] = []
    for col in range(grid.cols - 1, 0, -1):
        if not grid.column_is_empty(col):
            continue

        source = next(
            (c for c in range(col - 1, -1, -1) if not grid.column_is_empty(c)),
            None,
        )
        if source is None:
            break  # nothing left of here holds tiles

        for row in range(grid.rows):
            tile = grid.tile_at(row, source)
            if tile is not None:
                grid.move((row, source), (row, col))
                moves.append(MoveRecord(
                    tile_id=tile.tile_id,
                    source=(row, source),
                    target=(row, col),
                    distance=col - source,
                ))
    return moves


def lines_cleared(grid: GridState) -> int:
    """Number of fully empty rows plus fully empty columns."""
    rows = sum(1 for r in range(grid.rows) if grid.row_is_empty(r))
    cols = sum(1 for c in range(grid.cols) if grid.column_is_empty(c))
    return rows + cols


def is_grid_empty(grid: GridState) -> bool:
    return all(not cell.occupied for cell in grid.iter_cells())


class MatchResolver:
    """
    Applies a committed match to the grid.

    Only one resolution may run at a time; `in_progress` stays True from the
    moment commit_match starts until compaction's wait has finished.
    """

    def __init__(
        self,
        grid: GridState,
        clock: Clock | None = None,
        gravity_step_seconds: float = 0.1,
        compaction_seconds: float = 0.2,
    ):
        self.grid = grid
        self.clock = clock or AsyncioClock()
        self.gravity_step_seconds = gravity_step_seconds
        self.compaction_seconds = compaction_seconds
        self.in_progress = False

    def remove_tiles(self, path: Sequence[Position]) -> List[Position]:
        cleared = []
        for row, col in path:
            if self.grid.remove(row, col) is not None:
                cleared.append((row, col))
        return cleared

    async def commit_match(self, path: Sequence[Position], on_phase=None) -> ResolutionReport:
        """
        Remove the matched tiles, then run gravity and compaction in turn.

        Args:
            path: Cells of the matched word
            on_phase: Optional callback(phase_name, report) fired as each
                physics phase starts

        Returns:
            ResolutionReport describing the moves and post-resolution metrics

        Raises:
            EngineBusyError: If another resolution is still running
        """
        if self.in_progress:
            raise EngineBusyError("A match resolution is already in progress")

        self.in_progress = True
        try:
            report = ResolutionReport(cleared=self.remove_tiles(path))

            report.gravity_moves = apply_gravity(self.grid)
            slowest = max((m.distance for m in report.gravity_moves), default=0)
            report.gravity_seconds = slowest * self.gravity_step_seconds
            if on_phase:
                on_phase("gravity_started", report)
            log.debug(
                "Gravity moved %d tiles, waiting %.2fs",
                len(report.gravity_moves), report.gravity_seconds,
            )
            if report.gravity_moves:
                await self.clock.sleep(report.gravity_seconds)

            report.compaction_moves = compact_columns(self.grid)
            if report.compaction_moves:
                report.compaction_seconds = self.compaction_seconds
            if on_phase:
                on_phase("compaction_started", report)
            log.debug(
                "Compaction moved %d tiles, waiting %.2fs",
                len(report.compaction_moves), report.compaction_seconds,
            )
            if report.compaction_moves:
                await self.clock.sleep(report.compaction_seconds)

            report.lines_cleared = lines_cleared(self.grid)
            report.grid_empty = is_grid_empty(self.grid)
            return report
        finally:
            self.in_progress = False
