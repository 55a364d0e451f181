import itertools
import random
from typing import Dict, Iterator, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .models import GameConfig, Tile, Cell, Position


class GridState(BaseModel):
    """
    Owns the rows x cols table of cells and the tiles on it.

    Dimensions are fixed at creation. Cells never move; tiles move between
    them (gravity, compaction, shuffle) or are removed on a match. Nothing
    refills a cleared cell.

    Attributes:
        rows: Number of rows
        cols: Number of columns
        cells: Row-major table of Cell objects
        config: Alphabet, vowel weighting and special tile layout
        seed: Optional random seed for reproducibility
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    rows: int = Field(ge=1)
    cols: int = Field(ge=1)
    cells: List[List[Cell]] = Field(default_factory=list)
    config: GameConfig = Field(default_factory=GameConfig)
    seed: Optional[int] = None
    _rng: random.Random = None
    _ids: Iterator[int] = None

    def model_post_init(self, __context) -> None:
        """Initialize the random generator and an empty cell table."""
        self._rng = random.Random(self.seed)
        self._ids = itertools.count(1)
        if not self.cells:
            self.cells = [
                [Cell(row=r, col=c) for c in range(self.cols)]
                for r in range(self.rows)
            ]

    @classmethod
    def create(cls, config: Optional[GameConfig] = None, seed: Optional[int] = None) -> "GridState":
        """
        Factory method for a fully populated grid with special tiles assigned.

        Args:
            config: Grid configuration (defaults to an 8x8 grid)
            seed: Optional random seed; falls back to config.seed

        Returns:
            A new GridState instance
        """
        config = config or GameConfig()
        grid = cls(
            rows=config.rows,
            cols=config.cols,
            config=config,
            seed=seed if seed is not None else config.seed,
        )
        grid.initialize()
        grid.assign_special_tiles()
        return grid

    # ------------------------------------------------------------------
    # Access

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def cell(self, row: int, col: int) -> Optional[Cell]:
        """Cell at (row, col), or None when out of bounds."""
        if self.in_bounds(row, col):
            return self.cells[row][col]
        return None

    def tile_at(self, row: int, col: int) -> Optional[Tile]:
        cell = self.cell(row, col)
        return cell.tile if cell else None

    def is_occupied(self, row: int, col: int) -> bool:
        return self.tile_at(row, col) is not None

    def iter_cells(self) -> Iterator[Cell]:
        for row in self.cells:
            yield from row

    def occupied_cells(self) -> List[Cell]:
        return [c for c in self.iter_cells() if c.occupied]

    @property
    def tile_count(self) -> int:
        return len(self.occupied_cells())

    def column_is_empty(self, col: int) -> bool:
        return all(self.cells[r][col].tile is None for r in range(self.rows))

    def row_is_empty(self, row: int) -> bool:
        return all(cell.tile is None for cell in self.cells[row])

    def special_cells(self) -> List[Cell]:
        """Occupied cells whose tile multiplier is greater than 1."""
        return [c for c in self.occupied_cells() if c.multiplier > 1]

    # ------------------------------------------------------------------
    # Generation

    def random_letter(self) -> str:
        """Draw a vowel with probability vowel_ratio, otherwise a consonant."""
        if self._rng.random() < self.config.vowel_ratio:
            return self._rng.choice(self.config.vowels)
        return self._rng.choice(self.config.consonants)

    def new_tile(self, letter: Optional[str] = None, multiplier: int = 1) -> Tile:
        return Tile(
            tile_id=next(self._ids),
            letter=(letter or self.random_letter()).upper(),
            multiplier=multiplier,
        )

    def initialize(self) -> None:
        """Fill every cell with a fresh random tile of multiplier 1."""
        for cell in self.iter_cells():
            cell.tile = self.new_tile()

    def assign_special_tiles(self) -> None:
        """
        Reassign the multiplier tiles.

        Every tile is reset to multiplier 1, then distinct occupied cells are
        drawn without replacement and given the configured factors in order
        (by default three x2 tiles followed by two x3 tiles).
        """
        occupied = self.occupied_cells()
        for cell in occupied:
            cell.tile.multiplier = 1

        factors = self.config.special_tiles
        chosen = self._rng.sample(occupied, min(len(factors), len(occupied)))
        for cell, factor in zip(chosen, factors):
            cell.tile.multiplier = factor

    def reload(self) -> None:
        """Destroy every tile, then rebuild the grid and its special tiles."""
        self.clear()
        self.initialize()
        self.assign_special_tiles()

    def shuffle(self) -> None:
        """
        Redistribute the current tiles over the currently occupied cells.

        Tile count and each tile's letter and multiplier are unchanged; only
        positions change. Empty cells stay empty.
        """
        occupied = self.occupied_cells()
        tiles = [c.tile for c in occupied]
        self._rng.shuffle(tiles)
        for cell, tile in zip(occupied, tiles):
            cell.tile = tile

    # ------------------------------------------------------------------
    # Mutation

    def remove(self, row: int, col: int) -> Optional[Tile]:
        """Empty a cell, returning the tile that was there."""
        cell = self.cells[row][col]
        tile, cell.tile = cell.tile, None
        return tile

    def move(self, source: Position, target: Position) -> Tile:
        """
        Move the tile at `source` into the empty cell at `target`.

        Raises:
            ValueError: If source is empty or target is occupied
        """
        src = self.cells[source[0]][source[1]]
        dst = self.cells[target[0]][target[1]]
        if src.tile is None:
            raise ValueError(f"No tile at {source} to move")
        if dst.tile is not None:
            raise ValueError(f"Cannot move onto occupied cell {target}")
        dst.tile, src.tile = src.tile, None
        return dst.tile

    def clear(self) -> None:
        for cell in self.iter_cells():
            cell.tile = None

    def load_letters(self, rows: List[str]) -> None:
        """
        Replace the grid contents from a text layout.

        One string per row, one character per cell: '.' for an empty cell, a
        letter for a plain tile. Multipliers are reset to 1.

        Raises:
            ValueError: If the layout does not match the grid dimensions
        """
        if len(rows) != self.rows or any(len(r) != self.cols for r in rows):
            raise ValueError(f"Layout must be {self.rows} rows of {self.cols} cells")
        for r, line in enumerate(rows):
            for c, ch in enumerate(line):
                self.cells[r][c].tile = None if ch == "." else self.new_tile(ch)

    # ------------------------------------------------------------------
    # Output

    def letters(self) -> List[str]:
        """Rows as strings, '.' for empty cells."""
        return [
            "".join(cell.letter or "." for cell in row)
            for row in self.cells
        ]

    def render(self) -> str:
        """Render the grid: '.' for empty, 'E' for plain tiles, 'E2'/'K3' for multipliers."""
        lines = []
        for row in self.cells:
            tokens = []
            for cell in row:
                if cell.tile is None:
                    tokens.append(".")
                elif cell.multiplier > 1:
                    tokens.append(f"{cell.letter}{cell.multiplier}")
                else:
                    tokens.append(cell.letter)
            lines.append(" ".join(f"{t:<2}" for t in tokens).rstrip())
        return "\n".join(lines)

    def get_state(self) -> Dict:
        """
        Get the current grid state as a dictionary.

        Useful for serialization and logging.
        """
        return {
            "rows": self.rows,
            "cols": self.cols,
            "tiles_remaining": self.tile_count,
            "special_tiles": len(self.special_cells()),
            "letters": self.letters(),
        }
