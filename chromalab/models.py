# models.py
# Description: Immutable value types shared by every part of the engine.

from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from chromalab.constants import BOARD_SIZE


class Color(str, Enum):
    RED = "red"
    BLUE = "blue"
    YELLOW = "yellow"
    ORANGE = "orange"
    GREEN = "green"
    MAGENTA = "magenta"
    # Sentinels: 'empty' marks a hole in a piece, 'white' is the forbidden blend.
    EMPTY = "empty"
    WHITE = "white"


PRIMARY_COLORS = (Color.RED, Color.BLUE, Color.YELLOW)
SECONDARY_COLORS = (Color.ORANGE, Color.GREEN, Color.MAGENTA)
PALETTE = PRIMARY_COLORS + SECONDARY_COLORS

# Single-letter codes used to author shapes and boards compactly.
COLOR_CODES = {
    'R': Color.RED, 'B': Color.BLUE, 'Y': Color.YELLOW,
    'O': Color.ORANGE, 'G': Color.GREEN, 'M': Color.MAGENTA,
    '.': Color.EMPTY,
}


class Position(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class Cell:
    layers: Tuple[Color, ...] = ()

    @property
    def is_empty(self):
        return not self.layers


EMPTY_CELL = Cell()


@dataclass(frozen=True)
class Board:
    """A square grid of cells, indexed as ``cells[y][x]``."""

    cells: Tuple[Tuple[Cell, ...], ...]

    @classmethod
    def empty(cls, size=BOARD_SIZE):
        return cls(tuple(tuple(EMPTY_CELL for _ in range(size)) for _ in range(size)))

    @classmethod
    def from_rows(cls, rows):
        """
        Builds a board of single-layer cells from letter rows such as ``"..RR.."``.

        :param list[str] rows: One string per row, using the codes in COLOR_CODES.
        :returns: The corresponding board.
        :rtype: Board
        """
        cells = []
        for row in rows:
            cells.append(tuple(
                EMPTY_CELL if COLOR_CODES[code] is Color.EMPTY else Cell((COLOR_CODES[code],))
                for code in row
            ))
        return cls(tuple(cells))

    @property
    def size(self):
        return len(self.cells)

    def cell(self, position):
        x, y = position
        return self.cells[y][x]

    def in_bounds(self, position):
        x, y = position
        return 0 <= x < self.size and 0 <= y < self.size

    def positions(self):
        for y in range(self.size):
            for x in range(self.size):
                yield Position(x, y)

    def with_cells(self, updates):
        """Returns a copy of the board with the cells in ``updates`` replaced."""
        rows = [list(row) for row in self.cells]
        for (x, y), cell in updates.items():
            rows[y][x] = cell
        return Board(tuple(tuple(row) for row in rows))

    def is_blank(self):
        return all(cell.is_empty for row in self.cells for cell in row)


@dataclass(frozen=True)
class Piece:
    id: str
    shape: Tuple[Tuple[Color, ...], ...]
    rotation: int = 0
    flipped: bool = False
    position: Optional[Position] = None

    @classmethod
    def from_rows(cls, piece_id, rows, rotation=0, flipped=False):
        shape = tuple(tuple(COLOR_CODES[code] for code in row) for row in rows)
        return cls(piece_id, shape, rotation, flipped)

    @property
    def is_placed(self):
        return self.position is not None

    def at(self, position):
        return replace(self, position=Position(*position))

    def unplaced(self):
        return replace(self, position=None)

    def oriented(self, rotation, flipped):
        return replace(self, rotation=rotation % 360, flipped=flipped)


@dataclass(frozen=True)
class Level:
    board: Board
    target_board: Board
    pieces: Tuple[Piece, ...]
    difficulty: int
    seed: str


@dataclass(frozen=True)
class SolutionStep:
    piece_id: str
    position: Position
    rotation: int
    flipped: bool


class SolveStatus(str, Enum):
    SOLVED = "solved"
    UNSOLVABLE = "unsolvable"
    # The search ran out of time or depth before reaching a verdict.
    UNPROVEN = "unproven"


@dataclass(frozen=True)
class SolveResult:
    status: SolveStatus
    witness: Optional[Tuple[SolutionStep, ...]] = None

    @property
    def solvable(self):
        return self.status is SolveStatus.SOLVED


@dataclass(frozen=True)
class GameStats:
    games_played: int = 0
    games_won: int = 0
    average_time: int = 0
    best_time: int = 0
    hints_used: int = 0
    current_streak: int = 0
    best_streak: int = 0
