import random

import pytest

from chromalab.board import build_board
from chromalab.game_session import new_session
from chromalab.level_generator import generate_simple_level
from chromalab.models import Board, Level, Piece

START_TIME = 1000.0

EMPTY_ROWS = ["......"] * 6


def target_rows(**cells):
    """Builds six target rows from keyword cells such as ``c2_2='R'`` (column 2, row 2)."""
    rows = [list(row) for row in EMPTY_ROWS]
    for name, code in cells.items():
        x, y = (int(part) for part in name[1:].split('_'))
        rows[y][x] = code
    return ["".join(row) for row in rows]


def make_level(rows, pieces, difficulty=1, seed="test"):
    target = Board.from_rows(rows)
    return Level(Board.empty(target.size), target, tuple(pieces), difficulty, seed)


def replay_witness(pieces, witness):
    """Places every piece as a solver witness describes and returns the resulting board."""
    by_id = {piece.id: piece for piece in pieces}
    placed = [
        by_id[step.piece_id].oriented(step.rotation, step.flipped).at(step.position)
        for step in witness
    ]
    return build_board(placed)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def simple_level():
    return generate_simple_level()


@pytest.fixture
def simple_session(simple_level):
    return new_session(simple_level, now=START_TIME)


@pytest.fixture
def single_red_level():
    """Target (2, 2) is red and the pool holds one red cell."""
    return make_level(target_rows(c2_2='R'), [Piece.from_rows("dot", ["R"])])


@pytest.fixture
def single_red_session(single_red_level):
    return new_session(single_red_level, now=START_TIME)


@pytest.fixture
def primaries_session():
    """A pool of single cells, one per color, for exercising stacking rules."""
    pieces = [Piece.from_rows(code.lower(), [code]) for code in "RYBG"]
    return new_session(make_level(target_rows(c0_0='O'), pieces), now=START_TIME)
