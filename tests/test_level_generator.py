import random

import pytest

from chromalab import campaign_levels
from chromalab.constants import FALLBACK_SEED
from chromalab.level_generator import (
    clamp_difficulty, create_puzzle_pieces, generate_level, generate_pieces,
    generate_simple_level, main, rng_for_seed
)
from chromalab.level_solver import is_level_solvable
from chromalab.models import Piece, Position, SolutionStep


def test_seeded_rng_is_reproducible():
    assert rng_for_seed("abc").random() == rng_for_seed("abc").random()
    assert rng_for_seed("abc").random() != rng_for_seed("abd").random()


def test_clamp_difficulty():
    assert clamp_difficulty(0) == 1
    assert clamp_difficulty(3) == 3
    assert clamp_difficulty(9) == 5


@pytest.mark.parametrize("difficulty,count", [(1, 3), (2, 4), (4, 6), (5, 6)])
def test_piece_count_grows_with_difficulty(difficulty, count):
    assert len(generate_pieces(difficulty, random.Random(0))) == count


def test_puzzle_pieces_are_shown_in_a_different_orientation():
    pieces = [Piece.from_rows("piece_0", ["RR", "R."]), Piece.from_rows("piece_1", ["B"])]
    steps = [SolutionStep("piece_0", Position(0, 0), 90, False), SolutionStep("piece_1", Position(3, 3), 0, True)]
    shown = create_puzzle_pieces(pieces, steps, random.Random(2))
    assert [piece.id for piece in shown] == ["puzzle_0", "puzzle_1"]
    assert (shown[0].rotation, shown[0].flipped) != (90, False)
    assert (shown[1].rotation, shown[1].flipped) != (0, True)
    assert all(piece.position is None for piece in shown)


def test_campaign_seed_loads_catalog_level():
    assert generate_level(4, "level_2") is campaign_levels.get_level(2)


def test_same_seed_gives_same_level():
    first = generate_level(2, "reproducible")
    second = generate_level(2, "reproducible")
    assert first == second


@pytest.mark.parametrize("difficulty", [1, 3])
def test_generated_level_is_solvable(difficulty):
    level = generate_level(difficulty, f"solvable_{difficulty}")
    assert level.board.is_blank()
    assert not level.target_board.is_blank()
    assert is_level_solvable(level.target_board, level.pieces).solvable


def test_unknown_campaign_number_falls_through_to_generation():
    level = generate_level(1, "level_99")
    assert level.seed in ("level_99", FALLBACK_SEED)
    assert is_level_solvable(level.target_board, level.pieces).solvable


def test_missing_seed_is_minted_and_recorded():
    level = generate_level(1)
    assert isinstance(level.seed, str) and level.seed


def test_exhausted_attempts_return_simple_level():
    level = generate_level(3, "anything", max_attempts=0)
    assert level == generate_simple_level()
    assert level.seed == FALLBACK_SEED


def test_simple_level_is_solvable():
    level = generate_simple_level()
    assert [piece.id for piece in level.pieces] == ["simple_line"]
    assert is_level_solvable(level.target_board, level.pieces).solvable


def test_main_prints_level(capsys):
    main(["--seed", "level_1", "--no-color"])
    out = capsys.readouterr().out
    assert "campaign_1" in out
    assert "tutorial_1" in out
