import random

from chromalab.board import boards_match
from chromalab.level_solver import (
    LevelSolver, format_duration, generate_random_solution, is_level_solvable
)
from chromalab.models import Board, Piece, SolveResult, SolveStatus

from conftest import make_level, replay_witness, target_rows


def test_simple_level_is_solved_with_a_valid_witness(simple_level):
    result = is_level_solvable(simple_level.target_board, simple_level.pieces)
    assert result.status is SolveStatus.SOLVED
    assert result.solvable
    assert boards_match(replay_witness(simple_level.pieces, result.witness), simple_level.target_board)


def test_mixing_target_needs_both_pieces():
    level = make_level(target_rows(c0_0='O', c1_0='O', c1_1='Y'),
                       [Piece.from_rows("r", ["RR"]), Piece.from_rows("y", ["Y.", "YY"])])
    result = is_level_solvable(level.target_board, level.pieces)
    assert result.solvable
    assert len(result.witness) == 2
    assert boards_match(replay_witness(level.pieces, result.witness), level.target_board)


def test_unreachable_color_is_unsolvable():
    level = make_level(target_rows(c0_0='G'), [Piece.from_rows("r", ["R"])])
    result = is_level_solvable(level.target_board, level.pieces)
    assert result.status is SolveStatus.UNSOLVABLE
    assert result.witness is None


def test_piece_larger_than_target_is_unsolvable():
    level = make_level(target_rows(c3_3='R'), [Piece.from_rows("domino", ["RR"])])
    assert is_level_solvable(level.target_board, level.pieces).status is SolveStatus.UNSOLVABLE


def test_every_piece_must_be_used():
    level = make_level(target_rows(c0_0='R'), [Piece.from_rows("a", ["R"]), Piece.from_rows("b", ["B"])])
    assert is_level_solvable(level.target_board, level.pieces).status is SolveStatus.UNSOLVABLE


def test_bounds_give_unproven_not_unsolvable(simple_level):
    timed_out = is_level_solvable(simple_level.target_board, simple_level.pieces, timeout_ms=-1)
    assert timed_out.status is SolveStatus.UNPROVEN
    assert not timed_out.solvable

    too_deep = LevelSolver(simple_level.target_board, simple_level.pieces, max_depth=-1).solve()
    assert too_deep.status is SolveStatus.UNPROVEN


def test_seeded_shuffle_still_finds_solution(simple_level):
    result = is_level_solvable(simple_level.target_board, simple_level.pieces, rng=random.Random(7))
    assert result.solvable


def test_solve_result_flags():
    assert SolveResult(SolveStatus.SOLVED, ()).solvable
    assert not SolveResult(SolveStatus.UNSOLVABLE).solvable


def test_random_solution_packs_every_piece():
    pieces = [Piece.from_rows("a", ["RR", "R."]), Piece.from_rows("b", ["YYY"]), Piece.from_rows("c", ["B"])]
    packing = generate_random_solution(pieces, random.Random(42))
    assert packing is not None
    board, steps = packing
    assert sorted(step.piece_id for step in steps) == ["a", "b", "c"]
    assert boards_match(replay_witness(pieces, steps), board)

    again = generate_random_solution(pieces, random.Random(42))
    assert again == packing


def test_random_solution_gives_up_when_nothing_fits():
    too_big = Piece.from_rows("big", ["RRRRRRR"])
    assert generate_random_solution([too_big], random.Random(0), max_retries=10) is None


def test_solved_board_can_be_used_as_target():
    pieces = [Piece.from_rows("a", ["RR"]), Piece.from_rows("b", ["B", "B"])]
    board, _ = generate_random_solution(pieces, random.Random(3))
    assert isinstance(board, Board)
    assert is_level_solvable(board, pieces).solvable


def test_format_duration():
    assert format_duration(0.5) == "500.00 ms"
    assert format_duration(2) == "2.000 s"
    assert format_duration(125) == "2 min 5.00 s"
