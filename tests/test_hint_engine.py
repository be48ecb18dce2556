import random
from dataclasses import replace

from chromalab.board import build_board
from chromalab.game_session import new_session, place
from chromalab.hint_engine import (
    HINT_TYPES, NextPieceHint, PositionHint, RevealTargetHint, find_best_position,
    generate_hint, hint_kind_for, next_piece_hint, position_hint, reveal_target_hint,
    score_position
)
from chromalab.models import Board, Level, Piece, Position

from conftest import make_level, target_rows


def test_hint_kinds_cycle():
    assert [hint_kind_for(n) for n in range(4)] == ["next_piece", "position", "reveal_target", "next_piece"]
    assert set(HINT_TYPES) == {"next_piece", "position", "reveal_target"}


def test_next_piece_prefers_most_placeable_piece():
    level = make_level(target_rows(c0_0='R'), [Piece.from_rows("line", ["RRR"]), Piece.from_rows("dot", ["B"])])
    hint = next_piece_hint(new_session(level))
    assert isinstance(hint, NextPieceHint)
    assert hint.piece_id == "dot"
    assert hint.kind == "next_piece"


def test_next_piece_without_pool_gives_nothing(simple_session):
    assert next_piece_hint(replace(simple_session, pieces=())) is None


def test_position_hint_finds_the_target_cells(simple_session):
    hint = position_hint(simple_session)
    assert isinstance(hint, PositionHint)
    assert hint.piece_id == "simple_line"
    assert hint.position == Position(1, 2)
    assert "column 2, row 3" in hint.message


def test_position_hint_uses_selected_piece():
    level = make_level(target_rows(c4_4='B'), [Piece.from_rows("red", ["R"]), Piece.from_rows("blue", ["B"])])
    session = replace(new_session(level), selected_piece="blue")
    hint = position_hint(session)
    assert hint.piece_id == "blue"
    assert hint.position == Position(4, 4)


def test_position_hint_for_a_placed_selection_gives_nothing():
    level = make_level(target_rows(c4_4='B'), [Piece.from_rows("red", ["R"]), Piece.from_rows("blue", ["B"])])
    session = place(new_session(level), "blue", (4, 4)).session
    assert position_hint(replace(session, selected_piece="blue")) is None
    assert position_hint(session).piece_id == "red"


def test_position_scoring(simple_session):
    piece = simple_session.pieces[0]
    board, target = simple_session.board, simple_session.target_board
    assert score_position(board, target, piece, Position(1, 2)) == 30
    assert score_position(board, target, piece, Position(0, 2)) == 20
    assert score_position(board, target, piece, Position(0, 0)) == 0
    assert find_best_position(board, target, piece) == Position(1, 2)


def test_position_scoring_rewards_partial_progress():
    red, blue = Piece.from_rows("red", ["R"]), Piece.from_rows("blue", ["B"])
    # A two-layer orange target cell, as produced by packing red under yellow.
    target = build_board([red.at(Position(0, 0)), Piece.from_rows("y", ["Y"]).at(Position(0, 0))])
    session = new_session(Level(Board.empty(), target, (red, blue), 1, "partial"))
    assert score_position(session.board, session.target_board, red, Position(0, 0)) == 1
    assert score_position(session.board, session.target_board, blue, Position(0, 0)) == -5
    assert score_position(session.board, Board.from_rows(target_rows(c0_0='O')), red, Position(0, 0)) == 5


def test_reveal_target_picks_hidden_cells(simple_session):
    hint = reveal_target_hint(simple_session, random.Random(0))
    assert isinstance(hint, RevealTargetHint)
    assert sorted(hint.positions) == [Position(1, 2), Position(2, 2), Position(3, 2)]


def test_reveal_target_caps_cell_count():
    rows = target_rows(c0_0='R', c1_0='R', c2_0='R', c3_0='R', c4_0='R')
    session = new_session(make_level(rows, [Piece.from_rows("line", ["RRRRR"])]))
    hint = reveal_target_hint(session, random.Random(3))
    assert len(hint.positions) == 3
    assert all(pos.y == 0 for pos in hint.positions)


def test_reveal_target_when_everything_is_covered(simple_session):
    solved = place(simple_session, "simple_line", (1, 2)).session
    assert reveal_target_hint(solved, random.Random(0)) is None


def test_generate_hint_follows_hints_used(simple_session, rng):
    assert isinstance(generate_hint(simple_session, rng), NextPieceHint)
    assert isinstance(generate_hint(replace(simple_session, hints_used=1), rng), PositionHint)
    assert isinstance(generate_hint(replace(simple_session, hints_used=2), rng), RevealTargetHint)


def test_hints_do_not_change_the_session(simple_session, rng):
    before = simple_session
    generate_hint(simple_session, rng)
    assert simple_session == before
