"""**********************************************************************************
 * Title: game_session.py
 *
 * @version 2.0.0
 * -------------------------------------------------------------------------------
 * Description:
 * The game session state machine. A GameSession is an immutable snapshot of
 * one level being played: the board, the target, the pool of unplaced pieces,
 * the placed pieces, the score and the hint budget. Player operations are
 * explicit action values; apply_action() dispatches each one to its handler
 * and returns a Transition holding the next snapshot. A rejected action hands
 * back the very same snapshot with accepted=False and a reason, so a failed
 * placement or replacement can never leave a half-applied state behind.
 * Asking for a piece id the session does not know raises PieceNotFoundError.
 *
 * The board is rebuilt from the placed pieces on every change of the placed
 * set, so it always agrees with the pieces the player has put down.
 **********************************************************************************"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from chromalab.board import boards_match, build_board, find_occupant, placement_error
from chromalab.campaign_levels import campaign_seed
from chromalab.constants import (
    HINT_COST, HINT_PENALTY, INITIAL_SCORE, MAX_HINTS, PLACE_COST, REPLACE_COST, TIME_BONUS_MAX
)
from chromalab.exceptions import PieceNotFoundError
from chromalab.hint_engine import generate_hint
from chromalab.level_generator import generate_level
from chromalab.models import Board, Level, Piece, Position
from chromalab.piece_transformer import flip_piece, rotate_piece


class GameStatus(str, Enum):
    PLAYING = "playing"
    WON = "won"
    PAUSED = "paused"


@dataclass(frozen=True)
class GameSession:
    board: Board
    target_board: Board
    pieces: Tuple[Piece, ...]
    placed_pieces: Tuple[Piece, ...] = ()
    selected_piece: Optional[str] = None
    hints_used: int = 0
    max_hints: int = MAX_HINTS
    score: int = INITIAL_SCORE
    level: int = 1
    difficulty: int = 1
    status: GameStatus = GameStatus.PLAYING
    start_time: float = 0.0
    current_hint: Optional[object] = None


# --- ACTIONS ---

@dataclass(frozen=True)
class Start:
    level: Level
    level_number: int = 1


@dataclass(frozen=True)
class Select:
    piece_id: Optional[str]


@dataclass(frozen=True)
class Place:
    piece_id: str
    position: Position


@dataclass(frozen=True)
class Remove:
    piece_id: str


@dataclass(frozen=True)
class Replace:
    piece_id: str
    position: Position


@dataclass(frozen=True)
class Rotate:
    piece_id: str


@dataclass(frozen=True)
class Flip:
    piece_id: str


@dataclass(frozen=True)
class UseHint:
    pass


@dataclass(frozen=True)
class ClearHint:
    pass


@dataclass(frozen=True)
class Check:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class CheckOutcome:
    solved: bool
    elapsed_seconds: int
    hints_used: int
    final_score: int


@dataclass(frozen=True)
class Transition:
    session: GameSession
    accepted: bool
    message: str = ""
    hint: Optional[object] = None
    outcome: Optional[CheckOutcome] = None


def _reject(session, message):
    logging.debug(f"Action rejected: {message}")
    return Transition(session, False, message)


def _find_piece(session, piece_id):
    """Returns ``(piece, is_placed)`` for a known id."""
    for piece in session.pieces:
        if piece.id == piece_id:
            return piece, False
    for piece in session.placed_pieces:
        if piece.id == piece_id:
            return piece, True
    raise PieceNotFoundError(piece_id)


def _without(pieces, piece_id):
    return tuple(p for p in pieces if p.id != piece_id)


def _deduct(score, cost):
    return max(0, score - cost)


# --- HANDLERS ---

def _start(session, action, now, rng):
    level = action.level
    new_session = GameSession(
        board=build_board(()),
        target_board=level.target_board,
        pieces=tuple(piece.unplaced() for piece in level.pieces),
        level=action.level_number,
        difficulty=level.difficulty,
        start_time=now,
    )
    logging.info(f"Session started for level {action.level_number} (seed {level.seed!r}).")
    return Transition(new_session, True, "Level started.")


def _select(session, action, now, rng):
    if action.piece_id is None or action.piece_id == session.selected_piece:
        return Transition(replace(session, selected_piece=None), True, "Selection cleared.")
    _find_piece(session, action.piece_id)
    return Transition(replace(session, selected_piece=action.piece_id), True, f"Selected {action.piece_id}.")


def _commit_placement(session, piece, position, placed, pool, cost, message):
    placed_pieces = placed + (piece.at(position),)
    new_session = replace(
        session,
        board=build_board(placed_pieces),
        placed_pieces=placed_pieces,
        pieces=pool,
        selected_piece=None,
        score=_deduct(session.score, cost),
        current_hint=None,
    )
    return Transition(new_session, True, message)


def _place(session, action, now, rng):
    piece, is_placed = _find_piece(session, action.piece_id)
    if is_placed:
        return _reject(session, f"Piece {piece.id} is already on the board.")
    position = Position(*action.position)
    reason = placement_error(session.board, piece, position)
    if reason:
        return _reject(session, f"Cannot place {piece.id} there: {reason}.")
    return _commit_placement(
        session, piece, position, session.placed_pieces, _without(session.pieces, piece.id),
        PLACE_COST, f"Placed {piece.id}.",
    )


def _remove(session, action, now, rng):
    piece, is_placed = _find_piece(session, action.piece_id)
    if not is_placed:
        return _reject(session, f"Piece {piece.id} is not on the board.")
    remaining = _without(session.placed_pieces, piece.id)
    # The piece keeps the orientation it was placed with.
    new_session = replace(
        session,
        board=build_board(remaining),
        placed_pieces=remaining,
        pieces=session.pieces + (piece.unplaced(),),
        current_hint=None,
    )
    return Transition(new_session, True, f"Removed {piece.id}.")


def _replace(session, action, now, rng):
    piece, is_placed = _find_piece(session, action.piece_id)
    if is_placed:
        return _reject(session, f"Piece {piece.id} is already on the board.")
    position = Position(*action.position)
    occupant = find_occupant(session.placed_pieces, position)
    if occupant is None:
        return _place(session, Place(piece.id, position), now, rng)

    remaining = _without(session.placed_pieces, occupant.id)
    vacated = build_board(remaining)
    reason = placement_error(vacated, piece, position)
    if reason:
        return _reject(session, f"Cannot replace {occupant.id} with {piece.id}: {reason}.")
    pool = _without(session.pieces, piece.id) + (occupant.unplaced(),)
    return _commit_placement(
        session, piece, position, remaining, pool,
        REPLACE_COST, f"Replaced {occupant.id} with {piece.id}.",
    )


def _reorient(session, piece_id, transform, verb):
    piece, is_placed = _find_piece(session, piece_id)
    if is_placed:
        return _reject(session, f"Piece {piece.id} is on the board and cannot be {verb}.")
    pieces = tuple(transform(p) if p.id == piece_id else p for p in session.pieces)
    return Transition(replace(session, pieces=pieces), True, f"{verb.capitalize()} {piece_id}.")


def _rotate(session, action, now, rng):
    return _reorient(session, action.piece_id, rotate_piece, "rotated")


def _flip(session, action, now, rng):
    return _reorient(session, action.piece_id, flip_piece, "flipped")


def _use_hint(session, action, now, rng):
    if session.hints_used >= session.max_hints:
        return _reject(session, "No hints left.")
    hint = generate_hint(session, rng)
    if hint is None:
        return _reject(session, "No hint available right now.")
    new_session = replace(
        session,
        hints_used=session.hints_used + 1,
        score=_deduct(session.score, HINT_COST),
        current_hint=hint,
    )
    return Transition(new_session, True, hint.message, hint=hint)


def _clear_hint(session, action, now, rng):
    return Transition(replace(session, current_hint=None), True, "Hint cleared.")


def _check(session, action, now, rng):
    if not boards_match(session.board, session.target_board):
        return Transition(session, False, "The board does not match the target yet.")

    elapsed = max(0, int(now - session.start_time))
    time_bonus = max(0, TIME_BONUS_MAX - elapsed)
    final_score = max(0, session.score + time_bonus - session.hints_used * HINT_PENALTY)
    outcome = CheckOutcome(True, elapsed, session.hints_used, final_score)
    logging.info(f"Level {session.level} solved in {elapsed} s with score {final_score}.")
    new_session = replace(session, score=final_score, status=GameStatus.WON)
    return Transition(new_session, True, "Solved!", outcome=outcome)


def _pause(session, action, now, rng):
    return Transition(replace(session, status=GameStatus.PAUSED), True, "Paused.")


def _resume(session, action, now, rng):
    if session.status is not GameStatus.PAUSED:
        return _reject(session, "The session is not paused.")
    return Transition(replace(session, status=GameStatus.PLAYING), True, "Resumed.")


_HANDLERS = {
    Start: _start,
    Select: _select,
    Place: _place,
    Remove: _remove,
    Replace: _replace,
    Rotate: _rotate,
    Flip: _flip,
    UseHint: _use_hint,
    ClearHint: _clear_hint,
    Check: _check,
    Pause: _pause,
    Resume: _resume,
}

# Only these actions are accepted while the session is paused or won.
_ALWAYS_ALLOWED = (Start, Select, ClearHint, Resume)


def apply_action(session, action, now=None, rng=None):
    """
    Applies one player action to a session snapshot.

    :param GameSession session: The current snapshot; None is allowed for Start.
    :param action: One of the action values defined in this module.
    :param float now: Wall-clock time in seconds; defaults to time.time().
    :param random.Random rng: Source for hints that pick cells at random.
    :returns: The resulting transition. Rejections carry the unchanged session.
    :rtype: Transition
    :raises PieceNotFoundError: If the action names a piece the session does not have.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {action!r}")
    if now is None:
        now = time.time()
    if session is not None and not isinstance(action, _ALWAYS_ALLOWED):
        if session.status is GameStatus.WON:
            return _reject(session, "The level is already complete.")
        if session.status is GameStatus.PAUSED:
            return _reject(session, "The session is paused.")
    return handler(session, action, now, rng)


# --- CONVENIENCE WRAPPERS ---

def start(session, level, level_number=1, now=None):
    return apply_action(session, Start(level, level_number), now)


def new_session(level, level_number=1, now=None):
    return start(None, level, level_number, now).session


def select(session, piece_id):
    return apply_action(session, Select(piece_id))


def place(session, piece_id, position):
    return apply_action(session, Place(piece_id, Position(*position)))


def remove(session, piece_id):
    return apply_action(session, Remove(piece_id))


def replace_at(session, piece_id, position):
    return apply_action(session, Replace(piece_id, Position(*position)))


def rotate(session, piece_id):
    return apply_action(session, Rotate(piece_id))


def flip(session, piece_id):
    return apply_action(session, Flip(piece_id))


def use_hint(session, rng=None):
    return apply_action(session, UseHint(), rng=rng)


def check(session, now=None):
    return apply_action(session, Check(), now)


def reset_level(session, now=None, generate=generate_level):
    """Regenerates the current level number and starts it afresh."""
    level = generate(session.difficulty, campaign_seed(session.level))
    return apply_action(session, Start(level, session.level), now)


def next_level(session, now=None, generate=generate_level):
    level_number = session.level + 1
    level = generate(session.difficulty, campaign_seed(level_number))
    return apply_action(session, Start(level, level_number), now)
