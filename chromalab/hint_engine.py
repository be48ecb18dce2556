# hint_engine.py
# Description: Stateless heuristic advisor that suggests the player's next move.

import random
from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from chromalab.board import can_place, legal_positions
from chromalab.color_mixer import reachable_with_one_more, resolve
from chromalab.constants import (
    HINT_ORDER, HINT_SCORE_CONTRIBUTES, HINT_SCORE_EXACT, HINT_SCORE_LAYER_COUNT,
    HINT_SCORE_MISMATCH, REVEAL_CELL_COUNT
)
from chromalab.models import Position
from chromalab.piece_transformer import footprint


@dataclass(frozen=True)
class NextPieceHint:
    kind: ClassVar[str] = "next_piece"
    piece_id: str
    message: str


@dataclass(frozen=True)
class PositionHint:
    kind: ClassVar[str] = "position"
    piece_id: str
    position: Position
    message: str


@dataclass(frozen=True)
class RevealTargetHint:
    kind: ClassVar[str] = "reveal_target"
    positions: Tuple[Position, ...]
    message: str


HINT_TYPES = {cls.kind: cls for cls in (NextPieceHint, PositionHint, RevealTargetHint)}


def hint_kind_for(hints_used):
    return HINT_ORDER[hints_used % len(HINT_ORDER)]


def generate_hint(session, rng=None):
    """
    Picks the hint category from the number of hints already used and builds that hint.

    :param GameSession session: The current snapshot; never modified.
    :param random.Random rng: Source for the reveal hint's cell choice. Callers that
        need reproducible hints pass their own; otherwise a fresh generator is used.
    :returns: The hint, or None when the category has nothing useful to say.
    :rtype: NextPieceHint | PositionHint | RevealTargetHint | None
    """
    kind = hint_kind_for(session.hints_used)
    if kind == "next_piece":
        return next_piece_hint(session)
    if kind == "position":
        return position_hint(session)
    return reveal_target_hint(session, rng or random.Random())


def next_piece_hint(session):
    best_piece, max_positions = None, 0
    for piece in session.pieces:
        count = len(legal_positions(session.board, piece))
        if count > max_positions:
            best_piece, max_positions = piece, count
    if best_piece is None:
        return None
    return NextPieceHint(best_piece.id, f"Try placing piece {best_piece.id} first.")


def position_hint(session):
    """
    Suggests where the selected piece should go, or the first pool piece when
    nothing is selected. A selection outside the pool, such as a piece already
    on the board, gets no hint.
    """
    if session.selected_piece is None:
        piece = session.pieces[0] if session.pieces else None
    else:
        piece = next((p for p in session.pieces if p.id == session.selected_piece), None)
    if piece is None:
        return None

    position = find_best_position(session.board, session.target_board, piece)
    if position is None:
        return None
    return PositionHint(
        piece.id, position,
        f"Place piece {piece.id} at column {position.x + 1}, row {position.y + 1}.",
    )


def reveal_target_hint(session, rng):
    hidden = [
        pos for pos in session.target_board.positions()
        if not session.target_board.cell(pos).is_empty and session.board.cell(pos).is_empty
    ]
    if not hidden:
        return None
    revealed = tuple(rng.sample(hidden, min(REVEAL_CELL_COUNT, len(hidden))))
    return RevealTargetHint(revealed, "Here are some cells of the target.")


def score_position(board, target_board, piece, position):
    """
    Scores how well a legal placement moves the board toward the target.

    Per covered cell: exact color match, matching layer count, a cell that can
    still reach its target with one more layer, or a dead mismatch. Cells the
    target leaves empty do not count.
    """
    score = 0
    for cell_pos, color in footprint(piece, position):
        wanted = target_board.cell(cell_pos)
        if wanted.is_empty:
            continue
        layers = board.cell(cell_pos).layers + (color,)
        target_color = resolve(wanted.layers)
        if resolve(layers) == target_color:
            score += HINT_SCORE_EXACT
        elif len(layers) == len(wanted.layers):
            score += HINT_SCORE_LAYER_COUNT
        elif len(layers) == 1 and reachable_with_one_more(color, target_color):
            score += HINT_SCORE_CONTRIBUTES
        else:
            score += HINT_SCORE_MISMATCH
    return score


def find_best_position(board, target_board, piece) -> Optional[Position]:
    best_position, best_score = None, None
    for position in board.positions():
        if not can_place(board, piece, position):
            continue
        score = score_position(board, target_board, piece, position)
        if best_score is None or score > best_score:
            best_position, best_score = position, score
    return best_position
