"""**********************************************************************************
 * Title: board.py
 *
 * @version 1.3.0
 * -------------------------------------------------------------------------------
 * Description:
 * The board model. Placing a piece validates every cell of its footprint
 * before anything is written: a single cell off the grid, a third layer or a
 * forbidden blend rejects the whole placement. The preview check and the
 * real placement share one validation routine so they can never disagree.
 * Boards are never patched in place; a session's board is always rebuilt by
 * replaying its placed pieces onto an empty grid. Also contains the terminal
 * renderer used by the command-line tools.
 **********************************************************************************"""

from chromalab.color_mixer import mix, resolve
from chromalab.constants import ANSI_COLORS_BG, ANSI_RESET, BOARD_SIZE
from chromalab.exceptions import IllegalPlacementError
from chromalab.models import Board, Cell, Color, Position
from chromalab.piece_transformer import footprint


def empty_board(size=BOARD_SIZE):
    return Board.empty(size)


def _stack_piece(board, piece, position):
    """
    Computes the cells a placement would write, or explains why it cannot happen.

    :returns: ``(updates, None)`` on success, ``(None, reason)`` on rejection.
    :rtype: tuple[dict | None, str | None]
    """
    updates = {}
    for cell_pos, color in footprint(piece, position):
        if not board.in_bounds(cell_pos):
            return None, f"cell ({cell_pos.x}, {cell_pos.y}) is outside the board"
        try:
            layers = mix(board.cell(cell_pos).layers + (color,))
        except IllegalPlacementError as e:
            return None, str(e)
        updates[cell_pos] = Cell(layers)
    return updates, None


def can_place(board, piece, position):
    updates, _ = _stack_piece(board, piece, position)
    return updates is not None


def placement_error(board, piece, position):
    """Returns the reason a placement is illegal, or None when it is legal."""
    return _stack_piece(board, piece, position)[1]


def place_piece(board, piece, position):
    """
    Places a piece onto a board, all cells at once.

    :param Board board: The board to place onto; it is not modified.
    :param Piece piece: The piece in its current orientation.
    :param Position position: Where the top-left of the transformed shape lands.
    :returns: The new board, or None when the placement is illegal.
    :rtype: Board | None
    """
    updates, _ = _stack_piece(board, piece, position)
    if updates is None:
        return None
    return board.with_cells(updates)


def build_board(placed_pieces, size=BOARD_SIZE):
    """
    Rebuilds a board by replaying every placed piece onto an empty grid.

    :raises IllegalPlacementError: If the placed pieces cannot coexist, which
        means the piece set was never produced by legal placements.
    """
    board = empty_board(size)
    for piece in placed_pieces:
        if piece.position is None:
            raise IllegalPlacementError(f"Piece {piece.id} has no position")
        updates, reason = _stack_piece(board, piece, piece.position)
        if updates is None:
            raise IllegalPlacementError(f"Piece {piece.id} cannot be replayed: {reason}")
        board = board.with_cells(updates)
    return board


def find_occupant(placed_pieces, position):
    """Returns the placed piece whose footprint covers ``position``, if any."""
    position = Position(*position)
    for piece in placed_pieces:
        if piece.position is None:
            continue
        if any(cell_pos == position for cell_pos, _ in footprint(piece, piece.position)):
            return piece
    return None


def legal_positions(board, piece):
    return [pos for pos in board.positions() if can_place(board, piece, pos)]


def boards_match(board, target):
    """Emptiness must agree on every cell and filled cells must show the same color."""
    for pos in target.positions():
        current, wanted = board.cell(pos), target.cell(pos)
        if current.is_empty != wanted.is_empty:
            return False
        if not wanted.is_empty and resolve(current.layers) != resolve(wanted.layers):
            return False
    return True


def count_unfilled(board, target):
    return sum(
        1 for pos in target.positions()
        if not target.cell(pos).is_empty and board.cell(pos).is_empty
    )


def format_board(board, use_color=True):
    lines = []
    for row in board.cells:
        chars = []
        for cell in row:
            color = resolve(cell.layers)
            symbol = '.' if color is Color.EMPTY else color.value[0].upper()
            if len(cell.layers) == 2:
                symbol = symbol.lower()
            if use_color:
                chars.append(f"{ANSI_COLORS_BG[color.value]} {symbol} {ANSI_RESET}")
            else:
                chars.append(f" {symbol} ")
        lines.append("".join(chars))
    return "\n".join(lines)


def display_terminal_board(board, title, use_color=True):
    """Prints a colorized representation of the board to the terminal."""
    if not board:
        return
    print(f"\n--- {title} ---")
    print(format_board(board, use_color))
    print("-" * (board.size * 3))
