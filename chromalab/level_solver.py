"""**********************************************************************************
 * Title: level_solver.py
 *
 * @version 1.4.0
 * -------------------------------------------------------------------------------
 * Description:
 * Decides whether a set of pieces can reproduce a target board. Starting from
 * an empty board, the solver places pieces one at a time in every orientation
 * and position, backtracking out of dead ends. Only the displayed color of
 * each target cell has to match, not the exact layers that produce it.
 *
 * Because a stack of layers is legal regardless of the order it was built in,
 * the search only needs to branch on one remaining piece per step; it picks
 * the piece with the fewest candidate moves. Branches are cut when the
 * remaining pieces cannot cover the cells still to fill, and moves are
 * skipped when they would cover a cell the target leaves empty or freeze a
 * cell into the wrong color.
 *
 * The search is bounded by a wall-clock deadline and a depth ceiling, both
 * checked on every recursion. Hitting either yields an 'unproven' result,
 * which callers must not mistake for 'unsolvable'.
 **********************************************************************************"""

import logging
import time

from chromalab.board import (
    boards_match, can_place, count_unfilled, empty_board, place_piece
)
from chromalab.color_mixer import reachable_with_one_more, resolve
from chromalab.constants import (
    MAX_LAYERS, MAX_PLACEMENT_RETRIES, ROTATIONS, SOLVER_MAX_DEPTH, SOLVER_TIMEOUT_MS
)
from chromalab.models import Position, SolutionStep, SolveResult, SolveStatus
from chromalab.piece_transformer import footprint, piece_size, unique_orientations


def format_duration(seconds):
    if seconds >= 60: return f"{int(seconds//60)} min {seconds%60:.2f} s"
    if seconds >= 1: return f"{seconds:.3f} s"
    return f"{seconds*1000:.2f} ms"


class _SearchAborted(Exception):
    """Raised inside the search when a bound is hit; never escapes the solver."""


class LevelSolver:
    """
    Backtracking search for a placement of every piece that reproduces the target.

    A solver instance is single-use: build it, call solve() once.
    """

    def __init__(self, target_board, pieces, timeout_ms=SOLVER_TIMEOUT_MS,
                 max_depth=SOLVER_MAX_DEPTH, rng=None):
        self.target = target_board
        self.pieces = [piece.unplaced() for piece in pieces]
        self.timeout_ms = timeout_ms
        self.max_depth = max_depth
        self.rng = rng
        self.sizes = [piece_size(piece) for piece in self.pieces]
        # Distinct orientations only; symmetric shapes would repeat work.
        self.orientations = [
            [piece.oriented(rotation, flipped) for rotation, flipped, _ in unique_orientations(piece)]
            for piece in self.pieces
        ]
        self.nodes = 0
        self._dead_ends = set()
        self._deadline = None

    def solve(self):
        """
        Runs the search.

        :returns: 'solved' with a witness, 'unsolvable', or 'unproven' when a bound was hit.
        :rtype: SolveResult
        """
        start_time = time.monotonic()
        self._deadline = start_time + self.timeout_ms / 1000
        remaining = tuple(range(len(self.pieces)))
        try:
            witness = self._search(empty_board(self.target.size), remaining, [])
        except _SearchAborted as e:
            logging.info(f"Solver gave up after {self.nodes} nodes ({e}); result unproven.")
            return SolveResult(SolveStatus.UNPROVEN)

        duration = time.monotonic() - start_time
        if witness is None:
            logging.info(f"Solver proved the level unsolvable in {format_duration(duration)} ({self.nodes} nodes).")
            return SolveResult(SolveStatus.UNSOLVABLE)
        logging.info(f"Solver found a solution in {format_duration(duration)} ({self.nodes} nodes).")
        return SolveResult(SolveStatus.SOLVED, tuple(witness))

    def _search(self, board, remaining, steps):
        self.nodes += 1
        if time.monotonic() > self._deadline:
            raise _SearchAborted(f"timeout of {self.timeout_ms} ms")
        if len(steps) > self.max_depth:
            raise _SearchAborted(f"depth ceiling of {self.max_depth}")

        if not remaining:
            return steps if boards_match(board, self.target) else None

        # Not enough cells left in the pool to cover what the target still needs.
        if count_unfilled(board, self.target) > sum(self.sizes[i] for i in remaining):
            return None

        state = (board, remaining)
        if state in self._dead_ends:
            return None

        index, moves = self._most_constrained(board, remaining)
        if self.rng is not None:
            self.rng.shuffle(moves)

        rest = tuple(i for i in remaining if i != index)
        for oriented, position in moves:
            new_board = place_piece(board, oriented, position)
            step = SolutionStep(oriented.id, position, oriented.rotation, oriented.flipped)
            result = self._search(new_board, rest, steps + [step])
            if result is not None:
                return result

        self._dead_ends.add(state)
        return None

    def _most_constrained(self, board, remaining):
        best_index, best_moves = None, None
        for index in remaining:
            moves = self._candidate_moves(board, index)
            if best_moves is None or len(moves) < len(best_moves):
                best_index, best_moves = index, moves
                if not moves:
                    break
        return best_index, best_moves

    def _candidate_moves(self, board, index):
        moves = []
        for oriented in self.orientations[index]:
            for position in board.positions():
                if can_place(board, oriented, position) and self._fits_target(board, oriented, position):
                    moves.append((oriented, position))
        return moves

    def _fits_target(self, board, piece, position):
        for cell_pos, color in footprint(piece, position):
            wanted = self.target.cell(cell_pos)
            if wanted.is_empty:
                return False
            target_color = resolve(wanted.layers)
            layers = board.cell(cell_pos).layers + (color,)
            if len(layers) >= MAX_LAYERS:
                if resolve(layers) != target_color:
                    return False
            elif color != target_color and not reachable_with_one_more(color, target_color):
                return False
        return True


def is_level_solvable(target_board, pieces, timeout_ms=SOLVER_TIMEOUT_MS, rng=None,
                      max_depth=SOLVER_MAX_DEPTH):
    """
    Checks whether ``pieces`` can be placed, in any order and orientation, to show ``target_board``.

    :param Board target_board: The board the player must reproduce.
    :param list[Piece] pieces: Every piece must be placed; positions on them are ignored.
    :param int timeout_ms: Wall-clock budget for the search.
    :param random.Random rng: Optional source used to shuffle branch order.
    :returns: The verdict and, when solved, a witness placement sequence.
    :rtype: SolveResult
    """
    return LevelSolver(target_board, pieces, timeout_ms, max_depth, rng).solve()


def generate_random_solution(pieces, rng, max_retries=MAX_PLACEMENT_RETRIES, size=None):
    """
    Packs every piece onto an empty board in a random legal orientation and position.

    :param list[Piece] pieces: The pieces to pack.
    :param random.Random rng: Source of every random choice.
    :param int max_retries: Attempts per piece before the packing is abandoned.
    :returns: ``(board, steps)``, or None if some piece could not be placed.
    :rtype: tuple[Board, list[SolutionStep]] | None
    """
    board = empty_board(size) if size else empty_board()
    steps = []
    shuffled = list(pieces)
    rng.shuffle(shuffled)

    for piece in shuffled:
        placed = False
        for _ in range(max_retries):
            rotation = rng.choice(ROTATIONS)
            flipped = rng.random() < 0.5
            position = Position(rng.randrange(board.size), rng.randrange(board.size))
            oriented = piece.oriented(rotation, flipped)
            new_board = place_piece(board, oriented, position)
            if new_board is not None:
                board = new_board
                steps.append(SolutionStep(piece.id, position, rotation, flipped))
                placed = True
                break
        if not placed:
            logging.debug(f"Could not pack piece {piece.id} after {max_retries} tries.")
            return None

    return board, steps
