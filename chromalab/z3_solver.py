# z3_solver.py
# Description: Cross-checks level solvability with the Z3 SMT solver.

import logging
import time
from collections import defaultdict

from z3 import And, BoolVal, Bool, If, Or, PbEq, Solver, Sum, is_true, sat, unsat

from chromalab.color_mixer import blend, can_mix, resolve
from chromalab.constants import SOLVER_TIMEOUT_MS
from chromalab.level_solver import format_duration
from chromalab.models import PALETTE, SolutionStep, SolveResult, SolveStatus
from chromalab.piece_transformer import footprint, unique_orientations


def allowed_stacks(target_color):
    """
    Lists every layer combination that displays ``target_color``.

    :returns: One ``{color: count}`` dict per combination.
    :rtype: list[dict]
    """
    stacks = [{target_color: 1}]
    for i, first in enumerate(PALETTE):
        for second in PALETTE[i:]:
            if can_mix(first, second) and blend(first, second) == target_color:
                stack = defaultdict(int)
                stack[first] += 1
                stack[second] += 1
                stacks.append(dict(stack))
    return stacks


class Z3LevelSolver:
    """
    Encodes a level as a constraint problem.

    One Boolean per candidate placement states "this piece lands here in this
    orientation". Every piece takes exactly one placement and every target cell
    must receive a combination of layers that displays its color. Cells the
    target leaves empty are never covered, so those placements are not even
    created.
    """

    def __init__(self, target_board, pieces):
        self.target = target_board
        self.pieces = [piece.unplaced() for piece in pieces]
        self.candidates = self._build_candidates()

    def _build_candidates(self):
        candidates = []
        for index, piece in enumerate(self.pieces):
            for rotation, flipped, _ in unique_orientations(piece):
                oriented = piece.oriented(rotation, flipped)
                for position in self.target.positions():
                    cells = footprint(oriented, position)
                    if all(self.target.in_bounds(pos) and not self.target.cell(pos).is_empty
                           for pos, _ in cells):
                        var = Bool(f"p{index}_r{rotation}_f{int(flipped)}_x{position.x}_y{position.y}")
                        candidates.append((index, var, oriented, position, cells))
        return candidates

    def _add_constraints(self, solver):
        by_piece = defaultdict(list)
        by_cell = defaultdict(lambda: defaultdict(list))
        for index, var, _, _, cells in self.candidates:
            by_piece[index].append(var)
            for pos, color in cells:
                by_cell[pos][color].append(var)

        # Rule 1: every piece is placed exactly once.
        for index in range(len(self.pieces)):
            if not by_piece[index]:
                solver.add(BoolVal(False))
                continue
            solver.add(PbEq([(var, 1) for var in by_piece[index]], 1))

        # Rule 2: every filled target cell shows its color through a legal stack.
        for pos in self.target.positions():
            wanted = self.target.cell(pos)
            if wanted.is_empty:
                continue
            contributions = by_cell.get(pos, {})
            counts = {color: Sum([If(var, 1, 0) for var in vars_]) for color, vars_ in contributions.items()}
            options = []
            for stack in allowed_stacks(resolve(wanted.layers)):
                if any(color not in counts for color in stack):
                    continue
                options.append(And([counts[color] == stack.get(color, 0) for color in counts]))
            solver.add(Or(options) if options else BoolVal(False))

    def solve(self, timeout_ms=SOLVER_TIMEOUT_MS):
        """
        Runs Z3 on the encoded level.

        :param int timeout_ms: Budget handed to Z3; running out gives 'unproven'.
        :returns: The verdict and, when solved, a witness read from the model.
        :rtype: SolveResult
        """
        solver = Solver()
        solver.set("timeout", int(timeout_ms))
        self._add_constraints(solver)

        start_time = time.monotonic()
        verdict = solver.check()
        logging.info(f"Z3 solve time: {format_duration(time.monotonic() - start_time)}")

        if verdict == sat:
            model = solver.model()
            witness = tuple(
                SolutionStep(oriented.id, position, oriented.rotation, oriented.flipped)
                for _, var, oriented, position, _ in self.candidates
                if is_true(model.evaluate(var, model_completion=True))
            )
            return SolveResult(SolveStatus.SOLVED, witness)
        if verdict == unsat:
            return SolveResult(SolveStatus.UNSOLVABLE)
        logging.warning(f"Z3 could not decide the level: {solver.reason_unknown()}")
        return SolveResult(SolveStatus.UNPROVEN)
