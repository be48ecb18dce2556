# level_generator.py
#
# Description:
# Builds new Chroma Lab levels. The generator first draws a set of pieces
# sized by difficulty, packs all of them onto an empty board in random legal
# orientations, and takes the packed board as the target. The target is then
# handed back to the level solver together with the same pieces; a level
# is only accepted once the solver independently proves it solvable. Finally
# each piece is shown to the player in an orientation different from the one
# used while packing.
#
# Seeds of the form 'level_<n>' load campaign level n instead. Any other seed
# drives a private random number generator, so the same seed always yields
# the same level. When every attempt fails, a trivial hand-authored level is
# returned instead of an error.
#
# Usage:
# python -m chromalab.level_generator --difficulty 3 --seed my-seed

import argparse
import hashlib
import logging
import random
import time

from chromalab import campaign_levels
from chromalab.board import display_terminal_board
from chromalab.constants import (
    EASY_DIFFICULTY_CEILING, FALLBACK_SEED, MAX_DIFFICULTY, MAX_GENERATION_ATTEMPTS,
    MAX_PIECES, MIN_DIFFICULTY, ROTATIONS, SIMPLIFY_COLOR_CHANCE, VERIFY_TIMEOUT_MS
)
from chromalab.level_solver import generate_random_solution, is_level_solvable
from chromalab.models import PRIMARY_COLORS, Board, Color, Level, Piece
from chromalab.piece_transformer import transform_piece

PIECE_TEMPLATES = (
    # L-shapes
    ("R.", "R.", "RR"),
    ("BBB", "B.."),
    # I-shapes
    ("Y", "Y", "Y", "Y"),
    ("GGG",),
    # T-shape
    (".O.", "OOO"),
    # Z-shape
    ("MM.", ".MM"),
    # O-shape
    ("RR", "RR"),
    # Small pieces
    ("B",),
    ("RR",),
    ("Y", "Y"),
)


def rng_for_seed(seed):
    """Turns a seed string into a private, reproducible random number generator."""
    digest = hashlib.md5(seed.encode('utf-8')).hexdigest()
    return random.Random(int(digest, 16))


def clamp_difficulty(difficulty):
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, int(difficulty)))


def simplify_colors(shape, rng):
    return tuple(
        tuple(
            rng.choice(PRIMARY_COLORS) if color is not Color.EMPTY and rng.random() < SIMPLIFY_COLOR_CHANCE else color
            for color in row
        )
        for row in shape
    )


def generate_pieces(difficulty, rng):
    """Draws ``min(2 + difficulty, MAX_PIECES)`` pieces from the templates unlocked at this difficulty."""
    num_pieces = min(2 + difficulty, MAX_PIECES)
    available = PIECE_TEMPLATES[:min(len(PIECE_TEMPLATES), 4 + difficulty)]
    pieces = []
    for i in range(num_pieces):
        piece = Piece.from_rows(f"piece_{i}", rng.choice(available))
        if difficulty <= EASY_DIFFICULTY_CEILING:
            piece = Piece(piece.id, simplify_colors(piece.shape, rng))
        pieces.append(piece)
    return pieces


def create_puzzle_pieces(pieces, steps, rng):
    """
    Builds the pool shown to the player.

    Each piece gets a fresh id and an orientation that differs from the one it
    was packed with, so the target cannot be read straight off the pool.
    """
    packed = {step.piece_id: (step.rotation, step.flipped) for step in steps}
    all_orientations = [(rotation, flipped) for flipped in (False, True) for rotation in ROTATIONS]
    puzzle_pieces = []
    for index, piece in enumerate(pieces):
        choices = [o for o in all_orientations if o != packed.get(piece.id)]
        rotation, flipped = rng.choice(choices)
        puzzle_pieces.append(Piece(f"puzzle_{index}", piece.shape, rotation, flipped))
    return tuple(puzzle_pieces)


def generate_solvable_level(difficulty, seed, rng, timeout_ms=VERIFY_TIMEOUT_MS):
    """
    Runs one construct-then-verify attempt.

    :returns: The level, or None when packing failed or the solver could not prove it.
    :rtype: Level | None
    """
    pieces = generate_pieces(difficulty, rng)
    if not pieces:
        return None

    packing = generate_random_solution(pieces, rng)
    if packing is None:
        logging.info("  > Discarding attempt. A piece could not be packed.")
        return None
    target, steps = packing
    if target.is_blank():
        return None

    verification = is_level_solvable(target, pieces, timeout_ms)
    if not verification.solvable:
        logging.info(f"  > Discarding attempt. Solver verdict: {verification.status.value}.")
        return None

    puzzle_pieces = create_puzzle_pieces(pieces, steps, rng)
    return Level(Board.empty(target.size), target, puzzle_pieces, difficulty, seed)


def generate_simple_level():
    """The fallback level: one red line of three cells and the piece that fills it."""
    logging.info("Generating simple fallback level.")
    target = Board.from_rows([
        "......",
        "......",
        ".RRR..",
        "......",
        "......",
        "......",
    ])
    pieces = (Piece.from_rows("simple_line", ["RRR"]),)
    return Level(Board.empty(target.size), target, pieces, 1, FALLBACK_SEED)


def generate_level(difficulty, seed=None, timeout_ms=VERIFY_TIMEOUT_MS,
                   max_attempts=MAX_GENERATION_ATTEMPTS):
    """
    Produces a level that is guaranteed solvable.

    :param int difficulty: Clamped to the supported range; drives piece count and variety.
    :param str seed: 'level_<n>' loads a campaign level; any other string reproduces a
        generated level; None mints a seed from the clock and records it on the level.
    :param int timeout_ms: Solver budget for each verification.
    :param int max_attempts: Attempts before falling back to the simple level.
    :returns: The level.
    :rtype: Level
    """
    level_number = campaign_levels.parse_campaign_seed(seed)
    if level_number is not None:
        campaign_level = campaign_levels.get_level(level_number)
        if campaign_level:
            logging.info(f"Loading campaign level {level_number}.")
            return campaign_level

    if seed is None:
        seed = str(int(time.time() * 1000))
    difficulty = clamp_difficulty(difficulty)
    rng = rng_for_seed(seed)

    logging.info(f"Attempting to generate a level at difficulty {difficulty} (seed {seed!r})...")
    start_time = time.time()
    for attempt in range(1, max_attempts + 1):
        logging.info(f"Generation Attempt #{attempt}...")
        level = generate_solvable_level(difficulty, seed, rng, timeout_ms)
        if level:
            logging.info(f"SUCCESS! Level accepted after {attempt} attempts "
                         f"({time.time() - start_time:.2f} seconds).")
            return level

    logging.warning(f"All {max_attempts} generation attempts failed, using the simple level.")
    return generate_simple_level()


def describe_piece(piece):
    rows = transform_piece(piece)
    return "\n".join(
        "  " + "".join('.' if color is Color.EMPTY else color.value[0].upper() for color in row)
        for row in rows
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate a Chroma Lab level and print it.")
    parser.add_argument("--difficulty", type=int, default=1,
                        help=f"Difficulty from {MIN_DIFFICULTY} to {MAX_DIFFICULTY} (default: 1).")
    parser.add_argument("--seed", type=str, default=None,
                        help="Seed string; 'level_<n>' loads campaign level n.")
    parser.add_argument("--timeout-ms", type=int, default=VERIFY_TIMEOUT_MS,
                        help="Solver budget per verification in milliseconds.")
    parser.add_argument("--no-color", action="store_true", help="Print boards without ANSI colors.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    level = generate_level(args.difficulty, args.seed, args.timeout_ms)
    display_terminal_board(level.target_board, "Target", use_color=not args.no_color)
    print(f"\nDifficulty: {level.difficulty}")
    print(f"Seed:       {level.seed}")
    print("\n--- PIECES ---")
    for piece in level.pieces:
        print(f"{piece.id} (rotation {piece.rotation}, flipped {piece.flipped})")
        print(describe_piece(piece))


if __name__ == "__main__":
    main()
