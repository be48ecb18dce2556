# campaign_levels.py
# Description: The hand-authored campaign levels and the seed grammar that selects them.

import re

from chromalab.constants import CAMPAIGN_SEED_PREFIX
from chromalab.models import Board, Level, Piece

CAMPAIGN_SEED_PATTERN = re.compile(re.escape(CAMPAIGN_SEED_PREFIX) + r"([1-9][0-9]*)")

# (target rows, [(piece id, shape rows)], difficulty)
_CAMPAIGN_DATA = [
    # Level 1 - a single piece, no mixing.
    (
        ["......",
         "..RR..",
         "..R...",
         "......",
         "......",
         "......"],
        [("tutorial_1", ["RR", "R."])],
        1,
    ),
    # Level 2 - red over yellow makes orange.
    (
        ["......",
         ".OO...",
         ".O....",
         "......",
         "......",
         "......"],
        [("mix_1", ["RR", "R."]),
         ("mix_2", ["YY", "Y."])],
        1,
    ),
    # Level 3 - partial overlap, some cells stay unmixed.
    (
        ["......",
         ".GY...",
         ".G....",
         ".B....",
         "......",
         "......"],
        [("complex_1", ["B", "B", "B"]),
         ("complex_2", ["YY", "Y."])],
        2,
    ),
    # Level 4 - blue over red makes magenta.
    (
        ["......",
         "......",
         "..MM..",
         "..RR..",
         "......",
         "......"],
        [("square_1", ["RR", "RR"]),
         ("domino_1", ["BB"])],
        2,
    ),
    # Level 5 - three pieces, two different blends.
    (
        ["......",
         "......",
         "..M...",
         ".OOO..",
         "......",
         "......"],
        [("tee_1", [".R.", "RRR"]),
         ("line_1", ["YYY"]),
         ("dot_1", ["B"])],
        3,
    ),
]


def _build_level(number, target_rows, piece_rows, difficulty):
    target = Board.from_rows(target_rows)
    pieces = tuple(Piece.from_rows(piece_id, rows) for piece_id, rows in piece_rows)
    return Level(Board.empty(target.size), target, pieces, difficulty, f"campaign_{number}")


# Levels are frozen values, so every caller can share the same instances.
_LEVELS = tuple(
    _build_level(number, target_rows, piece_rows, difficulty)
    for number, (target_rows, piece_rows, difficulty) in enumerate(_CAMPAIGN_DATA, start=1)
)


def get_level(level_number):
    """Returns campaign level ``level_number`` (1-based), or None when out of range."""
    if not isinstance(level_number, int) or level_number < 1 or level_number > len(_LEVELS):
        return None
    return _LEVELS[level_number - 1]


def get_total_levels():
    return len(_LEVELS)


def get_all_levels():
    return list(_LEVELS)


def parse_campaign_seed(seed):
    """
    Extracts the level number from a campaign seed.

    Only ``level_<n>`` with ``n`` a positive integer written without leading
    zeros is a campaign seed; anything else is an ordinary generation seed.

    :param str seed: The seed to inspect.
    :returns: The level number, or None.
    :rtype: int | None
    """
    if not isinstance(seed, str):
        return None
    match = CAMPAIGN_SEED_PATTERN.fullmatch(seed)
    return int(match.group(1)) if match else None


def campaign_seed(level_number):
    return f"{CAMPAIGN_SEED_PREFIX}{level_number}"
