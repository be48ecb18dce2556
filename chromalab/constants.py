"""**********************************************************************************
 * Title: constants.py
 *
 * @version 1.2.0
 * -------------------------------------------------------------------------------
 * Description:
 * This file contains all the static data and constants for the Chroma Lab
 * puzzle engine. It centralizes configuration values such as the board
 * geometry, layer limits, scoring rules, hint budget, the bounds that keep the
 * solver and the level generator from running forever, and the terminal
 * colors used when boards are printed by the command-line tools. This module
 * has no dependencies on other application modules to prevent circular imports.
 **********************************************************************************"""

# --- BOARD GEOMETRY ---
BOARD_SIZE = 6
MAX_LAYERS = 2
ROTATIONS = (0, 90, 180, 270)

# --- SCORING ---
INITIAL_SCORE = 1000
PLACE_COST = 10
REPLACE_COST = 5
HINT_COST = 100
# Applied once more per hint when the level is won.
HINT_PENALTY = 100
# The time bonus starts here and drops by one point per elapsed second.
TIME_BONUS_MAX = 500

# --- HINTS ---
MAX_HINTS = 3
HINT_ORDER = ("next_piece", "position", "reveal_target")
REVEAL_CELL_COUNT = 3

# Per-cell weights used to score a candidate position for the 'position' hint.
HINT_SCORE_EXACT = 10
HINT_SCORE_LAYER_COUNT = 5
HINT_SCORE_CONTRIBUTES = 1
HINT_SCORE_MISMATCH = -5

# --- SOLVER BOUNDS ---
SOLVER_MAX_DEPTH = 20
SOLVER_TIMEOUT_MS = 5000
VERIFY_TIMEOUT_MS = 3000

# --- GENERATOR BOUNDS ---
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
MAX_PIECES = 6
MAX_GENERATION_ATTEMPTS = 20
MAX_PLACEMENT_RETRIES = 100
# Probability that a cell is recolored to a primary on easy levels.
SIMPLIFY_COLOR_CHANCE = 0.7
EASY_DIFFICULTY_CEILING = 2

# --- CAMPAIGN ---
CAMPAIGN_SEED_PREFIX = "level_"
FALLBACK_SEED = "simple_fallback"

# --- DISPLAY ---
# Display hex values handed to snapshot consumers.
COLOR_HEX = {
    "red": "#EF4444",
    "blue": "#3B82F6",
    "yellow": "#EAB308",
    "orange": "#F97316",
    "green": "#22C55E",
    "magenta": "#EC4899",
    "white": "#FFFFFF",
    "empty": "transparent",
}

ANSI_RESET = "\033[0m"
ANSI_COLORS_BG = {
    "red": "\033[48;2;239;68;68m\033[38;2;0;0;0m",
    "blue": "\033[48;2;59;130;246m\033[38;2;0;0;0m",
    "yellow": "\033[48;2;234;179;8m\033[38;2;0;0;0m",
    "orange": "\033[48;2;249;115;22m\033[38;2;0;0;0m",
    "green": "\033[48;2;34;197;94m\033[38;2;0;0;0m",
    "magenta": "\033[48;2;236;72;153m\033[38;2;0;0;0m",
    "white": "\033[48;2;255;255;255m\033[38;2;0;0;0m",
    "empty": "\033[48;2;224;224;224m\033[38;2;120;120;120m",
}
