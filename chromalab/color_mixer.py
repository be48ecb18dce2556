"""**********************************************************************************
 * Title: color_mixer.py
 *
 * @version 1.1.0
 * -------------------------------------------------------------------------------
 * Description:
 * The color algebra of the puzzle. A board cell stacks at most two color
 * layers; this module decides whether a stack is legal and which single color
 * it displays. Pairs are looked up without regard to order. Complementary
 * pairs blend into white, which is forbidden and may never be committed to a
 * board. Pairs missing from the table are legal and display their dominant
 * layer.
 **********************************************************************************"""

from chromalab.constants import COLOR_HEX, MAX_LAYERS
from chromalab.exceptions import ForbiddenBlendError, LayerOverflowError
from chromalab.models import PALETTE, PRIMARY_COLORS, Color

MIXING_RULES = {
    frozenset({Color.RED, Color.YELLOW}): Color.ORANGE,
    frozenset({Color.BLUE, Color.YELLOW}): Color.GREEN,
    frozenset({Color.RED, Color.BLUE}): Color.MAGENTA,
    # Complementary pairs cancel out.
    frozenset({Color.RED, Color.GREEN}): Color.WHITE,
    frozenset({Color.BLUE, Color.ORANGE}): Color.WHITE,
    frozenset({Color.YELLOW, Color.MAGENTA}): Color.WHITE,
}
for _color in PALETTE:
    MIXING_RULES[frozenset({_color})] = _color


def _dominant(first, second):
    # Primaries dominate secondaries; otherwise palette order decides.
    def rank(color):
        return (color not in PRIMARY_COLORS, PALETTE.index(color))
    return min(first, second, key=rank)


def blend(first, second):
    """Returns the displayed color of a two-layer stack, possibly WHITE."""
    result = MIXING_RULES.get(frozenset({first, second}))
    if result is None:
        return _dominant(first, second)
    return result


def mix(layers):
    """
    Validates a stack of layers and returns it as the tuple a cell stores.

    :param layers: The colors stacked in a cell, bottom first.
    :returns: The layers to store.
    :rtype: tuple[Color, ...]
    :raises LayerOverflowError: If more than two layers are stacked.
    :raises ForbiddenBlendError: If the pair blends into white.
    """
    layers = tuple(Color(layer) for layer in layers)
    if len(layers) > MAX_LAYERS:
        raise LayerOverflowError(f"A cell holds at most {MAX_LAYERS} layers, got {len(layers)}")
    if len(layers) == 2 and blend(*layers) is Color.WHITE:
        raise ForbiddenBlendError(f"{layers[0].value} and {layers[1].value} blend into white")
    return layers


def resolve(layers):
    """Returns the single color shown for a stack; WHITE for a forbidden pair."""
    layers = tuple(layers)
    if not layers:
        return Color.EMPTY
    if len(layers) == 1:
        return Color(layers[0])
    if len(layers) > MAX_LAYERS:
        return Color.WHITE
    return blend(Color(layers[0]), Color(layers[1]))


def can_mix(first, second):
    if first is Color.EMPTY or second is Color.EMPTY:
        return True
    return blend(first, second) is not Color.WHITE


def reachable_with_one_more(color, target):
    """True when stacking some palette color on ``color`` would show ``target``."""
    return any(
        can_mix(color, extra) and blend(color, extra) == target
        for extra in PALETTE
    )


def color_hex(color):
    return COLOR_HEX.get(Color(color).value, "#000000")
