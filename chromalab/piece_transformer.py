# piece_transformer.py
# Description: Rotation and reflection of piece shapes, and their footprints on a board.

from chromalab.constants import ROTATIONS
from chromalab.models import Color, Position


def rotate_matrix(matrix):
    """Turns a matrix a quarter clockwise; width and height swap."""
    if not matrix:
        return ()
    return tuple(tuple(row[col] for row in reversed(matrix)) for col in range(len(matrix[0])))


def transform_matrix(shape, rotation=0, flipped=False):
    matrix = tuple(tuple(row) for row in shape)
    for _ in range((rotation // 90) % 4):
        matrix = rotate_matrix(matrix)
    if flipped:
        matrix = tuple(tuple(reversed(row)) for row in matrix)
    return matrix


def transform_piece(piece):
    """Returns the piece's shape with its rotation and reflection applied."""
    return transform_matrix(piece.shape, piece.rotation, piece.flipped)


def piece_bounds(piece):
    transformed = transform_piece(piece)
    width = len(transformed[0]) if transformed else 0
    return width, len(transformed)


def piece_size(piece):
    return sum(1 for row in piece.shape for color in row if color is not Color.EMPTY)


def footprint(piece, position):
    """
    Lists the board cells a piece covers when its top-left corner sits at ``position``.

    Coordinates are not clipped to the board; callers decide what out-of-bounds means.

    :param Piece piece: The piece, in its current orientation.
    :param Position position: Board coordinate of the transformed shape's top-left cell.
    :returns: ``(Position, Color)`` pairs for every colored cell.
    :rtype: list[tuple[Position, Color]]
    """
    x0, y0 = position
    cells = []
    for dy, row in enumerate(transform_piece(piece)):
        for dx, color in enumerate(row):
            if color is not Color.EMPTY:
                cells.append((Position(x0 + dx, y0 + dy), color))
    return cells


def unique_orientations(piece):
    """
    Collects the distinct shapes a piece can take across all eight orientations.

    :returns: ``(rotation, flipped, matrix)`` for the first orientation producing each shape.
    :rtype: list[tuple[int, bool, tuple]]
    """
    seen = set()
    orientations = []
    for flipped in (False, True):
        for rotation in ROTATIONS:
            matrix = transform_matrix(piece.shape, rotation, flipped)
            if matrix not in seen:
                seen.add(matrix)
                orientations.append((rotation, flipped, matrix))
    return orientations


def rotate_piece(piece):
    return piece.oriented(piece.rotation + 90, piece.flipped)


def flip_piece(piece):
    return piece.oriented(piece.rotation, not piece.flipped)
