from chromalab.models import Color, Piece, Position
from chromalab.piece_transformer import (
    flip_piece, footprint, piece_bounds, piece_size, rotate_matrix, rotate_piece,
    transform_piece, unique_orientations
)

L_PIECE = Piece.from_rows("l", ["R.", "R.", "RB"])


def test_four_quarter_turns_are_identity():
    matrix = L_PIECE.shape
    for _ in range(4):
        matrix = rotate_matrix(matrix)
    assert matrix == L_PIECE.shape

    piece = L_PIECE
    for _ in range(4):
        piece = rotate_piece(piece)
    assert piece == L_PIECE


def test_flip_twice_is_identity():
    assert flip_piece(flip_piece(L_PIECE)) == L_PIECE
    assert flip_piece(L_PIECE).flipped


def test_rotation_is_clockwise():
    row = Piece.from_rows("row", ["RB"])
    assert transform_piece(rotate_piece(row)) == ((Color.RED,), (Color.BLUE,))


def test_rotation_swaps_bounds():
    assert piece_bounds(L_PIECE) == (2, 3)
    assert piece_bounds(rotate_piece(L_PIECE)) == (3, 2)


def test_flip_mirrors_columns():
    assert transform_piece(flip_piece(L_PIECE)) == (
        (Color.EMPTY, Color.RED),
        (Color.EMPTY, Color.RED),
        (Color.BLUE, Color.RED),
    )


def test_footprint_skips_holes_and_translates():
    tee = Piece.from_rows("t", [".R.", "RRR"])
    cells = footprint(tee, Position(1, 1))
    assert [pos for pos, _ in cells] == [Position(2, 1), Position(1, 2), Position(2, 2), Position(3, 2)]
    assert piece_size(tee) == 4


def test_footprint_is_not_clipped():
    cells = footprint(Piece.from_rows("line", ["RRR"]), Position(4, 0))
    assert Position(6, 0) in [pos for pos, _ in cells]


def test_unique_orientations():
    assert len(unique_orientations(Piece.from_rows("sq", ["RR", "RR"]))) == 1
    assert len(unique_orientations(Piece.from_rows("domino", ["RR"]))) == 2
    assert len(unique_orientations(Piece.from_rows("l", ["R.", "R.", "RR"]))) == 8
