# exceptions.py
# Description: Error types raised by the Chroma Lab engine.


class ChromaLabError(Exception):
    """Base class for every error raised by the engine."""


class IllegalPlacementError(ChromaLabError):
    """A piece cannot be written onto the board at the requested cells."""


class ForbiddenBlendError(IllegalPlacementError):
    """Two layers would blend into the forbidden color."""


class LayerOverflowError(IllegalPlacementError):
    """A cell would hold more layers than the board allows."""


class PieceNotFoundError(ChromaLabError, KeyError):
    """No piece with the requested id exists in the session."""

    def __init__(self, piece_id):
        super().__init__(piece_id)
        self.piece_id = piece_id

    def __str__(self):
        return f"Unknown piece id: {self.piece_id!r}"


class InvalidSnapshotError(ChromaLabError, ValueError):
    """A stored snapshot could not be turned back into engine values."""
