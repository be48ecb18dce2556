# game_storage.py
# Description: Converts levels, sessions and player statistics to and from plain
# JSON-ready dictionaries, and applies the statistics update rules. Nothing here
# touches a file or a database; callers decide where the documents live.

import logging
from dataclasses import asdict, replace
from datetime import datetime, timezone

from chromalab.board import build_board
from chromalab.color_mixer import mix
from chromalab.constants import BOARD_SIZE, ROTATIONS
from chromalab.exceptions import IllegalPlacementError, InvalidSnapshotError
from chromalab.game_session import GameSession, GameStatus
from chromalab.hint_engine import HINT_TYPES, NextPieceHint, PositionHint, RevealTargetHint
from chromalab.models import Board, Cell, Color, GameStats, Level, Piece, Position

_STATS_KEYS = {
    'games_played': 'gamesPlayed',
    'games_won': 'gamesWon',
    'average_time': 'averageTime',
    'best_time': 'bestTime',
    'hints_used': 'hintsUsed',
    'current_streak': 'currentStreak',
    'best_streak': 'bestStreak',
}


# --- BOARDS AND PIECES ---

def board_to_dict(board):
    """A board is stored as rows of cells, each cell being its list of layer names."""
    return [[[layer.value for layer in cell.layers] for cell in row] for row in board.cells]


def _cell_from_dict(layers):
    try:
        layers = mix(layers)
    except IllegalPlacementError as e:
        raise InvalidSnapshotError(f"Illegal cell {layers}: {e}") from e
    if Color.EMPTY in layers:
        raise InvalidSnapshotError(f"Illegal cell {list(layers)}: 'empty' is not a layer")
    return Cell(layers)


def board_from_dict(rows):
    """
    Loads a stored board.

    :raises InvalidSnapshotError: If the board is not BOARD_SIZE x BOARD_SIZE or
        a cell holds a stack no placement could produce.
    """
    if not isinstance(rows, list) or len(rows) != BOARD_SIZE:
        raise InvalidSnapshotError(f"A board must have {BOARD_SIZE} rows")
    if any(not isinstance(row, list) or len(row) != BOARD_SIZE for row in rows):
        raise InvalidSnapshotError(f"Every board row must have {BOARD_SIZE} cells")
    return Board(tuple(tuple(_cell_from_dict(cell) for cell in row) for row in rows))


def _position_to_dict(position):
    return None if position is None else {'x': position.x, 'y': position.y}


def _position_from_dict(data):
    return None if data is None else Position(int(data['x']), int(data['y']))


def piece_to_dict(piece):
    return {
        'id': piece.id,
        'shape': [[color.value for color in row] for row in piece.shape],
        'rotation': piece.rotation,
        'flipped': piece.flipped,
        'position': _position_to_dict(piece.position),
    }


def piece_from_dict(data):
    shape = tuple(tuple(Color(color) for color in row) for row in data['shape'])
    if not shape or not shape[0] or any(len(row) != len(shape[0]) for row in shape):
        raise InvalidSnapshotError(f"Piece {data['id']} must have a non-empty rectangular shape")
    rotation = int(data.get('rotation', 0))
    if rotation not in ROTATIONS:
        raise InvalidSnapshotError(f"Piece {data['id']} has rotation {rotation}, expected one of {ROTATIONS}")
    return Piece(
        id=str(data['id']),
        shape=shape,
        rotation=rotation,
        flipped=bool(data.get('flipped', False)),
        position=_position_from_dict(data.get('position')),
    )


def hint_to_dict(hint):
    if hint is None:
        return None
    data = {'kind': hint.kind, 'message': hint.message}
    if isinstance(hint, (NextPieceHint, PositionHint)):
        data['pieceId'] = hint.piece_id
    if isinstance(hint, PositionHint):
        data['position'] = _position_to_dict(hint.position)
    if isinstance(hint, RevealTargetHint):
        data['positions'] = [_position_to_dict(pos) for pos in hint.positions]
    return data


def hint_from_dict(data):
    if data is None:
        return None
    kind = data['kind']
    if kind not in HINT_TYPES:
        raise InvalidSnapshotError(f"Unknown hint kind: {kind!r}")
    if kind == NextPieceHint.kind:
        return NextPieceHint(data['pieceId'], data['message'])
    if kind == PositionHint.kind:
        return PositionHint(data['pieceId'], _position_from_dict(data['position']), data['message'])
    return RevealTargetHint(tuple(_position_from_dict(pos) for pos in data['positions']), data['message'])


# --- LEVELS ---

def level_to_dict(level):
    return {
        'board': board_to_dict(level.board),
        'targetBoard': board_to_dict(level.target_board),
        'pieces': [piece_to_dict(piece) for piece in level.pieces],
        'difficulty': level.difficulty,
        'seed': level.seed,
    }


def level_from_dict(data):
    try:
        return Level(
            board=board_from_dict(data['board']),
            target_board=board_from_dict(data['targetBoard']),
            pieces=tuple(piece_from_dict(piece) for piece in data['pieces']),
            difficulty=int(data['difficulty']),
            seed=str(data['seed']),
        )
    except InvalidSnapshotError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidSnapshotError(f"Malformed level: {e}") from e


# --- SESSIONS ---

def session_to_dict(session):
    return {
        'board': board_to_dict(session.board),
        'targetBoard': board_to_dict(session.target_board),
        'pieces': [piece_to_dict(piece) for piece in session.pieces],
        'placedPieces': [piece_to_dict(piece) for piece in session.placed_pieces],
        'selectedPiece': session.selected_piece,
        'hintsUsed': session.hints_used,
        'maxHints': session.max_hints,
        'score': session.score,
        'level': session.level,
        'difficulty': session.difficulty,
        'gameStatus': session.status.value,
        'startTime': session.start_time,
        'currentHint': hint_to_dict(session.current_hint),
    }


def session_from_dict(data):
    """
    Loads a session document.

    The stored board is ignored: it is rebuilt by replaying the placed pieces,
    so a document whose board disagrees with its pieces cannot sneak in.

    :param dict data: A document produced by session_to_dict().
    :returns: The session.
    :rtype: GameSession
    :raises InvalidSnapshotError: If the document is malformed or its placed
        pieces cannot legally coexist.
    """
    try:
        target_board = board_from_dict(data['targetBoard'])
        placed_pieces = tuple(piece_from_dict(piece) for piece in data.get('placedPieces', []))
        return GameSession(
            board=build_board(placed_pieces, target_board.size),
            target_board=target_board,
            pieces=tuple(piece_from_dict(piece).unplaced() for piece in data.get('pieces', [])),
            placed_pieces=placed_pieces,
            selected_piece=data.get('selectedPiece'),
            hints_used=int(data.get('hintsUsed', 0)),
            max_hints=int(data.get('maxHints', GameSession.max_hints)),
            score=max(0, int(data.get('score', GameSession.score))),
            level=int(data.get('level', 1)),
            difficulty=int(data.get('difficulty', 1)),
            status=GameStatus(data.get('gameStatus', GameStatus.PLAYING.value)),
            start_time=float(data.get('startTime', 0.0)),
            current_hint=hint_from_dict(data.get('currentHint')),
        )
    except InvalidSnapshotError:
        raise
    except IllegalPlacementError as e:
        raise InvalidSnapshotError(f"Placed pieces are inconsistent: {e}") from e
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidSnapshotError(f"Malformed session: {e}") from e


# --- STATISTICS ---

def default_stats():
    return GameStats()


def stats_to_dict(stats):
    return {_STATS_KEYS[key]: value for key, value in asdict(stats).items()}


def stats_from_dict(data):
    try:
        return GameStats(**{key: int(data.get(camel, 0)) for key, camel in _STATS_KEYS.items()})
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidSnapshotError(f"Malformed stats: {e}") from e


def record_win(stats, outcome):
    """
    Folds a won game into the statistics.

    :param GameStats stats: The statistics before the game.
    :param CheckOutcome outcome: The outcome reported by a successful check.
    :returns: The updated statistics.
    :rtype: GameStats
    """
    games_won = stats.games_won + 1
    elapsed = outcome.elapsed_seconds
    average_time = round((stats.average_time * stats.games_won + elapsed) / games_won)
    best_time = elapsed if stats.best_time == 0 else min(stats.best_time, elapsed)
    current_streak = stats.current_streak + 1
    return replace(
        stats,
        games_played=stats.games_played + 1,
        games_won=games_won,
        average_time=average_time,
        best_time=best_time,
        hints_used=stats.hints_used + outcome.hints_used,
        current_streak=current_streak,
        best_streak=max(stats.best_streak, current_streak),
    )


def record_loss(stats):
    return replace(stats, games_played=stats.games_played + 1, current_streak=0)


# --- EXPORT / IMPORT ---

def export_game_data(session, stats):
    return {
        'gameState': session_to_dict(session) if session is not None else None,
        'stats': stats_to_dict(stats),
        'exportDate': datetime.now(timezone.utc).isoformat(),
    }


def import_game_data(data):
    """
    Reads an export document back.

    :returns: ``(session, stats)``; the session is None when the export had none.
        Returns None when the document is malformed.
    :rtype: tuple[GameSession | None, GameStats] | None
    """
    if not isinstance(data, dict):
        logging.error("Failed to import game data: expected a JSON object.")
        return None
    try:
        game_state = data.get('gameState')
        session = session_from_dict(game_state) if game_state else None
        stats = stats_from_dict(data['stats']) if data.get('stats') else default_stats()
    except InvalidSnapshotError as e:
        logging.error(f"Failed to import game data: {e}")
        return None
    return session, stats
