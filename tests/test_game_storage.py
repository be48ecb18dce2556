import random
from dataclasses import replace
from datetime import datetime

import pytest

from chromalab import campaign_levels
from chromalab import game_storage as store
from chromalab.exceptions import InvalidSnapshotError
from chromalab.game_session import CheckOutcome, place, rotate, use_hint
from chromalab.models import GameStats


def test_level_round_trip():
    level = campaign_levels.get_level(5)
    assert store.level_from_dict(store.level_to_dict(level)) == level


def test_played_session_round_trip(simple_session):
    session = rotate(simple_session, "simple_line").session
    session = use_hint(session).session
    assert store.session_from_dict(store.session_to_dict(session)) == session

    session = place(session, "simple_line", (1, 0)).session
    data = store.session_to_dict(session)
    assert data['gameStatus'] == "playing"
    assert data['placedPieces'][0]['position'] == {'x': 1, 'y': 0}
    assert store.session_from_dict(data) == session


@pytest.mark.parametrize("hints_used", [1, 2])
def test_every_hint_kind_survives_a_round_trip(simple_session, hints_used):
    session = use_hint(replace(simple_session, hints_used=hints_used), random.Random(4)).session
    data = store.session_to_dict(session)
    assert data['currentHint']['kind'] in ("position", "reveal_target")
    assert store.session_from_dict(data).current_hint == session.current_hint


def test_stored_board_is_rebuilt_from_pieces(simple_session):
    data = store.session_to_dict(simple_session)
    data['board'] = [[["red"]] * 6 for _ in range(6)]
    assert store.session_from_dict(data).board.is_blank()


def test_inconsistent_pieces_are_rejected(primaries_session):
    session = place(primaries_session, "r", (0, 0)).session
    data = store.session_to_dict(session)
    data['placedPieces'].append(dict(data['pieces'][-1], position={'x': 0, 'y': 0}))  # green on red
    with pytest.raises(InvalidSnapshotError):
        store.session_from_dict(data)


@pytest.mark.parametrize("mutate", [
    lambda d: d.pop('targetBoard'),
    lambda d: d.update(gameStatus="sleeping"),
    lambda d: d['pieces'][0].update(shape=[["purple"]]),
    lambda d: d.update(currentHint={'kind': 'magic', 'message': '?'}),
    lambda d: d.update(targetBoard=[[[] for _ in range(4)] for _ in range(4)]),
    lambda d: d['targetBoard'][3].pop(),
    lambda d: d.update(targetBoard=[[]] * 6),
    lambda d: d['targetBoard'][0][0].extend(["red", "green"]),
    lambda d: d['targetBoard'][2][1].extend(["yellow", "yellow"]),
    lambda d: d['targetBoard'][0][0].append("empty"),
    lambda d: d['pieces'][0].update(rotation=45),
    lambda d: d['pieces'][0].update(shape=[["red", "red"], ["red"]]),
    lambda d: d['pieces'][0].update(shape=[]),
])
def test_malformed_sessions_are_rejected(simple_session, mutate):
    data = store.session_to_dict(simple_session)
    mutate(data)
    with pytest.raises(InvalidSnapshotError):
        store.session_from_dict(data)


def test_board_loader_checks_every_cell():
    rows = store.board_to_dict(campaign_levels.get_level(2).target_board)
    assert store.board_from_dict(rows) == campaign_levels.get_level(2).target_board

    rows[5][5] = ["blue", "orange"]
    with pytest.raises(InvalidSnapshotError, match="white"):
        store.board_from_dict(rows)


def test_piece_loader_keeps_rotation_on_the_quarter_turns():
    data = {'id': 'a', 'shape': [["red"]], 'rotation': 270}
    assert store.piece_from_dict(data).rotation == 270
    with pytest.raises(InvalidSnapshotError, match="rotation 45"):
        store.piece_from_dict(dict(data, rotation=45))


def test_level_with_wrong_board_size_is_rejected():
    data = store.level_to_dict(campaign_levels.get_level(1))
    data['board'] = [[[] for _ in range(4)] for _ in range(4)]
    with pytest.raises(InvalidSnapshotError, match="6 rows"):
        store.level_from_dict(data)


def test_record_win_and_loss():
    stats = store.record_win(store.default_stats(), CheckOutcome(True, 60, 1, 1200))
    assert stats == GameStats(games_played=1, games_won=1, average_time=60, best_time=60,
                              hints_used=1, current_streak=1, best_streak=1)

    stats = store.record_win(stats, CheckOutcome(True, 30, 0, 1400))
    assert stats.average_time == 45
    assert stats.best_time == 30
    assert stats.current_streak == 2

    stats = store.record_loss(stats)
    assert stats.games_played == 3
    assert stats.games_won == 2
    assert stats.current_streak == 0
    assert stats.best_streak == 2


def test_stats_use_camel_case_keys():
    data = store.stats_to_dict(GameStats(games_played=2, best_streak=1))
    assert data == {'gamesPlayed': 2, 'gamesWon': 0, 'averageTime': 0, 'bestTime': 0,
                    'hintsUsed': 0, 'currentStreak': 0, 'bestStreak': 1}
    assert store.stats_from_dict(data) == GameStats(games_played=2, best_streak=1)


def test_export_and_import(simple_session):
    stats = GameStats(games_played=3, games_won=2)
    exported = store.export_game_data(simple_session, stats)
    assert datetime.fromisoformat(exported['exportDate'])
    assert store.import_game_data(exported) == (simple_session, stats)


def test_import_without_session():
    assert store.import_game_data({'stats': {'gamesPlayed': 4}}) == (None, GameStats(games_played=4))
    assert store.import_game_data({}) == (None, store.default_stats())


def test_import_rejects_malformed_data(caplog):
    assert store.import_game_data("not a document") is None
    assert store.import_game_data({'gameState': {'pieces': []}}) is None
    assert "Failed to import game data" in caplog.text
