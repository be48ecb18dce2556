# --- File: chromalab/app.py ---
import logging
import random

from flask import Flask, jsonify, request
from flask_cors import CORS

from chromalab import campaign_levels
from chromalab import game_session as gs
from chromalab import game_storage as store
from chromalab.constants import MAX_DIFFICULTY, MIN_DIFFICULTY, SOLVER_TIMEOUT_MS
from chromalab.exceptions import InvalidSnapshotError, PieceNotFoundError
from chromalab.level_generator import generate_level, rng_for_seed
from chromalab.level_solver import is_level_solvable
from chromalab.models import Position
from chromalab.z3_solver import Z3LevelSolver

app = Flask(__name__)
CORS(app)

# Action names accepted by /api/action and the parameters each one reads.
ACTIONS = {
    'select': lambda p: gs.Select(p.get('pieceId')),
    'place': lambda p: gs.Place(p['pieceId'], _position(p)),
    'remove': lambda p: gs.Remove(p['pieceId']),
    'replace': lambda p: gs.Replace(p['pieceId'], _position(p)),
    'rotate': lambda p: gs.Rotate(p['pieceId']),
    'flip': lambda p: gs.Flip(p['pieceId']),
    'use_hint': lambda p: gs.UseHint(),
    'clear_hint': lambda p: gs.ClearHint(),
    'check': lambda p: gs.Check(),
    'pause': lambda p: gs.Pause(),
    'resume': lambda p: gs.Resume(),
}


def _position(params):
    position = params['position']
    return Position(int(position['x']), int(position['y']))


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidSnapshotError("Request body must be a JSON object")
    return data


def _session_from(data):
    if not data.get('session'):
        raise InvalidSnapshotError("Missing session in request")
    return store.session_from_dict(data['session'])


def _rng_from(data):
    """Reveal hints draw from the request's optional seed so a client can replay them."""
    seed = data.get('seed')
    return random.Random() if seed is None else rng_for_seed(str(seed))


def _transition_to_dict(transition):
    outcome = transition.outcome
    return {
        'session': store.session_to_dict(transition.session),
        'accepted': transition.accepted,
        'message': transition.message,
        'hint': store.hint_to_dict(transition.hint),
        'outcome': None if outcome is None else {
            'solved': outcome.solved,
            'elapsedSeconds': outcome.elapsed_seconds,
            'hintsUsed': outcome.hints_used,
            'finalScore': outcome.final_score,
        },
    }


def _bad_request(route, e):
    logging.warning(f"Bad request to {route}: {e}")
    return jsonify({'error': str(e)}), 400


def _not_found(e):
    return jsonify({'error': str(e)}), 404


def _internal_error(route, e):
    logging.error(f"Error in {route}: {e}", exc_info=True)
    return jsonify({'error': 'An internal error occurred'}), 500


@app.route('/api/new_level', methods=['GET'])
def get_new_level():
    try:
        difficulty = int(request.args.get('difficulty', MIN_DIFFICULTY))
        if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
            return jsonify({'error': 'Invalid difficulty'}), 400
        seed = request.args.get('seed') or None
        level = generate_level(difficulty, seed)
        level_number = campaign_levels.parse_campaign_seed(seed) or 1
        session = gs.new_session(level, level_number)
        return jsonify({'level': store.level_to_dict(level), 'session': store.session_to_dict(session)})
    except ValueError as e:
        return _bad_request('/api/new_level', e)
    except Exception as e:
        return _internal_error('/api/new_level', e)


@app.route('/api/campaign/<int:level_number>', methods=['GET'])
def get_campaign_level(level_number):
    try:
        level = campaign_levels.get_level(level_number)
        if level is None:
            return jsonify({'error': f'No campaign level {level_number}',
                            'totalLevels': campaign_levels.get_total_levels()}), 404
        session = gs.new_session(level, level_number)
        return jsonify({'level': store.level_to_dict(level), 'session': store.session_to_dict(session),
                        'totalLevels': campaign_levels.get_total_levels()})
    except Exception as e:
        return _internal_error('/api/campaign', e)


@app.route('/api/solve', methods=['POST'])
def solve_level():
    try:
        data = _json_body()
        if not data.get('targetBoard') or data.get('pieces') is None:
            return jsonify({'error': 'Missing targetBoard or pieces in request'}), 400
        target = store.board_from_dict(data['targetBoard'])
        pieces = [store.piece_from_dict(piece) for piece in data['pieces']]
        timeout_ms = int(data.get('timeoutMs', SOLVER_TIMEOUT_MS))
        engine = data.get('engine', 'search')
        if engine == 'search':
            result = is_level_solvable(target, pieces, timeout_ms)
        elif engine == 'z3':
            result = Z3LevelSolver(target, pieces).solve(timeout_ms)
        else:
            return jsonify({'error': f'Unknown engine: {engine}'}), 400
        witness = None
        if result.witness is not None:
            witness = [{'pieceId': step.piece_id, 'position': {'x': step.position.x, 'y': step.position.y},
                        'rotation': step.rotation, 'flipped': step.flipped} for step in result.witness]
        return jsonify({'status': result.status.value, 'solvable': result.solvable, 'witness': witness})
    except (InvalidSnapshotError, KeyError, TypeError, ValueError) as e:
        return _bad_request('/api/solve', e)
    except Exception as e:
        return _internal_error('/api/solve', e)


@app.route('/api/action', methods=['POST'])
def apply_session_action():
    try:
        data = _json_body()
        session = _session_from(data)
        name = data.get('action')
        if name not in ACTIONS:
            return jsonify({'error': f'Unknown action: {name}'}), 400
        action = ACTIONS[name](data.get('params') or {})
        return jsonify(_transition_to_dict(gs.apply_action(session, action, rng=_rng_from(data))))
    except PieceNotFoundError as e:
        return _not_found(e)
    except (InvalidSnapshotError, KeyError, TypeError, ValueError) as e:
        return _bad_request('/api/action', e)
    except Exception as e:
        return _internal_error('/api/action', e)


@app.route('/api/hint', methods=['POST'])
def get_hint():
    try:
        data = _json_body()
        session = _session_from(data)
        return jsonify(_transition_to_dict(gs.use_hint(session, _rng_from(data))))
    except InvalidSnapshotError as e:
        return _bad_request('/api/hint', e)
    except Exception as e:
        return _internal_error('/api/hint', e)


@app.route('/api/check', methods=['POST'])
def check_solution():
    try:
        data = _json_body()
        session = _session_from(data)
        stats = store.stats_from_dict(data['stats']) if data.get('stats') else store.default_stats()
        transition = gs.check(session)
        if transition.outcome is not None:
            stats = store.record_win(stats, transition.outcome)
        result = _transition_to_dict(transition)
        result['solved'] = transition.outcome is not None
        result['stats'] = store.stats_to_dict(stats)
        return jsonify(result)
    except InvalidSnapshotError as e:
        return _bad_request('/api/check', e)
    except Exception as e:
        return _internal_error('/api/check', e)


@app.route('/api/reset', methods=['POST'])
def reset_level():
    try:
        session = _session_from(_json_body())
        return jsonify(_transition_to_dict(gs.reset_level(session)))
    except InvalidSnapshotError as e:
        return _bad_request('/api/reset', e)
    except Exception as e:
        return _internal_error('/api/reset', e)


@app.route('/api/next', methods=['POST'])
def next_level():
    try:
        session = _session_from(_json_body())
        return jsonify(_transition_to_dict(gs.next_level(session)))
    except InvalidSnapshotError as e:
        return _bad_request('/api/next', e)
    except Exception as e:
        return _internal_error('/api/next', e)
