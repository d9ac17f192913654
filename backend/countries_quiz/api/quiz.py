from flask import Blueprint, jsonify, request, current_app
from countries_quiz.services.quiz import get_resolver
from countries_quiz.services.quiz.errors import InvalidInput, InvalidState
from countries_quiz.services.quiz.registry import sessions
from countries_quiz.services.quiz.scheduler import publish_session, schedule_score_submission, schedule_session_clock
from countries_quiz.services.quiz.session import Phase, QuizSession

quiz = Blueprint('quiz', __name__)


def _handle_or_404(session_id):
    handle = sessions.get(session_id)
    if handle is None:
        return None, (jsonify({'error': 'Session not found'}), 404)
    return handle, None


def _json_object():
    """Request body as a dict; None when it is some other JSON value."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _after_change(handle):
    """Push the new state, then save the score in the background once finished."""
    payload = handle.to_dict()
    publish_session(handle)
    if handle.session.phase == Phase.FINISHED:
        schedule_score_submission(current_app._get_current_object(), handle)
    return payload


def _run(session_id, fn):
    handle, error = _handle_or_404(session_id)
    if error:
        return error
    try:
        sessions.apply(session_id, fn)
    except InvalidState as exc:
        return jsonify({'error': str(exc), 'phase': handle.session.phase.value}), 409
    except KeyError:
        return jsonify({'error': 'Session not found'}), 404
    return jsonify(_after_change(handle))


@quiz.route('/sessions', methods=['POST'])
def create_session():
    """
    Creates a session for one player and starts the countdown.
    """
    data = _json_object()
    if data is None:
        return jsonify({'error': 'Invalid request data'}), 400
    player_name = data.get('player_name', data.get('playerName'))
    difficulty = data.get('difficulty')

    app = current_app._get_current_object()
    retention = int(app.config.get('SESSION_RETENTION_SEC', 3600))
    pruned = sessions.prune_finished(retention)
    if pruned:
        app.logger.info(f"[session-prune] dropped {pruned} finished session(s)")

    session = QuizSession(get_resolver(), review_seconds=app.config.get('REVIEW_DURATION_SEC', 180))
    try:
        session.start(player_name, difficulty)
    except InvalidInput as exc:
        return jsonify({'error': str(exc)}), 400

    handle = sessions.create(session)
    app.logger.info(
        f"[session-start] session={handle.session_id} player={session.player_name!r} difficulty={session.difficulty.value}"
    )
    payload = handle.to_dict()
    schedule_session_clock(app, handle.session_id)
    return jsonify(payload), 201


@quiz.route('/sessions/<string:session_id>', methods=['GET'])
def get_session(session_id):
    handle, error = _handle_or_404(session_id)
    if error:
        return error
    return jsonify(handle.to_dict())


@quiz.route('/sessions/<string:session_id>/input', methods=['POST'])
def submit_input(session_id):
    """
    Feeds the current contents of the answer box. A miss is a normal
    outcome and returns matched=null.
    """
    data = _json_object()
    if data is None:
        return jsonify({'error': 'Invalid request data'}), 400
    text = data.get('text')
    if text is not None and not isinstance(text, str):
        return jsonify({'error': 'text must be a string'}), 400

    handle, error = _handle_or_404(session_id)
    if error:
        return error
    try:
        matched = sessions.apply(session_id, lambda s: s.submit_input(text or ''))
    except KeyError:
        return jsonify({'error': 'Session not found'}), 404
    payload = handle.to_dict()
    if matched:
        publish_session(handle)
    return jsonify({'matched': matched, 'state': payload})


@quiz.route('/sessions/<string:session_id>/tick', methods=['POST'])
def tick_session(session_id):
    """
    Advances the session clock by one second, for clients that run
    their own timer.
    """
    return _run(session_id, lambda s: s.tick())


@quiz.route('/sessions/<string:session_id>/give-up', methods=['POST'])
def give_up(session_id):
    return _run(session_id, lambda s: s.give_up())


@quiz.route('/sessions/<string:session_id>/finish-review', methods=['POST'])
def finish_review(session_id):
    return _run(session_id, lambda s: s.finish_review())


@quiz.route('/sessions/<string:session_id>', methods=['DELETE'])
def discard_session(session_id):
    handle = sessions.discard(session_id)
    if handle is None:
        return jsonify({'error': 'Session not found'}), 404
    return jsonify({'message': 'Session discarded', 'session_id': session_id})
