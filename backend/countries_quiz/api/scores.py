from flask import Blueprint, current_app, jsonify, request
from countries_quiz.services.quiz.errors import InvalidInput, PersistenceFailure
from countries_quiz.services.quiz.leaderboard import Window, rank, window_start
from countries_quiz.services.quiz.scores import score_store, validate_submission
from datetime import datetime, timezone

scores = Blueprint('scores', __name__)


@scores.route('', methods=['POST'])
@scores.route('/', methods=['POST'])
def submit_score():
    """
    Stores a finished quiz result. Rejects bad payloads before they reach
    the database.
    """
    data = request.get_json(silent=True)
    try:
        entry = validate_submission(data)
    except InvalidInput as exc:
        return jsonify({'error': str(exc)}), 400

    result = score_store.insert(entry)
    if not result.ok:
        return jsonify({'error': 'Could not save score'}), 500
    return jsonify({'success': True, 'data': result.record.to_dict()}), 201


@scores.route('', methods=['GET'])
@scores.route('/', methods=['GET'])
def list_scores():
    """
    Returns the leaderboard: ?limit=100&window=all|today|week.
    """
    cfg = current_app.config
    default_limit = int(cfg.get('LEADERBOARD_LIMIT', 100))
    max_limit = int(cfg.get('LEADERBOARD_MAX_LIMIT', 500))
    try:
        limit = int(request.args.get('limit', default_limit))
    except (TypeError, ValueError):
        return jsonify({'error': 'limit must be an integer', 'data': []}), 400
    limit = max(1, min(limit, max_limit))

    try:
        window = Window.parse(request.args.get('window'))
    except InvalidInput as exc:
        return jsonify({'error': str(exc), 'data': []}), 400

    now = datetime.now(timezone.utc)
    try:
        records = score_store.query(limit, since=window_start(window, now))
    except PersistenceFailure:
        return jsonify({'error': 'Could not load scores', 'data': []}), 500

    ranked = rank(records, window, now=now)
    return jsonify({
        'success': True,
        'window': window.value,
        'data': [dict(r.to_dict(), rank=i + 1) for i, r in enumerate(ranked)],
    })
