from flask import Blueprint, jsonify, request, current_app
from bounce import db, socketio
from bounce.services.leaderboard.identity import client_address
from bounce.services.leaderboard.query import LeaderboardQuery, parse_pagination
from bounce.services.leaderboard.submissions import SubmissionGuard, parse_submission
from bounce.services.leaderboard.throttle import rate_limit


scores = Blueprint('scores', __name__)


@scores.route('/scores', methods=['GET'])
@rate_limit('fetch', 'FETCH_RATE_LIMIT_MAX_REQUESTS', 'FETCH_RATE_LIMIT_WINDOW_SEC',
            'Too many requests. Please try again later.', count_successful=False)
def get_scores():
    limit, offset = parse_pagination(request.args.get('limit'), request.args.get('offset'))
    rows = LeaderboardQuery(db.session).top(limit, offset)
    return jsonify({
        'success': True,
        'count': len(rows),
        'limit': limit,
        'offset': offset,
        'scores': rows,
    })


@scores.route('/submit', methods=['POST'])
@rate_limit('submit', 'RATE_LIMIT_MAX_REQUESTS', 'RATE_LIMIT_WINDOW_SEC')
def submit_score():
    data = request.get_json(silent=True) or {}
    submission = parse_submission(data, client_address())
    cfg = current_app.config
    guard = SubmissionGuard(
        db.session,
        secret=cfg.get('SCORE_SECRET'),
        cooldown_sec=int(cfg.get('SUBMIT_COOLDOWN_SEC', 30)),
    )
    record, rank = guard.submit(submission)
    payload = record.to_dict()

    # Live update for clients watching the leaderboard
    socketio.emit('leaderboard_update', {
        'name': payload['name'],
        'score': payload['score'],
        'level_reached': payload['level_reached'],
        'rank': rank,
    }, to='leaderboard', namespace='/ws')

    return jsonify({
        'success': True,
        'message': 'Score submitted successfully!',
        'score': payload,
        'rank': rank,
    }), 201


@scores.route('/stats', methods=['GET'])
def get_stats():
    return jsonify({
        'success': True,
        'stats': LeaderboardQuery(db.session).stats(),
    })
