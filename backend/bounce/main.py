import time
from datetime import datetime, timezone

from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from bounce import db
from bounce.errors import LeaderboardError
from bounce.store import store_errors

main = Blueprint('main', __name__)

_started_at = time.monotonic()


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the BB-Bounce leaderboard server!'})


@main.route('/health')
def health():
    """Liveness probe: reports whether the store answers a trivial query."""
    try:
        with store_errors(db.session, 'health check'):
            db.session.execute(text('SELECT 1'))
    except LeaderboardError as error:
        current_app.logger.error(f"[health] store unreachable kind={error.kind}: {error}")
        body = {
            'status': 'unhealthy',
            'database': 'disconnected',
            'kind': error.kind,
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }
        if current_app.config.get('EXPOSE_ERROR_DETAIL'):
            body['error'] = str(error)
        return jsonify(body), 503

    return jsonify({
        'status': 'healthy',
        'database': 'connected',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'uptime': round(time.monotonic() - _started_at, 3),
    })
