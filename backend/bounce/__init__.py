from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

SAMPLE_SCORES = [
    ('SpeedRunner', 8500, 15),
    ('BrickMaster', 7200, 12),
    ('ArcadeKing', 6800, 11),
    ('PixelPro', 5500, 9),
    ('RetroGamer', 4900, 8),
    ('PaddleWizard', 4200, 7),
    ('BallBouncer', 3700, 6),
    ('ComboQueen', 3100, 5),
    ('NeonNinja', 2600, 4),
    ('Anonymous', 2100, 3),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    from bounce.store import engine_options_for
    flask_app.config.setdefault(
        'SQLALCHEMY_ENGINE_OPTIONS',
        engine_options_for(flask_app.config['SQLALCHEMY_DATABASE_URI'], int(flask_app.config.get('STORE_TIMEOUT_SEC', 5))),
    )

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    if '*' in origins:
        origins = '*'
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from bounce.services.leaderboard.throttle import SlidingWindowLimiter
    flask_app.extensions['rate_limiter'] = SlidingWindowLimiter()

    if not flask_app.config.get('SCORE_SECRET'):
        flask_app.logger.warning("SCORE_SECRET is not set; every score submission will be rejected as unauthorized")

    # Import and register blueprints here
    from bounce.main import main
    flask_app.register_blueprint(main)

    from bounce.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api')

    from bounce.api.levels import levels
    flask_app.register_blueprint(levels, url_prefix='/api/levels')

    from bounce.socketio_events import register_socketio_handlers
    register_socketio_handlers(socketio, testing=flask_app.config.get('TESTING', False))

    _register_error_handlers(flask_app)

    @click.command('db-seed')
    def db_seed_command():
        """Adds sample high scores for local testing."""
        with flask_app.app_context():
            _seed_scores()
            print('Sample scores added!')

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            _seed_scores()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_seed_command)
    flask_app.cli.add_command(db_reset_command)

    return flask_app


def _register_error_handlers(flask_app):
    from bounce.errors import LeaderboardError, RateLimitedError

    @flask_app.errorhandler(LeaderboardError)
    def handle_leaderboard_error(error):
        if error.status >= 500:
            flask_app.logger.error(f"[{error.kind}] {error}")
        response = jsonify(error.to_dict())
        response.status_code = error.status
        if isinstance(error, RateLimitedError):
            response.headers['Retry-After'] = str(error.retry_after)
        return response

    @flask_app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'success': False, 'error': 'Not found', 'kind': 'not-found'}), 404

    @flask_app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method not allowed', 'kind': 'method-not-allowed'}), 405

    @flask_app.errorhandler(Exception)
    def handle_unexpected(error):
        if isinstance(error, HTTPException):
            return jsonify({'success': False, 'error': error.description, 'kind': 'http-error'}), error.code
        flask_app.logger.exception(f"Unhandled error: {error}")
        body = {'success': False, 'error': 'Internal server error', 'kind': 'internal'}
        if flask_app.config.get('EXPOSE_ERROR_DETAIL'):
            body['message'] = str(error)
        return jsonify(body), 500


def _seed_scores():
    from flask import current_app
    from bounce.models import HighScore, submit_window_for, utcnow
    from bounce.services.leaderboard.identity import hash_identity
    now = utcnow()
    cooldown = int(current_app.config.get('SUBMIT_COOLDOWN_SEC', 30))
    added = 0
    for name, score, level in SAMPLE_SCORES:
        identity_hash = hash_identity(f'seed-{name}')
        if HighScore.query.filter_by(identity_hash=identity_hash).first() is not None:
            print(f'Skipped: {name} (already seeded)')
            continue
        db.session.add(HighScore(
            name=name,
            score=score,
            level_reached=level,
            created_at=now,
            identity_hash=identity_hash,
            submit_window=submit_window_for(now, cooldown),
        ))
        added += 1
        print(f'Added: {name} - {score} pts (Level {level})')
    db.session.commit()
    return added
