"""Score submission integrity pipeline.

A raw JSON body is parsed into a typed ``ScoreSubmission`` at the HTTP
boundary (presence, name, score and level checks), then ``SubmissionGuard``
authorizes it, applies the plausibility bound and the duplicate window, and
persists it. Each stage raises the ``LeaderboardError`` for its kind and the
first failure wins.
"""
import hmac
import math
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from bounce.errors import (
    ImplausibleScoreError,
    InvalidLevelError,
    InvalidNameError,
    InvalidScoreError,
    MissingFieldsError,
    RateLimitedError,
    UnauthorizedError,
)
from bounce.models import (
    DEFAULT_NAME,
    MAX_LEVEL,
    MAX_NAME_LENGTH,
    MAX_SCORE,
    MIN_LEVEL,
    HighScore,
    submit_window_for,
    utcnow,
)
from bounce.services.leaderboard.identity import hash_identity
from bounce.services.leaderboard.query import LeaderboardQuery
from bounce.store import store_errors

_UNSAFE_NAME_CHARS = re.compile(r"[<>'\"]")

PLAUSIBLE_POINTS_PER_LEVEL = 500
PLAUSIBLE_BASE_POINTS = 10000
DUPLICATE_MESSAGE = 'You already submitted a score recently. Please wait.'


@dataclass(frozen=True)
class ScoreSubmission:
    display_name: str
    score: int
    level_reached: int
    source_token: str
    client_identity: str


def plausible_ceiling(level_reached: int) -> int:
    return level_reached * PLAUSIBLE_POINTS_PER_LEVEL + PLAUSIBLE_BASE_POINTS


def sanitize_name(name: str) -> str:
    return _UNSAFE_NAME_CHARS.sub('', name).strip()


def _as_int(value) -> Optional[int]:
    # JSON numbers arrive as int or float; booleans are ints in Python but not scores.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _parse_name(raw) -> str:
    if raw is None:
        return DEFAULT_NAME
    if not isinstance(raw, str):
        raise InvalidNameError('Name must be a string')
    trimmed = raw.strip()
    if not trimmed:
        raise InvalidNameError('Name cannot be empty')
    if len(trimmed) > MAX_NAME_LENGTH:
        raise InvalidNameError(f'Name too long (max {MAX_NAME_LENGTH} characters)')
    return sanitize_name(trimmed) or DEFAULT_NAME


def parse_submission(payload, client_identity: str) -> ScoreSubmission:
    """Build a typed submission from a request body or raise the first failure."""
    data = payload if isinstance(payload, dict) else {}
    score_raw = data.get('score')
    level_raw = data.get('level')
    secret = data.get('secret')

    missing = [k for k, v in (('score', score_raw), ('level', level_raw)) if v is None]
    if not secret:
        missing.append('secret')
    if missing:
        raise MissingFieldsError(missing)

    display_name = _parse_name(data.get('name'))

    score = _as_int(score_raw)
    if score is None or not 0 <= score <= MAX_SCORE:
        raise InvalidScoreError(score_raw)

    level = _as_int(level_raw)
    if level is None or not MIN_LEVEL <= level <= MAX_LEVEL:
        raise InvalidLevelError(level_raw)

    return ScoreSubmission(
        display_name=display_name,
        score=score,
        level_reached=level,
        source_token=secret if isinstance(secret, str) else '',
        client_identity=client_identity,
    )


class SubmissionGuard:
    """Authorizes, sanity-checks and persists parsed submissions."""

    def __init__(self, session, secret: str, cooldown_sec: int = 30, clock=utcnow):
        self.session = session
        self.secret = secret or ''
        self.cooldown_sec = cooldown_sec
        self.clock = clock

    def submit(self, submission: ScoreSubmission) -> Tuple[HighScore, int]:
        identity_hash = hash_identity(submission.client_identity)
        self._authorize(submission, identity_hash)
        self._check_plausible(submission, identity_hash)

        now = self.clock()
        self._check_duplicate_window(identity_hash, now)

        record = HighScore(
            name=submission.display_name,
            score=submission.score,
            level_reached=submission.level_reached,
            created_at=now,
            identity_hash=identity_hash,
            submit_window=submit_window_for(now, self.cooldown_sec),
        )
        with store_errors(self.session, 'submit score'):
            try:
                self.session.add(record)
                self.session.commit()
            except IntegrityError as error:
                self.session.rollback()
                mapped = self._map_integrity_error(error, submission)
                if mapped is None:
                    raise
                raise mapped from error

        rank = LeaderboardQuery(self.session).rank_of(record)
        current_app.logger.info(
            f"[score-accepted] id={record.id} name={record.name} score={record.score} "
            f"level={record.level_reached} rank={rank}"
        )
        return record, rank

    def _authorize(self, submission: ScoreSubmission, identity_hash: str) -> None:
        token = submission.source_token
        if not self.secret or not token or not hmac.compare_digest(token.encode('utf-8'), self.secret.encode('utf-8')):
            current_app.logger.warning(f"[submit-unauthorized] identity={identity_hash}")
            raise UnauthorizedError()

    def _check_plausible(self, submission: ScoreSubmission, identity_hash: str) -> None:
        ceiling = plausible_ceiling(submission.level_reached)
        if submission.score > ceiling:
            current_app.logger.warning(
                f"[submit-implausible] identity={identity_hash} score={submission.score} "
                f"level={submission.level_reached} ceiling={ceiling}"
            )
            raise ImplausibleScoreError(submission.score, submission.level_reached, ceiling)

    def _check_duplicate_window(self, identity_hash: str, now) -> None:
        since = now - timedelta(seconds=self.cooldown_sec)
        with store_errors(self.session, 'duplicate check'):
            last = (
                self.session.query(HighScore.created_at)
                .filter(HighScore.identity_hash == identity_hash, HighScore.created_at > since)
                .order_by(HighScore.created_at.desc())
                .first()
            )
        if last is not None:
            elapsed = (now - last.created_at).total_seconds()
            retry_after = max(1, math.ceil(self.cooldown_sec - elapsed))
            current_app.logger.info(f"[submit-duplicate] identity={identity_hash} retry_after={retry_after}s")
            raise RateLimitedError(retry_after, DUPLICATE_MESSAGE)

    def _map_integrity_error(self, error: IntegrityError, submission: ScoreSubmission):
        text = str(error.orig).lower()
        if 'ck_high_scores_score_range' in text:
            return InvalidScoreError(submission.score)
        if 'ck_high_scores_level_range' in text:
            return InvalidLevelError(submission.level_reached)
        if 'uq_high_scores_identity_window' in text or 'unique' in text or 'duplicate' in text:
            current_app.logger.info("[submit-duplicate] concurrent submission lost the window race")
            return RateLimitedError(self.cooldown_sec, DUPLICATE_MESSAGE)
        return None
