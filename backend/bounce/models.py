from bounce import db
from datetime import datetime, timezone

MAX_SCORE = 999999
MIN_LEVEL = 1
MAX_LEVEL = 100
MAX_NAME_LENGTH = 20
DEFAULT_NAME = 'Anonymous'


def utcnow() -> datetime:
    """Naive UTC timestamp; the column stores UTC without an offset."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def submit_window_for(moment: datetime, cooldown_sec: int) -> int:
    """Integer bucket used by the storage-level duplicate guard."""
    epoch = moment.replace(tzinfo=timezone.utc).timestamp()
    return int(epoch // max(1, cooldown_sec))


class HighScore(db.Model):
    __tablename__ = 'high_scores'
    __table_args__ = (
        db.CheckConstraint(f'score >= 0 AND score <= {MAX_SCORE}', name='ck_high_scores_score_range'),
        db.CheckConstraint(f'level_reached >= {MIN_LEVEL} AND level_reached <= {MAX_LEVEL}', name='ck_high_scores_level_range'),
        db.UniqueConstraint('identity_hash', 'submit_window', name='uq_high_scores_identity_window'),
        db.Index('ix_high_scores_ranking', 'score', 'created_at'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(MAX_NAME_LENGTH), nullable=False, default=DEFAULT_NAME)
    score = db.Column(db.Integer, nullable=False)
    level_reached = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    identity_hash = db.Column(db.String(64), nullable=False, index=True)
    submit_window = db.Column(db.BigInteger, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'level_reached': self.level_reached,
            'created_at': self.created_at.isoformat() + 'Z' if self.created_at else None,
        }
