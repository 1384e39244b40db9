import math
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_

from bounce.errors import RangeInvalidError
from bounce.models import HighScore
from bounce.store import store_errors

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

RANK_ORDER = (HighScore.score.desc(), HighScore.created_at.asc(), HighScore.id.asc())


def _as_int(raw, name: str) -> int:
    if isinstance(raw, bool):
        raise RangeInvalidError(f'{name} must be an integer')
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise RangeInvalidError(f'{name} must be an integer')


def parse_pagination(limit_raw=None, offset_raw=None) -> Tuple[int, int]:
    """Validate paging parameters; out-of-range values are rejected, not clamped."""
    limit = DEFAULT_LIMIT if limit_raw in (None, '') else _as_int(limit_raw, 'limit')
    offset = 0 if offset_raw in (None, '') else _as_int(offset_raw, 'offset')
    if not 1 <= limit <= MAX_LIMIT:
        raise RangeInvalidError(f'Limit must be between 1 and {MAX_LIMIT}')
    if offset < 0:
        raise RangeInvalidError('Offset must be zero or greater')
    return limit, offset


class LeaderboardQuery:
    """Read side of the leaderboard over an injected session."""

    def __init__(self, session):
        self.session = session

    def rank_of(self, record: HighScore) -> int:
        """1 + entries ahead of ``record`` in leaderboard order.

        Equal score and ``created_at`` fall back to ``id``, so two such entries
        get distinct ranks, the same ones ``top()`` assigns with ROW_NUMBER().
        """
        with store_errors(self.session, 'rank'):
            better = self.session.query(func.count(HighScore.id)).filter(
                or_(
                    HighScore.score > record.score,
                    and_(HighScore.score == record.score, HighScore.created_at < record.created_at),
                    and_(
                        HighScore.score == record.score,
                        HighScore.created_at == record.created_at,
                        HighScore.id < record.id,
                    ),
                )
            ).scalar()
        return int(better or 0) + 1

    def top(self, limit: int = DEFAULT_LIMIT, offset: int = 0) -> List[dict]:
        limit, offset = parse_pagination(limit, offset)
        rank = func.row_number().over(order_by=RANK_ORDER).label('rank')
        with store_errors(self.session, 'fetch scores'):
            rows = (
                self.session.query(
                    HighScore.name,
                    HighScore.score,
                    HighScore.level_reached,
                    HighScore.created_at,
                    rank,
                )
                .order_by(*RANK_ORDER)
                .limit(limit)
                .offset(offset)
                .all()
            )
        return [
            {
                'name': r.name,
                'score': r.score,
                'level_reached': r.level_reached,
                'created_at': r.created_at.isoformat() + 'Z' if r.created_at else None,
                'rank': int(r.rank),
            }
            for r in rows
        ]

    def stats(self) -> dict:
        with store_errors(self.session, 'fetch stats'):
            total, average, highest, highest_level = self.session.query(
                func.count(HighScore.id),
                func.avg(HighScore.score),
                func.max(HighScore.score),
                func.max(HighScore.level_reached),
            ).one()
        return {
            'total_scores': int(total or 0),
            'average_score': _rounded(average),
            'highest_score': highest,
            'highest_level': highest_level,
        }


def _rounded(value) -> Optional[int]:
    if value is None:
        return None
    # Half-up, like SQL ROUND
    return math.floor(float(value) + 0.5)
