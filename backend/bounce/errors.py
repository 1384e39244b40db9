"""Error kinds surfaced by the leaderboard API.

Every failure a client can observe is a ``LeaderboardError`` subclass carrying a
stable machine-readable ``kind`` and the HTTP status it maps to. The app factory
registers a handler that renders them as JSON.
"""


class LeaderboardError(Exception):
    """Base exception for leaderboard-related errors."""
    kind = 'internal'
    status = 500

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

    def to_dict(self) -> dict:
        return {
            'success': False,
            'error': self.user_message,
            'kind': self.kind,
        }


class MissingFieldsError(LeaderboardError):
    kind = 'missing-fields'
    status = 400

    def __init__(self, missing):
        super().__init__(
            f"Missing required fields: {', '.join(missing)}",
            'Missing required fields: score, level, secret'
        )
        self.missing = list(missing)


class InvalidNameError(LeaderboardError):
    kind = 'invalid-name'
    status = 400

    def __init__(self, reason: str):
        super().__init__(f"Invalid name: {reason}", reason)


class InvalidScoreError(LeaderboardError):
    kind = 'invalid-score'
    status = 400

    def __init__(self, score=None):
        super().__init__(
            f"Invalid score {score!r}",
            'Invalid score. Must be integer between 0 and 999,999'
        )


class InvalidLevelError(LeaderboardError):
    kind = 'invalid-level'
    status = 400

    def __init__(self, level=None):
        super().__init__(
            f"Invalid level {level!r}",
            'Invalid level. Must be integer between 1 and 100'
        )


class UnauthorizedError(LeaderboardError):
    kind = 'unauthorized'
    status = 401

    def __init__(self):
        super().__init__('Source token mismatch', 'Invalid authentication token')


class ImplausibleScoreError(LeaderboardError):
    kind = 'implausible-score'
    status = 400

    def __init__(self, score: int, level: int, ceiling: int):
        super().__init__(
            f"Score {score} exceeds plausible maximum {ceiling} for level {level}",
            'Score exceeds plausible maximum for level reached'
        )
        self.ceiling = ceiling


class RateLimitedError(LeaderboardError):
    kind = 'rate-limited'
    status = 429

    def __init__(self, retry_after: int, user_message: str = None):
        super().__init__(
            f"Rate limit exceeded, {retry_after}s remaining",
            user_message or 'Too many attempts. Please wait before submitting again.'
        )
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload['retryAfter'] = self.retry_after
        return payload


class RangeInvalidError(LeaderboardError):
    kind = 'range-invalid'
    status = 400

    def __init__(self, reason: str):
        super().__init__(f"Invalid pagination: {reason}", reason)


class StoreUnavailableError(LeaderboardError):
    kind = 'store-unavailable'
    status = 503

    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            'Database unavailable. Please try again later.'
        )


class StoreTimeoutError(LeaderboardError):
    kind = 'store-timeout'
    status = 504

    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database timeout during {operation}: {details}",
            'Database did not respond in time. Please try again later.'
        )


class InternalError(LeaderboardError):
    kind = 'internal'
    status = 500

    def __init__(self, details: str = None):
        super().__init__(details or 'Internal server error', 'Internal server error')
