import math
from typing import Tuple

BASE_BALL_SPEED = 4
LEVEL_SPEED_BONUS = 0.5
VALID_SPEED_MULTIPLIERS = (1, 2, 3)
DEFAULT_SPEED_MULTIPLIER = 1


def ball_speed(level: int) -> float:
    return BASE_BALL_SPEED + (level - 1) * LEVEL_SPEED_BONUS


def parse_speed_multiplier(raw) -> int:
    """Multiplier chosen in the settings menu; anything unrecognised means 1x."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_SPEED_MULTIPLIER
    if math.isnan(value) or not value.is_integer() or int(value) not in VALID_SPEED_MULTIPLIERS:
        return DEFAULT_SPEED_MULTIPLIER
    return int(value)


def effective_speed(level: int, multiplier: int = DEFAULT_SPEED_MULTIPLIER) -> float:
    # The multiplier changes pacing only; block points never depend on it.
    return ball_speed(level) * multiplier


def rescale_velocity(vx: float, vy: float, target_speed: float) -> Tuple[float, float]:
    """Scale a velocity vector to ``target_speed`` without changing direction."""
    current = math.hypot(vx, vy)
    if current == 0:
        return 0.0, 0.0
    ratio = target_speed / current
    return vx * ratio, vy * ratio


def format_multiplier(multiplier: int) -> str:
    return f'{multiplier}x'
