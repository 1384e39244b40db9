from flask import Blueprint, jsonify, request
from bounce.errors import InvalidLevelError
from bounce.models import MIN_LEVEL, MAX_LEVEL
from bounce.services.gameplay import (
    aggregate_difficulty,
    block_toughness,
    color_for,
    effective_speed,
    parse_speed_multiplier,
    points_for_toughness,
    row_count,
)
from bounce.services.gameplay.speed import ball_speed, format_multiplier


levels = Blueprint('levels', __name__)


@levels.route('/<int(signed=True):level>', methods=['GET'])
def get_level(level):
    """Describe the block layout and pacing the client should build for ``level``."""
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise InvalidLevelError(level)
    multiplier = parse_speed_multiplier(request.args.get('speed'))
    rows = []
    for r in range(row_count(level)):
        toughness = block_toughness(level, r)
        rows.append({
            'row': r,
            'toughness': toughness,
            'points': points_for_toughness(toughness),
            'color': color_for(toughness, 0, r),
        })
    return jsonify({
        'level': level,
        'row_count': len(rows),
        'rows': rows,
        'aggregate_difficulty': aggregate_difficulty(level),
        'ball_speed': ball_speed(level),
        'speed_multiplier': format_multiplier(multiplier),
        'effective_speed': effective_speed(level, multiplier),
    })
