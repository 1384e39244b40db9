"""Gameplay domain model: difficulty curve, block scoring, damage colors, speed.

Everything here is pure and synchronous. The browser client mirrors these
rules; the server exposes them through the level descriptor endpoint and
keeps them importable for tests and tooling.
"""
from .difficulty import row_count, block_toughness, aggregate_difficulty, build_level_grid, LevelGrid
from .scoring import Block, HitResult, points_for_toughness, resolve_hit
from .visuals import color_for
from .speed import ball_speed, effective_speed, parse_speed_multiplier

__all__ = [
    'row_count', 'block_toughness', 'aggregate_difficulty', 'build_level_grid', 'LevelGrid',
    'Block', 'HitResult', 'points_for_toughness', 'resolve_hit',
    'color_for',
    'ball_speed', 'effective_speed', 'parse_speed_multiplier',
]
