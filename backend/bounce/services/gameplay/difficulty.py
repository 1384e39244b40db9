from dataclasses import dataclass, field
from typing import List

from .scoring import Block, HitResult, resolve_hit

BASE_ROWS = 5
MAX_ROWS = 10
DEFAULT_COLUMNS = 10


def row_count(level: int) -> int:
    """Number of block rows for a level.

    Grows by one row per level from 5 and saturates at 10 on level 6. There is
    no lower clamp, so level 0 yields 4 and negative levels keep shrinking.
    """
    return min(BASE_ROWS + level - 1, MAX_ROWS)


def block_toughness(level: int, row_index: int) -> int:
    """Hits needed to destroy a block in ``row_index`` (0 is the top row).

    Thresholds are taken from the row count of the given level, so the 3-hit
    and 2-hit bands always cover the same share of whatever rows exist.
    """
    if level <= 6:
        return 1

    rows = row_count(level)
    if level <= 9:
        return 2 if row_index < rows // 2 else 1

    if level <= 12:
        three_hit, two_hit = int(rows * 0.25), int(rows * 0.65)
    else:
        three_hit, two_hit = int(rows * 0.5), int(rows * 0.8)

    if row_index < three_hit:
        return 3
    if row_index < two_hit:
        return 2
    return 1


def aggregate_difficulty(level: int) -> int:
    return sum(block_toughness(level, r) for r in range(row_count(level)))


@dataclass
class LevelGrid:
    level: int
    rows: List[List[Block]] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return sum(1 for row in self.rows for block in row if block.alive)

    @property
    def cleared(self) -> bool:
        return self.remaining == 0

    def hit(self, row: int, column: int) -> HitResult:
        return resolve_hit(self.rows[row][column])


def build_level_grid(level: int, columns: int = DEFAULT_COLUMNS) -> LevelGrid:
    rows = [
        [Block(row=r, toughness=block_toughness(level, r)) for _ in range(columns)]
        for r in range(max(0, row_count(level)))
    ]
    return LevelGrid(level=level, rows=rows)
