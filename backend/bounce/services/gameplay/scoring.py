from dataclasses import dataclass

BASE_BLOCK_POINTS = 10
PARTIAL_HIT_POINTS = 5

# Completion bonus multipliers keyed by toughness (1 : 2.5 : 5 : 10)
_TOUGHNESS_MULTIPLIERS = {1: 1, 2: 2.5, 3: 5, 4: 10}


def points_for_toughness(max_hits: int) -> int:
    """Points for destroying a block that needed ``max_hits`` hits.

    Unknown toughness values score like a 1-hit block instead of failing.
    """
    return int(BASE_BLOCK_POINTS * _TOUGHNESS_MULTIPLIERS.get(max_hits, 1))


@dataclass
class Block:
    row: int
    toughness: int
    damage_taken: int = 0

    @property
    def alive(self) -> bool:
        return self.damage_taken < self.toughness


@dataclass(frozen=True)
class HitResult:
    points: int
    destroyed: bool


def resolve_hit(block: Block) -> HitResult:
    """Apply one ball collision to ``block``.

    +5 while the block survives; the destroying hit awards the full value for
    its toughness instead (a 3-hit block pays 5, 5, then 50).
    """
    if not block.alive:
        raise ValueError(f"block in row {block.row} is already destroyed")
    block.damage_taken += 1
    if block.alive:
        return HitResult(points=PARTIAL_HIT_POINTS, destroyed=False)
    return HitResult(points=points_for_toughness(block.toughness), destroyed=True)
