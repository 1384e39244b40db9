import re

from bounce.services.gameplay.visuals import ROW_PALETTE, color_for

HEX_COLOR = re.compile(r'^#[0-9a-f]{6}$')


def test_single_hit_blocks_keep_row_color():
    assert color_for(1, 0, 0) == '#ff0000'
    assert color_for(1, 0, 1) == '#ff7700'
    for row in range(10):
        assert color_for(1, 0, row) == ROW_PALETTE[row % 5]


def test_undamaged_multi_hit_block_is_darkened():
    assert color_for(3, 0, 0) == '#660000'


def test_color_changes_as_damage_accumulates():
    undamaged = color_for(3, 0, 0)
    damaged_once = color_for(3, 1, 0)
    damaged_twice = color_for(3, 2, 0)
    assert len({undamaged, damaged_once, damaged_twice}) == 3


def test_full_damage_restores_row_color():
    assert color_for(2, 2, 0) == '#ff0000'


def test_always_a_valid_hex_color():
    for toughness in range(1, 5):
        for damage in range(0, toughness + 1):
            for row in range(10):
                assert HEX_COLOR.match(color_for(toughness, damage, row))
