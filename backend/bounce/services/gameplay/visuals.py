ROW_PALETTE = ('#ff0000', '#ff7700', '#ffff00', '#00ff00', '#0077ff')


def _channels(hex_color: str):
    return tuple(int(hex_color[i:i + 2], 16) for i in (1, 3, 5))


def color_for(toughness: int, damage_taken: int, row_index: int) -> str:
    """Display color for a block given how much damage it has absorbed.

    Single-hit blocks keep their row color. Multi-hit blocks start at 40% of
    the row color and brighten linearly to 100% as damage accumulates.
    """
    base = ROW_PALETTE[row_index % len(ROW_PALETTE)]
    if toughness == 1:
        return base

    hit_ratio = damage_taken / toughness
    darken_factor = 0.4 + hit_ratio * 0.6
    scaled = (min(255, max(0, int(c * darken_factor))) for c in _channels(base))
    return '#' + ''.join(f'{c:02x}' for c in scaled)
