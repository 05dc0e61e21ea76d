from typing import Sequence


def compute_turn_score(dice: Sequence[int], kept_dice: Sequence[bool]) -> int:
    """Score the kept dice at the end of a turn.

    A turn only scores when a kept 1 and a kept 4 are both present. The
    score is the sum of the other kept dice; one 1 and one 4 are set aside,
    any further 1s or 4s count at face value. Incomplete turns score 0.
    """
    kept = [die for die, is_kept in zip(dice, kept_dice) if is_kept]
    if 1 not in kept or 4 not in kept:
        return 0
    kept.remove(1)
    kept.remove(4)
    return sum(kept)
