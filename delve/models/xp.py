"""Experience point (XP) progression utilities.

Kill rewards and level thresholds live here so the combat path and any UI
progress bar agree on the numbers.
"""

FIRST_LEVEL_XP = 50
THRESHOLD_GROWTH = 1.5
KILL_LIFE_FACTOR = 0.20


def xp_for_kill(power: int, max_life: int) -> int:
    """Return the XP awarded for killing a monster.

    Args:
        power: The monster's effective power at death.
        max_life: The monster's (depth scaled) maximum life.

    Returns:
        ``floor(power + 0.20 * max_life)``; a 20 life / 3 power monster is
        worth 7 XP.
    """
    return int(power + KILL_LIFE_FACTOR * max_life)


def next_level_threshold(current: int) -> int:
    """XP needed for the following level once ``current`` has been consumed."""
    return int(current * THRESHOLD_GROWTH)


def threshold_for_level(level: int) -> int:
    """XP needed to advance past ``level`` (1-based)."""
    xp = FIRST_LEVEL_XP
    for _ in range(max(0, level - 1)):
        xp = next_level_threshold(xp)
    return xp
