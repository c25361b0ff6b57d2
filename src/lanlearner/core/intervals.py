"""Ebbinghaus interval table.

Stage ``i`` waits ``EBBINGHAUS_INTERVALS_HOURS[i]`` hours before the card is
due again: 1 day, 2 days, 1 week, 1 month, then ~5.5 months. ``MAX_STAGE`` is
the terminal "mastered" stage and has no entry.
"""

from __future__ import annotations

EBBINGHAUS_INTERVALS_HOURS: tuple[int, ...] = (
    24,  # 0 -> 1
    48,  # 1 -> 2
    168,  # 2 -> 3 (7 days)
    720,  # 3 -> 4 (30 days)
    3960,  # 4 -> 5 (165 days)
)

MIN_STAGE = 0
MAX_STAGE = len(EBBINGHAUS_INTERVALS_HOURS)

# Used for any stage the table does not cover (corrupted persisted data).
DEFAULT_INTERVAL_HOURS = 24

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS
MASTERED_DELAY_MS = 365 * DAY_MS


def interval_hours_for_stage(stage: int) -> int:
    """Return the wait in hours after reaching ``stage``.

    Out-of-range stages (negative, or ``>= MAX_STAGE``) get
    ``DEFAULT_INTERVAL_HOURS`` instead of an error.
    """
    if MIN_STAGE <= stage < MAX_STAGE:
        return EBBINGHAUS_INTERVALS_HOURS[stage]
    return DEFAULT_INTERVAL_HOURS
