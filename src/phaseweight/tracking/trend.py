"""Rolling averages, trend slope and plateau detection over weigh-ins.

All functions take the history in chronological order (oldest first). Each
windowed function has an explicit small-N fallback because sparse history is
the normal state during the first weeks of tracking, not an error.

History items may be ``WeighIn`` records or bare weights in kilograms.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence, Union

import numpy as np

from phaseweight.tracking.models import WeighIn

# Default windows (in weekly entries)
DEFAULT_ROLLING_WINDOW = 4
DEFAULT_PLATEAU_THRESHOLD = 3

# Spread below this across the plateau window counts as flat
PLATEAU_SPREAD_KG = 0.3

HistoryItem = Union[WeighIn, float]


def _weights(history: Sequence[HistoryItem]) -> list[float]:
    return [
        float(item.weight_kg) if isinstance(item, WeighIn) else float(item)
        for item in history
    ]


def weekly_delta(current: float, previous: Optional[float]) -> float:
    """
    Weight change versus the previous entry.

    The first entry establishes the baseline, so a missing previous weight
    gives 0 rather than a delta.

    Args:
        current: This week's weight
        previous: Last week's weight, or None for the first entry

    Returns:
        current - previous (negative = loss)
    """
    if previous is None:
        return 0.0
    return current - previous


def rolling_average(
    history: Sequence[HistoryItem], window_weeks: int = DEFAULT_ROLLING_WINDOW
) -> float:
    """
    Mean weight over the last ``window_weeks`` entries.

    Uses all entries if fewer than the window exist; an empty history gives 0.
    """
    weights = _weights(history)
    if not weights:
        return 0.0
    recent = weights[-window_weeks:]
    return float(np.mean(recent))


def recompute_rolling_averages(
    history: Sequence[WeighIn], window_weeks: int = DEFAULT_ROLLING_WINDOW
) -> list[WeighIn]:
    """
    Recompute the stored rolling average of every entry.

    Each entry's ``four_week_avg_kg`` reflects the window ending at that
    entry, so the whole history is refreshed whenever any of it changes.

    Returns:
        New list of WeighIn records, same order and length as ``history``
    """
    recalculated = []
    for index, entry in enumerate(history):
        avg = rolling_average(history[: index + 1], window_weeks)
        recalculated.append(replace(entry, four_week_avg_kg=avg))
    return recalculated


def trend_slope(
    history: Sequence[HistoryItem], window_weeks: int = DEFAULT_ROLLING_WINDOW
) -> float:
    """
    Average kilograms lost per week over the window.

    The formula is:
        slope = (first_weight - last_weight) / (n - 1)

    where n is the number of entries in the window. Positive means losing.

    Returns:
        Weekly loss rate, or 0 when the window holds fewer than 2 entries

    Example:
        >>> trend_slope([114.0, 113.2, 112.5, 112.1])
        0.633...
    """
    recent = _weights(history)[-window_weeks:]
    if len(recent) < 2:
        return 0.0
    return (recent[0] - recent[-1]) / (len(recent) - 1)


def detect_plateau(
    history: Sequence[HistoryItem], threshold_weeks: int = DEFAULT_PLATEAU_THRESHOLD
) -> bool:
    """
    Heuristic flag for stalled progress.

    Looks at the last ``threshold_weeks`` entries and declares a plateau if
    either:
      - the spread (max - min) is under 0.3 kg, or
      - the average of the first two weights in the window is not above the
        average of the last two (flat or upward net movement).

    Two-entry sub-averages are used for windows of three or more. A window
    of two departs from that rule: the two sub-averages would be the same
    value and every two-week window would count as a plateau, so the
    endpoints are compared directly instead. A window of one is always flat.
    Noisy short windows will produce false positives; this is not a
    statistical test.

    Returns:
        True if progress looks stalled, False otherwise or when history is
        shorter than ``threshold_weeks``
    """
    weights = _weights(history)
    if threshold_weeks < 1 or len(weights) < threshold_weeks:
        return False

    window = np.array(weights[-threshold_weeks:])

    spread = float(np.ptp(window))
    if spread < PLATEAU_SPREAD_KG:
        return True

    edge = 2 if len(window) >= 3 else 1
    first_avg = float(np.mean(window[:edge]))
    last_avg = float(np.mean(window[-edge:]))
    return last_avg >= first_avg
