"""Weekly insight classification and message rendering.

Classification and wording are kept apart: ``classify_insight`` picks a
category and captures the numbers it was based on, and ``render_insight``
turns that into text. Swapping the wording never changes which branch a
weigh-in lands in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from phaseweight.tracking.models import FINAL_PHASE_ID, Phase

# |delta| below this counts as no change
STALL_THRESHOLD_KG = 0.1


class InsightCategory(Enum):
    """Narrative category for a weigh-in."""
    ON_TRACK = "on_track"                          # loss within the phase pace band
    FASTER_THAN_EXPECTED = "faster_than_expected"  # above the band, likely water
    GAIN = "gain"                                  # weight went up
    STALL = "stall"                                # effectively flat
    SLOW_PROGRESS = "slow_progress"                # loss below the band


@dataclass(frozen=True)
class Insight:
    """Classified weigh-in with the figures used to classify it."""

    category: InsightCategory
    phase_id: int
    weekly_delta: float
    trend: float  # kg/week over the last 4 entries, positive = losing
    remaining_kg: float  # to the phase target


def classify_insight(
    weekly_delta: float, trend: float, phase: Phase, current_weight: float
) -> Insight:
    """
    Classify a weigh-in; first matching rule wins.

    1. delta in [-max, -min] -> ON_TRACK
    2. delta < -max          -> FASTER_THAN_EXPECTED
    3. delta > 0             -> GAIN
    4. |delta| < 0.1         -> STALL
    5. otherwise             -> SLOW_PROGRESS
    """
    if -phase.weekly_loss_max_kg <= weekly_delta <= -phase.weekly_loss_min_kg:
        category = InsightCategory.ON_TRACK
    elif weekly_delta < -phase.weekly_loss_max_kg:
        category = InsightCategory.FASTER_THAN_EXPECTED
    elif weekly_delta > 0:
        category = InsightCategory.GAIN
    elif abs(weekly_delta) < STALL_THRESHOLD_KG:
        category = InsightCategory.STALL
    else:
        category = InsightCategory.SLOW_PROGRESS

    return Insight(
        category=category,
        phase_id=phase.id,
        weekly_delta=weekly_delta,
        trend=trend,
        remaining_kg=current_weight - phase.target_weight_kg,
    )


def render_insight(insight: Insight) -> str:
    """Render an insight as user-facing text."""
    delta = abs(insight.weekly_delta)
    trend = abs(insight.trend)
    category = insight.category

    if category is InsightCategory.ON_TRACK:
        return (
            f"You lost {delta:.1f} kg this week, which is right in the expected range "
            f"for Phase {insight.phase_id}. Your 4-week trend shows consistent progress "
            f"at {trend:.1f} kg per week. Keep doing what you're doing."
        )

    if category is InsightCategory.FASTER_THAN_EXPECTED:
        return (
            f"You lost {delta:.1f} kg this week, which is above the typical range. "
            "Some of this is probably water weight. Let's see how next week goes; "
            f"your 4-week trend is {trend:.1f} kg per week."
        )

    if category is InsightCategory.GAIN:
        if insight.trend > 0:
            trend_message = (
                f"Your 4-week trend is still downward at {trend:.1f} kg per week, "
                "and that is the number to watch."
            )
        elif insight.trend < 0:
            trend_message = (
                f"Your 4-week trend is also up, by {trend:.1f} kg per week. "
                "Check in on the habits that worked in earlier weeks."
            )
        else:
            trend_message = "Your 4-week trend is flat."
        return (
            f"Your weight increased by {insight.weekly_delta:.1f} kg this week. "
            f"Weekly fluctuations are normal. {trend_message} Stay consistent."
        )

    if category is InsightCategory.STALL:
        if insight.phase_id == FINAL_PHASE_ID:
            phase_message = (
                f"In Phase {FINAL_PHASE_ID}, progress often slows. Your body is adjusting."
            )
        else:
            phase_message = "Weight can stabilize for a week."
        return (
            f"No significant change this week. {phase_message} Your 4-week trend "
            f"is {trend:.1f} kg per week. Consistency wins."
        )

    return (
        f"You lost {delta:.1f} kg this week. Progress is happening. Your 4-week "
        f"trend is {trend:.1f} kg per week. {insight.remaining_kg:.1f} kg to go "
        "in this phase."
    )


def generate_insight(
    weekly_delta: float, trend: float, phase: Phase, current_weight: float
) -> str:
    """Classify and render in one step."""
    return render_insight(classify_insight(weekly_delta, trend, phase, current_weight))
