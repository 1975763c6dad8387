"""Gait phase estimation from the most recent events of each foot.

The phase is never stored: it is recomputed from (events, now) on every
query, so there is no phase state that can go stale.
"""

from typing import Iterable, Optional

from .models import Foot, FootPhase, GaitEvent, GaitPhase

# Phase boundaries in ms after the triggering event
HEEL_STRIKE_END_MS = 200.0
FOOT_FLAT_END_MS = 400.0
MID_STANCE_SPAN_MS = 400.0
TOE_OFF_END_MS = 300.0
MID_SWING_END_MS = 600.0
TERMINAL_SWING_SPAN_MS = 200.0

UNKNOWN_PHASE = FootPhase(phase='mid-stance', progress=0.5, confidence=0.0)


def determine_foot_phase(last_event: Optional[GaitEvent], now: float) -> FootPhase:
    """
    Map the elapsed time since a foot's last event onto its gait phase.

    Args:
        last_event: Most recent heel-strike or toe-off of the foot, or None
        now: Current time in ms

    Returns:
        FootPhase; mid-stance with zero confidence when there is no event
    """
    if last_event is None:
        return UNKNOWN_PHASE

    elapsed = now - last_event.timestamp

    if last_event.type == 'heel-strike':
        if elapsed < HEEL_STRIKE_END_MS:
            phase, progress = 'heel-strike', 0.0
        elif elapsed < FOOT_FLAT_END_MS:
            phase, progress = 'foot-flat', elapsed / FOOT_FLAT_END_MS
        else:
            phase = 'mid-stance'
            progress = min((elapsed - FOOT_FLAT_END_MS) / MID_STANCE_SPAN_MS, 1.0)
    else:
        if elapsed < TOE_OFF_END_MS:
            phase, progress = 'toe-off', 0.0
        elif elapsed < MID_SWING_END_MS:
            phase = 'mid-swing'
            progress = (elapsed - TOE_OFF_END_MS) / (MID_SWING_END_MS - TOE_OFF_END_MS)
        else:
            phase = 'terminal-swing'
            progress = min((elapsed - MID_SWING_END_MS) / TERMINAL_SWING_SPAN_MS, 1.0)

    return FootPhase(phase=phase, progress=max(progress, 0.0), confidence=last_event.confidence)


def latest_event(events: Iterable[GaitEvent], foot: Foot, now: float, lookback_ms: float) -> Optional[GaitEvent]:
    """Most recent event of `foot` within the lookback window."""
    candidates = [
        event for event in events
        if event.foot == foot and now - event.timestamp < lookback_ms
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda event: event.timestamp)


def calculate_gait_phase(events: Iterable[GaitEvent], now: float, lookback_ms: float = 5000.0) -> GaitPhase:
    """Combine both feet's phases; confidence is the weaker of the two."""
    events = list(events)
    left = determine_foot_phase(latest_event(events, 'left', now, lookback_ms), now)
    right = determine_foot_phase(latest_event(events, 'right', now, lookback_ms), now)
    return GaitPhase(
        left=left.phase,
        right=right.phase,
        left_progress=left.progress,
        right_progress=right.progress,
        confidence=min(left.confidence, right.confidence),
    )
