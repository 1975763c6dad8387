"""Spatiotemporal gait parameters computed from pose history and gait events."""

from collections import deque
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import GaitConfig
from .gait_phase import calculate_gait_phase
from .models import (
    CalibrationData, GaitEvent, GaitParameters, PoseFrame, empty_parameters
)


def _mean_in_range(values: Iterable[float], valid_range: Tuple[float, float]) -> float:
    """Mean of the values inside [low, high]; implausible values are dropped, not clamped."""
    low, high = valid_range
    values = np.asarray(list(values), dtype=float)
    kept = values[(values >= low) & (values <= high)]
    return float(np.mean(kept)) if kept.size > 0 else 0.0


def raw_cadence(heel_strikes: Sequence[GaitEvent], window: int = 10, min_strikes: int = 4) -> float:
    """
    Steps per minute over the last `window` heel-strikes of either foot.

    Returns 0 with fewer than `min_strikes` heel-strikes or a zero time span.
    """
    if len(heel_strikes) < min_strikes:
        return 0.0
    recent = list(heel_strikes)[-window:]
    time_span = (recent[-1].timestamp - recent[0].timestamp) / 1000.0
    if time_span <= 0:
        return 0.0
    return (len(recent) - 1) / time_span * 60.0


class CadenceStatistics:
    """
    Rolling window of cadence estimates.

    Estimates are recorded on the ingestion path (one per new heel-strike),
    so reading the smoothed cadence never changes state.
    """

    def __init__(self, size: int = 20):
        self._values = deque(maxlen=size)

    def __len__(self) -> int:
        return len(self._values)

    def record(self, value: float):
        if value > 0:
            self._values.append(value)

    def values(self) -> List[float]:
        return list(self._values)


def smoothed_cadence(
    heel_strikes: Sequence[GaitEvent], history: Sequence[float], config: GaitConfig
) -> float:
    """Mean of recorded cadence estimates, falling back to the raw value."""
    if len(heel_strikes) < config.MIN_HEEL_STRIKES_FOR_CADENCE:
        return 0.0
    if len(history) > 0:
        return float(np.mean(history))
    return raw_cadence(heel_strikes, config.CADENCE_STRIKE_WINDOW, config.MIN_HEEL_STRIKES_FOR_CADENCE)


def step_length(
    heel_strikes: Sequence[GaitEvent],
    calibration: Optional[CalibrationData],
    valid_range: Tuple[float, float] = (0.3, 2.0),
) -> float:
    """
    Mean distance in meters between consecutive heel-strikes of one foot.

    Args:
        heel_strikes: Heel-strikes of a single foot, oldest first
        calibration: Current calibration; None yields 0
        valid_range: Plausible step lengths in meters

    Returns:
        Mean plausible step length, or 0.0
    """
    if calibration is None or len(heel_strikes) < 2:
        return 0.0
    positions = np.array([event.position for event in heel_strikes], dtype=float)
    pixel_distances = np.hypot(*np.diff(positions, axis=0).T)
    return _mean_in_range(pixel_distances / calibration.pixels_per_meter, valid_range)


def stride_time(
    left_heel_strikes: Sequence[GaitEvent], valid_range: Tuple[float, float] = (0.5, 3.0)
) -> float:
    """Mean interval in seconds between consecutive left heel-strikes."""
    if len(left_heel_strikes) < 2:
        return 0.0
    intervals = np.diff([event.timestamp for event in left_heel_strikes]) / 1000.0
    return _mean_in_range(intervals, valid_range)


def step_width(
    frames: Sequence[PoseFrame],
    calibration: Optional[CalibrationData],
    min_confidence: float = 0.4,
    valid_range: Tuple[float, float] = (0.05, 0.5),
) -> float:
    """Mean lateral ankle separation in meters over the given frames."""
    if calibration is None or not frames:
        return 0.0
    widths = [
        abs(frame.right_ankle.x - frame.left_ankle.x) / calibration.pixels_per_meter
        for frame in frames
        if frame.left_ankle.confidence > min_confidence and frame.right_ankle.confidence > min_confidence
    ]
    return _mean_in_range(widths, valid_range)


def walking_velocity(stride_length: float, cadence: float) -> float:
    """Velocity in m/s from stride length (m) and cadence (steps/min)."""
    if stride_length == 0 or cadence == 0:
        return 0.0
    return stride_length * cadence / 60.0


def symmetry_index(left_step_length: float, right_step_length: float) -> float:
    """Ratio of the shorter to the longer step, as a percentage."""
    if left_step_length <= 0 or right_step_length <= 0:
        return 0.0
    return min(left_step_length, right_step_length) / max(left_step_length, right_step_length) * 100.0


def stance_time(
    foot_events: Sequence[GaitEvent], valid_range: Tuple[float, float] = (0.2, 1.5)
) -> float:
    """
    Mean heel-strike to next toe-off interval in seconds for one foot.

    Args:
        foot_events: All events of one foot, oldest first
        valid_range: Plausible stance durations in seconds
    """
    toe_offs = [event.timestamp for event in foot_events if event.type == 'toe-off']
    durations = []
    for event in foot_events:
        if event.type != 'heel-strike':
            continue
        next_toe_off = next((t for t in toe_offs if t > event.timestamp), None)
        if next_toe_off is not None:
            durations.append((next_toe_off - event.timestamp) / 1000.0)
    return _mean_in_range(durations, valid_range)


def swing_time(stride: float, stance: float) -> float:
    return stride - stance if stride > stance else 0.0


def double_support(stride: float, placeholder_percent: float = 20.0) -> float:
    """
    Double-support share of the gait cycle.

    Fixed placeholder until dual-contact timing is tracked; 0 while no
    stride time has been measured.
    """
    return placeholder_percent if stride > 0 else 0.0


def overall_confidence(
    frames: Sequence[PoseFrame],
    recent_event_count: int,
    min_confidence: float = 0.4,
    event_saturation: int = 10,
) -> float:
    """
    Mean confident ankle score scaled by how many recent events support the statistics.
    """
    if not frames:
        return 0.0
    scores = []
    for frame in frames:
        if frame.left_ankle.confidence > min_confidence:
            scores.append(frame.left_ankle.confidence)
        if frame.right_ankle.confidence > min_confidence:
            scores.append(frame.right_ankle.confidence)
    avg_confidence = float(np.mean(scores)) if scores else 0.0
    event_factor = min(recent_event_count / event_saturation, 1.0)
    return avg_confidence * event_factor


class ParameterCalculator:
    """Assembles a GaitParameters snapshot from buffered frames and events."""

    def __init__(self, config: Optional[GaitConfig] = None):
        self.config = config or GaitConfig()

    def calculate(
        self,
        frames: Sequence[PoseFrame],
        events: Sequence[GaitEvent],
        calibration: Optional[CalibrationData],
        cadence_history: Sequence[float],
        now: float,
    ) -> GaitParameters:
        """
        Compute every gait parameter from a consistent snapshot of engine state.

        Args:
            frames: Buffered pose frames, oldest first
            events: Logged gait events, oldest first
            calibration: Current calibration or None
            cadence_history: Recorded cadence estimates
            now: Reference time in ms for recency-based values

        Returns:
            Fully populated GaitParameters (zeroed before enough frames exist)
        """
        cfg = self.config
        if len(frames) < cfg.MIN_FRAMES_FOR_PARAMETERS:
            return empty_parameters()

        heel_strikes = [event for event in events if event.type == 'heel-strike']
        left_strikes = [event for event in heel_strikes if event.foot == 'left']
        right_strikes = [event for event in heel_strikes if event.foot == 'right']
        left_events = [event for event in events if event.foot == 'left']

        cadence = smoothed_cadence(heel_strikes, cadence_history, cfg)
        left_step = step_length(left_strikes, calibration, cfg.STEP_LENGTH_RANGE)
        right_step = step_length(right_strikes, calibration, cfg.STEP_LENGTH_RANGE)
        stride_length = (left_step + right_step) / 2
        stride = stride_time(left_strikes, cfg.STRIDE_TIME_RANGE)
        stance = stance_time(left_events, cfg.STANCE_TIME_RANGE)
        width = step_width(
            list(frames)[-cfg.STEP_WIDTH_WINDOW_FRAMES:], calibration,
            cfg.MIN_CONFIDENCE, cfg.STEP_WIDTH_RANGE
        )
        recent_events = [event for event in events if now - event.timestamp < cfg.RECENT_EVENTS_WINDOW_MS]
        confidence = overall_confidence(
            list(frames)[-cfg.CONFIDENCE_WINDOW_FRAMES:], len(recent_events),
            cfg.MIN_CONFIDENCE, cfg.CONFIDENCE_EVENT_SATURATION
        )

        return GaitParameters(
            cadence=cadence,
            stride_length=stride_length,
            stride_time=stride,
            step_width=width,
            velocity=walking_velocity(stride_length, cadence),
            symmetry_index=symmetry_index(left_step, right_step),
            confidence=confidence,
            left_step_length=left_step,
            right_step_length=right_step,
            gait_phase=calculate_gait_phase(events, now, cfg.PHASE_LOOKBACK_MS),
            stance_time=stance,
            swing_time=swing_time(stride, stance),
            double_support=double_support(stride, cfg.DOUBLE_SUPPORT_PERCENT),
        )
