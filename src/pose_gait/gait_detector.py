"""Real-time gait event detection from ankle keypoint trajectories."""

import logging
from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np

from .config import GaitConfig
from .models import FEET, Foot, GaitEvent, GaitEventType, PoseFrame

logger = logging.getLogger(__name__)


class GaitEventLog:
    """
    Append-only log of detected gait events, kept in insertion (time) order.

    Old events are pruned by timestamp, never by count.
    """

    def __init__(self):
        self._events: List[GaitEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[GaitEvent]:
        return iter(list(self._events))

    def append(self, event: GaitEvent):
        self._events.append(event)

    def prune(self, cutoff: float) -> int:
        """Drop events with timestamp <= cutoff. Returns the number removed."""
        kept = [event for event in self._events if event.timestamp > cutoff]
        removed = len(self._events) - len(kept)
        self._events = kept
        return removed

    def filter(
        self,
        foot: Optional[Foot] = None,
        event_type: Optional[GaitEventType] = None,
        since: Optional[float] = None,
    ) -> List[GaitEvent]:
        """
        Select events by foot, type and/or minimum timestamp (exclusive).
        """
        return [
            event for event in self._events
            if (foot is None or event.foot == foot)
            and (event_type is None or event.type == event_type)
            and (since is None or event.timestamp > since)
        ]

    def last_event(self, foot: Foot, event_type: GaitEventType) -> Optional[GaitEvent]:
        for event in reversed(self._events):
            if event.foot == foot and event.type == event_type:
                return event
        return None

    def recent(self, window_ms: float, now: float) -> List[GaitEvent]:
        return self.filter(since=now - window_ms)


class GaitEventDetector:
    """
    Detects heel-strike and toe-off events from vertical ankle motion.

    For each foot, the ankle's vertical velocity (image y grows downward) is
    averaged over the last few frames. A sustained downward motion with the
    ankle near knee level marks a heel-strike; a sustained upward motion marks
    a toe-off. Each event type is rate-limited per foot so that noisy
    per-frame velocities do not produce bursts of events.
    """

    def __init__(self, config: Optional[GaitConfig] = None):
        """
        Initialize the gait event detector.

        Args:
            config: Gait configuration holding the detection thresholds
        """
        self.config = config or GaitConfig()
        self.window_frames = self.config.DETECTION_WINDOW_FRAMES
        self.min_velocity_samples = self.config.MIN_VELOCITY_SAMPLES
        self.velocity_threshold = self.config.VELOCITY_THRESHOLD
        self.ground_tolerance = self.config.GROUND_TOLERANCE_PX
        self.min_step_duration = self.config.MIN_STEP_DURATION_MS

    def process_frame(
        self, recent_frames: Sequence[PoseFrame], event_log: GaitEventLog
    ) -> Dict[Foot, Dict[GaitEventType, List[GaitEvent]]]:
        """
        Run detection for both feet on the newest frame and log any events.

        Args:
            recent_frames: Buffered frames, oldest first; the last one is the
                           frame that just arrived
            event_log: Log that receives new events and is used for rate limiting

        Returns:
            Dictionary with 'left' and 'right' keys, each containing:
                - 'heel-strike': list of newly detected heel-strikes
                - 'toe-off': list of newly detected toe-offs
        """
        events = {foot: {'heel-strike': [], 'toe-off': []} for foot in FEET}

        if len(recent_frames) < self.window_frames:
            return events

        window = list(recent_frames)[-self.window_frames:]
        current = window[-1]

        for foot in FEET:
            avg_velocity = self._average_vertical_velocity(window, foot)
            if avg_velocity is None:
                continue

            if self._is_heel_strike(avg_velocity, current, foot):
                event = self._emit(event_log, 'heel-strike', foot, current)
                if event is not None:
                    events[foot]['heel-strike'].append(event)

            if self._is_toe_off(avg_velocity):
                event = self._emit(event_log, 'toe-off', foot, current)
                if event is not None:
                    events[foot]['toe-off'].append(event)

        return events

    def _average_vertical_velocity(self, window: List[PoseFrame], foot: Foot) -> Optional[float]:
        """Mean ankle dy/dt in px/s over the window; None if too few valid steps."""
        times = np.array([frame.timestamp for frame in window], dtype=float)
        ys = np.array([frame.ankle(foot).y for frame in window], dtype=float)

        dt = np.diff(times) / 1000.0
        dy = np.diff(ys)
        valid = dt > 0
        if np.count_nonzero(valid) < self.min_velocity_samples:
            return None

        return float(np.mean(dy[valid] / dt[valid]))

    def _is_heel_strike(self, avg_velocity: float, frame: PoseFrame, foot: Foot) -> bool:
        """Downward motion with the ankle down near (not meaningfully above) the knee line."""
        ankle = frame.ankle(foot)
        knee = frame.knee(foot)
        return avg_velocity > self.velocity_threshold and ankle.y > knee.y - self.ground_tolerance

    def _is_toe_off(self, avg_velocity: float) -> bool:
        return avg_velocity < -self.velocity_threshold

    def _emit(
        self, event_log: GaitEventLog, event_type: GaitEventType, foot: Foot, frame: PoseFrame
    ) -> Optional[GaitEvent]:
        """Append an event unless the same foot produced the same type too recently."""
        last = event_log.last_event(foot, event_type)
        if last is not None and frame.timestamp - last.timestamp <= self.min_step_duration:
            return None

        ankle = frame.ankle(foot)
        knee = frame.knee(foot)
        event = GaitEvent(
            type=event_type,
            foot=foot,
            timestamp=frame.timestamp,
            position=(ankle.x, ankle.y),
            confidence=min(ankle.confidence, knee.confidence),
        )
        event_log.append(event)
        logger.debug("%s %s at %.1f ms", foot, event_type, frame.timestamp)
        return event
