"""Gait analysis engine: pose ingestion, event detection and parameter queries."""

import logging
from typing import Any, List, Optional

from .calibration import DistanceCalibrator
from .config import GaitConfig
from .gait_detector import GaitEventDetector, GaitEventLog
from .gait_parameters import CadenceStatistics, ParameterCalculator, raw_cadence
from .gait_phase import calculate_gait_phase
from .models import (
    CalibrationData, FEET, GaitEvent, GaitParameters, GaitPhase, PoseFrame, coerce_frame
)
from .pose_history import PoseHistoryBuffer
from .signal_filters import KeypointSmoother

logger = logging.getLogger(__name__)


class GaitAnalysisEngine:
    """
    Turns a stream of pose frames into gait events and gait parameters.

    Each engine owns its pose history, event log, cadence statistics and
    calibration. `add_pose` is the only write path; every query is a pure
    function of that state. Queries measure recency against the newest
    ingested frame unless an explicit `now` (ms, same clock as the frame
    timestamps) is given.
    """

    def __init__(self, config: Optional[GaitConfig] = None, smoother: Optional[KeypointSmoother] = None):
        """
        Initialize the engine.

        Args:
            config: Gait configuration. Uses defaults if None.
            smoother: Optional keypoint smoother applied before buffering
        """
        self.config = config or GaitConfig()
        self.smoother = smoother
        self.detector = GaitEventDetector(self.config)
        self.calculator = ParameterCalculator(self.config)
        self._calibrator = DistanceCalibrator(self.config)
        self._history = PoseHistoryBuffer(self.config)
        self._events = GaitEventLog()
        self._cadence_stats = CadenceStatistics(self.config.CADENCE_HISTORY_SIZE)

    def add_pose(self, pose: Any, timestamp: Optional[float] = None) -> List[GaitEvent]:
        """
        Ingest one pose and run event detection for both feet.

        Args:
            pose: PoseFrame or raw keypoint list (`{name, x, y, score}` or COCO-17 order)
            timestamp: Frame timestamp in ms; defaults to the PoseFrame's own timestamp

        Returns:
            Events emitted for this frame (empty if the frame was dropped)
        """
        frame = coerce_frame(pose, timestamp)
        if self.smoother is not None:
            frame = self.smoother.smooth_frame(frame)

        history = self._history
        events = self._events
        if not history.append(frame):
            return []

        detected = self.detector.process_frame(
            history.latest(self.config.DETECTION_WINDOW_FRAMES), events
        )
        new_events = [event for foot in FEET for kind in detected[foot].values() for event in kind]

        if any(event.type == 'heel-strike' for event in new_events):
            heel_strikes = events.filter(event_type='heel-strike')
            self._cadence_stats.record(raw_cadence(
                heel_strikes,
                self.config.CADENCE_STRIKE_WINDOW,
                self.config.MIN_HEEL_STRIKES_FOR_CADENCE,
            ))

        events.prune(frame.timestamp - self.config.EVENT_RETENTION_MS)
        return new_events

    def calculate_gait_parameters(self, now: Optional[float] = None) -> GaitParameters:
        """
        Compute a fresh parameter snapshot. Never raises for missing data.

        Args:
            now: Reference time in ms; defaults to the newest frame timestamp

        Returns:
            GaitParameters, fully zeroed until enough frames are buffered
        """
        history, events, stats = self._history, self._events, self._cadence_stats
        frames = list(history)
        if now is None:
            now = frames[-1].timestamp if frames else 0.0
        return self.calculator.calculate(
            frames, list(events), self._calibrator.calibration, stats.values(), now
        )

    def current_phase(self, now: Optional[float] = None) -> GaitPhase:
        """Gait phase of both feet derived from the latest events."""
        history, events = self._history, self._events
        if now is None:
            now = history.last_timestamp
        if now is None:
            return GaitPhase(left_progress=0.5, right_progress=0.5)
        return calculate_gait_phase(list(events), now, self.config.PHASE_LOOKBACK_MS)

    def calibrate(self, data: CalibrationData) -> None:
        """Replace the calibration; raises CalibrationError for a non-positive scale."""
        self._calibrator.calibrate(data)

    def auto_calibrate(self, pose: Any, timestamp: Optional[float] = None) -> Optional[CalibrationData]:
        """Estimate calibration from body proportions in a single pose."""
        if not isinstance(pose, PoseFrame) and timestamp is None:
            timestamp = 0.0
        return self._calibrator.auto_calibrate(coerce_frame(pose, timestamp))

    def is_calibrated(self) -> bool:
        return self._calibrator.is_calibrated()

    def get_calibration(self) -> Optional[CalibrationData]:
        return self._calibrator.calibration

    def get_recent_events(self, window_ms: Optional[float] = None, now: Optional[float] = None) -> List[GaitEvent]:
        """Events newer than `now - window_ms` (default window 5 s)."""
        history, events = self._history, self._events
        if window_ms is None:
            window_ms = self.config.RECENT_EVENTS_WINDOW_MS
        if now is None:
            now = history.last_timestamp
        if now is None:
            return []
        return events.recent(window_ms, now)

    def get_pose_history(self, window_ms: Optional[float] = None, now: Optional[float] = None) -> List[PoseFrame]:
        """Buffered frames newer than `now - window_ms` (default window 3 s)."""
        if window_ms is None:
            window_ms = self.config.POSE_HISTORY_WINDOW_MS
        return self._history.recent(window_ms, now)

    def reset(self) -> None:
        """
        Discard history, events and cadence statistics. Calibration is kept.

        Containers are replaced rather than cleared so a query already
        holding the old ones finishes on a consistent snapshot.
        """
        self._history = PoseHistoryBuffer(self.config)
        self._events = GaitEventLog()
        self._cadence_stats = CadenceStatistics(self.config.CADENCE_HISTORY_SIZE)
        if self.smoother is not None:
            self.smoother.reset()
        logger.info("Gait analysis state reset")
