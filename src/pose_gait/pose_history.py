"""Bounded rolling window of validated pose frames."""

import logging
from collections import deque
from typing import Iterator, List, Optional

from .config import GaitConfig
from .models import PoseFrame

logger = logging.getLogger(__name__)


class PoseHistoryBuffer:
    """
    Time-ordered ring of recent pose frames that passed ingestion checks.

    Frames are rejected (not stored as placeholders) when either ankle is
    at or below the confidence threshold or any coordinate is non-finite.
    Once the buffer holds `capacity` frames the oldest is evicted first.
    """

    def __init__(self, config: Optional[GaitConfig] = None):
        """
        Initialize the history buffer.

        Args:
            config: Gait configuration (capacity and confidence threshold)
        """
        self.config = config or GaitConfig()
        self.capacity = self.config.MAX_HISTORY_LENGTH
        self.min_confidence = self.config.MIN_CONFIDENCE
        self._frames = deque(maxlen=self.capacity)

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[PoseFrame]:
        return iter(list(self._frames))

    def accepts(self, frame: PoseFrame) -> bool:
        """Check whether a frame would be buffered."""
        return (
            frame.left_ankle.confidence > self.min_confidence
            and frame.right_ankle.confidence > self.min_confidence
            and frame.is_finite()
        )

    def append(self, frame: PoseFrame) -> bool:
        """
        Add a frame if it passes the ankle-confidence and finiteness checks.

        Args:
            frame: Pose frame to buffer

        Returns:
            True if the frame was stored, False if it was dropped
        """
        if not self.accepts(frame):
            logger.debug(
                "Dropped frame at %.1f ms (ankle confidence L=%.2f R=%.2f)",
                frame.timestamp, frame.left_ankle.confidence, frame.right_ankle.confidence
            )
            return False

        # deque(maxlen) evicts the oldest frame on overflow
        self._frames.append(frame)
        return True

    @property
    def last_timestamp(self) -> Optional[float]:
        return self._frames[-1].timestamp if self._frames else None

    def latest(self, n: int) -> List[PoseFrame]:
        """Return the last `n` frames in chronological order."""
        if n <= 0:
            return []
        return list(self._frames)[-n:]

    def recent(self, window_ms: float, now: Optional[float] = None) -> List[PoseFrame]:
        """
        Frames newer than `now - window_ms`, oldest first.

        Args:
            window_ms: Window length in milliseconds
            now: Reference time in ms; defaults to the newest buffered frame

        Returns:
            List of frames with timestamp > now - window_ms
        """
        frames = list(self._frames)
        if not frames:
            return []
        if now is None:
            now = frames[-1].timestamp
        cutoff = now - window_ms
        return [frame for frame in frames if frame.timestamp > cutoff]
