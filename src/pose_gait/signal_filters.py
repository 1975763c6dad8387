"""
Keypoint smoothing for real-time pose streams.

Optional preprocessing stage applied to each landmark coordinate before
frames reach the gait engine:
1. Exponential smoothing (confidence-weighted)
2. Moving average filter (simple smoothing)
3. Butterworth low-pass filter (causal, for real-time)

Landmarks that jump further than a plausible per-frame movement from their
previous raw position are treated as outliers and held at their last smoothed
position for one frame. A second consecutive jump is accepted, so a landmark
that really moved is followed again on the next frame.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass, replace
from typing import Dict, Literal, Optional, Set, Tuple

import numpy as np
from scipy.signal import butter, sosfilt, sosfilt_zi

from .models import Keypoint, PoseFrame, TRACKED_KEYPOINTS

logger = logging.getLogger(__name__)


FilterType = Literal['exponential', 'moving_average', 'butterworth', 'none']


@dataclass
class FilterConfig:
    """Configuration for keypoint smoothing."""
    filter_type: FilterType = 'exponential'
    min_confidence: float = 0.3  # Keypoints below this pass through unsmoothed
    max_movement: float = 50.0  # px per frame before a keypoint is held as an outlier

    # Exponential smoothing
    factor: float = 0.7  # alpha = min(1, factor * confidence)

    # Moving average parameters
    window_size: int = 5

    # Butterworth parameters
    cutoff_freq: float = 6.0  # Hz
    filter_order: int = 2
    sampling_rate: float = 30.0  # Hz (video frame rate)


class ExponentialFilter:
    """
    Exponential moving average whose weight on the newest sample grows with
    the keypoint's confidence.
    """

    def __init__(self, factor: float):
        self.factor = factor
        self.value: Optional[float] = None

    def filter_sample(self, sample: float, confidence: float = 1.0) -> float:
        if self.value is None:
            self.value = sample
            return sample
        alpha = min(1.0, self.factor * confidence)
        self.value = alpha * sample + (1 - alpha) * self.value
        return self.value

    def reset(self):
        self.value = None


class MovingAverageFilter:
    """
    Simple moving average filter for smoothing.

    Very fast, no phase distortion issues, but less effective at
    frequency-selective filtering compared to Butterworth.
    """

    def __init__(self, window_size: int):
        self.window_size = window_size
        self.buffer = deque(maxlen=window_size)
        self.sum = 0.0

    def filter_sample(self, sample: float, confidence: float = 1.0) -> float:
        # Remove oldest value from sum if buffer is full
        if len(self.buffer) == self.window_size:
            self.sum -= self.buffer[0]

        self.buffer.append(sample)
        self.sum += sample

        return self.sum / len(self.buffer)

    def reset(self):
        self.buffer.clear()
        self.sum = 0.0


class ButterworthFilter:
    """
    Real-time Butterworth low-pass filter using sosfilt (causal).

    Uses second-order sections (SOS) for numerical stability and keeps the
    filter state (zi) between calls for sample-by-sample processing. The
    state is seeded from the first sample so a stream starting far from zero
    does not ring.
    """

    def __init__(self, cutoff: float, fs: float, order: int = 2):
        """
        Initialize Butterworth filter.

        Args:
            cutoff: Cutoff frequency in Hz
            fs: Sampling rate in Hz
            order: Filter order
        """
        self.cutoff = cutoff
        self.fs = fs
        self.order = order
        self.sos = butter(order, cutoff, btype='low', fs=fs, output='sos')
        self.zi = None

    def filter_sample(self, sample: float, confidence: float = 1.0) -> float:
        if self.zi is None:
            self.zi = sosfilt_zi(self.sos) * sample
        filtered, self.zi = sosfilt(self.sos, [sample], zi=self.zi)
        return float(filtered[0])

    def reset(self):
        self.zi = None


def create_filter(config: FilterConfig):
    """Build a single-channel filter for the configured type (None for 'none')."""
    if config.filter_type == 'exponential':
        return ExponentialFilter(config.factor)
    elif config.filter_type == 'moving_average':
        return MovingAverageFilter(config.window_size)
    elif config.filter_type == 'butterworth':
        return ButterworthFilter(config.cutoff_freq, config.sampling_rate, config.filter_order)
    elif config.filter_type == 'none':
        return None
    raise ValueError(f"Unknown filter type: {config.filter_type!r}")


class KeypointSmoother:
    """
    Smooths every tracked landmark of a pose stream independently.

    Each landmark keeps one filter per axis, its previous raw position (the
    outlier reference) and its last smoothed position (returned while held).
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        self.config = config or FilterConfig()
        # Validate the filter type up front
        create_filter(self.config)
        self._filters: Dict[str, Tuple[object, object]] = {}
        self._last_positions: Dict[str, Tuple[float, float]] = {}
        self._raw_positions: Dict[str, Tuple[float, float]] = {}
        self._held: Set[str] = set()

    def smooth_keypoint(self, name: str, keypoint: Keypoint) -> Keypoint:
        """
        Smooth one landmark.

        Args:
            name: Landmark name (keys the per-landmark filter state)
            keypoint: Raw keypoint

        Returns:
            Smoothed keypoint with its confidence unchanged
        """
        cfg = self.config
        if (cfg.filter_type == 'none' or keypoint.confidence < cfg.min_confidence
                or not keypoint.is_finite()):
            return keypoint

        previous = self._raw_positions.get(name)
        self._raw_positions[name] = (keypoint.x, keypoint.y)
        if previous is not None and name not in self._held:
            movement = math.hypot(keypoint.x - previous[0], keypoint.y - previous[1])
            if movement > cfg.max_movement:
                logger.debug("Held %s after a jump of %.1f px", name, movement)
                self._held.add(name)
                last = self._last_positions[name]
                return replace(keypoint, x=last[0], y=last[1])
        self._held.discard(name)

        if name not in self._filters:
            self._filters[name] = (create_filter(cfg), create_filter(cfg))
        filter_x, filter_y = self._filters[name]

        x = filter_x.filter_sample(keypoint.x, keypoint.confidence)
        y = filter_y.filter_sample(keypoint.y, keypoint.confidence)
        self._last_positions[name] = (x, y)
        return replace(keypoint, x=x, y=y)

    def smooth_frame(self, frame: PoseFrame) -> PoseFrame:
        """Return a new frame with every tracked landmark smoothed."""
        smoothed = {
            name: self.smooth_keypoint(name, getattr(frame, name))
            for name in TRACKED_KEYPOINTS
        }
        return replace(frame, **smoothed)

    def reset(self):
        """Clear all filter state (e.g. when a new subject enters)."""
        self._filters = {}
        self._last_positions = {}
        self._raw_positions = {}
        self._held = set()

    def get_info(self) -> dict:
        """
        Get filter information for display.

        Returns:
            Dictionary with filter details
        """
        cfg = self.config
        if cfg.filter_type == 'none':
            return {'type': 'None', 'description': 'No filtering'}
        elif cfg.filter_type == 'exponential':
            return {
                'type': 'Exponential',
                'factor': cfg.factor,
                'description': f'Confidence-weighted EMA (factor={cfg.factor:.2f})'
            }
        elif cfg.filter_type == 'moving_average':
            return {
                'type': 'Moving Average',
                'window': cfg.window_size,
                'description': f'Moving average (window={cfg.window_size})'
            }
        return {
            'type': 'Butterworth',
            'order': cfg.filter_order,
            'cutoff': f'{cfg.cutoff_freq:.1f} Hz',
            'description': f'{cfg.filter_order}th order low-pass @ {cfg.cutoff_freq:.1f} Hz'
        }


def smooth_trajectory(values: np.ndarray, config: FilterConfig) -> np.ndarray:
    """
    Run a single coordinate trajectory through a fresh filter.

    Useful for offline comparison of filter settings.
    """
    channel = create_filter(config)
    if channel is None:
        return np.asarray(values, dtype=float)
    return np.array([channel.filter_sample(float(v)) for v in values])
