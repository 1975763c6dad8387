"""Configuration settings for pose-based gait analysis."""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class GaitConfig:
    """Configuration for pose ingestion, event detection and parameter calculation."""

    # Pose history
    MAX_HISTORY_LENGTH: int = 300  # frames (~10 seconds at 30 fps)
    MIN_CONFIDENCE: float = 0.4  # Ankle confidence required to buffer a frame
    POSE_HISTORY_WINDOW_MS: float = 3000.0  # Default window for trajectory queries

    # Gait event detection
    DETECTION_WINDOW_FRAMES: int = 5  # Frames scanned per foot on every new pose
    MIN_VELOCITY_SAMPLES: int = 3  # Velocity estimates required before classifying
    VELOCITY_THRESHOLD: float = 5.0  # px/s, vertical ankle velocity
    GROUND_TOLERANCE_PX: float = 20.0  # Ankle may sit this far above the knee line
    MIN_STEP_DURATION_MS: float = 200.0  # Same-type, same-foot events closer than this are suppressed
    EVENT_RETENTION_MS: float = 30000.0  # Events older than this are pruned
    RECENT_EVENTS_WINDOW_MS: float = 5000.0

    # Gait phase tracking
    PHASE_LOOKBACK_MS: float = 5000.0

    # Parameter calculation
    MIN_FRAMES_FOR_PARAMETERS: int = 30
    CADENCE_STRIKE_WINDOW: int = 10  # Heel-strikes used for one cadence estimate
    MIN_HEEL_STRIKES_FOR_CADENCE: int = 4
    CADENCE_HISTORY_SIZE: int = 20  # Cadence estimates averaged for the reported value
    STEP_LENGTH_RANGE: Tuple[float, float] = (0.3, 2.0)  # meters
    STRIDE_TIME_RANGE: Tuple[float, float] = (0.5, 3.0)  # seconds
    STEP_WIDTH_RANGE: Tuple[float, float] = (0.05, 0.5)  # meters
    STANCE_TIME_RANGE: Tuple[float, float] = (0.2, 1.5)  # seconds
    STEP_WIDTH_WINDOW_FRAMES: int = 10
    DOUBLE_SUPPORT_PERCENT: float = 20.0  # Placeholder until dual-contact timing exists
    CONFIDENCE_WINDOW_FRAMES: int = 10
    CONFIDENCE_EVENT_SATURATION: int = 10  # Recent events needed for full confidence

    # Auto-calibration from body proportions
    AUTO_CALIBRATION_MIN_CONFIDENCE: float = 0.6
    AVG_SHOULDER_WIDTH_M: float = 0.45
    AVG_HIP_WIDTH_M: float = 0.35
    AVG_TORSO_HEIGHT_M: float = 0.60
    DEFAULT_REFERENCE_HEIGHT_M: float = 1.7
    DEFAULT_CAMERA_HEIGHT_M: float = 1.0
    DEFAULT_CAMERA_ANGLE_DEG: float = 0.0
