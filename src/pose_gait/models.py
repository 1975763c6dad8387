"""Data types shared by the gait analysis components."""

import math
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Dict, Literal, Mapping, Optional, Sequence, Tuple


Foot = Literal['left', 'right']
GaitEventType = Literal['heel-strike', 'toe-off']
PhaseLabel = Literal[
    'heel-strike', 'foot-flat', 'mid-stance', 'heel-off',
    'toe-off', 'mid-swing', 'terminal-swing'
]

FEET: Tuple[Foot, Foot] = ('left', 'right')
PHASE_ORDER: Tuple[PhaseLabel, ...] = (
    'heel-strike', 'foot-flat', 'mid-stance', 'heel-off',
    'toe-off', 'mid-swing', 'terminal-swing',
)

# COCO-17 keypoint order used by MoveNet / PoseNet / YOLO-pose
COCO_KEYPOINTS: Tuple[str, ...] = (
    'nose', 'left_eye', 'right_eye', 'left_ear', 'right_ear',
    'left_shoulder', 'right_shoulder', 'left_elbow', 'right_elbow',
    'left_wrist', 'right_wrist', 'left_hip', 'right_hip',
    'left_knee', 'right_knee', 'left_ankle', 'right_ankle',
)

TRACKED_KEYPOINTS: Tuple[str, ...] = (
    'left_ankle', 'right_ankle', 'left_knee', 'right_knee',
    'left_hip', 'right_hip', 'left_shoulder', 'right_shoulder',
)


@dataclass(frozen=True)
class Keypoint:
    """A single 2D landmark in pixel coordinates."""
    x: float = 0.0
    y: float = 0.0
    confidence: float = 0.0

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'Keypoint':
        """Build a keypoint from a `{x, y, score}` mapping (`confidence` also accepted)."""
        score = _as_float(data.get('score', data.get('confidence')))
        return cls(
            x=_as_float(data.get('x')),
            y=_as_float(data.get('y')),
            confidence=score if math.isfinite(score) else 0.0,
        )


def _as_float(value: Any) -> float:
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


@dataclass(frozen=True)
class PoseFrame:
    """
    One pose sample with the landmarks needed for gait analysis.

    Landmarks are fixed fields rather than a name->keypoint map, so every
    frame is guaranteed to carry all of them. Landmarks the pose model did
    not report are zero-confidence keypoints.
    """
    timestamp: float
    left_ankle: Keypoint = field(default_factory=Keypoint)
    right_ankle: Keypoint = field(default_factory=Keypoint)
    left_knee: Keypoint = field(default_factory=Keypoint)
    right_knee: Keypoint = field(default_factory=Keypoint)
    left_hip: Keypoint = field(default_factory=Keypoint)
    right_hip: Keypoint = field(default_factory=Keypoint)
    left_shoulder: Keypoint = field(default_factory=Keypoint)
    right_shoulder: Keypoint = field(default_factory=Keypoint)

    def ankle(self, foot: Foot) -> Keypoint:
        return self.left_ankle if foot == 'left' else self.right_ankle

    def knee(self, foot: Foot) -> Keypoint:
        return self.left_knee if foot == 'left' else self.right_knee

    def keypoints(self) -> Dict[str, Keypoint]:
        """Tracked landmarks keyed by COCO name."""
        return {name: getattr(self, name) for name in TRACKED_KEYPOINTS}

    def is_finite(self) -> bool:
        """True if every landmark has finite coordinates (timestamp included)."""
        if not math.isfinite(self.timestamp):
            return False
        return all(kp.is_finite() for kp in self.keypoints().values())

    @classmethod
    def from_keypoints(cls, keypoints: Sequence[Mapping[str, Any]], timestamp: float) -> 'PoseFrame':
        """
        Build a frame from raw pose-model output.

        Args:
            keypoints: Either named keypoints (`{'name': 'left_ankle', 'x':..,
                       'y':.., 'score':..}`) or an unnamed list in COCO-17 order.
            timestamp: Frame timestamp in milliseconds

        Returns:
            PoseFrame with untracked landmarks ignored and missing ones zeroed

        Raises:
            ValueError: If keypoints is not a sequence of mappings
        """
        if isinstance(keypoints, (str, bytes)) or not isinstance(keypoints, Sequence):
            raise ValueError(f"Expected a sequence of keypoints, got {type(keypoints).__name__}")

        named: Dict[str, Mapping[str, Any]] = {}
        for idx, kp in enumerate(keypoints):
            if not isinstance(kp, Mapping):
                raise ValueError(f"Keypoint {idx} is not a mapping: {kp!r}")
            name = kp.get('name')
            if name is None and idx < len(COCO_KEYPOINTS):
                name = COCO_KEYPOINTS[idx]
            if name in TRACKED_KEYPOINTS:
                named[name] = kp

        return cls(
            timestamp=_as_float(timestamp),
            **{name: Keypoint.from_mapping(kp) for name, kp in named.items()}
        )


@dataclass(frozen=True)
class CalibrationData:
    """Pixel-to-meter scale plus descriptive camera metadata."""
    pixels_per_meter: float
    reference_height: float = 1.7  # meters
    camera_height: float = 1.0  # meters
    camera_angle: float = 0.0  # degrees


@dataclass(frozen=True)
class GaitEvent:
    """A detected heel-strike or toe-off."""
    type: GaitEventType
    foot: Foot
    timestamp: float
    position: Tuple[float, float]
    confidence: float


@dataclass(frozen=True)
class FootPhase:
    """Current gait-cycle phase of one foot."""
    phase: PhaseLabel = 'mid-stance'
    progress: float = 0.5
    confidence: float = 0.0


@dataclass(frozen=True)
class GaitPhase:
    """Phase state of both feet."""
    left: PhaseLabel = 'mid-stance'
    right: PhaseLabel = 'mid-stance'
    left_progress: float = 0.0
    right_progress: float = 0.0
    confidence: float = 0.0


@dataclass(frozen=True)
class GaitParameters:
    """Snapshot of derived gait metrics. All fields are always populated."""
    cadence: float = 0.0  # steps/min
    stride_length: float = 0.0  # meters
    stride_time: float = 0.0  # seconds
    step_width: float = 0.0  # meters
    velocity: float = 0.0  # m/s
    symmetry_index: float = 0.0  # percent (0-100)
    confidence: float = 0.0  # 0-1
    left_step_length: float = 0.0  # meters
    right_step_length: float = 0.0  # meters
    gait_phase: GaitPhase = field(default_factory=GaitPhase)
    stance_time: float = 0.0  # seconds
    swing_time: float = 0.0  # seconds
    double_support: float = 0.0  # percent of gait cycle

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def empty_parameters() -> GaitParameters:
    """Fully-zeroed parameters returned before enough data has been collected."""
    return GaitParameters()


def coerce_frame(pose: Any, timestamp: Optional[float] = None) -> PoseFrame:
    """Accept either a PoseFrame or raw keypoints and return a PoseFrame stamped with `timestamp`."""
    if isinstance(pose, PoseFrame):
        if timestamp is None or timestamp == pose.timestamp:
            return pose
        return replace(pose, timestamp=_as_float(timestamp))
    if timestamp is None:
        raise ValueError("A timestamp is required when adding raw keypoints")
    return PoseFrame.from_keypoints(pose, timestamp)
