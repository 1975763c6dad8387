"""Shared synthetic pose data for the test suite."""

import numpy as np
import pytest

from pose_gait import Keypoint, PoseFrame

# Standing subject at ~100 px/m: shoulders 45 px apart, hips 35 px apart,
# torso 60 px tall.
SHOULDER_Y = 140.0
HIP_Y = 200.0
KNEE_Y = 300.0
ANKLE_Y = 400.0


def _make_frame(
    timestamp,
    left_ankle=(300.0, ANKLE_Y),
    right_ankle=(340.0, ANKLE_Y),
    ankle_confidence=0.9,
    knee_confidence=0.9,
    knee_y=KNEE_Y,
    hip_confidence=0.9,
    shoulder_confidence=0.9,
):
    lx, ly = left_ankle
    rx, ry = right_ankle
    return PoseFrame(
        timestamp=timestamp,
        left_ankle=Keypoint(lx, ly, ankle_confidence),
        right_ankle=Keypoint(rx, ry, ankle_confidence),
        left_knee=Keypoint(lx, knee_y, knee_confidence),
        right_knee=Keypoint(rx, knee_y, knee_confidence),
        left_hip=Keypoint(300.0, HIP_Y, hip_confidence),
        right_hip=Keypoint(335.0, HIP_Y, hip_confidence),
        left_shoulder=Keypoint(297.5, SHOULDER_Y, shoulder_confidence),
        right_shoulder=Keypoint(342.5, SHOULDER_Y, shoulder_confidence),
    )


def _walking_frames(
    n_frames=60,
    interval_ms=100,
    amplitude=20.0,
    period_s=1.0,
    speed_px_s=150.0,
    confidence=0.9,
):
    """
    Subject crossing the frame with ankles bobbing in anti-phase sine waves.

    The left ankle leads the right by half a period; both feet share the same
    forward progression so left and right steps are the same length.
    """
    frames = []
    for i in range(n_frames):
        t_ms = i * interval_ms
        t = t_ms / 1000.0
        phase = 2 * np.pi * t / period_s
        x = 200.0 + speed_px_s * t
        left_y = ANKLE_Y + amplitude * np.sin(phase)
        right_y = ANKLE_Y + amplitude * np.sin(phase + np.pi)
        frames.append(_make_frame(
            t_ms, (x, left_y), (x + 40.0, right_y), ankle_confidence=confidence
        ))
    return frames


@pytest.fixture
def make_frame():
    return _make_frame


@pytest.fixture
def walking_frames():
    return _walking_frames
