"""
Tests for the gait analysis engine facade.
"""

import pytest

from pose_gait import (
    CalibrationData,
    CalibrationError,
    FilterConfig,
    GaitAnalysisEngine,
    GaitParameters,
    GaitPhase,
    KeypointSmoother,
)
from pose_gait.models import COCO_KEYPOINTS, PHASE_ORDER


def _run(frames, calibration=None, **kwargs):
    engine = GaitAnalysisEngine(**kwargs)
    if calibration is not None:
        engine.calibrate(calibration)
    for frame in frames:
        engine.add_pose(frame)
    return engine


def _coco_keypoints(score=0.9):
    positions = {
        'left_shoulder': (297.5, 140.0), 'right_shoulder': (342.5, 140.0),
        'left_hip': (300.0, 200.0), 'right_hip': (335.0, 200.0),
        'left_knee': (300.0, 300.0), 'right_knee': (340.0, 300.0),
        'left_ankle': (300.0, 400.0), 'right_ankle': (340.0, 400.0),
    }
    return [
        {'x': positions.get(name, (0.0, 0.0))[0], 'y': positions.get(name, (0.0, 0.0))[1],
         'score': score if name in positions else 0.1}
        for name in COCO_KEYPOINTS
    ]


class TestEmptyEngine:

    def test_parameters_are_zeroed(self):
        params = GaitAnalysisEngine().calculate_gait_parameters()
        assert params == GaitParameters()
        assert params.confidence == 0.0

    def test_queries_without_frames(self):
        engine = GaitAnalysisEngine()
        assert engine.get_recent_events() == []
        assert engine.get_pose_history() == []
        assert engine.current_phase() == GaitPhase(left_progress=0.5, right_progress=0.5)
        assert not engine.is_calibrated()
        assert engine.get_calibration() is None

    def test_too_few_frames(self, walking_frames):
        engine = _run(walking_frames(n_frames=29), CalibrationData(100.0))
        assert engine.calculate_gait_parameters() == GaitParameters()


class TestWalking:

    @pytest.fixture
    def engine(self, walking_frames):
        return _run(walking_frames(), CalibrationData(100.0))

    def test_parameters_for_symmetric_walk(self, engine):
        params = engine.calculate_gait_parameters()

        assert params.cadence > 0
        assert abs(params.symmetry_index - 100.0) <= 10.0
        assert params.confidence > 0.5
        assert params.left_step_length > 0
        assert params.right_step_length > 0
        assert params.stride_length == pytest.approx(
            (params.left_step_length + params.right_step_length) / 2
        )
        assert params.velocity == pytest.approx(params.stride_length * params.cadence / 60.0)
        assert params.step_width == pytest.approx(0.4)
        assert params.stride_time > 0
        assert params.double_support == 20.0

    def test_parameter_queries_are_idempotent(self, engine):
        first = engine.calculate_gait_parameters()
        second = engine.calculate_gait_parameters()
        assert first == second

    def test_parameters_always_in_bounds(self, engine):
        params = engine.calculate_gait_parameters()
        assert 0.0 <= params.symmetry_index <= 100.0
        assert 0.0 <= params.confidence <= 1.0
        for value in (params.left_step_length, params.right_step_length):
            assert value == 0.0 or 0.3 <= value <= 2.0
        assert params.stride_time == 0.0 or 0.5 <= params.stride_time <= 3.0
        assert params.step_width == 0.0 or 0.05 <= params.step_width <= 0.5

    def test_pose_history_window(self, engine):
        frames = engine.get_pose_history()
        assert len(frames) == 30
        assert frames[0].timestamp == 3000
        assert frames[-1].timestamp == 5900

    def test_recent_events(self, engine):
        events = engine.get_recent_events()
        assert events
        assert all(event.timestamp > 900 for event in events)
        assert len(engine.get_recent_events(window_ms=1000)) < len(events)

    def test_current_phase_uses_latest_events(self, engine):
        phase = engine.current_phase()
        assert phase.left in PHASE_ORDER
        assert phase.right in PHASE_ORDER
        assert phase.confidence == pytest.approx(0.9)
        assert engine.calculate_gait_parameters().gait_phase == phase


def test_add_pose_returns_new_events(walking_frames):
    engine = GaitAnalysisEngine()
    emitted = []
    for frame in walking_frames():
        emitted.extend(engine.add_pose(frame))

    assert emitted
    assert emitted == engine.get_recent_events(window_ms=60000)


def test_low_confidence_frames_are_dropped(walking_frames):
    engine = _run(walking_frames(confidence=0.1), CalibrationData(100.0))

    assert engine.get_pose_history() == []
    assert engine.get_recent_events() == []
    params = engine.calculate_gait_parameters()
    assert params.confidence == 0.0
    assert params == GaitParameters()


def test_step_lengths_scale_inversely_with_calibration(walking_frames):
    frames = walking_frames()
    at_100 = _run(frames, CalibrationData(100.0)).calculate_gait_parameters()
    at_80 = _run(frames, CalibrationData(80.0)).calculate_gait_parameters()

    assert at_80.left_step_length == pytest.approx(at_100.left_step_length * 1.25)
    assert at_80.right_step_length == pytest.approx(at_100.right_step_length * 1.25)
    assert at_100.step_width == pytest.approx(0.4)
    assert at_80.step_width == pytest.approx(0.5)
    # Temporal parameters do not depend on the scale
    assert at_80.cadence == pytest.approx(at_100.cadence)
    assert at_80.stride_time == pytest.approx(at_100.stride_time)


def test_uncalibrated_spatial_parameters_are_zero(walking_frames):
    params = _run(walking_frames()).calculate_gait_parameters()

    assert params.cadence > 0
    assert params.left_step_length == 0.0
    assert params.right_step_length == 0.0
    assert params.stride_length == 0.0
    assert params.step_width == 0.0
    assert params.velocity == 0.0
    assert params.symmetry_index == 0.0


def test_invalid_calibration_rejected():
    engine = GaitAnalysisEngine()
    with pytest.raises(CalibrationError):
        engine.calibrate(CalibrationData(0.0))
    assert not engine.is_calibrated()


def test_auto_calibrate_from_engine(make_frame):
    engine = GaitAnalysisEngine()
    data = engine.auto_calibrate(make_frame(0))

    assert data.pixels_per_meter == pytest.approx(100.0)
    assert engine.get_calibration() is data


def test_auto_calibrate_from_raw_keypoints():
    engine = GaitAnalysisEngine()
    data = engine.auto_calibrate(_coco_keypoints())
    assert data is not None
    assert data.pixels_per_meter == pytest.approx(100.0)


def test_reset_keeps_calibration(walking_frames):
    engine = _run(walking_frames(), CalibrationData(100.0))
    engine.reset()

    assert engine.is_calibrated()
    assert engine.get_calibration().pixels_per_meter == 100.0
    assert engine.get_pose_history() == []
    assert engine.get_recent_events() == []
    assert engine.calculate_gait_parameters() == GaitParameters()


def test_accepts_raw_coco_keypoints():
    engine = GaitAnalysisEngine()
    engine.add_pose(_coco_keypoints(), timestamp=1000)

    history = engine.get_pose_history()
    assert len(history) == 1
    assert history[0].timestamp == 1000
    assert history[0].left_ankle.x == 300.0
    assert history[0].right_hip.y == 200.0


def test_accepts_named_keypoints():
    engine = GaitAnalysisEngine()
    keypoints = [
        {'name': 'left_ankle', 'x': 300.0, 'y': 400.0, 'score': 0.8},
        {'name': 'right_ankle', 'x': 340.0, 'y': 400.0, 'score': 0.8},
    ]
    engine.add_pose(keypoints, timestamp=0)

    frame = engine.get_pose_history()[0]
    assert frame.right_ankle.confidence == 0.8
    # Unreported landmarks default to zero confidence
    assert frame.left_knee.confidence == 0.0


def test_raw_keypoints_require_timestamp():
    with pytest.raises(ValueError):
        GaitAnalysisEngine().add_pose(_coco_keypoints())


def test_old_events_are_pruned(walking_frames, make_frame):
    engine = _run(walking_frames())
    assert any(event.timestamp <= 1000 for event in engine.get_recent_events(window_ms=60000))

    engine.add_pose(make_frame(31000))

    remaining = engine.get_recent_events(window_ms=60000)
    assert remaining
    assert all(event.timestamp > 1000 for event in remaining)


def test_smoothed_engine_still_detects_steps(walking_frames):
    smoother = KeypointSmoother(FilterConfig(filter_type='exponential'))
    engine = _run(walking_frames(), CalibrationData(100.0), smoother=smoother)

    events = engine.get_recent_events(window_ms=60000)
    assert any(e.type == 'heel-strike' and e.foot == 'left' for e in events)
    assert any(e.type == 'heel-strike' and e.foot == 'right' for e in events)

    engine.reset()
    assert smoother.get_info()['type'] == 'Exponential'


def test_smoothed_engine_follows_fast_walk(walking_frames):
    engine = _run(walking_frames(speed_px_s=550.0), smoother=KeypointSmoother())

    assert engine.get_pose_history()[-1].left_ankle.x > 400.0
    events = engine.get_recent_events(window_ms=60000)
    assert any(e.type == 'heel-strike' and e.foot == 'left' for e in events)
