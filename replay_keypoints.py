"""
Replay a recorded keypoint sequence through the gait engine, as if it were
arriving live from the pose model, and log the gait parameters once per second.
"""
import logging
import sys
from pathlib import Path

from pose_gait import (
    FilterConfig,
    GaitAnalysisEngine,
    KeypointDataLoader,
    KeypointSmoother,
    setup_logging,
)

# Configuration
DATA_DIR = Path("data/keypoints")
REPORT_INTERVAL_MS = 1000.0
SMOOTHING = FilterConfig(filter_type='exponential')

logger = logging.getLogger("replay_keypoints")


def replay(recording: str) -> None:
    loader = KeypointDataLoader(DATA_DIR)
    frames = loader.load_frames(recording)
    logger.info("Replaying %s (%d frames)", recording, len(frames))

    engine = GaitAnalysisEngine(smoother=KeypointSmoother(SMOOTHING))
    last_report = None
    event_count = 0

    for frame in frames:
        if not engine.is_calibrated():
            engine.auto_calibrate(frame)

        event_count += len(engine.add_pose(frame))

        if last_report is None or frame.timestamp - last_report >= REPORT_INTERVAL_MS:
            params = engine.calculate_gait_parameters()
            logger.info(
                "t=%.1fs cadence=%.1f steps/min stride=%.2fm velocity=%.2fm/s "
                "symmetry=%.1f%% phase L=%s R=%s confidence=%.2f",
                frame.timestamp / 1000.0, params.cadence, params.stride_length,
                params.velocity, params.symmetry_index, params.gait_phase.left,
                params.gait_phase.right, params.confidence,
            )
            last_report = frame.timestamp

    logger.info("Replay complete: %d gait events detected", event_count)


if __name__ == "__main__":
    setup_logging()
    available = KeypointDataLoader(DATA_DIR).get_available_recordings()
    if len(sys.argv) > 1:
        replay(sys.argv[1])
    elif available:
        replay(available[0])
    else:
        logger.error("No recordings found in %s", DATA_DIR)
