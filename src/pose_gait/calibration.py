"""Pixel-to-meter calibration, explicit or estimated from body proportions."""

import logging
import math
from typing import Optional

import numpy as np

from .config import GaitConfig
from .models import CalibrationData, PoseFrame

logger = logging.getLogger(__name__)


class CalibrationError(ValueError):
    """Raised when calibration data has a non-positive or non-finite scale."""


class DistanceCalibrator:
    """Holds the current calibration and converts pixel distances to meters."""

    def __init__(self, config: Optional[GaitConfig] = None):
        self.config = config or GaitConfig()
        self._calibration: Optional[CalibrationData] = None

    @property
    def calibration(self) -> Optional[CalibrationData]:
        return self._calibration

    def is_calibrated(self) -> bool:
        return self._calibration is not None

    def calibrate(self, data: CalibrationData) -> None:
        """
        Replace the current calibration.

        Raises:
            CalibrationError: If pixels_per_meter is not a positive finite number
        """
        ppm = data.pixels_per_meter
        if ppm is None or not math.isfinite(ppm) or ppm <= 0:
            raise CalibrationError(f"pixels_per_meter must be positive, got {ppm!r}")
        self._calibration = data
        logger.info("Calibrated at %.2f px/m", ppm)

    def auto_calibrate(self, frame: PoseFrame) -> Optional[CalibrationData]:
        """
        Estimate pixels-per-meter from average shoulder width, hip width and
        torso height, averaging the three estimates.

        Args:
            frame: Pose with confidently detected shoulders and hips

        Returns:
            The new calibration, or None if the reference landmarks are not
            confident enough (calibration is then left untouched)
        """
        cfg = self.config
        references = (frame.left_shoulder, frame.right_shoulder, frame.left_hip, frame.right_hip)
        if not all(kp.confidence >= cfg.AUTO_CALIBRATION_MIN_CONFIDENCE for kp in references):
            logger.warning("Auto-calibration skipped: shoulder/hip confidence below %.2f",
                           cfg.AUTO_CALIBRATION_MIN_CONFIDENCE)
            return None
        if not all(kp.is_finite() for kp in references):
            return None

        shoulder_width = abs(frame.right_shoulder.x - frame.left_shoulder.x)
        hip_width = abs(frame.right_hip.x - frame.left_hip.x)
        shoulder_mid_y = (frame.left_shoulder.y + frame.right_shoulder.y) / 2
        hip_mid_y = (frame.left_hip.y + frame.right_hip.y) / 2
        torso_height = abs(shoulder_mid_y - hip_mid_y)

        estimates = np.array([
            shoulder_width / cfg.AVG_SHOULDER_WIDTH_M,
            hip_width / cfg.AVG_HIP_WIDTH_M,
            torso_height / cfg.AVG_TORSO_HEIGHT_M,
        ])
        pixels_per_meter = float(np.mean(estimates))
        if not pixels_per_meter > 0:
            logger.warning("Auto-calibration produced a non-positive scale; ignoring")
            return None

        data = CalibrationData(
            pixels_per_meter=pixels_per_meter,
            reference_height=cfg.DEFAULT_REFERENCE_HEIGHT_M,
            camera_height=cfg.DEFAULT_CAMERA_HEIGHT_M,
            camera_angle=cfg.DEFAULT_CAMERA_ANGLE_DEG,
        )
        self.calibrate(data)
        return data

    def pixels_to_meters(self, pixel_distance: float) -> float:
        """Convert a pixel distance to meters; 0.0 while uncalibrated."""
        if self._calibration is None:
            return 0.0
        return pixel_distance / self._calibration.pixels_per_meter
