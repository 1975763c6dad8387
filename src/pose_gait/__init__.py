"""Pose-based gait event detection and gait parameter calculation."""

from .config import GaitConfig
from .models import (
    Keypoint,
    PoseFrame,
    CalibrationData,
    GaitEvent,
    FootPhase,
    GaitPhase,
    GaitParameters,
)
from .pose_history import PoseHistoryBuffer
from .calibration import DistanceCalibrator, CalibrationError
from .gait_detector import GaitEventDetector, GaitEventLog
from .gait_phase import calculate_gait_phase, determine_foot_phase
from .gait_parameters import ParameterCalculator, CadenceStatistics
from .signal_filters import KeypointSmoother, FilterConfig
from .data_loader import KeypointDataLoader
from .engine import GaitAnalysisEngine
from .logging_setup import setup_logging


__all__ = [
    'GaitConfig',
    'Keypoint',
    'PoseFrame',
    'CalibrationData',
    'GaitEvent',
    'FootPhase',
    'GaitPhase',
    'GaitParameters',
    'PoseHistoryBuffer',
    'DistanceCalibrator',
    'CalibrationError',
    'GaitEventDetector',
    'GaitEventLog',
    'calculate_gait_phase',
    'determine_foot_phase',
    'ParameterCalculator',
    'CadenceStatistics',
    'KeypointSmoother',
    'FilterConfig',
    'KeypointDataLoader',
    'GaitAnalysisEngine',
    'setup_logging',
]
