"""Loading of recorded keypoint sequences for offline replay."""

import logging
from pathlib import Path
from typing import Iterator, List

import polars as pl

from .models import Keypoint, PoseFrame, TRACKED_KEYPOINTS

logger = logging.getLogger(__name__)

RECORDING_SUFFIXES = ('.parquet', '.csv')


class KeypointDataLoader:
    """
    Handles loading of keypoint recordings.

    A recording has one row per frame: a `timestamp` column in milliseconds
    plus `<keypoint>_x`, `<keypoint>_y` and `<keypoint>_score` columns for
    each tracked landmark (e.g. `left_ankle_x`).
    """

    def __init__(self, data_dir: Path):
        """
        Initialize the data loader.

        Args:
            data_dir: Directory containing keypoint recordings
        """
        self.data_dir = Path(data_dir)

    def get_available_recordings(self) -> List[str]:
        """
        List recording names (file stems) in the data directory.

        Returns:
            Sorted list of recording names
        """
        files = [f for f in self.data_dir.glob("*") if f.suffix in RECORDING_SUFFIXES]
        return sorted({f.stem for f in files})

    def get_file_path(self, recording: str) -> Path:
        """
        Resolve a recording name to its file, preferring parquet.

        Raises:
            FileNotFoundError: If no parquet or CSV file exists for the name
        """
        for suffix in RECORDING_SUFFIXES:
            path = self.data_dir / f"{recording}{suffix}"
            if path.exists():
                return path
        raise FileNotFoundError(f"Recording not found: {recording}")

    def load_recording(self, recording: str) -> pl.DataFrame:
        """
        Load a recording as a DataFrame sorted by timestamp.

        Raises:
            FileNotFoundError: If the recording does not exist
            ValueError: If the recording has no timestamp column
        """
        path = self.get_file_path(recording)
        df = pl.read_parquet(path) if path.suffix == '.parquet' else pl.read_csv(path)

        if 'timestamp' not in df.columns:
            raise ValueError(f"{path.name} has no 'timestamp' column")

        missing = [name for name in TRACKED_KEYPOINTS if f"{name}_x" not in df.columns]
        if missing:
            logger.warning("%s is missing keypoints: %s", path.name, ", ".join(missing))

        return df.sort('timestamp')

    def iter_frames(self, df: pl.DataFrame) -> Iterator[PoseFrame]:
        """
        Convert recording rows into pose frames.

        Args:
            df: Recording DataFrame

        Yields:
            PoseFrame per row; absent landmarks and missing scores are zero-confidence keypoints
        """
        present = [name for name in TRACKED_KEYPOINTS
                   if f"{name}_x" in df.columns and f"{name}_y" in df.columns]

        for row in df.iter_rows(named=True):
            keypoints = {}
            for name in present:
                keypoints[name] = Keypoint.from_mapping({
                    'x': row[f"{name}_x"],
                    'y': row[f"{name}_y"],
                    'score': row.get(f"{name}_score"),
                })
            yield PoseFrame(timestamp=float(row['timestamp']), **keypoints)

    def load_frames(self, recording: str) -> List[PoseFrame]:
        """Load a recording straight into a list of pose frames."""
        return list(self.iter_frames(self.load_recording(recording)))
