"""
Head-point velocity and per-segment aggregation.

Process (per annotation file):
1. Load the (segments, frames, 2) head-point table
2. Fill untracked frames per segment (linear inter-/extrapolation)
3. Frame-to-frame speed = Euclidean distance between consecutive points
4. Mean speed per segment, NaN entries skipped

The per-file means form a (segments x files) matrix, which is flattened
file-major (all segments of file 1, then file 2, ...) for downstream
statistics.

Speeds are in pixels per frame; conversion to physical units is left
to the caller.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

import numpy as np
import pandas as pd

from .interpolation import interpolate_positions
from .trajectory_loader import load_trajectory

logger = logging.getLogger(__name__)


@dataclass
class VelocityResult:
    """
    Mean head-point speed per segment and file.

    Attributes:
        delay_velocity: Matrix of shape (n_segments, n_files)
        file_names: Source file names, in column order
    """
    delay_velocity: np.ndarray
    file_names: List[str]

    @property
    def flattened(self) -> np.ndarray:
        """Column-major flattening: segment varies fastest."""
        return self.delay_velocity.reshape(-1, order='F')

    def to_dataframe(self) -> pd.DataFrame:
        n_segments, _ = self.delay_velocity.shape
        return pd.DataFrame({
            'file': np.repeat(self.file_names, n_segments),
            'segment': np.tile(np.arange(1, n_segments + 1), len(self.file_names)),
            'mean_velocity': self.flattened,
        })


def compute_speed(positions: np.ndarray) -> np.ndarray:
    """
    Frame-to-frame speed of a position series.

    Args:
        positions: Array of shape (n_frames, 2)

    Returns:
        Array of shape (n_frames - 1,); NaN wherever a coordinate is NaN
    """
    positions = np.asarray(positions, dtype=float)
    if len(positions) < 2:
        return np.empty(0)

    deltas = np.diff(positions, axis=0)
    return np.sqrt(deltas[:, 0] ** 2 + deltas[:, 1] ** 2)


def mean_velocity(speeds: np.ndarray) -> float:
    """Mean of a speed series ignoring NaN; NaN if nothing is defined."""
    speeds = np.asarray(speeds, dtype=float)
    valid = speeds[~np.isnan(speeds)]
    if valid.size == 0:
        return float('nan')
    return float(valid.mean())


def segment_mean_velocities(positions: Sequence[np.ndarray]) -> np.ndarray:
    """
    Mean speed of every segment of one trajectory table.

    Args:
        positions: Per-segment arrays of shape (n_frames, 2), or a single
            (n_segments, n_frames, 2) array

    Returns:
        Array of shape (n_segments,)
    """
    means = np.empty(len(positions))
    for seg, seg_positions in enumerate(positions):
        filled = interpolate_positions(seg_positions)
        means[seg] = mean_velocity(compute_speed(filled))
    return means


def compute_delay_velocity(
    files: Sequence[Path],
    n_segments: int = 5
) -> VelocityResult:
    """
    Aggregate mean head-point speed per segment over a batch of files.

    Args:
        files: Annotation files, in column order
        n_segments: Segments per file

    Returns:
        VelocityResult with a (n_segments, n_files) matrix
    """
    delay_velocity = np.zeros((n_segments, len(files)))

    for i, file_path in enumerate(files):
        positions = load_trajectory(file_path, n_segments=n_segments)
        delay_velocity[:, i] = segment_mean_velocities(positions)

        n_undefined = int(np.isnan(delay_velocity[:, i]).sum())
        if n_undefined:
            logger.warning(
                f"{Path(file_path).name}: {n_undefined} segment(s) with fewer "
                f"than 2 tracked frames, mean velocity undefined"
            )
        logger.info(f"Processed {Path(file_path).name} ({i + 1}/{len(files)})")

    return VelocityResult(
        delay_velocity=delay_velocity,
        file_names=[Path(f).name for f in files]
    )


def save_velocity_csv(result: VelocityResult, output_path: Path) -> Path:
    """Write one row per (file, segment) mean velocity."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    result.to_dataframe().to_csv(output_path, index=False)
    logger.info(f"Saved velocity table to {output_path}")
    return output_path
