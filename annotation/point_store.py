"""
Persistence of annotated head points.

Points are saved as a MATLAB file so that the velocity pipeline and the
lab's MATLAB scripts can both read them:
- ``point_positions``: (segments, max_frames, 2) float array, NaN = unmarked
- ``segment_frame_counts``: frames per segment (rows past it are padding)
"""

import logging
from pathlib import Path
from typing import List, Sequence

import numpy as np
from scipy.io import savemat

from velocity_pipeline.trajectory_loader import FRAME_COUNTS_KEY, POSITIONS_KEY

logger = logging.getLogger(__name__)


class PointStore:
    """
    One optional 2D point per (segment, frame).

    Usage:
        store = PointStore.from_points([seg.centers for seg in segments])
        store.save('trial_headpoint.mat')
    """

    def __init__(self, frame_counts: Sequence[int]):
        self.points: List[np.ndarray] = [np.full((n, 2), np.nan) for n in frame_counts]

    @classmethod
    def from_points(cls, points: Sequence[np.ndarray]) -> 'PointStore':
        """Build from per-segment (n_frames, 2) arrays; NaN rows stay unmarked."""
        store = cls([len(p) for p in points])
        for seg, seg_points in enumerate(points):
            store.points[seg][:] = np.asarray(seg_points, dtype=float)
        return store

    @property
    def n_segments(self) -> int:
        return len(self.points)

    @property
    def frame_counts(self) -> List[int]:
        return [len(p) for p in self.points]

    def n_marked(self) -> int:
        return sum(int((~np.isnan(p).any(axis=1)).sum()) for p in self.points)

    def to_array(self) -> np.ndarray:
        """Pad all segments to the longest one."""
        max_frames = max(self.frame_counts)
        table = np.full((self.n_segments, max_frames, 2), np.nan)
        for seg, seg_points in enumerate(self.points):
            table[seg, :len(seg_points)] = seg_points
        return table

    def save(self, output_path: Path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        savemat(str(output_path), {
            POSITIONS_KEY: self.to_array(),
            FRAME_COUNTS_KEY: np.asarray(self.frame_counts, dtype=float),
        })

        total = sum(self.frame_counts)
        logger.info(f"Saved {self.n_marked()}/{total} head points to {output_path}")
        return output_path
