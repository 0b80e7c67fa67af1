"""
Loading of head-point annotation files.

Two layouts are accepted:
- ``point_positions``: numeric array (segments, frames, 2), NaN = untracked,
  with optional ``segment_frame_counts`` when segments differ in length.
  Written by ``annotation.point_store.PointStore``.
- ``globalPointPositions``: MATLAB cell array (segments, frames), each
  cell empty or a 1x2 [x, y] vector. Written by the older MATLAB
  annotation tool.
"""

import logging
from pathlib import Path
from typing import List

import numpy as np
from scipy.io import loadmat

logger = logging.getLogger(__name__)

POSITIONS_KEY = 'point_positions'
FRAME_COUNTS_KEY = 'segment_frame_counts'
LEGACY_POSITIONS_KEY = 'globalPointPositions'


class MissingVariableError(ValueError):
    """Annotation file does not contain a point table."""


def cells_to_positions(cells: np.ndarray) -> np.ndarray:
    """
    Convert a (segments, frames) object array of optional points
    into a (segments, frames, 2) float array.
    """
    n_segments, n_frames = cells.shape
    positions = np.full((n_segments, n_frames, 2), np.nan)

    for seg in range(n_segments):
        for frame in range(n_frames):
            cell = np.asarray(cells[seg, frame], dtype=float).ravel()
            if cell.size >= 2:
                positions[seg, frame] = cell[:2]

    return positions


def load_trajectory(file_path: Path, n_segments: int = 5) -> List[np.ndarray]:
    """
    Load the per-segment, per-frame head-point table of one trial file.

    Args:
        file_path: Path to .mat annotation file
        n_segments: Number of leading segments to keep

    Returns:
        List of n_segments arrays of shape (n_frames, 2), NaN = untracked

    Raises:
        FileNotFoundError: If the file doesn't exist
        MissingVariableError: If neither point table is present
        ValueError: If the table is malformed or has too few segments
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Annotation file not found: {file_path}")

    mat = loadmat(str(file_path))

    if POSITIONS_KEY in mat:
        positions = np.asarray(mat[POSITIONS_KEY], dtype=float)
    elif LEGACY_POSITIONS_KEY in mat:
        positions = cells_to_positions(mat[LEGACY_POSITIONS_KEY])
    else:
        raise MissingVariableError(
            f"Neither '{POSITIONS_KEY}' nor '{LEGACY_POSITIONS_KEY}' "
            f"was found in {file_path.name}"
        )

    if positions.ndim != 3 or positions.shape[2] != 2:
        raise ValueError(
            f"Point table in {file_path.name} has shape {positions.shape}, "
            f"expected (segments, frames, 2)"
        )
    if positions.shape[0] < n_segments:
        raise ValueError(
            f"{file_path.name} holds {positions.shape[0]} segments, "
            f"expected at least {n_segments}"
        )

    if FRAME_COUNTS_KEY in mat:
        frame_counts = np.asarray(mat[FRAME_COUNTS_KEY]).ravel().astype(int)
    else:
        frame_counts = np.full(positions.shape[0], positions.shape[1])

    segments = [positions[seg, :frame_counts[seg]] for seg in range(n_segments)]

    logger.debug(
        f"Loaded {file_path.name}: {n_segments} segments, "
        f"frames={[len(s) for s in segments]}, "
        f"untracked={sum(int(np.isnan(s[:, 0]).sum()) for s in segments)}"
    )

    return segments
