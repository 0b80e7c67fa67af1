"""
Gap filling for head-point trajectories.

Untracked frames are filled per axis by linear interpolation between the
surrounding annotated frames and linear extrapolation past the first and
last annotated frame. An axis with fewer than two annotated frames cannot
define a line and is left entirely undefined (NaN), which then propagates
into the velocity and mean of that segment.
"""

import logging

import numpy as np
from scipy.interpolate import interp1d

logger = logging.getLogger(__name__)

MIN_VALID_POINTS = 2


def interpolate_axis(values: np.ndarray) -> np.ndarray:
    """
    Fill NaN entries of a 1-D series indexed by frame.

    Args:
        values: Series of shape (n_frames,), NaN = not tracked

    Returns:
        Fully defined series of the same shape, or all-NaN if fewer
        than two values were defined
    """
    values = np.asarray(values, dtype=float)
    valid = ~np.isnan(values)

    if valid.sum() < MIN_VALID_POINTS:
        return np.full(values.shape, np.nan)

    frame_idx = np.arange(len(values))
    f = interp1d(
        frame_idx[valid],
        values[valid],
        kind='linear',
        fill_value='extrapolate',
        assume_sorted=True
    )
    filled = f(frame_idx)

    # interp1d can disagree with the input in the last ulp
    filled[valid] = values[valid]
    return filled


def interpolate_positions(positions: np.ndarray) -> np.ndarray:
    """
    Fill gaps of a position series, each axis independently.

    Args:
        positions: Array of shape (n_frames, 2) with NaN for missing points

    Returns:
        Array of shape (n_frames, 2)
    """
    positions = np.asarray(positions, dtype=float)
    filled = np.empty_like(positions)

    for axis in range(positions.shape[1]):
        filled[:, axis] = interpolate_axis(positions[:, axis])

    n_missing = int(np.isnan(positions).any(axis=1).sum())
    if n_missing:
        logger.debug(f"Interpolated {n_missing}/{len(positions)} untracked frames")

    return filled
