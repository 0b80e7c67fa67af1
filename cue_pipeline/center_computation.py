"""
Head centre from DeepLabCut tracking output.

DeepLabCut writes one CSV per video with three header rows
(scorer / bodyparts / coords) and an (x, y, likelihood) column triple per
body part. The head centre of a frame is the mean position of the body
parts tracked with sufficient likelihood; frames without any confident
body part have no centre (NaN).
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def load_dlc_csv(csv_path: Path) -> pd.DataFrame:
    """
    Read a DeepLabCut CSV with (bodypart, coord) column labels.

    Args:
        csv_path: Path to DLC CSV file

    Returns:
        DataFrame indexed by frame, columns MultiIndex (bodypart, coord)
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Tracking file not found: {csv_path}")

    df = pd.read_csv(csv_path, header=[0, 1, 2], index_col=0)
    # drop the scorer level, it is constant within one file
    df.columns = df.columns.droplevel(0)

    logger.info(
        f"Loaded tracking: {len(df)} frames, "
        f"bodyparts={list(df.columns.get_level_values(0).unique())}"
    )
    return df


def calculate_center_data(
    tracking: pd.DataFrame,
    confidence_threshold: float = 0.8,
    bodyparts: Optional[Sequence[str]] = None
) -> np.ndarray:
    """
    Per-frame mean position of confidently tracked body parts.

    Args:
        tracking: DataFrame as returned by load_dlc_csv
        confidence_threshold: Minimum likelihood for a body part to count
        bodyparts: Body parts to average (None = all)

    Returns:
        Array of shape (n_frames, 2) with NaN where no body part is confident
    """
    if bodyparts is None:
        bodyparts = list(tracking.columns.get_level_values(0).unique())

    n_frames = len(tracking)
    xs = np.full((n_frames, len(bodyparts)), np.nan)
    ys = np.full((n_frames, len(bodyparts)), np.nan)

    for j, bp in enumerate(bodyparts):
        likelihood = tracking[(bp, 'likelihood')].to_numpy(dtype=float)
        confident = likelihood >= confidence_threshold
        xs[confident, j] = tracking[(bp, 'x')].to_numpy(dtype=float)[confident]
        ys[confident, j] = tracking[(bp, 'y')].to_numpy(dtype=float)[confident]

    centers = np.full((n_frames, 2), np.nan)
    has_point = ~np.isnan(xs).all(axis=1)
    centers[has_point, 0] = np.nanmean(xs[has_point], axis=1)
    centers[has_point, 1] = np.nanmean(ys[has_point], axis=1)

    logger.debug(
        f"Confident centre in {int(has_point.sum())}/{n_frames} frames "
        f"(threshold={confidence_threshold})"
    )
    return centers
