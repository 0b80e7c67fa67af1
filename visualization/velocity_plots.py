"""
Summary plots for head-point velocity and cue detection.

Engineering approach:
- Matplotlib (Agg-safe) for static PNG output
- Seaborn styling, consistent with the rest of the lab figures
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

from velocity_pipeline.velocity import VelocityResult

logger = logging.getLogger(__name__)

sns.set_style("whitegrid")


def plot_segment_velocities(
    result: VelocityResult,
    output_path: str,
    title: str = "Mean head velocity per segment"
) -> str:
    """
    Plot mean velocity per segment, one line per file plus the group mean.

    Args:
        result: Output of compute_delay_velocity
        output_path: Path to save plot (PNG)
        title: Plot title

    Returns:
        Path to saved plot file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    matrix = result.delay_velocity
    segments = np.arange(1, matrix.shape[0] + 1)

    fig, ax = plt.subplots(figsize=(8, 5))

    for col in range(matrix.shape[1]):
        ax.plot(segments, matrix[:, col], color='gray', alpha=0.4, lw=1)

    valid_counts = (~np.isnan(matrix)).sum(axis=1)
    group_mean = np.full(matrix.shape[0], np.nan)
    has_data = valid_counts > 0
    group_mean[has_data] = np.nansum(matrix[has_data], axis=1) / valid_counts[has_data]

    ax.plot(segments, group_mean, 'o-', color='C3', lw=2.5,
            label=f"mean (n={len(result.file_names)})")

    ax.set_xticks(segments)
    ax.set_xlabel("Segment")
    ax.set_ylabel("Velocity (px/frame)")
    ax.set_title(title)
    ax.legend(loc='upper right')

    plt.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"Velocity plot saved: {output_path}")
    return str(output_path)


def plot_cue_envelope(
    envelope: np.ndarray,
    sample_rate: int,
    cue_frames: np.ndarray,
    fps: float,
    threshold: float,
    output_path: str,
    max_points: Optional[int] = 200000
) -> str:
    """
    Plot the audio envelope with the threshold and detected cue onsets.

    Args:
        envelope: Per-sample envelope
        sample_rate: Audio sample rate in Hz
        cue_frames: Detected onset frames
        fps: Video frame rate
        threshold: Detection threshold
        output_path: Path to save plot (PNG)
        max_points: Decimate the envelope to at most this many points

    Returns:
        Path to saved plot file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    step = 1
    if max_points and len(envelope) > max_points:
        step = int(np.ceil(len(envelope) / max_points))
    times = np.arange(0, len(envelope), step) / sample_rate

    fig, ax = plt.subplots(figsize=(14, 4))
    ax.plot(times, envelope[::step], lw=0.5, color='C0')
    ax.axhline(threshold, color='C1', ls='--', label=f"threshold {threshold}")
    for i, frame in enumerate(cue_frames):
        ax.axvline(frame / fps, color='C3', alpha=0.8,
                   label="cue onset" if i == 0 else None)

    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Mean |amplitude|")
    ax.legend(loc='upper right')

    plt.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"Cue envelope plot saved: {output_path}")
    return str(output_path)
