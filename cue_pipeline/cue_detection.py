"""
Cue-tone onset detection from a trial soundtrack.

The conditioning tone is far louder than the room noise, so a fixed
amplitude threshold is enough to find it. Detection works on video frame
indices rather than samples because everything downstream is frame-based:

1. Envelope: mean absolute amplitude across channels, per sample
2. Loud frames: samples above threshold mapped to 0-based frames with
   ceil((sample_index + 1) * fps / sample_rate) - 1, deduplicated
3. Onsets: a loud frame more than ``min_gap_frames`` after the previous one
   starts a new cluster (the first loud frame always does)
4. Sustain check: the loud frame ``lookahead`` entries later must lie within
   ``lookahead * min_gap_frames`` of the onset; isolated clicks and bumps
   fail it
5. The session is only usable if exactly ``expected_count`` tones survive
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


class CueCountError(RuntimeError):
    """Number of detected cue onsets differs from the expected count."""

    def __init__(self, expected: int, found: int):
        self.expected = expected
        self.found = found
        super().__init__(
            f"Expected exactly {expected} cue onsets, found {found}. "
            f"Stopping execution."
        )


def compute_envelope(audio_data: np.ndarray) -> np.ndarray:
    """
    Per-sample mean absolute amplitude across channels.

    Args:
        audio_data: Array of shape (n_samples,) or (n_samples, n_channels)

    Returns:
        Array of shape (n_samples,)
    """
    audio_abs = np.abs(np.asarray(audio_data, dtype=float))
    if audio_abs.ndim == 1:
        return audio_abs
    return audio_abs.mean(axis=1)


def find_loud_frames(
    envelope: np.ndarray,
    sample_rate: int,
    fps: float,
    threshold: float = 0.02
) -> np.ndarray:
    """
    Sorted unique video frames containing at least one loud sample.

    Args:
        envelope: Per-sample envelope
        sample_rate: Audio sample rate in Hz
        fps: Video frame rate
        threshold: Envelope level a sample must exceed

    Returns:
        Integer array of frame indices
    """
    loud_samples = np.nonzero(envelope > threshold)[0]
    # 1-based sample n lies in 1-based frame ceil(n * fps / sr)
    loud_frames = np.ceil((loud_samples + 1) * fps / sample_rate).astype(int) - 1
    return np.unique(loud_frames)


def find_cluster_starts(loud_frames: np.ndarray, min_gap_frames: int = 20) -> np.ndarray:
    """
    Positions in ``loud_frames`` where a new loud cluster begins.

    Args:
        loud_frames: Sorted unique frame indices
        min_gap_frames: Gap (in frames) that separates two clusters

    Returns:
        Integer array of positions into loud_frames
    """
    if len(loud_frames) == 0:
        return np.empty(0, dtype=int)

    gaps = np.diff(loud_frames)
    starts = np.nonzero(gaps > min_gap_frames)[0] + 1
    return np.concatenate([[0], starts]).astype(int)


def filter_sustained(
    loud_frames: np.ndarray,
    start_positions: np.ndarray,
    min_gap_frames: int = 20,
    lookahead: int = 5
) -> np.ndarray:
    """
    Keep cluster starts followed by a sustained run of loud frames.

    A start at position p survives when ``loud_frames[p + lookahead]`` is no
    more than ``lookahead * min_gap_frames`` frames after it. Starts with
    fewer than ``lookahead`` loud frames after them are dropped.

    Returns:
        Frame indices of the surviving onsets, ascending
    """
    kept = []
    window = lookahead * min_gap_frames

    for pos in start_positions:
        onset = loud_frames[pos]
        if pos + lookahead >= len(loud_frames):
            logger.debug(f"Dropping onset at frame {onset}: too few loud frames after it")
            continue
        if loud_frames[pos + lookahead] > onset + window:
            logger.debug(f"Dropping onset at frame {onset}: burst not sustained")
            continue
        kept.append(onset)

    return np.asarray(kept, dtype=int)


def detect_cue_onsets(
    audio_data: np.ndarray,
    sample_rate: int,
    fps: float,
    threshold: float = 0.02,
    min_gap_frames: int = 20,
    lookahead: int = 5,
    expected_count: int = 7
) -> np.ndarray:
    """
    Find the video frames at which the cue tones start.

    Args:
        audio_data: Audio of shape (n_samples,) or (n_samples, n_channels)
        sample_rate: Audio sample rate in Hz
        fps: Video frame rate
        threshold: Envelope threshold for a loud sample
        min_gap_frames: Minimum silent gap between two cues, in frames
        lookahead: Loud frames inspected by the sustain check
        expected_count: Number of cues the protocol delivers

    Returns:
        Ascending integer array of cue onset frames

    Raises:
        CueCountError: If the number of onsets differs from expected_count
    """
    logger.info(
        f"Detecting cues in {len(audio_data)/sample_rate:.1f}s audio "
        f"(threshold={threshold}, min_gap={min_gap_frames} frames)"
    )

    envelope = compute_envelope(audio_data)
    loud_frames = find_loud_frames(envelope, sample_rate, fps, threshold)
    logger.debug(f"{len(loud_frames)} loud frames")

    start_positions = find_cluster_starts(loud_frames, min_gap_frames)
    onsets = filter_sustained(loud_frames, start_positions, min_gap_frames, lookahead)

    logger.info(
        f"Found {len(onsets)} cue onsets "
        f"({len(start_positions) - len(onsets)} candidates rejected)"
    )

    if len(onsets) != expected_count:
        raise CueCountError(expected_count, len(onsets))

    return onsets
