"""
Audio I/O utilities for loading cue soundtracks.

Engineering decisions:
- Keep the native sample rate: cue frames are derived from sample indices,
  resampling would only shift them
- Keep every channel: the cue envelope averages across channels
- librosa for decoding (mp3/wav), soundfile for cheap header inspection
"""

import logging
from pathlib import Path
from typing import Tuple

import numpy as np
import librosa
import soundfile as sf

logger = logging.getLogger(__name__)


def load_audio(audio_path: Path) -> Tuple[np.ndarray, int]:
    """
    Load audio file from disk at its native sample rate.

    Args:
        audio_path: Path to audio file (str or Path)

    Returns:
        Tuple of (audio_data, sample_rate)
        - audio_data: array of shape (n_samples, n_channels)
        - sample_rate: sample rate in Hz

    Raises:
        FileNotFoundError: If audio file doesn't exist
    """
    audio_path = Path(audio_path)
    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    logger.info(f"Loading audio from {audio_path}")

    audio_data, sr = librosa.load(str(audio_path), sr=None, mono=False)

    # librosa returns (n_channels, n_samples) for multichannel input
    if audio_data.ndim == 1:
        audio_data = audio_data[:, np.newaxis]
    else:
        audio_data = audio_data.T

    logger.info(
        f"Loaded audio: {audio_data.shape[0]/sr:.2f}s @ {sr}Hz, "
        f"{audio_data.shape[1]} channel(s)"
    )

    return audio_data, int(sr)


def get_audio_duration(audio_path: Path) -> float:
    """
    Get audio duration in seconds without loading full file.

    Args:
        audio_path: Path to audio file

    Returns:
        Duration in seconds
    """
    info = sf.info(str(audio_path))
    return info.frames / info.samplerate


def check_audio_coverage(
    audio_path: Path,
    video_duration: float,
    tolerance_sec: float = 1.0
) -> bool:
    """
    Check that the soundtrack spans the whole video.

    Cues in the uncovered tail cannot be detected, so a short soundtrack
    usually ends in a cue count mismatch; the warning names the cause.

    Args:
        audio_path: Path to audio file
        video_duration: Video duration in seconds
        tolerance_sec: Allowed shortfall in seconds

    Returns:
        True if the audio covers the video within tolerance
    """
    audio_duration = get_audio_duration(audio_path)
    if audio_duration + tolerance_sec < video_duration:
        logger.warning(
            f"Audio ({audio_duration:.1f}s) is shorter than video "
            f"({video_duration:.1f}s): {audio_path}"
        )
        return False
    return True
