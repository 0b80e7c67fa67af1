"""
Cue-aligned video segment extraction.

Each scored trial is the window ``offset_sec`` .. ``offset_sec + duration_sec``
after a cue onset (the trace interval of the conditioning protocol). Window
boundaries are converted to frames by rounding up, and both boundary frames
are included, so a 10 s window at 15 FPS spans 151 frames.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from utils.video_io import VideoReader

logger = logging.getLogger(__name__)


@dataclass
class VideoSegment:
    """
    Trial window aligned to one cue onset.

    Attributes:
        cue_frame: Frame of the cue onset
        start_frame: First frame of the window (0-based)
        end_frame: Last frame of the window (inclusive)
        start_time: Window start in seconds
        end_time: Window end in seconds
        fps: Video frames per second
        frames: Decoded frames (n_frames, H, W, 3), once extracted
        centers: Tracked head centres (n_frames, 2), once extracted
    """
    cue_frame: int
    start_frame: int
    end_frame: int
    start_time: float
    end_time: float
    fps: float
    frames: Optional[np.ndarray] = None
    centers: Optional[np.ndarray] = None

    @property
    def num_frames(self) -> int:
        return self.end_frame - self.start_frame + 1


def time_to_frame(time_sec: float, fps: float) -> int:
    """
    Convert time in seconds to the first frame at or after it.

    The product is rounded to 6 decimals first so that exact frame times
    (e.g. 35.0 s at 15 FPS) do not land one frame late through float error.
    """
    return int(math.ceil(round(time_sec * fps, 6)))


def plan_segments(
    cue_frames: Sequence[int],
    fps: float,
    n_segments: int = 5,
    offset_sec: float = 30.0,
    duration_sec: float = 10.0
) -> List[VideoSegment]:
    """
    Compute trial windows for the first ``n_segments`` cue onsets.

    Args:
        cue_frames: Ascending cue onset frames
        fps: Video frame rate
        n_segments: Number of trials to extract
        offset_sec: Delay from cue onset to window start
        duration_sec: Window length

    Returns:
        List of VideoSegment without frame data

    Raises:
        ValueError: If fewer than n_segments cues are given
    """
    if len(cue_frames) < n_segments:
        raise ValueError(f"Need {n_segments} cue onsets, got {len(cue_frames)}")

    segments = []
    for cue_frame in cue_frames[:n_segments]:
        start_time = cue_frame / fps + offset_sec
        end_time = start_time + duration_sec
        segments.append(VideoSegment(
            cue_frame=int(cue_frame),
            start_frame=time_to_frame(start_time, fps),
            end_frame=time_to_frame(end_time, fps),
            start_time=start_time,
            end_time=end_time,
            fps=fps
        ))

    return segments


def extract_segments(
    reader: VideoReader,
    centers: np.ndarray,
    cue_frames: Sequence[int],
    n_segments: int = 5,
    offset_sec: float = 30.0,
    duration_sec: float = 10.0
) -> List[VideoSegment]:
    """
    Decode the frames and slice the tracked centres of each trial window.

    Args:
        reader: Open VideoReader for the trial video
        centers: Per-frame head centres of the whole video, shape (n_frames, 2)
        cue_frames: Ascending cue onset frames
        n_segments: Number of trials to extract
        offset_sec: Delay from cue onset to window start
        duration_sec: Window length

    Returns:
        List of VideoSegment with frames and centers filled in

    Raises:
        ValueError: If a window extends past the video or the tracking table
    """
    segments = plan_segments(cue_frames, reader.fps, n_segments, offset_sec, duration_sec)

    for i, segment in enumerate(segments, 1):
        if segment.end_frame >= len(centers):
            raise ValueError(
                f"Segment {i} ends at frame {segment.end_frame}, tracking "
                f"data has only {len(centers)} rows"
            )

        segment.frames = reader.read_frames(segment.start_frame, segment.end_frame)
        segment.centers = np.asarray(
            centers[segment.start_frame:segment.end_frame + 1], dtype=float
        )

        logger.info(
            f"Segment {i}: cue frame {segment.cue_frame}, frames "
            f"[{segment.start_frame}, {segment.end_frame}] "
            f"({segment.start_time:.2f}s - {segment.end_time:.2f}s)"
        )

    return segments
