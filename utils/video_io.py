"""
Video I/O utilities for frame-block extraction.

Engineering decisions:
- OpenCV for video decoding (universal format support)
- Sequential reads after a single seek (seeking per frame is slow on AVI)
- Frames returned as one (n_frames, H, W, 3) block per segment
"""

import logging
from pathlib import Path
from typing import Generator, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class VideoReader:
    """
    Video reader with random access and block extraction.

    Usage:
        with VideoReader('trial.avi') as reader:
            block = reader.read_frames(450, 600)
    """

    def __init__(self, video_path: Path, color_mode: str = 'RGB'):
        """
        Initialize video reader.

        Args:
            video_path: Path to video file
            color_mode: 'RGB' or 'BGR' (OpenCV default)
        """
        self.video_path = Path(video_path)
        self.color_mode = color_mode

        if not self.video_path.exists():
            raise FileNotFoundError(f"Video not found: {self.video_path}")

        self.cap = cv2.VideoCapture(str(self.video_path))

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open video: {self.video_path}")

        self.fps = self.cap.get(cv2.CAP_PROP_FPS)
        self.frame_count = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self.width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.duration = self.frame_count / self.fps if self.fps > 0 else 0

        logger.info(
            f"Opened video: {self.duration:.1f}s, {self.fps:.2f} FPS, "
            f"{self.frame_count} frames, {self.width}x{self.height}"
        )

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - cleanup resources."""
        self.release()

    def release(self):
        """Release video capture resources."""
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def _convert(self, frame: np.ndarray) -> np.ndarray:
        if self.color_mode == 'RGB':
            return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        return frame

    def iter_frames(
        self,
        start_frame: int = 0,
        end_frame: int = None
    ) -> Generator[Tuple[int, np.ndarray], None, None]:
        """
        Iterator over video frames.

        Args:
            start_frame: Starting frame index
            end_frame: Ending frame index, exclusive (None = end of video)

        Yields:
            Tuple of (frame_index, frame_array)
        """
        if end_frame is None:
            end_frame = self.frame_count

        self.cap.set(cv2.CAP_PROP_POS_FRAMES, start_frame)

        current_frame = start_frame
        while current_frame < end_frame:
            ret, frame = self.cap.read()

            if not ret:
                logger.warning(f"Failed to read frame {current_frame}, stopping iteration")
                break

            yield current_frame, self._convert(frame)
            current_frame += 1

    def read_frames(self, start_frame: int, end_frame: int) -> np.ndarray:
        """
        Read a contiguous block of frames.

        Args:
            start_frame: Start frame index (0-based)
            end_frame: End frame index (inclusive)

        Returns:
            Array of shape (n_frames, H, W, 3)

        Raises:
            ValueError: If the range lies outside the video
            RuntimeError: If decoding stops before end_frame
        """
        if start_frame < 0 or end_frame >= self.frame_count or end_frame < start_frame:
            raise ValueError(
                f"Frame range [{start_frame}, {end_frame}] outside video "
                f"with {self.frame_count} frames"
            )

        frames = [frame for _, frame in self.iter_frames(start_frame, end_frame + 1)]
        expected = end_frame - start_frame + 1
        if len(frames) != expected:
            raise RuntimeError(
                f"Decoded {len(frames)} of {expected} frames from {self.video_path}"
            )

        logger.debug(f"Extracted {len(frames)} frames from segment [{start_frame}, {end_frame}]")

        return np.stack(frames)
