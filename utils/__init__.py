"""Shared utilities for the head-point analysis tools."""

from .audio_io import load_audio
from .config_loader import DEFAULT_CONFIG, get_nested_config, load_config
from .video_io import VideoReader

__all__ = [
    'DEFAULT_CONFIG',
    'VideoReader',
    'get_nested_config',
    'load_audio',
    'load_config',
]
