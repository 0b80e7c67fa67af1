"""
Unit tests for shared utilities.

Tests cover:
- Configuration defaults, YAML overrides and nested lookups
- Audio loading (channel layout, native sample rate)
- Video frame-block reading
- Summary plot output
"""

import pytest # pyright: ignore[reportMissingImports]
import numpy as np
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config_loader import DEFAULT_CONFIG, get_nested_config, load_config

REPO_ROOT = Path(__file__).parent.parent


class TestConfig:
    """Test configuration loading."""

    def test_defaults(self):
        """No path returns the built-in experiment constants."""
        config = load_config()
        assert config['cue']['threshold'] == 0.02
        assert config['cue']['expected_count'] == 7
        assert config['extraction']['offset_sec'] == 30.0
        assert config['tracking']['confidence_threshold'] == 0.8

    def test_defaults_not_shared(self):
        """Returned configs are independent copies."""
        config = load_config()
        config['cue']['threshold'] = 1.0
        assert DEFAULT_CONFIG['cue']['threshold'] == 0.02

    def test_yaml_override(self, tmp_path):
        """YAML values override defaults, other keys are kept."""
        path = tmp_path / 'custom.yaml'
        path.write_text("cue:\n  expected_count: 6\n")

        config = load_config(path)

        assert config['cue']['expected_count'] == 6
        assert config['cue']['min_gap_frames'] == 20

    def test_shipped_config_matches_defaults(self):
        """configs/experiment.yaml reproduces the built-in values."""
        config = load_config(REPO_ROOT / 'configs' / 'experiment.yaml')
        assert config == DEFAULT_CONFIG

    def test_missing_file(self, tmp_path):
        """Nonexistent config files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / 'missing.yaml')

    def test_nested_lookup(self):
        """Dot paths resolve nested keys, with a default fallback."""
        config = load_config()
        assert get_nested_config(config, 'extraction.n_segments') == 5
        assert get_nested_config(config, 'extraction.missing', default=3) == 3


class TestAudioIO:
    """Test audio loading."""

    def test_stereo_layout(self, tmp_path):
        """Audio comes back as (n_samples, n_channels) at native rate."""
        import soundfile as sf
        from utils.audio_io import get_audio_duration, load_audio

        data = np.zeros((8000, 2), dtype=np.float32)
        data[:, 0] = 0.25
        path = tmp_path / 'trial.wav'
        sf.write(str(path), data, 8000)

        audio, sr = load_audio(path)

        assert sr == 8000
        assert audio.shape == (8000, 2)
        assert audio[:, 0].mean() == pytest.approx(0.25, abs=1e-3)
        assert get_audio_duration(path) == pytest.approx(1.0)

    def test_mono_layout(self, tmp_path):
        """Mono audio gets a single channel column."""
        import soundfile as sf
        from utils.audio_io import load_audio

        path = tmp_path / 'mono.wav'
        sf.write(str(path), np.zeros(4000, dtype=np.float32), 4000)

        audio, _ = load_audio(path)

        assert audio.shape == (4000, 1)

    def test_missing_file(self, tmp_path):
        """Nonexistent audio raises FileNotFoundError."""
        from utils.audio_io import load_audio

        with pytest.raises(FileNotFoundError):
            load_audio(tmp_path / 'missing.mp3')

    def test_audio_covers_video(self, tmp_path):
        """Audio as long as the video, or short within tolerance, passes."""
        import soundfile as sf
        from utils.audio_io import check_audio_coverage

        path = tmp_path / 'trial.wav'
        sf.write(str(path), np.zeros(4000, dtype=np.float32), 1000)

        assert check_audio_coverage(path, video_duration=4.0)
        assert check_audio_coverage(path, video_duration=4.5, tolerance_sec=1.0)

    def test_short_audio_warns(self, tmp_path, caplog):
        """Audio ending well before the video is reported."""
        import logging
        import soundfile as sf
        from utils.audio_io import check_audio_coverage

        path = tmp_path / 'trial.wav'
        sf.write(str(path), np.zeros(2000, dtype=np.float32), 1000)

        with caplog.at_level(logging.WARNING, logger='utils.audio_io'):
            covered = check_audio_coverage(path, video_duration=10.0)

        assert not covered
        assert 'shorter than video' in caplog.text


class TestVideoIO:
    """Test frame-block reading."""

    def _write_video(self, path, n_frames=10, fps=15.0):
        import cv2

        writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*'MJPG'), fps, (32, 24))
        for i in range(n_frames):
            writer.write(np.full((24, 32, 3), i * 20, dtype=np.uint8))
        writer.release()

    def test_read_block(self, tmp_path):
        """A frame range is returned as one inclusive block."""
        from utils.video_io import VideoReader

        path = tmp_path / 'trial.avi'
        self._write_video(path)

        with VideoReader(path) as reader:
            assert reader.fps == pytest.approx(15.0)
            assert reader.frame_count == 10
            block = reader.read_frames(2, 5)

        assert block.shape == (4, 24, 32, 3)

    def test_out_of_range(self, tmp_path):
        """Ranges past the last frame are rejected."""
        from utils.video_io import VideoReader

        path = tmp_path / 'trial.avi'
        self._write_video(path)

        with VideoReader(path) as reader:
            with pytest.raises(ValueError):
                reader.read_frames(5, 10)

    def test_missing_file(self, tmp_path):
        """Nonexistent video raises FileNotFoundError."""
        from utils.video_io import VideoReader

        with pytest.raises(FileNotFoundError):
            VideoReader(tmp_path / 'missing.avi')


class TestPlots:
    """Test summary figure output."""

    def test_velocity_plot(self, tmp_path):
        """The velocity summary is written as PNG, NaN cells tolerated."""
        from velocity_pipeline.velocity import VelocityResult
        from visualization.velocity_plots import plot_segment_velocities

        matrix = np.array([[1.0, 2.0], [np.nan, 1.5], [np.nan, np.nan]])
        result = VelocityResult(delay_velocity=matrix, file_names=['a.mat', 'b.mat'])

        out = plot_segment_velocities(result, str(tmp_path / 'velocity.png'))

        assert Path(out).exists()

    def test_cue_plot(self, tmp_path):
        """The envelope plot is written as PNG."""
        from visualization.velocity_plots import plot_cue_envelope

        envelope = np.abs(np.sin(np.linspace(0, 20, 5000)))
        out = plot_cue_envelope(
            envelope, 1000, np.array([10, 40]), 15.0, 0.02,
            str(tmp_path / 'cues.png'), max_points=1000
        )

        assert Path(out).exists()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
