"""
Unit tests for the velocity pipeline.

Tests cover:
- Gap interpolation and extrapolation
- Speed computation and NaN-skipping means
- Annotation file loading (current and legacy MATLAB layouts)
- File discovery and reordering
- Batch aggregation and flattening order
"""

import pytest # pyright: ignore[reportMissingImports]
import numpy as np
from pathlib import Path
from scipy.io import savemat

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from annotation.point_store import PointStore
from velocity_pipeline.discovery import discover_files
from velocity_pipeline.interpolation import interpolate_axis, interpolate_positions
from velocity_pipeline.trajectory_loader import MissingVariableError, load_trajectory
from velocity_pipeline.velocity import (
    compute_delay_velocity,
    compute_speed,
    mean_velocity,
    save_velocity_csv,
    segment_mean_velocities
)

nan = np.nan


class TestInterpolation:
    """Test per-axis gap filling."""

    def test_fills_interior_gaps(self):
        """Interior gaps are filled linearly."""
        filled = interpolate_axis(np.array([0.0, nan, nan, 3.0]))
        np.testing.assert_allclose(filled, [0.0, 1.0, 2.0, 3.0])

    def test_extrapolates_edges(self):
        """Leading and trailing gaps are extrapolated."""
        filled = interpolate_axis(np.array([nan, 1.0, nan, 3.0, nan]))
        np.testing.assert_allclose(filled, [0.0, 1.0, 2.0, 3.0, 4.0])

    def test_defined_values_preserved(self):
        """Originally defined entries come back unchanged."""
        values = np.array([0.1, nan, 7.3, nan, nan, -2.2, 4.4])
        filled = interpolate_axis(values)
        valid = ~np.isnan(values)

        assert not np.isnan(filled).any()
        assert np.array_equal(filled[valid], values[valid])

    def test_single_point_gives_all_nan(self):
        """Fewer than two defined points leaves the axis undefined."""
        assert np.isnan(interpolate_axis(np.array([nan, 5.0, nan]))).all()
        assert np.isnan(interpolate_axis(np.array([nan, nan]))).all()

    def test_axes_independent(self):
        """Each axis is filled from its own defined values."""
        positions = np.array([
            [0.0, nan],
            [nan, 10.0],
            [2.0, nan],
        ])
        filled = interpolate_positions(positions)

        np.testing.assert_allclose(filled[:, 0], [0.0, 1.0, 2.0])
        assert np.isnan(filled[:, 1]).all()


class TestVelocity:
    """Test speed and mean computations."""

    def test_speed_pythagorean(self):
        """Speed between (0,0) and (3,4) is 5."""
        speeds = compute_speed(np.array([[0.0, 0.0], [3.0, 4.0]]))
        assert speeds.shape == (1,)
        assert speeds[0] == 5.0

    def test_speed_length(self):
        """N positions give N-1 speeds."""
        positions = np.zeros((10, 2))
        assert len(compute_speed(positions)) == 9

    def test_mean_skips_nan(self):
        """Mean ignores undefined entries."""
        assert mean_velocity(np.array([1.0, 2.0, nan, 3.0])) == 2.0

    def test_mean_all_nan(self):
        """All-undefined series has undefined mean."""
        assert np.isnan(mean_velocity(np.array([nan, nan])))

    def test_segment_means_with_gaps(self):
        """Gaps are interpolated before speeds are averaged."""
        positions = [
            np.array([[0.0, 0.0], [nan, nan], [2.0, 0.0], [nan, nan]]),
            np.array([[1.0, 1.0], [nan, nan], [nan, nan], [nan, nan]]),
        ]
        means = segment_mean_velocities(positions)

        assert means[0] == pytest.approx(1.0)
        assert np.isnan(means[1])


class TestTrajectoryLoader:
    """Test loading of annotation files."""

    def test_point_store_roundtrip(self, tmp_path):
        """Files written by PointStore load back per segment."""
        points = [np.full((4, 2), nan) for _ in range(5)]
        points[0][1] = [10.0, 20.0]
        points[4][3] = [1.5, 2.5]
        path = PointStore.from_points(points).save(tmp_path / 'a._headpoint.mat')

        loaded = load_trajectory(path)

        assert len(loaded) == 5
        np.testing.assert_array_equal(loaded[0][1], [10.0, 20.0])
        np.testing.assert_array_equal(loaded[4][3], [1.5, 2.5])
        assert np.isnan(loaded[2]).all()

    def test_unequal_segment_lengths(self, tmp_path):
        """Padding of shorter segments is stripped on load."""
        points = [np.zeros((n, 2)) for n in (3, 4, 3)]
        path = PointStore.from_points(points).save(tmp_path / 'b._headpoint.mat')

        loaded = load_trajectory(path, n_segments=3)

        assert [len(s) for s in loaded] == [3, 4, 3]

    def test_legacy_cell_array(self, tmp_path):
        """MATLAB cell arrays of optional [x y] vectors are accepted."""
        cells = np.empty((5, 4), dtype=object)
        for seg in range(5):
            for frame in range(4):
                cells[seg, frame] = np.zeros((0, 0))
        cells[0, 0] = np.array([[0.0, 0.0]])
        cells[0, 1] = np.array([[3.0, 4.0]])
        cells[1, 2] = np.array([[7.0, 8.0]])

        path = tmp_path / 'legacy._headpoint.mat'
        savemat(str(path), {'globalPointPositions': cells})

        loaded = load_trajectory(path)

        np.testing.assert_array_equal(loaded[0][1], [3.0, 4.0])
        assert np.isnan(loaded[0][2]).all()
        np.testing.assert_array_equal(loaded[1][2], [7.0, 8.0])

    def test_missing_variable(self, tmp_path):
        """Files without a point table are rejected."""
        path = tmp_path / 'empty.mat'
        savemat(str(path), {'something_else': np.zeros(3)})

        with pytest.raises(MissingVariableError, match='empty.mat'):
            load_trajectory(path)

    def test_missing_file(self, tmp_path):
        """Nonexistent files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_trajectory(tmp_path / 'nope.mat')

    def test_too_few_segments(self, tmp_path):
        """Tables with fewer segments than requested are rejected."""
        path = PointStore([3, 3]).save(tmp_path / 'short.mat')

        with pytest.raises(ValueError):
            load_trajectory(path, n_segments=5)


class TestDiscovery:
    """Test file enumeration and ordering."""

    def _touch(self, directory, names):
        for name in names:
            (directory / name).write_bytes(b'')

    def test_sorted_by_name(self, tmp_path):
        """Without an order, files come back sorted."""
        self._touch(tmp_path, ['L03tt2._headpoint.mat', 'L01tt2._headpoint.mat', 'other.mat'])

        files = discover_files(tmp_path)

        assert [f.name for f in files] == ['L01tt2._headpoint.mat', 'L03tt2._headpoint.mat']

    def test_reorder(self, tmp_path):
        """Order moves the listed sorted indices to the front."""
        self._touch(tmp_path, [f'L0{i}tt2._headpoint.mat' for i in range(4)])

        files = discover_files(tmp_path, order=[2, 3, 0, 1])

        assert [f.name[:3] for f in files] == ['L02', 'L03', 'L00', 'L01']

    def test_invalid_order(self, tmp_path):
        """An order that does not cover every file is rejected."""
        self._touch(tmp_path, [f'L0{i}tt2._headpoint.mat' for i in range(3)])

        with pytest.raises(ValueError):
            discover_files(tmp_path, order=[0, 1])

    def test_no_matches(self, tmp_path):
        """Empty directories raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            discover_files(tmp_path)


class TestDelayVelocity:
    """Test batch aggregation."""

    def _write(self, path, speed):
        # head moves `speed` px per frame along x in every segment
        points = [np.column_stack([np.arange(6) * speed, np.zeros(6)]) for _ in range(5)]
        points[2][1:4] = nan
        return PointStore.from_points(points).save(path)

    def test_matrix_and_flattening(self, tmp_path):
        """Columns follow file order, flattening is segment-fastest."""
        files = [
            self._write(tmp_path / 'a.mat', 1.0),
            self._write(tmp_path / 'b.mat', 2.0),
        ]

        result = compute_delay_velocity(files)

        assert result.delay_velocity.shape == (5, 2)
        np.testing.assert_allclose(result.delay_velocity[:, 0], 1.0)
        np.testing.assert_allclose(result.delay_velocity[:, 1], 2.0)
        np.testing.assert_allclose(result.flattened, [1.0] * 5 + [2.0] * 5)
        assert result.file_names == ['a.mat', 'b.mat']

    def test_undefined_segment_propagates(self, tmp_path):
        """Segments with fewer than two points yield NaN means."""
        points = [np.zeros((5, 2)) for _ in range(5)]
        points[3][:] = nan
        points[3][0] = [1.0, 1.0]
        path = PointStore.from_points(points).save(tmp_path / 'c.mat')

        result = compute_delay_velocity([path])

        assert np.isnan(result.delay_velocity[3, 0])
        assert result.delay_velocity[0, 0] == 0.0

    def test_save_csv(self, tmp_path):
        """CSV holds one row per (file, segment)."""
        files = [self._write(tmp_path / 'a.mat', 1.0)]
        result = compute_delay_velocity(files)

        out = save_velocity_csv(result, tmp_path / 'out' / 'velocity.csv')
        lines = out.read_text().strip().splitlines()

        assert lines[0] == 'file,segment,mean_velocity'
        assert len(lines) == 6


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
