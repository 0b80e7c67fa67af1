"""
Velocity aggregation pipeline for annotated head points.

This package turns per-trial head-point annotation files into
per-segment mean speeds:
1. File discovery (glob + fixed reordering)
2. Trajectory loading (.mat point tables)
3. Gap interpolation (linear, with extrapolation)
4. Velocity computation and per-segment averaging
"""

from .discovery import discover_files
from .interpolation import interpolate_axis, interpolate_positions
from .trajectory_loader import MissingVariableError, load_trajectory
from .velocity import (
    VelocityResult,
    compute_delay_velocity,
    compute_speed,
    mean_velocity,
    save_velocity_csv,
    segment_mean_velocities
)

__all__ = [
    'discover_files',
    'interpolate_axis',
    'interpolate_positions',
    'MissingVariableError',
    'load_trajectory',
    'VelocityResult',
    'compute_delay_velocity',
    'compute_speed',
    'mean_velocity',
    'save_velocity_csv',
    'segment_mean_velocities',
]
