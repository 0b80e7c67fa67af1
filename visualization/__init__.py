"""
Visualization module.

Static figures for checking a run at a glance:
- Mean head velocity per segment across trial files
- Audio envelope with threshold and detected cue onsets
"""

from .velocity_plots import (
    plot_cue_envelope,
    plot_segment_velocities
)

__all__ = [
    'plot_cue_envelope',
    'plot_segment_velocities',
]
