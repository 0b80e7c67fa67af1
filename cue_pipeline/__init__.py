"""
Cue-aligned segment extraction for head-point annotation.

This package prepares the material shown in the annotation window:
1. Cue onset detection from the soundtrack (fixed-threshold envelope)
2. Trial window planning relative to each cue onset
3. Frame-block extraction and alignment of DeepLabCut head centres
"""

from .center_computation import calculate_center_data, load_dlc_csv
from .cue_detection import (
    CueCountError,
    compute_envelope,
    detect_cue_onsets,
    filter_sustained,
    find_cluster_starts,
    find_loud_frames
)
from .segment_extractor import (
    VideoSegment,
    extract_segments,
    plan_segments,
    time_to_frame
)

__all__ = [
    'calculate_center_data',
    'load_dlc_csv',
    'CueCountError',
    'compute_envelope',
    'detect_cue_onsets',
    'filter_sustained',
    'find_cluster_starts',
    'find_loud_frames',
    'VideoSegment',
    'extract_segments',
    'plan_segments',
    'time_to_frame',
]
