#!/usr/bin/env python3
"""
Main orchestration script for Headpoint Scope.

Two independent tools share this entry point:

velocity  - batch: load annotated head points of every trial file, fill
            tracking gaps, compute frame-to-frame velocity and report the
            mean velocity per segment (flattened file-major)
annotate  - interactive: find the cue tones in a trial video's soundtrack,
            extract the delay window after the first cues, and click the
            head position on every frame not confidently tracked by
            DeepLabCut; points are saved when the window is closed

Usage:
    python main.py velocity --input-dir data/annotations --output velocity.csv
    python main.py annotate --video data/L12tt2.avi --audio-dir data/audio

Engineering approach:
- Named experiment constants in YAML (configs/experiment.yaml)
- Fatal errors abort the run with a logged traceback, no retries
- Comprehensive logging
"""

import argparse
import logging
from pathlib import Path
import sys
from typing import Dict, Optional, Sequence

import numpy as np

from annotation import AnnotationSession, Event, PointStore
from cue_pipeline import (
    calculate_center_data,
    compute_envelope,
    detect_cue_onsets,
    extract_segments,
    load_dlc_csv
)
from utils.audio_io import check_audio_coverage, load_audio
from utils.config_loader import get_nested_config, load_config
from utils.video_io import VideoReader
from velocity_pipeline import (
    compute_delay_velocity,
    discover_files,
    save_velocity_csv
)
from visualization import plot_cue_envelope, plot_segment_velocities

logger = logging.getLogger(__name__)


def setup_logging(log_file: str = 'headpoint_scope.log'):
    """Configure logging to file and stdout."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )


def run_velocity(
    input_dir: str,
    config: Dict,
    output_csv: Optional[str] = None,
    plot_path: Optional[str] = None,
    reorder: bool = True
) -> np.ndarray:
    """
    Compute the flattened per-segment mean velocity of all trial files.

    Args:
        input_dir: Directory holding the annotation files
        config: Configuration dictionary
        output_csv: Optional CSV path for the (file, segment) table
        plot_path: Optional PNG path for the summary plot
        reorder: Apply the configured file order

    Returns:
        Flattened velocity vector (segments vary fastest)
    """
    logger.info("=" * 80)
    logger.info("HEADPOINT SCOPE - Velocity aggregation")
    logger.info("=" * 80)

    files = discover_files(
        input_dir,
        pattern=get_nested_config(config, 'velocity.pattern'),
        order=get_nested_config(config, 'velocity.file_order') if reorder else None
    )

    result = compute_delay_velocity(
        files,
        n_segments=get_nested_config(config, 'velocity.n_segments', default=5)
    )

    if output_csv:
        save_velocity_csv(result, output_csv)
    if plot_path:
        plot_segment_velocities(result, plot_path)

    return result.flattened


def resolve_annotation_paths(video_path: Path, config: Dict, args) -> Dict[str, Path]:
    """Derive audio, tracking and output paths from the video name."""
    stem = video_path.stem

    if args.audio:
        audio_path = Path(args.audio)
    else:
        audio_dir = args.audio_dir or get_nested_config(config, 'paths.audio_dir') or video_path.parent
        audio_path = Path(audio_dir) / f"{stem}{get_nested_config(config, 'paths.audio_extension')}"

    if args.tracking:
        tracking_path = Path(args.tracking)
    else:
        tracking_path = video_path.parent / f"{stem}{get_nested_config(config, 'paths.dlc_suffix')}"

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = Path(f"{stem}{get_nested_config(config, 'paths.output_suffix')}")

    return {'audio': audio_path, 'tracking': tracking_path, 'output': output_path}


def run_annotation(
    video_path: str,
    audio_path: str,
    tracking_path: str,
    output_path: str,
    config: Dict,
    cue_plot_path: Optional[str] = None
) -> Path:
    """
    Detect cues, extract trial segments and run the annotation window.

    Args:
        video_path: Trial video
        audio_path: Soundtrack of the trial video
        tracking_path: DeepLabCut CSV of the trial video
        output_path: Destination .mat file for the head points
        config: Configuration dictionary
        cue_plot_path: Optional PNG path for the envelope / cue plot

    Returns:
        Path of the saved point file
    """
    logger.info("=" * 80)
    logger.info("HEADPOINT SCOPE - Cue-aligned head-point annotation")
    logger.info("=" * 80)

    audio_data, sr = load_audio(audio_path)
    tracking = load_dlc_csv(tracking_path)
    centers = calculate_center_data(
        tracking,
        confidence_threshold=get_nested_config(config, 'tracking.confidence_threshold'),
        bodyparts=get_nested_config(config, 'tracking.bodyparts')
    )

    with VideoReader(video_path) as reader:
        check_audio_coverage(audio_path, reader.duration)

        threshold = get_nested_config(config, 'cue.threshold')
        cue_frames = detect_cue_onsets(
            audio_data,
            sr,
            reader.fps,
            threshold=threshold,
            min_gap_frames=get_nested_config(config, 'cue.min_gap_frames'),
            lookahead=get_nested_config(config, 'cue.lookahead'),
            expected_count=get_nested_config(config, 'cue.expected_count')
        )
        logger.info(f"Cue onset frames: {cue_frames.tolist()}")

        if cue_plot_path:
            plot_cue_envelope(
                compute_envelope(audio_data), sr, cue_frames, reader.fps,
                threshold, cue_plot_path
            )

        segments = extract_segments(
            reader,
            centers,
            cue_frames,
            n_segments=get_nested_config(config, 'extraction.n_segments'),
            offset_sec=get_nested_config(config, 'extraction.offset_sec'),
            duration_sec=get_nested_config(config, 'extraction.duration_sec')
        )

    return run_session(
        [seg.centers for seg in segments],
        [seg.frames for seg in segments],
        output_path
    )


def run_session(
    center_blocks: Sequence[np.ndarray],
    frame_blocks: Sequence[np.ndarray],
    output_path: str
) -> Path:
    """
    Run the annotation window and save the points once it has closed.

    Saving happens after show() returns rather than inside the window's
    close callback, so write errors propagate to the caller.

    Args:
        center_blocks: Per segment, seeded (n_frames, 2) head points
        frame_blocks: Per segment, frames of shape (n_frames, H, W, 3)
        output_path: Destination .mat file for the head points

    Returns:
        Path of the saved point file
    """
    # Imported here so the batch tool runs without a display
    import matplotlib.pyplot as plt
    from annotation.viewer import FrameViewer

    session = AnnotationSession(center_blocks)
    viewer = FrameViewer(session, frame_blocks)
    try:
        viewer.show()
    finally:
        plt.close(viewer.fig)

    # non-interactive backends return from show() without a close event
    if not session.closed:
        session.dispatch(Event.close())

    return PointStore.from_points(session.state.points).save(output_path)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Headpoint Scope - head-point annotation and velocity analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mean velocity per segment of all annotated trials
  python main.py velocity --input-dir annotations/ --output velocity.csv

  # Annotate one trial video
  python main.py annotate --video L12tt2.avi --audio-dir audio/
        """
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration YAML file (default: built-in values)'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    velocity_parser = subparsers.add_parser('velocity', help='Aggregate head-point velocity')
    velocity_parser.add_argument('--input-dir', type=str, default='.',
                                 help='Directory with annotation files (default: .)')
    velocity_parser.add_argument('--output', type=str, default=None,
                                 help='CSV file for the (file, segment) velocity table')
    velocity_parser.add_argument('--plot', type=str, default=None,
                                 help='PNG file for the velocity summary plot')
    velocity_parser.add_argument('--no-reorder', action='store_true',
                                 help='Keep files in name order')

    annotate_parser = subparsers.add_parser('annotate', help='Annotate head points')
    annotate_parser.add_argument('--video', type=str, required=True,
                                 help='Path to trial video')
    annotate_parser.add_argument('--audio', type=str, default=None,
                                 help='Path to trial audio (default: derived from video name)')
    annotate_parser.add_argument('--audio-dir', type=str, default=None,
                                 help='Directory with trial audio files')
    annotate_parser.add_argument('--tracking', type=str, default=None,
                                 help='DeepLabCut CSV (default: derived from video name)')
    annotate_parser.add_argument('--output', type=str, default=None,
                                 help='Output .mat file (default: <video stem>._headpoint.mat)')
    annotate_parser.add_argument('--cue-plot', type=str, default=None,
                                 help='PNG file for the envelope / cue onset plot')

    args = parser.parse_args()
    setup_logging()

    try:
        config = load_config(args.config)

        if args.command == 'velocity':
            velocity = run_velocity(
                args.input_dir,
                config,
                output_csv=args.output,
                plot_path=args.plot,
                reorder=not args.no_reorder
            )
            print("Reshaped Velocity Vector:")
            for value in velocity:
                print(f"{value:.4f}")

        else:
            video_path = Path(args.video)
            if not video_path.exists():
                logger.error(f"Video file not found: {video_path}")
                sys.exit(1)

            paths = resolve_annotation_paths(video_path, config, args)
            result = run_annotation(
                str(video_path),
                str(paths['audio']),
                str(paths['tracking']),
                str(paths['output']),
                config,
                cue_plot_path=args.cue_plot
            )
            logger.info(f"✓ Head points saved: {result}")

        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("\nInterrupted by user")
        sys.exit(1)

    except Exception as e:
        logger.error(f"\n✗ ERROR: {args.command} failed with exception:")
        logger.error(f"  {type(e).__name__}: {str(e)}")
        logger.exception("Full traceback:")
        sys.exit(1)


if __name__ == '__main__':
    main()
