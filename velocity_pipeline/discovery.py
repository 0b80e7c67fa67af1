"""Enumeration and ordering of annotation files for a batch run."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


def discover_files(
    directory: Path,
    pattern: str = 'L*tt2._headpoint.mat',
    order: Optional[Sequence[int]] = None
) -> List[Path]:
    """
    List annotation files matching a glob pattern, in analysis order.

    Files are sorted by name, then rearranged so that position ``k`` of
    the result holds the file at sorted index ``order[k]``.

    Args:
        directory: Directory to search
        pattern: Glob pattern for annotation files
        order: Permutation of range(n_files); None keeps name order

    Returns:
        Ordered list of file paths

    Raises:
        FileNotFoundError: If no file matches
        ValueError: If order is not a permutation of the matched files
    """
    directory = Path(directory)
    files = sorted(directory.glob(pattern))

    if not files:
        raise FileNotFoundError(f"No files matching '{pattern}' in {directory}")

    logger.info(f"Found {len(files)} files matching '{pattern}'")

    if order is None:
        return files

    order = list(order)
    if sorted(order) != list(range(len(files))):
        raise ValueError(
            f"File order {order} is not a permutation of {len(files)} files"
        )

    return [files[i] for i in order]
