"""
Checksum operations exposed by the exesum tool.

Each operation composes the calculator and the patcher:
- check: calculate only; the file is not modified
- clear: write 0
- set_checksum: calculate then write, or write a caller-supplied value as is
"""

import logging
from pathlib import Path

from .pe import ChecksumPair, compute_file_checksum, write_checksum

logger = logging.getLogger(__name__)


def check(path: Path) -> ChecksumPair:
    """Report the stored and calculated checksum of a PE file."""
    pair = compute_file_checksum(path)
    logger.debug(
        "%s: header=0x%X calculated=0x%X (%s)",
        path,
        pair.header_sum,
        pair.computed_sum,
        "valid" if pair.is_valid else "mismatch",
    )
    return pair


def clear(path: Path) -> None:
    """Zero the checksum field of a PE file."""
    write_checksum(path, 0)


def set_checksum(path: Path, value: int | None = None) -> int:
    """Set the checksum field of a PE file.

    Args:
        path: Path to PE binary, modified in place
        value: Value to store. If None, the checksum of the current file
            content is calculated and stored, making the header valid.

    Returns:
        The value that was written
    """
    if value is None:
        value = check(path).computed_sum
    write_checksum(path, value)
    return value
