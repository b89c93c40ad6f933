"""
PE image checksum calculation.

This is the algorithm implemented by imagehlp's CheckSumMappedFile and
validated by the Windows loader for drivers and boot-critical images:

1. Sum the file as little-endian 16-bit words, folding the carry back into
   the low 16 bits after every addition (a one's complement sum). A trailing
   odd byte is summed as a word with a zero high byte.
2. The 4 bytes of OptionalHeader.CheckSum are summed as zero.
3. Fold once more, then add the file length in bytes.

Summing many words and folding the total is equivalent to folding after each
word, so words are summed in large chunks via struct rather than one at a time.
"""

import struct
from dataclasses import dataclass
from pathlib import Path

from .types import (
    CHECKSUM_FIELD_SIZE,
    U32_MAX,
    ChecksumLocation,
    read_u32,
)

# Words summed per struct.unpack_from call
_CHUNK_WORDS = 0x8000


@dataclass
class ChecksumPair:
    """Stored and freshly calculated checksum of a PE image."""

    header_sum: int  # Value currently in OptionalHeader.CheckSum
    computed_sum: int  # Value derived from the file content

    @property
    def is_valid(self) -> bool:
        """Check if the stored checksum matches the file content."""
        return self.header_sum == self.computed_sum


def fold_carry(value: int) -> int:
    """Fold everything above the low 16 bits back into a 16-bit sum."""
    while value > 0xFFFF:
        value = (value & 0xFFFF) + (value >> 16)
    return value


def _sum_words(data: memoryview) -> int:
    """Unfolded sum of the little-endian words in an even-length view."""
    total = 0
    num_words = len(data) // 2
    offset = 0
    while num_words:
        count = min(num_words, _CHUNK_WORDS)
        total += sum(struct.unpack_from(f"<{count}H", data, offset))
        offset += count * 2
        num_words -= count
    return total


def calculate_pe_checksum(
    data: bytes | bytearray | memoryview, checksum_offset: int
) -> int:
    """Calculate the PE checksum of an image.

    Args:
        data: Complete file contents
        checksum_offset: File offset of OptionalHeader.CheckSum, whose bytes
            are treated as zero

    Returns:
        The 32-bit checksum the header should contain
    """
    view = memoryview(data).cast("B")
    length = len(view)
    checksum_end = checksum_offset + CHECKSUM_FIELD_SIZE

    # The checksum field is word aligned in any sane image, but an odd
    # e_lfanew moves it off the word grid; zeroing a copy of the two words
    # it touches keeps the word boundaries intact either way.
    span_start = checksum_offset & ~1
    span_end = min(length, (checksum_end + 1) & ~1)
    span = bytearray(view[span_start:span_end])
    span[checksum_offset - span_start : checksum_end - span_start] = bytes(
        CHECKSUM_FIELD_SIZE
    )

    total = _sum_words(view[:span_start])
    total += _sum_words(memoryview(span)[: len(span) & ~1])

    tail_start = span_end
    tail_even_end = tail_start + ((length - tail_start) & ~1)
    total += _sum_words(view[tail_start:tail_even_end])

    # Trailing odd byte
    if length & 1:
        if span_end == length:
            total += span[-1]
        else:
            total += view[-1]

    return (fold_carry(total) + length) & U32_MAX


def compute_checksum(data: bytes | bytearray | memoryview) -> ChecksumPair:
    """Compute the stored and calculated checksum of an in-memory PE image.

    Raises:
        MalformedHeaderError: If the checksum field cannot be located
    """
    location = ChecksumLocation.from_bytes(data)
    return ChecksumPair(
        header_sum=read_u32(data, location.checksum_offset),
        computed_sum=calculate_pe_checksum(data, location.checksum_offset),
    )


def compute_file_checksum(path: Path) -> ChecksumPair:
    """Compute the stored and calculated checksum of a PE file on disk.

    Args:
        path: Path to PE binary

    Returns:
        ChecksumPair for the file's current content

    Raises:
        MalformedHeaderError: If the checksum field cannot be located
        OSError: If the file cannot be read
    """
    return compute_checksum(Path(path).read_bytes())
