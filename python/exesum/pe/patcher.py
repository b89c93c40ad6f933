"""
In-place patching of OptionalHeader.CheckSum.

write_checksum() touches exactly the 4 bytes of the checksum field and
nothing else. The file is opened unbuffered so the patch is issued as a
single write() system call; a short write is reported as an error instead
of being retried in pieces.
"""

import logging
import os
from pathlib import Path
from typing import BinaryIO

from .errors import ChecksumIOError
from .types import (
    CHECKSUM_FIELD_SIZE,
    DOS_HEADER_SIZE,
    NT_HEADER_PROLOGUE_SIZE,
    ChecksumLocation,
    encode_u32,
    read_u32,
)

logger = logging.getLogger(__name__)


def _read_exact(f: BinaryIO, offset: int, size: int, what: str) -> bytes:
    f.seek(offset)
    data = f.read(size)
    if data is None or len(data) != size:
        got = 0 if data is None else len(data)
        raise ChecksumIOError(
            f"Short read of {what} at {offset:#x}: got {got} of {size} bytes"
        )
    return data


def _locate(f: BinaryIO) -> ChecksumLocation:
    """Walk DOS header -> NT header on an open file to find the checksum."""
    file_size = os.fstat(f.fileno()).st_size
    # parse_e_lfanew reports files shorter than a DOS header as malformed
    dos_header = _read_exact(f, 0, min(DOS_HEADER_SIZE, file_size), "DOS header")
    e_lfanew = ChecksumLocation.parse_e_lfanew(dos_header, file_size)
    nt_header = _read_exact(f, e_lfanew, NT_HEADER_PROLOGUE_SIZE, "NT headers")
    return ChecksumLocation.from_header(e_lfanew, nt_header)


def locate_checksum(path: Path) -> ChecksumLocation:
    """Locate the checksum field of a PE file without reading the whole file.

    Raises:
        MalformedHeaderError: If the checksum field cannot be located
        OSError: If the file cannot be opened or read
    """
    with open(path, "rb", buffering=0) as f:
        return _locate(f)


def read_checksum(path: Path) -> int:
    """Read the checksum currently stored in a PE file's optional header.

    Raises:
        MalformedHeaderError: If the checksum field cannot be located
        OSError: If the file cannot be opened or read
    """
    with open(path, "rb", buffering=0) as f:
        location = _locate(f)
        raw = _read_exact(
            f, location.checksum_offset, CHECKSUM_FIELD_SIZE, "checksum field"
        )
    return read_u32(raw, 0)


def write_checksum(path: Path, value: int) -> ChecksumLocation:
    """Overwrite the checksum stored in a PE file.

    Args:
        path: Path to PE binary, modified in place
        value: New 32-bit checksum

    Returns:
        Location of the field that was written

    Raises:
        ValueError: If value does not fit in 32 bits
        MalformedHeaderError: If the checksum field cannot be located
        ChecksumIOError: If fewer than 4 bytes were written
        OSError: If the file cannot be opened, read or written
    """
    payload = encode_u32(value)

    with open(path, "r+b", buffering=0) as f:
        location = _locate(f)
        f.seek(location.checksum_offset)
        written = f.write(payload)
        if written != CHECKSUM_FIELD_SIZE:
            raise ChecksumIOError(
                f"Short write of checksum at {location.checksum_offset:#x}: "
                f"wrote {written or 0} of {CHECKSUM_FIELD_SIZE} bytes"
            )

    logger.debug(
        "Wrote checksum 0x%X at offset %#x of %s",
        value,
        location.checksum_offset,
        path,
    )
    return location


def write_checksum_to(data: bytearray, value: int) -> ChecksumLocation:
    """Overwrite the checksum of a PE image held in a mutable buffer.

    Args:
        data: Complete PE image, modified in place
        value: New 32-bit checksum

    Returns:
        Location of the field that was written
    """
    payload = encode_u32(value)
    location = ChecksumLocation.from_bytes(data)
    data[location.checksum_offset : location.checksum_end] = payload
    return location
