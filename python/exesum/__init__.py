"""
exesum: Check, clear or set the checksum of a PE (EXE/DLL) image.

The checksum lives in OptionalHeader.CheckSum. Most images ship with it
zeroed, but drivers and some boot-critical images must carry the correct
value or the Windows loader refuses them.

    from exesum import check, set_checksum

    pair = check(path)
    if not pair.is_valid:
        set_checksum(path)

For lower-level access (in-memory images, the raw algorithm), use the
subpackage directly:

    from exesum.pe import calculate_pe_checksum, write_checksum_to
"""

__version__ = "0.2.0"

from .operations import check, clear, set_checksum
from .pe import (
    ChecksumPair,
    ChecksumLocation,
    MalformedHeaderError,
    ChecksumIOError,
    compute_checksum,
    compute_file_checksum,
    write_checksum,
)

__all__ = [
    "__version__",
    # Operations
    "check",
    "clear",
    "set_checksum",
    # Calculator and patcher
    "ChecksumPair",
    "ChecksumLocation",
    "compute_checksum",
    "compute_file_checksum",
    "write_checksum",
    # Errors
    "MalformedHeaderError",
    "ChecksumIOError",
]
