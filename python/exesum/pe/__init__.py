"""
PE image checksum package for exesum.

This package provides the two halves of checksum maintenance:
- types: Header layout constants and checksum field location
- checksum: The PE checksum algorithm
- patcher: In-place rewriting of OptionalHeader.CheckSum
- errors: Exceptions raised for malformed headers and short I/O
"""

from .errors import MalformedHeaderError, ChecksumIOError
from .checksum import (
    ChecksumPair,
    calculate_pe_checksum,
    compute_checksum,
    compute_file_checksum,
    fold_carry,
)
from .patcher import (
    locate_checksum,
    read_checksum,
    write_checksum,
    write_checksum_to,
)
from .types import (
    ChecksumLocation,
    # Constants
    DOS_MAGIC,
    DOS_HEADER_SIZE,
    E_LFANEW_OFFSET,
    PE_SIGNATURE,
    COFF_HEADER_SIZE,
    IMAGE_NT_OPTIONAL_HDR32_MAGIC,
    IMAGE_NT_OPTIONAL_HDR64_MAGIC,
    OPTIONAL_HEADER_CHECKSUM_OFFSET,
    NT_OPTIONAL_HEADER_OFFSET,
    NT_HEADER_PROLOGUE_SIZE,
    CHECKSUM_FIELD_SIZE,
    MAX_E_LFANEW,
    U32_MAX,
    # Helpers
    read_u16,
    read_u32,
    read_i32,
    encode_u32,
)

__all__ = [
    # Errors
    "MalformedHeaderError",
    "ChecksumIOError",
    # Checksum calculation
    "ChecksumPair",
    "calculate_pe_checksum",
    "compute_checksum",
    "compute_file_checksum",
    "fold_carry",
    # Patching
    "locate_checksum",
    "read_checksum",
    "write_checksum",
    "write_checksum_to",
    # Layout
    "ChecksumLocation",
    "DOS_MAGIC",
    "DOS_HEADER_SIZE",
    "E_LFANEW_OFFSET",
    "PE_SIGNATURE",
    "COFF_HEADER_SIZE",
    "IMAGE_NT_OPTIONAL_HDR32_MAGIC",
    "IMAGE_NT_OPTIONAL_HDR64_MAGIC",
    "OPTIONAL_HEADER_CHECKSUM_OFFSET",
    "NT_OPTIONAL_HEADER_OFFSET",
    "NT_HEADER_PROLOGUE_SIZE",
    "CHECKSUM_FIELD_SIZE",
    "MAX_E_LFANEW",
    "U32_MAX",
    "read_u16",
    "read_u32",
    "read_i32",
    "encode_u32",
]
