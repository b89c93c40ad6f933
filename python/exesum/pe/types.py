"""
PE header layout needed to locate the image checksum.

Only the handful of fields on the path from the start of the file to
OptionalHeader.CheckSum are described here. Rather than unpacking whole
header structs, fields are addressed by explicit byte offsets and decoded
with little-endian helpers, so the layout is visible at a glance:

    0x00          DOS header (64 bytes), e_magic at 0x00, e_lfanew at 0x3C
    e_lfanew      "PE\\0\\0" signature (4 bytes)
    e_lfanew+4    COFF file header (20 bytes)
    e_lfanew+24   Optional header; Magic at +0, CheckSum at +64

The CheckSum offset is the same for PE32 and PE32+ because the fields that
differ in width (BaseOfData/ImageBase) add up to 8 bytes in both layouts.

References:
- Microsoft PE/COFF Specification
- https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
"""

import logging
import struct
from dataclasses import dataclass

from .errors import MalformedHeaderError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# DOS Header
DOS_MAGIC = 0x5A4D  # "MZ" in little-endian
DOS_HEADER_SIZE = 64
E_LFANEW_OFFSET = 0x3C  # Offset in DOS header where e_lfanew lives

# PE Signature
PE_SIGNATURE = b"PE\x00\x00"
PE_SIGNATURE_SIZE = 4

# COFF file header (IMAGE_FILE_HEADER)
COFF_HEADER_SIZE = 20

# Optional header magic
IMAGE_NT_OPTIONAL_HDR32_MAGIC = 0x10B
IMAGE_NT_OPTIONAL_HDR64_MAGIC = 0x20B  # PE32+

# Field offsets relative to the start of the optional header
OPTIONAL_HEADER_MAGIC_OFFSET = 0
OPTIONAL_HEADER_CHECKSUM_OFFSET = 64
CHECKSUM_FIELD_SIZE = 4

# offsetof(IMAGE_NT_HEADERS, OptionalHeader)
NT_OPTIONAL_HEADER_OFFSET = PE_SIGNATURE_SIZE + COFF_HEADER_SIZE

# Bytes of NT header needed to reach the end of the checksum field
NT_HEADER_PROLOGUE_SIZE = (
    NT_OPTIONAL_HEADER_OFFSET + OPTIONAL_HEADER_CHECKSUM_OFFSET + CHECKSUM_FIELD_SIZE
)

# Upper bound for e_lfanew; anything larger is treated as garbage
MAX_E_LFANEW = 0x10000000

U32_MAX = 0xFFFFFFFF

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


# =============================================================================
# Little-endian helpers
# =============================================================================


def read_u16(data: bytes | bytearray | memoryview, offset: int) -> int:
    """Decode an unsigned 16-bit little-endian value at offset."""
    return _U16.unpack_from(data, offset)[0]


def read_u32(data: bytes | bytearray | memoryview, offset: int) -> int:
    """Decode an unsigned 32-bit little-endian value at offset."""
    return _U32.unpack_from(data, offset)[0]


def read_i32(data: bytes | bytearray | memoryview, offset: int) -> int:
    """Decode a signed 32-bit little-endian value at offset."""
    return _I32.unpack_from(data, offset)[0]


def encode_u32(value: int) -> bytes:
    """Encode value as 4 little-endian bytes.

    Raises:
        ValueError: If value does not fit in an unsigned 32-bit integer
    """
    if not 0 <= value <= U32_MAX:
        raise ValueError(f"Value out of range for a 32-bit checksum: {value:#x}")
    return _U32.pack(value)


# =============================================================================
# Checksum field location
# =============================================================================


@dataclass
class ChecksumLocation:
    """Where the CheckSum field lives in a particular PE file."""

    e_lfanew: int  # Offset to PE signature
    optional_header_offset: int
    checksum_offset: int  # Absolute file offset of OptionalHeader.CheckSum
    optional_magic: int  # 0x10B (PE32) or 0x20B (PE32+); other values tolerated

    @property
    def is_pe32_plus(self) -> bool:
        """Check if the optional header declares PE32+."""
        return self.optional_magic == IMAGE_NT_OPTIONAL_HDR64_MAGIC

    @property
    def checksum_end(self) -> int:
        """File offset just past the checksum field."""
        return self.checksum_offset + CHECKSUM_FIELD_SIZE

    @staticmethod
    def parse_e_lfanew(
        dos_header: bytes | bytearray | memoryview, file_size: int
    ) -> int:
        """Extract and bounds-check e_lfanew from the DOS header bytes.

        Args:
            dos_header: At least the first DOS_HEADER_SIZE bytes of the file
            file_size: Total size of the file in bytes

        Returns:
            The NT header offset

        Raises:
            MalformedHeaderError: If the DOS header is truncated or e_lfanew
                cannot possibly point at an NT header inside the file
        """
        if len(dos_header) < DOS_HEADER_SIZE:
            raise MalformedHeaderError(
                f"File too short for DOS header: {len(dos_header)} < {DOS_HEADER_SIZE}"
            )

        if read_u16(dos_header, 0) != DOS_MAGIC:
            logger.warning(
                "Missing MZ signature (found 0x%04X); locating checksum anyway",
                read_u16(dos_header, 0),
            )

        e_lfanew = read_i32(dos_header, E_LFANEW_OFFSET)
        if e_lfanew < 0 or e_lfanew > MAX_E_LFANEW:
            raise MalformedHeaderError(f"Implausible e_lfanew: {e_lfanew:#x}")

        checksum_end = e_lfanew + NT_HEADER_PROLOGUE_SIZE
        if checksum_end > file_size:
            raise MalformedHeaderError(
                f"Checksum field [{checksum_end - CHECKSUM_FIELD_SIZE:#x}, "
                f"{checksum_end:#x}) lies beyond end of file ({file_size:#x} bytes)"
            )
        return e_lfanew

    @classmethod
    def from_header(
        cls,
        e_lfanew: int,
        nt_header: bytes | bytearray | memoryview,
    ) -> "ChecksumLocation":
        """Build a location from a validated e_lfanew and the NT header prologue.

        Args:
            e_lfanew: Offset returned by parse_e_lfanew
            nt_header: At least NT_HEADER_PROLOGUE_SIZE bytes read at e_lfanew

        Raises:
            MalformedHeaderError: If the NT header prologue is truncated
        """
        if len(nt_header) < NT_HEADER_PROLOGUE_SIZE:
            raise MalformedHeaderError(
                f"Data too short for NT header: "
                f"{len(nt_header)} < {NT_HEADER_PROLOGUE_SIZE}"
            )

        signature = bytes(nt_header[:PE_SIGNATURE_SIZE])
        if signature != PE_SIGNATURE:
            logger.warning(
                "Missing PE signature at %#x (found %r); locating checksum anyway",
                e_lfanew,
                signature,
            )

        optional_header_offset = e_lfanew + NT_OPTIONAL_HEADER_OFFSET
        optional_magic = read_u16(
            nt_header, NT_OPTIONAL_HEADER_OFFSET + OPTIONAL_HEADER_MAGIC_OFFSET
        )
        location = cls(
            e_lfanew=e_lfanew,
            optional_header_offset=optional_header_offset,
            checksum_offset=optional_header_offset + OPTIONAL_HEADER_CHECKSUM_OFFSET,
            optional_magic=optional_magic,
        )
        logger.debug(
            "e_lfanew=%#x optional header magic=%#x checksum offset=%#x",
            location.e_lfanew,
            location.optional_magic,
            location.checksum_offset,
        )
        return location

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> "ChecksumLocation":
        """Locate the checksum field in a complete in-memory PE image."""
        e_lfanew = cls.parse_e_lfanew(data[:DOS_HEADER_SIZE], len(data))
        return cls.from_header(
            e_lfanew, data[e_lfanew : e_lfanew + NT_HEADER_PROLOGUE_SIZE]
        )
