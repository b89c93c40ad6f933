"""Exceptions raised while locating, reading or writing the PE checksum."""


class MalformedHeaderError(ValueError):
    """Raised when the checksum field cannot be located inside the file."""

    pass


class ChecksumIOError(OSError):
    """Raised when a read or write transfers fewer bytes than requested."""

    pass
