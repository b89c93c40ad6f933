import pytest
import pathlib

from pe_test_utils import build_pe_image


@pytest.fixture
def pe_image() -> bytearray:
    """A 1 KiB PE32 image with e_lfanew=0x80 and a zero checksum."""
    return build_pe_image()


@pytest.fixture
def pe_file(pe_image: bytearray, tmp_path: pathlib.Path) -> pathlib.Path:
    """The pe_image fixture written to disk."""
    path = tmp_path / "test.exe"
    path.write_bytes(pe_image)
    return path


@pytest.fixture
def pe32_plus_file(tmp_path: pathlib.Path) -> pathlib.Path:
    """A PE32+ image with a non-zero stored checksum."""
    path = tmp_path / "test64.dll"
    path.write_bytes(build_pe_image(size=2048, pe32_plus=True, checksum=0xCAFEBABE))
    return path


@pytest.fixture
def truncated_file(tmp_path: pathlib.Path) -> pathlib.Path:
    """A file shorter than a DOS header."""
    path = tmp_path / "truncated.exe"
    path.write_bytes(b"MZ" + bytes(30))
    return path
