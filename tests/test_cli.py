"""Tests for the exesum command-line tool."""

from pathlib import Path

import pytest

from exesum.tools.exesum import (
    CheckCommand,
    ClearCommand,
    HelpCommand,
    SetCommand,
    UsageError,
    VersionCommand,
    main,
    parse_command,
    parse_u32,
)

from pe_test_utils import build_pe_image, checksum_offset_for, reference_checksum


class TestParseU32:
    """Tests for checksum value parsing."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("0", 0),
            ("305419896", 0x12345678),
            ("0x12345678", 0x12345678),
            ("0XABCDEF01", 0xABCDEF01),
            ("0xffffffff", 0xFFFFFFFF),
            ("4294967295", 0xFFFFFFFF),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_u32(text) == expected

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "abc",
            "0x",
            "0xZZ",
            "-1",
            "+5",
            "0x+5",
            "0x-5",
            "1_000",
            "0x1_0",
            "0x 10",
            "4294967296",
            "0x100000000",
        ],
    )
    def test_invalid_raises(self, text):
        with pytest.raises(UsageError):
            parse_u32(text)


class TestParseCommand:
    """Tests for turning argv into a command value."""

    def test_no_arguments_is_help(self):
        assert parse_command([]) == (HelpCommand(), False)

    @pytest.mark.parametrize("argv", [["--help"], ["-h"], ["/?"]])
    def test_help(self, argv):
        assert parse_command(argv)[0] == HelpCommand()

    def test_version(self):
        assert parse_command(["--version"])[0] == VersionCommand()

    def test_check(self):
        assert parse_command(["--check", "a.exe"]) == (
            CheckCommand(Path("a.exe")),
            False,
        )

    def test_clear_verbose(self):
        assert parse_command(["--clear", "a.exe", "-v"]) == (
            ClearCommand(Path("a.exe")),
            True,
        )

    def test_set(self):
        assert parse_command(["--set", "a.exe"])[0] == SetCommand(Path("a.exe"), None)

    def test_set_force(self):
        command, _ = parse_command(["--set", "--force", "a.exe", "0x10"])
        assert command == SetCommand(Path("a.exe"), 0x10)

    @pytest.mark.parametrize(
        "argv",
        [
            ["--check"],
            ["--check", "a.exe", "b.exe"],
            ["--clear"],
            ["--set"],
            ["--set", "a.exe", "0x10"],
            ["--set", "--force", "a.exe"],
            ["--check", "--force", "a.exe", "1"],
            ["--check", "--clear", "a.exe"],
            ["--bogus", "a.exe"],
            ["a.exe"],
            ["-v"],
            ["--chec", "a.exe"],
            ["--se", "--forc", "a.exe", "1"],
        ],
    )
    def test_usage_errors(self, argv):
        with pytest.raises(UsageError):
            parse_command(argv)


class TestMain:
    """End-to-end tests through main()."""

    def test_check_output(self, tmp_path: Path, capsys):
        """Zero checksum stub with e_lfanew=128 reports independent values."""
        data = build_pe_image(size=600, e_lfanew=128)
        path = tmp_path / "stub.exe"
        path.write_bytes(data)
        expected = reference_checksum(data, checksum_offset_for(128))

        assert main(["--check", str(path)]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out == [
            "Header checksum: 0x0",
            f"Calculated checksum: 0x{expected:X}",
        ]

    def test_set_force_then_check(self, pe_file: Path, capsys):
        assert main(["--set", "--force", str(pe_file), "0x12345678"]) == 0
        assert "Checksum set successfully." in capsys.readouterr().out

        assert main(["--check", str(pe_file)]) == 0
        assert "Header checksum: 0x12345678" in capsys.readouterr().out.splitlines()

    def test_set_then_check_is_valid(self, pe_file: Path, capsys):
        assert main(["--set", str(pe_file)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "Header checksum: 0x0"
        assert out[1].startswith("Calculated checksum: 0x")
        assert out[2] == "Checksum set successfully."
        calculated = out[1].split(": ")[1]

        assert main(["--check", str(pe_file)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            f"Header checksum: {calculated}",
            f"Calculated checksum: {calculated}",
        ]

    def test_clear(self, pe32_plus_file: Path, capsys):
        assert main(["--clear", str(pe32_plus_file)]) == 0
        assert "Checksum cleared successfully." in capsys.readouterr().out

        main(["--check", str(pe32_plus_file)])
        assert "Header checksum: 0x0" in capsys.readouterr().out

    def test_help_and_no_arguments(self, capsys):
        assert main(["--help"]) == 0
        assert "Usage:" in capsys.readouterr().out
        assert main(["/?"]) == 0
        assert "Usage:" in capsys.readouterr().out
        assert main([]) == 0
        assert "Usage:" in capsys.readouterr().out

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == ["ExeSum Version 0.2.0", "License: MIT"]

    def test_usage_error_exits_1(self, capsys):
        assert main(["--check"]) == 1
        err = capsys.readouterr().err
        assert "Error:" in err
        assert "Usage:" in err

    @pytest.mark.parametrize(
        "argv",
        [
            ["--check"],
            ["--clear"],
            ["--set"],
        ],
    )
    def test_truncated_file_fails_every_operation(
        self, truncated_file: Path, argv, capsys
    ):
        original = truncated_file.read_bytes()
        assert main(argv + [str(truncated_file)]) == 1
        assert "Error: malformed PE header" in capsys.readouterr().err
        assert truncated_file.read_bytes() == original

    def test_truncated_file_fails_forced_set(self, truncated_file: Path, capsys):
        assert main(["--set", "--force", str(truncated_file), "1"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_file_reports_os_error(self, tmp_path: Path, capsys):
        assert main(["--check", str(tmp_path / "missing.exe")]) == 1
        assert "Errno" in capsys.readouterr().err
