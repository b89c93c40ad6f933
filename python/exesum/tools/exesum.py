#!/usr/bin/env python3
"""
Check, clear or set the checksum of an EXE/DLL file.

Usage:
    python -m exesum.tools.exesum --check your_file.exe
    python -m exesum.tools.exesum --clear your_file.exe
    python -m exesum.tools.exesum --set your_file.exe
    python -m exesum.tools.exesum --set --force your_file.exe VALUE
"""

import argparse
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from exesum import __version__
from exesum.operations import check, clear, set_checksum
from exesum.pe import MalformedHeaderError, U32_MAX

USAGE = """\
exesum --- Check/Clear/Set the check-sum of an EXE/DLL file

Usage:
    exesum --check your_file.exe
    exesum --clear your_file.exe
    exesum --set your_file.exe
    exesum --set --force your_file.exe VALUE
    exesum /?
    exesum --help
    exesum --version

VALUE is decimal or 0x-prefixed hexadecimal.
Add -v/--verbose to any operation for debug logging.
"""


class UsageError(ValueError):
    """Raised for an argument combination the tool does not accept."""

    pass


@dataclass
class CheckCommand:
    """Report stored and calculated checksums."""

    path: Path


@dataclass
class ClearCommand:
    """Zero the checksum field."""

    path: Path


@dataclass
class SetCommand:
    """Write the calculated checksum, or forced_value when given."""

    path: Path
    forced_value: int | None = None


@dataclass
class HelpCommand:
    """Print usage."""


@dataclass
class VersionCommand:
    """Print the version banner."""


Command = CheckCommand | ClearCommand | SetCommand | HelpCommand | VersionCommand


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting, so usage stays ours."""

    def error(self, message):
        raise UsageError(message)


def _build_parser() -> _ArgumentParser:
    p = _ArgumentParser(prog="exesum", add_help=False, allow_abbrev=False)
    verbs = p.add_mutually_exclusive_group()
    verbs.add_argument("--check", action="store_true")
    verbs.add_argument("--clear", action="store_true")
    verbs.add_argument("--set", action="store_true")
    verbs.add_argument("--help", "-h", action="store_true")
    verbs.add_argument("--version", action="store_true")
    p.add_argument("--force", action="store_true")
    p.add_argument("--verbose", "-v", action="store_true")
    p.add_argument("operands", nargs="*")
    return p


_HEX_VALUE = re.compile(r"0[xX][0-9a-fA-F]+")
_DEC_VALUE = re.compile(r"[0-9]+")


def parse_u32(text: str) -> int:
    """Parse a checksum value given as decimal or 0x-prefixed hexadecimal.

    Raises:
        UsageError: If text is not a number or does not fit in 32 bits
    """
    s = text.strip()
    if _HEX_VALUE.fullmatch(s):
        value = int(s[2:], 16)
    elif _DEC_VALUE.fullmatch(s):
        value = int(s, 10)
    else:
        raise UsageError(f"Invalid checksum value: {text!r}")
    if value > U32_MAX:
        raise UsageError(f"Checksum value out of range: {text!r}")
    return value


def parse_command(argv: list[str]) -> tuple[Command, bool]:
    """Turn command-line arguments into a single command.

    Args:
        argv: Arguments without the program name

    Returns:
        (command, verbose)

    Raises:
        UsageError: If the arguments do not form a valid command
    """
    if not argv or argv[0] == "/?":
        return HelpCommand(), False

    args = _build_parser().parse_args(argv)
    operands = args.operands

    if args.help:
        return HelpCommand(), args.verbose
    if args.version:
        return VersionCommand(), args.verbose
    if args.force and not args.set:
        raise UsageError("--force is only valid with --set")

    expected = 2 if args.force else 1
    if not (args.check or args.clear or args.set):
        raise UsageError("No operation given")
    if len(operands) != expected:
        raise UsageError(
            f"Expected {expected} argument(s), got {len(operands)}: {operands}"
        )

    path = Path(operands[0])
    if args.check:
        return CheckCommand(path), args.verbose
    if args.clear:
        return ClearCommand(path), args.verbose
    forced_value = parse_u32(operands[1]) if args.force else None
    return SetCommand(path, forced_value), args.verbose


def print_checksums(header_sum: int, computed_sum: int) -> None:
    print(f"Header checksum: 0x{header_sum:X}")
    print(f"Calculated checksum: 0x{computed_sum:X}")


def dispatch(command: Command) -> int:
    """Run one command and return the process exit status."""
    if isinstance(command, HelpCommand):
        print(USAGE)
        return 0

    if isinstance(command, VersionCommand):
        print(f"ExeSum Version {__version__}")
        print("License: MIT")
        return 0

    try:
        if isinstance(command, CheckCommand):
            pair = check(command.path)
            print_checksums(pair.header_sum, pair.computed_sum)
        elif isinstance(command, ClearCommand):
            clear(command.path)
            print("Checksum cleared successfully.")
        elif isinstance(command, SetCommand):
            if command.forced_value is None:
                pair = check(command.path)
                print_checksums(pair.header_sum, pair.computed_sum)
                set_checksum(command.path, pair.computed_sum)
            else:
                set_checksum(command.path, command.forced_value)
            print("Checksum set successfully.")
        else:
            raise TypeError(f"Unknown command: {command!r}")
    except MalformedHeaderError as e:
        print(f"Error: malformed PE header in {command.path}: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    try:
        command, verbose = parse_command(argv)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )
    return dispatch(command)


if __name__ == "__main__":
    sys.exit(main())
