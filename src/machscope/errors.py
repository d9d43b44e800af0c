"""
Machscope Error Hierarchy
=========================

This module defines the exception hierarchy for the entire package.
All exceptions inherit from MachscopeError, allowing callers to catch all
machscope-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
MachscopeError (base)
├── DisassemblyError (precondition violations of disassemble())
│   ├── ArchitectureUnsupportedError - target CPU is not ARM or ARM64
│   ├── InvalidAddressError - address is null or cannot be parsed
│   ├── UnmappedAddressError - address is outside every mapped range
│   └── NonExecutableError - address is mapped but not executable
└── TargetError (process boundary)
    ├── MemoryAccessError - raw memory read failed
    ├── AttachError - cannot attach to the process
    └── SnapshotFormatError - malformed snapshot file

Only the DisassemblyError subclasses ever escape a disassemble() call.
Everything else that can go wrong once the preconditions hold (bytes that
do not decode, a literal that cannot be read) shortens the listing or drops
an annotation instead.

Copyright (c) 2025-2026 Machscope Contributors
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class MachscopeError(Exception):
    """
    Base exception for all machscope errors.

        try:
            listing = disassemble(target, "0x100003f20")
        except MachscopeError as e:
            print(f"Error: {e}")
    """
    pass


def format_address(address: Optional[int]) -> str:
    """Format an address the way listings show it (0x-prefixed hex)."""
    if address is None:
        return "<none>"
    return f"0x{address:x}"


# =============================================================================
# Disassembly Precondition Errors
# =============================================================================

class DisassemblyError(MachscopeError):
    """
    Base exception for the precondition checks of disassemble().

    Attributes:
        message: The error description
        address: The offending address, when one was resolved
    """

    def __init__(self, message: str, address: Optional[int] = None):
        self.message = message
        self.address = address
        super().__init__(message)


class ArchitectureUnsupportedError(DisassemblyError):
    """
    The target process runs on a CPU the annotator does not handle.

    Only the 32-bit ARM and 64-bit ARM families are supported. This is
    checked before any process memory is touched.
    """

    def __init__(self, arch: str):
        self.arch = arch
        super().__init__(f"CPU not supported: {arch}")


class InvalidAddressError(DisassemblyError):
    """The requested address is null, negative or not a number."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid address {value!r}")


class UnmappedAddressError(DisassemblyError):
    """The address does not fall inside any range of the process memory map."""

    def __init__(self, address: int):
        super().__init__(f"Address {format_address(address)} is not mapped", address)


class NonExecutableError(DisassemblyError):
    """
    The address is mapped, but its range lacks execute permission.

    Attributes:
        protection: Protection string of the containing range (e.g. "rw-")
    """

    def __init__(self, address: int, protection: str):
        self.protection = protection
        super().__init__(
            f"{format_address(address)} is not executable (protection {protection})",
            address,
        )


# =============================================================================
# Process Target Errors
# =============================================================================

class TargetError(MachscopeError):
    """Base exception for failures at the process-target boundary."""
    pass


class MemoryAccessError(TargetError):
    """
    A raw memory read failed.

    Attributes:
        address: First address of the failed read
        size: Number of bytes requested
        reason: Backend-specific description (optional)
    """

    def __init__(self, address: int, size: int, reason: Optional[str] = None):
        self.address = address
        self.size = size
        self.reason = reason
        message = f"Cannot read {size} byte(s) at {format_address(address)}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class AttachError(TargetError):
    """Cannot create a debugger target or attach to the requested process."""

    def __init__(self, message: str, pid: Optional[int] = None):
        self.pid = pid
        super().__init__(message)


class SnapshotFormatError(TargetError):
    """
    A snapshot file is malformed.

    Attributes:
        source: Where the snapshot came from (file name or "<dict>")
    """

    def __init__(self, message: str, source: str = "<dict>"):
        self.source = source
        super().__init__(f"{source}: {message}")
