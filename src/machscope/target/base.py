"""
Process Target Boundary
=======================

Everything the annotator needs from an inspected process goes through the
ProcessTarget interface defined here:

    - module and section enumeration
    - memory-map lookup with protections
    - raw memory reads (bytes, pointers, C strings, UTF-16 strings)
    - symbol lookup
    - instruction decoding at an address

Backends implement the small set of abstract primitives; pointer, string and
instruction reads are derived from read_bytes() here and may be overridden
when the backend has a faster native path (LLDB does).

Copyright (c) 2025-2026 Machscope Contributors
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from machscope.config import DEFAULT_STRING_LIMIT
from machscope.disassembler.decoder import (
    MAX_INSTRUCTION_SIZE,
    MIN_INSTRUCTION_SIZE,
    CapstoneDecoder,
    Instruction,
)
from machscope.errors import MemoryAccessError


# =============================================================================
# Boundary Values
# =============================================================================

@dataclass(frozen=True)
class Module:
    """A loaded image (main executable, dylib, framework)."""
    name: str
    base: int
    size: int
    path: Optional[str] = None


@dataclass(frozen=True)
class Section:
    """One named section of a loaded module, as reported by the enumerator."""
    name: Optional[str]
    base: int
    size: int


@dataclass(frozen=True)
class MemoryRange:
    """
    A range of the process memory map.

    Attributes:
        base: First address of the range
        size: Size in bytes
        protection: Permission string in "rwx" form ("r-x", "rw-", ...)
    """
    base: int
    size: int
    protection: str

    @property
    def end(self) -> int:
        """First address past the range."""
        return self.base + self.size

    @property
    def is_executable(self) -> bool:
        return "x" in self.protection

    def __contains__(self, address: int) -> bool:
        return self.base <= address < self.end


# =============================================================================
# Process Target
# =============================================================================

class ProcessTarget(ABC):
    """
    Abstract view of an inspected process.

    Attributes:
        string_limit: Longest string (bytes or UTF-16 units) read by
                      read_cstring() / read_utf16_string()
    """

    PLACEHOLDER_FORMAT = "0x{:x}"

    def __init__(self, string_limit: int = DEFAULT_STRING_LIMIT):
        self.string_limit = string_limit
        self._decoder: Optional[CapstoneDecoder] = None

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def arch(self) -> str:
        """Architecture name: "arm", "arm64", "x64", "ia32", ..."""

    @property
    @abstractmethod
    def pointer_size(self) -> int:
        """Pointer width in bytes."""

    @abstractmethod
    def enumerate_modules(self) -> List[Module]:
        """Currently loaded modules, in load order."""

    @abstractmethod
    def enumerate_sections(self, module: Module) -> List[Section]:
        """Named sections of `module`, in the order the image lists them."""

    @abstractmethod
    def find_range(self, address: int) -> Optional[MemoryRange]:
        """The mapped range containing `address`, or None."""

    @abstractmethod
    def read_bytes(self, address: int, size: int) -> bytes:
        """
        Read `size` bytes at `address`.

        Raises:
            MemoryAccessError: If any byte of the range is unreadable
        """

    @abstractmethod
    def symbolicate(self, address: int) -> Optional[str]:
        """
        Name of the symbol nearest to `address`.

        Returns "0x<hex>" when no real symbol is known.
        """

    # -------------------------------------------------------------------------
    # Derived reads
    # -------------------------------------------------------------------------

    def placeholder(self, address: int) -> str:
        return self.PLACEHOLDER_FORMAT.format(address)

    def read_pointer(self, address: int) -> int:
        """Read a little-endian pointer-sized value."""
        data = self.read_bytes(address, self.pointer_size)
        return int.from_bytes(data, "little")

    def read_cstring(self, address: int) -> str:
        """
        Read a NUL-terminated string (UTF-8, undecodable bytes replaced).

        Reading stops at the terminator or after string_limit bytes.

        Raises:
            MemoryAccessError: If memory runs out before a terminator
        """
        raw = bytearray()
        cursor = address
        while len(raw) < self.string_limit:
            byte = self.read_bytes(cursor, 1)[0]
            if byte == 0:
                break
            raw.append(byte)
            cursor += 1
        return raw.decode("utf-8", errors="replace")

    def read_utf16_string(self, address: int) -> str:
        """Read a NUL-terminated UTF-16LE string of at most string_limit units."""
        raw = bytearray()
        cursor = address
        for _ in range(self.string_limit):
            unit = self.read_bytes(cursor, 2)
            if unit == b"\x00\x00":
                break
            raw += unit
            cursor += 2
        return raw.decode("utf-16-le", errors="replace")

    # -------------------------------------------------------------------------
    # Decoding
    # -------------------------------------------------------------------------

    @property
    def decoder(self) -> CapstoneDecoder:
        if self._decoder is None:
            self._decoder = CapstoneDecoder(self.arch)
        return self._decoder

    def decode(self, address: int) -> Optional[Instruction]:
        """
        Decode the instruction at `address`.

        Reads MAX_INSTRUCTION_SIZE bytes, falling back to the shortest
        encoding when the mapping ends sooner.

        Returns:
            The Instruction, or None when nothing decodes there
        """
        fetch = address & ~1 if self.decoder.is_thumb(address) else address
        for size in (MAX_INSTRUCTION_SIZE, MIN_INSTRUCTION_SIZE):
            try:
                data = self.read_bytes(fetch, size)
            except MemoryAccessError:
                continue
            return self.decoder.decode(data, address)
        return None
