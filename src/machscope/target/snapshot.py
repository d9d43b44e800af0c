"""
In-Memory Process Snapshot
==========================

A ProcessTarget backed by an in-memory image of a process: mapped segments
with protections, loaded modules with their sections, and a symbol table.

Snapshots are used for offline listings and for tests. They can be built in
code or loaded from JSON:

    {
      "arch": "arm64",
      "pointer_size": 8,
      "segments": [
        {"base": "0x100000000", "protection": "r-x", "data": "080000b0..."}
      ],
      "modules": [
        {"name": "App", "base": "0x100000000", "size": "0x8000",
         "sections": [{"name": "__text", "base": "0x100000000", "size": "0x40"}]}
      ],
      "symbols": {"0x100000000": "_main"}
    }

Addresses and sizes may be JSON integers or hex/decimal strings; segment data
is a hex string.

Usage:
    snap = SnapshotTarget("arm64")
    snap.map(0x1000, code, "r-x")
    snap.add_module("App", 0x1000, 0x2000, sections=[("__text", 0x1000, 0x100)])
    snap.add_symbol(0x1000, "_main")

Copyright (c) 2025-2026 Machscope Contributors
"""

import bisect
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from machscope.config import DEFAULT_STRING_LIMIT
from machscope.errors import MemoryAccessError, SnapshotFormatError
from machscope.target.base import MemoryRange, Module, ProcessTarget, Section

logger = logging.getLogger(__name__)


ARCH_POINTER_SIZES = {
    "arm": 4,
    "arm64": 8,
    "ia32": 4,
    "x64": 8,
}


@dataclass
class Segment:
    """A mapped block of snapshot memory."""
    base: int
    data: bytearray
    protection: str

    @property
    def end(self) -> int:
        return self.base + len(self.data)


# =============================================================================
# Snapshot Target
# =============================================================================

class SnapshotTarget(ProcessTarget):
    """
    Process target over an in-memory image.

    Segments must not overlap; sections and modules may describe any
    address, mapped or not, just like a real process can report sections
    whose pages were never touched.
    """

    def __init__(
        self,
        arch: str,
        pointer_size: Optional[int] = None,
        string_limit: int = DEFAULT_STRING_LIMIT,
    ):
        """
        Initialize an empty snapshot.

        Args:
            arch: Architecture name ("arm", "arm64", "x64", ...)
            pointer_size: Pointer width; derived from arch when omitted
            string_limit: Longest string read from the snapshot
        """
        super().__init__(string_limit=string_limit)
        if pointer_size is None:
            pointer_size = ARCH_POINTER_SIZES.get(arch, 8)
        self._arch = arch
        self._pointer_size = pointer_size
        self._segments: List[Segment] = []
        self._modules: List[Module] = []
        self._sections: Dict[int, List[Section]] = {}
        self._symbol_addresses: List[int] = []
        self._symbol_names: Dict[int, str] = {}

    @property
    def arch(self) -> str:
        return self._arch

    @property
    def pointer_size(self) -> int:
        return self._pointer_size

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def map(self, base: int, data: bytes, protection: str = "r--") -> Segment:
        """
        Map `data` at `base` with the given protection.

        Raises:
            ValueError: If the new segment overlaps an existing one
        """
        segment = Segment(base, bytearray(data), protection)
        for existing in self._segments:
            if segment.base < existing.end and existing.base < segment.end:
                raise ValueError(
                    f"segment 0x{base:x}-0x{segment.end:x} overlaps "
                    f"0x{existing.base:x}-0x{existing.end:x}"
                )
        self._segments.append(segment)
        self._segments.sort(key=lambda s: s.base)
        return segment

    def write(self, address: int, data: bytes) -> None:
        """Overwrite mapped memory at `address`."""
        for offset, byte in enumerate(data):
            segment = self._segment_at(address + offset)
            if segment is None:
                raise MemoryAccessError(address, len(data), "unmapped")
            segment.data[address + offset - segment.base] = byte

    def write_pointer(self, address: int, value: int) -> None:
        self.write(address, value.to_bytes(self.pointer_size, "little"))

    def add_module(
        self,
        name: str,
        base: int,
        size: int,
        sections: Iterable[Union[Section, Tuple[Optional[str], int, int]]] = (),
        path: Optional[str] = None,
    ) -> Module:
        """
        Register a loaded module and its sections.

        Args:
            name: Module name
            base: Load address
            size: Image size
            sections: Section objects or (name, base, size) tuples, in order
            path: Optional on-disk path
        """
        module = Module(name=name, base=base, size=size, path=path)
        self._modules.append(module)
        self._sections[base] = [
            s if isinstance(s, Section) else Section(*s) for s in sections
        ]
        return module

    def add_symbol(self, address: int, name: str) -> None:
        if address not in self._symbol_names:
            bisect.insort(self._symbol_addresses, address)
        self._symbol_names[address] = name

    # -------------------------------------------------------------------------
    # ProcessTarget primitives
    # -------------------------------------------------------------------------

    def enumerate_modules(self) -> List[Module]:
        return list(self._modules)

    def enumerate_sections(self, module: Module) -> List[Section]:
        return list(self._sections.get(module.base, ()))

    def find_range(self, address: int) -> Optional[MemoryRange]:
        segment = self._segment_at(address)
        if segment is None:
            return None
        return MemoryRange(segment.base, len(segment.data), segment.protection)

    def read_bytes(self, address: int, size: int) -> bytes:
        segment = self._segment_at(address)
        if segment is None or address + size > segment.end:
            raise MemoryAccessError(address, size, "unmapped")
        if "r" not in segment.protection:
            raise MemoryAccessError(address, size, "not readable")
        offset = address - segment.base
        return bytes(segment.data[offset:offset + size])

    def symbolicate(self, address: int) -> Optional[str]:
        """
        Nearest symbol at or below `address` within the same module.

        Falls back to the "0x<hex>" placeholder.
        """
        index = bisect.bisect_right(self._symbol_addresses, address) - 1
        if index >= 0:
            symbol_address = self._symbol_addresses[index]
            module = self._module_at(address)
            if symbol_address == address or (
                module is not None and module.base <= symbol_address
            ):
                return self._symbol_names[symbol_address]
        return self.placeholder(address)

    def _segment_at(self, address: int) -> Optional[Segment]:
        for segment in self._segments:
            if segment.base <= address < segment.end:
                return segment
        return None

    def _module_at(self, address: int) -> Optional[Module]:
        for module in self._modules:
            if module.base <= address < module.base + module.size:
                return module
        return None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(
        cls,
        data: dict,
        source: str = "<dict>",
        string_limit: int = DEFAULT_STRING_LIMIT,
    ) -> "SnapshotTarget":
        """
        Build a snapshot from its JSON representation.

        Raises:
            SnapshotFormatError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise SnapshotFormatError("snapshot must be a JSON object", source)
        if "arch" not in data:
            raise SnapshotFormatError("missing 'arch'", source)

        try:
            pointer_size = data.get("pointer_size")
            snap = cls(
                str(data["arch"]),
                pointer_size=_parse_int(pointer_size) if pointer_size is not None else None,
                string_limit=string_limit,
            )

            for entry in data.get("segments", []):
                snap.map(
                    _parse_int(entry["base"]),
                    bytes.fromhex(entry.get("data", "")),
                    entry.get("protection", "r--"),
                )

            for entry in data.get("modules", []):
                sections = [
                    Section(s.get("name"), _parse_int(s["base"]), _parse_int(s["size"]))
                    for s in entry.get("sections", [])
                ]
                snap.add_module(
                    entry["name"],
                    _parse_int(entry["base"]),
                    _parse_int(entry.get("size", 0)),
                    sections=sections,
                    path=entry.get("path"),
                )

            for address, name in data.get("symbols", {}).items():
                snap.add_symbol(_parse_int(address), name)
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotFormatError(f"invalid snapshot: {e}", source) from e

        logger.debug(
            f"Loaded snapshot {source}: {len(snap._segments)} segment(s), "
            f"{len(snap._modules)} module(s), {len(snap._symbol_names)} symbol(s)"
        )
        return snap

    @classmethod
    def load(cls, path: Union[str, Path], string_limit: int = DEFAULT_STRING_LIMIT) -> "SnapshotTarget":
        """Load a snapshot from a JSON file."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise SnapshotFormatError(f"invalid JSON: {e}", str(path)) from e
        return cls.from_dict(data, source=str(path), string_limit=string_limit)


def _parse_int(value: Union[int, str]) -> int:
    """Parse an int or a hex ("0x...") / decimal string."""
    if isinstance(value, bool):
        raise TypeError(f"expected integer, got {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)
