"""
LLDB Process Target
===================

ProcessTarget over a live process, driven through LLDB's Python bindings.

The `lldb` module ships with LLDB itself (Xcode command line tools, or the
python3-lldb package on Linux) rather than with PyPI, so it is imported only
when a target is attached. Point PYTHONPATH at `lldb -P` if the import fails.

Usage:
    with LLDBTarget.attach(pid) as target:
        for record in disassemble(target, "0x100003f20", count=20):
            print(record)

Copyright (c) 2025-2026 Machscope Contributors
"""

import logging
import re
from typing import List, Optional

from machscope.config import DEFAULT_STRING_LIMIT
from machscope.errors import AttachError, MemoryAccessError
from machscope.target.base import MemoryRange, Module, ProcessTarget, Section

logger = logging.getLogger(__name__)


# Triple prefix -> architecture name reported by ProcessTarget.arch
TRIPLE_ARCHITECTURES = (
    (re.compile(r"^(arm64|aarch64)"), "arm64"),
    (re.compile(r"^(arm|thumb)"), "arm"),
    (re.compile(r"^x86_64"), "x64"),
    (re.compile(r"^i\d86"), "ia32"),
)


def arch_from_triple(triple: str) -> str:
    """Map an LLDB target triple (e.g. "arm64-apple-ios") to an arch name."""
    for pattern, arch in TRIPLE_ARCHITECTURES:
        if pattern.match(triple or ""):
            return arch
    return (triple or "unknown").split("-", 1)[0]


def _import_lldb():
    try:
        import lldb
    except ImportError as e:
        raise AttachError(
            "LLDB Python bindings are not importable; add the output of "
            "`lldb -P` to PYTHONPATH"
        ) from e
    return lldb


# =============================================================================
# LLDB Target
# =============================================================================

class LLDBTarget(ProcessTarget):
    """
    Live process attached through LLDB.

    The process is stopped while attached. close() detaches (resuming it)
    and destroys the debugger; the target is also a context manager.
    """

    def __init__(self, debugger, target, process, string_limit: int = DEFAULT_STRING_LIMIT):
        super().__init__(string_limit=string_limit)
        self._lldb = _import_lldb()
        self._debugger = debugger
        self._target = target
        self._process = process
        self._arch = arch_from_triple(target.GetTriple())
        self._pointer_size = target.GetAddressByteSize()

    @classmethod
    def attach(cls, pid: int, string_limit: int = DEFAULT_STRING_LIMIT) -> "LLDBTarget":
        """
        Attach to a running process.

        Raises:
            AttachError: If LLDB is unavailable or the attach fails
        """
        lldb = _import_lldb()
        debugger = lldb.SBDebugger.Create()
        debugger.SetAsync(False)
        target = debugger.CreateTarget("")
        if not target or not target.IsValid():
            lldb.SBDebugger.Destroy(debugger)
            raise AttachError("Cannot create an LLDB target", pid)

        error = lldb.SBError()
        process = target.AttachToProcessWithID(debugger.GetListener(), pid, error)
        if error.Fail() or not process or not process.IsValid():
            lldb.SBDebugger.Destroy(debugger)
            raise AttachError(f"Cannot attach to pid {pid}: {error.GetCString()}", pid)

        logger.info(f"Attached to pid {pid} ({target.GetTriple()})")
        return cls(debugger, target, process, string_limit=string_limit)

    def close(self) -> None:
        if self._process is not None:
            self._process.Detach()
            self._process = None
        if self._debugger is not None:
            self._lldb.SBDebugger.Destroy(self._debugger)
            self._debugger = None

    def __enter__(self) -> "LLDBTarget":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # ProcessTarget primitives
    # -------------------------------------------------------------------------

    @property
    def arch(self) -> str:
        return self._arch

    @property
    def pointer_size(self) -> int:
        return self._pointer_size

    def enumerate_modules(self) -> List[Module]:
        modules = []
        for sb_module in self._target.module_iter():
            file_spec = sb_module.GetFileSpec()
            base = self._module_base(sb_module)
            if base is None:
                continue
            modules.append(Module(
                name=file_spec.GetFilename() or "",
                base=base,
                size=self._module_size(sb_module, base),
                path=str(file_spec.fullpath) if file_spec.fullpath else None,
            ))
        return modules

    def enumerate_sections(self, module: Module) -> List[Section]:
        """Leaf sections of the module (Mach-O sections inside segments)."""
        sb_module = self._find_sb_module(module)
        if sb_module is None:
            return []
        sections: List[Section] = []
        for sb_section in sb_module.section_iter():
            self._collect_sections(sb_section, sections)
        return sections

    def find_range(self, address: int) -> Optional[MemoryRange]:
        region = self._lldb.SBMemoryRegionInfo()
        error = self._process.GetMemoryRegionInfo(address, region)
        if error.Fail() or not region.IsMapped():
            return None
        protection = (
            ("r" if region.IsReadable() else "-")
            + ("w" if region.IsWritable() else "-")
            + ("x" if region.IsExecutable() else "-")
        )
        base = region.GetRegionBase()
        return MemoryRange(base, region.GetRegionEnd() - base, protection)

    def read_bytes(self, address: int, size: int) -> bytes:
        error = self._lldb.SBError()
        data = self._process.ReadMemory(address, size, error)
        if error.Fail() or data is None or len(data) < size:
            raise MemoryAccessError(address, size, error.GetCString())
        return bytes(data)

    def read_pointer(self, address: int) -> int:
        error = self._lldb.SBError()
        value = self._process.ReadPointerFromMemory(address, error)
        if error.Fail():
            raise MemoryAccessError(address, self.pointer_size, error.GetCString())
        return value

    def read_cstring(self, address: int) -> str:
        error = self._lldb.SBError()
        value = self._process.ReadCStringFromMemory(address, self.string_limit, error)
        if error.Fail():
            raise MemoryAccessError(address, self.string_limit, error.GetCString())
        return value or ""

    def symbolicate(self, address: int) -> Optional[str]:
        sb_address = self._target.ResolveLoadAddress(address)
        if sb_address and sb_address.IsValid():
            symbol = sb_address.GetSymbol()
            if symbol and symbol.IsValid() and symbol.GetName():
                return symbol.GetName()
        return self.placeholder(address)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _valid_load_address(self, sb_section) -> Optional[int]:
        address = sb_section.GetLoadAddress(self._target)
        if address == self._lldb.LLDB_INVALID_ADDRESS:
            return None
        return address

    def _module_base(self, sb_module) -> Optional[int]:
        """First loaded top-level segment, skipping __PAGEZERO."""
        for sb_section in sb_module.section_iter():
            address = self._valid_load_address(sb_section)
            if address is not None and address != 0:
                return address
        return None

    def _module_size(self, sb_module, base: int) -> int:
        end = base
        for sb_section in sb_module.section_iter():
            address = self._valid_load_address(sb_section)
            if address is not None and address != 0:
                end = max(end, address + sb_section.GetByteSize())
        return end - base

    def _find_sb_module(self, module: Module):
        for sb_module in self._target.module_iter():
            if self._module_base(sb_module) == module.base:
                return sb_module
        return None

    def _collect_sections(self, sb_section, sections: List[Section]) -> None:
        count = sb_section.GetNumSubSections()
        if count == 0:
            address = self._valid_load_address(sb_section)
            if address is not None:
                sections.append(Section(sb_section.GetName(), address, sb_section.GetByteSize()))
            return
        for i in range(count):
            self._collect_sections(sb_section.GetSubSectionAtIndex(i), sections)
