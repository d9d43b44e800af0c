"""
Machscope - Annotated Disassembly for Live ARM Processes
=======================================================

This package turns a code address inside an inspected process into an
annotated instruction listing. Jump targets are resolved to symbol names and
`adrp`/`ldr` pairs are resolved to the literal they load: C strings,
CFStrings, UTF-16 strings, Objective-C selectors, classes and protocols,
depending on the Mach-O section the address falls in.

Main Components
---------------
- **disassembler**: region map, literal readers, address classifier and the
  annotating disassembly driver
- **target**: the process boundary, with an in-memory snapshot backend and a
  live LLDB backend
- **cli**: the `msdisasm` command-line tool

Quick Start
-----------
Disassemble a snapshot:
    >>> from machscope import SnapshotTarget, disassemble
    >>> target = SnapshotTarget.load("app.json")
    >>> for record in disassemble(target, "0x100003f20", count=10):
    ...     print(record)

Disassemble a live process:
    >>> from machscope import LLDBTarget, disassemble
    >>> with LLDBTarget.attach(1234) as target:
    ...     listing = disassemble(target, 0x100003f20)

Or use the command-line tool:
    $ msdisasm 0x100003f20 --pid 1234 --count 20
    $ msdisasm 0x100003f20 --snapshot app.json --format json

Version History
---------------
1.0.0 - Initial release with ARM/ARM64 annotation, snapshot and LLDB targets
"""

__version__ = "1.0.0"
__author__ = "Machscope Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from machscope.disassembler import (
    AddressClassifier,
    AnnotatedInstruction,
    CapstoneDecoder,
    Disassembler,
    Instruction,
    LITERAL_READERS,
    Region,
    build_region_map,
    disassemble,
)
from machscope.errors import (
    MachscopeError,
    DisassemblyError,
    ArchitectureUnsupportedError,
    InvalidAddressError,
    UnmappedAddressError,
    NonExecutableError,
    TargetError,
    MemoryAccessError,
    AttachError,
    SnapshotFormatError,
)
from machscope.target import (
    LLDBTarget,
    MemoryRange,
    Module,
    ProcessTarget,
    Section,
    SnapshotTarget,
)
from machscope.config import DisasmConfig, get_default_config, set_default_config

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Disassembler
    "disassemble",
    "Disassembler",
    "AnnotatedInstruction",
    "AddressClassifier",
    "CapstoneDecoder",
    "Instruction",
    "LITERAL_READERS",
    "Region",
    "build_region_map",
    # Targets
    "ProcessTarget",
    "SnapshotTarget",
    "LLDBTarget",
    "Module",
    "Section",
    "MemoryRange",
    # Configuration
    "DisasmConfig",
    "get_default_config",
    "set_default_config",
    # Exception hierarchy
    "MachscopeError",
    "DisassemblyError",
    "ArchitectureUnsupportedError",
    "InvalidAddressError",
    "UnmappedAddressError",
    "NonExecutableError",
    "TargetError",
    "MemoryAccessError",
    "AttachError",
    "SnapshotFormatError",
]
