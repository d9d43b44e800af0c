"""
Machscope Process Targets
=========================

The process boundary consumed by the disassembly annotator, plus its
backends:

- **ProcessTarget**: abstract interface (modules, sections, memory map,
  raw reads, symbols, decoding)
- **SnapshotTarget**: in-memory process image, loadable from JSON
- **LLDBTarget**: live process attached through LLDB

Copyright (c) 2025-2026 Machscope Contributors
"""

from .base import MemoryRange, Module, ProcessTarget, Section
from .lldb_target import LLDBTarget, arch_from_triple
from .snapshot import SnapshotTarget

__all__ = [
    "ProcessTarget",
    "Module",
    "Section",
    "MemoryRange",
    "SnapshotTarget",
    "LLDBTarget",
    "arch_from_triple",
]
