"""
Machscope Disassembler Module
=============================

Annotated disassembly of ARM/ARM64 code in an inspected process:

- **decoder**: capstone-backed instruction decoding
- **regions**: named section map of the loaded modules
- **literals**: section-specific literal readers (strings, selectors, classes)
- **classifier**: pointer -> region -> literal
- **annotate**: the bounded, annotating instruction walk

Usage:
    from machscope.disassembler import disassemble

    for record in disassemble(target, 0x100003f20, count=20):
        print(record)

Copyright (c) 2025-2026 Machscope Contributors
"""

from .decoder import (
    CapstoneDecoder,
    ImmediateOperand,
    Instruction,
    MemoryOperand,
    Operand,
    OtherOperand,
    RegisterOperand,
)
from .regions import Region, build_region_map
from .literals import LITERAL_READERS, LiteralReader
from .classifier import AddressClassifier
from .annotate import (
    AnnotatedInstruction,
    Disassembler,
    disassemble,
    load_pair_address,
    parse_address,
)

__all__ = [
    "CapstoneDecoder",
    "Instruction",
    "Operand",
    "ImmediateOperand",
    "RegisterOperand",
    "MemoryOperand",
    "OtherOperand",
    "Region",
    "build_region_map",
    "LITERAL_READERS",
    "LiteralReader",
    "AddressClassifier",
    "AnnotatedInstruction",
    "Disassembler",
    "disassemble",
    "load_pair_address",
    "parse_address",
]
