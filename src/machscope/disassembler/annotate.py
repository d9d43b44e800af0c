"""
Annotated Disassembly
=====================

Disassembles code in a live (or snapshotted) process and annotates each
instruction:

- Jump targets are resolved to symbol names. A single-operand jump
  (`b _foo`) carries the name in `symbol`; multi-operand forms
  (`cbz x0, _foo`) carry it in `comment`. Placeholder names of the form
  "0x1234" mean "no real symbol" and are dropped.

- Page-load pairs are resolved to literals:

      adrp x8, #0x100008000
      ldr  x0, [x8, #0x10]        ; @selector(viewDidLoad)

  The address is the adrp page plus the ldr displacement; the section it
  falls in decides how it is rendered (see literals.py).

Architecture:
    - Only ARM and ARM64 processes are handled
    - The listing stops at the end of the executable range containing the
      start address, at the first undecodable instruction, or after `count`
      instructions, whichever comes first

Usage:
    listing = disassemble(target, "0x100003f20", count=20)
    for record in listing:
        print(record)

Copyright (c) 2025-2026 Machscope Contributors
"""

import logging
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Optional, Tuple, Union

from machscope.config import DEFAULT_COUNT
from machscope.errors import (
    ArchitectureUnsupportedError,
    InvalidAddressError,
    MemoryAccessError,
    NonExecutableError,
    UnmappedAddressError,
)
from .classifier import AddressClassifier
from .decoder import ImmediateOperand, Instruction, MemoryOperand, Operand, RegisterOperand
from .regions import build_region_map

logger = logging.getLogger(__name__)


SUPPORTED_ARCHITECTURES = frozenset({"arm", "arm64"})

# Resolver names that stand for "no symbol here"
PLACEHOLDER_SYMBOL = re.compile(r"^0x\d+")

PAGE_LOAD_MNEMONICS = frozenset({"adrp"})
MEMORY_LOAD_MNEMONICS = frozenset({"ldr"})


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class AnnotatedInstruction:
    """
    One line of annotated disassembly.

    Attributes:
        address: Address of the instruction
        mnemonic: Instruction mnemonic (e.g. "adrp", "bl")
        op_str: Operand string
        groups: Semantic groups reported by the decoder
        operands: Structured operands
        regs_read: Registers read
        regs_written: Registers written
        text: Canonical "mnemonic operands" rendering
        comment: Resolved literal, or jump target of a multi-operand jump
        symbol: Jump target of a single-operand jump
    """
    address: int
    mnemonic: str
    op_str: str
    groups: FrozenSet[str] = field(default_factory=frozenset)
    operands: Tuple[Operand, ...] = ()
    regs_read: Tuple[str, ...] = ()
    regs_written: Tuple[str, ...] = ()
    text: str = ""
    comment: Optional[str] = None
    symbol: Optional[str] = None

    @classmethod
    def from_instruction(
        cls,
        insn: Instruction,
        comment: Optional[str] = None,
        symbol: Optional[str] = None,
    ) -> "AnnotatedInstruction":
        return cls(
            address=insn.address,
            mnemonic=insn.mnemonic,
            op_str=insn.op_str,
            groups=insn.groups,
            operands=insn.operands,
            regs_read=insn.regs_read,
            regs_written=insn.regs_written,
            text=insn.text,
            comment=comment,
            symbol=symbol,
        )

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: TEXT [<symbol>] [; comment]"""
        line = f"0x{self.address:x}: {self.text}"
        if self.symbol:
            line = f"{line:<48} <{self.symbol}>"
        if self.comment:
            line = f"{line:<48} ; {self.comment}"
        return line

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"0x{self.address:x}",
            "mnemonic": self.mnemonic,
            "opStr": self.op_str,
            "groups": sorted(self.groups),
            "operands": [op.to_dict() for op in self.operands],
            "regsRead": list(self.regs_read),
            "regsWritten": list(self.regs_written),
            "string": self.text,
            "comment": self.comment,
            "symbol": self.symbol,
        }


# =============================================================================
# Address Parsing
# =============================================================================

def parse_address(value: Union[int, str, None]) -> int:
    """
    Parse an address given as an int or a hex ("0x...") / decimal string.

    Raises:
        InvalidAddressError: If the value is null, negative or not a number
    """
    if value is None or isinstance(value, bool):
        raise InvalidAddressError(value)
    if isinstance(value, int):
        address = value
    else:
        text = str(value).strip()
        try:
            if text.lower().startswith("0x"):
                address = int(text, 16)
            else:
                address = int(text)
        except ValueError:
            raise InvalidAddressError(value) from None
    if address <= 0:
        raise InvalidAddressError(value)
    return address


# =============================================================================
# Disassembler
# =============================================================================

class Disassembler:
    """
    Annotating disassembler over a ProcessTarget.

    Each disassemble() call builds its own region map and pattern state;
    nothing is cached between calls, so module loads in between are picked
    up (and modules unloaded mid-call are not).

    Attributes:
        target: ProcessTarget being inspected
        readers: Optional override of the section -> literal reader table
    """

    def __init__(self, target, readers=None):
        self.target = target
        self.readers = readers

    def disassemble(self, address: Union[int, str], count: int = DEFAULT_COUNT) -> List[AnnotatedInstruction]:
        """
        Disassemble up to `count` instructions starting at `address`.

        Args:
            address: Start address (int, "0x..." or decimal string)
            count: Maximum number of instructions

        Returns:
            Annotated instructions in address order (possibly empty)

        Raises:
            ArchitectureUnsupportedError: Target is not ARM/ARM64
            InvalidAddressError: Address is null or malformed
            UnmappedAddressError: Address is not mapped
            NonExecutableError: Address is mapped without execute permission
        """
        start, end = self._check_preconditions(address)

        regions = build_region_map(self.target)
        logger.debug(f"Region map: {len(regions)} region(s)")
        classifier = AddressClassifier(regions, self.target, self.readers)

        return list(self._walk(start, end, count, classifier))

    def _check_preconditions(self, address: Union[int, str]) -> Tuple[int, int]:
        """Validate the request; returns (start, end of executable range)."""
        arch = self.target.arch
        if arch not in SUPPORTED_ARCHITECTURES:
            raise ArchitectureUnsupportedError(arch)

        start = parse_address(address)

        memory_range = self.target.find_range(start)
        if memory_range is None:
            raise UnmappedAddressError(start)
        if not memory_range.is_executable:
            raise NonExecutableError(start, memory_range.protection)

        return start, memory_range.end

    def _walk(
        self,
        cursor: int,
        end: int,
        count: int,
        classifier: AddressClassifier,
    ) -> Iterator[AnnotatedInstruction]:
        previous: Optional[Instruction] = None

        for _ in range(count):
            insn = self.target.decode(cursor)
            if insn is None:
                logger.debug(f"Nothing decodes at 0x{cursor:x}, stopping")
                return

            comment = None
            symbol = None

            if "jump" in insn.groups:
                for op in insn.operands:
                    if not isinstance(op, ImmediateOperand):
                        continue
                    name = self.target.symbolicate(op.value)
                    if name is None or PLACEHOLDER_SYMBOL.match(name):
                        continue
                    if len(insn.operands) == 1:
                        symbol = name
                    else:
                        comment = name

            if previous is not None:
                effective = load_pair_address(previous, insn)
                if effective is not None:
                    literal = self._classify(classifier, effective)
                    if literal is not None:
                        comment = literal

            yield AnnotatedInstruction.from_instruction(insn, comment=comment, symbol=symbol)
            previous = insn

            cursor = insn.next
            if not cursor or cursor >= end:
                logger.debug(f"Reached 0x{cursor:x}, end of range 0x{end:x}")
                return

    @staticmethod
    def _classify(classifier: AddressClassifier, pointer: int) -> Optional[str]:
        try:
            return classifier.classify(pointer)
        except MemoryAccessError as e:
            logger.warning(f"Cannot read literal at 0x{pointer:x}: {e}")
            return None


def load_pair_address(previous: Instruction, current: Instruction) -> Optional[int]:
    """
    Address materialized by an adrp/ldr pair, or None if the two
    instructions do not form one.

    The pair is `adrp Rd, #page` followed by `ldr Rt, [Rd, #disp]`; the
    result is page + disp.
    """
    if previous.mnemonic not in PAGE_LOAD_MNEMONICS:
        return None
    if current.mnemonic not in MEMORY_LOAD_MNEMONICS:
        return None
    if len(previous.operands) < 2 or len(current.operands) < 2:
        return None

    destination, page = previous.operands[0], previous.operands[1]
    source = current.operands[1]
    if not isinstance(page, ImmediateOperand):
        return None
    if not isinstance(destination, RegisterOperand) or not isinstance(source, MemoryOperand):
        return None
    if source.base != destination.name:
        return None

    return page.value + source.displacement


def disassemble(target, address: Union[int, str], count: int = DEFAULT_COUNT) -> List[AnnotatedInstruction]:
    """
    Disassemble and annotate `count` instructions at `address` in `target`.

    Convenience wrapper around Disassembler(target).disassemble().
    """
    return Disassembler(target).disassemble(address, count)
