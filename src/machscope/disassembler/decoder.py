"""
ARM / ARM64 Instruction Decoder
===============================

Decodes machine code into structured instructions using the capstone engine.
This is the decoding collaborator consumed by the annotation driver: it knows
nothing about regions, symbols or literals, only how a handful of bytes at an
address turn into a mnemonic, operands and semantic groups.

Supported instruction sets:
    - arm64: fixed-width 4-byte AArch64 encodings
    - arm:   32-bit ARM and Thumb. An odd address selects Thumb mode (the
             low bit is the Thumb bit); it is cleared for decoding and kept
             on the instruction's `next` so the following decode stays Thumb.

Operands are reduced to a small tagged union:
    - ImmediateOperand(value)
    - RegisterOperand(name)
    - MemoryOperand(base, index, displacement, scale)
    - OtherOperand(kind) for anything else capstone reports (FP, sysreg, ...)

Usage:
    decoder = CapstoneDecoder("arm64")
    insn = decoder.decode(bytes.fromhex("080000b0"), 0x100000000)
    print(insn.text)          # adrp x8, #0x100001000

Copyright (c) 2025-2026 Machscope Contributors
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple, Union

from capstone import (
    CS_ARCH_ARM,
    CS_ARCH_ARM64,
    CS_MODE_ARM,
    CS_MODE_THUMB,
    CS_OP_IMM,
    CS_OP_MEM,
    CS_OP_REG,
    Cs,
    CsError,
)

from machscope.errors import ArchitectureUnsupportedError


# Longest encoding in either supported instruction set
MAX_INSTRUCTION_SIZE = 4

# Shortest encoding (16-bit Thumb)
MIN_INSTRUCTION_SIZE = 2


# =============================================================================
# Operands
# =============================================================================

@dataclass(frozen=True)
class ImmediateOperand:
    """Immediate value (also used for resolved branch/page targets)."""
    value: int

    def to_dict(self) -> dict:
        return {"type": "imm", "value": self.value}


@dataclass(frozen=True)
class RegisterOperand:
    """Register referenced by name (e.g. "x8", "r0")."""
    name: str

    def to_dict(self) -> dict:
        return {"type": "reg", "value": self.name}


@dataclass(frozen=True)
class MemoryOperand:
    """
    Memory reference: [base + index * scale + displacement].

    Attributes:
        base: Base register name, or None
        index: Index register name, or None
        displacement: Signed byte offset
        scale: Index scale factor
    """
    base: Optional[str]
    index: Optional[str] = None
    displacement: int = 0
    scale: int = 1

    def to_dict(self) -> dict:
        return {
            "type": "mem",
            "value": {
                "base": self.base,
                "index": self.index,
                "scale": self.scale,
                "disp": self.displacement,
            },
        }


@dataclass(frozen=True)
class OtherOperand:
    """Operand kind outside the immediate/register/memory union."""
    kind: int

    def to_dict(self) -> dict:
        return {"type": "other", "value": self.kind}


Operand = Union[ImmediateOperand, RegisterOperand, MemoryOperand, OtherOperand]


# =============================================================================
# Decoded Instruction
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    A single decoded instruction.

    Attributes:
        address: Address of the instruction (Thumb bit cleared)
        size: Encoded size in bytes
        mnemonic: Lower-case mnemonic (e.g. "adrp", "ldr")
        op_str: Operand string as rendered by capstone
        operands: Structured operands in encoding order
        groups: Semantic group names ("jump", "call", ...)
        regs_read: Registers read, implicit and explicit
        regs_written: Registers written, implicit and explicit
        thumb: True when decoded in Thumb mode
    """
    address: int
    size: int
    mnemonic: str
    op_str: str
    operands: Tuple[Operand, ...] = ()
    groups: FrozenSet[str] = field(default_factory=frozenset)
    regs_read: Tuple[str, ...] = ()
    regs_written: Tuple[str, ...] = ()
    thumb: bool = False

    @property
    def next(self) -> int:
        """Address of the following instruction (Thumb bit preserved)."""
        following = self.address + self.size
        return following | 1 if self.thumb else following

    @property
    def text(self) -> str:
        """Canonical rendering: mnemonic followed by operands."""
        if self.op_str:
            return f"{self.mnemonic} {self.op_str}"
        return self.mnemonic

    def __str__(self) -> str:
        return self.text


# =============================================================================
# Capstone Decoder
# =============================================================================

class CapstoneDecoder:
    """
    Decoder for the ARM and ARM64 instruction sets built on capstone.

    One capstone handle is kept per mode, with detail enabled so operands,
    groups and register access lists are available.

    Attributes:
        arch: "arm" or "arm64"
    """

    def __init__(self, arch: str):
        """
        Initialize the decoder.

        Args:
            arch: Process architecture name ("arm" or "arm64")

        Raises:
            ArchitectureUnsupportedError: For any other architecture
        """
        self.arch = arch
        if arch == "arm64":
            self._engines: Dict[bool, Cs] = {False: self._engine(CS_ARCH_ARM64, CS_MODE_ARM)}
        elif arch == "arm":
            self._engines = {
                False: self._engine(CS_ARCH_ARM, CS_MODE_ARM),
                True: self._engine(CS_ARCH_ARM, CS_MODE_THUMB),
            }
        else:
            raise ArchitectureUnsupportedError(arch)

    @staticmethod
    def _engine(arch: int, mode: int) -> Cs:
        engine = Cs(arch, mode)
        engine.detail = True
        return engine

    def is_thumb(self, address: int) -> bool:
        """True when `address` carries the Thumb bit on a 32-bit ARM target."""
        return self.arch == "arm" and bool(address & 1)

    def decode(self, data: bytes, address: int) -> Optional[Instruction]:
        """
        Decode the first instruction in `data`.

        Args:
            data: Bytes starting at the instruction
            address: Address of the first byte (Thumb bit allowed on arm)

        Returns:
            The decoded Instruction, or None if the bytes are not a valid
            instruction or are too short.
        """
        thumb = self.is_thumb(address)
        if thumb:
            address &= ~1

        engine = self._engines[thumb]
        try:
            insn = next(engine.disasm(bytes(data), address, 1), None)
        except CsError:
            return None
        if insn is None:
            return None

        return self._convert(insn, thumb)

    def _convert(self, insn, thumb: bool) -> Instruction:
        """Reduce a capstone instruction to an Instruction."""
        operands = tuple(self._convert_operand(insn, op) for op in insn.operands)
        groups = frozenset(
            name for name in (insn.group_name(g) for g in insn.groups) if name
        )

        try:
            regs_read, regs_written = insn.regs_access()
        except CsError:
            regs_read, regs_written = insn.regs_read, insn.regs_write

        return Instruction(
            address=insn.address,
            size=insn.size,
            mnemonic=insn.mnemonic,
            op_str=insn.op_str,
            operands=operands,
            groups=groups,
            regs_read=tuple(insn.reg_name(r) for r in regs_read),
            regs_written=tuple(insn.reg_name(r) for r in regs_written),
            thumb=thumb,
        )

    @staticmethod
    def _convert_operand(insn, op) -> Operand:
        if op.type == CS_OP_IMM:
            return ImmediateOperand(op.imm)
        if op.type == CS_OP_REG:
            return RegisterOperand(insn.reg_name(op.reg))
        if op.type == CS_OP_MEM:
            mem = op.mem
            return MemoryOperand(
                base=insn.reg_name(mem.base) if mem.base else None,
                index=insn.reg_name(mem.index) if mem.index else None,
                displacement=mem.disp,
                scale=getattr(mem, "scale", 1) or 1,
            )
        return OtherOperand(op.type)
