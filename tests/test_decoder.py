"""
Unit Tests for the Capstone Decoder
===================================

Tests that real ARM64, ARM and Thumb encodings reduce to the expected
Instruction fields and operand variants.

Copyright (c) 2025-2026 Machscope Contributors
"""

import pytest

from machscope.disassembler import (
    CapstoneDecoder,
    ImmediateOperand,
    MemoryOperand,
    RegisterOperand,
)
from machscope.errors import ArchitectureUnsupportedError


# =============================================================================
# ARM64
# =============================================================================

class TestArm64Decoder:
    """Tests for AArch64 decoding."""

    def setup_method(self):
        self.decoder = CapstoneDecoder("arm64")

    def test_adrp(self):
        insn = self.decoder.decode(bytes.fromhex("080000b0"), 0x100000000)
        assert insn.mnemonic == "adrp"
        assert insn.size == 4
        assert insn.operands == (RegisterOperand("x8"), ImmediateOperand(0x100001000))

    def test_ldr_memory_operand(self):
        insn = self.decoder.decode(bytes.fromhex("000940f9"), 0x100000004)
        assert insn.mnemonic == "ldr"
        assert insn.operands[0] == RegisterOperand("x0")
        mem = insn.operands[1]
        assert isinstance(mem, MemoryOperand)
        assert mem.base == "x8"
        assert mem.displacement == 0x10
        assert "x0" in insn.regs_written
        assert "x8" in insn.regs_read

    def test_branch_is_jump(self):
        insn = self.decoder.decode(bytes.fromhex("02000014"), 0x100000008)
        assert insn.mnemonic == "b"
        assert "jump" in insn.groups
        assert insn.operands == (ImmediateOperand(0x100000010),)

    def test_cbz_has_two_operands(self):
        insn = self.decoder.decode(bytes.fromhex("400000b4"), 0x10000000C)
        assert insn.mnemonic == "cbz"
        assert "jump" in insn.groups
        assert insn.operands == (RegisterOperand("x0"), ImmediateOperand(0x100000014))

    def test_text_and_next(self):
        insn = self.decoder.decode(bytes.fromhex("1f2003d5"), 0x2000)
        assert insn.text == "nop"
        assert str(insn) == "nop"
        assert insn.next == 0x2004

    def test_invalid_bytes(self):
        assert self.decoder.decode(b"\xff\xff\xff\xff", 0x2000) is None

    def test_short_data(self):
        assert self.decoder.decode(b"\x1f\x20", 0x2000) is None

    def test_odd_address_is_not_thumb(self):
        assert not self.decoder.is_thumb(0x2001)


# =============================================================================
# ARM / Thumb
# =============================================================================

class TestArmDecoder:
    """Tests for 32-bit ARM and Thumb decoding."""

    def setup_method(self):
        self.decoder = CapstoneDecoder("arm")

    def test_arm_mode(self):
        insn = self.decoder.decode(bytes.fromhex("1eff2fe1"), 0x8000)
        assert insn.mnemonic == "bx"
        assert insn.operands == (RegisterOperand("lr"),)
        assert insn.next == 0x8004
        assert not insn.thumb

    def test_thumb_bit_selects_thumb(self):
        insn = self.decoder.decode(bytes.fromhex("00bf"), 0x8001)
        assert insn.mnemonic == "nop"
        assert insn.size == 2
        assert insn.address == 0x8000
        assert insn.thumb
        assert insn.next == 0x8003


class TestUnsupported:
    """Only the two ARM families have decoders."""

    @pytest.mark.parametrize("arch", ["x64", "ia32", "mips"])
    def test_rejected(self, arch):
        with pytest.raises(ArchitectureUnsupportedError):
            CapstoneDecoder(arch)
