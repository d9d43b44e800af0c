"""
Shared Test Fixtures
====================

Fixtures for the machscope test suite:

- make_insn: build decoded Instruction objects by hand
- scripted_target: snapshot target whose decoder replays scripted
  instructions (driver tests without capstone encodings)
- arm64_app: snapshot of a small ARM64 program with real encodings, a
  __cstring section and jump-target symbols

Copyright (c) 2025-2026 Machscope Contributors
"""

import pytest

from machscope.disassembler.decoder import Instruction
from machscope.target import SnapshotTarget


CODE_BASE = 0x100000000
DATA_BASE = 0x100001000

# adrp x8, #0x100001000 / ldr x0, [x8, #0x10] / b #0x100000010 /
# cbz x0, #0x100000014 / nop / ret
ARM64_PROGRAM = bytes.fromhex(
    "080000b0"
    "000940f9"
    "02000014"
    "400000b4"
    "1f2003d5"
    "c0035fd6"
)


class ScriptedTarget(SnapshotTarget):
    """
    Snapshot target that decodes from a script instead of memory.

    Attributes:
        script: address -> Instruction
        decoded: addresses decode() was asked for, in order
        memory_touched: True once the memory map or memory was consulted
    """

    def __init__(self, arch: str = "arm64", **kwargs):
        super().__init__(arch, **kwargs)
        self.script = {}
        self.decoded = []
        self.memory_touched = False

    def add_instructions(self, *instructions: Instruction) -> None:
        for insn in instructions:
            self.script[insn.address] = insn

    def decode(self, address):
        self.decoded.append(address)
        return self.script.get(address)

    def find_range(self, address):
        self.memory_touched = True
        return super().find_range(address)

    def read_bytes(self, address, size):
        self.memory_touched = True
        return super().read_bytes(address, size)


def build_insn(address, mnemonic, operands=(), groups=(), op_str="", size=4):
    return Instruction(
        address=address,
        size=size,
        mnemonic=mnemonic,
        op_str=op_str,
        operands=tuple(operands),
        groups=frozenset(groups),
    )


@pytest.fixture
def make_insn():
    """Fixture: factory for hand-built Instruction objects."""
    return build_insn


@pytest.fixture
def scripted_target():
    """
    Fixture: factory for ScriptedTarget.

    The target maps `code_size` bytes of r-x memory at `base`.
    """
    def factory(arch="arm64", base=0x1000, code_size=0x100, protection="r-x"):
        target = ScriptedTarget(arch)
        target.map(base, bytes(code_size), protection)
        return target
    return factory


@pytest.fixture
def arm64_app() -> SnapshotTarget:
    """Fixture: small ARM64 program with a __cstring literal and symbols."""
    target = SnapshotTarget("arm64")
    target.map(CODE_BASE, ARM64_PROGRAM, "r-x")
    data = bytearray(0x40)
    data[0x10:0x13] = b"ok\x00"
    target.map(DATA_BASE, bytes(data), "r--")
    target.add_module(
        "App",
        CODE_BASE,
        0x2000,
        sections=[
            ("__text", CODE_BASE, len(ARM64_PROGRAM)),
            ("__cstring", DATA_BASE, 0x40),
        ],
    )
    target.add_symbol(CODE_BASE + 0x10, "_target_b")
    target.add_symbol(CODE_BASE + 0x14, "_target_cbz")
    return target
