"""
Region Map
==========

Builds the list of named memory regions (one per section of every loaded
module) that literal classification runs against.

Regions keep the order the target reports them in: module order, then
section order. They are neither sorted nor de-duplicated, and lookups are
first-match, so when two sections overlap the one enumerated first wins.

Copyright (c) 2025-2026 Machscope Contributors
"""

from dataclasses import dataclass
from typing import List, Optional

# Mach-O section names are fixed 16-byte fields
SECTION_NAME_LIMIT = 16


@dataclass(frozen=True)
class Region:
    """
    A named, half-open address interval [floor, ceil).

    Attributes:
        name: Section name, truncated to 16 characters (may be None)
        floor: First address of the section
        ceil: First address past the section
    """
    name: Optional[str]
    floor: int
    ceil: int

    def __post_init__(self):
        if self.floor > self.ceil:
            raise ValueError(f"region floor 0x{self.floor:x} above ceil 0x{self.ceil:x}")

    @classmethod
    def from_section(cls, name: Optional[str], base: int, size: int) -> "Region":
        if name is not None:
            name = name[:SECTION_NAME_LIMIT]
        return cls(name, base, base + size)

    def __contains__(self, address: int) -> bool:
        return self.floor <= address < self.ceil

    def __str__(self) -> str:
        return f"{self.name or '?'} [0x{self.floor:x}, 0x{self.ceil:x})"


def build_region_map(target) -> List[Region]:
    """
    Enumerate one Region per section of every loaded module.

    Args:
        target: ProcessTarget to enumerate

    Returns:
        Regions in module order, then section order (possibly empty)
    """
    regions = []
    for module in target.enumerate_modules():
        for section in target.enumerate_sections(module):
            regions.append(Region.from_section(section.name, section.base, section.size))
    return regions
