"""
Address Classifier
==================

Locates the region containing a pointer and renders the literal it refers
to with that region's reader.

Copyright (c) 2025-2026 Machscope Contributors
"""

import logging
from typing import Dict, Optional, Sequence

from .literals import LITERAL_READERS, LiteralReader
from .regions import Region

logger = logging.getLogger(__name__)


class AddressClassifier:
    """
    First-match classifier over a region map.

    The scan is linear in enumeration order and stops at the first region
    containing the pointer, whether or not that region has a reader.

    Attributes:
        regions: Region map built for the current call
        target: ProcessTarget the readers read from
        readers: Section name -> LiteralReader
    """

    def __init__(
        self,
        regions: Sequence[Region],
        target,
        readers: Optional[Dict[str, LiteralReader]] = None,
    ):
        self.regions = regions
        self.target = target
        self.readers = LITERAL_READERS if readers is None else readers

    def region_for(self, pointer: int) -> Optional[Region]:
        """First region whose interval contains `pointer`."""
        for region in self.regions:
            if pointer in region:
                return region
        return None

    def classify(self, pointer: int) -> Optional[str]:
        """
        Render the literal at `pointer`.

        Returns:
            The literal, or None when no region contains the pointer or the
            containing region has no reader.

        Raises:
            MemoryAccessError: If the reader cannot read the literal
        """
        region = self.region_for(pointer)
        if region is None:
            return None

        logger.debug(f"0x{pointer:x} is in {region.name}")
        reader = self.readers.get(region.name) if region.name else None
        if reader is None:
            return None
        return reader(self.target, pointer)
