"""
Unit Tests for the Literal Readers and Address Classifier
=========================================================

Builds small Objective-C style memory layouts in a snapshot and checks the
rendered literal for each section kind.

Copyright (c) 2025-2026 Machscope Contributors
"""

import pytest

from machscope.disassembler import LITERAL_READERS, AddressClassifier, Region
from machscope.errors import MemoryAccessError
from machscope.target import SnapshotTarget


BASE = 0x10000


@pytest.fixture
def target():
    """Fixture: 64-bit snapshot with 4 KiB of readable memory at BASE."""
    snap = SnapshotTarget("arm64")
    snap.map(BASE, bytes(0x1000), "rw-")
    return snap


def put_string(target, address, text):
    target.write(address, text.encode("utf-8") + b"\x00")


# =============================================================================
# Readers
# =============================================================================

class TestReaders:
    """Tests for each section reader."""

    def test_cstring(self, target):
        put_string(target, BASE, "hi")
        assert LITERAL_READERS["__cstring"](target, BASE) == '"hi"'

    def test_cstring_empty(self, target):
        assert LITERAL_READERS["__cstring"](target, BASE) == '""'

    def test_cfstring(self, target):
        target.write_pointer(BASE, BASE + 0x100)
        target.write_pointer(BASE + 0x100, BASE + 0x200)
        put_string(target, BASE + 0x200, "Hello")
        assert LITERAL_READERS["__cfstring"](target, BASE) == '@"Hello"'

    def test_method_type_unquoted(self, target):
        put_string(target, BASE, "v16@0:8")
        assert LITERAL_READERS["__objc_methtype"](target, BASE) == "v16@0:8"

    def test_selector(self, target):
        target.write_pointer(BASE + 16, BASE + 0x300)
        put_string(target, BASE + 0x300, "foo:")
        assert LITERAL_READERS["__objc_selrefs"](target, BASE) == "@selector(foo:)"

    def test_selector_32bit(self):
        snap = SnapshotTarget("arm")
        snap.map(BASE, bytes(0x100), "r--")
        snap.write_pointer(BASE + 8, BASE + 0x40)
        snap.write(BASE + 0x40, b"init\x00")
        assert LITERAL_READERS["__objc_selrefs"](snap, BASE) == "@selector(init)"

    def test_classref(self, target):
        target.add_module("UIKit", BASE, 0x1000)
        target.add_symbol(BASE + 0x800, "_OBJC_CLASS_$_UIView")
        target.write_pointer(BASE, BASE + 0x800)
        assert LITERAL_READERS["__objc_classrefs"](target, BASE) == "_OBJC_CLASS_$_UIView"

    def test_superref(self, target):
        target.add_module("App", BASE, 0x1000)
        target.add_symbol(BASE + 0x900, "_OBJC_CLASS_$_NSObject")
        target.write_pointer(BASE, BASE + 0x400)
        target.write_pointer(BASE + 0x408, BASE + 0x900)
        assert LITERAL_READERS["__objc_superrefs"](target, BASE) == "_OBJC_CLASS_$_NSObject"

    def test_protocol(self, target):
        target.write_pointer(BASE, BASE + 0x500)
        target.write_pointer(BASE + 0x508, BASE + 0x600)
        put_string(target, BASE + 0x600, "NSCopying")
        assert LITERAL_READERS["__objc_protorefs"](target, BASE) == "@protocol(NSCopying)"

    def test_ustring(self, target):
        target.write(BASE, "héllo".encode("utf-16-le") + b"\x00\x00")
        assert LITERAL_READERS["__ustring"](target, BASE) == 'u"héllo"'

    def test_read_failure_propagates(self, target):
        target.write_pointer(BASE, 0xDEAD0000)
        with pytest.raises(MemoryAccessError):
            LITERAL_READERS["__cfstring"](target, BASE)


# =============================================================================
# Classifier
# =============================================================================

class TestAddressClassifier:
    """Tests for first-match classification."""

    def test_classifies_cstring(self, target):
        put_string(target, BASE + 0x10, "hi")
        classifier = AddressClassifier([Region("__cstring", BASE, BASE + 0x100)], target)
        assert classifier.classify(BASE + 0x10) == '"hi"'

    def test_outside_all_regions(self, target):
        classifier = AddressClassifier([Region("__cstring", BASE, BASE + 0x100)], target)
        assert classifier.classify(BASE + 0x100) is None
        assert classifier.region_for(BASE + 0x100) is None

    def test_region_without_reader(self, target):
        classifier = AddressClassifier([Region("__data", BASE, BASE + 0x100)], target)
        assert classifier.classify(BASE) is None

    def test_unnamed_region(self, target):
        classifier = AddressClassifier([Region(None, BASE, BASE + 0x100)], target)
        assert classifier.classify(BASE) is None

    def test_first_match_wins(self, target):
        """Overlapping regions: enumeration order decides."""
        put_string(target, BASE, "v8@0:4")
        regions = [
            Region("__objc_methtype", BASE, BASE + 0x40),
            Region("__cstring", BASE, BASE + 0x100),
        ]
        assert AddressClassifier(regions, target).classify(BASE) == "v8@0:4"
        assert AddressClassifier(regions[::-1], target).classify(BASE) == '"v8@0:4"'

    def test_first_match_without_reader_stops_scan(self, target):
        put_string(target, BASE, "hi")
        regions = [
            Region("__data", BASE, BASE + 0x40),
            Region("__cstring", BASE, BASE + 0x100),
        ]
        assert AddressClassifier(regions, target).classify(BASE) is None

    def test_read_failure_propagates(self, target):
        classifier = AddressClassifier([Region("__cstring", 0x50000, 0x50100)], target)
        with pytest.raises(MemoryAccessError):
            classifier.classify(0x50000)
