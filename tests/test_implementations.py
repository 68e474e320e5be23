"""Tests for structural interface matching."""

import pytest

from symnav.errors import NotFoundError, WrongKindError
from symnav.implementations import ImplementationMatcher, is_interface
from symnav.parser import load_snapshot
from symnav.symbol_index import SymbolIndex


class TestFindImplementations:
    """ImplementationMatcher.find_implementations."""

    def test_protocol(self, sample_snapshot):
        found = ImplementationMatcher(sample_snapshot).find_implementations("Storage")
        assert len(found) == 1
        impl = found[0]
        assert impl.type == "MemoryStorage"
        assert impl.interface == "Storage"
        assert impl.file == "sample/store.py"
        assert impl.line == 14
        assert impl.is_type

    def test_abstract_base_class(self, sample_snapshot):
        found = ImplementationMatcher(sample_snapshot).find_implementations("Shape")
        assert [i.type for i in found] == ["Square"]

    def test_signatures_must_match_exactly(self, make_project):
        root = make_project({
            "mod.py": (
                "from typing import Protocol\n"
                "\n"
                "\n"
                "class Reader(Protocol):\n"
                "    def read(self, size: int) -> bytes:\n"
                "        ...\n"
                "\n"
                "\n"
                "class Exact:\n"
                "    def read(self, size: int) -> bytes:\n"
                "        return b''\n"
                "\n"
                "\n"
                "class Loose:\n"
                "    def read(self, size):\n"
                "        return b''\n"
            ),
        })
        found = ImplementationMatcher(load_snapshot(root)).find_implementations("Reader")
        assert [i.type for i in found] == ["Exact"]

    def test_inherited_methods_count(self, make_project):
        root = make_project({
            "mod.py": (
                "from typing import Protocol\n"
                "\n"
                "\n"
                "class Closer(Protocol):\n"
                "    def close(self) -> None:\n"
                "        ...\n"
                "\n"
                "\n"
                "class Base:\n"
                "    def close(self) -> None:\n"
                "        pass\n"
                "\n"
                "\n"
                "class Child(Base):\n"
                "    pass\n"
            ),
        })
        found = ImplementationMatcher(load_snapshot(root)).find_implementations("Closer")
        assert {i.type for i in found} == {"Base", "Child"}

    def test_not_an_interface(self, sample_snapshot):
        with pytest.raises(WrongKindError):
            ImplementationMatcher(sample_snapshot).find_implementations("Foo")

    def test_not_a_class(self, sample_snapshot):
        with pytest.raises(WrongKindError):
            ImplementationMatcher(sample_snapshot).find_implementations("make_foo")

    def test_unknown(self, sample_snapshot):
        with pytest.raises(NotFoundError):
            ImplementationMatcher(sample_snapshot).find_implementations("Missing")


class TestIsInterface:
    """Interface detection."""

    def test_classification(self, sample_snapshot):
        index = SymbolIndex(sample_snapshot)
        assert is_interface(sample_snapshot, index.resolve("Storage"))
        assert is_interface(sample_snapshot, index.resolve("Shape"))
        assert not is_interface(sample_snapshot, index.resolve("Square"))
        assert not is_interface(sample_snapshot, index.resolve("make_foo"))
