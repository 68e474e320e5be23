"""The semantic snapshot: parsed files plus resolved declaration tables.

A :class:`Snapshot` is produced by :func:`symnav.parser.load_snapshot` and is
treated as immutable by every engine.
"""

from __future__ import annotations

import ast
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

from .models import KIND_METHOD, KIND_TYPE, Declaration, ImportRecord, PositionKey


class LoadMode(str, Enum):
    """How much of the front-end to run for a root."""

    SYNTAX = "syntax"
    FULL = "full"


def in_package(module: str, package: Optional[str]) -> bool:
    """True when *module* is *package* itself or one of its submodules."""
    return package is None or module == package or module.startswith(package + ".")


def is_test_file(rel_path: str) -> bool:
    parts = Path(rel_path).parts
    name = parts[-1] if parts else rel_path
    return (
        name.startswith("test_")
        or name.endswith("_test.py")
        or name == "conftest.py"
        or "tests" in parts[:-1]
    )


@dataclass
class SourceFile:
    path: Path
    rel_path: str
    module: str
    source: bytes
    lines: List[bytes]
    tree: ast.Module
    mtime: int
    is_test: bool = False

    @property
    def text(self) -> str:
        return self.source.decode("utf-8")


class Scope:
    """A lexical scope: module, class, function, lambda or comprehension."""

    def __init__(
        self,
        kind: str,
        node: ast.AST,
        parent: Optional["Scope"],
        qualname: str,
        module: str,
        source_file: SourceFile,
    ) -> None:
        self.kind = kind
        self.node = node
        self.parent = parent
        self.qualname = qualname
        self.module = module
        self.file = source_file
        self.symbols: Dict[str, Declaration] = {}
        self.globals: Set[str] = set()
        self.nonlocals: Set[str] = set()
        self.declaration: Optional[Declaration] = None

    def module_scope(self) -> "Scope":
        scope = self
        while scope.parent is not None:
            scope = scope.parent
        return scope

    def lookup(self, name: str) -> Optional[Declaration]:
        """Resolve *name* from this scope outward (class bodies only enclose themselves)."""
        current: Optional[Scope] = self
        while current is not None:
            if current is self or current.kind != "class":
                if name in current.globals:
                    return self.module_scope().symbols.get(name)
                if name in current.symbols:
                    return current.symbols[name]
            current = current.parent
        return None

    def __repr__(self) -> str:
        return f"Scope({self.kind}, {self.module}:{self.qualname or '<module>'})"


@dataclass
class Snapshot:
    """Parsed-and-resolved view of every Python file under one root."""

    root: Path
    mode: LoadMode
    files: Dict[str, SourceFile] = field(default_factory=dict)
    modules: Dict[str, str] = field(default_factory=dict)
    declarations: List[Declaration] = field(default_factory=list)
    defs: Dict[PositionKey, Declaration] = field(default_factory=dict)
    uses: Dict[PositionKey, Declaration] = field(default_factory=dict)
    module_scopes: Dict[str, Scope] = field(default_factory=dict)
    class_scopes: Dict[Declaration, Scope] = field(default_factory=dict)
    bases: Dict[Declaration, List[Declaration]] = field(default_factory=dict)
    base_names: Dict[Declaration, List[str]] = field(default_factory=dict)
    imports: Dict[str, List[ImportRecord]] = field(default_factory=dict)
    loaded_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def iter_files(self) -> Iterator[SourceFile]:
        for rel_path in sorted(self.files):
            yield self.files[rel_path]

    def file_mtimes(self) -> Dict[str, int]:
        return {str(f.path): f.mtime for f in self.files.values()}

    def module_file(self, module: str) -> Optional[SourceFile]:
        rel_path = self.modules.get(module)
        return self.files.get(rel_path) if rel_path else None

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def iter_classes(self) -> Iterator[Declaration]:
        for decl in self.declarations:
            if decl.kind == KIND_TYPE:
                yield decl

    def mro(self, cls: Declaration) -> List[Declaration]:
        """Return *cls* followed by its in-snapshot bases, depth-first, without repeats."""
        order: List[Declaration] = []
        stack = [cls]
        while stack:
            current = stack.pop()
            if current in order:
                continue
            order.append(current)
            stack.extend(reversed(self.bases.get(current, [])))
        return order

    def lookup_member(self, cls: Declaration, name: str) -> Optional[Declaration]:
        for klass in self.mro(cls):
            scope = self.class_scopes.get(klass)
            if scope is not None and name in scope.symbols:
                return scope.symbols[name]
        return None

    def methods_of(self, cls: Declaration) -> Dict[str, Declaration]:
        """Own and inherited methods of *cls*, nearest definition winning."""
        methods: Dict[str, Declaration] = {}
        for klass in reversed(self.mro(cls)):
            scope = self.class_scopes.get(klass)
            if scope is None:
                continue
            for name, decl in scope.symbols.items():
                if decl.kind == KIND_METHOD:
                    methods[name] = decl
        return methods

    def members_named(self, name: str) -> List[Declaration]:
        found = []
        for scope in self.class_scopes.values():
            decl = scope.symbols.get(name)
            if decl is not None and decl not in found:
                found.append(decl)
        return found
