"""Core data models shared by the front-end, the index and the engines."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

# Declaration kinds
KIND_FUNCTION = "function"
KIND_METHOD = "method"
KIND_VARIABLE = "variable"
KIND_CONSTANT = "constant"
KIND_TYPE = "type"
KIND_PACKAGE = "package"

DECLARATION_KINDS = (
    KIND_FUNCTION, KIND_METHOD, KIND_VARIABLE, KIND_CONSTANT, KIND_TYPE, KIND_PACKAGE,
)

# Usage roles
ROLE_DEFINITION = "definition"
ROLE_USAGE = "usage"
ROLE_TEST_USAGE = "test-usage"

# (file, line, column) of an identifier occurrence
PositionKey = Tuple[str, int, int]


@dataclass(eq=False)
class Declaration:
    """A named entity's defining occurrence.

    Equality is object identity: two instances loaded from different
    snapshots are reconciled by :mod:`symnav.symbol_index`, never by ``==``.
    """

    name: str
    kind: str
    package: str
    file_path: str
    line: int
    column: int
    qualname: str
    owner: str = ""
    exported: bool = False
    signature: str = ""
    is_parameter: bool = False
    decorators: List[str] = field(default_factory=list)
    node: Optional[ast.AST] = field(default=None, repr=False)
    # import bindings: the in-project module they name, or the declaration they alias
    target_module: Optional[str] = None
    alias_of: Optional["Declaration"] = field(default=None, repr=False)
    # receiver typing hints used to resolve ``x.attr``
    type_hint: Optional[str] = None
    instance_of: Optional["Declaration"] = field(default=None, repr=False)
    scope: Any = field(default=None, repr=False)

    @property
    def key(self) -> PositionKey:
        return (self.file_path, self.line, self.column)

    @property
    def position(self) -> str:
        return f"{self.file_path}:{self.line}"

    def canonical(self) -> str:
        """Render a string stable across snapshot reloads."""
        return f"{self.kind} {self.package}.{self.qualname}{self.signature}"


@dataclass(frozen=True)
class Identifier:
    """One identifier occurrence inside a syntax tree (UTF-8 byte columns)."""

    name: str
    line: int
    column: int
    end_column: int
    binding: bool = False
    node: Optional[ast.AST] = field(default=None, compare=False, repr=False)
    scope: Optional[ast.AST] = field(default=None, compare=False, repr=False)
    parent: Optional[ast.AST] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Location:
    file_path: str
    line: int
    column: int = 0


@dataclass
class UsageEdge:
    declaration: Declaration
    location: Location
    snippet: str
    role: str


@dataclass
class ImportRecord:
    """An import statement as seen from one file."""

    file_path: str
    line: int
    path: str
    names: List[str] = field(default_factory=list)


@dataclass
class Complexity:
    lines: int
    max_nesting: int
    cyclomatic: int
