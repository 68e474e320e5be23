"""Result models returned by the engines and the orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FileDiff:
    """Unified diff for one file."""
    path: str
    diff: str


@dataclass
class Page:
    """Pagination envelope shared by paginated listings."""
    total: int
    offset: int = 0
    limit: Optional[int] = None

    @property
    def has_more(self) -> bool:
        return self.limit is not None and self.offset + self.limit < self.total


# ------------------------------------------------------------------
# Liveness
# ------------------------------------------------------------------

@dataclass
class DeadSymbol:
    name: str
    kind: str
    package: str
    file: str
    line: int
    exported: bool


@dataclass
class DeadCodeReport:
    """Unused symbols grouped by package, with untruncated counts."""
    unused: List[DeadSymbol]
    total: int
    exported_count: int
    by_package: Dict[str, int] = field(default_factory=dict)
    by_kind: Dict[str, int] = field(default_factory=dict)
    has_more: bool = False

    def grouped(self) -> Dict[str, List[DeadSymbol]]:
        groups: Dict[str, List[DeadSymbol]] = {}
        for sym in self.unused:
            groups.setdefault(sym.package, []).append(sym)
        return groups


# ------------------------------------------------------------------
# Implementations and complexity
# ------------------------------------------------------------------

@dataclass
class Implementation:
    type: str
    interface: str
    package: str
    file: str
    line: int
    is_type: bool


@dataclass
class FunctionComplexity:
    name: str
    package: str
    file: str
    line: int
    lines: int
    nesting: int
    cyclomatic: int


# ------------------------------------------------------------------
# Context
# ------------------------------------------------------------------

@dataclass
class ContextEntry:
    file: str
    line: int
    snippet: str
    role: str


@dataclass
class Dependency:
    path: str
    files: List[str] = field(default_factory=list)


@dataclass
class BestContext:
    """Everything worth showing about one symbol."""
    definition: ContextEntry
    additional_definitions: List[ContextEntry] = field(default_factory=list)
    key_usages: List[ContextEntry] = field(default_factory=list)
    test_usages: List[ContextEntry] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)


# ------------------------------------------------------------------
# Mutations
# ------------------------------------------------------------------

@dataclass
class RenameResult:
    changed_files: List[str] = field(default_factory=list)
    diffs: List[FileDiff] = field(default_factory=list)
    collisions: List[str] = field(default_factory=list)


@dataclass
class RewriteResult:
    changed_files: List[str] = field(default_factory=list)
    diffs: List[FileDiff] = field(default_factory=list)
    total_changes: int = 0


def to_dict(result: Any) -> Dict[str, Any]:
    """Convert any report dataclass to plain JSON-friendly data."""
    return asdict(result)


@dataclass
class FileChange:
    """New content for one file, derived from the snapshot's original bytes."""
    file_path: str
    original: bytes
    updated: bytes
    changes: int = 0

    def __post_init__(self):
        if self.changes < 0:
            raise ValueError("changes must be >= 0")
