"""Liveness analysis: find declarations nothing refers to."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from . import config
from .cancellation import CancelToken
from .errors import InvalidInputError
from .models import (
    KIND_CONSTANT,
    KIND_FUNCTION,
    KIND_METHOD,
    KIND_TYPE,
    KIND_VARIABLE,
    Declaration,
)
from .reports import DeadCodeReport, DeadSymbol
from .snapshot import Snapshot, in_package
from .usages import UsageCollector

logger = logging.getLogger(__name__)

_CANDIDATE_KINDS = {KIND_VARIABLE, KIND_CONSTANT, KIND_TYPE, KIND_FUNCTION}

# Decorators that do not register the function anywhere
_TRANSPARENT_DECORATORS = {
    "staticmethod", "classmethod", "property", "functools.wraps",
    "abstractmethod", "abc.abstractmethod",
}


def is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def is_test_artifact(decl: Declaration) -> bool:
    if decl.kind in (KIND_FUNCTION, KIND_METHOD) and decl.name.startswith("test"):
        return True
    return decl.kind == KIND_TYPE and decl.name.startswith("Test")


def is_dead_candidate(decl: Declaration, include_exported: bool = False) -> bool:
    """Whether *decl* may be reported as dead at all.

    Wildcards, dunders, entry points, test artifacts, parameters and
    decorated definitions (which frameworks usually register) are never
    candidates.  Exported methods are never candidates since they may
    satisfy a protocol the analysis cannot see.
    """
    name = decl.name
    if name == "_" or is_dunder(name) or name in config.ENTRY_POINTS:
        return False
    if decl.is_parameter or is_test_artifact(decl):
        return False
    if any(d not in _TRANSPARENT_DECORATORS and not d.endswith(".setter")
           for d in decl.decorators):
        return False
    if decl.kind == KIND_METHOD:
        return not decl.exported
    if decl.kind not in _CANDIDATE_KINDS:
        return False
    if decl.exported and not include_exported:
        return False
    return True


class LivenessAnalyzer:
    """Classify snapshot declarations as dead or live."""

    def __init__(self, snapshot: Snapshot, cancel: Optional[CancelToken] = None) -> None:
        self.snapshot = snapshot
        self.cancel = cancel

    def find_dead(
        self,
        include_exported: bool = False,
        package: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> DeadCodeReport:
        """Report unused declarations.

        Args:
            include_exported: Also consider exported module-level names
            package: Only report declarations of this package (submodules included)
            limit: Cap on returned symbols (``None`` means no cap)

        Returns:
            DeadCodeReport whose ``total`` ignores *limit*
        """
        if limit is not None and limit < 0:
            raise InvalidInputError("limit must be >= 0")

        counts = UsageCollector(self.snapshot, self.cancel).collect_all()
        subclasses = self._subclasses()
        dead: List[Declaration] = []
        for decl in self.snapshot.declarations:
            if not in_package(decl.package, package):
                continue
            if not is_dead_candidate(decl, include_exported):
                continue
            if counts.get(decl, 0) > 0:
                continue
            if decl.kind == KIND_METHOD and self._dispatched(decl, counts, subclasses):
                continue
            dead.append(decl)

        dead.sort(key=lambda d: (d.package, d.file_path, d.line, d.name))
        by_package: Dict[str, int] = {}
        by_kind: Dict[str, int] = {}
        for decl in dead:
            by_package[decl.package] = by_package.get(decl.package, 0) + 1
            by_kind[decl.kind] = by_kind.get(decl.kind, 0) + 1

        shown = dead if limit is None else dead[:limit]
        report = DeadCodeReport(
            unused=[
                DeadSymbol(d.name, d.kind, d.package, d.file_path, d.line, d.exported)
                for d in shown
            ],
            total=len(dead),
            exported_count=sum(1 for d in dead if d.exported),
            by_package=by_package,
            by_kind=by_kind,
            has_more=len(shown) < len(dead),
        )
        logger.debug("Dead code: %d of %d declarations", report.total, len(self.snapshot.declarations))
        return report

    def _subclasses(self) -> Dict[Declaration, List[Declaration]]:
        children: Dict[Declaration, List[Declaration]] = {}
        for cls, bases in self.snapshot.bases.items():
            for base in bases:
                children.setdefault(base, []).append(cls)
        return children

    def _dispatched(
        self,
        method: Declaration,
        counts: Dict[Declaration, int],
        subclasses: Dict[Declaration, List[Declaration]],
    ) -> bool:
        """Whether a same-named method of a base or subclass is used.

        ``self._step()`` in a base class resolves to the base's method, yet
        dispatches to every override below it.
        """
        owner = method.scope.declaration if method.scope is not None else None
        if owner is None:
            return False
        family = self.snapshot.mro(owner)
        stack = list(subclasses.get(owner, []))
        while stack:
            cls = stack.pop()
            if cls in family:
                continue
            family.append(cls)
            stack.extend(subclasses.get(cls, []))
        for cls in family:
            scope = self.snapshot.class_scopes.get(cls)
            other = scope.symbols.get(method.name) if scope is not None else None
            if other is not None and other is not method and counts.get(other, 0) > 0:
                return True
        return False
