"""Function complexity: cyclomatic complexity, nesting depth and line span."""

from __future__ import annotations

import ast
import logging
from typing import Dict, List, Optional

from .cancellation import CancelToken, check_cancelled
from .models import KIND_FUNCTION, KIND_METHOD, Complexity
from .reports import FunctionComplexity
from .snapshot import Snapshot, in_package

logger = logging.getLogger(__name__)

# Constructs that add a decision point and nest their body
_BRANCHES = (ast.If, ast.For, ast.AsyncFor, ast.While, ast.Match, ast.Try)
if hasattr(ast, "TryStar"):
    _BRANCHES = _BRANCHES + (ast.TryStar,)

# Decision points that do not open a deeper nesting level
_CLAUSES = (ast.match_case, ast.ExceptHandler, ast.IfExp)

_NESTED_DEFINITIONS = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)


class _ComplexityWalker:
    """Explicit-stack walk with paired enter/exit events per node."""

    def __init__(self, cancel: Optional[CancelToken]) -> None:
        self.cancel = cancel
        self.cyclomatic = 1
        self.depth = 0
        self.max_nesting = 0

    def enter(self, node: ast.AST, parent: Optional[ast.AST]) -> bool:
        """Handle entry into *node*; return True if it opened a nesting level."""
        if isinstance(node, _CLAUSES):
            self.cyclomatic += 1
            return False
        if not isinstance(node, _BRANCHES):
            return False
        self.cyclomatic += 1
        if _is_elif(node, parent):
            return False
        self.depth += 1
        self.max_nesting = max(self.max_nesting, self.depth)
        return True

    def exit(self, nested: bool) -> None:
        if nested:
            self.depth -= 1

    def walk(self, body: List[ast.stmt]) -> None:
        # (node, parent, exiting, nested)
        stack = [
            (stmt, None, False, False) for stmt in reversed(body)
            if not isinstance(stmt, _NESTED_DEFINITIONS)
        ]
        while stack:
            check_cancelled(self.cancel)
            node, parent, exiting, nested = stack.pop()
            if exiting:
                self.exit(nested)
                continue
            nested = self.enter(node, parent)
            stack.append((node, parent, True, nested))
            children = [
                child for child in ast.iter_child_nodes(node)
                if not isinstance(child, _NESTED_DEFINITIONS)
            ]
            stack.extend((child, node, False, False) for child in reversed(children))


def _is_elif(node: ast.AST, parent: Optional[ast.AST]) -> bool:
    return (
        isinstance(node, ast.If)
        and isinstance(parent, ast.If)
        and len(parent.orelse) == 1
        and parent.orelse[0] is node
        and node.col_offset == parent.col_offset
    )


def measure(function: ast.AST, cancel: Optional[CancelToken] = None) -> Complexity:
    """Measure one ``def`` (or ``async def``) node.

    Nested function and class bodies are measured separately, lambdas are
    part of the enclosing function.
    ``lines`` runs from the ``def`` line through the last body line;
    decorators are not counted.

    Raises:
        CancelledError: cancellation observed; no partial result is returned
    """
    walker = _ComplexityWalker(cancel)
    walker.walk(list(function.body))
    lines = getattr(function, "end_lineno", function.lineno) - function.lineno + 1
    return Complexity(lines=lines, max_nesting=walker.max_nesting, cyclomatic=walker.cyclomatic)


class ComplexityAnalyzer:
    """Measure every function and method in a snapshot."""

    def __init__(self, snapshot: Snapshot, cancel: Optional[CancelToken] = None) -> None:
        self.snapshot = snapshot
        self.cancel = cancel

    def analyze(self, package: Optional[str] = None) -> Dict[str, List[FunctionComplexity]]:
        """Return metrics grouped by file, functions in source order."""
        grouped: Dict[str, List[FunctionComplexity]] = {}
        for decl in self.snapshot.declarations:
            if decl.kind not in (KIND_FUNCTION, KIND_METHOD):
                continue
            if not in_package(decl.package, package):
                continue
            if not isinstance(decl.node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            metrics = measure(decl.node, self.cancel)
            grouped.setdefault(decl.file_path, []).append(FunctionComplexity(
                name=decl.qualname,
                package=decl.package,
                file=decl.file_path,
                line=decl.line,
                lines=metrics.lines,
                nesting=metrics.max_nesting,
                cyclomatic=metrics.cyclomatic,
            ))
        for entries in grouped.values():
            entries.sort(key=lambda e: e.line)
        return dict(sorted(grouped.items()))
