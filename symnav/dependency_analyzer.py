"""Module dependency graph, import cycles and project health metrics."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .cancellation import CancelToken, check_cancelled
from .complexity import ComplexityAnalyzer
from .dead_code import LivenessAnalyzer
from .implementations import is_interface
from .models import KIND_FUNCTION, KIND_METHOD, ImportRecord
from .snapshot import Snapshot, in_package

logger = logging.getLogger(__name__)


def _imported_modules(snapshot: Snapshot, record: ImportRecord) -> List[str]:
    """In-project modules an import statement refers to."""
    found = []
    for name in record.names:
        submodule = f"{record.path}.{name}" if record.path else name
        if submodule in snapshot.modules:
            found.append(submodule)
    if found:
        return found
    # ``import a.b.c`` may name a package whose deepest module is not a file
    parts = record.path.split(".") if record.path else []
    while parts:
        candidate = ".".join(parts)
        if candidate in snapshot.modules:
            return [candidate]
        parts.pop()
    return []


def build_graph(snapshot: Snapshot) -> Dict[str, List[str]]:
    """Module -> sorted in-project modules it imports (self-imports dropped)."""
    graph: Dict[str, List[str]] = {module: [] for module in snapshot.modules}
    for rel_path, records in snapshot.imports.items():
        module = snapshot.files[rel_path].module
        targets = set(graph[module])
        for record in records:
            targets.update(m for m in _imported_modules(snapshot, record) if m != module)
        graph[module] = sorted(targets)
    return graph


def find_cycles(graph: Dict[str, List[str]], cancel: Optional[CancelToken] = None) -> List[List[str]]:
    """Return each elementary cycle met by a depth-first search, once.

    Cycles are rotated to start at their smallest module and closed, e.g.
    ``["a", "b", "a"]``.
    """
    white, grey, black = 0, 1, 2
    color = {module: white for module in graph}
    cycles: List[List[str]] = []
    seen = set()

    for start in sorted(graph):
        if color[start] != white:
            continue
        path = [start]
        color[start] = grey
        stack = [iter(graph[start])]
        while stack:
            check_cancelled(cancel)
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                color[path.pop()] = black
                continue
            if color.get(nxt, black) == grey:
                cycle = path[path.index(nxt):]
                pivot = cycle.index(min(cycle))
                rotated = tuple(cycle[pivot:] + cycle[:pivot])
                if rotated not in seen:
                    seen.add(rotated)
                    cycles.append(list(rotated) + [rotated[0]])
            elif color.get(nxt) == white:
                color[nxt] = grey
                path.append(nxt)
                stack.append(iter(graph[nxt]))
    return cycles


def analyze_dependencies(
    snapshot: Snapshot,
    package: Optional[str] = None,
    cancel: Optional[CancelToken] = None,
) -> Dict[str, Any]:
    """Per-module imports with fan-in/fan-out, plus import cycles."""
    graph = build_graph(snapshot)
    fan_in: Dict[str, int] = {module: 0 for module in graph}
    for targets in graph.values():
        for target in targets:
            fan_in[target] += 1

    modules = {
        module: {
            "imports": targets,
            "fan_in": fan_in[module],
            "fan_out": len(targets),
        }
        for module, targets in sorted(graph.items())
        if in_package(module, package)
    }
    cycles = [
        cycle for cycle in find_cycles(graph, cancel)
        if any(in_package(m, package) for m in cycle)
    ]
    if cycles:
        logger.warning("Found %d import cycle(s)", len(cycles))
    return {"modules": modules, "cycles": cycles}


def metrics_summary(
    snapshot: Snapshot,
    package: Optional[str] = None,
    cancel: Optional[CancelToken] = None,
) -> Dict[str, Any]:
    """Headline counts for a project or package."""
    files = [sf for sf in snapshot.iter_files() if in_package(sf.module, package)]
    classes = [c for c in snapshot.iter_classes() if in_package(c.package, package)]
    functions = [
        d for d in snapshot.declarations
        if d.kind in (KIND_FUNCTION, KIND_METHOD) and in_package(d.package, package)
    ]

    measured = [
        entry
        for entries in ComplexityAnalyzer(snapshot, cancel).analyze(package).values()
        for entry in entries
    ]
    average = sum(e.cyclomatic for e in measured) / len(measured) if measured else 0.0

    report = LivenessAnalyzer(snapshot, cancel).find_dead(include_exported=True, package=package)
    return {
        "modules": len({sf.module for sf in files}),
        "files": len(files),
        "lines": sum(len(sf.lines) for sf in files),
        "classes": len(classes),
        "interfaces": sum(1 for c in classes if is_interface(snapshot, c)),
        "functions": len(functions),
        "average_cyclomatic": round(average, 2),
        "dead": report.total - report.exported_count,
        "exported_unused": report.exported_count,
    }
