"""Listing and reading tools: packages, symbols, references, imports, sources."""

from __future__ import annotations

import ast
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

import toml

from .cancellation import CancelToken
from .dependency_analyzer import build_graph
from .errors import InvalidInputError, NotFoundError, WrongKindError
from .implementations import is_interface
from .models import (
    DECLARATION_KINDS,
    KIND_CONSTANT,
    KIND_FUNCTION,
    KIND_METHOD,
    KIND_PACKAGE,
    KIND_TYPE,
    KIND_VARIABLE,
    ROLE_DEFINITION,
    Declaration,
)
from .reports import Page
from .snapshot import Snapshot, SourceFile, in_package
from .symbol_index import SymbolIndex
from .syntax import line_text
from .usages import UsageCollector

logger = logging.getLogger(__name__)

T = TypeVar("T")

FILE_MODES = ("raw", "summary", "ast")
SCHEMA_DEPTHS = ("summary", "standard", "deep")


def paginate(items: Sequence[T], limit: Optional[int], offset: int = 0) -> Tuple[List[T], Page]:
    """Slice *items*; ``limit=None`` means unlimited.

    Raises:
        InvalidInputError: negative limit or offset
    """
    if limit is not None and limit < 0:
        raise InvalidInputError("limit must be >= 0")
    if offset < 0:
        raise InvalidInputError("offset must be >= 0")
    window = list(items[offset:]) if limit is None else list(items[offset:offset + limit])
    return window, Page(total=len(items), offset=offset, limit=limit)


def page_dict(page: Page) -> Dict[str, Any]:
    return {"total": page.total, "offset": page.offset, "limit": page.limit, "has_more": page.has_more}


def _is_listed(decl: Declaration) -> bool:
    scope = decl.scope
    return (
        scope is not None
        and scope.kind in ("module", "class")
        and decl.kind != KIND_PACKAGE
        and not decl.is_parameter
    )


def resolve_file(snapshot: Snapshot, file: str) -> SourceFile:
    """Find a file by relative or absolute path.

    Raises:
        NotFoundError: the file is not part of the snapshot
    """
    path = Path(file)
    if path.is_absolute():
        try:
            path = path.resolve().relative_to(snapshot.root)
        except ValueError as exc:
            raise NotFoundError(f"{file} is outside {snapshot.root}") from exc
    rel_path = path.as_posix()
    sf = snapshot.files.get(rel_path)
    if sf is None:
        raise NotFoundError(f"file {file!r} not found")
    return sf


# ----------------------------------------------------------------------
# Packages and symbols
# ----------------------------------------------------------------------

def list_packages(snapshot: Snapshot) -> List[str]:
    return sorted(snapshot.modules)


def list_symbols(snapshot: Snapshot, package: Optional[str] = None) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    """Module- and class-level declarations grouped by package, then file."""
    grouped: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
    for decl in sorted(snapshot.declarations, key=lambda d: (d.package, d.file_path, d.line, d.column)):
        if not _is_listed(decl) or not in_package(decl.package, package):
            continue
        grouped.setdefault(decl.package, {}).setdefault(decl.file_path, []).append({
            "kind": decl.kind,
            "name": decl.qualname,
            "line": decl.line,
            "exported": decl.exported,
        })
    return grouped


# ----------------------------------------------------------------------
# References and definitions
# ----------------------------------------------------------------------

def _group_locations(entries: List[Tuple[str, int, str]]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for file, line, snippet in entries:
        grouped.setdefault(file, []).append({"line": line, "snippet": snippet})
    return grouped


def find_references(
    snapshot: Snapshot,
    name: str,
    file: Optional[str] = None,
    kind: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    cancel: Optional[CancelToken] = None,
) -> Dict[str, Any]:
    """Non-definition occurrences of *name*, grouped by file and paginated."""
    target = SymbolIndex(snapshot).resolve_qualified(name, kind)
    rel_path = resolve_file(snapshot, file).rel_path if file else None
    edges = [
        e for e in UsageCollector(snapshot, cancel).collect(target, file=rel_path)
        if e.role != ROLE_DEFINITION
    ]
    window, page = paginate(edges, limit, offset)
    return {
        "references": _group_locations([
            (e.location.file_path, e.location.line, e.snippet) for e in window
        ]),
        **page_dict(page),
    }


def find_definitions(
    snapshot: Snapshot,
    name: str,
    file: Optional[str] = None,
    kind: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Dict[str, Any]:
    """Every binding site of a declaration named *name*, grouped by file.

    Raises:
        NotFoundError: nothing of that name is declared
    """
    short = name.rsplit(".", 1)[-1]
    owner = name.rsplit(".", 1)[0] if "." in name else None
    rel_path = resolve_file(snapshot, file).rel_path if file else None
    sites = []
    for key in sorted(snapshot.defs):
        decl = snapshot.defs[key]
        if decl.name != short or (kind is not None and decl.kind != kind):
            continue
        if owner is not None and decl.owner.rsplit(".", 1)[-1] != owner.rsplit(".", 1)[-1]:
            continue
        if rel_path is not None and key[0] != rel_path:
            continue
        sites.append((key[0], key[1], line_text(snapshot.files[key[0]].lines, key[1])))
    if not sites:
        raise NotFoundError(f"no definitions of {name!r}")
    window, page = paginate(sites, limit, offset)
    return {"definitions": _group_locations(window), **page_dict(page)}


# ----------------------------------------------------------------------
# Imports and interfaces
# ----------------------------------------------------------------------

def list_imports(snapshot: Snapshot, package: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for rel_path in sorted(snapshot.imports):
        if not in_package(snapshot.files[rel_path].module, package):
            continue
        for record in snapshot.imports[rel_path]:
            grouped.setdefault(rel_path, []).append({"path": record.path, "line": record.line})
    return grouped


def list_interfaces(snapshot: Snapshot, package: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
    """Protocols and abstract classes grouped by package, with their own methods."""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for cls in sorted(snapshot.iter_classes(), key=lambda d: (d.package, d.file_path, d.line)):
        if not in_package(cls.package, package) or not is_interface(snapshot, cls):
            continue
        scope = snapshot.class_scopes.get(cls)
        methods = []
        if scope is not None:
            methods = sorted(
                ({"name": d.name, "line": d.line} for d in scope.symbols.values() if d.kind == KIND_METHOD),
                key=lambda m: m["line"],
            )
        grouped.setdefault(cls.package, []).append({
            "name": cls.qualname,
            "file": cls.file_path,
            "line": cls.line,
            "methods": methods,
        })
    return grouped


# ----------------------------------------------------------------------
# Readers
# ----------------------------------------------------------------------

def _node_span(node: ast.AST) -> Tuple[int, int]:
    start = node.lineno
    for decorator in getattr(node, "decorator_list", []):
        start = min(start, decorator.lineno)
    return start, getattr(node, "end_lineno", node.lineno)


def _source_lines(sf: SourceFile, start: int, end: int) -> str:
    return b"".join(sf.lines[start - 1:end]).decode("utf-8")


def read_function(snapshot: Snapshot, name: str) -> Dict[str, Any]:
    """Source of a function or ``Class.method``.

    Raises:
        NotFoundError: *name* does not resolve
        WrongKindError: *name* is not a function or method
    """
    decl = SymbolIndex(snapshot).resolve_qualified(name)
    if decl.kind not in (KIND_FUNCTION, KIND_METHOD) or not isinstance(
        decl.node, (ast.FunctionDef, ast.AsyncFunctionDef)
    ):
        raise WrongKindError(f"{name!r} is a {decl.kind}, not a function")
    sf = snapshot.files[decl.file_path]
    start, end = _node_span(decl.node)
    return {
        "name": decl.name,
        "receiver": decl.owner.rsplit(".", 1)[-1] if decl.owner else "",
        "package": decl.package,
        "file": decl.file_path,
        "start_line": start,
        "end_line": end,
        "source": _source_lines(sf, start, end),
    }


def filter_symbols(
    decls: Iterable[Declaration],
    symbol_kinds: Optional[Sequence[str]] = None,
    name_contains: Optional[str] = None,
    exported_only: bool = False,
) -> List[Declaration]:
    """Keep declarations of the given kinds whose name contains *name_contains* (any case)."""
    needle = name_contains.lower() if name_contains else None
    return [
        d for d in decls
        if (not symbol_kinds or d.kind in symbol_kinds)
        and (needle is None or needle in d.name.lower())
        and (not exported_only or d.exported)
    ]


def _symbol_entry(decl: Declaration, detailed: bool) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"kind": decl.kind, "name": decl.qualname, "line": decl.line, "exported": decl.exported}
    if detailed:
        node = decl.node
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            entry["end_line"] = _node_span(node)[1]
        else:
            entry["end_line"] = decl.line
        entry["signature"] = decl.signature
        entry["type"] = decl.type_hint or ""
        entry["decorators"] = list(decl.decorators)
    return entry


def read_file(
    snapshot: Snapshot,
    file: str,
    mode: str = "raw",
    symbol_kinds: Optional[Sequence[str]] = None,
    name_contains: Optional[str] = None,
    exported_only: bool = False,
) -> Dict[str, Any]:
    """Read one project file as raw source, an outline, or a detailed outline.

    ``summary`` lists imports and module/class-level symbols; ``ast`` adds
    the source plus each symbol's end line, signature, type and
    decorators.  The symbol filters apply to both outline modes.

    Raises:
        InvalidInputError: unknown *mode* or symbol kind
        NotFoundError: the file is not part of the snapshot
    """
    if mode not in FILE_MODES:
        raise InvalidInputError(f"mode must be one of {', '.join(FILE_MODES)}")
    unknown = [k for k in symbol_kinds or () if k not in DECLARATION_KINDS]
    if unknown:
        raise InvalidInputError(f"unknown symbol kind(s): {', '.join(unknown)}")
    sf = resolve_file(snapshot, file)
    result: Dict[str, Any] = {"file": sf.rel_path, "package": sf.module, "lines": len(sf.lines)}
    if mode != "summary":
        result["source"] = sf.text
    if mode == "raw":
        return result
    result["imports"] = [
        {"path": r.path, "line": r.line} for r in snapshot.imports.get(sf.rel_path, [])
    ]
    listed = [
        d for d in sorted(snapshot.declarations, key=lambda d: (d.line, d.column))
        if d.file_path == sf.rel_path and _is_listed(d)
    ]
    result["symbols"] = [
        _symbol_entry(d, detailed=mode == "ast")
        for d in filter_symbols(listed, symbol_kinds, name_contains, exported_only)
    ]
    return result


def read_class(snapshot: Snapshot, name: str, include_methods: bool = True) -> Dict[str, Any]:
    """Fields (class attributes and ``self.x`` stores) and methods of a class.

    Raises:
        NotFoundError: no class of that name
    """
    cls = SymbolIndex(snapshot).resolve_qualified(name, KIND_TYPE)
    scope = snapshot.class_scopes.get(cls)
    members = sorted(scope.symbols.values(), key=lambda d: (d.line, d.column)) if scope else []
    start, end = _node_span(cls.node) if cls.node is not None else (cls.line, cls.line)
    result: Dict[str, Any] = {
        "name": cls.qualname,
        "package": cls.package,
        "file": cls.file_path,
        "start_line": start,
        "end_line": end,
        "bases": list(snapshot.base_names.get(cls, [])),
        "fields": [
            {"name": d.name, "line": d.line, "type": d.type_hint or ""}
            for d in members
            if d.kind in (KIND_VARIABLE, KIND_CONSTANT)
        ],
    }
    if include_methods:
        result["methods"] = [
            {"name": d.name, "line": d.line, "signature": d.signature}
            for d in members
            if d.kind == KIND_METHOD
        ]
    return result


# ----------------------------------------------------------------------
# Project schema
# ----------------------------------------------------------------------

def read_project_metadata(root: Path) -> Dict[str, str]:
    """``name`` and ``requires-python`` from the ``[project]`` table of pyproject.toml."""
    path = root / "pyproject.toml"
    if not path.is_file():
        return {}
    try:
        with open(path, "r") as f:
            data = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.debug("Ignoring unreadable %s: %s", path, exc)
        return {}
    project = data.get("project", {})
    return {key: str(project[key]) for key in ("name", "requires-python") if key in project}


def _external_deps(snapshot: Snapshot) -> List[str]:
    local = {module.split(".")[0] for module in snapshot.modules}
    found: Set[str] = set()
    for records in snapshot.imports.values():
        for record in records:
            top = record.path.split(".")[0] if record.path else ""
            if top and top not in local and top not in sys.stdlib_module_names:
                found.add(top)
    return sorted(found)


def _own_methods(snapshot: Snapshot, cls: Declaration) -> List[Declaration]:
    scope = snapshot.class_scopes.get(cls)
    if scope is None:
        return []
    return sorted((d for d in scope.symbols.values() if d.kind == KIND_METHOD), key=lambda d: d.line)


def project_schema(snapshot: Snapshot, depth: str = "standard") -> Dict[str, Any]:
    """Architecture overview: modules, their imports and the module graph.

    ``summary`` stops at modules and imports.  ``standard`` adds each
    module's exported classes, interfaces, functions and constants plus a
    project-wide interface list; ``deep`` also lists interface methods with
    their signatures and the public methods of every listed class.

    Raises:
        InvalidInputError: unknown *depth*
    """
    if depth not in SCHEMA_DEPTHS:
        raise InvalidInputError(f"depth must be one of {', '.join(SCHEMA_DEPTHS)}")
    metadata = read_project_metadata(snapshot.root)
    detailed = depth != "summary"

    imports_of: Dict[str, Set[str]] = {module: set() for module in snapshot.modules}
    for rel_path, records in snapshot.imports.items():
        module = snapshot.files[rel_path].module
        imports_of[module].update(r.path for r in records if r.path)

    exported: Dict[str, List[Declaration]] = {}
    if detailed:
        for decl in sorted(snapshot.declarations, key=lambda d: (d.file_path, d.line, d.column)):
            scope = decl.scope
            if decl.exported and scope is not None and scope.kind == "module" and decl.package == scope.module:
                exported.setdefault(decl.package, []).append(decl)

    counts = {"packages": len(snapshot.modules), "classes": 0, "interfaces": 0, "functions": 0}
    packages = []
    interfaces = []
    for module in sorted(snapshot.modules):
        entry: Dict[str, Any] = {
            "path": module,
            "file": snapshot.modules[module],
            "imports": sorted(imports_of[module]),
        }
        if detailed:
            symbols: Dict[str, Any] = {"classes": [], "interfaces": [], "functions": [], "constants": []}
            for decl in exported.get(module, []):
                if decl.kind == KIND_TYPE and is_interface(snapshot, decl):
                    symbols["interfaces"].append(decl.name)
                    item: Dict[str, Any] = {"name": decl.name, "defined_in": module}
                    if depth == "deep":
                        item["methods"] = [
                            {"name": m.name, "signature": m.signature} for m in _own_methods(snapshot, decl)
                        ]
                    interfaces.append(item)
                elif decl.kind == KIND_TYPE:
                    symbols["classes"].append(decl.name)
                elif decl.kind == KIND_FUNCTION:
                    symbols["functions"].append(decl.name)
                elif decl.kind == KIND_CONSTANT:
                    symbols["constants"].append(decl.name)
            if depth == "deep":
                symbols["members"] = {
                    decl.name: [m.name for m in _own_methods(snapshot, decl) if m.exported]
                    for decl in exported.get(module, [])
                    if decl.kind == KIND_TYPE and not is_interface(snapshot, decl)
                }
            counts["classes"] += len(symbols["classes"])
            counts["interfaces"] += len(symbols["interfaces"])
            counts["functions"] += len(symbols["functions"])
            entry["symbols"] = symbols
        packages.append(entry)

    schema: Dict[str, Any] = {
        "root": str(snapshot.root),
        "name": metadata.get("name", snapshot.root.name),
        "packages": packages,
        "external_deps": _external_deps(snapshot),
        "dependency_graph": build_graph(snapshot),
        "counts": counts,
    }
    if "requires-python" in metadata:
        schema["python_requires"] = metadata["requires-python"]
    if detailed:
        schema["interfaces"] = interfaces
    return schema
