"""Python front-end: parses a project and resolves names into a :class:`Snapshot`.

Uses the built-in ``ast`` module.  Resolution runs in four passes:

1. parse every file under the root,
2. declare every binding (defs, classes, assignments, parameters, imports),
3. resolve ``from`` imports across modules (following re-export chains),
4. resolve class bases, ``self.x`` attributes and every remaining identifier.

The front-end is deliberately shallow: it is a scope resolver with a little
receiver typing (``self``, ``x = Cls()``, ``x: Cls``), not a type checker.
Identifiers it cannot resolve are simply left out of the usage table.
"""

from __future__ import annotations

import ast
import logging
import time
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from . import config
from .cancellation import CancelToken, check_cancelled
from .errors import LoadFailure
from .models import (
    KIND_CONSTANT,
    KIND_FUNCTION,
    KIND_METHOD,
    KIND_PACKAGE,
    KIND_TYPE,
    KIND_VARIABLE,
    Declaration,
    Identifier,
    ImportRecord,
)
from .snapshot import LoadMode, Scope, Snapshot, SourceFile, is_test_file
from .syntax import dotted_name, is_scope_node, iter_identifiers, iter_nodes

logger = logging.getLogger(__name__)

_SCOPE_KINDS = {
    ast.ClassDef: "class",
    ast.FunctionDef: "function",
    ast.AsyncFunctionDef: "function",
    ast.Lambda: "lambda",
    ast.ListComp: "comprehension",
    ast.SetComp: "comprehension",
    ast.DictComp: "comprehension",
    ast.GeneratorExp: "comprehension",
}

_EXTERNAL = object()

Receiver = Union[Scope, Declaration, object, None]


# ===================================================================
# Helpers
# ===================================================================

def discover_files(root: Path) -> List[Path]:
    """Return every Python file under *root*, skipping vendored and hidden dirs."""
    files = []
    for fp in sorted(root.rglob("*.py")):
        rel_parts = fp.relative_to(root).parts[:-1]
        if any(part in config.SKIP_DIRS or part.startswith(".") for part in rel_parts):
            continue
        if any(part.endswith(".egg-info") for part in rel_parts):
            continue
        files.append(fp)
    return files


def module_name_for(rel_path: str, root: Path) -> str:
    parts = list(Path(rel_path).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts) or root.name


def is_constant_name(name: str) -> bool:
    return name.isupper() and name.strip("_") != ""


def render_signature(node: ast.AST, drop_receiver: bool) -> str:
    """Render a callable's parameter/return annotations for shape comparison.

    Parameter names are not part of the shape except for keyword-only ones.
    """
    args = node.args
    positional = list(args.posonlyargs) + list(args.args)
    if drop_receiver and positional:
        positional = positional[1:]

    def ann(a: ast.arg) -> str:
        return ast.unparse(a.annotation) if a.annotation is not None else "Any"

    parts = [ann(a) for a in positional]
    if args.vararg:
        parts.append("*" + ann(args.vararg))
    parts.extend(f"{a.arg}={ann(a)}" for a in args.kwonlyargs)
    if args.kwarg:
        parts.append("**" + ann(args.kwarg))
    rendered = f"({', '.join(parts)})"
    returns = getattr(node, "returns", None)
    if returns is not None:
        rendered += f" -> {ast.unparse(returns)}"
    return rendered


def decorator_names(node: ast.AST) -> List[str]:
    names = []
    for dec in getattr(node, "decorator_list", []):
        target = dec.func if isinstance(dec, ast.Call) else dec
        names.append(dotted_name(target) or ast.unparse(target))
    return names


def _collect_hints(tree: ast.Module) -> Dict[int, str]:
    """Map binding nodes to the dotted name of the type they most likely hold."""
    hints: Dict[int, str] = {}
    for node in ast.walk(tree):
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Call):
            hint = dotted_name(node.value.func)
            if hint:
                for target in node.targets:
                    if isinstance(target, (ast.Name, ast.Attribute)):
                        hints[id(target)] = hint
        elif isinstance(node, ast.AnnAssign):
            hint = dotted_name(node.annotation)
            if hint:
                hints[id(node.target)] = hint
        elif isinstance(node, ast.arg) and node.annotation is not None:
            hint = dotted_name(node.annotation)
            if hint:
                hints[id(node)] = hint
    return hints


def _module_all(tree: ast.Module) -> Optional[Set[str]]:
    """Return the names listed in a module-level ``__all__``, if any."""
    names: Optional[Set[str]] = None
    for stmt in tree.body:
        value = None
        if isinstance(stmt, ast.Assign) and any(
            isinstance(t, ast.Name) and t.id == "__all__" for t in stmt.targets
        ):
            names, value = set(), stmt.value
        elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name) \
                and stmt.target.id == "__all__":
            names, value = set(), stmt.value
        elif isinstance(stmt, ast.AugAssign) and isinstance(stmt.target, ast.Name) \
                and stmt.target.id == "__all__":
            names, value = names or set(), stmt.value
        if isinstance(value, (ast.List, ast.Tuple, ast.Set)):
            for elt in value.elts:
                if isinstance(elt, ast.Constant) and isinstance(elt.value, str):
                    names.add(elt.value)
    return names


class _PendingImport:
    """A ``from m import x`` binding waiting for module *m* to be declared."""

    def __init__(self, sf: SourceFile, scope: Scope, ident: Identifier, source: str) -> None:
        self.sf = sf
        self.scope = scope
        self.ident = ident
        self.source = source
        self.alias: ast.alias = ident.node
        self.alias_decl: Optional[Declaration] = None

    @property
    def key(self) -> Tuple[str, int, int]:
        return (self.sf.rel_path, self.ident.line, self.ident.column)


# ===================================================================
# Front-end
# ===================================================================

class PythonFrontEnd:
    """Build a :class:`Snapshot` for every Python file below *project_root*."""

    def __init__(self, project_root: Path, cancel: Optional[CancelToken] = None) -> None:
        self.project_root = project_root
        self.cancel = cancel
        self.snapshot: Optional[Snapshot] = None
        self._idents: Dict[str, List[Identifier]] = {}
        self._scopes: Dict[str, Dict[int, Scope]] = {}
        self._hints: Dict[str, Dict[int, str]] = {}
        self._all_names: Dict[str, Optional[Set[str]]] = {}
        self._pending: List[_PendingImport] = []
        self._self_stores: List[Tuple[SourceFile, Scope, Identifier, Declaration]] = []
        self._function_scopes: Dict[Declaration, Scope] = {}

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse_file(self, file_path: Path) -> SourceFile:
        rel_path = file_path.relative_to(self.project_root).as_posix()
        try:
            raw = file_path.read_bytes()
            mtime = file_path.stat().st_mtime_ns
            text = raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadFailure(f"cannot read {rel_path}: {exc}") from exc
        try:
            tree = ast.parse(text, filename=rel_path)
        except SyntaxError as exc:
            raise LoadFailure(f"syntax error in {rel_path}:{exc.lineno}: {exc.msg}") from exc
        return SourceFile(
            path=file_path,
            rel_path=rel_path,
            module=module_name_for(rel_path, self.project_root),
            source=raw,
            lines=raw.splitlines(keepends=True),
            tree=tree,
            mtime=mtime,
            is_test=is_test_file(rel_path),
        )

    def parse_project(self, mode: LoadMode = LoadMode.FULL) -> Snapshot:
        """Parse and (in FULL mode) resolve the whole project.

        Raises:
            LoadFailure: root missing, unreadable file or syntax error
        """
        root = self.project_root
        if not root.is_dir():
            raise LoadFailure(f"not a directory: {root}")

        started = time.time()
        snapshot = Snapshot(root=root, mode=mode)
        self.snapshot = snapshot
        for fp in discover_files(root):
            check_cancelled(self.cancel)
            sf = self.parse_file(fp)
            snapshot.files[sf.rel_path] = sf
            snapshot.modules.setdefault(sf.module, sf.rel_path)

        if mode == LoadMode.FULL:
            for sf in snapshot.iter_files():
                self._declare_file(sf)
            self._resolve_imports()
            self._resolve_classes()
            self._resolve_self_stores()
            for sf in snapshot.iter_files():
                self._resolve_file(sf)
            self._assign_exported()

        logger.info(
            "Loaded %d files (%d declarations) from %s in %.2fs",
            len(snapshot.files), len(snapshot.declarations), root, time.time() - started,
        )
        return snapshot

    # ------------------------------------------------------------------
    # Pass 2: declarations
    # ------------------------------------------------------------------

    def _build_scopes(self, sf: SourceFile) -> Dict[int, Scope]:
        module_scope = Scope("module", sf.tree, None, "", sf.module, sf)
        scopes: Dict[int, Scope] = {id(sf.tree): module_scope}
        for node, enclosing in iter_nodes(sf.tree, self.cancel):
            if node is sf.tree or not is_scope_node(node):
                continue
            parent = scopes[id(enclosing)]
            kind = _SCOPE_KINDS[type(node)]
            label = getattr(node, "name", None) or f"<{type(node).__name__.lower()}>"
            qualname = f"{parent.qualname}.{label}" if parent.qualname else label
            scopes[id(node)] = Scope(kind, node, parent, qualname, sf.module, sf)
        return scopes

    def _declare_file(self, sf: SourceFile) -> None:
        snapshot = self.snapshot
        scopes = self._build_scopes(sf)
        snapshot.module_scopes[sf.module] = scopes[id(sf.tree)]
        self._scopes[sf.rel_path] = scopes
        self._hints[sf.rel_path] = _collect_hints(sf.tree)
        self._all_names[sf.module] = _module_all(sf.tree)
        snapshot.imports[sf.rel_path] = self._import_records(sf)

        idents = list(iter_identifiers(sf.tree, sf.lines, self.cancel))
        self._idents[sf.rel_path] = idents
        for ident in idents:
            scope = scopes[id(ident.scope)]
            node = ident.node
            if isinstance(node, ast.Global):
                scope.globals.add(ident.name)
            elif isinstance(node, ast.Nonlocal):
                scope.nonlocals.add(ident.name)
            elif isinstance(node, ast.alias):
                self._declare_import(sf, scope, ident)
            elif not ident.binding:
                continue
            elif isinstance(node, ast.Attribute):
                self._declare_attribute(sf, scope, ident)
            else:
                self._bind(sf, scope, ident)

    def _binding_scope(self, scope: Scope, name: str) -> Scope:
        if name in scope.globals:
            return scope.module_scope()
        if name in scope.nonlocals:
            current = scope.parent
            while current is not None:
                if current.kind == "function" and name in current.symbols:
                    return current
                current = current.parent
        return scope

    def _bind(self, sf: SourceFile, scope: Scope, ident: Identifier) -> None:
        target = self._binding_scope(scope, ident.name)
        existing = target.symbols.get(ident.name)
        if existing is not None:
            self.snapshot.defs[(sf.rel_path, ident.line, ident.column)] = existing
            return

        node = ident.node
        scopes = self._scopes[sf.rel_path]
        hints = self._hints[sf.rel_path]
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            kind = KIND_METHOD if target.kind == "class" else KIND_FUNCTION
        elif isinstance(node, ast.ClassDef):
            kind = KIND_TYPE
        elif target.kind in ("module", "class") and is_constant_name(ident.name):
            kind = KIND_CONSTANT
        else:
            kind = KIND_VARIABLE

        decl = self._declare(sf, target, ident, kind)
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            decl.decorators = decorator_names(node)
            is_static = "staticmethod" in decl.decorators
            decl.signature = render_signature(node, drop_receiver=kind == KIND_METHOD and not is_static)
            decl.type_hint = dotted_name(node.returns)
            scopes[id(node)].declaration = decl
            self._function_scopes[decl] = scopes[id(node)]
        elif isinstance(node, ast.ClassDef):
            decl.decorators = decorator_names(node)
            class_scope = scopes[id(node)]
            class_scope.declaration = decl
            self.snapshot.class_scopes[decl] = class_scope
        elif isinstance(node, ast.arg):
            decl.is_parameter = True
            decl.type_hint = hints.get(id(node))
            decl.instance_of = self._receiver_class(scope, node)
        else:
            decl.type_hint = hints.get(id(node))

    def _declare(self, sf: SourceFile, target: Scope, ident: Identifier, kind: str) -> Declaration:
        owner = target.qualname
        decl = Declaration(
            name=ident.name,
            kind=kind,
            package=sf.module,
            file_path=sf.rel_path,
            line=ident.line,
            column=ident.column,
            qualname=f"{owner}.{ident.name}" if owner else ident.name,
            owner=owner,
            node=ident.node,
            scope=target,
        )
        target.symbols.setdefault(ident.name, decl)
        self.snapshot.declarations.append(decl)
        self.snapshot.defs[decl.key] = decl
        return decl

    @staticmethod
    def _receiver_class(scope: Scope, arg: ast.arg) -> Optional[Declaration]:
        """Class bound to the first parameter of a method (``self``/``cls``)."""
        func = scope.node
        if scope.kind != "function" or scope.parent is None or scope.parent.kind != "class":
            return None
        positional = list(func.args.posonlyargs) + list(func.args.args)
        if not positional or positional[0] is not arg:
            return None
        if "staticmethod" in decorator_names(func):
            return None
        return scope.parent.declaration

    def _declare_attribute(self, sf: SourceFile, scope: Scope, ident: Identifier) -> None:
        value = ident.node.value
        if not isinstance(value, ast.Name):
            return
        receiver = scope.lookup(value.id)
        if receiver is not None and receiver.is_parameter and receiver.instance_of is not None:
            self._self_stores.append((sf, scope, ident, receiver.instance_of))

    def _declare_import(self, sf: SourceFile, scope: Scope, ident: Identifier) -> None:
        stmt = ident.parent
        alias: ast.alias = ident.node
        key = (sf.rel_path, ident.line, ident.column)
        target = self._binding_scope(scope, ident.name)

        if isinstance(stmt, ast.Import):
            existing = target.symbols.get(ident.name)
            if existing is not None:
                self.snapshot.defs[key] = existing
                return
            module = alias.name if alias.asname else alias.name.split(".")[0]
            decl = self._declare(sf, target, ident, KIND_PACKAGE)
            if module in self.snapshot.module_scopes or module in self.snapshot.modules:
                decl.target_module = module
            return

        pending = _PendingImport(sf, target, ident, self._absolute_module(sf, stmt))
        if ident.binding:
            # "as" name: always its own declaration, linked once the source resolves
            existing = target.symbols.get(ident.name)
            if existing is not None:
                self.snapshot.defs[key] = existing
                return
            decl = self._declare(sf, target, ident, KIND_PACKAGE)
            pending.alias_decl = decl
        self._pending.append(pending)

    def _absolute_module(self, sf: SourceFile, stmt: ast.ImportFrom) -> str:
        if not stmt.level:
            return stmt.module or ""
        parts = sf.module.split(".")
        base = parts if sf.rel_path.endswith("__init__.py") else parts[:-1]
        if stmt.level > 1:
            base = base[:max(len(base) - (stmt.level - 1), 0)]
        module = ".".join(base)
        if stmt.module:
            module = f"{module}.{stmt.module}" if module else stmt.module
        return module

    def _import_records(self, sf: SourceFile) -> List[ImportRecord]:
        records = []
        for node in ast.walk(sf.tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    records.append(ImportRecord(
                        sf.rel_path, node.lineno, alias.name, [alias.asname or alias.name],
                    ))
            elif isinstance(node, ast.ImportFrom):
                records.append(ImportRecord(
                    sf.rel_path, node.lineno, self._absolute_module(sf, node),
                    [a.name for a in node.names],
                ))
        records.sort(key=lambda r: r.line)
        return records

    # ------------------------------------------------------------------
    # Pass 3: cross-module imports
    # ------------------------------------------------------------------

    def _lookup_source(self, source: str, name: str, waiting: Set[Tuple[str, str]]):
        snapshot = self.snapshot
        module_scope = snapshot.module_scopes.get(source)
        if module_scope is not None and name in module_scope.symbols:
            return "decl", module_scope.symbols[name]
        submodule = f"{source}.{name}" if source else name
        if submodule in snapshot.module_scopes:
            return "module", submodule
        if (source, name) in waiting:
            return "wait", None
        return "missing", None

    def _resolve_imports(self) -> None:
        snapshot = self.snapshot
        pending = list(self._pending)
        while pending:
            waiting = {
                (p.sf.module, p.ident.name)
                for p in pending
                if p.alias_decl is None and not p.alias.asname and p.scope.kind == "module"
            }
            remaining = []
            for item in pending:
                status, found = self._lookup_source(item.source, item.alias.name, waiting)
                if status == "wait":
                    remaining.append(item)
                    continue
                self._apply_import(item, status, found)
            if len(remaining) == len(pending):
                # import cycle: give up on the rest
                for item in remaining:
                    self._apply_import(item, "missing", None)
                break
            pending = remaining
        logger.debug("Resolved %d from-imports across %d modules",
                     len(self._pending), len(snapshot.module_scopes))

    def _apply_import(self, item: _PendingImport, status: str, found) -> None:
        snapshot = self.snapshot
        if item.alias_decl is not None:
            if status == "decl":
                item.alias_decl.alias_of = found
            elif status == "module":
                item.alias_decl.target_module = found
            return
        if status == "decl":
            snapshot.uses[item.key] = found
            if not item.alias.asname:
                item.scope.symbols.setdefault(item.ident.name, found)
            return
        if item.alias.asname:
            return
        existing = item.scope.symbols.get(item.ident.name)
        if existing is not None:
            snapshot.defs[item.key] = existing
            return
        decl = self._declare(item.sf, item.scope, item.ident, KIND_PACKAGE)
        if status == "module":
            decl.target_module = found

    # ------------------------------------------------------------------
    # Pass 4: classes, attributes and identifier resolution
    # ------------------------------------------------------------------

    def _resolve_classes(self) -> None:
        snapshot = self.snapshot
        for cls in list(snapshot.class_scopes):
            node: ast.ClassDef = cls.node
            resolved: List[Declaration] = []
            names: List[str] = []
            for base in node.bases:
                expr = base.value if isinstance(base, ast.Subscript) else base
                names.append(dotted_name(expr) or ast.unparse(expr))
                decl = self._resolve_expr(expr, cls.scope)
                while decl is not None and decl.alias_of is not None:
                    decl = decl.alias_of
                if decl is not None and decl.kind == KIND_TYPE and decl is not cls:
                    resolved.append(decl)
            for keyword in node.keywords:
                if keyword.arg == "metaclass":
                    names.append(dotted_name(keyword.value) or ast.unparse(keyword.value))
            snapshot.bases[cls] = resolved
            snapshot.base_names[cls] = names

    def _resolve_self_stores(self) -> None:
        snapshot = self.snapshot
        for sf, scope, ident, cls in self._self_stores:
            key = (sf.rel_path, ident.line, ident.column)
            member = snapshot.lookup_member(cls, ident.name)
            if member is not None:
                snapshot.defs[key] = member
                continue
            class_scope = snapshot.class_scopes[cls]
            decl = self._declare(sf, class_scope, ident, KIND_VARIABLE)
            decl.type_hint = self._hints[sf.rel_path].get(id(ident.node))

    def _resolve_file(self, sf: SourceFile) -> None:
        snapshot = self.snapshot
        scopes = self._scopes[sf.rel_path]
        for ident in self._idents[sf.rel_path]:
            check_cancelled(self.cancel)
            key = (sf.rel_path, ident.line, ident.column)
            if key in snapshot.defs or key in snapshot.uses:
                continue
            node = ident.node
            if isinstance(node, ast.alias):
                continue
            scope = scopes[id(ident.scope)]
            if isinstance(node, ast.keyword):
                decl = self._resolve_keyword(ident.parent, ident.name, scope)
            elif isinstance(node, ast.Attribute):
                decl = self._resolve_attribute(node, scope)
            else:
                decl = scope.lookup(ident.name)
            if decl is not None:
                snapshot.uses[key] = decl

    def _resolve_keyword(self, call: ast.Call, name: str, scope: Scope) -> Optional[Declaration]:
        """Parameter of the called function (or class ``__init__``) named by ``name=``."""
        callee = self._resolve_expr(call.func, scope)
        while callee is not None and callee.alias_of is not None:
            callee = callee.alias_of
        if callee is not None and callee.kind == KIND_TYPE:
            callee = self.snapshot.lookup_member(callee, "__init__")
        if callee is None or callee not in self._function_scopes:
            return None
        param = self._function_scopes[callee].symbols.get(name)
        if param is None or not param.is_parameter:
            return None
        if param.node in callee.node.args.posonlyargs:
            return None
        return param

    def _resolve_expr(self, expr: ast.AST, scope: Scope) -> Optional[Declaration]:
        if isinstance(expr, ast.Name):
            return scope.lookup(expr.id)
        if isinstance(expr, ast.Attribute):
            return self._resolve_attribute(expr, scope)
        return None

    def _resolve_attribute(self, node: ast.Attribute, scope: Scope) -> Optional[Declaration]:
        receiver = self._receiver(node.value, scope)
        if receiver is _EXTERNAL:
            return None
        if isinstance(receiver, Scope):
            return receiver.symbols.get(node.attr)
        if isinstance(receiver, Declaration):
            return self.snapshot.lookup_member(receiver, node.attr)
        candidates = self.snapshot.members_named(node.attr)
        if len(candidates) == 1:
            return candidates[0]
        return None

    def _receiver(self, expr: ast.AST, scope: Scope) -> Receiver:
        """Type of *expr* as a module scope, a class declaration, external or unknown."""
        if isinstance(expr, ast.Name):
            decl = scope.lookup(expr.id)
            if decl is None:
                return _EXTERNAL
            return self._type_of(decl)
        if isinstance(expr, ast.Attribute):
            inner = self._receiver(expr.value, scope)
            if inner is _EXTERNAL:
                return _EXTERNAL
            if isinstance(inner, Scope):
                submodule = f"{inner.module}.{expr.attr}"
                if submodule in self.snapshot.module_scopes:
                    return self.snapshot.module_scopes[submodule]
            member = self._resolve_attribute(expr, scope)
            return self._type_of(member) if member is not None else None
        if isinstance(expr, ast.Call):
            callee = self._resolve_expr(expr.func, scope)
            while callee is not None and callee.alias_of is not None:
                callee = callee.alias_of
            if callee is None:
                return None
            if callee.kind == KIND_TYPE:
                return callee
            if callee.kind in (KIND_FUNCTION, KIND_METHOD) and callee.type_hint:
                return self._resolve_hint(callee.type_hint, callee.scope)
        return None

    def _type_of(self, decl: Declaration) -> Receiver:
        while decl.alias_of is not None:
            decl = decl.alias_of
        if decl.kind == KIND_TYPE:
            return decl
        if decl.kind == KIND_PACKAGE:
            if decl.target_module in self.snapshot.module_scopes:
                return self.snapshot.module_scopes[decl.target_module]
            return _EXTERNAL
        if decl.instance_of is not None:
            return decl.instance_of
        if decl.kind in (KIND_VARIABLE, KIND_CONSTANT) and decl.type_hint:
            return self._resolve_hint(decl.type_hint, decl.scope)
        return None

    def _resolve_hint(self, hint: str, scope: Scope) -> Optional[Declaration]:
        parts = hint.split(".")
        decl = scope.lookup(parts[0])
        for part in parts[1:]:
            if decl is None:
                return None
            owner = self._type_of(decl)
            if isinstance(owner, Scope):
                decl = owner.symbols.get(part)
            elif isinstance(owner, Declaration):
                decl = self.snapshot.lookup_member(owner, part)
            else:
                return None
        while decl is not None and decl.alias_of is not None:
            decl = decl.alias_of
        if decl is not None and decl.kind == KIND_TYPE:
            return decl
        return None

    # ------------------------------------------------------------------
    # Export flags
    # ------------------------------------------------------------------

    def _assign_exported(self) -> None:
        for decl in self.snapshot.declarations:
            scope: Scope = decl.scope
            if decl.is_parameter or decl.kind == KIND_PACKAGE:
                decl.exported = False
            elif scope.kind == "module":
                names = self._all_names.get(scope.module)
                decl.exported = decl.name in names if names is not None else not decl.name.startswith("_")
            elif scope.kind == "class":
                decl.exported = not decl.name.startswith("_")
            else:
                decl.exported = False


def load_snapshot(
    root: Path,
    mode: LoadMode = LoadMode.FULL,
    cancel: Optional[CancelToken] = None,
) -> Snapshot:
    """Parse *root* into a fresh :class:`Snapshot`."""
    return PythonFrontEnd(Path(root).resolve(), cancel).parse_project(mode)
