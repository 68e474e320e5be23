"""Safe identifier rename across a project."""

from __future__ import annotations

import ast
import keyword
import logging
from typing import List, Optional

from .cancellation import CancelToken
from .diff_engine import DiffEngine, Edit, splice
from .errors import InvalidInputError
from .models import Declaration
from .reports import FileChange, RenameResult
from .snapshot import Scope, Snapshot, SourceFile
from .symbol_index import SymbolIndex, matches_across_representations
from .syntax import iter_identifiers

logger = logging.getLogger(__name__)


def validate_identifier(name: str) -> None:
    if not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidInputError(f"{name!r} is not a valid Python identifier")


def _all_entries(sf: SourceFile, name: str) -> List[Edit]:
    """Edits for string entries of a module-level ``__all__`` naming *name*."""
    edits: List[Edit] = []
    for stmt in sf.tree.body:
        if isinstance(stmt, (ast.Assign, ast.AugAssign, ast.AnnAssign)):
            targets = stmt.targets if isinstance(stmt, ast.Assign) else [stmt.target]
            if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
                continue
            if not isinstance(stmt.value, (ast.List, ast.Tuple, ast.Set)):
                continue
            for elt in stmt.value.elts:
                if not (isinstance(elt, ast.Constant) and elt.value == name):
                    continue
                start = elt.col_offset + 1
                encoded = name.encode("utf-8")
                if sf.lines[elt.lineno - 1][start:start + len(encoded)] == encoded:
                    edits.append((elt.lineno, start, start + len(encoded), b""))
    return edits


class RenameEngine:
    """Rename every occurrence of one declaration.

    Re-serialisation splices new names into the original bytes, so
    formatting and comments survive untouched.
    """

    def __init__(self, snapshot: Snapshot, cancel: Optional[CancelToken] = None) -> None:
        self.snapshot = snapshot
        self.cancel = cancel

    def rename(
        self,
        old_name: str,
        new_name: str,
        kind: Optional[str] = None,
        dry_run: bool = False,
    ) -> RenameResult:
        """Rename *old_name* (or ``Owner.member``) to *new_name*.

        Args:
            old_name: Current name, optionally qualified by its class
            new_name: Replacement identifier
            kind: Optional declaration kind filter
            dry_run: Only produce diffs, never touch the disk

        Returns:
            RenameResult; collisions are warnings and do not block

        Raises:
            InvalidInputError: *new_name* is not an identifier
            NotFoundError: *old_name* does not resolve
            PartialWriteFailure: a write failed after some files were written
        """
        if old_name == new_name:
            return RenameResult(collisions=[f"new name {new_name!r} is identical to the old name"])
        validate_identifier(new_name)

        target = SymbolIndex(self.snapshot).resolve_qualified(old_name, kind)
        changes = self._plan(target, new_name)
        collisions = self._collisions(target, new_name, changes)
        for message in collisions:
            logger.warning("Rename collision: %s", message)

        engine = DiffEngine(self.snapshot.root)
        result = RenameResult(
            changed_files=[c.file_path for c in changes],
            collisions=collisions,
        )
        if dry_run:
            result.diffs = engine.preview(changes)
            return result
        engine.apply_changes(changes)
        logger.info("Renamed %s -> %s in %d file(s)", target.qualname, new_name, len(changes))
        return result

    def _plan(self, target: Declaration, new_name: str) -> List[FileChange]:
        replacement = new_name.encode("utf-8")
        changes: List[FileChange] = []
        for sf in self.snapshot.iter_files():
            edits: List[Edit] = []
            for ident in iter_identifiers(sf.tree, sf.lines, self.cancel):
                if ident.name != target.name:
                    continue
                key = (sf.rel_path, ident.line, ident.column)
                resolved = self.snapshot.defs.get(key) or self.snapshot.uses.get(key)
                if matches_across_representations(resolved, target):
                    edits.append((ident.line, ident.column, ident.end_column, replacement))
            if edits and target.scope is not None and target.scope.kind == "module" \
                    and sf.module == target.package:
                edits.extend(
                    (line, start, end, replacement)
                    for line, start, end, _ in _all_entries(sf, target.name)
                )
            if edits:
                changes.append(FileChange(
                    file_path=sf.rel_path,
                    original=sf.source,
                    updated=splice(sf.lines, edits),
                    changes=len(edits),
                ))
        return changes

    def _collisions(self, target: Declaration, new_name: str, changes: List[FileChange]) -> List[str]:
        collisions: List[str] = []

        def report(existing: Declaration, where: str) -> None:
            message = f"{new_name!r} already declared in {where} at {existing.position}"
            if message not in collisions:
                collisions.append(message)

        scope: Optional[Scope] = target.scope
        if scope is not None:
            existing = scope.symbols.get(new_name)
            if existing is not None:
                report(existing, scope.qualname or scope.module)
            if scope.kind == "class" and scope.declaration is not None:
                inherited = self.snapshot.lookup_member(scope.declaration, new_name)
                if inherited is not None and inherited is not existing:
                    report(inherited, inherited.owner)

        if scope is None or scope.kind != "module":
            return collisions
        # module-level targets may also be shadowed in every importing module
        for change in changes:
            module = self.snapshot.files[change.file_path].module
            module_scope = self.snapshot.module_scopes.get(module)
            if module_scope is None:
                continue
            existing = module_scope.symbols.get(new_name)
            if existing is not None:
                report(existing, module)
        return collisions
