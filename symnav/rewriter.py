"""Structural find-and-replace over Python expressions."""

from __future__ import annotations

import ast
import logging
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Type

from .cancellation import CancelToken, check_cancelled
from .diff_engine import DiffEngine, splice_spans
from .errors import InvalidInputError
from .reports import FileChange, RewriteResult
from .snapshot import Snapshot, SourceFile

logger = logging.getLogger(__name__)

Span = Tuple[int, int, int, int, bytes]


def compile_pattern(text: str, label: str = "pattern") -> ast.expr:
    """Parse *text* as one standalone expression.

    Raises:
        InvalidInputError: *text* is empty or not a valid expression
    """
    if not text or not text.strip():
        raise InvalidInputError(f"{label} must not be empty")
    try:
        return ast.parse(text.strip(), mode="eval").body
    except SyntaxError as exc:
        raise InvalidInputError(f"invalid {label} {text!r}: {exc.msg}") from exc


# ----------------------------------------------------------------------
# Structural equality
# ----------------------------------------------------------------------

def _seq_equal(a: Sequence[Optional[ast.AST]], b: Sequence[Optional[ast.AST]]) -> bool:
    if len(a) != len(b):
        return False
    for x, y in zip(a, b):
        if x is None or y is None:
            if x is not y:
                return False
        elif not nodes_equal(x, y):
            return False
    return True


def _ops_equal(a: Sequence[ast.AST], b: Sequence[ast.AST]) -> bool:
    return len(a) == len(b) and all(type(x) is type(y) for x, y in zip(a, b))


def _keywords_equal(a: Sequence[ast.keyword], b: Sequence[ast.keyword]) -> bool:
    return len(a) == len(b) and all(
        x.arg == y.arg and nodes_equal(x.value, y.value) for x, y in zip(a, b)
    )


def _constant_equal(a: ast.Constant, b: ast.Constant) -> bool:
    return type(a.value) is type(b.value) and a.value == b.value


_COMPARATORS: Dict[Type[ast.AST], Callable[[ast.AST, ast.AST], bool]] = {
    ast.Name: lambda a, b: a.id == b.id,
    ast.Constant: _constant_equal,
    ast.Attribute: lambda a, b: a.attr == b.attr and nodes_equal(a.value, b.value),
    ast.Call: lambda a, b: (
        nodes_equal(a.func, b.func)
        and _seq_equal(a.args, b.args)
        and _keywords_equal(a.keywords, b.keywords)
    ),
    ast.BinOp: lambda a, b: (
        type(a.op) is type(b.op) and nodes_equal(a.left, b.left) and nodes_equal(a.right, b.right)
    ),
    ast.UnaryOp: lambda a, b: type(a.op) is type(b.op) and nodes_equal(a.operand, b.operand),
    ast.BoolOp: lambda a, b: type(a.op) is type(b.op) and _seq_equal(a.values, b.values),
    ast.Compare: lambda a, b: (
        _ops_equal(a.ops, b.ops)
        and nodes_equal(a.left, b.left)
        and _seq_equal(a.comparators, b.comparators)
    ),
    ast.Subscript: lambda a, b: nodes_equal(a.value, b.value) and nodes_equal(a.slice, b.slice),
    ast.Starred: lambda a, b: nodes_equal(a.value, b.value),
    ast.Tuple: lambda a, b: _seq_equal(a.elts, b.elts),
    ast.List: lambda a, b: _seq_equal(a.elts, b.elts),
    ast.Set: lambda a, b: _seq_equal(a.elts, b.elts),
    ast.Dict: lambda a, b: _seq_equal(a.keys, b.keys) and _seq_equal(a.values, b.values),
    ast.IfExp: lambda a, b: (
        nodes_equal(a.test, b.test) and nodes_equal(a.body, b.body) and nodes_equal(a.orelse, b.orelse)
    ),
    ast.Await: lambda a, b: nodes_equal(a.value, b.value),
}


def nodes_equal(a: ast.AST, b: ast.AST) -> bool:
    """Compare two nodes ignoring positions and load/store context."""
    if type(a) is not type(b):
        return False
    comparator = _COMPARATORS.get(type(a))
    if comparator is not None:
        return comparator(a, b)
    return ast.unparse(a) == ast.unparse(b)


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------

_LOW_PRECEDENCE = (
    ast.BoolOp, ast.BinOp, ast.UnaryOp, ast.Compare, ast.IfExp, ast.Lambda, ast.NamedExpr,
)


def _binds_tightly(parent: Optional[ast.AST], field: str) -> bool:
    if isinstance(parent, (ast.BinOp, ast.UnaryOp, ast.BoolOp, ast.Compare, ast.Await)):
        return True
    if isinstance(parent, (ast.Attribute, ast.Subscript)):
        return field == "value"
    if isinstance(parent, ast.Call):
        return field == "func"
    return False


def _needs_parens(replacement: ast.expr, text: str, parent: Optional[ast.AST], field: str) -> bool:
    if isinstance(replacement, ast.NamedExpr):
        return True
    if isinstance(replacement, ast.Tuple):
        return not text.startswith("(")
    if not _binds_tightly(parent, field):
        return False
    if isinstance(replacement, _LOW_PRECEDENCE):
        return True
    # ``1.real`` is a syntax error
    return (
        isinstance(parent, ast.Attribute)
        and isinstance(replacement, ast.Constant)
        and isinstance(replacement.value, (int, float, complex))
        and not isinstance(replacement.value, bool)
    )


def _already_parenthesized(sf: SourceFile, node: ast.expr) -> bool:
    before = sf.lines[node.lineno - 1][node.col_offset - 1:node.col_offset]
    after = sf.lines[node.end_lineno - 1][node.end_col_offset:node.end_col_offset + 1]
    return before == b"(" and after == b")"


# ----------------------------------------------------------------------
# Traversal
# ----------------------------------------------------------------------

def _children(node: ast.AST) -> Iterator[Tuple[str, ast.AST]]:
    for field, value in ast.iter_fields(node):
        if isinstance(value, list):
            for item in value:
                if isinstance(item, ast.AST):
                    yield field, item
        elif isinstance(value, ast.AST):
            yield field, value


def find_matches(
    tree: ast.AST,
    pattern: ast.expr,
    cancel: Optional[CancelToken] = None,
) -> List[Tuple[ast.expr, Optional[ast.AST], str]]:
    """Return ``(node, parent, field)`` for each outermost match, in source order.

    Store and delete targets never match, and f-string internals are skipped.
    A matched subtree is not searched further.
    """
    matches = []
    stack: List[Tuple[ast.AST, Optional[ast.AST], str]] = [(tree, None, "")]
    while stack:
        check_cancelled(cancel)
        node, parent, field = stack.pop()
        if isinstance(node, ast.JoinedStr):
            continue
        if (
            isinstance(node, ast.expr)
            and not isinstance(getattr(node, "ctx", None), (ast.Store, ast.Del))
            and nodes_equal(node, pattern)
        ):
            matches.append((node, parent, field))
            continue
        stack.extend((child, node, name) for name, child in reversed(list(_children(node))))
    return matches


class PatternRewriter:
    """Replace every expression structurally equal to a pattern."""

    def __init__(self, snapshot: Snapshot, cancel: Optional[CancelToken] = None) -> None:
        self.snapshot = snapshot
        self.cancel = cancel

    def rewrite(self, find: str, replace: str, dry_run: bool = False) -> RewriteResult:
        """Rewrite *find* to *replace* across the snapshot.

        Raises:
            InvalidInputError: a pattern does not parse, or a rewritten file would not
            PartialWriteFailure: a write failed after some files were written
        """
        pattern = compile_pattern(find, "find pattern")
        replacement = compile_pattern(replace, "replace pattern")
        text = replace.strip()

        changes: List[FileChange] = []
        for sf in self.snapshot.iter_files():
            spans: List[Span] = []
            for node, parent, field in find_matches(sf.tree, pattern, self.cancel):
                rendered = text
                if _needs_parens(replacement, text, parent, field) and not _already_parenthesized(sf, node):
                    rendered = f"({text})"
                spans.append((
                    node.lineno, node.col_offset, node.end_lineno, node.end_col_offset,
                    rendered.encode("utf-8"),
                ))
            if not spans:
                continue
            updated = splice_spans(sf.source, sf.lines, spans)
            try:
                ast.parse(updated, filename=sf.rel_path)
            except SyntaxError as exc:
                raise InvalidInputError(
                    f"rewriting {sf.rel_path} would produce invalid code: {exc.msg}"
                ) from exc
            changes.append(FileChange(sf.rel_path, sf.source, updated, len(spans)))

        engine = DiffEngine(self.snapshot.root)
        result = RewriteResult(
            changed_files=[c.file_path for c in changes],
            total_changes=sum(c.changes for c in changes),
        )
        if dry_run:
            result.diffs = engine.preview(changes)
            return result
        engine.apply_changes(changes)
        logger.info("Rewrote %d expression(s) in %d file(s)", result.total_changes, len(changes))
        return result
