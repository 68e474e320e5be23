"""Identifier extraction over Python syntax trees.

Every engine that needs "all identifier occurrences of a file" goes through
:func:`iter_identifiers`, so the front-end, the usage collector and the
rename engine agree on positions.  Positions are 1-based lines and 0-based
UTF-8 byte columns, the same units ``ast`` reports.
"""

from __future__ import annotations

import ast
import re
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .cancellation import CancelToken, check_cancelled
from .models import Identifier

SCOPE_NODES = (
    ast.Module, ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda,
    ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp,
)

_DEF_PREFIX = re.compile(rb"(?:async\s+)?def\s+")
_CLASS_PREFIX = re.compile(rb"class\s+")


def is_scope_node(node: ast.AST) -> bool:
    return isinstance(node, SCOPE_NODES)


def line_text(lines: Sequence[bytes], line: int) -> str:
    """Return the decoded, stripped text of a 1-based *line*."""
    if line < 1 or line > len(lines):
        return ""
    return lines[line - 1].decode("utf-8", errors="replace").strip()


def dotted_name(expr: Optional[ast.AST]) -> Optional[str]:
    """Render ``a``, ``a.b.c`` or ``Optional[a.b]`` style expressions as a dotted name."""
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        base = dotted_name(expr.value)
        return f"{base}.{expr.attr}" if base else None
    if isinstance(expr, ast.Subscript):
        base = dotted_name(expr.value)
        if base in ("Optional", "typing.Optional"):
            return dotted_name(expr.slice)
        return base
    if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
        # string forward references: x: "Foo"
        return expr.value if expr.value.replace(".", "").isidentifier() else None
    return None


# ---------------------------------------------------------------------------
# Per-node identifier extractors
# ---------------------------------------------------------------------------

def _word_at(lines: Sequence[bytes], line: int, start: int, name: str) -> Optional[Tuple[int, int]]:
    if line < 1 or line > len(lines):
        return None
    encoded = name.encode("utf-8")
    if lines[line - 1][start:start + len(encoded)] != encoded:
        return None
    return start, start + len(encoded)


def _search_word(lines: Sequence[bytes], line: int, start: int, pattern: bytes) -> Optional[Tuple[int, int]]:
    if line < 1 or line > len(lines):
        return None
    match = re.compile(pattern).search(lines[line - 1], start)
    if match is None:
        return None
    return match.start(1), match.end(1)


def _name(node: ast.Name, lines: Sequence[bytes]) -> Iterator[Identifier]:
    yield Identifier(
        node.id, node.lineno, node.col_offset, node.end_col_offset,
        binding=isinstance(node.ctx, ast.Store), node=node,
    )


def _attribute(node: ast.Attribute, lines: Sequence[bytes]) -> Iterator[Identifier]:
    size = len(node.attr.encode("utf-8"))
    span = _word_at(lines, node.end_lineno, node.end_col_offset - size, node.attr)
    if span is not None:
        yield Identifier(
            node.attr, node.end_lineno, span[0], span[1],
            binding=isinstance(node.ctx, ast.Store), node=node,
        )


def _definition(prefix: "re.Pattern[bytes]") -> Callable[[ast.AST, Sequence[bytes]], Iterator[Identifier]]:
    def extract(node, lines: Sequence[bytes]) -> Iterator[Identifier]:
        if node.lineno > len(lines):
            return
        match = prefix.match(lines[node.lineno - 1], node.col_offset)
        if match is None:
            return
        span = _word_at(lines, node.lineno, match.end(), node.name)
        if span is not None:
            yield Identifier(node.name, node.lineno, span[0], span[1], binding=True, node=node)
    return extract


def _arg(node: ast.arg, lines: Sequence[bytes]) -> Iterator[Identifier]:
    span = _word_at(lines, node.lineno, node.col_offset, node.arg)
    if span is not None:
        yield Identifier(node.arg, node.lineno, span[0], span[1], binding=True, node=node)


def _call_keywords(node: ast.Call, lines: Sequence[bytes]) -> Iterator[Identifier]:
    for kw in node.keywords:
        if kw.arg is None:
            continue
        span = _word_at(lines, kw.lineno, kw.col_offset, kw.arg)
        if span is not None:
            # the keyword name references a parameter of the callee
            yield Identifier(kw.arg, kw.lineno, span[0], span[1],
                             binding=False, node=kw, parent=node)


def _import(node: ast.Import, lines: Sequence[bytes]) -> Iterator[Identifier]:
    for alias in node.names:
        if alias.asname:
            size = len(alias.asname.encode("utf-8"))
            span = _word_at(lines, alias.end_lineno, alias.end_col_offset - size, alias.asname)
            name = alias.asname
        else:
            name = alias.name.split(".")[0]
            span = _word_at(lines, alias.lineno, alias.col_offset, name)
        if span is not None:
            yield Identifier(name, alias.end_lineno if alias.asname else alias.lineno,
                             span[0], span[1], binding=True, node=alias, parent=node)


def _import_from(node: ast.ImportFrom, lines: Sequence[bytes]) -> Iterator[Identifier]:
    for alias in node.names:
        if alias.name == "*":
            continue
        span = _word_at(lines, alias.lineno, alias.col_offset, alias.name)
        if span is not None:
            # the imported name itself references the source declaration
            yield Identifier(alias.name, alias.lineno, span[0], span[1],
                             binding=False, node=alias, parent=node)
        if alias.asname:
            size = len(alias.asname.encode("utf-8"))
            span = _word_at(lines, alias.end_lineno, alias.end_col_offset - size, alias.asname)
            if span is not None:
                yield Identifier(alias.asname, alias.end_lineno, span[0], span[1],
                                 binding=True, node=alias, parent=node)


def _global(node, lines: Sequence[bytes]) -> Iterator[Identifier]:
    start = node.col_offset
    for name in node.names:
        span = _search_word(lines, node.lineno, start, rb"\b(" + re.escape(name.encode("utf-8")) + rb")\b")
        if span is None:
            continue
        start = span[1]
        yield Identifier(name, node.lineno, span[0], span[1], binding=False, node=node)


def _except_handler(node: ast.ExceptHandler, lines: Sequence[bytes]) -> Iterator[Identifier]:
    if not node.name:
        return
    pattern = rb"\bas\s+(" + re.escape(node.name.encode("utf-8")) + rb")\b"
    span = _search_word(lines, node.lineno, node.col_offset, pattern)
    if span is not None:
        yield Identifier(node.name, node.lineno, span[0], span[1], binding=True, node=node)


def _match_capture(node, lines: Sequence[bytes]) -> Iterator[Identifier]:
    if not node.name:
        return
    size = len(node.name.encode("utf-8"))
    span = _word_at(lines, node.end_lineno, node.end_col_offset - size, node.name)
    if span is not None:
        yield Identifier(node.name, node.end_lineno, span[0], span[1], binding=True, node=node)


_EXTRACTORS: Dict[type, Callable[[ast.AST, Sequence[bytes]], Iterator[Identifier]]] = {
    ast.Name: _name,
    ast.Attribute: _attribute,
    ast.FunctionDef: _definition(_DEF_PREFIX),
    ast.AsyncFunctionDef: _definition(_DEF_PREFIX),
    ast.ClassDef: _definition(_CLASS_PREFIX),
    ast.arg: _arg,
    ast.Call: _call_keywords,
    ast.Import: _import,
    ast.ImportFrom: _import_from,
    ast.Global: _global,
    ast.Nonlocal: _global,
    ast.ExceptHandler: _except_handler,
    ast.MatchAs: _match_capture,
    ast.MatchStar: _match_capture,
}


# ---------------------------------------------------------------------------
# Scope-aware child expansion
# ---------------------------------------------------------------------------

def _all_args(args: ast.arguments) -> List[ast.arg]:
    result = list(args.posonlyargs) + list(args.args)
    if args.vararg:
        result.append(args.vararg)
    result.extend(args.kwonlyargs)
    if args.kwarg:
        result.append(args.kwarg)
    return result


def _children(node: ast.AST, scope: ast.AST) -> List[Tuple[ast.AST, ast.AST]]:
    """Return ``(child, scope)`` pairs in source order.

    Decorators, defaults, annotations, class bases and the first iterable of
    a comprehension are evaluated in the enclosing scope.
    """
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda)):
        args = _all_args(node.args)
        outer: List[ast.AST] = list(getattr(node, "decorator_list", []))
        outer.extend(node.args.defaults)
        outer.extend(d for d in node.args.kw_defaults if d is not None)
        outer.extend(a.annotation for a in args if a.annotation is not None)
        returns = getattr(node, "returns", None)
        if returns is not None:
            outer.append(returns)
        body = node.body if isinstance(node.body, list) else [node.body]
        return ([(d, scope) for d in outer]
                + [(a, node) for a in args]
                + [(stmt, node) for stmt in body])
    if isinstance(node, ast.ClassDef):
        outer = list(node.decorator_list) + list(node.bases) + [k.value for k in node.keywords]
        return [(d, scope) for d in outer] + [(stmt, node) for stmt in node.body]
    if isinstance(node, (ast.ListComp, ast.SetComp, ast.GeneratorExp, ast.DictComp)):
        pairs: List[Tuple[ast.AST, ast.AST]] = []
        if isinstance(node, ast.DictComp):
            pairs.extend([(node.key, node), (node.value, node)])
        else:
            pairs.append((node.elt, node))
        for index, gen in enumerate(node.generators):
            pairs.append((gen.target, node))
            pairs.append((gen.iter, scope if index == 0 else node))
            pairs.extend((cond, node) for cond in gen.ifs)
        return pairs
    if isinstance(node, ast.arg):
        return []
    return [(child, scope) for child in ast.iter_child_nodes(node)]


def iter_nodes(tree: ast.AST, cancel: Optional[CancelToken] = None) -> Iterator[Tuple[ast.AST, ast.AST]]:
    """Depth-first pre-order walk yielding ``(node, enclosing_scope_node)``."""
    stack: List[Tuple[ast.AST, ast.AST]] = [(tree, tree)]
    while stack:
        check_cancelled(cancel)
        node, scope = stack.pop()
        yield node, scope
        stack.extend(reversed(_children(node, scope)))


def iter_identifiers(
    tree: ast.AST,
    lines: Sequence[bytes],
    cancel: Optional[CancelToken] = None,
) -> Iterator[Identifier]:
    """Yield every identifier occurrence in *tree* in visitation order.

    Args:
        tree: Parsed module
        lines: UTF-8 encoded source lines of the module
        cancel: Optional token checked at every node

    Returns:
        Iterator of :class:`Identifier` with ``scope`` set to the scope node
        the name is resolved in.
    """
    for node, scope in iter_nodes(tree, cancel):
        extractor = _EXTRACTORS.get(type(node))
        if extractor is None:
            continue
        for ident in extractor(node, lines):
            yield Identifier(
                ident.name, ident.line, ident.column, ident.end_column,
                binding=ident.binding, node=ident.node, scope=scope, parent=ident.parent,
            )
