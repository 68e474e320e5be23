"""Name resolution and declaration identity over a snapshot."""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from .errors import NotFoundError
from .models import KIND_TYPE, Declaration
from .snapshot import Snapshot

logger = logging.getLogger(__name__)


def same_declaration(a: Optional[Declaration], b: Optional[Declaration]) -> bool:
    """Strict identity: the same object, or the same package and position key."""
    if a is None or b is None:
        return False
    if a is b:
        return True
    return a.package == b.package and a.key == b.key


def matches_across_representations(a: Optional[Declaration], b: Optional[Declaration]) -> bool:
    """Loose identity used when a declaration may have been reloaded or re-reached.

    Matches when any of these hold:

    * :func:`same_declaration`;
    * same name, same package, same owner and identical shape (signature);
    * same name, package, kind and owner;
    * equal canonical renderings.

    This is lossy: two distinct declarations with the same name, kind and
    owner (for example a name rebound under a different kind) compare equal.
    """
    if a is None or b is None:
        return False
    if same_declaration(a, b):
        return True
    if a.name != b.name or a.package != b.package:
        return False
    if a.owner == b.owner and a.signature == b.signature:
        return True
    if a.kind == b.kind and a.owner == b.owner:
        return True
    return a.canonical() == b.canonical()


class SymbolIndex:
    """Resolve names to declarations in one snapshot."""

    def __init__(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot

    def resolve(self, name: str, kind: Optional[str] = None) -> Declaration:
        """Resolve *name* (optionally filtered by *kind*) to one declaration.

        Search order: module-level scopes (modules in sorted order), then the
        definition table in file/position order.

        Raises:
            NotFoundError: no declaration matches
        """
        for module in sorted(self.snapshot.module_scopes):
            decl = self.snapshot.module_scopes[module].symbols.get(name)
            if decl is None or decl.package != module:
                continue
            if kind is None or decl.kind == kind:
                return decl
        for decl in self.iter_definitions():
            if decl.name == name and (kind is None or decl.kind == kind):
                return decl
        raise NotFoundError(f"symbol {name!r} not found" + (f" (kind {kind})" if kind else ""))

    def resolve_qualified(self, name: str, kind: Optional[str] = None) -> Declaration:
        """Resolve ``Name`` or ``Owner.Member`` (members searched through bases)."""
        if "." not in name:
            return self.resolve(name, kind)
        owner_name, member_name = name.rsplit(".", 1)
        owner = self.resolve(owner_name.split(".")[-1], KIND_TYPE)
        member = self.snapshot.lookup_member(owner, member_name)
        if member is None or (kind is not None and member.kind != kind):
            raise NotFoundError(f"member {member_name!r} not found in {owner.qualname}")
        return member

    def iter_definitions(self) -> Iterator[Declaration]:
        """Declarations in (file, line, column) order of their binding sites."""
        seen = set()
        for key in sorted(self.snapshot.defs):
            decl = self.snapshot.defs[key]
            if id(decl) in seen:
                continue
            seen.add(id(decl))
            yield decl

    def find_all(self, name: str, kind: Optional[str] = None) -> List[Declaration]:
        return [
            d for d in self.iter_definitions()
            if d.name == name and (kind is None or d.kind == kind)
        ]

    def reconcile(self, decl: Declaration) -> Optional[Declaration]:
        """Find the declaration in this snapshot that *decl* (from another load) denotes."""
        loose = None
        for candidate in self.find_all(decl.name):
            if same_declaration(candidate, decl):
                return candidate
            if loose is None and matches_across_representations(candidate, decl):
                loose = candidate
        return loose
