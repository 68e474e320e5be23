"""Usage collection: every identifier occurrence linked to its declaration."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Optional

from .cancellation import CancelToken
from .models import (
    ROLE_DEFINITION,
    ROLE_TEST_USAGE,
    ROLE_USAGE,
    Declaration,
    Location,
    UsageEdge,
)
from .snapshot import Snapshot, SourceFile
from .symbol_index import matches_across_representations
from .syntax import iter_identifiers, line_text

logger = logging.getLogger(__name__)


class UsageCollector:
    """Walk syntax trees and emit usage edges for declarations.

    Read-only over the snapshot; cancellation is checked at every node.
    """

    def __init__(self, snapshot: Snapshot, cancel: Optional[CancelToken] = None) -> None:
        self.snapshot = snapshot
        self.cancel = cancel

    def _edges_in_file(self, sf: SourceFile, decl: Optional[Declaration], kind: Optional[str]):
        snapshot = self.snapshot
        for ident in iter_identifiers(sf.tree, sf.lines, self.cancel):
            key = (sf.rel_path, ident.line, ident.column)
            resolved = snapshot.defs.get(key)
            is_definition = resolved is not None
            if resolved is None:
                resolved = snapshot.uses.get(key)
            if resolved is None:
                continue
            if kind is not None and resolved.kind != kind:
                continue
            if decl is not None and not matches_across_representations(resolved, decl):
                continue
            if is_definition:
                role = ROLE_DEFINITION
            elif sf.is_test:
                role = ROLE_TEST_USAGE
            else:
                role = ROLE_USAGE
            yield UsageEdge(
                declaration=resolved,
                location=Location(sf.rel_path, ident.line, ident.column),
                snippet=line_text(sf.lines, ident.line),
                role=role,
            )

    def collect(
        self,
        decl: Declaration,
        file: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> List[UsageEdge]:
        """Return every edge resolving to *decl*, in per-file visitation order.

        Args:
            decl: Target declaration
            file: Restrict to one relative file path
            kind: Only keep edges whose declaration has this kind

        Returns:
            Edges grouped by file (files in sorted order)
        """
        edges: List[UsageEdge] = []
        for sf in self.snapshot.iter_files():
            if file is not None and sf.rel_path != file:
                continue
            edges.extend(self._edges_in_file(sf, decl, kind))
        return edges

    def collect_best_context(self, decl: Declaration, kind: Optional[str] = None) -> List[UsageEdge]:
        """Classified edges, deduplicated by (file, line) and sorted."""
        seen = set()
        unique: List[UsageEdge] = []
        for edge in self.collect(decl, kind=kind):
            marker = (edge.location.file_path, edge.location.line)
            if marker in seen:
                continue
            seen.add(marker)
            unique.append(edge)
        unique.sort(key=lambda e: (e.location.file_path, e.location.line, e.snippet))
        return unique

    def collect_all(self) -> Dict[Declaration, int]:
        """Count non-definition edges per declaration over the whole snapshot."""
        counts: Counter = Counter()
        for sf in self.snapshot.iter_files():
            for edge in self._edges_in_file(sf, None, None):
                if edge.role != ROLE_DEFINITION:
                    counts[edge.declaration] += 1
        logger.debug("Counted usages for %d declarations", len(counts))
        return dict(counts)


def sort_edges(edges: List[UsageEdge]) -> List[UsageEdge]:
    return sorted(edges, key=lambda e: (e.location.file_path, e.location.line, e.snippet))
