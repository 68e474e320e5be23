"""Best-context aggregation for a single symbol."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from . import config
from .cancellation import CancelToken
from .errors import InvalidInputError
from .models import ROLE_DEFINITION, ROLE_TEST_USAGE, ROLE_USAGE, UsageEdge
from .reports import BestContext, ContextEntry, Dependency
from .snapshot import Snapshot
from .symbol_index import SymbolIndex
from .syntax import line_text
from .usages import UsageCollector

logger = logging.getLogger(__name__)


def _entry(edge: UsageEdge) -> ContextEntry:
    return ContextEntry(
        file=edge.location.file_path,
        line=edge.location.line,
        snippet=edge.snippet,
        role=edge.role,
    )


class ContextBuilder:
    """Collect definition, key usages, test usages and dependencies of a symbol."""

    def __init__(self, snapshot: Snapshot, cancel: Optional[CancelToken] = None) -> None:
        self.snapshot = snapshot
        self.cancel = cancel

    def best_context(
        self,
        name: str,
        kind: Optional[str] = None,
        usages: int = config.DEFAULT_USAGE_LIMIT,
        test_usages: int = config.DEFAULT_TEST_USAGE_LIMIT,
        dependencies: int = config.DEFAULT_DEPENDENCY_LIMIT,
    ) -> BestContext:
        """Build the context for *name*.

        Args:
            name: Symbol name (``Owner.member`` allowed)
            kind: Optional declaration kind filter
            usages: Max non-test usages returned
            test_usages: Max test usages returned
            dependencies: Max imports of the defining file(s) returned

        Raises:
            NotFoundError: *name* does not resolve
            InvalidInputError: negative limits
        """
        if min(usages, test_usages, dependencies) < 0:
            raise InvalidInputError("limits must be >= 0")

        index = SymbolIndex(self.snapshot)
        target = index.resolve_qualified(name, kind)
        edges = UsageCollector(self.snapshot, self.cancel).collect_best_context(target)

        definitions = [e for e in edges if e.role == ROLE_DEFINITION]
        primary = next(
            (e for e in definitions if e.location.file_path == target.file_path
             and e.location.line == target.line),
            None,
        )
        if primary is not None:
            definition = _entry(primary)
        else:
            sf = self.snapshot.files[target.file_path]
            definition = ContextEntry(
                target.file_path, target.line, line_text(sf.lines, target.line), ROLE_DEFINITION,
            )

        additional = [_entry(e) for e in definitions if e is not primary]
        for other in index.find_all(target.name, kind):
            if other is target:
                continue
            sf = self.snapshot.files[other.file_path]
            additional.append(ContextEntry(
                other.file_path, other.line, line_text(sf.lines, other.line), ROLE_DEFINITION,
            ))
        additional.sort(key=lambda e: (e.file, e.line))

        key_usages = [_entry(e) for e in edges if e.role == ROLE_USAGE][:usages]
        tests = [_entry(e) for e in edges if e.role == ROLE_TEST_USAGE][:test_usages]

        definition_files = {target.file_path} | {e.location.file_path for e in definitions}
        return BestContext(
            definition=definition,
            additional_definitions=additional,
            key_usages=key_usages,
            test_usages=tests,
            dependencies=self._dependencies(definition_files, dependencies),
        )

    def _dependencies(self, files: set, limit: int) -> List[Dependency]:
        """Imports of *files*, each paired with up to a few files that import it too."""
        importers: Dict[str, List[str]] = {}
        for rel_path, records in self.snapshot.imports.items():
            for record in records:
                importers.setdefault(record.path, [])
                if rel_path not in importers[record.path]:
                    importers[record.path].append(rel_path)

        paths = sorted({
            record.path
            for rel_path in files
            for record in self.snapshot.imports.get(rel_path, [])
            if record.path
        })
        result = []
        for path in paths[:limit]:
            sample = sorted(importers.get(path, []))[:config.DEPENDENCY_FILE_SAMPLE]
            result.append(Dependency(path=path, files=sample))
        return result
