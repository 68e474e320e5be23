"""Tool orchestrator: one entry point per navigation, analysis or refactoring tool."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

from . import config, listers
from .cache import SnapshotCache
from .cancellation import CancelToken
from .complexity import ComplexityAnalyzer
from .context_builder import ContextBuilder
from .dead_code import LivenessAnalyzer
from .dependency_analyzer import analyze_dependencies, metrics_summary
from .errors import InvalidInputError, NavigatorError
from .implementations import ImplementationMatcher
from .models import DECLARATION_KINDS
from .rename_engine import RenameEngine, validate_identifier
from .reports import (
    BestContext,
    DeadCodeReport,
    FunctionComplexity,
    Implementation,
    RenameResult,
    RewriteResult,
)
from .rewriter import PatternRewriter, compile_pattern
from .snapshot import LoadMode, Snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")
PathLike = Union[str, Path]


def _result_count(result: Any) -> int:
    if isinstance(result, RenameResult):
        return len(result.changed_files)
    if isinstance(result, RewriteResult):
        return result.total_changes
    if isinstance(result, DeadCodeReport):
        return result.total
    if isinstance(result, dict) and isinstance(result.get("total"), int):
        return result["total"]
    if isinstance(result, (list, dict)):
        return len(result)
    return 1


def _check_kind(kind: Optional[str]) -> None:
    if kind is not None and kind not in DECLARATION_KINDS:
        raise InvalidInputError(f"unknown kind {kind!r}; expected one of {', '.join(DECLARATION_KINDS)}")


def _check_limits(**limits: Optional[int]) -> None:
    for name, value in limits.items():
        if value is not None and value < 0:
            raise InvalidInputError(f"{name} must be >= 0")


class Navigator:
    """Coordinates the snapshot cache and the engines for every tool call.

    Each public method logs ``started`` with its parameters, ``completed``
    with its result count and elapsed time, or the error that ended it.
    Mutating tools invalidate the root's cache entries once they have
    written anything.
    """

    def __init__(self, cache: Optional[SnapshotCache] = None):
        self.cache = cache if cache is not None else SnapshotCache(watch_roots=True)
        self.cache.start()

    def close(self) -> None:
        self.cache.shutdown()

    def _snapshot(
        self,
        root: PathLike,
        mode: LoadMode = LoadMode.FULL,
        cancel: Optional[CancelToken] = None,
    ) -> Snapshot:
        return self.cache.get(root, mode, cancel)

    def _run(self, tool: str, params: Dict[str, Any], func: Callable[[], T]) -> T:
        started = time.perf_counter()
        logger.info("%s started: %s", tool, ", ".join(f"{k}={v!r}" for k, v in params.items()))
        try:
            result = func()
        except NavigatorError as exc:
            logger.error("%s failed after %.3fs: %s", tool, time.perf_counter() - started, exc)
            raise
        logger.info(
            "%s completed: %d result(s) in %.3fs",
            tool, _result_count(result), time.perf_counter() - started,
        )
        return result

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def list_packages(self, root: PathLike, cancel: Optional[CancelToken] = None) -> List[str]:
        return self._run("list_packages", {"root": str(root)}, lambda: listers.list_packages(
            self._snapshot(root, LoadMode.SYNTAX, cancel),
        ))

    def list_symbols(
        self, root: PathLike, package: Optional[str] = None, cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        return self._run("list_symbols", {"root": str(root), "package": package}, lambda: listers.list_symbols(
            self._snapshot(root, cancel=cancel), package,
        ))

    def find_references(
        self,
        root: PathLike,
        name: str,
        file: Optional[str] = None,
        kind: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        params = {"root": str(root), "name": name, "file": file, "kind": kind, "limit": limit, "offset": offset}

        def run():
            _check_kind(kind)
            _check_limits(limit=limit, offset=offset)
            return listers.find_references(self._snapshot(root, cancel=cancel), name, file, kind, limit, offset, cancel)

        return self._run("find_references", params, run)

    def find_definitions(
        self,
        root: PathLike,
        name: str,
        file: Optional[str] = None,
        kind: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        params = {"root": str(root), "name": name, "file": file, "kind": kind, "limit": limit, "offset": offset}

        def run():
            _check_kind(kind)
            _check_limits(limit=limit, offset=offset)
            return listers.find_definitions(self._snapshot(root, cancel=cancel), name, file, kind, limit, offset)

        return self._run("find_definitions", params, run)

    def list_imports(
        self, root: PathLike, package: Optional[str] = None, cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        return self._run("list_imports", {"root": str(root), "package": package}, lambda: listers.list_imports(
            self._snapshot(root, cancel=cancel), package,
        ))

    def list_interfaces(
        self, root: PathLike, package: Optional[str] = None, cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        return self._run("list_interfaces", {"root": str(root), "package": package}, lambda: listers.list_interfaces(
            self._snapshot(root, cancel=cancel), package,
        ))

    def find_implementations(
        self, root: PathLike, name: str, cancel: Optional[CancelToken] = None,
    ) -> List[Implementation]:
        return self._run("find_implementations", {"root": str(root), "name": name}, lambda: ImplementationMatcher(
            self._snapshot(root, cancel=cancel), cancel,
        ).find_implementations(name))

    def best_context(
        self,
        root: PathLike,
        name: str,
        kind: Optional[str] = None,
        usages: int = config.DEFAULT_USAGE_LIMIT,
        test_usages: int = config.DEFAULT_TEST_USAGE_LIMIT,
        dependencies: int = config.DEFAULT_DEPENDENCY_LIMIT,
        cancel: Optional[CancelToken] = None,
    ) -> BestContext:
        params = {"root": str(root), "name": name, "kind": kind, "usages": usages,
                  "test_usages": test_usages, "dependencies": dependencies}

        def run():
            _check_kind(kind)
            _check_limits(usages=usages, test_usages=test_usages, dependencies=dependencies)
            return ContextBuilder(self._snapshot(root, cancel=cancel), cancel).best_context(
                name, kind, usages, test_usages, dependencies,
            )

        return self._run("best_context", params, run)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def read_function(self, root: PathLike, name: str, cancel: Optional[CancelToken] = None) -> Dict[str, Any]:
        return self._run("read_function", {"root": str(root), "name": name}, lambda: listers.read_function(
            self._snapshot(root, cancel=cancel), name,
        ))

    def read_file(
        self,
        root: PathLike,
        file: str,
        mode: str = "raw",
        symbol_kinds: Optional[List[str]] = None,
        name_contains: Optional[str] = None,
        exported_only: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        def run():
            if mode not in listers.FILE_MODES:
                raise InvalidInputError(f"mode must be one of {', '.join(listers.FILE_MODES)}")
            for kind in symbol_kinds or ():
                _check_kind(kind)
            load_mode = LoadMode.SYNTAX if mode == "raw" else LoadMode.FULL
            return listers.read_file(
                self._snapshot(root, load_mode, cancel), file, mode,
                symbol_kinds=symbol_kinds, name_contains=name_contains, exported_only=exported_only,
            )

        params = {
            "root": str(root), "file": file, "mode": mode, "symbol_kinds": symbol_kinds,
            "name_contains": name_contains, "exported_only": exported_only,
        }
        return self._run("read_file", params, run)

    def project_schema(
        self, root: PathLike, depth: str = "standard", cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        def run():
            if depth not in listers.SCHEMA_DEPTHS:
                raise InvalidInputError(f"depth must be one of {', '.join(listers.SCHEMA_DEPTHS)}")
            return listers.project_schema(self._snapshot(root, cancel=cancel), depth)

        return self._run("project_schema", {"root": str(root), "depth": depth}, run)

    def read_class(
        self,
        root: PathLike,
        name: str,
        include_methods: bool = True,
        cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        params = {"root": str(root), "name": name, "include_methods": include_methods}
        return self._run("read_class", params, lambda: listers.read_class(
            self._snapshot(root, cancel=cancel), name, include_methods,
        ))

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def find_dead_code(
        self,
        root: PathLike,
        include_exported: bool = False,
        package: Optional[str] = None,
        limit: Optional[int] = config.DEFAULT_DEAD_CODE_LIMIT,
        cancel: Optional[CancelToken] = None,
    ) -> DeadCodeReport:
        params = {"root": str(root), "include_exported": include_exported, "package": package, "limit": limit}

        def run():
            _check_limits(limit=limit)
            return LivenessAnalyzer(self._snapshot(root, cancel=cancel), cancel).find_dead(
                include_exported, package, limit,
            )

        return self._run("find_dead_code", params, run)

    def analyze_complexity(
        self, root: PathLike, package: Optional[str] = None, cancel: Optional[CancelToken] = None,
    ) -> Dict[str, List[FunctionComplexity]]:
        return self._run("analyze_complexity", {"root": str(root), "package": package}, lambda: ComplexityAnalyzer(
            self._snapshot(root, cancel=cancel), cancel,
        ).analyze(package))

    def analyze_dependencies(
        self, root: PathLike, package: Optional[str] = None, cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        return self._run("analyze_dependencies", {"root": str(root), "package": package}, lambda: analyze_dependencies(
            self._snapshot(root, cancel=cancel), package, cancel,
        ))

    def metrics_summary(
        self, root: PathLike, package: Optional[str] = None, cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        return self._run("metrics_summary", {"root": str(root), "package": package}, lambda: metrics_summary(
            self._snapshot(root, cancel=cancel), package, cancel,
        ))

    # ------------------------------------------------------------------
    # Refactoring
    # ------------------------------------------------------------------

    def rename(
        self,
        root: PathLike,
        old_name: str,
        new_name: str,
        kind: Optional[str] = None,
        dry_run: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> RenameResult:
        params = {"root": str(root), "old": old_name, "new": new_name, "kind": kind, "dry_run": dry_run}

        def run():
            _check_kind(kind)
            if old_name != new_name:
                validate_identifier(new_name)
            snapshot = self._snapshot(root, cancel=cancel)
            try:
                return RenameEngine(snapshot, cancel).rename(old_name, new_name, kind, dry_run)
            finally:
                if not dry_run:
                    self.cache.invalidate(root)

        return self._run("rename", params, run)

    def rewrite(
        self,
        root: PathLike,
        find: str,
        replace: str,
        dry_run: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> RewriteResult:
        params = {"root": str(root), "find": find, "replace": replace, "dry_run": dry_run}

        def run():
            compile_pattern(find, "find pattern")
            compile_pattern(replace, "replace pattern")
            snapshot = self._snapshot(root, LoadMode.SYNTAX, cancel)
            try:
                return PatternRewriter(snapshot, cancel).rewrite(find, replace, dry_run)
            finally:
                if not dry_run:
                    self.cache.invalidate(root)

        return self._run("rewrite", params, run)
