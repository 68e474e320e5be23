"""Process-wide snapshot cache keyed by (root, load mode)."""

from __future__ import annotations

import logging
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Tuple, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from . import config
from .cancellation import CancelToken
from .parser import load_snapshot
from .snapshot import LoadMode, Snapshot

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]
Loader = Callable[[Path, LoadMode, Optional[CancelToken]], Snapshot]


class RWLock:
    """Many readers or one writer, built on a condition variable."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


@dataclass
class CacheEntry:
    snapshot: Snapshot
    last_access: float
    last_check: float
    mtimes: Dict[str, int]


def files_modified(mtimes: Dict[str, int]) -> bool:
    """True if any recorded file changed or can no longer be stat'ed."""
    for path, mtime in mtimes.items():
        try:
            current = os.stat(path).st_mtime_ns
        except OSError:
            return True
        if current != mtime:
            return True
    return False


class _InvalidatingHandler(FileSystemEventHandler):
    """Drop a root's cache entries whenever one of its Python files changes."""

    def __init__(self, cache: "SnapshotCache", root: str) -> None:
        super().__init__()
        self.cache = cache
        self.root = root

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        for raw in paths:
            if not raw:
                continue
            path = Path(os.fsdecode(raw))
            if path.suffix not in config.SUPPORTED_EXTENSIONS:
                continue
            try:
                rel_parts = path.relative_to(self.root).parts[:-1]
            except ValueError:
                continue
            if any(part in config.SKIP_DIRS or part.startswith(".") for part in rel_parts):
                continue
            logger.debug("%s changed, invalidating %s", path, self.root)
            self.cache.invalidate(self.root)
            return


class SnapshotCache:
    """Shared cache of loaded snapshots.

    Lookups take the shared lock; inserts, refreshes and evictions take the
    exclusive one.  An entry is revalidated against file mtimes at most once
    per ``check_interval`` seconds, and entries idle for longer than ``ttl``
    are evicted by the sweep thread started with :meth:`start`.
    With ``watch_roots`` every loaded root also gets a watchdog observer,
    so new and deleted files invalidate its entries too.
    """

    def __init__(
        self,
        loader: Loader = load_snapshot,
        ttl: float = config.CACHE_TTL,
        sweep_interval: float = config.CACHE_SWEEP_INTERVAL,
        check_interval: float = config.CACHE_CHECK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        watch_roots: bool = False,
    ) -> None:
        self.loader = loader
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self.check_interval = check_interval
        self.clock = clock
        self.watch_roots = watch_roots
        self._lock = RWLock()
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._observers: Dict[str, Observer] = {}
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @staticmethod
    def _key(root: Union[str, Path], mode: LoadMode) -> CacheKey:
        return str(Path(root).resolve()), LoadMode(mode).value

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)

    def get(
        self,
        root: Union[str, Path],
        mode: LoadMode = LoadMode.FULL,
        cancel: Optional[CancelToken] = None,
    ) -> Snapshot:
        """Return a fresh snapshot for *root*, loading it on a miss.

        Raises:
            LoadFailure: the root cannot be loaded
            CancelledError: cancellation observed while loading
        """
        key = self._key(root, mode)
        with self._lock.read_locked():
            entry = self._entries.get(key)

        now = self.clock()
        if entry is not None:
            due = now - entry.last_check >= self.check_interval
            if not due or not files_modified(entry.mtimes):
                with self._lock.write_locked():
                    entry.last_access = now
                    if due:
                        entry.last_check = now
                logger.debug("Cache hit for %s (%s)", key[0], key[1])
                return entry.snapshot
            logger.info("Sources under %s changed, reloading", key[0])

        snapshot = self.loader(Path(key[0]), LoadMode(mode), cancel)
        with self._lock.write_locked():
            self._entries[key] = CacheEntry(
                snapshot=snapshot,
                last_access=now,
                last_check=now,
                mtimes=snapshot.file_mtimes(),
            )
        if self.watch_roots:
            self._try_watch(key[0])
        return snapshot

    def invalidate(self, root: Optional[Union[str, Path]] = None) -> int:
        """Drop the entries of *root* (every entry when omitted); return how many."""
        with self._lock.write_locked():
            if root is None:
                keys = list(self._entries)
            else:
                resolved = str(Path(root).resolve())
                keys = [k for k in self._entries if k[0] == resolved]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.debug("Invalidated %d cache entr%s", len(keys), "y" if len(keys) == 1 else "ies")
        return len(keys)

    def sweep(self) -> int:
        """Evict entries idle for longer than the TTL; return how many."""
        now = self.clock()
        with self._lock.write_locked():
            expired = [k for k, e in self._entries.items() if now - e.last_access > self.ttl]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info("Evicted %d idle snapshot(s)", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Background services
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the daemon sweep thread (no-op if already running)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="symnav-cache-sweep", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            self.sweep()

    def watch(self, root: Union[str, Path]) -> None:
        """Invalidate *root* as soon as watchdog reports a change under it."""
        resolved = str(Path(root).resolve())
        with self._lock.write_locked():
            if resolved in self._observers:
                return
            observer = Observer()
            observer.schedule(_InvalidatingHandler(self, resolved), resolved, recursive=True)
            observer.daemon = True
            observer.start()
            self._observers[resolved] = observer
        logger.info("Watching %s for changes", resolved)

    def _try_watch(self, root: str) -> None:
        try:
            self.watch(root)
        except OSError as exc:
            # mtime revalidation still catches edits to tracked files
            logger.warning("Cannot watch %s: %s", root, exc)

    def shutdown(self) -> None:
        """Stop the sweep thread and every watcher."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        with self._lock.write_locked():
            observers = list(self._observers.values())
            self._observers.clear()
        for observer in observers:
            observer.stop()
            observer.join()
