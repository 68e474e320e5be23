"""DiffEngine for previewing and writing file changes safely."""

from __future__ import annotations

import difflib
import logging
import os
from pathlib import Path
from typing import List, Sequence, Tuple

from .errors import PartialWriteFailure
from .reports import FileChange, FileDiff

logger = logging.getLogger(__name__)

# (line, start byte, end byte, replacement)
Edit = Tuple[int, int, int, bytes]


def splice(lines: Sequence[bytes], edits: List[Edit]) -> bytes:
    """Apply byte-range edits to source lines and return the new source.

    Edits must not overlap.  Ranges are on a single line each, so edits of
    a line are applied right-to-left to keep earlier offsets valid.
    """
    by_line = {}
    for line, start, end, text in edits:
        by_line.setdefault(line, []).append((start, end, text))
    out = list(lines)
    for line, line_edits in by_line.items():
        current = out[line - 1]
        for start, end, text in sorted(line_edits, reverse=True):
            current = current[:start] + text + current[end:]
        out[line - 1] = current
    return b"".join(out)


def splice_spans(source: bytes, lines: Sequence[bytes], spans: List[Tuple[int, int, int, int, bytes]]) -> bytes:
    """Replace multi-line ``(line, col, end_line, end_col, text)`` spans in *source*."""
    offsets = [0]
    for line in lines:
        offsets.append(offsets[-1] + len(line))
    result = source
    for line, col, end_line, end_col, text in sorted(spans, reverse=True):
        start = offsets[line - 1] + col
        end = offsets[end_line - 1] + end_col
        result = result[:start] + text + result[end:]
    return result


class DiffEngine:
    """Handles previewing and writing changes; writes are per-file atomic only."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def create_diff(self, original: str, modified: str, filename: str = "file") -> str:
        """Create unified diff between two versions.

        Args:
            original: Original content
            modified: Modified content
            filename: Name of file for diff header

        Returns:
            Unified diff string
        """
        original_lines = original.splitlines(keepends=True)
        modified_lines = modified.splitlines(keepends=True)

        diff = difflib.unified_diff(
            original_lines,
            modified_lines,
            fromfile=f"a/{filename}",
            tofile=f"b/{filename}",
            n=3,
        )
        return "".join(diff)

    def preview(self, changes: List[FileChange]) -> List[FileDiff]:
        return [
            FileDiff(
                path=change.file_path,
                diff=self.create_diff(
                    change.original.decode("utf-8"),
                    change.updated.decode("utf-8"),
                    change.file_path,
                ),
            )
            for change in changes
        ]

    @staticmethod
    def safe_write(path: Path, content: bytes) -> None:
        """Write to a sibling temporary file, then atomically replace *path*."""
        tmp = path.with_name(path.name + ".tmp")
        mode = path.stat().st_mode if path.exists() else None
        try:
            with open(tmp, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            if mode is not None:
                os.chmod(tmp, mode)
            os.replace(tmp, path)
        except OSError:
            if tmp.exists():
                tmp.unlink()
            raise

    def apply_changes(self, changes: List[FileChange]) -> List[str]:
        """Write every change in order.

        Not transactional: files written before a failure stay written.

        Returns:
            Relative paths written

        Raises:
            PartialWriteFailure: an I/O error; ``changed_files`` lists what was written
        """
        written: List[str] = []
        for change in changes:
            try:
                self.safe_write(self.root / change.file_path, change.updated)
            except OSError as exc:
                logger.error("Write failed for %s after %d file(s): %s",
                             change.file_path, len(written), exc)
                raise PartialWriteFailure(
                    f"failed to write {change.file_path}: {exc}", written,
                ) from exc
            written.append(change.file_path)
            logger.debug("Wrote %s (%d change(s))", change.file_path, change.changes)
        return written
