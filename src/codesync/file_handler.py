"""File handler module: encoding-aware reads and buffered, atomic writes.

A sync run never touches the working tree until it has fully succeeded.
``BufferedFileSystem`` stages every write in memory, serves reads from the
staged content first, and ``flush()`` commits all staged files at the end
of the run.  Each file is replaced atomically (temp file + ``os.replace``)
and files whose content did not change are left alone.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from charset_normalizer import from_bytes

from codesync.errors import FileConflictError

logger = logging.getLogger(__name__)

# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Atomically write content to a file, creating parent directories.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return len(encoded)


# =============================================================================
# Buffered file system
# =============================================================================


class BufferedFileSystem:
    """Stage file writes in memory and commit them in one batch.

    Relative paths are resolved against *base_dir*; absolute paths are used
    as-is.

    Args:
        base_dir: Directory that relative paths are resolved against
            (the repo's ``srcDir``).
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self._staged: dict[Path, str] = {}

    def resolve(self, path: str | Path) -> Path:
        p = Path(path)
        if not p.is_absolute():
            p = self.base_dir / p
        return Path(os.path.normpath(p))

    def exists(self, path: str | Path) -> bool:
        resolved = self.resolve(path)
        return resolved in self._staged or resolved.is_file()

    def read(self, path: str | Path) -> str:
        """Return staged content for *path*, else the on-disk content.

        Raises:
            FileNotFoundError: If the file is neither staged nor on disk.
        """
        resolved = self.resolve(path)
        if resolved in self._staged:
            return self._staged[resolved]
        if not resolved.is_file():
            raise FileNotFoundError(f"File not found: {resolved}")
        content, _ = read_file_with_encoding(resolved)
        return content

    def write(
        self, path: str | Path, content: str, force: bool = False
    ) -> None:
        """Stage *content* for *path*.

        Args:
            path: Target path.
            content: New file content.
            force: Allow replacing a file that already exists.  Without
                it, writing over an existing file is an error.

        Raises:
            FileConflictError: If the file exists and *force* is false.
        """
        resolved = self.resolve(path)
        if not force and self.exists(resolved):
            raise FileConflictError(
                f"File {resolved} already exists and should not be "
                "overwritten"
            )
        logger.debug("Staged write: %s", resolved)
        self._staged[resolved] = content

    @property
    def staged_paths(self) -> list[Path]:
        return sorted(self._staged)

    def discard(self) -> None:
        self._staged.clear()

    def flush(self) -> list[Path]:
        """Write every staged file to disk.

        Files whose on-disk content already equals the staged content are
        skipped.

        Returns:
            Sorted list of paths actually written.
        """
        written: list[Path] = []
        for path in sorted(self._staged):
            content = self._staged[path]
            if path.is_file():
                current, _ = read_file_with_encoding(path)
                if current == content:
                    logger.debug("Unchanged, not rewriting: %s", path)
                    continue
            write_file(path, content)
            written.append(path)
        logger.info(
            "Flushed %d of %d staged files", len(written), len(self._staged)
        )
        self._staged.clear()
        return written
