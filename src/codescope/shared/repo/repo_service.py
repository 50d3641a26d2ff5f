#!/usr/bin/env python3

from pathlib import Path

from codescope.shared.repo.repo_config import RepoConfig


class RepoService:
    """
    Line-reader service.
    Decides which source files to read and hands them over as lists of lines.
    """

    def __init__(self, *, max_bytes: int | None = None) -> None:
        self._dir_skip = RepoConfig.SKIP_DIRS
        self._suffix = RepoConfig.SOURCE_SUFFIX
        self._max_bytes = max_bytes or RepoConfig.MAX_FILE_BYTES

    def should_skip_dir(self, dirname: str) -> bool:
        return (dirname in self._dir_skip) or (dirname.endswith(".egg-info"))

    def should_include_file(self, path: Path) -> bool:
        return path.suffix == self._suffix

    def is_skipped_path(self, root: Path, path: Path) -> bool:
        """True if any directory between `root` and `path` is skipped."""
        try:
            parts = path.relative_to(root).parts[:-1]
        except ValueError:
            return True
        return any(self.should_skip_dir(p) for p in parts)

    def read_lines(self, path: Path) -> list[str]:
        """
        Reads a source file and splits it into lines without terminators.

        Raises ValueError for files above the size limit; OSError propagates.
        """
        size = path.stat().st_size
        if size > self._max_bytes:
            raise ValueError(f"file too large ({size} bytes)")

        data = path.read_bytes()
        try:
            text = data.decode(RepoConfig.DEFAULT_ENCODING)
        except UnicodeDecodeError:
            text = data.decode(RepoConfig.FALLBACK_ENCODING)

        return self.split_lines(text)

    @staticmethod
    def split_lines(text: str) -> list[str]:
        """
        Windows CR fix, then split on newlines.

        A trailing newline yields a final empty line, so a file ending with
        '\\n' keeps its last real line in the scanned range.
        """
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        if not text:
            return []
        return text.split("\n")
