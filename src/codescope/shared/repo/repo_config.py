#!/usr/bin/env python3


class RepoConfig:
    """Fixed rules for which parts of a repository are read."""

    SOURCE_SUFFIX: str = ".py"

    SKIP_DIRS: set[str] = {
        ".git",
        ".hg",
        ".svn",
        ".idea",
        ".vscode",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".tox",
        ".nox",
        ".venv",
        "venv",
        "env",
        "__pycache__",
        "site-packages",
        "dist",
        "build",
        ".eggs",
        ".cache",
        "node_modules",
    }

    MAX_FILE_BYTES: int = 2_000_000

    DEFAULT_ENCODING: str = "utf-8"
    FALLBACK_ENCODING: str = "latin-1"
