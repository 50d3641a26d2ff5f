import json
import os
from pathlib import Path
from typing import Any, ClassVar

import commentjson  # type: ignore

from codescope.context.patterns import PatternRegistry


class ConfigurationManager:
    """
    Manages loading, merging and validation of application configuration.
    """

    BOOL_KEYS: ClassVar[tuple[str, ...]] = (
        "public_only",
        "include_docstrings",
        "strip_docstrings",
        "respect_export_list",
        "visit_last_line",
        "leading_slash_in_paths",
    )
    PACKAGE_MODES: ClassVar[tuple[str, ...]] = ("any_dir_with_py", "require_init_py")
    KNOWN_KEYS: ClassVar[frozenset[str]] = frozenset(
        BOOL_KEYS
        + ("exclude", "package_mode", "concurrency", "patterns", "fail_under")
        + ("_pyproject_path",)
    )

    def __init__(self, *, base_path: Path | None = None) -> None:
        self._base_path = base_path or Path(__file__).parent

    def load_config(
        self, user_config_path: str | None, cli_overrides: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Loads defaults, merges with user JSON, and applies CLI overrides.
        """
        config = self._load_defaults()

        if user_config_path:
            self._merge_user_file(config, Path(user_config_path))

        # Apply CLI overrides (filtering out None values)
        config.update({k: v for k, v in cli_overrides.items() if v is not None})

        # Ensure concurrency is set
        if not config.get("concurrency"):
            config["concurrency"] = os.cpu_count() or 1

        self.validate(config)
        return config

    def validate(self, config: dict[str, Any]) -> None:
        """Raises ValueError describing the first invalid setting."""
        unknown = set(config) - self.KNOWN_KEYS
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {sorted(unknown)}")

        for key in self.BOOL_KEYS:
            if key in config and not isinstance(config[key], bool):
                raise ValueError(f"'{key}' must be true or false.")

        excludes = config.get("exclude") or []
        if not isinstance(excludes, list) or not all(isinstance(e, str) for e in excludes):
            raise ValueError("'exclude' must be a list of glob strings.")

        mode = config.get("package_mode", self.PACKAGE_MODES[0])
        if mode not in self.PACKAGE_MODES:
            raise ValueError(f"'package_mode' must be one of {list(self.PACKAGE_MODES)}.")

        concurrency = config.get("concurrency")
        if not isinstance(concurrency, int) or concurrency < 1:
            raise ValueError("'concurrency' must be a positive integer.")

        threshold = config.get("fail_under")
        if threshold is not None and not (
            isinstance(threshold, (int, float)) and 0 <= threshold <= 100
        ):
            raise ValueError("'fail_under' must be a percentage between 0 and 100.")

        patterns = config.get("patterns") or {}
        if not isinstance(patterns, dict):
            raise ValueError("'patterns' must be an object mapping rule names to regexes.")
        # Fails fast on a malformed rule set (PatternConfigError is a ValueError)
        PatternRegistry.from_dict(patterns)

    def _load_defaults(self) -> dict[str, Any]:
        defaults_path = self._base_path / "defaults.json"
        if not defaults_path.exists():
            return {}

        try:
            with open(defaults_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except Exception:
            return {}

    def _merge_user_file(self, config: dict[str, Any], path: Path) -> None:
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                user_conf = commentjson.load(f)
        except Exception as e:
            raise ValueError(f"Failed to parse config file {path}: {e}")
        if not isinstance(user_conf, dict):
            raise ValueError(f"Config file {path} must contain a JSON object.")
        config.update(user_conf)
