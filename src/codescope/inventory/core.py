from __future__ import annotations

import concurrent.futures
import datetime
import sys
import tomllib
from pathlib import Path
from typing import Any

import pathspec
import yaml

from codescope.context.patterns import PatternRegistry
from codescope.context.processor import ContextProcessor
from codescope.shared.console import ConsoleManager
from codescope.shared.repo.repo_service import RepoService

from . import models
from .assembler import ModuleAssembler


class InventoryService:
    """
    Core service for scanning Python repositories and reporting which
    definitions exist, where, whether they are public and documented.
    """

    def __init__(
        self,
        *,
        app_config: dict[str, Any],
        root_path: Path,
        logger: ConsoleManager,
    ) -> None:
        self._app_config = app_config
        self._root = root_path
        self._logger = logger

        # Dependencies
        self._repo = RepoService()
        self._path_matcher = self._init_path_matcher()
        self._concurrency = max(1, self._app_config.get("concurrency") or 1)

    def run_inventory(self) -> models.InventoryReport:
        """
        Executes the full inventory scan.
        """
        self._logger.info(f"Starting inventory scan of '{self._root}'")
        start_time = datetime.datetime.now(datetime.timezone.utc)

        pkg_name, pkg_version = self._read_pyproject(
            self._app_config.get("_pyproject_path")
        )

        all_files, excluded_count = self._collect_files()
        packages = self._build_package_tree(all_files)

        # Flatten modules for parallel processing
        all_modules = [m for pkg in packages for m in pkg["modules"]]

        stats = self._init_stats(
            len(all_files), excluded_count, len(packages), len(all_modules)
        )

        if all_modules:
            self._process_modules(all_modules, packages, stats)

        self._finalize_stats(stats)
        return self._build_report(start_time, stats, packages, pkg_name, pkg_version)

    def write_yaml(
        self, report: models.InventoryReport, path: str | None, stdout: bool = False
    ) -> None:
        """
        Writes the report to a YAML file, or to stdout.
        """
        data = dict(report)
        if stdout or path is None:
            self._yaml_dump_no_alias(data, sys.stdout)
            return

        out_p = Path(path)
        out_p.parent.mkdir(parents=True, exist_ok=True)

        with open(out_p, "w", encoding="utf-8") as f:
            self._yaml_dump_no_alias(data, f)

        self._logger.info(f"Inventory written to: {out_p.resolve()}")

    # --- Private Helpers ---

    def _init_path_matcher(self) -> pathspec.PathSpec | None:
        patterns = self._app_config.get("exclude")
        if patterns:
            try:
                return pathspec.PathSpec.from_lines("gitwildmatch", patterns)
            except Exception as e:
                self._logger.warning(f"Invalid exclude patterns: {e}")
        return None

    def _init_stats(
        self, files: int, excluded: int, pkgs: int, mods: int
    ) -> models.InventoryStats:
        return models.InventoryStats(
            files_scanned=files,
            files_excluded=excluded,
            files_parsed_ok=0,
            files_parse_errors=0,
            packages=pkgs,
            modules=mods,
            classes=0,
            methods=0,
            functions=0,
            documented=0,
            undocumented=0,
            coverage_pct=100.0,
            diagnostics=0,
        )

    def _collect_files(self) -> tuple[list[Path], int]:
        all_py: list[Path] = []
        excluded = 0
        try:
            for f in self._root.rglob("*.py"):
                if not f.is_file() or f.is_symlink():
                    continue
                if not self._repo.should_include_file(f):
                    continue
                if self._repo.is_skipped_path(self._root, f):
                    continue
                try:
                    rel = f.relative_to(self._root).as_posix()
                    if self._path_matcher and self._path_matcher.match_file(rel):
                        excluded += 1
                        continue
                    all_py.append(f)
                except ValueError:
                    continue
        except PermissionError as e:
            self._logger.error(f"Permission denied: {e}")

        return sorted(all_py), excluded

    def _build_package_tree(self, files: list[Path]) -> list[models.PackageRecord]:
        pkg_dirs: set[Path] = {p.parent for p in files}
        if self._app_config.get("package_mode") == "require_init_py":
            pkg_dirs = {p.parent for p in files if p.name == "__init__.py"}

        packages_map: dict[str, models.PackageRecord] = {}

        for p_dir in sorted(pkg_dirs):
            rel = self._normalize_rel(p_dir)
            qname = rel.lstrip("/").replace("/", ".")
            packages_map[rel] = models.PackageRecord(
                path=rel, qname=qname, is_package=True, modules=[]
            )

        for f in files:
            p_rel = self._normalize_rel(f.parent)
            if p_rel in packages_map:
                m_rel = self._normalize_rel(f)
                packages_map[p_rel]["modules"].append(
                    models.ModuleRecord(
                        path=m_rel,
                        qname=module_qname(m_rel),
                        exports=None,
                        classes=[],
                        functions=[],
                        diagnostics=[],
                    )
                )

        return list(packages_map.values())

    def _process_modules(
        self,
        all_modules: list[models.ModuleRecord],
        packages: list[models.PackageRecord],
        stats: models.InventoryStats,
    ) -> None:

        parsed_results: dict[str, models.ModuleRecord | str] = {}
        jobs = {
            m["qname"]: self._root / m["path"].lstrip("/") for m in all_modules
        }

        if self._concurrency == 1:
            for qname, path in jobs.items():
                _, result = ModuleParser.parse_file(path, self._app_config, self._root)
                parsed_results[qname] = result
        else:
            with concurrent.futures.ProcessPoolExecutor(
                max_workers=self._concurrency
            ) as executor:
                futures = {
                    executor.submit(
                        ModuleParser.parse_file, path, self._app_config, self._root
                    ): qname
                    for qname, path in jobs.items()
                }

                for future in concurrent.futures.as_completed(futures):
                    qname = futures[future]
                    try:
                        _, result = future.result()
                        parsed_results[qname] = result
                    except Exception as e:
                        parsed_results[qname] = f"Process Error: {e}"

        # Merge results
        for pkg in packages:
            processed_mods: list[models.ModuleRecord] = []
            for skeleton in pkg["modules"]:
                res = parsed_results.get(skeleton["qname"])
                if isinstance(res, dict):
                    stats["files_parsed_ok"] += 1
                    self._update_stats(stats, res)
                    processed_mods.append(res)
                    self._logger.report_module(skeleton["path"])
                else:
                    stats["files_parse_errors"] += 1
                    self._logger.report_module(skeleton["path"], str(res))

            pkg["modules"] = sorted(processed_mods, key=lambda m: m["qname"])

    def _update_stats(
        self, stats: models.InventoryStats, mod: models.ModuleRecord
    ) -> None:
        stats["diagnostics"] += len(mod["diagnostics"])
        stats["functions"] += len(mod["functions"])
        stats["classes"] += len(mod["classes"])

        for f in mod["functions"]:
            if ModuleAssembler.is_public(f):
                self._count_doc(stats, f["documented"])

        for c in mod["classes"]:
            stats["methods"] += len(c["methods"])
            if not ModuleAssembler.is_public(c):
                continue
            self._count_doc(stats, c["documented"])
            for m in c["methods"]:
                if m["visibility"] == "public":
                    self._count_doc(stats, m["documented"])

    @staticmethod
    def _count_doc(stats: models.InventoryStats, documented: bool) -> None:
        if documented:
            stats["documented"] += 1
        else:
            stats["undocumented"] += 1

    @staticmethod
    def _finalize_stats(stats: models.InventoryStats) -> None:
        total = stats["documented"] + stats["undocumented"]
        if total:
            stats["coverage_pct"] = round(100.0 * stats["documented"] / total, 1)

    def _read_pyproject(self, path: str | None) -> tuple[str | None, str | None]:
        if not path:
            return None, None
        p_path = Path(path)
        if not p_path.is_file():
            self._logger.warning(f"pyproject.toml not found: {p_path}")
            return None, None
        try:
            with open(p_path, "rb") as f:
                data = tomllib.load(f)

            if "project" in data:
                return data["project"].get("name"), data["project"].get("version")
            if "tool" in data and "poetry" in data["tool"]:
                return data["tool"]["poetry"].get("name"), data["tool"]["poetry"].get(
                    "version"
                )
        except tomllib.TOMLDecodeError as e:
            self._logger.warning(f"Could not parse {p_path}: {e}")
        return None, None

    def _normalize_rel(self, path: Path) -> str:
        rel = normalize_relpath(self._root, path)
        if self._app_config.get("leading_slash_in_paths"):
            return f"/{rel}"
        return rel

    def _build_report(
        self,
        start: datetime.datetime,
        stats: models.InventoryStats,
        pkgs: list[models.PackageRecord],
        pname: str | None,
        pver: str | None,
    ) -> models.InventoryReport:
        clean_conf = self._app_config.copy()
        clean_conf.pop("_pyproject_path", None)

        meta = models.Metadata(
            schema_version="1.0",
            generated_at=start.isoformat().replace("+00:00", "Z"),
            package={"name": pname, "version": pver},
            root=str(self._root),
            config_effective=clean_conf,
        )
        return models.InventoryReport(meta=meta, stats=stats, packages=pkgs)

    def _yaml_dump_no_alias(self, data: Any, stream: Any) -> None:
        class MultilineDumper(yaml.SafeDumper):
            def represent_scalar(self, tag, value, style=None):
                if isinstance(value, str) and "\n" in value:
                    style = "|"
                return super().represent_scalar(tag, value, style)

        class NoAliasDumper(MultilineDumper):
            def ignore_aliases(self, data):
                return True

        yaml.dump(
            data, stream, Dumper=NoAliasDumper, sort_keys=False, allow_unicode=True
        )


class ModuleParser:
    """
    Worker class for scanning individual modules.
    """

    @staticmethod
    def parse_file(
        file_path: Path, config: dict[str, Any], root: Path
    ) -> tuple[str, models.ModuleRecord | str]:

        try:
            # Re-calculate qname inside worker
            rel = normalize_relpath(root, file_path)
            if config.get("leading_slash_in_paths"):
                rel = f"/{rel}"
            qname = module_qname(rel)
        except Exception as e:
            return str(file_path), f"Path Error: {e}"

        try:
            lines = RepoService().read_lines(file_path)
        except (OSError, ValueError) as e:
            return qname, f"Read Error: {e}"

        try:
            processor = ContextProcessor(
                lines,
                patterns=PatternRegistry.from_dict(config.get("patterns")),
                visit_last_line=bool(config.get("visit_last_line")),
                skip_corrupt=True,
            )
            tree = processor.scan()
            record = ModuleAssembler(config, qname).assemble(
                rel, lines, tree, processor.diagnostics
            )
            return qname, record
        except Exception as e:
            return qname, f"Scan Error: {e}"


def normalize_relpath(root: Path, file_path: Path) -> str:
    """Return POSIX-style relative path (forward slashes)."""
    return file_path.relative_to(root).as_posix()


def module_qname(rel: str) -> str:
    qname = rel.lstrip("/").removesuffix(".py").replace("/", ".")
    return qname.removesuffix(".__init__")
