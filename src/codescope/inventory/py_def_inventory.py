"""
py_def_inventory.py

Walks a Python repository and writes a YAML inventory of its definitions
(classes, methods, functions, export lists and docstrings) together with
their line spans and documentation status.

Modules are scanned line by line with the context engine; nothing in the
target repository is imported or executed.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from codescope.shared.console import ConsoleManager

from .config import ConfigurationManager
from .core import InventoryService


class CliInterface:
    """
    Handles command-line arguments and application bootstrapping.
    """

    def __init__(self) -> None:
        self._parser = self._build_parser()

    def run(self, argv: list[str] | None = None) -> None:
        args = self._parser.parse_args(argv)
        log_level = args.log_level or logging.INFO

        logging.basicConfig(
            level=log_level,
            format="%(message)s",  # Handled by ConsoleManager
            handlers=[logging.StreamHandler(sys.stderr)],
        )
        logger = ConsoleManager(level=log_level, no_color=args.no_color)

        try:
            config = self._build_config(args)

            service = InventoryService(
                app_config=config,
                root_path=Path(args.root).resolve(strict=True),
                logger=logger,
            )

            report = service.run_inventory()

            output_path = (
                None if args.stdout else (args.output_path or "definitions.yaml")
            )
            service.write_yaml(report, output_path, args.stdout)

        except (FileNotFoundError, ValueError, TypeError) as e:
            logger.critical(f"Configuration or Usage Error: {e}")
            sys.exit(1)
        except Exception as e:
            logger.critical(
                f"An unexpected error occurred: {e}",
                exc_info=log_level <= logging.DEBUG,
            )
            sys.exit(2)

        stats = report["stats"]
        if args.print_summary:
            logger.print_summary(dict(stats))

        if stats["files_parse_errors"] > 0:
            logger.error(f"Run finished with {stats['files_parse_errors']} error(s).")
            sys.exit(2)

        threshold = config.get("fail_under")
        if threshold is not None and stats["coverage_pct"] < threshold:
            logger.warning(
                f"Exiting with code 3: documentation coverage "
                f"{stats['coverage_pct']:.1f}% is below {threshold}%."
            )
            sys.exit(3)

        sys.exit(0)

    def _build_config(self, args: argparse.Namespace) -> dict[str, Any]:
        overrides = {
            "public_only": args.public_only,
            "include_docstrings": args.include_docstrings,
            "strip_docstrings": args.strip_docstrings,
            "respect_export_list": args.respect_export_list,
            "visit_last_line": args.visit_last_line,
            "package_mode": args.package_mode,
            "leading_slash_in_paths": args.leading_slash_in_paths,
            "concurrency": args.concurrency,
            "fail_under": args.fail_under,
            "exclude": args.excludes,
            "_pyproject_path": args.pyproject_path,
        }

        mgr = ConfigurationManager()
        return mgr.load_config(args.config, overrides)

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="codescope-inventory",
            description="Python definition inventory.",
            formatter_class=argparse.RawTextHelpFormatter,
        )

        # Core
        parser.add_argument("--root", required=True, help="Top-level directory.")
        parser.add_argument("--config", help="Path to JSON/JSONC config.")
        parser.add_argument(
            "-e",
            "--exclude",
            action="append",
            dest="excludes",
            help="Gitwildmatch pattern relative to --root. Repeatable.",
        )
        parser.add_argument("--pyproject", dest="pyproject_path")

        # Output
        out_g = parser.add_mutually_exclusive_group()
        out_g.add_argument("-o", "--output", dest="output_path")
        out_g.add_argument("--stdout", action="store_true")

        # Toggles
        parser.add_argument("--public-only", action="store_true", default=None)
        parser.add_argument(
            "--all-definitions", action="store_false", dest="public_only"
        )
        parser.add_argument("--include-docstrings", action="store_true", default=None)
        parser.add_argument(
            "--no-docstrings", action="store_false", dest="include_docstrings"
        )
        parser.add_argument("--strip-docstrings", action="store_true", default=None)
        parser.add_argument(
            "--ignore-export-list",
            action="store_false",
            dest="respect_export_list",
            default=None,
            help="Decide top-level visibility by naming only.",
        )
        parser.add_argument(
            "--visit-last-line",
            action="store_true",
            default=None,
            help="Also scan the final line of each module as a current line.",
        )

        parser.add_argument(
            "--package-mode", choices=list(ConfigurationManager.PACKAGE_MODES)
        )
        parser.add_argument(
            "--leading-slash",
            action="store_true",
            dest="leading_slash_in_paths",
            default=None,
        )
        parser.add_argument(
            "--no-leading-slash", action="store_false", dest="leading_slash_in_paths"
        )
        parser.add_argument("-j", "--concurrency", type=int)
        parser.add_argument(
            "--fail-under",
            type=float,
            help="Exit with code 3 when documentation coverage is below this percentage.",
        )

        # Log
        log_g = parser.add_mutually_exclusive_group()
        log_g.add_argument(
            "-v",
            "--verbose",
            action="store_const",
            dest="log_level",
            const=logging.DEBUG,
        )
        log_g.add_argument(
            "-q", "--quiet", action="store_const", dest="log_level", const=logging.ERROR
        )
        parser.add_argument("--no-color", action="store_true")
        parser.add_argument("--print-summary", action="store_true")

        return parser


def main() -> None:
    CliInterface().run()


if __name__ == "__main__":
    main()
