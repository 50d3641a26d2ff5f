"""
Console output shared by the codescope tools.

Wraps the standard logging module with level filtering and colorama colours.
"""

import logging
import sys
from typing import Any

from colorama import Fore, Style, init

from codescope.context.events import ContextEvent, Enter


class ConsoleManager:
    """Manages console output, respecting quiet/verbose/color flags."""

    def __init__(self, level: int, no_color: bool):
        self.level = level
        self.no_color = no_color
        if not no_color:
            init(autoreset=True)

    def _log(self, msg: str, log_level: int, color: str = "", **kwargs: Any):
        if log_level < self.level:
            return

        if not self.no_color and color:
            msg = f"{color}{msg}{Style.RESET_ALL}"

        if log_level >= logging.ERROR:
            logging.error(msg, **kwargs)
        elif log_level >= logging.WARNING:
            logging.warning(msg, **kwargs)
        elif log_level >= logging.INFO:
            logging.info(msg, **kwargs)
        else:
            logging.debug(msg, **kwargs)

    def debug(self, msg: str):
        self._log(msg, logging.DEBUG, Style.DIM)

    def info(self, msg: str):
        self._log(msg, logging.INFO)

    def warning(self, msg: str):
        self._log(msg, logging.WARNING, Fore.YELLOW)

    def error(self, msg: str):
        self._log(msg, logging.ERROR, Fore.RED)

    def critical(self, msg: str, exc_info: bool = False):
        self._log(msg, logging.CRITICAL, Fore.RED + Style.BRIGHT, exc_info=exc_info)

    def report_module(self, path: str, error: str | None = None):
        """Log a single module outcome if verbosity allows."""
        if error is not None:
            self.warning(f"FAILED: {path} ({error})")
        elif self.level <= logging.DEBUG:
            self.debug(f"SCANNED: {path}")

    def format_event(self, event: ContextEvent) -> str:
        """One trace line: indented by depth, coloured by direction."""
        text = f"{'    ' * event.depth}{event.label} -> [{event.kind.name}] {event.name} line:{event.line}"
        if self.no_color:
            return text
        color = Fore.GREEN if isinstance(event, Enter) else Fore.CYAN
        return f"{color}{text}{Style.RESET_ALL}"

    def print_summary(self, stats: dict[str, Any]):
        """Print the final summary table."""
        if self.level > logging.INFO:  # Only suppress if quiet
            return

        print("\n--- Definition Inventory Summary ---", file=sys.stderr)

        # Helper for coloring non-zero values
        def color_val(val, color_if_nonzero):
            if val and not self.no_color:
                return f"{color_if_nonzero}{val}{Style.RESET_ALL}"
            return str(val)

        summary_data = [
            ("Files Scanned", stats["files_scanned"], ""),
            ("Files Excluded", stats["files_excluded"], Style.DIM),
            ("Modules Parsed", stats["files_parsed_ok"], Fore.GREEN),
            ("Module Errors", stats["files_parse_errors"], Fore.RED + Style.BRIGHT),
            ("Classes", stats["classes"], ""),
            ("Methods", stats["methods"], ""),
            ("Functions", stats["functions"], ""),
            ("  - Documented", stats["documented"], Fore.GREEN),
            ("  - Undocumented", stats["undocumented"], Fore.YELLOW),
            ("Diagnostics", stats["diagnostics"], Fore.YELLOW),
        ]

        max_label = max(len(label) for label, _, _ in summary_data)

        for label, value, color in summary_data:
            val_str = color_val(value, color)
            print(f"{label:<{max_label}} : {val_str}", file=sys.stderr)

        print("------------------------------------", file=sys.stderr)
        self.info(f"Documentation coverage: {stats['coverage_pct']:.1f}%")
