"""
context_trace.py

Prints the Enter/Exit event stream the context engine produces for a single
Python file, indented by nesting depth, followed by any diagnostics.
"""

import argparse
import logging
import sys
from pathlib import Path

from codescope.context.errors import ContextEngineError
from codescope.context.events import ContextEvent
from codescope.context.processor import ContextProcessor
from codescope.shared.console import ConsoleManager
from codescope.shared.repo.repo_service import RepoService


class ContextTracer:
    """Runs one scan and writes each event to `stream` as it happens."""

    def __init__(self, console: ConsoleManager, stream=None):
        self.console = console
        self.stream = stream or sys.stdout
        self.count = 0

    def __call__(self, event: ContextEvent) -> None:
        self.count += 1
        print(self.console.format_event(event), file=self.stream)

    def trace(
        self, path: Path, *, visit_last_line: bool = False, skip_corrupt: bool = False
    ) -> ContextProcessor:
        lines = RepoService().read_lines(path)
        processor = ContextProcessor(
            lines,
            sink=self,
            visit_last_line=visit_last_line,
            skip_corrupt=skip_corrupt,
        )
        processor.scan()
        return processor

    def print_tree(self, processor: ContextProcessor) -> None:
        tree = processor.tree
        for depth, node in tree.walk():
            if node is tree.root:
                continue
            print(
                f"{'    ' * (depth - 1)}{node.name} [{node.kind.value}] "
                f"lines {node.start}-{node.end}",
                file=self.stream,
            )


def main():
    """Command-line interface entrypoint."""
    parser = argparse.ArgumentParser(
        prog="codescope-trace",
        description="Print the context event stream for one Python file.",
    )
    parser.add_argument("path", help="Python source file to scan.")
    parser.add_argument(
        "--visit-last-line",
        action="store_true",
        help="Also scan the final line as a current line.",
    )
    parser.add_argument(
        "--skip-corrupt",
        action="store_true",
        help="Record unnamed class/def lines as diagnostics instead of failing.",
    )
    parser.add_argument(
        "--tree",
        action="store_true",
        help="Print the resulting context tree after the event stream.",
    )

    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument("-v", "--verbose", action="store_true")
    output_group.add_argument("-q", "--quiet", action="store_true")
    parser.add_argument("--no-color", action="store_true")

    args = parser.parse_args()

    if args.quiet:
        log_level = logging.ERROR
    elif args.verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    console = ConsoleManager(level=log_level, no_color=args.no_color)
    tracer = ContextTracer(console)

    try:
        processor = tracer.trace(
            Path(args.path),
            visit_last_line=args.visit_last_line,
            skip_corrupt=args.skip_corrupt,
        )
    except (FileNotFoundError, ValueError) as e:
        console.critical(f"Configuration or Usage Error: {e}")
        sys.exit(1)
    except ContextEngineError as e:
        console.error(str(e))
        sys.exit(2)

    if args.tree:
        tracer.print_tree(processor)

    for diag in processor.diagnostics:
        console.warning(f"DIAGNOSTIC: {diag}")
    console.debug(f"{tracer.count} event(s)")

    sys.exit(0)


if __name__ == "__main__":
    main()
