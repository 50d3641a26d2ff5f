import argparse
import sys
from unittest.mock import patch

# -----------------------------------------------------------------------------
# Execution Logic
# -----------------------------------------------------------------------------


def run_python_tool(tool_module, args):
    """
    Runs a tool module's main function.
    sys.argv is patched so the tool's own argparse handles the flags.
    """
    # e.g. ['context_trace', 'pkg/mod.py', '--tree']
    simulated_argv = [tool_module.__name__] + args

    with patch.object(sys, "argv", simulated_argv):
        try:
            tool_module.main()
        except SystemExit as e:
            # Propagate non-zero exit codes unchanged
            if e.code is not None and e.code != 0:
                sys.exit(e.code)
        except Exception as e:
            print(f"Error executing {tool_module.__name__}: {e}", file=sys.stderr)
            sys.exit(1)


# -----------------------------------------------------------------------------
# Main Commander
# -----------------------------------------------------------------------------


def main():
    parser = argparse.ArgumentParser(
        description="Codescope Commander", prog="codescope"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a specific codescope tool")
    tool_subparsers = run_parser.add_subparsers(dest="tool", required=True)

    # add_help=False so 'codescope run trace -h' reaches the tool's own parser.
    tool_subparsers.add_parser(
        "inventory", help="Run the definition inventory", add_help=False
    )
    tool_subparsers.add_parser(
        "trace", help="Print the context event stream of one file", add_help=False
    )

    args, extra_args = parser.parse_known_args()

    if args.command == "run":

        if args.tool == "inventory":
            from codescope.inventory import py_def_inventory

            run_python_tool(py_def_inventory, extra_args)

        elif args.tool == "trace":
            from codescope.trace import context_trace

            run_python_tool(context_trace, extra_args)


if __name__ == "__main__":
    main()
