"""
capview.cli - Command-line interface.

Main entry point for the capview CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from capview import __version__
from capview.commands import config_cmd, layers_cmd, serve_cmd, view_cmd
from capview.commands.common import payload_path


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="capview",
        description="Capability hypergraph dashboard views",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  capview view --payload graph.json          # Timeline from a saved payload
  capview view --url http://localhost:3003   # Timeline from a live server
  capview view -Q "read file"                # Fuzzy-filtered timeline
  capview layers cap-42 --payload graph.json # Parallel layers of the latest run
  capview serve --port 5007                  # REST API

Configuration:
  capview config path                        # Show config file location
  capview config show                        # View all settings

For detailed command help: capview <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"capview {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "--payload",
        type=payload_path,
        help="Read the hypergraph payload from a JSON file",
        metavar="PATH",
    )
    parser.add_argument(
        "--url",
        help="Fetch the hypergraph payload from this server",
        metavar="URL",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # view command
    view_parser = subparsers.add_parser(
        "view",
        help="Show capabilities grouped by recency",
    )
    view_parser.add_argument(
        "-Q",
        "--query",
        default="",
        help="Fuzzy search over names, descriptions, tools and servers",
    )
    view_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    view_parser.add_argument(
        "--stats",
        action="store_true",
        help="Append snapshot data-quality counters",
    )

    # layers command
    layers_parser = subparsers.add_parser(
        "layers",
        help="Show the parallel layers of a capability's latest run",
    )
    layers_parser.add_argument("capability_id", help="Capability id")
    layers_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the derived view over a REST API",
    )
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Inspect configuration",
    )
    config_sub = config_parser.add_subparsers(dest="config_action")
    config_sub.add_parser("path", help="Show config file location")
    config_sub.add_parser("show", help="Show effective settings")

    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route library logging to stderr at a level chosen by -v/-q."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install capview[completion]
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args.verbose, args.quiet)

    try:
        if args.command == "view":
            return view_cmd.run(args)
        elif args.command == "layers":
            return layers_cmd.run(args)
        elif args.command == "serve":
            return serve_cmd.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
