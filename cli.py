#!/usr/bin/env python3
"""
Import Finder CLI

A tool for finding which compiled dependencies (.rlib archives) contain a
WebAssembly object that imports a given host function, e.g. to track down
which crate pulled in an unwanted "env" import.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Set

from report.model import ImportReport
from scanner.builder import build_report
from scanner.discovery import DEFAULT_MAX_DEPTH, normalize_extensions
from scanner.errors import MalformedArchiveError
from exporters import to_text, to_json


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="find-import",
        description="Find the dependency archives that contain a given WebAssembly import.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  find-import env abort target/wasm32-unknown-unknown/debug/deps
  find-import env abort deps --show-members      # Name the offending object
  find-import env abort deps -f json -o out.json  # JSON output to file
  find-import env abort deps --ext .rlib .a       # Also scan C static libraries
  find-import env abort deps --keep-going         # Skip unreadable archives
        """,
    )

    # Positional arguments
    parser.add_argument(
        "module",
        help='The module of the import to look for (usually "env")',
    )

    parser.add_argument(
        "name",
        help="The name of the import to look for",
    )

    parser.add_argument(
        "deps_path",
        help="The deps folder within your target folder "
             "(usually target/wasm32-unknown-unknown/{debug,release}/deps)",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    parser.add_argument(
        "--show-members",
        action="store_true",
        help="Name the archive member that declares the import in text output",
    )

    # Scanning options
    parser.add_argument(
        "--ext",
        nargs="+",
        default=None,
        help="Archive file extensions to scan (default: .rlib)",
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help="Maximum directory depth to scan (default: 0, deps_path only)",
    )

    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Skip archives that cannot be parsed instead of aborting",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print what was decided about every archive member to stderr",
    )

    return parser.parse_args(args)


def print_diagnostics(report: ImportReport) -> None:
    """Print per-member verdicts and skipped archives to stderr."""
    for diagnostic in report.diagnostics:
        line = f"{diagnostic.archive}: {diagnostic.member}: {diagnostic.verdict}"
        if diagnostic.detail:
            line += f" ({diagnostic.detail})"
        print(line, file=sys.stderr)

    for archive, error in report.skipped.items():
        print(f"Warning: skipped {archive}: {error}", file=sys.stderr)


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)

    deps_path = Path(parsed.deps_path)
    if not deps_path.is_dir():
        print(f"Error: '{parsed.deps_path}' is not a directory", file=sys.stderr)
        return 1

    include_ext: Optional[Set[str]] = None
    if parsed.ext:
        include_ext = normalize_extensions(parsed.ext)

    # Scan the archives
    try:
        report = build_report(
            root=deps_path,
            module=parsed.module,
            name=parsed.name,
            include_ext=include_ext,
            max_depth=parsed.max_depth,
            keep_going=parsed.keep_going,
        )
    except MalformedArchiveError as e:
        print(f"Error: malformed archive {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed.verbose:
        print_diagnostics(report)
    elif report.skipped:
        print(f"Warning: skipped {len(report.skipped)} unreadable archive(s)", file=sys.stderr)

    # Generate output
    if parsed.format == "json":
        output = to_json(report)
    else:
        output = to_text(report, show_members=parsed.show_members)

    # Write output
    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output + "\n", encoding="utf-8")
            print(f"Output written to: {output_path}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
