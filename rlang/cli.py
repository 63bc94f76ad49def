import argparse
import dataclasses
import json
import logging
import sys
from collections.abc import Sequence

from rlang.config import Settings
from rlang.driver import FileReport, run_file, run_files
from rlang.matching import matches
from rlang.pretty import show_schema
from rlang.result import Err, Ok
from rlang.serialization import to_json


def handle_check(files: Sequence[str], settings: Settings, *, as_json: bool) -> int:
    """Run every file and report success or the rendered diagnostic for each."""
    reports = run_files(files, settings)

    if as_json:
        payload = {
            r.path: (
                {name: to_json(schema) for name, schema in r.theorems.items()}
                if r.success
                else {"error": r.error.kind_name if r.error else None, "message": r.rendered}
            )
            for r in reports
        }
        print(json.dumps(payload, indent=2))
    else:
        for r in reports:
            if r.success:
                print(f"ok: {r.path} ({len(r.theorems)} axioms)")
            else:
                print(r.rendered, end="")

    any_failure = any(not r.success for r in reports)
    return 1 if any_failure else 0


def handle_show(path: str, settings: Settings) -> int:
    """Print every stored axiom of a file in surface-like notation."""
    report = run_file(path, settings)
    if not report.success or report.bindings is None:
        print(report.rendered, end="")
        return 1
    for name, schema in report.theorems.items():
        print(f"{name} : {show_schema(schema, report.bindings)}")
    return 0


def handle_match(path: str, first: str, second: str, settings: Settings) -> int:
    """Report whether two axioms of one file are alpha-equivalent."""
    report: FileReport = run_file(path, settings)
    if not report.success:
        print(report.rendered, end="")
        return 1
    missing = [name for name in (first, second) if name not in report.theorems]
    if missing:
        print(f"Unknown axiom(s) in {path}: {', '.join(missing)}", file=sys.stderr)
        return 2
    same = matches(report.theorems[first], report.theorems[second])
    print(f"{first} {'~' if same else '!~'} {second}")
    return 0 if same else 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="rlang",
        description="Type-check rlang logic files and inspect their axioms.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        help="Logging level (default: RLANG_LOG_LEVEL or WARNING).",
    )
    parser.add_argument(
        "--no-excerpt",
        action="store_true",
        help="Do not print the offending source line under diagnostics.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Command: check
    check_parser = subparsers.add_parser(
        "check", help="Type-check one or more source files."
    )
    check_parser.add_argument("files", nargs="+", help="Source files to check.")
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Print stored axioms (or errors) as JSON.",
    )

    # Command: show
    show_parser = subparsers.add_parser("show", help="Print the axioms of a file.")
    show_parser.add_argument("file", help="Source file.")

    # Command: match
    match_parser = subparsers.add_parser(
        "match", help="Check whether two axioms are alpha-equivalent."
    )
    match_parser.add_argument("file", help="Source file declaring both axioms.")
    match_parser.add_argument("first", help="Name of the first axiom.")
    match_parser.add_argument("second", help="Name of the second axiom.")

    args = parser.parse_args(argv)

    match Settings.from_env():
        case Ok(settings):
            pass
        case Err(e):
            print(f"Error reading settings: {e}", file=sys.stderr)
            return 1

    if args.log_level:
        if args.log_level not in logging.getLevelNamesMapping():
            print(f"Unknown log level: {args.log_level}", file=sys.stderr)
            return 1
        settings = dataclasses.replace(settings, log_level=args.log_level)
    if args.no_excerpt:
        settings = dataclasses.replace(settings, show_excerpt=False)

    logging.basicConfig(
        level=settings.log_level_number,
        format="%(levelname)s %(name)s: %(message)s",
    )

    match args.command:
        case "check":
            return handle_check(args.files, settings, as_json=args.json)
        case "show":
            return handle_show(args.file, settings)
        case "match":
            return handle_match(args.file, args.first, args.second, settings)
        case None:
            parser.print_help()
            return 1
        case _:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            parser.print_help()
            return 1


if __name__ == "__main__":
    sys.exit(main())
