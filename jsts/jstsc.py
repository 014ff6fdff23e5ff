"""`jstsc` command line: annotate JavaScript files and report per-file results."""

from __future__ import annotations

import argparse
import json
import sys
from typing import List

from .parser import DEFAULT_PLUGINS, KNOWN_PLUGINS, ParserOptions
from .pipeline import FileResult, PipelineOptions, process_files, resolve_inputs


def _print_result(result: FileResult) -> None:
    if result.ok:
        print(f"✔ {result.input} -> {result.output}", file=sys.stderr)
        return
    print(f"✖ {result.input} -> Failed: {result.error}", file=sys.stderr)
    for diag in result.diagnostics:
        print(f"  {diag.format()}", file=sys.stderr)


def main(argv: List[str] | None = None) -> int:
    """
    Annotate JavaScript files with inferred TypeScript types.

    With --json, prints per-file results and their diagnostics together with an
    exit_code; otherwise prints one line per file and a summary to stderr.
    """
    parser = argparse.ArgumentParser(prog="jstsc", description="Infer types for JavaScript and emit TypeScript")
    parser.add_argument("-i", "--input", required=True, help="Input file, directory or glob pattern")
    parser.add_argument("-o", "--output", required=True, help="Directory that receives the .ts files")
    parser.add_argument(
        "--plugin",
        dest="plugins",
        action="append",
        choices=KNOWN_PLUGINS,
        help=f"Parser dialect plugin (repeatable; default: {', '.join(DEFAULT_PLUGINS)})",
    )
    parser.add_argument("--pretty", action="store_true", help="Indent the output instead of emitting compact code")
    parser.add_argument("--no-verify", dest="verify", action="store_false", help="Skip checking the emitted output")
    parser.add_argument(
        "--emit-analysis",
        action="store_true",
        help="Also write <name>.analysis.json with the collected type facts",
    )
    parser.add_argument("-j", "--jobs", type=int, default=1, help="Number of files processed in parallel")
    parser.add_argument("--json", action="store_true", help="Emit results and diagnostics as JSON")
    args = parser.parse_args(argv)

    if args.jobs < 1:
        parser.error("--jobs must be at least 1")
    options = PipelineOptions(
        parser=ParserOptions(plugins=tuple(args.plugins or DEFAULT_PLUGINS)),
        compact=not args.pretty,
        verify=args.verify,
        emit_analysis=args.emit_analysis,
        jobs=args.jobs,
    )

    inputs = resolve_inputs(args.input)
    if not inputs:
        msg = f"no input files match {args.input}"
        if args.json:
            print(json.dumps({"exit_code": 1, "error": msg, "results": []}))
        else:
            print(f"error: {msg}", file=sys.stderr)
        return 1

    try:
        results = process_files(inputs, args.output, options)
    except OSError as err:
        msg = f"cannot prepare output directory {args.output}: {err}"
        if args.json:
            print(json.dumps({"exit_code": 1, "error": msg, "results": []}))
        else:
            print(f"error: {msg}", file=sys.stderr)
        return 1

    failed = [result for result in results if not result.ok]
    exit_code = 1 if failed else 0
    if args.json:
        payload = {"exit_code": exit_code, "results": [result.to_json() for result in results]}
        print(json.dumps(payload, indent=2))
        return exit_code

    for result in results:
        _print_result(result)
    print(f"{len(results) - len(failed)} succeeded, {len(failed)} failed", file=sys.stderr)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
