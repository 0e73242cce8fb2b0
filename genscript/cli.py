# genscript/cli.py
# Command-line entry point: parse, optionally verify, run; print receipts.

from __future__ import annotations

import argparse
import datetime as _dt
import hashlib
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from . import __version__
from .config import RunOptions, load_config_file
from .context import Context
from .errors import ExecutionError, GenScriptError, ParseError
from .executor import Executor
from .folder import snapshot_folder, write_starter_script
from .global_store import GlobalStore
from .parser import parse
from .verifier import verify_parse_result

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _now_utc_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _dump(obj: Any) -> str:
    return json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False, default=str)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="genscript",
        description="Run a .gen generation script: scaffold files, run shell steps, prompt for values.",
    )
    p.add_argument("script", nargs="?", help="Path to the .gen script.")
    p.add_argument("--config", metavar="FILE", help="JSON object used to pre-populate variables.")
    p.add_argument("--output", metavar="DIR", default=".", help="Directory the script runs in (default: .).")
    p.add_argument("--task", metavar="NAME", help="Run this TASK without prompting.")
    p.add_argument("--globals-file", metavar="FILE", help="Global variable store (default: $GENSCRIPT_GLOBALS or ~/.genscript/global.json).")
    p.add_argument("--no-globals", action="store_true", help="Do not load stored globals into the variables.")
    p.add_argument("--verify", action="store_true", help="Run the static verifier; refuse to run on errors.")
    p.add_argument("--emit-ast", metavar="PATH", help="Write the parsed script as JSON to PATH.")
    p.add_argument("--print-receipt", action="store_true", help="Print the execution receipt JSON.")
    p.add_argument("--receipt-out", metavar="PATH", help="Write the execution receipt to PATH (JSON).")
    p.add_argument("--parse-folder", metavar="DIR", help="Snapshot DIR into template.json (COMPILE format) and exit.")
    p.add_argument("--init", action="store_true", help="Write a starter template.gen here and exit.")
    p.add_argument("--list-tasks", action="store_true", help="Print the script's TASK names and exit.")
    p.add_argument("--quiet", action="store_true", help="Only print errors.")
    p.add_argument("--verbose", action="store_true", help="Debug logging and tracebacks.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _run_init() -> int:
    try:
        target = write_starter_script(Path.cwd())
    except FileExistsError as e:
        print(f"warning: {e}; remove it or pick another directory")
        return 0
    print(f"Created {target}")
    print("Run with: genscript template.gen --output ./my-project")
    return 0


def _run_parse_folder(folder: str) -> int:
    try:
        doc = snapshot_folder(folder)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    out = Path.cwd() / "template.json"
    out.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"Template folder parsed: {len(doc['templates'])} file(s) written to {out}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    p = _build_parser()
    args = p.parse_args(argv)
    _configure_logging(args.verbose)

    if args.init:
        return _run_init()
    if args.parse_folder:
        return _run_parse_folder(args.parse_folder)
    if not args.script:
        p.error("script path required (e.g., template.gen)")

    path = Path(args.script)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error reading .gen file {path}: {e.strerror or e}", file=sys.stderr)
        return 1

    try:
        result = parse(text)
    except ParseError as e:
        print(f"Parse error in {path}: {e}", file=sys.stderr)
        return 1

    if args.list_tasks:
        for task in result.task_nodes():
            print(task.payload)
        return 0

    if args.emit_ast:
        Path(args.emit_ast).write_text(_dump(result.to_dict()), encoding="utf-8")

    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    base: Dict[str, Any] = {
        "script": {"path": str(path), "hash": f"sha256:{digest}"},
        "run": {"timestamp": _now_utc_iso(), "uuid": str(uuid.uuid4())},
    }
    executor: Optional[Executor] = None
    receipt: Dict[str, Any] = {}
    rc = 0
    try:
        options = RunOptions(
            output_dir=args.output,
            config_file=args.config,
            globals_file=args.globals_file,
            task=args.task,
            quiet=args.quiet,
            load_globals=not args.no_globals,
        ).with_env()
        initial = load_config_file(options.config_file) if options.config_file else {}
        store = GlobalStore(options.globals_file)

        if args.verify:
            known = set(initial) | (set(store.load()) if options.load_globals else set())
            report = verify_parse_result(result, known)
            base["verify"] = report
            for w in report["warnings"]:
                print(f"warning: {w}", file=sys.stderr)
            if report["errors"]:
                for err in report["errors"]:
                    print(f"error: {err}", file=sys.stderr)
                raise ParseError(f"static verification failed with {len(report['errors'])} error(s)")

        if not options.quiet:
            print(f"Using .gen file: {path}")
            print(f"Output directory: {Path(options.output_dir).resolve()}")
        executor = Executor(Context(initial), global_store=store, options=options)
        receipt = executor.run(result)
        if not options.quiet:
            print("\nExecution completed.")
    except ExecutionError:
        # the executor already printed the diagnostic
        logger.debug("run failed", exc_info=True)
        rc = 1
    except GenScriptError as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug("run failed", exc_info=True)
        rc = 1
    except (OSError, EOFError) as e:
        print(f"Error: {str(e) or type(e).__name__}", file=sys.stderr)
        logger.debug("run failed", exc_info=True)
        rc = 1

    if executor is not None and not receipt:
        receipt = executor.receipt
    receipt = {**base, **receipt, "status": "ok" if rc == 0 else "error"}
    if args.print_receipt:
        print(_dump(receipt))
    if args.receipt_out:
        Path(args.receipt_out).write_text(_dump(receipt), encoding="utf-8")
        if not args.quiet:
            print(f"Wrote receipt: {args.receipt_out}")
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
