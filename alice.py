#!/usr/bin/env python
import sys
import argparse
from pathlib import Path

from alicelang import AliceConfig, AliceError, ProgramExit, Repl, Runtime
from alicelang.highlight import classify
from alicelang.log import configure_logging


def _find_source(target: str) -> Path:
    # Heuristic search for the file
    potential_paths = [
        Path(target),
        Path(f"{target}.alice"),
        Path("examples") / target,
        Path("examples") / f"{target}.alice",
    ]
    for p in potential_paths:
        if p.exists() and p.is_file():
            return p
    print(f"Error: Could not find alice file for '{target}'")
    print("Checked: " + ", ".join(str(p) for p in potential_paths))
    sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="alice", description="alicelang cli")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log interpreter diagnostics")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run an .alice file")
    run_parser.add_argument("name", help="Name or path of the alice file (e.g. hello or examples/hello.alice)")
    run_parser.add_argument("--bench", action="store_true", default=None, help="Print phase timings")

    check_parser = subparsers.add_parser("check", help="Parse and type check an .alice file without running it")
    check_parser.add_argument("name")

    subparsers.add_parser("repl", help="Start an interactive session (default)")

    tokens_parser = subparsers.add_parser("tokens", help="Print the highlight group of every token")
    tokens_parser.add_argument("name")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = AliceConfig.from_env(bench=getattr(args, "bench", None))
    except AliceError as e:
        print(f"Error: {e}")
        return 1
    level = "DEBUG" if args.verbose else ("INFO" if config.bench else config.log_level)
    configure_logging(level)

    if args.command in (None, "repl"):
        return Repl(config).run()

    src = _find_source(args.name)
    try:
        if args.command == "tokens":
            for text, group in classify(src.read_text(encoding="utf-8"), str(src)):
                if group is not None:
                    print(f"{group}\t{text}")
            return 0
        rt = Runtime(config)
        rt.load(src)
        if args.command == "check":
            print(f"{src}: ok")
            return 0
        rt.run()
    except ProgramExit as e:
        return e.code
    except AliceError as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
