#!/usr/bin/env python3
"""
guardgen: disassembler guard code generator CLI

Usage:
    python guardgen.py <model.json> [-o output.inc] [--target v850_fpu|generic]
                       [--select MNEMONIC ...] [--select-file FILE]
                       [--keep-going] [--verbose]

The model is the JSON dump of a parsed SLEIGH description. Generated
code goes to stdout unless -o is given; diagnostics go to stderr.

Examples:
    python guardgen.py V850.json -o v850_fpu.inc
    python guardgen.py V850.json --select addf.s --select subf.s
    python guardgen.py V850.json --keep-going -v     # skip untranslatable constructors
"""

import argparse
import io
import logging
import sys

from sleigh_guardgen import __version__
from sleigh_guardgen.codegen import GuardCodeGenerator, select_constructors
from sleigh_guardgen.errors import GuardGenError, ModelError, SelectionMismatchError
from sleigh_guardgen.loader import load_model_file
from sleigh_guardgen.log_setup import setup_logging
from sleigh_guardgen.profiles import TARGET_PROFILES, DEFAULT_TARGET, get_profile


def read_selection_file(path: str) -> list:
    """One mnemonic per line; blank lines and '#' comments are ignored."""
    result = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            s = line.split("#", 1)[0].strip()
            if s:
                result.append(s)
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guardgen",
        description="Generate disassembler guard code from a SLEIGH model",
        epilog="Targets: " + ", ".join(TARGET_PROFILES.keys()),
    )
    parser.add_argument("model", nargs="?", help="Input model (JSON dump)")
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument("--target", default=DEFAULT_TARGET,
                        choices=list(TARGET_PROFILES.keys()),
                        help=f"Target profile (default: {DEFAULT_TARGET})")
    parser.add_argument("--select", action="append", metavar="MNEMONIC",
                        help="Mnemonic to emit (repeatable, replaces the profile list)")
    parser.add_argument("--select-file",
                        help="File with one mnemonic per line (replaces the profile list)")
    parser.add_argument("--keep-going", action="store_true",
                        help="Skip constructors that fail instead of aborting")
    parser.add_argument("--list-targets", action="store_true",
                        help="List target profiles and exit")
    parser.add_argument("--dump-model", action="store_true",
                        help="Print the selected constructors and exit (debug)")
    parser.add_argument("--log-file", help="Write a DEBUG log to this file")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase verbosity (-v info, -vv debug)")
    parser.add_argument("--version", action="version",
                        version=f"guardgen {__version__}")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_targets:
        for name, profile in TARGET_PROFILES.items():
            print(f"{name:12s} {profile.description} ({len(profile.selection)} mnemonics)")
        return 0

    if not args.model:
        parser.error("the following arguments are required: model")

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    log = setup_logging(console_level=level, log_file=args.log_file)

    profile = get_profile(args.target)
    log.info("Target: %s (%s)", profile.name, profile.description)

    try:
        sleigh = load_model_file(args.model)

        if args.select or args.select_file:
            selection = list(args.select or [])
            if args.select_file:
                selection += read_selection_file(args.select_file)
        else:
            selection = profile.selection

        # Fails before anything is written
        chosen = select_constructors(sleigh, selection)

        if args.dump_model:
            for c in chosen:
                _print_constructor(c)
            return 0

        # Whole batch is rendered before anything is written
        gen = GuardCodeGenerator(sleigh, profile)
        buf = io.StringIO()
        report = gen.generate(chosen, buf, keep_going=args.keep_going)
        buf.write("\n")
        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(buf.getvalue())
            log.info("Output: %s", args.output)
        else:
            sys.stdout.write(buf.getvalue())

    except FileNotFoundError as e:
        log.error("File not found: %s", e.filename)
        return 1
    except ModelError as e:
        log.error("Model error: %s", e)
        return 1
    except SelectionMismatchError as e:
        log.error("Selection error: %s", e)
        return 1
    except GuardGenError as e:
        log.error("Generation error: %s", e)
        return 1
    except Exception as e:
        log.error("Internal error: %s", e)
        if args.verbose:
            log.exception("traceback")
        return 2

    if report.incomplete:
        log.warning("%d constructors contain untranslated conditions: %s",
                    len(report.incomplete), ", ".join(report.incomplete))
    if report.failures:
        log.warning("%d constructors skipped", len(report.failures))
        return 1
    return 0


def _print_constructor(node, indent=0):
    """Pretty-print a model dataclass tree (debug helper)."""
    prefix = "  " * indent
    if hasattr(node, '__dataclass_fields__'):
        print(f"{prefix}{type(node).__name__}:")
        for fname in node.__dataclass_fields__:
            val = getattr(node, fname)
            if isinstance(val, (list, tuple)):
                print(f"{prefix}  {fname}:")
                for item in val:
                    _print_constructor(item, indent + 2)
            elif hasattr(val, '__dataclass_fields__'):
                print(f"{prefix}  {fname}:")
                _print_constructor(val, indent + 2)
            elif val is not None:
                print(f"{prefix}  {fname}: {val}")
    else:
        print(f"{prefix}{node}")


if __name__ == "__main__":
    sys.exit(main())
