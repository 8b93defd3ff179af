"""
Command line for the Intcode machine.

Usage:
    intcode run program.txt                    # interactive: stdin/stdout
    intcode run program.txt -i 1 --stats       # batch: queued input, print outputs
    intcode amplify program.txt --feedback     # phase search over 5..9
    intcode nounverb program.txt --target 19690720
    intcode disasm program.txt
    intcode debug program.txt -i 5             # Textual debugger
"""

from __future__ import annotations

import argparse
import sys

from intcode.errors import IntcodeError
from intcode.host import disassemble, search_noun_verb
from intcode.loader import load_program_file
from intcode.machine import IntcodeMachine
from intcode.network import find_max_signal


def _phase_list(text: str) -> list[int]:
    try:
        return [int(tok) for tok in text.split(",")]
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"phases must be comma-separated integers, got {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Intcode virtual machine",
        prog="intcode",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("run", help="Run a program")
    p.add_argument("file", help="Path to program file")
    p.add_argument("-i", "--input", type=int, action="append", default=None,
                   help="Queue an input value (repeatable); selects batch mode")
    p.add_argument("--max-steps", type=int, default=None,
                   help="Abort after this many executed instructions")
    p.add_argument("--stats", action="store_true",
                   help="Print machine counters to stderr after the run")

    p = sub.add_parser("amplify", help="Search phase settings of an amplifier chain")
    p.add_argument("file", help="Path to program file")
    p.add_argument("--feedback", action="store_true",
                   help="Close the chain into a feedback loop")
    p.add_argument("--phases", type=_phase_list, default=None,
                   help="Comma-separated phase values (default 0-4, or 5-9 with --feedback)")
    p.add_argument("--seed", type=int, default=0,
                   help="Signal fed to the first amplifier")
    p.add_argument("--max-steps", type=int, default=None)
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Print every permutation's signal to stderr")

    p = sub.add_parser("nounverb", help="Find the noun/verb pair producing a target")
    p.add_argument("file", help="Path to program file")
    p.add_argument("--target", type=int, required=True)

    p = sub.add_parser("disasm", help="Print a program listing")
    p.add_argument("file", help="Path to program file")

    p = sub.add_parser("debug", help="Open the TUI debugger")
    p.add_argument("file", help="Path to program file")
    p.add_argument("-i", "--input", type=int, action="append", default=[])
    p.add_argument("--run", action="store_true",
                   help="Run to completion immediately (auto-run mode)")
    p.add_argument("--max-steps", type=int, default=None)

    return parser


def cmd_run(args) -> int:
    program = load_program_file(args.file)
    machine = IntcodeMachine(program, inputs=args.input, max_steps=args.max_steps)
    machine.run_to_completion()
    if not machine.interactive:
        for val in machine.outputs:
            print(val)
        if machine.suspended:
            print("Program is waiting for more input", file=sys.stderr)
    if args.stats:
        print(machine.stats_summary(), file=sys.stderr)
    return 0 if machine.halted else 2


def cmd_amplify(args) -> int:
    program = load_program_file(args.file)
    signal, phases = find_max_signal(
        program, args.phases, feedback=args.feedback, seed=args.seed,
        max_steps=args.max_steps, verbose=args.verbose,
    )
    print(f"Max output: {signal}")
    print(f"Max configuration: {list(phases)}")
    return 0


def cmd_nounverb(args) -> int:
    program = load_program_file(args.file)
    try:
        noun, verb = search_noun_verb(program, args.target)
    except LookupError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"noun={noun} verb={verb} answer={100 * noun + verb}")
    return 0


def cmd_disasm(args) -> int:
    program = load_program_file(args.file)
    for addr, text in disassemble(program):
        print(f"{addr:5d}  {text}")
    return 0


def cmd_debug(args) -> int:
    from intcode.debugger import launch
    return launch(args.file, args.input, args.run, args.max_steps)


COMMANDS = {
    "run": cmd_run,
    "amplify": cmd_amplify,
    "nounverb": cmd_nounverb,
    "disasm": cmd_disasm,
    "debug": cmd_debug,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return COMMANDS[args.command](args)
    except (IntcodeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
