"""
Command line front end.

Usage:
    intcode run program.txt -i 1
    intcode diagnose program.txt 5
    intcode probe program.txt 1
    intcode amplify program.txt --feedback
    intcode paint program.txt --white
    intcode search program.txt --goal 19690720 --workers 4
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from .channels import QueueChannel
from .errors import IntcodeError
from .host import IntcodeHost
from .loader import load_program
from .machine import IntcodeMachine
from .network import STARVE_POLICIES, STARVE_SUSPEND, best_phase_setting
from .robot import paint_hull
from .search import DEFAULT_GOAL, find_noun_verb


def cmd_run(args) -> int:
    program = load_program(args.file)
    channel = QueueChannel(args.input)
    machine = IntcodeMachine(program, channel)
    result = machine.run()
    for value in channel.outputs:
        print(value)
    if args.stats:
        print(machine.stats_summary(), file=sys.stderr)
    if not result.halted:
        print(f"Program is waiting for input at pc={result.pc}", file=sys.stderr)
        return 2
    return 0


def cmd_diagnose(args) -> int:
    channel = IntcodeHost(load_program(args.file)).diagnose(args.code)
    failed = [v for v in channel.outputs[:-1] if v != 0]
    if failed:
        print(f"{len(failed)} checks failed: {failed}", file=sys.stderr)
    if channel.last is None:
        print("Program produced no diagnostic code", file=sys.stderr)
        return 1
    print(channel.last)
    return 0 if not failed else 1


def cmd_probe(args) -> int:
    result = IntcodeHost(load_program(args.file)).probe(args.value)
    if result is None:
        print("Program halted without output", file=sys.stderr)
        return 1
    print(result)
    return 0


def cmd_amplify(args) -> int:
    program = load_program(args.file)
    signal, order = best_phase_setting(program, feedback=args.feedback,
                                       starve_policy=args.starve_policy)
    print(signal)
    print(f"phase order: {','.join(map(str, order))}", file=sys.stderr)
    return 0


def cmd_paint(args) -> int:
    robot = paint_hull(load_program(args.file), start_white=args.white)
    print(f"{robot.painted_count} panels painted", file=sys.stderr, flush=True)
    print(robot.render())
    return 0


def cmd_search(args) -> int:
    program = load_program(args.file)
    print(find_noun_verb(program, goal=args.goal, workers=args.workers))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intcode", description="Intcode machine")
    parser.add_argument("--verbose", action="store_true",
                        help="Log machine state transitions")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("run", help="Run a program with queued input")
    p.add_argument("file")
    p.add_argument("-i", "--input", type=int, action="append", default=[],
                   help="Queue an input value (repeatable)")
    p.add_argument("--stats", action="store_true", help="Print counters to stderr")
    p.set_defaults(func=cmd_run)

    p = sub.add_parser("diagnose", help="Run a diagnostic program with one system ID")
    p.add_argument("file")
    p.add_argument("code", type=int, help="System ID answered to every input")
    p.set_defaults(func=cmd_diagnose)

    p = sub.add_parser("probe", help="Feed one value, print the first output")
    p.add_argument("file")
    p.add_argument("value", type=int)
    p.set_defaults(func=cmd_probe)

    p = sub.add_parser("amplify", help="Best phase order for an amplifier chain")
    p.add_argument("file")
    p.add_argument("--feedback", action="store_true",
                   help="Wire the amplifiers in a feedback ring (phases 5-9)")
    p.add_argument("--starve-policy", choices=STARVE_POLICIES, default=STARVE_SUSPEND,
                   help="What an amplifier without input means")
    p.set_defaults(func=cmd_amplify)

    p = sub.add_parser("paint", help="Run the hull painting robot")
    p.add_argument("file")
    p.add_argument("--white", action="store_true", help="Start on a white panel")
    p.set_defaults(func=cmd_paint)

    p = sub.add_parser("search", help="Find the noun/verb producing a goal")
    p.add_argument("file")
    p.add_argument("--goal", type=int, default=DEFAULT_GOAL)
    p.add_argument("--workers", type=int, default=os.cpu_count(),
                   help="Worker processes (1 = sequential)")
    p.set_defaults(func=cmd_search)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(levelname)s %(name)s: %(message)s")
    try:
        code = args.func(args)
    except (IntcodeError, LookupError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
