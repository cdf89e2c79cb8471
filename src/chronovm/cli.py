"""
Command line entry point for chronovm.

    chronovm run INPUT        run the machine, print its comma-joined output
    chronovm solve INPUT      print the smallest A that makes the program output itself
    chronovm disasm INPUT     print the program as mnemonics
    chronovm check            compare the backward search against brute force
"""

import argparse
import sys
from typing import List, Optional

from chronovm.loader import load_program_file
from chronovm.spec import ChronoVMException, disassemble
from chronovm.search.quine import Found, SolverConfig, solve_quine
from chronovm.search.differential import DEFAULT_CONFIG, run_differential


def cmd_run(args: argparse.Namespace) -> int:
    loaded = load_program_file(args.input)
    machine = loaded.machine()
    machine.run(max_ticks=args.max_ticks)
    print(machine.output_string())
    return 0


def cmd_solve(args: argparse.Namespace) -> int:
    loaded = load_program_file(args.input)
    config = SolverConfig(verify=not args.no_verify, max_ticks=args.max_ticks)
    result = solve_quine(loaded.program, config=config)

    if not isinstance(result, Found):
        print("No solution found", file=sys.stderr)
        return 1

    print(result.a)
    if args.stats:
        stats = result.stats
        print(
            f"evaluations={stats.evaluations} nodes={stats.nodes_expanded} "
            f"dead={stats.dead_branches} candidates={stats.candidates}",
            file=sys.stderr,
        )
    return 0


def cmd_disasm(args: argparse.Namespace) -> int:
    loaded = load_program_file(args.input)
    for index, instr in enumerate(disassemble(loaded.program)):
        print(f"{index * 2:4d}  {instr}")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    stats = run_differential(num_tests=args.num_tests, seed=args.seed, max_digits=args.max_digits)
    return 0 if stats.agreements == stats.total_tests else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chronovm", description="3-bit register machine and quine solver")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a program and print its output")
    run_parser.add_argument("input", help="Puzzle input file")
    run_parser.add_argument(
        "--max-ticks",
        type=int,
        default=None,
        help="Abort after this many instructions (default: unlimited)"
    )
    run_parser.set_defaults(func=cmd_run)

    solve_parser = subparsers.add_parser("solve", help="Find the smallest A that makes the program a quine")
    solve_parser.add_argument("input", help="Puzzle input file")
    solve_parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip re-running the answer through the full machine"
    )
    solve_parser.add_argument(
        "--max-ticks",
        type=int,
        default=None,
        help="Tick budget for the verification run (default: unlimited)"
    )
    solve_parser.add_argument(
        "--stats",
        action="store_true",
        help="Print search statistics to stderr"
    )
    solve_parser.set_defaults(func=cmd_solve)

    disasm_parser = subparsers.add_parser("disasm", help="Print the program as mnemonics")
    disasm_parser.add_argument("input", help="Puzzle input file")
    disasm_parser.set_defaults(func=cmd_disasm)

    check_parser = subparsers.add_parser("check", help="Cross-check the search against brute force")
    check_parser.add_argument(
        "-n", "--num-tests",
        type=int,
        default=DEFAULT_CONFIG.num_tests,
        help="Number of random programs to check (default: %(default)s)"
    )
    check_parser.add_argument(
        "-s", "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility"
    )
    check_parser.add_argument(
        "--max-digits",
        type=int,
        default=DEFAULT_CONFIG.max_digits,
        help="Longest target output to generate (default: %(default)s)"
    )
    check_parser.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except ChronoVMException as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
