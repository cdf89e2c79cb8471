"""
Differential checker for the backward search.

Generates random loop programs, picks a random accumulator, uses its output as
the target and compares:
- solve_quine (pruned backward search)
- brute_force_search (exhaustive reference)

Both must report the same minimal accumulator.
"""

from dataclasses import dataclass
import random
from typing import Optional, Sequence, Tuple

from chronovm.spec import (
    ChronoVMException, OP_ADV, OP_BST, OP_BXC, OP_BXL, OP_CDV, OP_JNZ, OP_OUT,
    COMBO_A, COMBO_B, Program, disassemble, execute_program, format_output,
)
from .enumeration import CHUNK_BITS, brute_force_search, enumerate_accumulators
from .quine import SearchResult, solve_quine


# =============================================================================
# Configuration Constants
# =============================================================================

@dataclass
class DifferentialConfig:
    """Configuration for differential runs."""
    num_tests: int = 100
    max_digits: int = 4               # Brute force cost grows as 8 ** max_digits


DEFAULT_CONFIG = DifferentialConfig()


# =============================================================================
# Program Generators
# =============================================================================

def generate_loop_program(rng: random.Random) -> Program:
    """
    Generate a random loop program of the supported shape.

    B and C are both overwritten before they are read, so each pass depends
    only on A:

        bst A; bxl x; cdv B; bxl y; bxc; out B; adv 3; jnz 0
    """
    return (
        OP_BST, COMBO_A,
        OP_BXL, rng.randint(0, 7),
        OP_CDV, COMBO_B,
        OP_BXL, rng.randint(0, 7),
        OP_BXC, rng.randint(0, 7),
        OP_OUT, COMBO_B,
        OP_ADV, CHUNK_BITS,
        OP_JNZ, 0,
    )


def pick_accumulator(rng: random.Random, max_digits: int) -> int:
    digits = rng.randint(1, max_digits)
    return rng.choice(list(enumerate_accumulators(digits)))


# =============================================================================
# Statistics Tracking
# =============================================================================

@dataclass
class DifferentialStatistics:
    """Tracks differential run statistics."""
    total_tests: int = 0
    agreements: int = 0
    mismatches: int = 0
    errors: int = 0

    @property
    def agreement_rate(self) -> float:
        return (self.agreements / self.total_tests * 100) if self.total_tests > 0 else 0.0

    def record_test(self, search_result: Optional[SearchResult], reference: SearchResult) -> bool:
        """Record one comparison; returns True if the two searches agree."""
        self.total_tests += 1
        if search_result is None:
            self.errors += 1
            return False
        if search_result == reference:
            self.agreements += 1
            return True
        self.mismatches += 1
        return False

    def print_summary(self) -> None:
        """Print formatted summary of results."""
        print("\n" + "=" * 60)
        print("Differential Summary")
        print("-" * 40)
        print(f"Total tests run:           {self.total_tests}")
        print(f"Agreements:                {self.agreements}")
        print(f"Mismatches:                {self.mismatches}")
        print(f"Search errors:             {self.errors}")
        print(f"Agreement rate:            {self.agreement_rate:.1f}%")


# =============================================================================
# Reporting
# =============================================================================

def report_mismatch(
    test_num: int,
    program: Program,
    target: Sequence[int],
    expected: SearchResult,
    actual: Optional[SearchResult],
    error: Optional[ChronoVMException] = None,
) -> None:
    """Print detailed mismatch report."""
    print(f"\nTest {test_num}: Mismatch")
    print(f"  Program:  {format_output(program)}")
    print(f"    {'; '.join(str(i) for i in disassemble(program))}")
    print(f"  Target:   {format_output(target)}")
    print(f"  Expected: {expected}")
    if error is not None:
        print(f"  Actual:   raised {error!r}")
    else:
        print(f"  Actual:   {actual}")


def print_header(num_tests: int, max_digits: int) -> None:
    """Print differential run header."""
    print(f"chronovm differential check - Running {num_tests} tests")
    print(f"Max target length: {max_digits}")
    print("=" * 60)


# =============================================================================
# Main Logic
# =============================================================================

def run_single_test(
    program: Program, a: int
) -> Tuple[Tuple[int, ...], SearchResult, Optional[SearchResult], Optional[ChronoVMException]]:
    """
    Compare both searches on the output of ``program`` from A = ``a``.

    Returns:
        Tuple of (target, reference_result, search_result, error)
    """
    target = tuple(execute_program(program, a=a).output)
    reference = brute_force_search(program, target)
    try:
        result = solve_quine(program, target)
    except ChronoVMException as e:
        return target, reference, None, e
    return target, reference, result, None


def run_differential(
    num_tests: int = DEFAULT_CONFIG.num_tests,
    seed: Optional[int] = None,
    max_digits: int = DEFAULT_CONFIG.max_digits,
    verbose: bool = True,
) -> DifferentialStatistics:
    """
    Run the differential check for a number of random programs.

    Args:
        num_tests: Number of random programs to check
        seed: Random seed for reproducibility
        max_digits: Longest target to generate
        verbose: Print header, mismatch reports and summary

    Returns:
        DifferentialStatistics with results
    """
    rng = random.Random(seed)
    stats = DifferentialStatistics()

    if verbose:
        print_header(num_tests, max_digits)

    for i in range(num_tests):
        program = generate_loop_program(rng)
        a = pick_accumulator(rng, max_digits)
        target, reference, result, error = run_single_test(program, a)

        agreed = stats.record_test(result, reference)
        if not agreed and verbose:
            report_mismatch(i + 1, program, target, reference, result, error)

    if verbose:
        stats.print_summary()
    return stats
