"""
Backward search for the smallest register A that makes a loop program print
a given output (by default, its own code).

Supported programs are a single loop: each pass derives one output value from
the current contents of A, shifts A right by a fixed width, and jumps back to
the start while A is nonzero. Because a pass only sees bits of A that are
still present, output values can be matched from last to first while A is
grown from its most significant chunk downward:

    trial = chunk | (candidate << width)

Every trial is scored by running the interpreter itself for one pass of the
loop body on a fresh machine.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Sequence, Tuple

from chronovm.spec import (
    ChronoVMException, MalformedProgram,
    ADV, JNZ, OUT,
    Machine, UINT64_MAX,
    disassemble, execute_program, format_output,
)


# =============================================================================
# Exceptions
# =============================================================================

class UnsupportedProgram(ChronoVMException):
    """Raised when a program is not a single shift-and-emit loop."""
    pass


class InconsistentQuine(ChronoVMException, AssertionError):
    """
    Raised when the best search candidate fails full verification.

    This means a loop pass depends on state carried over from earlier passes,
    which the backward search cannot see.
    """
    pass


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class SolverConfig:
    """Configuration for the backward search."""
    verify: bool = True               # Re-run the winner through the full machine
    max_ticks: Optional[int] = None   # Tick budget for the verification run


DEFAULT_CONFIG = SolverConfig()


# =============================================================================
# Search Results
# =============================================================================

@dataclass
class SearchStatistics:
    """Counters collected while searching."""
    evaluations: int = 0
    nodes_expanded: int = 0
    dead_branches: int = 0
    malformed_trials: int = 0
    candidates: int = 0


@dataclass(frozen=True)
class SearchResult:
    """Base class for search results - used as a union type."""


@dataclass(frozen=True)
class Found(SearchResult):
    a: int
    stats: SearchStatistics = field(default_factory=SearchStatistics, compare=False)


@dataclass(frozen=True)
class NotFound(SearchResult):
    stats: SearchStatistics = field(default_factory=SearchStatistics, compare=False)


# =============================================================================
# Loop Shape
# =============================================================================

def check_loop_shape(program: Sequence[int]) -> int:
    """
    Check that ``program`` is a single loop the backward search understands.

    Returns:
        Number of bits A loses per pass (the ``adv`` operand)

    Raises:
        MalformedProgram: If the program does not decode
        UnsupportedProgram: If the program is not a single shift-and-emit loop
    """
    instructions = disassemble(program)

    if not instructions or instructions[-1] != JNZ(0):
        raise UnsupportedProgram("Program must end with 'jnz 0'")

    jumps = [i for i in instructions if isinstance(i, JNZ)]
    if len(jumps) != 1:
        raise UnsupportedProgram(f"Expected exactly one jump, found {len(jumps)}")

    outs = [i for i in instructions if isinstance(i, OUT)]
    if len(outs) != 1:
        raise UnsupportedProgram(f"Expected exactly one 'out' per pass, found {len(outs)}")

    shifts = [i for i in instructions if isinstance(i, ADV)]
    if len(shifts) != 1:
        raise UnsupportedProgram(f"Expected exactly one 'adv' per pass, found {len(shifts)}")
    width = shifts[0].operand
    if not (1 <= width <= 3):
        raise UnsupportedProgram(f"'adv' must shift by a literal 1-3, got {shifts[0]}")

    return width


# =============================================================================
# Single Pass Evaluation
# =============================================================================

def evaluate_iteration(program: Sequence[int], a: int) -> Optional[int]:
    """
    Run one pass of the loop body with A = ``a`` and B = C = 0.

    Returns:
        The first value emitted, or None if the machine halts or jumps back
        before emitting anything

    Raises:
        MalformedProgram: If decoding fails along the way
    """
    machine = Machine(program, a=a)
    while not machine.output:
        ip = machine.state.ip
        if not machine.tick():
            return None
        if machine.state.ip <= ip:
            return None
    return machine.output[0]


# =============================================================================
# Backward Search
# =============================================================================

def verify_solution(
    program: Sequence[int],
    a: int,
    target: Sequence[int],
    max_ticks: Optional[int] = None,
) -> None:
    """Run the full program from A = ``a`` and require the target output."""
    output = execute_program(program, a=a, max_ticks=max_ticks).output
    if tuple(output) != tuple(target):
        raise InconsistentQuine(
            f"A={a} passes every single-pass check but outputs "
            f"{format_output(output)}, expected {format_output(target)}"
        )


def solve_quine(
    program: Sequence[int],
    target: Optional[Sequence[int]] = None,
    config: SolverConfig = DEFAULT_CONFIG,
) -> SearchResult:
    """
    Find the smallest A (with B = C = 0) whose run outputs ``target``.

    Args:
        program: Program codes
        target: Output to reproduce; defaults to the program itself
        config: Solver configuration

    Returns:
        Found with the minimal A, or NotFound if no branch matches every value

    Raises:
        MalformedProgram, UnsupportedProgram: See check_loop_shape
        InconsistentQuine: If verification is enabled and fails
    """
    program = tuple(program)
    target = program if target is None else tuple(target)
    width = check_loop_shape(program)
    stats = SearchStatistics()

    if not target:
        return NotFound(stats)

    last = len(target) - 1
    best: Optional[int] = None
    queue: Deque[Tuple[int, int]] = deque([(0, 0)])

    while queue:
        right_index, candidate = queue.popleft()
        stats.nodes_expanded += 1
        expected = target[last - right_index]
        extended = False

        for chunk in range(1 << width):
            trial = chunk | (candidate << width)
            # Only the very first pass of a run can start with A = 0
            if trial == 0 and right_index != last:
                continue
            if trial > UINT64_MAX:
                continue

            stats.evaluations += 1
            try:
                digit = evaluate_iteration(program, trial)
            except MalformedProgram:
                stats.malformed_trials += 1
                continue
            if digit != expected:
                continue

            extended = True
            if right_index == last:
                stats.candidates += 1
                if best is None or trial < best:
                    best = trial
            else:
                queue.append((right_index + 1, trial))

        if not extended:
            stats.dead_branches += 1

    if best is None:
        return NotFound(stats)

    if config.verify:
        verify_solution(program, best, target, max_ticks=config.max_ticks)

    return Found(best, stats)
