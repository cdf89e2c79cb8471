"""
Exhaustive enumeration for chronovm.

Brute-force counterparts to the backward search: every accumulator value is
run through the full machine in ascending order, so the first match is the
minimum by construction. Only practical for short targets, which is exactly
what the search is cross-checked against.
"""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from chronovm.spec import (
    MalformedProgram, TickLimitExceeded,
    INSTRUCTIONS_BY_OPCODE, COMBO, UINT64_MAX,
    execute_program,
)
from .quine import Found, NotFound, SearchResult, SearchStatistics


# ============================================================
# Configuration
# ============================================================

# Bits consumed per loop pass by the programs being enumerated
CHUNK_BITS = 3

# Tick budget per run; loops that never drain A are cut off here
DEFAULT_MAX_TICKS = 10_000

# Interesting register values for boundary value analysis
BOUNDARY_ACCUMULATORS = [
    0,            # Zero
    1,            # One
    7,            # Largest single chunk
    8,            # First two-chunk value
    0o777,        # Three full chunks
    1 << 32,      # Past 32 bits
    1 << 63,      # Top bit
    UINT64_MAX,   # All bits set
]


# ============================================================
# Accumulator Enumeration
# ============================================================

def enumerate_accumulators(digits: int, width: int = CHUNK_BITS) -> Iterator[int]:
    """
    Yield every A with exactly ``digits`` chunks of ``width`` bits, ascending.

    A one-chunk run includes A = 0, since a loop always makes its first pass.
    """
    if digits <= 0:
        return
    low = 0 if digits == 1 else 1 << (width * (digits - 1))
    high = 1 << (width * digits)
    yield from range(low, high)


def outputs_by_accumulator(
    program: Sequence[int],
    limit: int,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> Dict[int, Tuple[int, ...]]:
    """
    Map every A in [0, limit) to the output it produces.

    Runs that fail to decode or exceed the tick budget are left out.
    """
    table = {}
    for a in range(limit):
        try:
            table[a] = tuple(execute_program(program, a=a, max_ticks=max_ticks).output)
        except (MalformedProgram, TickLimitExceeded):
            continue
    return table


# ============================================================
# Brute Force Search
# ============================================================

def brute_force_search(
    program: Sequence[int],
    target: Optional[Sequence[int]] = None,
    limit: Optional[int] = None,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> SearchResult:
    """
    Try A = 0, 1, 2, ... until the program outputs ``target``.

    Args:
        program: Program codes
        target: Output to reproduce; defaults to the program itself
        limit: Exclusive upper bound on A; defaults to 8 ** len(target)
        max_ticks: Tick budget for each run

    Returns:
        Found with the smallest matching A, or NotFound
    """
    program = tuple(program)
    target = program if target is None else tuple(target)
    if limit is None:
        limit = 1 << (CHUNK_BITS * len(target))

    stats = SearchStatistics()
    for a in range(limit):
        stats.evaluations += 1
        try:
            output = execute_program(program, a=a, max_ticks=max_ticks).output
        except (MalformedProgram, TickLimitExceeded):
            stats.malformed_trials += 1
            continue
        if tuple(output) == target:
            stats.candidates += 1
            return Found(a, stats)

    return NotFound(stats)


# ============================================================
# Instruction Enumeration
# ============================================================

def enumerate_instruction_programs() -> Iterator[Tuple[int, int]]:
    """Yield every single-instruction program (opcode, operand)."""
    for opcode in sorted(INSTRUCTIONS_BY_OPCODE):
        for operand in range(8):
            yield (opcode, operand)


def enumerate_combo_programs(operand: int) -> List[Tuple[int, int]]:
    """All single-instruction programs that read ``operand`` in combo mode."""
    return [
        (opcode, operand)
        for opcode, cls in sorted(INSTRUCTIONS_BY_OPCODE.items())
        if cls.OPERAND_KIND == COMBO
    ]
