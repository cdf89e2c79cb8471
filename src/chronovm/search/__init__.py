"""Accumulator search for chronovm programs."""

from .quine import (
    UnsupportedProgram, InconsistentQuine,
    SolverConfig,
    SearchStatistics, SearchResult, Found, NotFound,
    check_loop_shape, evaluate_iteration, verify_solution, solve_quine,
)

from .enumeration import (
    BOUNDARY_ACCUMULATORS,
    enumerate_accumulators,
    outputs_by_accumulator,
    brute_force_search,
    enumerate_instruction_programs,
    enumerate_combo_programs,
)

from .differential import (
    DifferentialConfig, DifferentialStatistics,
    generate_loop_program,
    run_differential,
)
