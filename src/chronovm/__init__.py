"""chronovm: a 3-bit register machine and a quine solver for its programs."""

from .spec import (
    # Constants
    UINT64_MAX, THREE_BIT_MAX,
    OP_ADV, OP_BXL, OP_BST, OP_JNZ, OP_BXC, OP_OUT, OP_BDV, OP_CDV,
    # Instructions
    ADV, BXL, BST, JNZ, BXC, OUT, BDV, CDV, Instruction,
    # Exceptions
    ChronoVMException, MalformedProgram,
    InvalidOpcode, InvalidOperand, OperandOutOfBounds, ReservedOperand,
    TickLimitExceeded,
    # Assembly
    assemble, disassemble, decode_instruction,
    # Operands
    read_operand, literal_value, combo_value,
    # Machine State & Execution
    MachineState, Machine, execute, execute_program, format_output, shift_right,
)

from .loader import (
    InputError, LoadedProgram, load_program, load_program_file,
)

# Search API re-exported from search module
from .search import (
    UnsupportedProgram, InconsistentQuine,
    SolverConfig, Found, NotFound,
    solve_quine,
    brute_force_search,
)

__version__ = "0.1.0"
