from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Sequence, Tuple, Union

# =============================================================================
# Constants
# =============================================================================

REGISTER_BITS = 64
UINT64_MAX = (1 << REGISTER_BITS) - 1
THREE_BIT_MAX = 0b111

# Opcodes
OP_ADV = 0
OP_BXL = 1
OP_BST = 2
OP_JNZ = 3
OP_BXC = 4
OP_OUT = 5
OP_BDV = 6
OP_CDV = 7

# Operand kinds
LITERAL = "literal"
COMBO = "combo"
IGNORED = "ignored"

# Combo operand values that read registers
COMBO_A = 4
COMBO_B = 5
COMBO_C = 6
COMBO_RESERVED = 7

Program = Tuple[int, ...]

# =============================================================================
# Exceptions
# =============================================================================

class ChronoVMException(Exception):
    """Base exception for all chronovm errors."""
    pass


class MalformedProgram(ChronoVMException):
    """Raised when the program cannot be decoded at the current instruction pointer."""
    pass


class InvalidOpcode(MalformedProgram):
    """Raised when an opcode value lies outside 0-7."""
    pass


class InvalidOperand(MalformedProgram):
    """Raised when an operand value lies outside 0-7."""
    pass


class OperandOutOfBounds(MalformedProgram):
    """Raised when an instruction has no operand slot before the end of the program."""
    pass


class ReservedOperand(MalformedProgram):
    """Raised when combo operand 7 is used."""
    pass


class TickLimitExceeded(ChronoVMException):
    """Raised when a run does not halt within its tick budget."""
    pass

# =============================================================================
# Instruction ADT
# =============================================================================

@dataclass(frozen=True)
class _Instruction:
    operand: int

    OPCODE: ClassVar[int]
    MNEMONIC: ClassVar[str]
    OPERAND_KIND: ClassVar[str]

    def __post_init__(self):
        if not (0 <= self.operand <= THREE_BIT_MAX):
            raise ValueError(f"{self.MNEMONIC} operand must be 0-7, got {self.operand}")

    def __str__(self) -> str:
        return f"{self.MNEMONIC} {format_operand(self.operand, self.OPERAND_KIND)}"


@dataclass(frozen=True)
class ADV(_Instruction):
    """A := A >> combo."""
    OPCODE: ClassVar[int] = OP_ADV
    MNEMONIC: ClassVar[str] = "adv"
    OPERAND_KIND: ClassVar[str] = COMBO


@dataclass(frozen=True)
class BXL(_Instruction):
    """B := B xor literal."""
    OPCODE: ClassVar[int] = OP_BXL
    MNEMONIC: ClassVar[str] = "bxl"
    OPERAND_KIND: ClassVar[str] = LITERAL


@dataclass(frozen=True)
class BST(_Instruction):
    """B := combo & 7."""
    OPCODE: ClassVar[int] = OP_BST
    MNEMONIC: ClassVar[str] = "bst"
    OPERAND_KIND: ClassVar[str] = COMBO


@dataclass(frozen=True)
class JNZ(_Instruction):
    """If A is nonzero, jump to the literal operand."""
    OPCODE: ClassVar[int] = OP_JNZ
    MNEMONIC: ClassVar[str] = "jnz"
    OPERAND_KIND: ClassVar[str] = LITERAL


@dataclass(frozen=True)
class BXC(_Instruction):
    """B := B xor C. The operand is read but ignored."""
    OPCODE: ClassVar[int] = OP_BXC
    MNEMONIC: ClassVar[str] = "bxc"
    OPERAND_KIND: ClassVar[str] = IGNORED


@dataclass(frozen=True)
class OUT(_Instruction):
    """Emit combo & 7."""
    OPCODE: ClassVar[int] = OP_OUT
    MNEMONIC: ClassVar[str] = "out"
    OPERAND_KIND: ClassVar[str] = COMBO


@dataclass(frozen=True)
class BDV(_Instruction):
    """B := A >> combo."""
    OPCODE: ClassVar[int] = OP_BDV
    MNEMONIC: ClassVar[str] = "bdv"
    OPERAND_KIND: ClassVar[str] = COMBO


@dataclass(frozen=True)
class CDV(_Instruction):
    """C := A >> combo."""
    OPCODE: ClassVar[int] = OP_CDV
    MNEMONIC: ClassVar[str] = "cdv"
    OPERAND_KIND: ClassVar[str] = COMBO


Instruction = Union[ADV, BXL, BST, JNZ, BXC, OUT, BDV, CDV]

INSTRUCTIONS_BY_OPCODE = {
    cls.OPCODE: cls for cls in (ADV, BXL, BST, JNZ, BXC, OUT, BDV, CDV)
}


def format_operand(operand: int, kind: str) -> str:
    """Render an operand for disassembly: registers by name, reserved as '?7'."""
    if kind == COMBO:
        if operand == COMBO_RESERVED:
            return "?7"
        if operand >= COMBO_A:
            return "ABC"[operand - COMBO_A]
    return str(operand)

# =============================================================================
# Assembly (Instructions -> Codes)
# =============================================================================

def assemble(instructions: Sequence[Instruction]) -> Program:
    """Flatten instructions into a program of 3-bit codes."""
    codes: List[int] = []
    for instr in instructions:
        codes.extend((instr.OPCODE, instr.operand))
    return tuple(codes)

# =============================================================================
# Operand Decoding
# =============================================================================

def read_operand(program: Sequence[int], ip: int) -> int:
    """
    Read the raw operand of the instruction at ``ip``.

    Raises:
        OperandOutOfBounds: If the operand slot lies past the end of the program
        InvalidOperand: If the stored value does not fit in three bits
    """
    index = ip + 1
    if index >= len(program):
        raise OperandOutOfBounds(
            f"Instruction at {ip} has no operand (program length {len(program)})"
        )
    operand = program[index]
    if not (0 <= operand <= THREE_BIT_MAX):
        raise InvalidOperand(f"Operand {operand} at {index} out of range for three bits")
    return operand


def literal_value(operand: int) -> int:
    return operand


def combo_value(state: 'MachineState', operand: int) -> int:
    """
    Resolve a combo operand against the register file.

    0-3 are literal values, 4-6 read A, B and C, 7 is reserved.
    """
    if operand < COMBO_A:
        return operand
    if operand == COMBO_A:
        return state.a
    if operand == COMBO_B:
        return state.b
    if operand == COMBO_C:
        return state.c
    raise ReservedOperand(f"Combo operand {operand} is reserved at ip {state.ip}")

# =============================================================================
# Disassembly (Codes -> Instructions)
# =============================================================================

def decode_instruction(program: Sequence[int], ip: int) -> Optional[Instruction]:
    """
    Decode the instruction at ``ip``.

    Returns:
        The instruction, or None when ``ip`` is past the end of the program

    Raises:
        InvalidOpcode: If the opcode does not fit in three bits
        OperandOutOfBounds, InvalidOperand: See read_operand
    """
    if ip >= len(program):
        return None

    opcode = program[ip]
    cls = INSTRUCTIONS_BY_OPCODE.get(opcode)
    if cls is None:
        raise InvalidOpcode(f"Unknown opcode {opcode} at {ip}")
    return cls(read_operand(program, ip))


def disassemble(program: Sequence[int]) -> List[Instruction]:
    """Decode every opcode position (even index) of a program."""
    instructions = []
    for ip in range(0, len(program), 2):
        instructions.append(decode_instruction(program, ip))
    return instructions

# =============================================================================
# Machine State and Execution
# =============================================================================

def shift_right(value: int, amount: int) -> int:
    """Truncating division by 2**amount for unsigned 64-bit registers."""
    if amount >= REGISTER_BITS:
        return 0
    return value >> amount


@dataclass
class MachineState:
    a: int = 0
    b: int = 0
    c: int = 0
    ip: int = 0
    output: List[int] = field(default_factory=list)

    def __post_init__(self):
        for name in ("a", "b", "c"):
            val = getattr(self, name)
            if not (0 <= val <= UINT64_MAX):
                raise ValueError(f"Register {name.upper()} out of uint64 range: {val}")
        if self.ip < 0:
            raise ValueError(f"Instruction pointer must be non-negative, got {self.ip}")

    def copy(self) -> 'MachineState':
        return MachineState(a=self.a, b=self.b, c=self.c, ip=self.ip, output=self.output.copy())

    @property
    def registers(self) -> Tuple[int, int, int]:
        return self.a, self.b, self.c


def execute(state: MachineState, program: Sequence[int]) -> Optional[MachineState]:
    """
    Perform one tick on a copy of ``state``.

    Returns:
        The successor state, or None if the machine has halted
    """
    instruction = decode_instruction(program, state.ip)
    if instruction is None:
        return None

    new_state = state.copy()
    new_state.ip = state.ip + 2

    match instruction:
        case ADV(operand=op):
            new_state.a = shift_right(state.a, combo_value(state, op))

        case BXL(operand=op):
            new_state.b = state.b ^ literal_value(op)

        case BST(operand=op):
            new_state.b = combo_value(state, op) & THREE_BIT_MAX

        case JNZ(operand=op):
            if state.a != 0:
                new_state.ip = literal_value(op)

        case BXC():
            new_state.b = state.b ^ state.c

        case OUT(operand=op):
            new_state.output.append(combo_value(state, op) & THREE_BIT_MAX)

        case BDV(operand=op):
            new_state.b = shift_right(state.a, combo_value(state, op))

        case CDV(operand=op):
            new_state.c = shift_right(state.a, combo_value(state, op))

        case _:
            raise InvalidOpcode(f"Unknown instruction type: {instruction}")

    return new_state


class Machine:
    """
    Stateful driver around ``execute``.

    The program is fixed at construction; ``reset`` replaces the whole state
    rather than patching registers, so no output or instruction pointer leaks
    from one run into the next.
    """

    def __init__(self, program: Sequence[int], a: int = 0, b: int = 0, c: int = 0):
        self.program: Program = tuple(program)
        self.state = MachineState(a=a, b=b, c=c)

    @property
    def halted(self) -> bool:
        return self.state.ip >= len(self.program)

    @property
    def output(self) -> List[int]:
        return self.state.output

    def reset(self, a: int = 0, b: int = 0, c: int = 0) -> None:
        self.state = MachineState(a=a, b=b, c=c)

    def tick(self) -> bool:
        """Execute one instruction. Returns False once the machine has halted."""
        new_state = execute(self.state, self.program)
        if new_state is None:
            return False
        self.state = new_state
        return True

    def run(self, max_ticks: Optional[int] = None) -> List[int]:
        """
        Tick until halted and return the output stream.

        Raises:
            TickLimitExceeded: If ``max_ticks`` instructions run without halting
        """
        ticks = 0
        while not self.halted:
            if max_ticks is not None and ticks >= max_ticks:
                raise TickLimitExceeded(f"Program did not halt within {max_ticks} ticks")
            self.tick()
            ticks += 1
        return list(self.state.output)

    def output_string(self) -> str:
        return format_output(self.state.output)


def execute_program(
    program: Sequence[int],
    a: int = 0,
    b: int = 0,
    c: int = 0,
    max_ticks: Optional[int] = None,
) -> MachineState:
    """Run a program to completion and return the final state."""
    machine = Machine(program, a=a, b=b, c=c)
    machine.run(max_ticks=max_ticks)
    return machine.state


def format_output(values: Sequence[int]) -> str:
    return ",".join(str(v) for v in values)
