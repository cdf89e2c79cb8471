"""
Test suite for the chronovm register machine.

Run with: uv run pytest tests/test_machine.py
"""

from chronovm.spec import (
    # Instructions
    ADV, BXL, BST, JNZ, OUT, BDV, CDV,
    OP_ADV, OP_BXL, OP_JNZ, OP_BXC,
    # Assembly
    assemble, disassemble, decode_instruction,
    # Execution
    MachineState, Machine, execute, execute_program, format_output,
    # Exceptions
    MalformedProgram, InvalidOpcode, InvalidOperand, OperandOutOfBounds, ReservedOperand,
    TickLimitExceeded,
    # Utilities
    UINT64_MAX,
)
from chronovm.search.enumeration import (
    BOUNDARY_ACCUMULATORS,
    enumerate_combo_programs,
    enumerate_instruction_programs,
)


QUINE_PROGRAM = (0, 3, 5, 4, 3, 0)


def test_assembly():
    print("chronovm Assembly Tests")
    print("=" * 50)

    assert disassemble(QUINE_PROGRAM) == [ADV(3), OUT(4), JNZ(0)]
    assert assemble([ADV(3), OUT(4), JNZ(0)]) == QUINE_PROGRAM
    print("✓ Disassemble / assemble")

    assert [str(i) for i in disassemble(QUINE_PROGRAM)] == ["adv 3", "out A", "jnz 0"]
    assert str(BST(6)) == "bst C"
    assert str(BXL(7)) == "bxl 7"
    assert str(CDV(7)) == "cdv ?7"
    print("✓ Mnemonics")

    assert decode_instruction(QUINE_PROGRAM, 6) is None
    assert decode_instruction(QUINE_PROGRAM, 2) == OUT(4)
    print("✓ Decode past end halts")

    try:
        ADV(8)
        assert False, "Should have raised"
    except ValueError:
        pass
    print("✓ Operand range validated on construction")


def test_decode_errors():
    try:
        decode_instruction((0,), 0)
        assert False, "Should have raised"
    except OperandOutOfBounds:
        pass

    try:
        decode_instruction((8, 0), 0)
        assert False, "Should have raised"
    except InvalidOpcode as e:
        assert "Unknown opcode" in str(e)

    try:
        decode_instruction((0, 9), 0)
        assert False, "Should have raised"
    except InvalidOperand:
        pass
    print("✓ Malformed program errors")


def test_instructions():
    """Single instruction behaviour."""

    # bst C: B = 9 & 7
    assert execute_program((2, 6), c=9).b == 1
    print("✓ BST")

    # bxl 7
    assert execute_program((1, 7), b=29).b == 26
    print("✓ BXL")

    # bxc, operand ignored
    assert execute_program((4, 0), b=2024, c=43690).b == 44354
    assert execute_program((4, 7), b=2024, c=43690).b == 44354
    print("✓ BXC")

    # out with literals and a register
    assert execute_program((5, 0, 5, 1, 5, 4), a=10).output == [0, 1, 2]
    print("✓ OUT")

    # bdv / cdv read A, write B / C
    state = execute_program((6, 2, 7, 3), a=100)
    assert state.a == 100
    assert state.b == 25
    assert state.c == 12
    print("✓ BDV / CDV")


def test_right_shift_is_logical():
    for a in BOUNDARY_ACCUMULATORS:
        for k in range(8):
            # Shift amount from register B
            assert execute(MachineState(a=a, b=k), (OP_ADV, 5)).a == a >> k
        for k in range(4):
            # Shift amount as literal
            assert execute(MachineState(a=a), (OP_ADV, k)).a == a >> k
        for k in (63, 64, 65, 1 << 40, UINT64_MAX):
            assert execute(MachineState(a=a, c=k), (OP_ADV, 6)).a == (a >> k if k < 64 else 0)
    assert execute(MachineState(a=1 << 63), (OP_ADV, 3)).a == 1 << 60
    print("✓ Right shift matches logical shift")


def test_combo_seven_is_reserved():
    programs = enumerate_combo_programs(7)
    assert [p[0] for p in programs] == [ADV.OPCODE, BST.OPCODE, OUT.OPCODE, BDV.OPCODE, CDV.OPCODE]
    for program in programs:
        try:
            execute(MachineState(a=5, b=6, c=7), program)
            assert False, f"Should have raised for {program}"
        except ReservedOperand:
            pass

    # Literal and ignored operands accept 7
    assert execute(MachineState(), (OP_BXL, 7)).b == 7
    assert execute(MachineState(), (OP_JNZ, 7)).ip == 2
    assert execute(MachineState(b=1, c=2), (OP_BXC, 7)).b == 3
    print("✓ Combo operand 7 rejected")


def test_jump():
    program = (1, 0, 1, 0, 3, 5, 1, 0)

    # A == 0 falls through
    assert execute(MachineState(a=0, ip=4), program).ip == 6
    # A != 0 jumps to the literal, regardless of current ip
    assert execute(MachineState(a=1, ip=4), program).ip == 5
    assert execute(MachineState(a=UINT64_MAX, ip=4), program).ip == 5
    assert execute(MachineState(a=3, ip=0), (3, 0)).ip == 0
    print("✓ JNZ")

    # Odd jump target decodes operands as opcodes and runs off the end
    machine = Machine((3, 1, 0, 0), a=1)
    assert machine.tick()
    assert machine.state.ip == 1
    assert machine.tick()
    assert machine.state.ip == 3
    try:
        machine.tick()
        assert False, "Should have raised"
    except OperandOutOfBounds:
        pass
    print("✓ Odd jump target")


def test_execute_does_not_mutate():
    state = MachineState(a=10)
    new_state = execute(state, (5, 4))
    assert new_state.output == [2]
    assert state.output == []
    assert state.ip == 0
    print("✓ Execute returns a copy")


def test_machine_examples():
    machine = Machine((0, 1, 5, 4, 3, 0), a=729)
    assert machine.run() == [4, 6, 3, 5, 6, 3, 5, 2, 1, 0]
    assert machine.output_string() == "4,6,3,5,6,3,5,2,1,0"
    assert machine.halted
    assert not machine.tick()
    print("✓ Example program (A=729)")

    state = execute_program((0, 1, 5, 4, 3, 0), a=2024)
    assert format_output(state.output) == "4,2,5,6,7,7,7,7,3,1,0"
    assert state.a == 0
    print("✓ Example program (A=2024)")

    assert execute_program(QUINE_PROGRAM, a=117440).output == list(QUINE_PROGRAM)
    print("✓ Quine at A=117440")


def test_machine_reset_and_limits():
    machine = Machine(QUINE_PROGRAM, a=117440)
    machine.run()
    machine.reset(a=9)
    assert machine.state == MachineState(a=9)
    assert machine.run() == [1, 0]
    print("✓ Reset discards previous run")

    machine = Machine((3, 0), a=1)
    try:
        machine.run(max_ticks=10)
        assert False, "Should have raised"
    except TickLimitExceeded:
        pass
    print("✓ Tick limit")

    for bad in (-1, UINT64_MAX + 1):
        try:
            MachineState(a=bad)
            assert False, "Should have raised"
        except ValueError:
            pass
    print("✓ Register range validated")


def test_determinism():
    registers = [(0, 0, 0), (117440, 0, 0), (UINT64_MAX, 1 << 63, 7)]
    for program in enumerate_instruction_programs():
        for a, b, c in registers:
            runs = []
            for _ in range(2):
                try:
                    runs.append(execute_program(program, a=a, b=b, c=c, max_ticks=100))
                except (MalformedProgram, TickLimitExceeded) as e:
                    runs.append(type(e))
            assert runs[0] == runs[1]
    print("✓ Execution is deterministic")


if __name__ == "__main__":
    test_assembly()
    test_decode_errors()
    test_instructions()
    test_right_shift_is_logical()
    test_combo_seven_is_reserved()
    test_jump()
    test_execute_does_not_mutate()
    test_machine_examples()
    test_machine_reset_and_limits()
    test_determinism()
    print("=" * 50)
    print("All tests passed!")
