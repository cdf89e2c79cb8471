"""Load register values and a program from puzzle text.

The text is scanned for unsigned integers; labels, commas and line breaks are
ignored. The first three integers are registers A, B and C, everything after
them is the program.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from chronovm.spec import ChronoVMException, Machine, Program, UINT64_MAX

NUMBER_PATTERN = re.compile(r"\d+")


class InputError(ChronoVMException):
    """Raised when puzzle text does not describe a machine."""
    pass


@dataclass(frozen=True)
class LoadedProgram:
    a: int
    b: int
    c: int
    program: Program

    def machine(self) -> Machine:
        return Machine(self.program, a=self.a, b=self.b, c=self.c)


def load_program(text: str) -> LoadedProgram:
    """
    Parse puzzle text into registers and program.

    Raises:
        InputError: If fewer than three integers are present or a register
            does not fit in 64 bits
    """
    numbers = [int(m.group(0)) for m in NUMBER_PATTERN.finditer(text)]
    if len(numbers) < 3:
        raise InputError(f"Expected values for registers A, B and C, found {len(numbers)} integers")

    a, b, c = numbers[:3]
    for name, value in zip("ABC", (a, b, c)):
        if value > UINT64_MAX:
            raise InputError(f"Register {name} value {value} does not fit in 64 bits")

    return LoadedProgram(a=a, b=b, c=c, program=tuple(numbers[3:]))


def load_program_file(path: Union[str, Path]) -> LoadedProgram:
    return load_program(Path(path).read_text())
