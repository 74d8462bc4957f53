"""
LC-3 Virtual Emulator — Register File + Condition Codes

Register model:
  R0-R7  — 16-bit general purpose. R7 receives the return address from
           JSR/JSRR and TRAP; R0 carries trap arguments/results.
  PC     — 16-bit program counter (word address)
  COND   — condition code register, exactly one of:
           bit 0: P (Positive)
           bit 1: Z (Zero)
           bit 2: N (Negative)

COND is set to Z at reset so that the "exactly one flag" invariant holds
before the first flag-writing instruction executes.
"""

from ..config import PC_START, WORD_MASK

# Condition flags
FL_POS = 1 << 0
FL_ZRO = 1 << 1
FL_NEG = 1 << 2

FLAG_NAMES = {FL_POS: 'P', FL_ZRO: 'Z', FL_NEG: 'N'}

NUM_GPRS = 8
R_R0 = 0
R_R7 = 7


class Registers:
    """LC-3 CPU register set.

    General-purpose registers are indexed, ``regs[3] = 0x1234``, and
    every write is masked to 16 bits.
    """

    __slots__ = ('R', 'PC', 'COND', 'cycles')

    def __init__(self, pc: int = PC_START):
        self.R = [0] * NUM_GPRS
        self.PC: int = pc & WORD_MASK
        self.COND: int = FL_ZRO
        self.cycles: int = 0   # instructions executed

    def __getitem__(self, index: int) -> int:
        return self.R[index]

    def __setitem__(self, index: int, value: int):
        self.R[index] = value & WORD_MASK

    # --- Condition codes ---

    def update_flags(self, index: int):
        """Set COND from the signed value of register ``index``."""
        value = self.R[index]
        if value == 0:
            self.COND = FL_ZRO
        elif value >> 15:   # bit 15 set -> negative
            self.COND = FL_NEG
        else:
            self.COND = FL_POS

    @property
    def positive(self) -> bool:
        return bool(self.COND & FL_POS)

    @property
    def zero(self) -> bool:
        return bool(self.COND & FL_ZRO)

    @property
    def negative(self) -> bool:
        return bool(self.COND & FL_NEG)

    # --- Display ---

    def display(self) -> str:
        """Format register state for trace output."""
        gprs = ' '.join(f"R{i}={v:04X}" for i, v in enumerate(self.R))
        cc = ''.join(FLAG_NAMES[f] if self.COND & f else '.'
                     for f in (FL_NEG, FL_ZRO, FL_POS))
        return f"PC={self.PC:04X} {gprs} CC=[{cc}]"

    def reset(self, pc: int = PC_START):
        """Zero the register file and set PC to the start address."""
        self.R = [0] * NUM_GPRS
        self.PC = pc & WORD_MASK
        self.COND = FL_ZRO
        self.cycles = 0
