"""
LC-3 Virtual Emulator — Trap Service Routines

On real LC-3 hardware TRAP jumps through the vector table at x0000–x00FF
into OS code. Here the six standard routines are handled natively
instead, so no OS image needs to be loaded:

  x20  GETC   read one key (no echo) into R0
  x21  OUT    write the character in R0
  x22  PUTS   write the string at R0, one character per word
  x23  IN     prompt, read one key, echo it, R0 = key, set CC from R0
  x24  PUTSP  write the string at R0, two characters per word
  x25  HALT   stop the machine

The TRAP instruction itself (R7 = PC) is executed by the engine before
dispatch. Vectors outside x20–x25 are ignored.
"""

import logging

from .config import IN_PROMPT, WORD_MASK
from .cpu.regs import R_R0

log = logging.getLogger('lc3.traps')

TRAP_GETC  = 0x20
TRAP_OUT   = 0x21
TRAP_PUTS  = 0x22
TRAP_IN    = 0x23
TRAP_PUTSP = 0x24
TRAP_HALT  = 0x25


class HaltTrap(Exception):
    """Raised by the HALT routine; the engine turns it into StopReason.HALT."""
    pass


class TrapDispatcher:
    """Native trap routines over a register file, memory and console."""

    def __init__(self, regs, mem, console, in_prompt: str = IN_PROMPT):
        self.regs = regs
        self.mem = mem
        self.console = console
        self.in_prompt = in_prompt
        self._vectors = {
            TRAP_GETC:  self._trap_getc,
            TRAP_OUT:   self._trap_out,
            TRAP_PUTS:  self._trap_puts,
            TRAP_IN:    self._trap_in,
            TRAP_PUTSP: self._trap_putsp,
            TRAP_HALT:  self._trap_halt,
        }

    def dispatch(self, vector: int):
        handler = self._vectors.get(vector & 0xFF)
        if handler is None:
            return
        handler()

    # ── Input ──

    def _trap_getc(self):
        self.regs[R_R0] = self.console.read_key()

    def _trap_in(self):
        self.console.write_text(self.in_prompt)
        key = self.console.read_key()
        self.console.write_char(key)
        self.regs[R_R0] = key
        self.regs.update_flags(R_R0)

    # ── Output ──

    def _trap_out(self):
        self.console.write_char(self.regs[R_R0])

    def _trap_puts(self):
        addr = self.regs[R_R0]
        word = self.mem.peek(addr)
        while word != 0:
            self.console.write_char(word)
            addr = (addr + 1) & WORD_MASK
            word = self.mem.peek(addr)

    def _trap_putsp(self):
        """Packed string: low byte first, then high byte unless it is zero."""
        addr = self.regs[R_R0]
        word = self.mem.peek(addr)
        while word != 0:
            self.console.write_char(word & 0xFF)
            high = (word >> 8) & 0xFF
            if high:
                self.console.write_char(high)
            addr = (addr + 1) & WORD_MASK
            word = self.mem.peek(addr)

    # ── Control ──

    def _trap_halt(self):
        log.info("Computer halting...")
        raise HaltTrap("HALT")
