"""
LC-3 Virtual Emulator — Main Emulator Class

This is the top-level class that integrates:
  - CPU registers + condition codes (cpu/regs.py)
  - Memory with device routing (mem/memory.py)
  - Field decoding + disassembly (cpu/decoder.py)
  - Keyboard device (periph/keyboard.py) on a Console (periph/console.py)
  - Native trap routines (traps.py)

Execution model, one instruction per step:
  1. Fetch the word at PC (through memory, so device reads apply)
  2. PC += 1
  3. Dispatch on bits 15-12 → update registers, memory, condition codes
  4. Count the instruction

Termination reasons:
  - HALT:         HALT trap (x25)
  - BREAK:        breakpoint address reached
  - TIMEOUT:      max_steps instructions executed
  - INTERRUPTED:  console interrupt key, or stop() was called
  - ERROR:        console I/O failure

The engine never exits the process; callers decide what each reason
means (see lc3vm.py).
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Set

from .config import EmulatorConfig, WORD_MASK
from .cpu.regs import Registers, R_R7
from .cpu import decoder
from .cpu.decoder import (
    OP_BR, OP_ADD, OP_LD, OP_ST, OP_JSR, OP_AND, OP_LDR, OP_STR,
    OP_NOT, OP_LDI, OP_STI, OP_JMP, OP_LEA, OP_TRAP,
)
from .cpu import alu
from .mem.memory import Memory
from .periph.console import BufferedConsole, ConsoleInterrupt
from .periph.keyboard import KeyboardPeripheral
from .loader import load_image
from .traps import HaltTrap, TrapDispatcher

log = logging.getLogger('lc3.emu')


class StopReason(Enum):
    HALT = 'HALT'
    BREAK = 'BREAK'
    TIMEOUT = 'TIMEOUT'
    INTERRUPTED = 'INTERRUPTED'
    ERROR = 'ERROR'


class State(Enum):
    RUNNING = 'RUNNING'
    HALTED = 'HALTED'


class LC3Emulator:
    """LC-3 Virtual Emulator.

    Each instance owns its own memory, registers and devices, so any
    number can run side by side.

    Usage:
        con = BufferedConsole()
        emu = LC3Emulator(console=con)
        emu.load_image('hello.obj')
        result = emu.run(max_steps=100_000)
        print(result, con.output)
    """

    def __init__(self, console=None, config: Optional[EmulatorConfig] = None):
        self.config = config or EmulatorConfig()
        self.console = console if console is not None else BufferedConsole()

        # Core components
        self.regs = Registers(self.config.start_addr)
        self.mem = Memory()

        # Devices
        self.keyboard = KeyboardPeripheral(self.console)
        self.keyboard.register(self.mem)

        self.traps = TrapDispatcher(self.regs, self.mem, self.console,
                                    in_prompt=self.config.in_prompt)

        self.state = State.RUNNING
        self.invalid_instructions = 0
        self._stop_requested = False

        # Breakpoints: set of PC addresses that trigger BREAK
        self._breakpoints: Set[int] = set()
        self._resume_addr: Optional[int] = None

        # Trace output
        self._trace = self.config.trace
        self._trace_output = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_image(self, path_or_data) -> int:
        """Load an object image (file path or raw bytes). Returns its origin.

        PC is not changed: execution starts at config.start_addr.
        """
        if isinstance(path_or_data, (str, Path)):
            log.debug("Loading image %s", path_or_data)
        return load_image(self.mem, path_or_data)

    def load_words(self, words: Iterable[int], origin: int) -> int:
        """Place words directly in memory. Returns the number loaded."""
        return self.mem.load_words(words, origin)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def halted(self) -> bool:
        return self.state is State.HALTED

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        if self.state is State.HALTED:
            return StopReason.HALT

        pc = self.regs.PC

        # Stop once at a breakpoint; the next step executes it
        if pc in self._breakpoints and pc != self._resume_addr:
            self._resume_addr = pc
            return StopReason.BREAK
        self._resume_addr = None

        # The fetch goes through memory too, so a PC on xFE00 polls the console
        try:
            instr = self.mem.read(pc)
            self.regs.PC = (pc + 1) & WORD_MASK

            if self._trace:
                line = f"x{pc:04X}: {decoder.disassemble(instr, pc):22s} {self.regs.display()}"
                self._trace_output.append(line)
                log.debug(line)

            self._dispatch[decoder.opcode(instr)](instr)
        except HaltTrap:
            self.regs.cycles += 1
            self.state = State.HALTED
            return StopReason.HALT
        except (ConsoleInterrupt, KeyboardInterrupt) as e:
            log.warning("Run interrupted at x%04X: %s", pc, str(e) or "keyboard interrupt")
            return StopReason.INTERRUPTED
        except OSError:
            log.exception("Console I/O failed at x%04X", pc)
            return StopReason.ERROR

        self.regs.cycles += 1
        return None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until a termination condition.

        Args:
            max_steps: instruction limit for this call before TIMEOUT;
                defaults to config.max_steps (None = unlimited)

        Returns:
            StopReason indicating why execution stopped
        """
        if max_steps is None:
            max_steps = self.config.max_steps
        self._stop_requested = False

        log.info("Computer starting at x%04X", self.regs.PC)
        executed = 0
        try:
            while max_steps is None or executed < max_steps:
                if self._stop_requested:
                    log.info("Stop requested at x%04X", self.regs.PC)
                    return StopReason.INTERRUPTED
                reason = self.step()
                if reason is not None:
                    return reason
                executed += 1
        except KeyboardInterrupt:
            # SIGINT landed between instructions
            log.warning("Run interrupted at x%04X: keyboard interrupt", self.regs.PC)
            return StopReason.INTERRUPTED

        return StopReason.TIMEOUT

    def stop(self):
        """Ask a running run() to return INTERRUPTED before the next instruction."""
        self._stop_requested = True

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(instr). PC has already been incremented,
    # so every PC-relative operand is relative to the next instruction.

    def _build_dispatch(self) -> dict:
        """Build opcode → handler table. Covers all 16 opcodes."""
        table = {
            OP_BR:   self._op_br,
            OP_ADD:  self._op_add,
            OP_LD:   self._op_ld,
            OP_ST:   self._op_st,
            OP_JSR:  self._op_jsr,
            OP_AND:  self._op_and,
            OP_LDR:  self._op_ldr,
            OP_STR:  self._op_str,
            OP_NOT:  self._op_not,
            OP_LDI:  self._op_ldi,
            OP_STI:  self._op_sti,
            OP_JMP:  self._op_jmp,
            OP_LEA:  self._op_lea,
            OP_TRAP: self._op_trap,
        }
        # RTI and RES
        for op in decoder.INVALID_OPCODES:
            table[op] = self._op_invalid
        return table

    def _second_operand(self, instr: int) -> int:
        if decoder.is_immediate(instr):
            return decoder.imm5(instr)
        return self.regs[decoder.field_sr2(instr)]

    def _pc_relative(self, instr: int) -> int:
        return alu.add16(self.regs.PC, decoder.pc_offset9(instr))

    def _base_relative(self, instr: int) -> int:
        return alu.add16(self.regs[decoder.field_sr1(instr)], decoder.offset6(instr))

    # ── Operate ──

    def _op_add(self, instr):
        dr = decoder.field_dr(instr)
        self.regs[dr] = alu.add16(self.regs[decoder.field_sr1(instr)],
                                  self._second_operand(instr))
        self.regs.update_flags(dr)

    def _op_and(self, instr):
        dr = decoder.field_dr(instr)
        self.regs[dr] = alu.and16(self.regs[decoder.field_sr1(instr)],
                                  self._second_operand(instr))
        self.regs.update_flags(dr)

    def _op_not(self, instr):
        dr = decoder.field_dr(instr)
        self.regs[dr] = alu.not16(self.regs[decoder.field_sr1(instr)])
        self.regs.update_flags(dr)

    # ── Control ──

    def _op_br(self, instr):
        if decoder.cond_mask(instr) & self.regs.COND:
            self.regs.PC = self._pc_relative(instr)

    def _op_jmp(self, instr):
        """JMP BaseR. RET is JMP R7."""
        self.regs.PC = self.regs[decoder.field_sr1(instr)]

    def _op_jsr(self, instr):
        """JSR PCoffset11 / JSRR BaseR. BaseR is read before R7 is written."""
        return_addr = self.regs.PC
        if decoder.is_long_jsr(instr):
            self.regs.PC = alu.add16(self.regs.PC, decoder.pc_offset11(instr))
        else:
            self.regs.PC = self.regs[decoder.field_sr1(instr)]
        self.regs[R_R7] = return_addr

    def _op_trap(self, instr):
        self.regs[R_R7] = self.regs.PC
        self.traps.dispatch(decoder.trap_vector(instr))

    def _op_invalid(self, instr):
        """RTI and RES: reported, otherwise ignored."""
        self.invalid_instructions += 1
        log.warning("Invalid instruction x%04X (%s) at x%04X",
                    instr, decoder.OPCODE_NAMES[decoder.opcode(instr)],
                    (self.regs.PC - 1) & WORD_MASK)

    # ── Load ──

    def _op_ld(self, instr):
        dr = decoder.field_dr(instr)
        self.regs[dr] = self.mem.read(self._pc_relative(instr))
        self.regs.update_flags(dr)

    def _op_ldi(self, instr):
        dr = decoder.field_dr(instr)
        self.regs[dr] = self.mem.read(self.mem.read(self._pc_relative(instr)))
        self.regs.update_flags(dr)

    def _op_ldr(self, instr):
        dr = decoder.field_dr(instr)
        self.regs[dr] = self.mem.read(self._base_relative(instr))
        self.regs.update_flags(dr)

    def _op_lea(self, instr):
        dr = decoder.field_dr(instr)
        self.regs[dr] = self._pc_relative(instr)
        self.regs.update_flags(dr)

    # ── Store ──

    def _op_st(self, instr):
        self.mem.write(self._pc_relative(instr), self.regs[decoder.field_dr(instr)])

    def _op_sti(self, instr):
        self.mem.write(self.mem.read(self._pc_relative(instr)),
                       self.regs[decoder.field_dr(instr)])

    def _op_str(self, instr):
        self.mem.write(self._base_relative(instr), self.regs[decoder.field_dr(instr)])

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        """Stop with BREAK when PC reaches addr, before executing it."""
        self._breakpoints.add(addr & WORD_MASK)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr & WORD_MASK)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Enable instruction trace logging."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Full emulator reset: registers, memory, devices, debug state."""
        self.regs.reset(self.config.start_addr)
        self.mem.clear()
        self.keyboard.reset()
        self.state = State.RUNNING
        self.invalid_instructions = 0
        self._stop_requested = False
        self._resume_addr = None
        self._breakpoints.clear()
        self._trace_output.clear()
