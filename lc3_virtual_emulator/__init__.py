"""
LC-3 Virtual Emulator
=====================
A straight interpreter for the LC-3 16-bit instruction set. Runs
pre-assembled object images against an emulated 64K-word machine with a
memory-mapped keyboard and natively handled trap routines.

Architecture:
    ┌──────────┐    ┌───────────┐    ┌─────────────────────────────┐
    │  Image   │───>│  Memory   │<──>│  LC3Emulator (fetch/execute)│
    │ (.obj)   │    │ 64K words │    │  Registers · TrapDispatcher │
    └──────────┘    └─────┬─────┘    └──────────────┬──────────────┘
                          │ KBSR/KBDR               │ GETC/OUT/PUTS/IN/PUTSP
                          └──────────┬──────────────┘
                                ┌────┴────┐
                                │ Console │  Buffered / Terminal
                                └─────────┘

    - cpu/regs.py:       R0-R7, PC, condition codes
    - cpu/alu.py:        sign extension, 16-bit wrap-around arithmetic
    - cpu/decoder.py:    opcode constants, operand fields, disassembler
    - mem/memory.py:     word memory with device handler routing
    - periph/:           console devices, keyboard registers
    - traps.py:          trap service routines x20-x25
    - loader.py:         object image parsing
    - emu.py:            the execution engine
"""

__version__ = "1.0.0"

from .config import EmulatorConfig, PC_START
from .cpu.alu import sign_extend
from .cpu.regs import Registers, FL_POS, FL_ZRO, FL_NEG
from .mem.memory import Memory
from .periph.console import (
    Console, BufferedConsole, TerminalConsole, ConsoleInterrupt,
)
from .loader import ImageLoadError, parse_image, read_image_file
from .traps import TrapDispatcher
from .emu import LC3Emulator, StopReason, State
