"""
LC-3 Virtual Emulator — Configuration
======================================

Architectural constants and run-time defaults in one place.

The memory-mapped addresses and trap vectors are fixed by the LC-3
instruction set and must not be changed. Everything under RUN-TIME
DEFAULTS can be overridden per emulator via EmulatorConfig, or from the
lc3vm command line.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
#  ARCHITECTURE (fixed by the instruction set)
# =============================================================================
WORD_MASK = 0xFFFF
MEMORY_SIZE = 0x10000      # 65,536 words

# Memory-mapped keyboard registers
KBSR = 0xFE00              # Keyboard status — bit 15 = key ready
KBDR = 0xFE02              # Keyboard data — last key code
KBSR_READY = 0x8000


# =============================================================================
#  RUN-TIME DEFAULTS
# =============================================================================
PC_START = 0x3000          # Conventional user program origin
IN_PROMPT = "Enter a character: \n"

# Keys that abort a run from the console (Escape, Ctrl-C)
KEY_ESC = 0x1B
KEY_CTRL_C = 0x03
INTERRUPT_KEYS = (KEY_ESC, KEY_CTRL_C)


# =============================================================================
#  PROCESS EXIT CODES (lc3vm)
# =============================================================================
EXIT_OK = 0                # HALT trap reached
EXIT_ERROR = 1             # image failed to load, or console I/O error
EXIT_INCOMPLETE = 2        # step limit or breakpoint reached before HALT
EXIT_INTERRUPTED = 130     # Escape / Ctrl-C


@dataclass
class EmulatorConfig:
    """Per-instance emulator settings."""
    start_addr: int = PC_START
    max_steps: Optional[int] = None   # None = run until HALT
    trace: bool = False
    in_prompt: str = IN_PROMPT
