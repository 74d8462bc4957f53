"""
LC-3 Virtual Emulator — Memory-Mapped Keyboard

Register map:
  xFE00  KBSR  — Keyboard status. Bit 15 = a key is ready.
  xFE02  KBDR  — Keyboard data. Bits 7-0 = last key code.

Programs poll the keyboard with LDI R0, KBSR_PTR; BRzp back; LDI R0,
KBDR_PTR. Each KBSR read polls the console once, without blocking:
  key pending → KBSR = x8000, KBDR = key
  no key      → KBSR = x0000
A KBSR read consumes the key it reports, so reading KBSR twice in a row
with no new input reads ready, then not-ready.
"""

from ..config import KBDR, KBSR, KBSR_READY


class KeyboardPeripheral:
    """KBSR/KBDR device model backed by a Console."""

    def __init__(self, console):
        self.console = console
        self._mem = None
        self.keys_received = 0

    def register(self, memory):
        """Wire KBSR into the memory I/O system.

        KBDR needs no handler: the poll stores the key there and the
        program reads it as ordinary storage.
        """
        self._mem = memory
        memory.register_io_handler(KBSR, self._read_kbsr, None)

    def _read_kbsr(self, addr: int) -> int:
        key = self.console.poll_key()
        if key is None:
            return 0
        self._mem.poke(KBDR, key)
        self.keys_received += 1
        return KBSR_READY

    def reset(self):
        self.keys_received = 0
