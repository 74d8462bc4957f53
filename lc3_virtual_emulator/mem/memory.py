"""
LC-3 Virtual Emulator — 64K-Word Memory with Device Routing

Memory map (LC-3):
  x0000–x00FF  Trap vector table
  x0100–x01FF  Interrupt vector table
  x0200–x2FFF  Operating system / supervisor space
  x3000–xFDFF  User programs
  xFE00–xFFFF  Device registers
               xFE00 KBSR  keyboard status
               xFE02 KBDR  keyboard data

The emulator handles traps natively, so only the device page is special.
Storage is a flat array of 65,536 unsigned 16-bit words. Reads and writes
to an address with a registered device handler are routed to that
handler; everything else is plain storage. Addresses wrap at 16 bits,
so there is no out-of-range access.
"""

from array import array
from typing import Callable, Dict, Iterable, List, Optional

from ..config import MEMORY_SIZE, WORD_MASK


class Memory:
    """65,536-word addressable memory with memory-mapped I/O.

    Device models call register_io_handler() to intercept their
    registers. The value a read handler returns is latched into the raw
    array too, so hexdump() and snapshots show the last device state.

    peek()/poke() bypass device handlers and watchpoints. They are what
    loaders, devices and string-output traps use.
    """

    def __init__(self):
        self._mem = array('H', [0]) * MEMORY_SIZE

        # I/O register handlers: addr → read_fn(addr) / write_fn(addr, value)
        self._io_read_handlers: Dict[int, Callable] = {}
        self._io_write_handlers: Dict[int, Callable] = {}

        # Watchpoints: addr → callback(addr, old_val, new_val, is_write)
        self._watchpoints: Dict[int, List[Callable]] = {}

    # --- Core read/write ---

    def read(self, addr: int) -> int:
        """Read one word. Device registers may have side effects."""
        addr &= WORD_MASK
        handler = self._io_read_handlers.get(addr)
        if handler is not None:
            self._mem[addr] = handler(addr) & WORD_MASK
        return self._mem[addr]

    def write(self, addr: int, value: int):
        """Write one word. Watchpoint callbacks fire on every write."""
        addr &= WORD_MASK
        value &= WORD_MASK
        old = self._mem[addr]

        if addr in self._watchpoints:
            for cb in self._watchpoints[addr]:
                cb(addr, old, value, True)

        self._mem[addr] = value
        handler = self._io_write_handlers.get(addr)
        if handler is not None:
            handler(addr, value)

    def peek(self, addr: int) -> int:
        """Raw read — no device side effects."""
        return self._mem[addr & WORD_MASK]

    def poke(self, addr: int, value: int):
        """Raw write — no device handlers, no watchpoints."""
        self._mem[addr & WORD_MASK] = value & WORD_MASK

    # --- Bulk load ---

    def load_words(self, words: Iterable[int], origin: int) -> int:
        """Copy words into memory starting at origin. Returns word count.

        The destination address wraps past xFFFF back to x0000.
        """
        count = 0
        for i, word in enumerate(words):
            self._mem[(origin + i) & WORD_MASK] = word & WORD_MASK
            count += 1
        return count

    def clear(self):
        """Zero every word. Handlers and watchpoints stay registered."""
        self._mem = array('H', [0]) * MEMORY_SIZE

    # --- I/O handler registration ---

    def register_io_handler(self, addr: int,
                            read_fn: Optional[Callable] = None,
                            write_fn: Optional[Callable] = None):
        """Register read/write handlers for a device register address.

        Args:
            addr: device register address (normally xFE00–xFFFF)
            read_fn: Callable(addr) -> int (16-bit value)
            write_fn: Callable(addr, value) -> None
        """
        addr &= WORD_MASK
        if read_fn:
            self._io_read_handlers[addr] = read_fn
        if write_fn:
            self._io_write_handlers[addr] = write_fn

    # --- Watchpoints ---

    def add_watchpoint(self, addr: int, callback: Callable):
        """Call callback(addr, old_val, new_val, is_write) on each write to addr."""
        self._watchpoints.setdefault(addr & WORD_MASK, []).append(callback)

    def remove_watchpoint(self, addr: int, callback: Optional[Callable] = None):
        """Remove a watchpoint. If callback is None, removes all on that addr."""
        addr &= WORD_MASK
        if addr in self._watchpoints:
            if callback is None:
                del self._watchpoints[addr]
            else:
                self._watchpoints[addr] = [
                    cb for cb in self._watchpoints[addr] if cb != callback
                ]

    # --- Snapshots ---

    def snapshot(self, start: int = 0x3000, end: int = 0xFDFF) -> tuple:
        """Copy of words start..end inclusive, for later diffing."""
        return tuple(self._mem[start:end + 1])

    def diff_snapshots(self, snap_a: tuple, snap_b: tuple,
                       base_addr: int = 0x3000) -> Dict[int, tuple]:
        """Compare two snapshots, return {addr: (old, new)} for changes."""
        changes = {}
        for i in range(min(len(snap_a), len(snap_b))):
            if snap_a[i] != snap_b[i]:
                changes[base_addr + i] = (snap_a[i], snap_b[i])
        return changes

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 64) -> str:
        """Hex dump of ``length`` words, eight per line."""
        lines = []
        for offset in range(0, length, 8):
            addr = (start + offset) & WORD_MASK
            words = [self._mem[(addr + i) & WORD_MASK]
                     for i in range(min(8, length - offset))]
            hex_words = ' '.join(f'{w:04X}' for w in words)
            ascii_chars = ''.join(
                chr(w) if 0x20 <= w < 0x7F else '.' for w in words
            )
            lines.append(f'x{addr:04X}  {hex_words:<39s}  {ascii_chars}')
        return '\n'.join(lines)
