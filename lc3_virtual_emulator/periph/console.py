"""
LC-3 Virtual Emulator — Console Devices

The console is the only I/O the machine has. The emulator uses it from:
  - the keyboard device (KBSR poll)    → poll_key()   never blocks
  - the GETC / IN traps                → read_key()   blocks for a key
  - the OUT / PUTS / PUTSP / IN traps  → write_char()

Two implementations:
  BufferedConsole  — input queue + output capture, for tests and for
                     embedding the emulator in other tools
  TerminalConsole  — the real terminal: stdin in cbreak mode on POSIX
                     (termios/tty/select), msvcrt on Windows

Escape and Ctrl-C are interrupt keys. Reading one raises
ConsoleInterrupt, which aborts the run immediately. This is not HALT:
the program gets no chance to finish, and the engine reports
StopReason.INTERRUPTED.
"""

import os
import sys
from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, Optional, Union

from ..config import INTERRUPT_KEYS

REPLACEMENT_CHAR = "\ufffd"

if sys.platform == 'win32':
    import msvcrt
else:
    import select
    import termios
    import tty


class ConsoleInterrupt(Exception):
    """Raised when the console wants the run aborted."""
    pass


class Console(ABC):
    """Abstract character console.

    Subclasses implement _poll(), _read() and write_char(); the interrupt
    key check lives here so every console behaves the same way.
    """

    def __init__(self, interrupt_keys: Iterable[int] = INTERRUPT_KEYS):
        self.interrupt_keys = frozenset(interrupt_keys)

    @abstractmethod
    def _poll(self) -> Optional[int]:
        """Return a pending key code, or None. Must not block."""

    @abstractmethod
    def _read(self) -> int:
        """Wait for and return one key code."""

    @abstractmethod
    def write_char(self, code: int):
        """Write one character to the output."""

    def poll_key(self) -> Optional[int]:
        key = self._poll()
        if key is not None:
            self._check_interrupt(key)
        return key

    def read_key(self) -> int:
        key = self._read()
        self._check_interrupt(key)
        return key

    def write_text(self, text: str):
        for ch in text:
            self.write_char(ord(ch))

    def _check_interrupt(self, key: int):
        if key in self.interrupt_keys:
            raise ConsoleInterrupt(f"interrupt key 0x{key:02X}")

    # Consoles are context managers so the CLI can treat them uniformly;
    # only TerminalConsole has state to set up and restore.
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class BufferedConsole(Console):
    """In-memory console.

    Keys are queued with provide_input(); everything written lands in
    tx_buffer. A blocking read with nothing queued cannot be satisfied,
    so it raises ConsoleInterrupt instead of hanging.

    Example:
        con = BufferedConsole("y")
        emu = LC3Emulator(console=con)
        ...
        assert con.output == "Enter a character: \ny"
    """

    def __init__(self, text: Union[str, bytes] = "",
                 interrupt_keys: Iterable[int] = INTERRUPT_KEYS):
        super().__init__(interrupt_keys)
        self._rx_queue: deque = deque()
        self.tx_buffer: list = []
        self.provide_input(text)

    def provide_input(self, data: Union[str, bytes, Iterable[int]]):
        """Queue keys. Strings are queued as their code points."""
        if isinstance(data, str):
            data = [ord(ch) for ch in data]
        for code in data:
            self._rx_queue.append(code & 0xFFFF)

    @property
    def pending(self) -> int:
        """Number of keys still queued."""
        return len(self._rx_queue)

    def _poll(self) -> Optional[int]:
        if self._rx_queue:
            return self._rx_queue.popleft()
        return None

    def _read(self) -> int:
        if not self._rx_queue:
            raise ConsoleInterrupt("console input exhausted")
        return self._rx_queue.popleft()

    def write_char(self, code: int):
        self.tx_buffer.append(code & 0xFFFF)

    @property
    def output(self) -> str:
        """Everything written since the last clear, as text."""
        return ''.join(chr(c) for c in self.tx_buffer)

    def clear_output(self):
        self.tx_buffer.clear()

    def reset(self):
        self._rx_queue.clear()
        self.tx_buffer.clear()


class TerminalConsole(Console):
    """The process terminal.

    Use as a context manager: on entry an interactive POSIX stdin is put
    in cbreak mode (single keys, no echo), and the previous settings are
    restored on exit. Non-tty input (pipes, files) is read as-is.

    Keys are read with os.read() on the file descriptor so that select()
    and the read agree on what is pending; Python's text buffering
    would otherwise hide keys from the poll.
    """

    def __init__(self, stdin=None, stdout=None,
                 interrupt_keys: Iterable[int] = INTERRUPT_KEYS):
        super().__init__(interrupt_keys)
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._fd: Optional[int] = None
        self._old_settings = None

    def __enter__(self):
        if sys.platform != 'win32' and self._stdin.isatty():
            self._fd = self._stdin.fileno()
            self._old_settings = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._old_settings is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)
            self._old_settings = None
        self._stdout.flush()
        return False

    def _poll(self) -> Optional[int]:
        if sys.platform == 'win32':
            if msvcrt.kbhit():
                return ord(msvcrt.getwch())
            return None
        ready, _, _ = select.select([self._stdin], [], [], 0)
        if ready:
            return self._read()
        return None

    def _read(self) -> int:
        if sys.platform == 'win32':
            return ord(msvcrt.getwch())
        data = os.read(self._stdin.fileno(), 1)
        if not data:
            raise ConsoleInterrupt("end of console input")
        return data[0]

    def write_char(self, code: int):
        """Write one character; words the stream cannot encode print as U+FFFD."""
        try:
            self._stdout.write(chr(code))
        except UnicodeEncodeError:
            self._stdout.write(REPLACEMENT_CHAR)
        self._stdout.flush()
