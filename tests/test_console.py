"""Console devices."""

import io
import os
import sys

import pytest

from lc3_virtual_emulator.emu import LC3Emulator, StopReason
from lc3_virtual_emulator.periph.console import (
    BufferedConsole, TerminalConsole, ConsoleInterrupt,
)


class TestBufferedConsole:

    def test_poll_and_read(self):
        con = BufferedConsole("ab")
        assert con.poll_key() == ord("a")
        assert con.read_key() == ord("b")
        assert con.poll_key() is None

    def test_read_exhausted(self):
        con = BufferedConsole()
        with pytest.raises(ConsoleInterrupt):
            con.read_key()

    @pytest.mark.parametrize("key", ["\x1b", "\x03"])
    def test_interrupt_keys(self, key):
        con = BufferedConsole(key)
        with pytest.raises(ConsoleInterrupt):
            con.poll_key()

    def test_interrupt_keys_disabled(self):
        con = BufferedConsole("\x1b", interrupt_keys=())
        assert con.read_key() == 0x1B

    def test_bytes_input(self):
        con = BufferedConsole(b"xy")
        assert con.pending == 2
        assert con.read_key() == ord("x")

    def test_output(self):
        con = BufferedConsole()
        con.write_text("Hi")
        con.write_char(0x21)
        assert con.output == "Hi!"
        con.clear_output()
        assert con.output == ""


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX pipes")
class TestTerminalConsole:

    def test_pipe_input(self):
        r, w = os.pipe()
        out = io.StringIO()
        with os.fdopen(r, "rb", buffering=0) as stdin:
            os.write(w, b"a")
            with TerminalConsole(stdin=stdin, stdout=out) as con:
                assert con.poll_key() == ord("a")
                assert con.poll_key() is None
                os.close(w)
                with pytest.raises(ConsoleInterrupt):
                    con.read_key()
                con.write_char(ord("Z"))
        assert out.getvalue() == "Z"


class TestTerminalOutput:

    def test_unencodable_word_is_replaced(self):
        out = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
        con = TerminalConsole(stdout=out)
        con.write_char(0xD800)   # lone surrogate
        con.write_char(ord("A"))
        assert out.buffer.getvalue() == "\ufffdA".encode("utf-8")

    def test_out_unencodable_word_keeps_running(self):
        out = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
        emu = LC3Emulator(console=TerminalConsole(stdout=out))
        emu.load_words([
            0xF021,   # x3000: OUT
            0xF025,   # x3001: HALT
        ], 0x3000)
        emu.regs[0] = 0xD800
        assert emu.run() is StopReason.HALT
        assert out.buffer.getvalue() == "\ufffd".encode("utf-8")
