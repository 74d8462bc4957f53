"""lc3vm command line."""

import pytest

from lc3_virtual_emulator.log_setup import reset_logging
from lc3_virtual_emulator.periph.console import BufferedConsole
from lc3vm import main, parse_int_arg


@pytest.fixture(autouse=True)
def _fresh_logging():
    yield
    reset_logging("lc3")


def _image(tmp_path, origin, words, name="prog.obj"):
    data = origin.to_bytes(2, "big") + b"".join(w.to_bytes(2, "big") for w in words)
    path = tmp_path / name
    path.write_bytes(data)
    return str(path)


OK_PROGRAM = [
    0xE002,   # x3000: LEA R0, x3003
    0xF022,   # x3001: PUTS
    0xF025,   # x3002: HALT
    0x004F, 0x004B, 0x0000,   # "OK"
]


class TestParseIntArg:

    @pytest.mark.parametrize("text,value", [
        ("x3000", 0x3000),
        ("X3000", 0x3000),
        ("0x3000", 0x3000),
        ("12288", 12288),
    ])
    def test_forms(self, text, value):
        assert parse_int_arg(text) == value


class TestMain:

    def test_halt_exit_code(self, tmp_path):
        con = BufferedConsole()
        path = _image(tmp_path, 0x3000, OK_PROGRAM)
        assert main([path, "--no-rich"], console=con) == 0
        assert con.output == "OK"

    def test_missing_image(self, tmp_path):
        path = str(tmp_path / "nope.obj")
        assert main([path, "--no-rich"], console=BufferedConsole()) == 1

    def test_truncated_image(self, tmp_path):
        path = tmp_path / "short.obj"
        path.write_bytes(b"\x30")
        assert main([str(path), "--no-rich"], console=BufferedConsole()) == 1

    def test_max_steps(self, tmp_path):
        path = _image(tmp_path, 0x3000, [0x0FFF])   # BRnzp #-1
        assert main([path, "--max-steps", "5", "--no-rich"],
                    console=BufferedConsole()) == 2

    def test_interrupted(self, tmp_path):
        path = _image(tmp_path, 0x3000, [0xF020, 0xF025])   # GETC; HALT
        assert main([path, "--no-rich"], console=BufferedConsole("\x1b")) == 130

    def test_interrupt_key_during_fetch(self, tmp_path):
        path = _image(tmp_path, 0x3000, [
            0x2201,   # x3000: LD R1, x3002
            0xC040,   # x3001: JMP R1
            0xFE00,   # x3002: KBSR
        ])
        assert main([path, "--no-rich"], console=BufferedConsole("\x1b")) == 130

    def test_ctrl_c_during_terminal_setup(self, tmp_path):
        class InterruptedConsole(BufferedConsole):
            def __enter__(self):
                raise KeyboardInterrupt

        path = _image(tmp_path, 0x3000, [0xF025])
        assert main([path, "--no-rich"], console=InterruptedConsole()) == 130

    def test_start_address(self, tmp_path):
        path = _image(tmp_path, 0x4000, [0xF025])
        assert main([path, "--start", "x4000", "--no-rich"],
                    console=BufferedConsole()) == 0

    def test_dump_regs(self, tmp_path, capsys):
        path = _image(tmp_path, 0x3000, [0xF025])
        assert main([path, "--dump-regs", "--no-rich"], console=BufferedConsole()) == 0
        assert "PC=3001" in capsys.readouterr().err

    def test_log_file(self, tmp_path):
        path = _image(tmp_path, 0x3000, [0xF025])
        log_path = tmp_path / "logs" / "run.log"
        assert main([path, "--log-file", str(log_path)], console=BufferedConsole()) == 0
        reset_logging("lc3")
        text = log_path.read_text(encoding="utf-8")
        assert "Computer starting at x3000" in text
        assert "Computer halting..." in text
