#!/usr/bin/env python3
"""
lc3vm — LC-3 Virtual Machine CLI

Usage:
    lc3vm <image.obj> [--start x3000] [--max-steps N] [--trace]
                      [--verbose] [--log-file run.log] [--no-rich] [--dump-regs]

The image is an LC-3 object file: a big-endian origin word followed by
big-endian program words. Execution starts at --start (default x3000),
independent of the image origin.

Escape or Ctrl-C aborts the program immediately (exit code 130). This
is an abrupt stop, not a HALT: the program does not get to finish.

Exit codes:
    0    program executed HALT
    1    image could not be loaded, or console I/O failed
    2    --max-steps reached before HALT
    130  interrupted from the keyboard

Examples:
    lc3vm 2048.obj
    lc3vm rogue.obj --log-file rogue.log -v
    lc3vm hello.obj --max-steps 10000 --trace --dump-regs
"""

import argparse
import logging
import sys

from lc3_virtual_emulator import __version__
from lc3_virtual_emulator.config import (
    EmulatorConfig, PC_START,
    EXIT_OK, EXIT_ERROR, EXIT_INCOMPLETE, EXIT_INTERRUPTED,
)
from lc3_virtual_emulator.emu import LC3Emulator, StopReason
from lc3_virtual_emulator.loader import ImageLoadError
from lc3_virtual_emulator.log_setup import setup_logging
from lc3_virtual_emulator.periph.console import TerminalConsole

log = logging.getLogger('lc3.cli')

EXIT_CODES = {
    StopReason.HALT: EXIT_OK,
    StopReason.ERROR: EXIT_ERROR,
    StopReason.TIMEOUT: EXIT_INCOMPLETE,
    StopReason.BREAK: EXIT_INCOMPLETE,
    StopReason.INTERRUPTED: EXIT_INTERRUPTED,
}


def parse_int_arg(value: str) -> int:
    """Parse an address that may be hex (0x... or LC-3 x...) or decimal."""
    value = value.strip()
    if value[:2].lower() == "0x":
        return int(value, 16)
    if value[:1].lower() == "x":
        return int(value[1:], 16)  # LC-3 assembler convention
    return int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lc3vm",
        description="LC-3 virtual machine: run an assembled object image",
        epilog="Escape or Ctrl-C aborts the running program.",
    )
    parser.add_argument("image", help="LC-3 object image (.obj)")
    parser.add_argument("--start", type=parse_int_arg, default=PC_START,
                        help="Initial PC (hex x3000 / 0x3000, or decimal; default x3000)")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Stop after this many instructions (default: no limit)")
    parser.add_argument("--trace", action="store_true",
                        help="Log every instruction at DEBUG level")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show INFO messages on stderr")
    parser.add_argument("--log-file", default=None,
                        help="Also write a DEBUG log to this file")
    parser.add_argument("--no-rich", action="store_true",
                        help="Plain stderr logging instead of rich formatting")
    parser.add_argument("--dump-regs", action="store_true",
                        help="Print the register file to stderr when the run ends")
    parser.add_argument("--version", action="version",
                        version=f"lc3vm {__version__}")
    return parser


def main(argv=None, console=None) -> int:
    args = build_parser().parse_args(argv)

    if args.trace:
        console_level = logging.DEBUG
    elif args.verbose:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING
    setup_logging("lc3", console_level=console_level,
                  log_file=args.log_file, rich_console=not args.no_rich)

    config = EmulatorConfig(start_addr=args.start, max_steps=args.max_steps,
                            trace=args.trace)
    if console is None:
        console = TerminalConsole()
    emu = LC3Emulator(console=console, config=config)

    # Fail before touching the terminal or executing anything
    try:
        origin = emu.load_image(args.image)
    except ImageLoadError as e:
        log.error("%s", e)
        return EXIT_ERROR
    log.info("Image origin x%04X, starting at x%04X", origin, emu.regs.PC)

    try:
        with console:
            reason = emu.run()
    except KeyboardInterrupt:
        # Ctrl-C while the terminal was being set up or restored
        reason = StopReason.INTERRUPTED

    if reason is StopReason.INTERRUPTED:
        log.warning("Aborted from the keyboard after %d instructions", emu.regs.cycles)
    elif reason is not StopReason.HALT:
        log.warning("Stopped without HALT: %s after %d instructions",
                    reason.value, emu.regs.cycles)
    else:
        log.info("Halted after %d instructions", emu.regs.cycles)

    if args.dump_regs:
        print(emu.regs.display(), file=sys.stderr)

    return EXIT_CODES[reason]


if __name__ == "__main__":
    sys.exit(main())
