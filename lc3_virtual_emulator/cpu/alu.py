"""
LC-3 Virtual Emulator — Word Arithmetic

All LC-3 arithmetic is on 16-bit words and wraps modulo 2^16. There is
no carry or overflow flag, so unlike a wider ALU these helpers return
bare results; condition codes are derived afterwards from the
destination register (see Registers.update_flags).

Sign extension is used by every instruction with an embedded constant:
  imm5        ADD, AND (immediate mode)
  offset6     LDR, STR
  PCoffset9   BR, LD, LDI, LEA, ST, STI
  PCoffset11  JSR
"""

from ..config import WORD_MASK


def sign_extend(value: int, bit_count: int) -> int:
    """Sign-extend the low bit_count bits of value to a 16-bit word.

    The field is treated as two's complement: if its top bit is set,
    every higher bit of the result is set as well.

    sign_extend(0b11111, 5)  -> 0xFFFF  (-1)
    sign_extend(0b01111, 5)  -> 0x000F  (+15)
    """
    value &= (1 << bit_count) - 1
    if (value >> (bit_count - 1)) & 1:
        value |= (WORD_MASK << bit_count) & WORD_MASK
    return value


def to_signed(word: int) -> int:
    """Interpret a 16-bit word as a signed Python int."""
    word &= WORD_MASK
    if word & 0x8000:
        return word - 0x10000
    return word


def add16(a: int, b: int) -> int:
    """Add two words, wrapping at 16 bits."""
    return (a + b) & WORD_MASK


def and16(a: int, b: int) -> int:
    return (a & b) & WORD_MASK


def not16(a: int) -> int:
    """Bitwise complement within 16 bits."""
    return (~a) & WORD_MASK
