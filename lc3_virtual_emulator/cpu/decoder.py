"""
LC-3 Virtual Emulator — Opcode Table / Field Decoding / Disassembler

Every instruction is one 16-bit word. Bits 15-12 select the opcode; the
remaining 12 bits are operand fields whose layout depends on the opcode:

  15 14 13 12 | 11 10  9 |  8  7  6 |  5 |  4  3  2  1  0
  ----------- + -------- + -------- + -- + --------------
     opcode   |  DR/SR   | SR1/Base | im | imm5 / SR2 (2-0)
     BR       |  n  z  p |        PCoffset9 (8-0)
     JSR      | 1 |          PCoffset11 (10-0)
     LDR/STR  |  DR/SR   |   Base   |    offset6 (5-0)
     TRAP     |  0  0  0    0 |      trapvect8 (7-0)

All 16 opcodes decode to something, so decoding never fails; RTI and RES
are simply reported as invalid by the engine.
"""

from .alu import sign_extend, to_signed

# ──────────────────────────────────────────────
# Opcodes (bits 15-12)
# ──────────────────────────────────────────────

OP_BR   = 0x0   # branch
OP_ADD  = 0x1   # add
OP_LD   = 0x2   # load PC-relative
OP_ST   = 0x3   # store PC-relative
OP_JSR  = 0x4   # jump to subroutine (JSR / JSRR)
OP_AND  = 0x5   # bitwise and
OP_LDR  = 0x6   # load base+offset
OP_STR  = 0x7   # store base+offset
OP_RTI  = 0x8   # return from interrupt (unused here)
OP_NOT  = 0x9   # bitwise not
OP_LDI  = 0xA   # load indirect
OP_STI  = 0xB   # store indirect
OP_JMP  = 0xC   # jump (RET when BaseR = R7)
OP_RES  = 0xD   # reserved
OP_LEA  = 0xE   # load effective address
OP_TRAP = 0xF   # system call

OPCODE_NAMES = {
    OP_BR: 'BR', OP_ADD: 'ADD', OP_LD: 'LD', OP_ST: 'ST',
    OP_JSR: 'JSR', OP_AND: 'AND', OP_LDR: 'LDR', OP_STR: 'STR',
    OP_RTI: 'RTI', OP_NOT: 'NOT', OP_LDI: 'LDI', OP_STI: 'STI',
    OP_JMP: 'JMP', OP_RES: 'RES', OP_LEA: 'LEA', OP_TRAP: 'TRAP',
}

INVALID_OPCODES = frozenset((OP_RTI, OP_RES))

# Trap vector names, for disassembly only
TRAP_NAMES = {
    0x20: 'GETC', 0x21: 'OUT', 0x22: 'PUTS',
    0x23: 'IN', 0x24: 'PUTSP', 0x25: 'HALT',
}


# ──────────────────────────────────────────────
# Field extraction
# ──────────────────────────────────────────────

def opcode(instr: int) -> int:
    return (instr >> 12) & 0xF


def field_dr(instr: int) -> int:
    """Bits 11-9: destination register (or source register for stores)."""
    return (instr >> 9) & 0x7


def field_sr1(instr: int) -> int:
    """Bits 8-6: first source register / base register."""
    return (instr >> 6) & 0x7


def field_sr2(instr: int) -> int:
    return instr & 0x7


def is_immediate(instr: int) -> bool:
    """Bit 5 selects imm5 over SR2 in ADD/AND."""
    return bool((instr >> 5) & 0x1)


def is_long_jsr(instr: int) -> bool:
    """Bit 11 selects JSR (PC-relative) over JSRR (register)."""
    return bool((instr >> 11) & 0x1)


def cond_mask(instr: int) -> int:
    """Bits 11-9 of BR, laid out like COND: n=4, z=2, p=1."""
    return (instr >> 9) & 0x7


def imm5(instr: int) -> int:
    return sign_extend(instr & 0x1F, 5)


def offset6(instr: int) -> int:
    return sign_extend(instr & 0x3F, 6)


def pc_offset9(instr: int) -> int:
    return sign_extend(instr & 0x1FF, 9)


def pc_offset11(instr: int) -> int:
    return sign_extend(instr & 0x7FF, 11)


def trap_vector(instr: int) -> int:
    return instr & 0xFF


# ──────────────────────────────────────────────
# Disassembler (trace output)
# ──────────────────────────────────────────────


def _target(address: int, offset: int) -> str:
    # PC-relative targets are computed from the incremented PC
    return f"x{(address + 1 + offset) & 0xFFFF:04X}"


def disassemble(instr: int, address: int = 0) -> str:
    """Render one instruction word as LC-3 assembly text.

    ``address`` is where the word lives; it is only used to print the
    absolute target of PC-relative operands.
    """
    op = opcode(instr)
    dr = field_dr(instr)
    sr1 = field_sr1(instr)

    if op in (OP_ADD, OP_AND):
        name = OPCODE_NAMES[op]
        if is_immediate(instr):
            return f"{name} R{dr}, R{sr1}, #{to_signed(imm5(instr))}"
        return f"{name} R{dr}, R{sr1}, R{field_sr2(instr)}"

    if op == OP_NOT:
        return f"NOT R{dr}, R{sr1}"

    if op == OP_BR:
        mask = cond_mask(instr)
        if mask == 0:
            return "NOP"
        suffix = ''.join(c for c, bit in (('n', 4), ('z', 2), ('p', 1))
                         if mask & bit)
        return f"BR{suffix} {_target(address, pc_offset9(instr))}"

    if op == OP_JMP:
        return "RET" if sr1 == 7 else f"JMP R{sr1}"

    if op == OP_JSR:
        if is_long_jsr(instr):
            return f"JSR {_target(address, pc_offset11(instr))}"
        return f"JSRR R{sr1}"

    if op in (OP_LD, OP_LDI, OP_LEA, OP_ST, OP_STI):
        return f"{OPCODE_NAMES[op]} R{dr}, {_target(address, pc_offset9(instr))}"

    if op in (OP_LDR, OP_STR):
        return f"{OPCODE_NAMES[op]} R{dr}, R{sr1}, #{to_signed(offset6(instr))}"

    if op == OP_TRAP:
        vector = trap_vector(instr)
        return TRAP_NAMES.get(vector, f"TRAP x{vector:02X}")

    # RTI / RES
    return f".FILL x{instr:04X} ; {OPCODE_NAMES[op]}"
