"""Opcode decoding: maps instruction words to instruction-set slots."""

from typing import TYPE_CHECKING, Callable

from .errors import UnknownInstruction
from .opcode import OpCode

if TYPE_CHECKING:
    from .state import MachineState


# Instruction executor type
InstructionExecutor = Callable[[OpCode, "MachineState"], None]
InstructionSet = list[InstructionExecutor]

INSTRUCTION_COUNT = 34

# Slot indices into an instruction set
OP_00E0 = 0   # CLS
OP_00EE = 1   # RET
OP_1NNN = 2   # JP addr
OP_2NNN = 3   # CALL addr
OP_3XNN = 4   # SE Vx, byte
OP_4XNN = 5   # SNE Vx, byte
OP_5XY0 = 6   # SE Vx, Vy
OP_6XNN = 7   # LD Vx, byte
OP_7XNN = 8   # ADD Vx, byte
OP_8XY0 = 9   # LD Vx, Vy
OP_8XY1 = 10  # OR Vx, Vy
OP_8XY2 = 11  # AND Vx, Vy
OP_8XY3 = 12  # XOR Vx, Vy
OP_8XY4 = 13  # ADD Vx, Vy
OP_8XY5 = 14  # SUB Vx, Vy
OP_8XY6 = 15  # SHR Vx {, Vy}
OP_8XY7 = 16  # SUBN Vx, Vy
OP_8XYE = 17  # SHL Vx {, Vy}
OP_9XY0 = 18  # SNE Vx, Vy
OP_ANNN = 19  # LD I, addr
OP_BNNN = 20  # JP V0, addr
OP_CXNN = 21  # RND Vx, byte
OP_DXYN = 22  # DRW Vx, Vy, nibble
OP_EX9E = 23  # SKP Vx
OP_EXA1 = 24  # SKNP Vx
OP_FX07 = 25  # LD Vx, DT
OP_FX0A = 26  # LD Vx, K
OP_FX15 = 27  # LD DT, Vx
OP_FX18 = 28  # LD ST, Vx
OP_FX1E = 29  # ADD I, Vx
OP_FX29 = 30  # LD F, Vx
OP_FX33 = 31  # LD B, Vx
OP_FX55 = 32  # LD [I], Vx
OP_FX65 = 33  # LD Vx, [I]

# Families that map one-to-one to a slot
FAMILY_SLOTS = {
    0x1: OP_1NNN,
    0x2: OP_2NNN,
    0x3: OP_3XNN,
    0x4: OP_4XNN,
    0x5: OP_5XY0,
    0x6: OP_6XNN,
    0x7: OP_7XNN,
    0x9: OP_9XY0,
    0xA: OP_ANNN,
    0xB: OP_BNNN,
    0xC: OP_CXNN,
    0xD: OP_DXYN,
}

# Family 0x0 discriminates on the whole word
SYSTEM_SLOTS = {
    0x00E0: OP_00E0,
    0x00EE: OP_00EE,
}

# Family 0x8 discriminates on the low nibble
ARITHMETIC_SLOTS = {
    0x0: OP_8XY0,
    0x1: OP_8XY1,
    0x2: OP_8XY2,
    0x3: OP_8XY3,
    0x4: OP_8XY4,
    0x5: OP_8XY5,
    0x6: OP_8XY6,
    0x7: OP_8XY7,
    0xE: OP_8XYE,
}

# Families 0xE and 0xF discriminate on the low byte
KEY_SLOTS = {
    0x9E: OP_EX9E,
    0xA1: OP_EXA1,
}

MISC_SLOTS = {
    0x07: OP_FX07,
    0x0A: OP_FX0A,
    0x15: OP_FX15,
    0x18: OP_FX18,
    0x1E: OP_FX1E,
    0x29: OP_FX29,
    0x33: OP_FX33,
    0x55: OP_FX55,
    0x65: OP_FX65,
}

# Canonical bit pattern and disassembly template per slot
MNEMONICS: list[tuple[str, str]] = [
    ("00E0", "CLS"),
    ("00EE", "RET"),
    ("1NNN", "JP {nnn}"),
    ("2NNN", "CALL {nnn}"),
    ("3XNN", "SE {x}, {nn}"),
    ("4XNN", "SNE {x}, {nn}"),
    ("5XY0", "SE {x}, {y}"),
    ("6XNN", "LD {x}, {nn}"),
    ("7XNN", "ADD {x}, {nn}"),
    ("8XY0", "LD {x}, {y}"),
    ("8XY1", "OR {x}, {y}"),
    ("8XY2", "AND {x}, {y}"),
    ("8XY3", "XOR {x}, {y}"),
    ("8XY4", "ADD {x}, {y}"),
    ("8XY5", "SUB {x}, {y}"),
    ("8XY6", "SHR {x}, {y}"),
    ("8XY7", "SUBN {x}, {y}"),
    ("8XYE", "SHL {x}, {y}"),
    ("9XY0", "SNE {x}, {y}"),
    ("ANNN", "LD I, {nnn}"),
    ("BNNN", "JP V0, {nnn}"),
    ("CXNN", "RND {x}, {nn}"),
    ("DXYN", "DRW {x}, {y}, {n}"),
    ("EX9E", "SKP {x}"),
    ("EXA1", "SKNP {x}"),
    ("FX07", "LD {x}, DT"),
    ("FX0A", "LD {x}, K"),
    ("FX15", "LD DT, {x}"),
    ("FX18", "LD ST, {x}"),
    ("FX1E", "ADD I, {x}"),
    ("FX29", "LD F, {x}"),
    ("FX33", "LD B, {x}"),
    ("FX55", "LD [I], {x}"),
    ("FX65", "LD {x}, [I]"),
]


def decode_slot(op: OpCode) -> int:
    """Return the instruction-set slot for an opcode.

    Raises:
        UnknownInstruction: if no slot matches the opcode.
    """
    family = op.family

    if family == 0x0:
        slot = SYSTEM_SLOTS.get(op.value)
    elif family == 0x8:
        slot = ARITHMETIC_SLOTS.get(op.n)
    elif family == 0xE:
        slot = KEY_SLOTS.get(op.nn)
    elif family == 0xF:
        slot = MISC_SLOTS.get(op.nn)
    else:
        slot = FAMILY_SLOTS[family]

    if slot is None:
        raise UnknownInstruction(f"Unknown instruction: {op}", opcode=op.value)
    return slot


def decode_instruction(instruction_set: InstructionSet, op: OpCode) -> InstructionExecutor:
    """Look up the executor for an opcode in an instruction set."""
    return instruction_set[decode_slot(op)]


def disassemble(op: OpCode) -> str:
    """Render an opcode as assembly text; unknown words become DW."""
    try:
        slot = decode_slot(op)
    except UnknownInstruction:
        return f"DW 0x{op.value:04X}"
    _, template = MNEMONICS[slot]
    return template.format(
        x=op.x,
        y=op.y,
        n=f"0x{op.n:X}",
        nn=f"0x{op.nn:02X}",
        nnn=f"0x{op.nnn.value:03X}",
    )
