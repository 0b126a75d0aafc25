"""Instruction execution and instruction-set assembly for the CHIP-8 core."""

from .decoder import (
    INSTRUCTION_COUNT,
    InstructionExecutor,
    InstructionSet,
    decode_instruction,
    OP_00E0, OP_00EE, OP_1NNN, OP_2NNN, OP_3XNN, OP_4XNN, OP_5XY0,
    OP_6XNN, OP_7XNN, OP_8XY0, OP_8XY1, OP_8XY2, OP_8XY3, OP_8XY4,
    OP_8XY5, OP_8XY6, OP_8XY7, OP_8XYE, OP_9XY0, OP_ANNN, OP_BNNN,
    OP_CXNN, OP_DXYN, OP_EX9E, OP_EXA1, OP_FX07, OP_FX0A, OP_FX15,
    OP_FX18, OP_FX1E, OP_FX29, OP_FX33, OP_FX55, OP_FX65,
)
from .font import glyph_address
from .opcode import V0, Address, OpCode, RegisterId
from .state import MachineState


def execute_noop(op: OpCode, state: MachineState) -> None:
    """Placeholder slot: does nothing beyond the fetch."""
    pass


#=== Display ===#

def execute_cls(op: OpCode, state: MachineState) -> None:
    """00E0 CLS: clear the display"""
    state.screen.clear()


def execute_drw(op: OpCode, state: MachineState) -> None:
    """DXYN DRW Vx, Vy, n: XOR an n-row sprite from [I] at (Vx, Vy).

    VF is set to 1 if any lit pixel was turned off, 0 otherwise. The
    sprite bytes are read before the screen is touched, so an out of range
    read leaves the framebuffer as it was.
    """
    x = state.reg_read(op.x)
    y = state.reg_read(op.y)
    sprite = state.memory.read_block(state.index, op.n)

    unset_bit = False
    for row, pattern in enumerate(sprite):
        if state.screen.flip_vectored(pattern, x, y + row):
            unset_bit = True

    state.set_flag(unset_bit)


#=== Flow control ===#

def execute_ret(op: OpCode, state: MachineState) -> None:
    """00EE RET: PC := top of stack"""
    state.pc = state.stack_pop()


def execute_jp(op: OpCode, state: MachineState) -> None:
    """1NNN JP addr: PC := nnn"""
    state.pc = op.nnn


def execute_call(op: OpCode, state: MachineState) -> None:
    """2NNN CALL addr: push PC, PC := nnn"""
    state.stack_push(state.pc)
    state.pc = op.nnn


def execute_jp_offset(op: OpCode, state: MachineState) -> None:
    """BNNN JP V0, addr: PC := nnn + V0"""
    state.pc = op.nnn + state.reg_read(V0)


def execute_se_const(op: OpCode, state: MachineState) -> None:
    """3XNN SE Vx, byte: skip if Vx == nn"""
    if state.reg_read(op.x) == op.nn:
        state.skip()


def execute_sne_const(op: OpCode, state: MachineState) -> None:
    """4XNN SNE Vx, byte: skip if Vx != nn"""
    if state.reg_read(op.x) != op.nn:
        state.skip()


def execute_se(op: OpCode, state: MachineState) -> None:
    """5XY0 SE Vx, Vy: skip if Vx == Vy"""
    if state.reg_read(op.x) == state.reg_read(op.y):
        state.skip()


def execute_sne(op: OpCode, state: MachineState) -> None:
    """9XY0 SNE Vx, Vy: skip if Vx != Vy"""
    if state.reg_read(op.x) != state.reg_read(op.y):
        state.skip()


#=== Registers and arithmetic ===#

def execute_ld_const(op: OpCode, state: MachineState) -> None:
    """6XNN LD Vx, byte: Vx := nn"""
    state.reg_write(op.x, op.nn)


def execute_add_const(op: OpCode, state: MachineState) -> None:
    """7XNN ADD Vx, byte: Vx := Vx + nn, wrapping, VF untouched"""
    state.reg_write(op.x, state.reg_read(op.x) + op.nn)


def execute_ld(op: OpCode, state: MachineState) -> None:
    """8XY0 LD Vx, Vy: Vx := Vy"""
    state.reg_write(op.x, state.reg_read(op.y))


def execute_or(op: OpCode, state: MachineState) -> None:
    """8XY1 OR Vx, Vy: Vx := Vx | Vy"""
    state.reg_write(op.x, state.reg_read(op.x) | state.reg_read(op.y))


def execute_and(op: OpCode, state: MachineState) -> None:
    """8XY2 AND Vx, Vy: Vx := Vx & Vy"""
    state.reg_write(op.x, state.reg_read(op.x) & state.reg_read(op.y))


def execute_xor(op: OpCode, state: MachineState) -> None:
    """8XY3 XOR Vx, Vy: Vx := Vx ^ Vy"""
    state.reg_write(op.x, state.reg_read(op.x) ^ state.reg_read(op.y))


def execute_add(op: OpCode, state: MachineState) -> None:
    """8XY4 ADD Vx, Vy: Vx := Vx + Vy, VF := carry"""
    total = state.reg_read(op.x) + state.reg_read(op.y)
    state.reg_write(op.x, total)
    state.set_flag(total > 0xFF)


def execute_sub(op: OpCode, state: MachineState) -> None:
    """8XY5 SUB Vx, Vy: Vx := Vx - Vy, VF := NOT borrow"""
    left = state.reg_read(op.x)
    right = state.reg_read(op.y)
    state.reg_write(op.x, left - right)
    state.set_flag(left >= right)


def execute_subn(op: OpCode, state: MachineState) -> None:
    """8XY7 SUBN Vx, Vy: Vx := Vy - Vx, VF := NOT borrow"""
    left = state.reg_read(op.x)
    right = state.reg_read(op.y)
    state.reg_write(op.x, right - left)
    state.set_flag(right >= left)


def _shift_right(target: RegisterId, source: RegisterId, state: MachineState) -> None:
    value = state.reg_read(source)
    state.reg_write(target, value >> 1)
    state.set_flag(value & 0x01)


def _shift_left(target: RegisterId, source: RegisterId, state: MachineState) -> None:
    value = state.reg_read(source)
    state.reg_write(target, value << 1)
    state.set_flag(value & 0x80)


def execute_shr(op: OpCode, state: MachineState) -> None:
    """8XY6 SHR Vx: Vx := Vx >> 1, VF := bit shifted out"""
    _shift_right(op.x, op.x, state)


def execute_shr_legacy(op: OpCode, state: MachineState) -> None:
    """8XY6 SHR Vx, Vy: Vx := Vy >> 1, VF := bit shifted out"""
    _shift_right(op.x, op.y, state)


def execute_shl(op: OpCode, state: MachineState) -> None:
    """8XYE SHL Vx: Vx := Vx << 1, VF := bit shifted out"""
    _shift_left(op.x, op.x, state)


def execute_shl_legacy(op: OpCode, state: MachineState) -> None:
    """8XYE SHL Vx, Vy: Vx := Vy << 1, VF := bit shifted out"""
    _shift_left(op.x, op.y, state)


def execute_rnd(op: OpCode, state: MachineState) -> None:
    """CXNN RND Vx, byte: Vx := random byte & nn"""
    state.reg_write(op.x, state.random_source.next_byte() & op.nn)


#=== Keypad ===#

def execute_skp(op: OpCode, state: MachineState) -> None:
    """EX9E SKP Vx: skip if key Vx is down"""
    if state.is_key_pressed(state.reg_read(op.x)):
        state.skip()


def execute_sknp(op: OpCode, state: MachineState) -> None:
    """EXA1 SKNP Vx: skip if key Vx is up"""
    if not state.is_key_pressed(state.reg_read(op.x)):
        state.skip()


def execute_ld_key(op: OpCode, state: MachineState) -> None:
    """FX0A LD Vx, K: wait for a key press, Vx := key.

    Waiting is done by rewinding PC so the same instruction is fetched
    again on the next step.
    """
    key = state.first_pressed_key()
    if key is None:
        state.pc = state.pc - 2
    else:
        state.reg_write(op.x, key)


#=== Timers ===#

def execute_ld_from_delay(op: OpCode, state: MachineState) -> None:
    """FX07 LD Vx, DT: Vx := delay timer"""
    state.reg_write(op.x, state.delay_timer)


def execute_ld_delay(op: OpCode, state: MachineState) -> None:
    """FX15 LD DT, Vx: delay timer := Vx"""
    state.delay_timer = state.reg_read(op.x)


def execute_ld_sound(op: OpCode, state: MachineState) -> None:
    """FX18 LD ST, Vx: sound timer := Vx"""
    state.sound_timer = state.reg_read(op.x)


#=== Memory and index ===#

def execute_ld_index(op: OpCode, state: MachineState) -> None:
    """ANNN LD I, addr: I := nnn"""
    state.index = op.nnn


def execute_add_index(op: OpCode, state: MachineState) -> None:
    """FX1E ADD I, Vx: I := I + Vx"""
    state.index = state.index + state.reg_read(op.x)


def execute_ld_font(op: OpCode, state: MachineState) -> None:
    """FX29 LD F, Vx: I := address of glyph for digit Vx"""
    state.index = Address(glyph_address(state.reg_read(op.x)))


def execute_ld_bcd(op: OpCode, state: MachineState) -> None:
    """FX33 LD B, Vx: [I..I+2] := decimal digits of Vx"""
    value = state.reg_read(op.x)
    state.memory.write_block(state.index, (value // 100, (value // 10) % 10, value % 10))


def execute_store_registers(op: OpCode, state: MachineState) -> None:
    """FX55 LD [I], Vx: [I..I+x] := V0..Vx, I unchanged"""
    count = op.x.index + 1
    state.memory.write_block(state.index, state.registers[:count])


def execute_load_registers(op: OpCode, state: MachineState) -> None:
    """FX65 LD Vx, [I]: V0..Vx := [I..I+x], I unchanged"""
    count = op.x.index + 1
    state.registers[:count] = state.memory.read_block(state.index, count)


# Standard (modern) dispatch table
STANDARD_EXECUTORS: dict[int, InstructionExecutor] = {
    OP_00E0: execute_cls,
    OP_00EE: execute_ret,
    OP_1NNN: execute_jp,
    OP_2NNN: execute_call,
    OP_3XNN: execute_se_const,
    OP_4XNN: execute_sne_const,
    OP_5XY0: execute_se,
    OP_6XNN: execute_ld_const,
    OP_7XNN: execute_add_const,
    OP_8XY0: execute_ld,
    OP_8XY1: execute_or,
    OP_8XY2: execute_and,
    OP_8XY3: execute_xor,
    OP_8XY4: execute_add,
    OP_8XY5: execute_sub,
    OP_8XY6: execute_shr,
    OP_8XY7: execute_subn,
    OP_8XYE: execute_shl,
    OP_9XY0: execute_sne,
    OP_ANNN: execute_ld_index,
    OP_BNNN: execute_jp_offset,
    OP_CXNN: execute_rnd,
    OP_DXYN: execute_drw,
    OP_EX9E: execute_skp,
    OP_EXA1: execute_sknp,
    OP_FX07: execute_ld_from_delay,
    OP_FX0A: execute_ld_key,
    OP_FX15: execute_ld_delay,
    OP_FX18: execute_ld_sound,
    OP_FX1E: execute_add_index,
    OP_FX29: execute_ld_font,
    OP_FX33: execute_ld_bcd,
    OP_FX55: execute_store_registers,
    OP_FX65: execute_load_registers,
}

# Shift instructions that read Vy on the original interpreter
LEGACY_SHIFT_EXECUTORS: dict[int, InstructionExecutor] = {
    OP_8XY6: execute_shr_legacy,
    OP_8XYE: execute_shl_legacy,
}


def make_noop_set() -> InstructionSet:
    """Return an instruction set with every slot doing nothing."""
    return [execute_noop] * INSTRUCTION_COUNT


def make_instruction_set(legacy_shift: bool = False) -> InstructionSet:
    """Assemble the 34-slot instruction set.

    Args:
        legacy_shift: make SHR/SHL shift Vy into Vx instead of shifting Vx
            in place

    Returns:
        A new list; callers may modify it without affecting other sets.
    """
    instruction_set = make_noop_set()
    for slot, executor in STANDARD_EXECUTORS.items():
        instruction_set[slot] = executor
    if legacy_shift:
        for slot, executor in LEGACY_SHIFT_EXECUTORS.items():
            instruction_set[slot] = executor
    return instruction_set


def make_standard_set() -> InstructionSet:
    return make_instruction_set(legacy_shift=False)


def make_legacy_set() -> InstructionSet:
    return make_instruction_set(legacy_shift=True)


def execute_instruction(
    instruction_set: InstructionSet,
    op: OpCode,
    state: MachineState,
) -> None:
    """Decode and execute a single instruction.

    Raises:
        UnknownInstruction: if the opcode matches no slot
    """
    executor = decode_instruction(instruction_set, op)
    executor(op, state)
