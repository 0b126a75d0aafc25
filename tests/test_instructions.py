"""Tests for individual instruction semantics."""

import pytest
from chip8core.errors import MemoryAccessError, StackOverflow, StackUnderflow
from chip8core.font import FONT_START
from chip8core.instructions import execute_instruction, make_legacy_set, make_standard_set
from chip8core.opcode import Address, OpCode
from chip8core.screen import PixelState
from chip8core.state import MachineState

STANDARD = make_standard_set()
LEGACY = make_legacy_set()


class FakeRandomSource:
    """Hands out a fixed sequence of bytes."""

    def __init__(self, *values: int):
        self.values = list(values)
        self.calls = 0

    def next_byte(self) -> int:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def run(state: MachineState, *ops: int, instruction_set=STANDARD) -> MachineState:
    """Execute opcodes directly against a state, bypassing fetch."""
    for value in ops:
        execute_instruction(instruction_set, OpCode(value), state)
    return state


def with_registers(**regs: int) -> MachineState:
    state = MachineState(random_source=FakeRandomSource(0xFF))
    for name, value in regs.items():
        state.registers[int(name[1:], 16)] = value
    return state


class TestFlowControl:
    """Jumps, calls and skips."""

    def test_jump(self):
        state = run(MachineState(), 0x1ABC)
        assert state.pc == Address(0xABC)

    def test_jump_offset(self):
        state = run(with_registers(v0=0x10), 0xB300)
        assert state.pc == Address(0x310)

    def test_jump_offset_past_twelve_bits(self):
        """JP V0 may leave the 12-bit range; only fetching from it fails."""
        state = run(with_registers(v0=0xFF), 0xBFFF)
        assert state.pc.value == 0x10FE

    def test_call_and_return(self):
        state = MachineState()
        state.pc = Address(0x206)
        run(state, 0x2400)
        assert state.pc == Address(0x400)
        assert state.stack_contents() == [Address(0x206)]
        run(state, 0x00EE)
        assert state.pc == Address(0x206)
        assert state.stack_pointer == 0

    def test_call_overflow(self):
        state = MachineState()
        for _ in range(16):
            run(state, 0x2300)
        with pytest.raises(StackOverflow):
            run(state, 0x2300)
        assert state.stack_pointer == 16
        assert state.pc == Address(0x300)

    def test_return_underflow(self):
        with pytest.raises(StackUnderflow):
            run(MachineState(), 0x00EE)

    @pytest.mark.parametrize("op,regs,skipped", [
        (0x3105, {"v1": 5}, True),
        (0x3105, {"v1": 6}, False),
        (0x4105, {"v1": 5}, False),
        (0x4105, {"v1": 6}, True),
        (0x5120, {"v1": 7, "v2": 7}, True),
        (0x5120, {"v1": 7, "v2": 8}, False),
        (0x9120, {"v1": 7, "v2": 7}, False),
        (0x9120, {"v1": 7, "v2": 8}, True),
    ])
    def test_skips(self, op, regs, skipped):
        state = run(with_registers(**regs), op)
        assert state.pc == Address(0x202 if skipped else 0x200)


class TestRegisters:
    """Register assignment and constant arithmetic."""

    def test_set(self):
        state = run(MachineState(), 0x6A05)
        assert state.registers[0xA] == 5

    def test_assign(self):
        state = run(with_registers(v2=0x42), 0x8120)
        assert state.registers[1] == 0x42

    def test_add_const_wraps_without_flag(self):
        state = run(with_registers(v1=0xFF, vf=0x07), 0x7102)
        assert state.registers[1] == 0x01
        assert state.registers[0xF] == 0x07


class TestArithmetic:
    """Pairwise operations and their flags."""

    def test_bitwise(self):
        assert run(with_registers(v1=0x0C, v2=0x0A), 0x8121).registers[1] == 0x0E
        assert run(with_registers(v1=0x0C, v2=0x0A), 0x8122).registers[1] == 0x08
        assert run(with_registers(v1=0x0C, v2=0x0A), 0x8123).registers[1] == 0x06

    @pytest.mark.parametrize("left,right", [(0, 0), (1, 2), (0x80, 0x7F), (0x80, 0x80), (0xFF, 0xFF), (200, 100)])
    def test_add_carry(self, left, right):
        state = run(with_registers(v1=left, v2=right), 0x8124)
        assert state.registers[1] == (left + right) % 256
        assert state.registers[0xF] == (1 if left + right > 255 else 0)

    @pytest.mark.parametrize("left,right", [(5, 3), (3, 5), (7, 7), (0, 1), (0xFF, 0)])
    def test_sub_borrow(self, left, right):
        state = run(with_registers(v1=left, v2=right), 0x8125)
        assert state.registers[1] == (left - right) % 256
        assert state.registers[0xF] == (1 if left >= right else 0)

    @pytest.mark.parametrize("left,right", [(5, 3), (3, 5), (7, 7)])
    def test_subn_borrow(self, left, right):
        state = run(with_registers(v1=left, v2=right), 0x8127)
        assert state.registers[1] == (right - left) % 256
        assert state.registers[0xF] == (1 if right >= left else 0)

    def test_flag_written_after_result(self):
        """When VF is the destination the flag wins."""
        state = run(with_registers(vf=0xF0, v1=0x20), 0x8F14)
        assert state.registers[0xF] == 1
        state = run(with_registers(vf=0x10, v1=0x20), 0x8F15)
        assert state.registers[0xF] == 0
        state = run(with_registers(vf=0x03), 0x8F06)
        assert state.registers[0xF] == 1


class TestShiftQuirk:
    """Standard vs legacy shift semantics."""

    def test_standard_shift_right(self):
        state = run(with_registers(v1=0x05, v2=0x0C), 0x8126)
        assert state.registers[1] == 0x02
        assert state.registers[0xF] == 1

    def test_legacy_shift_right(self):
        state = run(with_registers(v1=0x05, v2=0x0C), 0x8126, instruction_set=LEGACY)
        assert state.registers[1] == 0x06
        assert state.registers[2] == 0x0C
        assert state.registers[0xF] == 0

    def test_standard_shift_left(self):
        state = run(with_registers(v1=0x81, v2=0x01), 0x812E)
        assert state.registers[1] == 0x02
        assert state.registers[0xF] == 1

    def test_legacy_shift_left(self):
        state = run(with_registers(v1=0x81, v2=0x01), 0x812E, instruction_set=LEGACY)
        assert state.registers[1] == 0x02
        assert state.registers[0xF] == 0

    @pytest.mark.parametrize("op", [0x8116, 0x811E])
    def test_modes_agree_on_same_register(self, op):
        standard = run(with_registers(v1=0xA5), op)
        legacy = run(with_registers(v1=0xA5), op, instruction_set=LEGACY)
        assert standard.registers == legacy.registers

    @pytest.mark.parametrize("op", [0x8126, 0x812E])
    def test_modes_agree_when_values_equal(self, op):
        standard = run(with_registers(v1=0x3C, v2=0x3C), op)
        legacy = run(with_registers(v1=0x3C, v2=0x3C), op, instruction_set=LEGACY)
        assert standard.registers == legacy.registers


class TestRandom:
    """RND uses the injected source."""

    def test_masked(self):
        state = MachineState(random_source=FakeRandomSource(0xAB))
        run(state, 0xC10F)
        assert state.registers[1] == 0x0B

    def test_one_byte_per_instruction(self):
        source = FakeRandomSource(1, 2, 3)
        state = MachineState(random_source=source)
        run(state, 0xC1FF, 0xC2FF, 0xC3FF)
        assert source.calls == 3
        assert list(state.registers[1:4]) == [1, 2, 3]


class TestDisplay:
    """CLS and DRW."""

    def test_draw_font_glyph(self):
        state = MachineState()
        run(state, 0xA050, 0xD005)
        for row, expected in enumerate([0xF0, 0x90, 0x90, 0x90, 0xF0]):
            assert state.screen.get_vectored(0, row) == expected
        assert state.registers[0xF] == 0

    def test_draw_twice_restores_and_collides(self):
        state = MachineState()
        run(state, 0xA050, 0xD005, 0xD005)
        assert state.screen.rows == (0,) * 32
        assert state.registers[0xF] == 1

    def test_draw_at_register_coordinates(self):
        state = run(with_registers(v1=70, v2=33), 0xA050, 0xD121)
        # (70, 33) aliases to (6, 1)
        assert state.screen.get_vectored(6, 1) == 0xF0

    def test_draw_wraps_vertically(self):
        state = run(with_registers(v2=31), 0xA050, 0xD022)
        assert state.screen.get_vectored(0, 31) == 0xF0
        assert state.screen.get_vectored(0, 0) == 0x90

    def test_draw_out_of_memory(self):
        """Sprite reads past 4095 fail without touching the screen."""
        state = MachineState()
        state.index = Address(0xFFE)
        state.screen.set_pixel(0, 0)
        with pytest.raises(MemoryAccessError):
            run(state, 0xD005)
        assert state.screen.get_pixel(0, 0) is PixelState.SET

    def test_clear(self):
        state = run(MachineState(), 0xA050, 0xD005)
        state.screen.reset_changed_flag()
        run(state, 0x00E0)
        assert state.screen.rows == (0,) * 32
        assert state.screen.is_changed()


class TestKeypad:
    """Key skips and key wait."""

    def test_skp(self):
        state = with_registers(v1=0xA)
        state.keypad[0xA] = True
        run(state, 0xE19E)
        assert state.pc == Address(0x202)

    def test_sknp(self):
        state = run(with_registers(v1=0xA), 0xE1A1)
        assert state.pc == Address(0x202)

    def test_wait_rewinds_without_key(self):
        state = MachineState()
        state.pc = Address(0x202)
        run(state, 0xF30A)
        assert state.pc == Address(0x200)

    def test_wait_takes_lowest_key(self):
        state = MachineState()
        state.keypad[9] = True
        state.keypad[4] = True
        run(state, 0xF30A)
        assert state.registers[3] == 4
        assert state.pc == Address(0x200)


class TestTimersAndMemory:
    """Timers, index arithmetic and block transfers."""

    def test_timers(self):
        state = run(with_registers(v1=0x30), 0xF115, 0xF118, 0xF207)
        assert state.delay_timer == 0x30
        assert state.sound_timer == 0x30
        assert state.registers[2] == 0x30

    def test_add_index(self):
        state = run(with_registers(v1=0x10), 0xA2F0, 0xF11E)
        assert state.index == Address(0x300)

    def test_font_address(self):
        state = run(with_registers(v1=0x1A), 0xF129)
        assert state.index == Address(FONT_START + 0xA * 5)

    def test_bcd(self):
        state = run(with_registers(v1=254), 0xA300, 0xF133)
        assert state.memory.read_block(0x300, 3) == bytes([2, 5, 4])

    def test_store_and_load_registers(self):
        state = run(with_registers(v0=1, v1=2, v2=3, v3=4), 0xA300, 0xF255)
        assert state.memory.read_block(0x300, 4) == bytes([1, 2, 3, 0])
        assert state.index == Address(0x300)

        state.registers[:] = bytes(16)
        run(state, 0xF165)
        assert list(state.registers[:3]) == [1, 2, 0]
        assert state.index == Address(0x300)

    def test_store_past_end_of_memory(self):
        state = run(MachineState(), 0xAFFE)
        with pytest.raises(MemoryAccessError):
            run(state, 0xF255)
