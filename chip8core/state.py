"""Mutable machine state: registers, memory, stack, timers and screen."""

from typing import Optional

from .errors import ProgramTooLarge, StackOverflow, StackUnderflow
from .font import FONT_START, STANDARD_FONT
from .memory import MEMORY_SIZE, Memory
from .opcode import FLAG_REGISTER, Address, RegisterId
from .rng import RandomSource, SystemRandomSource
from .screen import EdgeMode, Screen

PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START
STACK_SIZE = 16
REGISTER_COUNT = 16
KEY_COUNT = 16


class MachineState:
    """Everything an instruction may read or write."""

    def __init__(
        self,
        program: bytes = b"",
        edge_mode: EdgeMode = EdgeMode.CLIP,
        random_source: Optional[RandomSource] = None,
    ):
        if len(program) > MAX_PROGRAM_SIZE:
            raise ProgramTooLarge(
                f"Program is {len(program)} bytes, limit is {MAX_PROGRAM_SIZE}"
            )

        self.memory = Memory()
        self.memory.load(FONT_START, STANDARD_FONT)
        self.memory.load(PROGRAM_START, program)

        self.pc = Address(PROGRAM_START)
        self.index = Address(0)

        # Stack pointer is the next free slot
        self._stack = [Address(0)] * STACK_SIZE
        self.stack_pointer = 0

        self.delay_timer = 0
        self.sound_timer = 0
        self.registers = bytearray(REGISTER_COUNT)
        self.keypad = [False] * KEY_COUNT

        self.screen = Screen(edge_mode)
        self.random_source: RandomSource = random_source or SystemRandomSource()

    # ------------------------------------------------------------------
    # Call stack
    # ------------------------------------------------------------------

    def stack_push(self, value: Address) -> None:
        if self.stack_pointer >= STACK_SIZE:
            raise StackOverflow(f"Call stack exhausted ({STACK_SIZE} return addresses)")
        self._stack[self.stack_pointer] = value
        self.stack_pointer += 1

    def stack_pop(self) -> Address:
        if self.stack_pointer == 0:
            raise StackUnderflow("Return with an empty call stack")
        self.stack_pointer -= 1
        return self._stack[self.stack_pointer]

    def stack_contents(self) -> list[Address]:
        """Return addresses currently on the stack, oldest first."""
        return self._stack[:self.stack_pointer]

    # ------------------------------------------------------------------
    # Registers
    # ------------------------------------------------------------------

    def reg_read(self, reg: RegisterId) -> int:
        return self.registers[reg]

    def reg_write(self, reg: RegisterId, value: int) -> None:
        """Set a register; value is truncated to 8 bits."""
        self.registers[reg] = value & 0xFF

    def set_flag(self, value: bool) -> None:
        self.registers[FLAG_REGISTER] = 1 if value else 0

    def skip(self) -> None:
        """Skip the next 2-byte instruction."""
        self.pc = self.pc + 2

    # ------------------------------------------------------------------
    # Timers and keys
    # ------------------------------------------------------------------

    def tick_timers(self) -> None:
        """Decrement both timers by one, saturating at zero."""
        self.delay_timer = max(self.delay_timer - 1, 0)
        self.sound_timer = max(self.sound_timer - 1, 0)

    def is_key_pressed(self, key: int) -> bool:
        return self.keypad[key & 0xF]

    def first_pressed_key(self) -> Optional[int]:
        for key, pressed in enumerate(self.keypad):
            if pressed:
                return key
        return None

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        return {
            "pc": int(self.pc),
            "index": int(self.index),
            "sp": self.stack_pointer,
            "stack": [int(addr) for addr in self.stack_contents()],
            "delay_timer": self.delay_timer,
            "sound_timer": self.sound_timer,
            "registers": list(self.registers),
        }

    def dump(self) -> str:
        """Multi-line dump for debugging hosts, including memory around PC and I."""
        ram = self.memory.snapshot()

        def window(addr: Address) -> str:
            start = int(addr)
            data = " ".join(f"{b:02x}" for b in ram[start:start + 4])
            return f"ram[{start:03x}..{start + 4:03x}]: [{data}]"

        lines = [
            f"pc: {self.pc}",
            window(self.pc),
            f"i: {self.index}",
            window(self.index),
            f"sp: {self.stack_pointer}",
            "stack: [" + " ".join(str(addr) for addr in self.stack_contents()) + "]",
            f"dt: {self.delay_timer:02x}",
            f"st: {self.sound_timer:02x}",
            "registers: [" + " ".join(f"{b:02x}" for b in self.registers) + "]",
            "screen:",
        ]
        lines.extend(f"{row:064b}" for row in self.screen.rows)
        return "\n".join(lines)

    def __repr__(self) -> str:
        regs = " ".join(f"{b:02x}" for b in self.registers)
        return (
            f"MachineState(pc={self.pc}, i={self.index}, sp={self.stack_pointer}, "
            f"dt={self.delay_timer:02x}, st={self.sound_timer:02x}, v=[{regs}])"
        )
