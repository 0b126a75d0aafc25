"""The CHIP-8 engine: owns the machine state and steps it one cycle at a time."""

import logging
from typing import Optional

from .decoder import InstructionSet, disassemble
from .errors import Chip8Error, MemoryAccessError
from .instructions import execute_instruction
from .opcode import OpCode
from .rng import RandomSource
from .screen import EdgeMode, ScreenView
from .state import KEY_COUNT, MachineState

logger = logging.getLogger(__name__)

TIMER_HZ = 60


class Machine:
    """A CHIP-8 virtual machine driven by repeated calls to step().

    Parameters
    ----------
    program:
        Raw program image, loaded verbatim at 0x200.
    instruction_set:
        A 34-slot table from make_instruction_set().
    frequency_hz:
        Emulated instruction clock. Timers tick once every
        ``frequency_hz // 60`` steps.
    random_source:
        Supplies bytes for RND. Defaults to an unseeded SystemRandomSource.
    edge_mode:
        Horizontal sprite edge policy for the screen.
    """

    def __init__(
        self,
        program: bytes,
        instruction_set: InstructionSet,
        frequency_hz: int,
        random_source: Optional[RandomSource] = None,
        edge_mode: EdgeMode = EdgeMode.CLIP,
    ):
        self.program = bytes(program)
        self.instruction_set = instruction_set
        self.frequency_hz = frequency_hz
        self.random_source = random_source
        self.edge_mode = edge_mode
        self.cycle_count = 0
        self.state = MachineState(self.program, edge_mode, random_source)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self) -> OpCode:
        """Run one cycle: tick timers, fetch, decode, execute.

        Returns:
            The opcode that was executed.

        Raises:
            Chip8Error: with step and addr set to the failing cycle and the
                address the instruction was fetched from.
        """
        self.update_counter()
        self.state.screen.reset_changed_flag()

        addr = int(self.state.pc)
        op = None
        try:
            op = self.fetch_opcode()
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%03x: %s  %s", addr, op, disassemble(op))
            execute_instruction(self.instruction_set, op, self.state)
        except Chip8Error as e:
            e.step = self.cycle_count
            e.addr = addr
            if op is not None and e.opcode is None:
                e.opcode = op.value
            raise
        return op

    def update_counter(self) -> None:
        self.cycle_count += 1

        # Rough approximation of 60 Hz: drifts unless frequency_hz is a multiple of 60
        modulus = max(self.frequency_hz // TIMER_HZ, 1)

        if self.cycle_count % modulus == 0:
            self.state.tick_timers()

    def fetch_opcode(self) -> OpCode:
        """Read the big-endian word at PC and advance PC by 2."""
        pc = int(self.state.pc)
        if pc + 1 >= self.state.memory.size:
            raise MemoryAccessError(f"Instruction fetch past end of memory: {pc:#05x}")
        high, low = self.state.memory.read_block(pc, 2)
        self.state.pc = self.state.pc + 2
        return OpCode.from_bytes(high, low)

    # ------------------------------------------------------------------
    # Host-facing accessors
    # ------------------------------------------------------------------

    def is_beeping(self) -> bool:
        return self.state.sound_timer > 0

    def screen(self) -> ScreenView:
        """Read-only view of the framebuffer; it follows later steps."""
        return ScreenView(self.state.screen)

    def press_key(self, key: int) -> None:
        self._set_key(key, True)

    def release_key(self, key: int) -> None:
        self._set_key(key, False)

    def _set_key(self, key: int, pressed: bool) -> None:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Key out of range: {key}")
        self.state.keypad[key] = pressed

    def reset(self) -> None:
        """Reload the program image and return to the power-on state."""
        self.cycle_count = 0
        self.state = MachineState(self.program, self.edge_mode, self.random_source)
        logger.debug("machine reset")

    def dump(self) -> str:
        return "------------ Machine ------------\n" + self.state.dump()

    def __repr__(self) -> str:
        return (
            f"Machine(frequency_hz={self.frequency_hz}, "
            f"cycle={self.cycle_count}, pc={self.state.pc})"
        )
