"""Headless program runner with tracing for the CHIP-8 core."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .decoder import disassemble
from .errors import Chip8Error, ErrorInfo, UnknownInstruction
from .instructions import make_instruction_set
from .machine import Machine
from .rng import SystemRandomSource
from .screen import EdgeMode

logger = logging.getLogger(__name__)

UNKNOWN_INSTRUCTION_POLICIES = ("halt", "skip")


@dataclass
class RunOptions:
    """Options for program execution."""
    frequency_hz: int = 700
    max_steps: int = 10000
    legacy_shift: bool = False
    sprite_wrap: bool = False
    unknown_instruction: str = "halt"  # "halt" | "skip"
    stop_on_self_jump: bool = True
    random_seed: Optional[int] = None
    keys_down: list[int] = field(default_factory=list)
    trace: bool = False
    trace_include_registers: bool = False


@dataclass
class TraceRow:
    """Single row of execution trace."""
    step: int
    addr: int
    opcode: int
    instr_text: str
    index: int
    registers: Optional[list[int]] = None

    def to_dict(self, include_registers: bool) -> dict:
        result = {
            "step": self.step,
            "addr": self.addr,
            "opcode": self.opcode,
            "instr_text": self.instr_text,
            "index": self.index,
        }
        if include_registers:
            result["registers"] = self.registers
        return result


@dataclass
class RunResult:
    """Result of program execution."""
    status: str  # "ok" | "error"
    stop_reason: str  # "self_jump" | "step_limit" | "error"
    steps_executed: int
    final_state: dict
    screen: list[str]
    beeping: bool
    trace: list[dict]
    error: Optional[ErrorInfo] = None

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "stop_reason": self.stop_reason,
            "steps_executed": self.steps_executed,
            "final_state": self.final_state,
            "screen": self.screen,
            "beeping": self.beeping,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def _is_self_jump(op_value: int, addr: int) -> bool:
    return (op_value >> 12) == 0x1 and (op_value & 0xFFF) == addr


def build_machine(program: bytes, options: RunOptions) -> Machine:
    """Create a Machine configured from run options."""
    if options.unknown_instruction not in UNKNOWN_INSTRUCTION_POLICIES:
        raise ValueError(f"Unknown instruction policy: {options.unknown_instruction}")

    machine = Machine(
        program,
        make_instruction_set(legacy_shift=options.legacy_shift),
        options.frequency_hz,
        random_source=SystemRandomSource(options.random_seed),
        edge_mode=EdgeMode.WRAP if options.sprite_wrap else EdgeMode.CLIP,
    )
    for key in options.keys_down:
        machine.press_key(key)
    return machine


def run_program(
    program: bytes,
    options: Optional[RunOptions] = None,
) -> RunResult:
    """Run a CHIP-8 program image headlessly.

    Args:
        program: Raw program bytes, loaded at 0x200
        options: Execution options

    Returns:
        RunResult with status, final state, screen and trace
    """
    if options is None:
        options = RunOptions()

    trace_rows: list[dict] = []
    error_info: Optional[ErrorInfo] = None
    steps_executed = 0
    stop_reason = "step_limit"

    try:
        machine = build_machine(program, options)
    except Chip8Error as e:
        return RunResult(
            status="error",
            stop_reason="error",
            steps_executed=0,
            final_state={},
            screen=[],
            beeping=False,
            trace=[],
            error=e.to_error_info(),
        )

    logger.info(
        "running %d byte program for up to %d steps at %d Hz",
        len(program), options.max_steps, options.frequency_hz,
    )

    while steps_executed < options.max_steps:
        instr_addr = int(machine.state.pc)
        try:
            op = machine.step()
        except UnknownInstruction as e:
            steps_executed += 1
            if options.unknown_instruction == "skip":
                logger.warning("skipping unknown instruction %04X at %03x", e.opcode, e.addr)
                continue
            error_info = e.to_error_info()
            stop_reason = "error"
            break
        except Chip8Error as e:
            steps_executed += 1
            error_info = e.to_error_info()
            stop_reason = "error"
            break

        steps_executed += 1

        if options.trace:
            row = TraceRow(
                step=steps_executed,
                addr=instr_addr,
                opcode=op.value,
                instr_text=disassemble(op),
                index=int(machine.state.index),
                registers=list(machine.state.registers) if options.trace_include_registers else None,
            )
            trace_rows.append(row.to_dict(include_registers=options.trace_include_registers))

        if options.stop_on_self_jump and _is_self_jump(op.value, instr_addr):
            stop_reason = "self_jump"
            break

    if error_info is not None:
        logger.info("run stopped after %d steps: %s", steps_executed, error_info.message)
    else:
        logger.info("run finished after %d steps (%s)", steps_executed, stop_reason)

    return RunResult(
        status="ok" if error_info is None else "error",
        stop_reason=stop_reason,
        steps_executed=steps_executed,
        final_state=machine.state.get_state(),
        screen=machine.screen().render(),
        beeping=machine.is_beeping(),
        trace=trace_rows,
        error=error_info,
    )
