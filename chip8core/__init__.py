"""CHIP-8 Virtual Machine Core Package."""

from .machine import Machine
from .instructions import make_instruction_set, make_standard_set, make_legacy_set
from .runner import run_program, RunOptions, RunResult
from .screen import EdgeMode, PixelState, Screen, ScreenView
from .errors import (
    Chip8Error,
    UnknownInstruction,
    MachineRuntimeError,
    MemoryAccessError,
    StackOverflow,
    StackUnderflow,
)

__all__ = [
    "Machine",
    "make_instruction_set",
    "make_standard_set",
    "make_legacy_set",
    "run_program",
    "RunOptions",
    "RunResult",
    "EdgeMode",
    "PixelState",
    "Screen",
    "ScreenView",
    "Chip8Error",
    "UnknownInstruction",
    "MachineRuntimeError",
    "MemoryAccessError",
    "StackOverflow",
    "StackUnderflow",
]
