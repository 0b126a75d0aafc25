"""Custom exceptions for the CHIP-8 virtual machine core."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured error information for API responses."""
    type: str
    message: str
    step: int
    addr: int
    opcode: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "step": self.step,
            "addr": self.addr,
            "opcode": self.opcode,
        }


class Chip8Error(Exception):
    """Base exception for all CHIP-8 core errors."""

    def __init__(
        self,
        message: str,
        step: int = 0,
        addr: int = 0,
        opcode: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.addr = addr
        self.opcode = opcode

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            type=self.__class__.__name__,
            message=self.message,
            step=self.step,
            addr=self.addr,
            opcode=self.opcode,
        )


class ProgramTooLarge(Chip8Error):
    """Program image does not fit in memory above 0x200."""
    pass


class DecodeError(Chip8Error):
    """Error while decoding an instruction word."""
    pass


class UnknownInstruction(DecodeError):
    """No instruction slot matches the opcode."""
    pass


class MachineRuntimeError(Chip8Error):
    """Error during program execution."""
    pass


class MemoryAccessError(MachineRuntimeError):
    """Memory address out of bounds."""
    pass


class AddressOverflow(MemoryAccessError):
    """Address arithmetic left the 16-bit range."""
    pass


class StackOverflow(MachineRuntimeError):
    """CALL with all 16 stack slots in use."""
    pass


class StackUnderflow(MachineRuntimeError):
    """RET with an empty call stack."""
    pass
