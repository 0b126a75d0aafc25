"""Value types for instruction words, addresses and register selectors."""

from dataclasses import dataclass

from .errors import AddressOverflow

ADDRESS_LIMIT = 0xFFFF


@dataclass(frozen=True)
class Address:
    """16-bit memory location; memory itself only uses the low 12 bits.

    Arithmetic never wraps. A result outside 0..0xFFFF raises
    AddressOverflow instead.
    """
    value: int

    def __post_init__(self):
        if not 0 <= self.value <= ADDRESS_LIMIT:
            raise AddressOverflow(f"Address out of 16-bit range: {self.value:#x}")

    def __add__(self, delta: int) -> "Address":
        return Address(self.value + delta)

    def __sub__(self, delta: int) -> "Address":
        return Address(self.value - delta)

    def __index__(self) -> int:
        return self.value

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:03x}"


@dataclass(frozen=True)
class RegisterId:
    """Selector for one of the sixteen V registers."""
    index: int

    def __post_init__(self):
        if not 0 <= self.index <= 0xF:
            raise ValueError(f"Register id out of range: {self.index}")

    def __index__(self) -> int:
        return self.index

    def __str__(self) -> str:
        return f"V{self.index:X}"


V0 = RegisterId(0x0)
FLAG_REGISTER = RegisterId(0xF)


@dataclass(frozen=True)
class OpCode:
    """A single 16-bit instruction word with named bit fields."""
    value: int

    def __post_init__(self):
        if not 0 <= self.value <= 0xFFFF:
            raise ValueError(f"OpCode out of 16-bit range: {self.value:#x}")

    @classmethod
    def from_bytes(cls, high: int, low: int) -> "OpCode":
        """Build an opcode from two bytes in big-endian order."""
        return cls((high << 8) | low)

    @property
    def family(self) -> int:
        """Bits 12-15: the instruction family."""
        return (self.value >> 12) & 0xF

    @property
    def x(self) -> RegisterId:
        return RegisterId((self.value >> 8) & 0xF)

    @property
    def y(self) -> RegisterId:
        return RegisterId((self.value >> 4) & 0xF)

    @property
    def n(self) -> int:
        return self.value & 0xF

    @property
    def nn(self) -> int:
        return self.value & 0xFF

    @property
    def nnn(self) -> Address:
        return Address(self.value & 0xFFF)

    def __str__(self) -> str:
        return f"{self.value:04X}"
