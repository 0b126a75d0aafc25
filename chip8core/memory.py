"""Memory model for the CHIP-8 virtual machine."""

from typing import Iterable

from .errors import MemoryAccessError

MEMORY_SIZE = 4096


class Memory:
    """Flat byte-addressed memory with bounds checking."""

    def __init__(self, size: int = MEMORY_SIZE):
        self.size = size
        self._data = bytearray(size)

    def _check_bounds(self, addr: int, length: int = 1) -> None:
        """Check that addr..addr+length-1 lies inside memory."""
        if addr < 0 or addr + length > self.size:
            if length == 1:
                raise MemoryAccessError(f"Memory address out of range: {addr:#05x}")
            raise MemoryAccessError(
                f"Memory range out of bounds: {addr:#05x}..{addr + length - 1:#05x}"
            )

    def read(self, addr: int) -> int:
        """Read a byte from memory."""
        addr = int(addr)
        self._check_bounds(addr)
        return self._data[addr]

    def write(self, addr: int, value: int) -> None:
        """Write the low 8 bits of value to memory."""
        addr = int(addr)
        self._check_bounds(addr)
        self._data[addr] = value & 0xFF

    def read_block(self, addr: int, length: int) -> bytes:
        """Read length consecutive bytes starting at addr."""
        addr = int(addr)
        self._check_bounds(addr, length)
        return bytes(self._data[addr:addr + length])

    def write_block(self, addr: int, values: Iterable[int]) -> None:
        """Write consecutive bytes starting at addr.

        The whole range is checked before anything is written.
        """
        addr = int(addr)
        data = bytes(v & 0xFF for v in values)
        self._check_bounds(addr, len(data))
        self._data[addr:addr + len(data)] = data

    def load(self, addr: int, image: bytes) -> None:
        """Copy a raw image verbatim into memory."""
        self.write_block(addr, image)

    def snapshot(self) -> bytes:
        """Return a copy of the entire memory."""
        return bytes(self._data)
