"""Bit-packed 64x32 monochrome framebuffer."""

from enum import Enum, IntEnum
from typing import Iterator, Tuple

WIDTH = 64
HEIGHT = 32

ROW_MASK = (1 << WIDTH) - 1
MSB_ONLY = 0x80


class PixelState(IntEnum):
    UNSET = 0
    SET = 1


class EdgeMode(Enum):
    """Horizontal policy for 8-pixel patterns that cross column 63.

    CLIP drops the bits past the right edge. WRAP continues them at
    column 0. Rows always wrap modulo the screen height.
    """
    CLIP = "clip"
    WRAP = "wrap"


class Screen:
    """Framebuffer stored as 32 row masks, most significant bit = column 0."""

    def __init__(self, edge_mode: EdgeMode = EdgeMode.CLIP):
        self.edge_mode = edge_mode
        self._rows = [0] * HEIGHT
        self._changed = False

    @property
    def rows(self) -> Tuple[int, ...]:
        """Read-only copy of the row masks."""
        return tuple(self._rows)

    # ------------------------------------------------------------------
    # Dirty tracking
    # ------------------------------------------------------------------

    def clear(self) -> None:
        self._rows = [0] * HEIGHT
        self._changed = True

    def is_changed(self) -> bool:
        return self._changed

    def reset_changed_flag(self) -> None:
        self._changed = False

    # ------------------------------------------------------------------
    # Single pixels
    # ------------------------------------------------------------------

    def set_pixel(self, x: int, y: int) -> None:
        self.set_vectored(MSB_ONLY, x, y)

    def unset_pixel(self, x: int, y: int) -> None:
        self.unset_vectored(MSB_ONLY, x, y)

    def flip_pixel(self, x: int, y: int) -> bool:
        return self.flip_vectored(MSB_ONLY, x, y)

    def get_pixel(self, x: int, y: int) -> PixelState:
        x, y = self._clamp(x, y)
        mask = self._generate_mask(MSB_ONLY, x)
        if self._rows[y] & mask:
            return PixelState.SET
        return PixelState.UNSET

    # ------------------------------------------------------------------
    # 8-pixel row patterns
    # ------------------------------------------------------------------

    def set_vectored(self, vector: int, x: int, y: int) -> None:
        x, y = self._clamp(x, y)
        self._rows[y] |= self._generate_mask(vector, x)
        self._changed = True

    def unset_vectored(self, vector: int, x: int, y: int) -> None:
        x, y = self._clamp(x, y)
        self._rows[y] &= ~self._generate_mask(vector, x) & ROW_MASK
        self._changed = True

    def flip_vectored(self, vector: int, x: int, y: int) -> bool:
        """XOR a pattern onto row y starting at column x.

        Returns True if any pixel that was set before the XOR is now unset.
        """
        x, y = self._clamp(x, y)
        mask = self._generate_mask(vector, x)
        unset_bit = (self._rows[y] & mask) != 0
        self._rows[y] ^= mask
        self._changed = True
        return unset_bit

    def get_vectored(self, x: int, y: int) -> int:
        """Read the 8 pixels starting at column x of row y as a byte."""
        x, y = self._clamp(x, y)
        row = self._rows[y]
        shifted = row << x
        if self.edge_mode is EdgeMode.WRAP and x:
            shifted |= row >> (WIDTH - x)
        return (shifted & ROW_MASK) >> (WIDTH - 8)

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def iterate(self) -> Iterator[Tuple[int, int, PixelState]]:
        """Yield (x, y, state) for every pixel in row-major order."""
        for y in range(HEIGHT):
            row = self._rows[y]
            for x in range(WIDTH):
                bit = (row >> (WIDTH - 1 - x)) & 1
                yield x, y, PixelState(bit)

    def __iter__(self) -> Iterator[Tuple[int, int, PixelState]]:
        return self.iterate()

    def render(self, on: str = "#", off: str = ".") -> list[str]:
        """Render each row as a string, one character per pixel."""
        return [
            "".join(on if (row >> (WIDTH - 1 - x)) & 1 else off for x in range(WIDTH))
            for row in self._rows
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _clamp(x: int, y: int) -> Tuple[int, int]:
        return x & (WIDTH - 1), y & (HEIGHT - 1)

    def _generate_mask(self, vector: int, x: int) -> int:
        wide = (vector & 0xFF) << (WIDTH - 8)
        if self.edge_mode is EdgeMode.WRAP and x:
            return ((wide >> x) | (wide << (WIDTH - x))) & ROW_MASK
        return wide >> x

    def __repr__(self) -> str:
        return f"Screen(edge_mode={self.edge_mode.value}, changed={self._changed})"


class ScreenView:
    """Read-only window onto a Screen for hosts that present the framebuffer."""

    def __init__(self, screen: Screen):
        self._screen = screen

    @property
    def edge_mode(self) -> EdgeMode:
        return self._screen.edge_mode

    @property
    def rows(self) -> Tuple[int, ...]:
        return self._screen.rows

    def is_changed(self) -> bool:
        return self._screen.is_changed()

    def get_pixel(self, x: int, y: int) -> PixelState:
        return self._screen.get_pixel(x, y)

    def get_vectored(self, x: int, y: int) -> int:
        return self._screen.get_vectored(x, y)

    def iterate(self) -> Iterator[Tuple[int, int, PixelState]]:
        return self._screen.iterate()

    def __iter__(self) -> Iterator[Tuple[int, int, PixelState]]:
        return self._screen.iterate()

    def render(self, on: str = "#", off: str = ".") -> list[str]:
        return self._screen.render(on, off)

    def __repr__(self) -> str:
        return f"ScreenView({self._screen!r})"
