"""Random byte sources consumed by the RND instruction."""

import random
from typing import Optional, Protocol


class RandomSource(Protocol):
    """Anything that can hand out one random byte per call."""

    def next_byte(self) -> int: ...


class SystemRandomSource:
    """RandomSource backed by random.Random; seedable for reproducible runs."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def next_byte(self) -> int:
        return self._random.getrandbits(8)
