"""
Storage primitives for the Intcode machine.

Models the engine's state-holding parts: sparse integer memory, registers
for the instruction pointer and relative base, and the input FIFO.
"""

from __future__ import annotations

import collections
from collections.abc import Iterable

from .errors import InvalidAddress


class SparseMemory:
    """Unbounded integer memory. Sparse backing store, unset cells read 0."""

    def __init__(self, contents: Iterable[int] = ()):
        self.data: dict[int, int] = {}
        self.extent = 0
        for addr, val in enumerate(contents):
            self.data[addr] = val
            self.extent = addr + 1

    def read(self, addr: int) -> int:
        if addr < 0:
            raise InvalidAddress(addr, "read")
        return self.data.get(addr, 0)

    def write(self, addr: int, val: int):
        if addr < 0:
            raise InvalidAddress(addr, "write")
        self.data[addr] = val
        if addr >= self.extent:
            self.extent = addr + 1

    def dump(self, length: int | None = None) -> list[int]:
        """Cells 0..length-1 (default: up to the highest address written)."""
        if length is None:
            length = self.extent
        return [self.data.get(addr, 0) for addr in range(length)]

    def __len__(self) -> int:
        return self.extent


class Register:
    """Signed integer register of unbounded width."""

    def __init__(self, value: int = 0):
        self.value = value

    def load(self, val: int):
        self.value = val


class InputFIFO:
    """Unbounded queue of pending input values."""

    def __init__(self, values: Iterable[int] = ()):
        self.buffer: collections.deque[int] = collections.deque(values)

    def push(self, val: int):
        self.buffer.append(val)

    def pop(self) -> int | None:
        return self.buffer.popleft() if self.buffer else None

    def ready(self) -> bool:
        return len(self.buffer) > 0

    def __len__(self) -> int:
        return len(self.buffer)
