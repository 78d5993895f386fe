"""
Storage primitives for the Intcode machine.

Models the pieces the engine is wired from: a growable cell store, the
two registers, and the FIFO the queue-backed channels are built on.
"""

from __future__ import annotations

import collections
from typing import Iterable

from .errors import NegativeAddressError


class Memory:
    """Flat store of signed integer cells, zero-filled on demand.

    Wraps a list without copying it, so a caller that hands in a list sees
    the machine's writes (and growth) in that same list.
    """

    def __init__(self, cells: Iterable[int] | None = None):
        if cells is None:
            cells = []
        self.cells: list[int] = cells if isinstance(cells, list) else list(cells)
        self.reads = 0
        self.writes = 0

    def __len__(self) -> int:
        return len(self.cells)

    def __getitem__(self, addr: int) -> int:
        return self.read(addr)

    def __setitem__(self, addr: int, val: int):
        self.write(addr, val)

    def __repr__(self) -> str:
        return f"Memory({self.cells!r})"

    def ensure(self, addr: int):
        """Grow so that ``addr`` is a valid index."""
        if addr < 0:
            raise NegativeAddressError("negative memory address", address=addr)
        missing = addr + 1 - len(self.cells)
        if missing > 0:
            self.cells.extend([0] * missing)

    def read(self, addr: int) -> int:
        self.ensure(addr)
        self.reads += 1
        return self.cells[addr]

    def write(self, addr: int, val: int):
        self.ensure(addr)
        self.writes += 1
        self.cells[addr] = val

    def window(self, addr: int, count: int = 8) -> list[int]:
        """Read-only peek for diagnostics. Never grows, never counts."""
        if addr < 0:
            return []
        return self.cells[addr:addr + count]

    def clone(self) -> Memory:
        return Memory(list(self.cells))

    def snapshot(self) -> list[int]:
        return list(self.cells)


class Register:
    """Unbounded signed register."""

    def __init__(self, value: int = 0):
        self.value = value

    def load(self, val: int):
        self.value = val

    def __repr__(self) -> str:
        return f"Register({self.value})"


class FIFO:
    """Unbounded value queue backing the queue channels."""

    def __init__(self, values: Iterable[int] = ()):
        self.buffer: collections.deque[int] = collections.deque(values)

    def push(self, val: int):
        self.buffer.append(val)

    def extend(self, values: Iterable[int]):
        self.buffer.extend(values)

    def pop(self) -> int | None:
        return self.buffer.popleft() if self.buffer else None

    def ready(self) -> bool:
        return len(self.buffer) > 0

    def __len__(self) -> int:
        return len(self.buffer)
