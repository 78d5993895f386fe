"""
I/O channels — the only way a running machine talks to the outside.

The engine calls exactly two methods, synchronously:

  request_input()        -> int, or None to suspend on the Input instruction
  accept_output(value)   -> True to suspend right after the Output instruction

Each puzzle-specific behaviour is its own channel; the engine keeps no
channel state of its own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from .chips import FIFO
from .errors import IOForbiddenError


class IOChannel(ABC):
    """Interface consumed by IntcodeMachine."""

    @abstractmethod
    def request_input(self) -> int | None:
        ...

    @abstractmethod
    def accept_output(self, value: int) -> bool:
        ...


class NullChannel(IOChannel):
    """For programs that must never touch I/O.

    Strict mode treats any I/O as a bug in the program. Lenient mode
    suspends instead: input is never available and any output stops the run.
    """

    def __init__(self, strict: bool = True):
        self.strict = strict

    def request_input(self) -> int | None:
        if self.strict:
            raise IOForbiddenError("input requested but I/O is not accepted")
        return None

    def accept_output(self, value: int) -> bool:
        if self.strict:
            raise IOForbiddenError(f"output {value} emitted but I/O is not accepted")
        return True


class DiagnosticChannel(IOChannel):
    """Answers every input with one system ID and keeps every output.

    Diagnostic programs print a string of zeroes (passed checks) followed
    by the diagnostic code, so ``last`` is the answer.
    """

    def __init__(self, code: int):
        self.code = code
        self.outputs: list[int] = []

    @property
    def last(self) -> int | None:
        return self.outputs[-1] if self.outputs else None

    def request_input(self) -> int | None:
        return self.code

    def accept_output(self, value: int) -> bool:
        self.outputs.append(value)
        return False


class ProbeChannel(IOChannel):
    """Single-shot query: one input value, stop on the first output."""

    def __init__(self, value: int):
        self.value = value
        self.result: int | None = None

    def request_input(self) -> int | None:
        return self.value

    def accept_output(self, value: int) -> bool:
        self.result = value
        return True


class PhaseChannel(IOChannel):
    """Phase setting first, then the incoming signal for every later read."""

    def __init__(self, phase: int | None, signal: int):
        self.phase = phase
        self.signal = signal
        self.output: int | None = None

    def request_input(self) -> int | None:
        if self.phase is not None:
            phase, self.phase = self.phase, None
            return phase
        return self.signal

    def accept_output(self, value: int) -> bool:
        self.output = value
        return True


class QueueChannel(IOChannel):
    """FIFO of pending input and a log of everything emitted.

    Input runs dry by returning None, which suspends the machine on its
    Input instruction; ``feed`` more values and run it again to continue.
    """

    def __init__(self, inputs: Iterable[int] = (), stop_on_output: bool = False):
        self.inputs = FIFO(inputs)
        self.outputs: list[int] = []
        self.stop_on_output = stop_on_output

    def feed(self, *values: int):
        self.inputs.extend(values)

    def drain(self) -> list[int]:
        """Hand over everything emitted so far and forget it."""
        out, self.outputs = self.outputs, []
        return out

    def request_input(self) -> int | None:
        return self.inputs.pop()

    def accept_output(self, value: int) -> bool:
        self.outputs.append(value)
        return self.stop_on_output
