"""
program_runner — instruction-by-instruction control for the debugger.

Wraps an IntcodeMachine over a QueueChannel, tracks a coarse phase and
collects output lines. Also the place where a caller-side cycle limit
lives; the machine itself never gives up on a looping program.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .errors import StepLimitExceeded
from .host import IntcodeHost
from .loader import load_program, parse_program
from .machine import IntcodeMachine, RunResult, S_HALTED, S_WAIT_INPUT

DEFAULT_MAX_CYCLES = 10_000_000


class ProgramRunner:
    """Steps one program, one instruction per tick."""

    def __init__(self, max_cycles: int | None = DEFAULT_MAX_CYCLES):
        self.max_cycles = max_cycles
        self.host: IntcodeHost | None = None
        self.machine: IntcodeMachine | None = None
        self.output_lines: list[str] = []
        self.phase: str = "idle"  # "idle" | "running" | "waiting" | "done"

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def load_file(self, path: str | Path, inputs: Iterable[int] = ()):
        self._load(load_program(path), inputs)

    def load_text(self, text: str, inputs: Iterable[int] = ()):
        self._load(parse_program(text), inputs)

    def _load(self, program: list[int], inputs: Iterable[int]):
        self.host = IntcodeHost(program)
        self.machine = self.host.machine(inputs)
        self.output_lines = []
        self.phase = "running"

    @property
    def channel(self):
        return self.machine.channel

    def feed(self, *values: int):
        """Queue more input; a waiting program becomes runnable again."""
        self.channel.feed(*values)
        if self.phase == "waiting":
            self.phase = "running"

    # -------------------------------------------------------------------
    # Tick interface
    # -------------------------------------------------------------------

    def tick(self) -> bool:
        """Execute one instruction.

        Returns False once the program halted or is waiting for input.
        Machine faults propagate.
        """
        if self.phase in ("idle", "done", "waiting"):
            return False

        if self.max_cycles is not None and self.machine.cycles >= self.max_cycles:
            raise StepLimitExceeded(
                f"no halt after {self.max_cycles} cycles (pc={self.machine.pc.value})")

        seen = len(self.channel.outputs)
        self.machine.tick()
        for value in self.channel.outputs[seen:]:
            self.output_lines.append(str(value))

        state = self.machine.state.value
        if state == S_HALTED:
            self.phase = "done"
            return False
        if state == S_WAIT_INPUT:
            self.phase = "waiting"
            return False
        return True

    def run_until_stopped(self) -> RunResult:
        """Tick until halt or input starvation, honouring ``max_cycles``."""
        while self.tick():
            pass
        return self.machine.result()
