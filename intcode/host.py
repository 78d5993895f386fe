"""
IntcodeHost — high-level interface to the Intcode machine.

Keeps a pristine program image, hands out fresh copies for each run,
runs them to completion, and renders memory as a listing.
"""

from __future__ import annotations

from typing import Iterable

from .channels import DiagnosticChannel, ProbeChannel, QueueChannel
from .chips import Memory
from .errors import MachineFault
from .loader import parse_program
from .machine import IntcodeMachine, decode


class IntcodeHost:
    """Runs fresh copies of one program.

    Args:
        program: list of ints, or program text ("1,0,0,3,99").
    """

    def __init__(self, program: Iterable[int] | str):
        if isinstance(program, str):
            program = parse_program(program)
        self.program: tuple[int, ...] = tuple(program)

    def fresh_memory(self, patches: dict[int, int] | None = None) -> Memory:
        memory = Memory(list(self.program))
        for addr, val in (patches or {}).items():
            memory.ensure(addr)
            memory.cells[addr] = val
        return memory

    def machine(self, inputs: Iterable[int] = (), patches: dict[int, int] | None = None,
                stop_on_output: bool = False) -> IntcodeMachine:
        """A machine over a fresh copy, wired to a QueueChannel."""
        channel = QueueChannel(inputs, stop_on_output=stop_on_output)
        return IntcodeMachine(self.fresh_memory(patches), channel)

    # -------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------

    def execute(self, inputs: Iterable[int] = (),
                patches: dict[int, int] | None = None) -> dict:
        """
        Run a fresh copy until it halts or runs out of input.

        Returns dict with ok (halted), outputs, final memory, the
        resumable triple and counters.
        """
        machine = self.machine(inputs, patches)
        result = machine.run()
        return {
            "ok": result.halted,
            "outputs": machine.channel.outputs,
            "memory": machine.memory.snapshot(),
            "result": tuple(result),
            "stats": machine.stats(),
        }

    def diagnose(self, code: int) -> DiagnosticChannel:
        """Run a fresh copy answering every input with ``code``.

        Diagnostic programs emit one zero per passed check, then the
        diagnostic code, which ends up in the returned channel's ``last``.
        """
        channel = DiagnosticChannel(code)
        IntcodeMachine(self.fresh_memory(), channel).run()
        return channel

    def probe(self, value: int) -> int | None:
        """Feed ``value`` to a fresh copy and return its first output."""
        channel = ProbeChannel(value)
        IntcodeMachine(self.fresh_memory(), channel).run()
        return channel.result

    # -------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------

    def disassemble(self, memory: Memory | None = None, start: int = 0,
                    count: int | None = None) -> list[tuple[int, str]]:
        """(address, text) pairs walking forward from ``start``.

        Words that do not decode are shown as data and skipped one cell at
        a time. The listing never grows memory.
        """
        if memory is None:
            memory = self.fresh_memory()
        # decode() reads through Memory and would grow it past the end
        view = Memory(memory.snapshot())
        end = len(memory)
        lines = []
        addr = start
        while addr < end and (count is None or len(lines) < count):
            try:
                instr = decode(view, addr)
            except MachineFault:
                lines.append((addr, f"DATA {memory.cells[addr]}"))
                addr += 1
                continue
            lines.append((addr, str(instr)))
            addr += instr.size
        return lines

    def listing(self, memory: Memory | None = None, start: int = 0,
                count: int | None = None) -> str:
        return "\n".join(f"{addr:05d}: {text}"
                         for addr, text in self.disassemble(memory, start, count))
