"""
Intcode machine — resumable fetch/decode/execute engine.

Memory is a flat store of signed integers. Each instruction word is
``ABCDE``: ``DE`` is the opcode, ``C``/``B``/``A`` are the addressing
modes of parameters 0/1/2 (0 position, 1 immediate, 2 relative).
The only state besides memory is (pc, relative base, halted), so a
suspended machine can be re-entered from that triple at any time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from .channels import IOChannel, NullChannel
from .chips import Memory, Register
from .errors import (
    MachineFault, UnknownOpcodeError, UnknownModeError,
    NegativeAddressError, ImmediateWriteError,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Instruction set
# ---------------------------------------------------------------------------

OP_ADD    = 1
OP_MUL    = 2
OP_INPUT  = 3
OP_OUTPUT = 4
OP_JNZ    = 5   # jump-if-true
OP_JZ     = 6   # jump-if-false
OP_LT     = 7
OP_EQ     = 8
OP_ARB    = 9   # adjust relative base
OP_HALT   = 99

ARITY = {
    OP_ADD: 3, OP_MUL: 3, OP_INPUT: 1, OP_OUTPUT: 1,
    OP_JNZ: 2, OP_JZ: 2, OP_LT: 3, OP_EQ: 3,
    OP_ARB: 1, OP_HALT: 0,
}

OP_NAMES = {
    OP_ADD: "ADD", OP_MUL: "MUL", OP_INPUT: "IN", OP_OUTPUT: "OUT",
    OP_JNZ: "JNZ", OP_JZ: "JZ", OP_LT: "LT", OP_EQ: "EQ",
    OP_ARB: "ARB", OP_HALT: "HALT",
}

MODE_POSITION  = 0
MODE_IMMEDIATE = 1
MODE_RELATIVE  = 2

# Machine states
S_RUNNING     = 0
S_WAIT_INPUT  = 1   # suspended: Input found no value, pc still on it
S_WAIT_OUTPUT = 2   # suspended: channel asked to stop after an Output
S_HALTED      = 3

STATE_NAMES = {
    S_RUNNING: "RUNNING", S_WAIT_INPUT: "WAIT_INPUT",
    S_WAIT_OUTPUT: "WAIT_OUTPUT", S_HALTED: "HALTED",
}


def mode_digit(word: int, param: int) -> int:
    """Addressing mode of parameter ``param`` (0-indexed) in ``word``."""
    return (word // 10 ** (param + 2)) % 10


# ---------------------------------------------------------------------------
# Operands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Immediate:
    value: int

    def resolve(self, relative_base: int) -> int:
        raise ImmediateWriteError("immediate operand used as write target",
                                  value=self.value)

    def read(self, memory: Memory, relative_base: int) -> int:
        return self.value

    def __str__(self) -> str:
        return f"#{self.value}"


@dataclass(frozen=True)
class Position:
    address: int

    def resolve(self, relative_base: int) -> int:
        return self.address

    def read(self, memory: Memory, relative_base: int) -> int:
        return memory.read(self.address)

    def __str__(self) -> str:
        return f"[{self.address}]"


@dataclass(frozen=True)
class Relative:
    offset: int

    def resolve(self, relative_base: int) -> int:
        addr = self.offset + relative_base
        if addr < 0:
            raise NegativeAddressError("relative operand resolves below zero",
                                       address=addr, value=self.offset)
        return addr

    def read(self, memory: Memory, relative_base: int) -> int:
        return memory.read(self.resolve(relative_base))

    def __str__(self) -> str:
        return f"[rb{self.offset:+d}]"


Operand = Immediate | Position | Relative


@dataclass(frozen=True)
class Instruction:
    opcode: int
    operands: tuple[Operand, ...] = ()

    @property
    def size(self) -> int:
        return 1 + len(self.operands)

    @property
    def name(self) -> str:
        return OP_NAMES[self.opcode]

    def __str__(self) -> str:
        if not self.operands:
            return self.name
        return f"{self.name:<4} " + " ".join(str(op) for op in self.operands)


def decode(memory: Memory, pc: int) -> Instruction:
    """Decode the instruction whose opcode word sits at ``pc``."""
    word = memory.read(pc)
    # Python's % would map -1 to 99 (HALT); negative words are never valid
    opcode = word % 100 if word >= 0 else None
    if opcode not in ARITY:
        raise UnknownOpcodeError("unsupported opcode", pc=pc, value=word,
                                 window=memory.window(pc))

    operands = []
    for i in range(ARITY[opcode]):
        mode = mode_digit(word, i)
        raw = memory.read(pc + 1 + i)
        if mode == MODE_POSITION:
            if raw < 0:
                raise NegativeAddressError(
                    f"position operand {i} is negative", pc=pc, address=raw,
                    window=memory.window(pc))
            operands.append(Position(raw))
        elif mode == MODE_IMMEDIATE:
            operands.append(Immediate(raw))
        elif mode == MODE_RELATIVE:
            operands.append(Relative(raw))
        else:
            raise UnknownModeError(f"unsupported mode {mode} for operand {i}",
                                   pc=pc, value=word, window=memory.window(pc))
    return Instruction(opcode, tuple(operands))


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    pc: int
    relative_base: int
    halted: bool
    state: int = S_RUNNING

    @property
    def waiting_for_input(self) -> bool:
        return self.state == S_WAIT_INPUT

    @property
    def suspended(self) -> bool:
        return self.state in (S_WAIT_INPUT, S_WAIT_OUTPUT)

    @property
    def registers(self) -> tuple[int, int]:
        return (self.pc, self.relative_base)

    def __iter__(self):
        return iter((self.pc, self.relative_base, self.halted))


# ---------------------------------------------------------------------------
# Machine
# ---------------------------------------------------------------------------

class IntcodeMachine:
    """One Intcode instance: memory, two registers, a channel, counters.

    Not thread-safe; run independent instances for parallelism.
    """

    def __init__(self, memory: Memory | Iterable[int],
                 channel: IOChannel | None = None,
                 pc: int = 0, relative_base: int = 0):
        self.memory = memory if isinstance(memory, Memory) else Memory(memory)
        self.channel = channel if channel is not None else NullChannel()

        # --- Registers ---
        self.pc = Register(pc)
        self.rb = Register(relative_base)
        self.state = Register(S_RUNNING)

        self.last_instruction: Instruction | None = None

        # --- Counters ---
        self.cycles = 0
        self.io_ops = 0
        self.peak = len(self.memory)

    @property
    def halted(self) -> bool:
        return self.state.value == S_HALTED

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------

    def tick(self) -> bool:
        """Execute one instruction. Returns True if still running.

        Ticking a suspended machine resumes it: a pending Input is
        retried, a stopped Output has already moved the pc past itself.
        """
        if self.state.value == S_HALTED:
            return False
        self.state.load(S_RUNNING)

        pc = self.pc.value
        try:
            instr = decode(self.memory, pc)
            self.last_instruction = instr
            self._execute(instr, pc)
        except MachineFault as err:
            if err.pc is None:
                err.pc = pc
                err.window = self.memory.window(pc)
            log.debug("machine fault: %s", err)
            raise

        # a starved Input did not execute
        if self.state.value != S_WAIT_INPUT:
            self.cycles += 1
        if len(self.memory) > self.peak:
            self.peak = len(self.memory)
        return self.state.value == S_RUNNING

    def _execute(self, instr: Instruction, pc: int):
        op = instr.opcode
        args = instr.operands
        mem = self.memory
        rb = self.rb.value
        next_pc = pc + instr.size

        if op == OP_HALT:
            # pc stays on the HALT word
            self.state.load(S_HALTED)
            log.debug("halted at pc=%d after %d cycles", pc, self.cycles + 1)
            return

        if op == OP_ADD:
            mem.write(args[2].resolve(rb), args[0].read(mem, rb) + args[1].read(mem, rb))

        elif op == OP_MUL:
            mem.write(args[2].resolve(rb), args[0].read(mem, rb) * args[1].read(mem, rb))

        elif op == OP_INPUT:
            dst = args[0].resolve(rb)
            value = self.channel.request_input()
            if value is None:
                # pc stays put so resuming retries this Input
                self.state.load(S_WAIT_INPUT)
                log.debug("waiting for input at pc=%d", pc)
                return
            self.io_ops += 1
            mem.write(dst, value)

        elif op == OP_OUTPUT:
            value = args[0].read(mem, rb)
            self.io_ops += 1
            if self.channel.accept_output(value):
                self.pc.load(next_pc)
                self.state.load(S_WAIT_OUTPUT)
                log.debug("stopped after output %d, resume at pc=%d", value, next_pc)
                return

        elif op == OP_JNZ or op == OP_JZ:
            cond = args[0].read(mem, rb)
            if (cond != 0) == (op == OP_JNZ):
                target = args[1].read(mem, rb)
                if target < 0:
                    raise NegativeAddressError("negative jump target", address=target)
                self.pc.load(target)
                return

        elif op == OP_LT:
            mem.write(args[2].resolve(rb), int(args[0].read(mem, rb) < args[1].read(mem, rb)))

        elif op == OP_EQ:
            mem.write(args[2].resolve(rb), int(args[0].read(mem, rb) == args[1].read(mem, rb)))

        elif op == OP_ARB:
            self.rb.load(rb + args[0].read(mem, rb))

        self.pc.load(next_pc)

    def run(self) -> RunResult:
        """Run until HALT or a suspension. Returns the resumable triple."""
        if self.state.value == S_HALTED:
            return self.result()
        if self.state.value != S_RUNNING:
            log.debug("resuming %s at pc=%d",
                      STATE_NAMES[self.state.value], self.pc.value)
        while self.tick():
            pass
        return self.result()

    def resume(self) -> RunResult:
        """Continue a suspended machine. Halted machines stay halted."""
        return self.run()

    def result(self) -> RunResult:
        return RunResult(self.pc.value, self.rb.value, self.halted,
                         self.state.value)

    # -------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------

    def reset_counters(self):
        self.cycles = 0
        self.io_ops = 0
        self.memory.reads = 0
        self.memory.writes = 0
        self.peak = len(self.memory)

    def stats(self) -> dict:
        return {
            "cycles": self.cycles,
            "reads": self.memory.reads,
            "writes": self.memory.writes,
            "io_ops": self.io_ops,
            "memory_size": len(self.memory),
            "memory_peak": self.peak,
        }

    def stats_summary(self) -> str:
        s = self.stats()
        return (
            f"Cycles: {s['cycles']}\n"
            f"Memory: {s['reads']}R/{s['writes']}W "
            f"({s['memory_size']} cells, peak {s['memory_peak']})\n"
            f"IO: {s['io_ops']} operations"
        )


def run(memory: Memory | list[int], registers: tuple[int, int] = (0, 0),
        channel: IOChannel | None = None) -> RunResult:
    """Run ``memory`` from ``(pc, relative_base)`` until it halts or suspends.

    ``memory`` is mutated in place (a plain list grows in place too). To
    resume, call again with the same memory and ``result.registers``.
    """
    pc, relative_base = registers
    machine = IntcodeMachine(memory, channel, pc, relative_base)
    return machine.run()
