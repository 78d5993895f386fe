"""
network — chains of amplifier machines, in series or in a feedback ring.

Every amplifier runs its own copy of the same program, reads its phase
setting first and then signals from the amplifier before it. The
orchestrator here owns the scheduling: drive one amplifier until it emits
a value (or starves), pass that value on, move to the next.
"""

from __future__ import annotations

import itertools
import logging
from typing import Iterable, Sequence

from .channels import QueueChannel
from .chips import Memory
from .errors import DeadlockError
from .machine import IntcodeMachine, RunResult

log = logging.getLogger(__name__)

SERIES_PHASES = range(0, 5)
FEEDBACK_PHASES = range(5, 10)

# What an amplifier that asks for input and finds none means
STARVE_HALT = "halt"        # it is finished, drop it from the ring
STARVE_SUSPEND = "suspend"  # it is paused, resume once input arrives
STARVE_POLICIES = (STARVE_HALT, STARVE_SUSPEND)


class Amplifier:
    """One machine plus its input queue. Stops after every output."""

    def __init__(self, program: Sequence[int], phase: int, name: str = ""):
        self.name = name or f"amp{phase}"
        self.channel = QueueChannel([phase], stop_on_output=True)
        self.machine = IntcodeMachine(Memory(list(program)), self.channel)
        self.finished = False
        self.last_output: int | None = None

    def send(self, *values: int):
        self.channel.feed(*values)

    def step(self) -> list[int]:
        """Run until this amplifier halts, stops on output, or starves.

        Returns what it emitted (at most one value per step).
        """
        result: RunResult = self.machine.run()
        if result.halted:
            self.finished = True
        out = self.channel.drain()
        if out:
            self.last_output = out[-1]
        return out

    @property
    def starved(self) -> bool:
        return self.machine.result().waiting_for_input and not self.channel.inputs.ready()


def run_chain(program: Sequence[int], phases: Iterable[int], signal: int = 0) -> int:
    """Series pass: each amplifier gets the previous one's first output."""
    for phase in phases:
        amp = Amplifier(program, phase)
        amp.send(signal)
        out = amp.step()
        if not out:
            raise DeadlockError(f"{amp.name} produced no output")
        signal = out[0]
    return signal


def run_feedback(program: Sequence[int], phases: Sequence[int], signal: int = 0,
                 starve_policy: str = STARVE_SUSPEND) -> int:
    """Feedback ring: the last amplifier feeds the first until all halt.

    Returns the last value the final amplifier emitted.
    """
    if starve_policy not in STARVE_POLICIES:
        raise ValueError(f"unknown starve policy: {starve_policy!r}")

    amps = [Amplifier(program, phase, f"amp{i}") for i, phase in enumerate(phases)]
    if not amps:
        return signal
    amps[0].send(signal)

    rounds = 0
    while not all(amp.finished for amp in amps):
        progressed = False
        for i, amp in enumerate(amps):
            if amp.finished:
                continue
            out = amp.step()
            if out:
                progressed = True
                amps[(i + 1) % len(amps)].send(*out)
            elif amp.starved and starve_policy == STARVE_HALT:
                log.debug("%s starved, treating as halted", amp.name)
                amp.finished = True
                progressed = True
            elif amp.finished:
                progressed = True
        rounds += 1
        if not progressed:
            raise DeadlockError(
                f"every live amplifier is waiting for input after {rounds} rounds")

    log.debug("feedback ring settled after %d rounds", rounds)
    if amps[-1].last_output is None:
        raise DeadlockError("final amplifier never produced output")
    return amps[-1].last_output


def best_phase_setting(program: Sequence[int], phases: Iterable[int] | None = None,
                       feedback: bool = False,
                       starve_policy: str = STARVE_SUSPEND) -> tuple[int, tuple[int, ...]]:
    """Try every ordering of ``phases``; return (best signal, its ordering)."""
    if phases is None:
        phases = FEEDBACK_PHASES if feedback else SERIES_PHASES
    best: tuple[int, tuple[int, ...]] | None = None
    for order in itertools.permutations(phases):
        if feedback:
            value = run_feedback(program, order, starve_policy=starve_policy)
        else:
            value = run_chain(program, order)
        if best is None or value > best[0]:
            best = (value, order)
    if best is None:
        raise ValueError("no phase settings to try")
    return best
