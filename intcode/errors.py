"""
Exception hierarchy for the Intcode machine and its callers.

MachineFault subclasses are fatal: the run is aborted and nothing produced
after the faulting instruction should be trusted. Running out of input is
not an error at all, it is a suspension (see machine.S_WAIT_INPUT).
"""

from __future__ import annotations


class IntcodeError(Exception):
    """Base class for everything raised by this package."""


class MachineFault(IntcodeError):
    """Unrecoverable condition raised while decoding or executing."""

    def __init__(self, message: str, pc: int | None = None,
                 value: int | None = None, address: int | None = None,
                 window: list[int] | None = None):
        super().__init__(message)
        self.message = message
        self.pc = pc
        self.value = value
        self.address = address
        self.window = window or []

    def __str__(self) -> str:
        # pc/window may be filled in by the engine after the raise site
        detail = []
        if self.pc is not None:
            detail.append(f"pc={self.pc}")
        if self.address is not None:
            detail.append(f"address={self.address}")
        if self.value is not None:
            detail.append(f"value={self.value}")
        if self.window:
            detail.append(f"memory[pc:]={self.window}")
        if not detail:
            return self.message
        return f"{self.message} ({', '.join(detail)})"


class UnknownOpcodeError(MachineFault):
    pass


class UnknownModeError(MachineFault):
    pass


class NegativeAddressError(MachineFault):
    pass


class ImmediateWriteError(MachineFault):
    pass


class IOForbiddenError(IntcodeError):
    """A strict NullChannel was asked for input or given output."""


class StepLimitExceeded(IntcodeError):
    """A caller-imposed cycle limit ran out before the program stopped."""


class DeadlockError(IntcodeError):
    """Every live machine in a network is waiting for input nobody will send."""


class ProgramFormatError(IntcodeError, ValueError):
    """Program text is not a comma-separated list of integers."""
