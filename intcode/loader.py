"""
loader — comma-separated program text → list of ints.
"""

from __future__ import annotations

from pathlib import Path

from .errors import ProgramFormatError


def parse_program(text: str) -> list[int]:
    """Parse ``"1,0,0,3,99"`` style text. Blank tokens are skipped, so a
    trailing comma or newline is fine."""
    program = []
    for i, token in enumerate(text.split(",")):
        token = token.strip()
        if not token:
            continue
        try:
            program.append(int(token))
        except ValueError:
            raise ProgramFormatError(
                f"token {i} is not an integer: {token!r}") from None
    return program


def load_program(path: str | Path) -> list[int]:
    return parse_program(Path(path).read_text(encoding="utf-8"))
