"""
search — brute-force the noun/verb pair that makes a program produce a goal.

Cells 1 and 2 hold the noun and verb; the answer is left in cell 0. Every
attempt runs on its own copy of the program, so the search parallelises
across processes without sharing any machine state.
"""

from __future__ import annotations

import itertools
import logging
from functools import partial
from multiprocessing import Pool
from typing import Sequence

from .channels import NullChannel
from .machine import run

log = logging.getLogger(__name__)

DEFAULT_GOAL = 19690720
SEARCH_RANGE = range(100)


def attempt(program: Sequence[int], noun: int, verb: int) -> int:
    """Run a patched copy of ``program`` and return cell 0."""
    memory = list(program)
    memory[1] = noun
    memory[2] = verb
    run(memory, (0, 0), NullChannel())
    return memory[0]


def _scan_noun(program: Sequence[int], goal: int, noun: int) -> int | None:
    for verb in SEARCH_RANGE:
        if attempt(program, noun, verb) == goal:
            return verb
    return None


def find_noun_verb(program: Sequence[int], goal: int = DEFAULT_GOAL,
                   workers: int | None = None) -> int:
    """Return ``100 * noun + verb`` for the first pair that yields ``goal``.

    ``workers`` > 1 fans nouns out over a process pool. Results come back
    in noun order either way, so both paths report the same pair.
    """
    program = tuple(program)
    if workers is None or workers <= 1:
        for noun, verb in itertools.product(SEARCH_RANGE, SEARCH_RANGE):
            if attempt(program, noun, verb) == goal:
                return 100 * noun + verb
        raise LookupError(f"no noun/verb pair produces {goal}")

    log.debug("searching %d nouns on %d workers", len(SEARCH_RANGE), workers)
    scan = partial(_scan_noun, program, goal)
    with Pool(workers) as pool:
        for noun, verb in zip(SEARCH_RANGE, pool.imap(scan, SEARCH_RANGE)):
            if verb is not None:
                pool.terminate()
                return 100 * noun + verb
    raise LookupError(f"no noun/verb pair produces {goal}")
