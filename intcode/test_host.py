"""
Verification suite for program loading, the host, the step runner and the
noun/verb search.
"""

from __future__ import annotations

import sys
import os
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from intcode.chips import Memory
from intcode.errors import ProgramFormatError, StepLimitExceeded
from intcode.host import IntcodeHost
from intcode.loader import load_program, parse_program
from intcode.program_runner import ProgramRunner
from intcode.search import attempt, find_noun_verb
from intcode.test_machine import GRAVITY_ASSIST

EQUALS_8 = "3,9,8,9,10,9,4,9,99,-1,8"


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def test_parse_program():
    assert parse_program("1,0,0,3,99\n") == [1, 0, 0, 3, 99]
    assert parse_program(" 1, -2 ,3,") == [1, -2, 3]
    assert parse_program("") == []


def test_parse_program_rejects_garbage():
    with pytest.raises(ProgramFormatError) as info:
        parse_program("1,x,3")
    assert "token 1" in str(info.value)
    assert isinstance(info.value, ValueError)


def test_load_program():
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "prog.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write("104,42,99\n")
        assert load_program(path) == [104, 42, 99]


# ---------------------------------------------------------------------------
# Host
# ---------------------------------------------------------------------------

def test_host_execute():
    host = IntcodeHost(EQUALS_8)
    r = host.execute([8])
    assert r["ok"]
    assert r["outputs"] == [1]
    assert r["result"] == (8, 0, True)
    assert r["stats"]["io_ops"] == 2

    # the pristine image is untouched between runs
    assert host.execute([7])["outputs"] == [0]


def test_host_execute_starved():
    r = IntcodeHost(EQUALS_8).execute()
    assert not r["ok"]
    assert r["result"] == (0, 0, False)
    assert r["outputs"] == []


def test_host_patches():
    r = IntcodeHost(GRAVITY_ASSIST).execute(patches={1: 12, 2: 2})
    assert r["memory"][0] == 3790689


def test_disassemble():
    host = IntcodeHost([1002, 4, 3, 4, 33])
    assert host.disassemble() == [(0, "MUL  [4] #3 [4]"), (4, "DATA 33")]
    assert host.listing().splitlines()[0] == "00000: MUL  [4] #3 [4]"


def test_disassemble_does_not_grow_memory():
    mem = Memory([1])
    listing = IntcodeHost([]).disassemble(mem)
    assert listing == [(0, "ADD  [0] [0] [0]")]
    assert len(mem) == 1


def test_host_diagnose():
    channel = IntcodeHost("104,0,104,0,3,20,4,20,99").diagnose(5)
    assert channel.outputs == [0, 0, 5]
    assert channel.last == 5


def test_host_probe_returns_first_output():
    host = IntcodeHost(EQUALS_8)
    assert host.probe(8) == 1
    assert host.probe(3) == 0
    assert IntcodeHost("104,1,104,2,99").probe(0) == 1
    assert IntcodeHost("99").probe(0) is None


# ---------------------------------------------------------------------------
# Step runner
# ---------------------------------------------------------------------------

def test_runner_waits_and_resumes():
    runner = ProgramRunner()
    runner.load_text(EQUALS_8)
    result = runner.run_until_stopped()
    assert runner.phase == "waiting"
    assert result.waiting_for_input
    assert not runner.tick()

    runner.feed(8)
    assert runner.phase == "running"
    result = runner.run_until_stopped()
    assert result.halted
    assert runner.phase == "done"
    assert runner.output_lines == ["1"]


def test_runner_step_limit():
    runner = ProgramRunner(max_cycles=100)
    runner.load_text("1105,1,0")
    with pytest.raises(StepLimitExceeded):
        runner.run_until_stopped()
    assert runner.machine.cycles == 100


def test_runner_idle_before_load():
    assert not ProgramRunner().tick()


# ---------------------------------------------------------------------------
# Noun/verb search
# ---------------------------------------------------------------------------

def test_attempt():
    assert attempt(GRAVITY_ASSIST, 12, 2) == 3790689


def test_find_noun_verb():
    assert find_noun_verb(GRAVITY_ASSIST, goal=3790689, workers=1) == 1202


def test_find_noun_verb_parallel():
    assert find_noun_verb(GRAVITY_ASSIST, goal=3790689, workers=2) == 1202


def test_find_noun_verb_no_match():
    with pytest.raises(LookupError):
        find_noun_verb([99, 0, 0], goal=1, workers=1)


def main():
    print("=" * 60)
    print("Host / Loader / Runner / Search — Verification Suite")
    print("=" * 60)

    tests = [(name, fn) for name, fn in globals().items()
             if name.startswith("test_") and callable(fn)]
    failed = 0
    for name, fn in tests:
        try:
            fn()
        except AssertionError as e:
            failed += 1
            print(f"  FAIL: {name} {e}")
        else:
            print(f"  ok    {name}")

    print("\n" + "=" * 60)
    if not failed:
        print(f"ALL {len(tests)} TESTS PASSED")
    else:
        print(f"{failed}/{len(tests)} TESTS FAILED")
        sys.exit(1)


if __name__ == "__main__":
    main()
