"""
Textual TUI debugger for the Intcode machine.

Instruction-stepping debugger that loads a program, runs it on the
machine, and shows registers, listing, memory and I/O at every step.

Usage:
    python -m intcode.debugger program.txt
    python -m intcode.debugger program.txt -i 1 -i 5
    python -m intcode.debugger -e "3,9,8,9,10,9,4,9,99,-1,8" -i 8 --run
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import ScrollableContainer
from textual.widgets import Static, RichLog, Footer
from textual import work

from intcode.errors import IntcodeError
from intcode.machine import STATE_NAMES
from intcode.program_runner import ProgramRunner


def _esc(text: str) -> str:
    """Escape Rich markup characters in text."""
    return text.replace("[", "\\[")


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

DEBUGGER_CSS = """
Screen {
    layout: grid;
    grid-size: 2 3;
    grid-columns: 1fr 1fr;
    grid-rows: 2fr 1fr auto;
}

.panel {
    border: solid $accent;
    border-title-align: left;
    overflow-y: auto;
    height: 100%;
}

Footer {
    column-span: 2;
}
"""

LISTING_BEFORE = 6
LISTING_AFTER = 20
MEMORY_ROWS = 16
MEMORY_COLS = 8


# ---------------------------------------------------------------------------
# Panel widgets
# ---------------------------------------------------------------------------

class ListingPanel(ScrollableContainer):
    """Disassembly around the pc, breakpoints marked."""
    BORDER_TITLE = "Listing"

    def compose(self) -> ComposeResult:
        yield Static("", id="listing-content")


class StatePanel(ScrollableContainer):
    """Registers and counters."""
    BORDER_TITLE = "Machine State"

    def compose(self) -> ComposeResult:
        yield Static("", id="state-content")


class MemoryPanel(ScrollableContainer):
    """Raw cells around the pc."""
    BORDER_TITLE = "Memory"

    def compose(self) -> ComposeResult:
        yield Static("", id="memory-content")


class IOPanel(ScrollableContainer):
    """Pending input and program output."""
    BORDER_TITLE = "IO"

    def compose(self) -> ComposeResult:
        yield Static("", id="io-content")
        yield RichLog(id="output-log", markup=True, wrap=True)


# ---------------------------------------------------------------------------
# Main debugger app
# ---------------------------------------------------------------------------

class IntcodeDebugger(App):
    """Textual TUI debugger for the Intcode machine."""

    CSS = DEBUGGER_CSS
    TITLE = "Intcode Debugger"

    BINDINGS = [
        Binding("s", "step_1", "Step"),
        Binding("space", "step_1", "Step", show=False),
        Binding("n", "step_10", "x10"),
        Binding("f", "step_100", "x100"),
        Binding("r", "run_to_end", "Run"),
        Binding("b", "toggle_breakpoint", "Break"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, runner: ProgramRunner, auto_run: bool = False):
        super().__init__()
        self.runner = runner
        self.auto_run = auto_run
        self.breakpoints: set[int] = set()
        self._output_line_count = 0

    def compose(self) -> ComposeResult:
        yield ListingPanel(id="listing-panel", classes="panel")
        yield StatePanel(id="state-panel", classes="panel")
        yield MemoryPanel(id="memory-panel", classes="panel")
        yield IOPanel(id="io-panel", classes="panel")
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_panels()
        if self.auto_run:
            self.action_run_to_end()

    # -------------------------------------------------------------------
    # Panel refresh
    # -------------------------------------------------------------------

    def refresh_panels(self) -> None:
        self._refresh_listing()
        self._refresh_state()
        self._refresh_memory()
        self._refresh_io()

    def _refresh_listing(self) -> None:
        m = self.runner.machine
        pc = m.pc.value
        listing = self.runner.host.disassemble(m.memory, max(0, pc - LISTING_BEFORE * 4))
        lines = []
        shown = 0
        for addr, text in listing:
            if addr > pc and shown >= LISTING_AFTER:
                break
            prefix = "●" if addr in self.breakpoints else " "
            marker = "▸" if addr == pc else " "
            line = f"{prefix}{marker} {addr:05d}│ {_esc(text)}"
            if addr == pc:
                line = f"[bold reverse]{line}[/bold reverse]"
            lines.append(line)
            if addr >= pc:
                shown += 1
        content = self.query_one("#listing-content", Static)
        content.update("\n".join(lines) if lines else "(no program loaded)")

    def _refresh_state(self) -> None:
        m = self.runner.machine
        s = m.stats()
        state_name = STATE_NAMES.get(m.state.value, f"?({m.state.value})")
        last = _esc(str(m.last_instruction)) if m.last_instruction else "-"
        text = (
            f"[bold]State:[/bold] {state_name}    [bold]Cycle:[/bold] {m.cycles}\n"
            f"[bold]PC:[/bold] {m.pc.value}  [bold]RB:[/bold] {m.rb.value}\n"
            f"[bold]Last:[/bold] {last}\n"
            f"[bold]Memory:[/bold] {s['reads']}R/{s['writes']}W  "
            f"{s['memory_size']} cells (peak {s['memory_peak']})\n"
            f"[bold]IO:[/bold] {s['io_ops']}  [bold]Phase:[/bold] {self.runner.phase}"
        )
        content = self.query_one("#state-content", Static)
        content.update(text)

    def _refresh_memory(self) -> None:
        m = self.runner.machine
        pc = m.pc.value
        start = max(0, pc - pc % MEMORY_COLS - MEMORY_COLS * 2)
        lines = []
        for row in range(start, min(len(m.memory), start + MEMORY_ROWS * MEMORY_COLS),
                         MEMORY_COLS):
            cells = []
            for addr, val in enumerate(m.memory.window(row, MEMORY_COLS), row):
                cell = f"{val:>8}"
                if addr == pc:
                    cell = f"[green]{cell}[/green]"
                cells.append(cell)
            lines.append(f"{row:05d}:" + "".join(cells))
        content = self.query_one("#memory-content", Static)
        content.update("\n".join(lines) if lines else "(empty)")

    def _refresh_io(self) -> None:
        pending = list(self.runner.channel.inputs.buffer)
        text = f"[bold]Input queue:[/bold] {pending if pending else '(empty)'}"
        self.query_one("#io-content", Static).update(text)

        log = self.query_one("#output-log", RichLog)
        while self._output_line_count < len(self.runner.output_lines):
            log.write(self.runner.output_lines[self._output_line_count])
            self._output_line_count += 1

    # -------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------

    def _report_error(self, err: Exception) -> None:
        """Show an error in the output panel."""
        self.runner.output_lines.append(f"[ERROR] {_esc(str(err))}")
        self.runner.phase = "done"
        self.refresh_panels()

    def _do_steps(self, count: int) -> None:
        try:
            for _ in range(count):
                if not self.runner.tick():
                    break
        except IntcodeError as e:
            self._report_error(e)
            return
        self.refresh_panels()

    def action_step_1(self) -> None:
        self._do_steps(1)

    def action_step_10(self) -> None:
        self._do_steps(10)

    def action_step_100(self) -> None:
        self._do_steps(100)

    def action_toggle_breakpoint(self) -> None:
        pc = self.runner.machine.pc.value
        if pc in self.breakpoints:
            self.breakpoints.discard(pc)
        else:
            self.breakpoints.add(pc)
        self._refresh_listing()

    @work(thread=True)
    def action_run_to_end(self) -> None:
        """Run to halt, starvation or a breakpoint in a background thread."""
        try:
            cycle = 0
            while self.runner.tick():
                cycle += 1
                if self.runner.machine.pc.value in self.breakpoints:
                    break
                if cycle % 500 == 0:
                    self.call_from_thread(self.refresh_panels)
        except IntcodeError as e:
            self.call_from_thread(self._report_error, e)
            return
        self.call_from_thread(self.refresh_panels)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        description="Intcode machine TUI debugger",
        prog="python -m intcode.debugger",
    )
    parser.add_argument("file", nargs="?", help="Path to a comma-separated program")
    parser.add_argument("-e", "--expr", help="Program text given inline")
    parser.add_argument("-i", "--input", type=int, action="append", default=[],
                        help="Queue an input value (repeatable)")
    parser.add_argument("--run", action="store_true",
                        help="Run to completion immediately (auto-run mode)")
    parser.add_argument("--max-cycles", type=int, default=None,
                        help="Stop with an error after this many instructions")
    args = parser.parse_args()

    if not args.file and not args.expr:
        parser.error("Provide a program file or -e program text")

    runner = ProgramRunner(max_cycles=args.max_cycles)

    try:
        if args.file:
            path = Path(args.file)
            if not path.exists():
                print(f"Error: File not found: {path}", file=sys.stderr)
                sys.exit(1)
            runner.load_file(path, args.input)
        else:
            runner.load_text(args.expr, args.input)
    except IntcodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    app = IntcodeDebugger(runner, auto_run=args.run)
    app.run()


if __name__ == "__main__":
    main()
