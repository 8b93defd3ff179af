"""
Textual TUI debugger for the Intcode machine.

Instruction-stepping debugger that loads a program, runs it on the
machine, and displays full engine state at every step. Integers typed in
the input line are queued for the program's input instructions.

Usage:
    python -m intcode.debugger program.txt
    python -m intcode.debugger program.txt -i 5
    python -m intcode.debugger --run program.txt -i 1
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import ScrollableContainer
from textual.widgets import Static, RichLog, Footer, Input
from textual import work

from intcode.errors import IntcodeError
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
    grid-size: 2 4;
    grid-columns: 1fr 1fr;
    grid-rows: 1fr 1fr 1fr auto;
}

.panel {
    border: solid $accent;
    border-title-align: left;
    overflow-y: auto;
    height: 100%;
}

#output-panel { column-span: 2; }
#input-line   { column-span: 2; }
"""


# ---------------------------------------------------------------------------
# Panel widgets
# ---------------------------------------------------------------------------

class SourcePanel(ScrollableContainer):
    """Disassembly around the instruction pointer."""
    BORDER_TITLE = "Code"

    def compose(self) -> ComposeResult:
        yield Static("", id="source-content")


class StatePanel(ScrollableContainer):
    """Registers and counters."""
    BORDER_TITLE = "Machine State"

    def compose(self) -> ComposeResult:
        yield Static("", id="state-content")


class MemoryPanel(ScrollableContainer):
    """Memory cells around the instruction pointer and relative base."""
    BORDER_TITLE = "Memory"

    def compose(self) -> ComposeResult:
        yield Static("", id="memory-content")


class IOPanel(ScrollableContainer):
    """Pending input queue and output log."""
    BORDER_TITLE = "IO"

    def compose(self) -> ComposeResult:
        yield Static("", id="io-content")


class OutputPanel(ScrollableContainer):
    """Accumulated program output."""
    BORDER_TITLE = "Output"

    def compose(self) -> ComposeResult:
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
        self._output_line_count = 0

    def compose(self) -> ComposeResult:
        yield SourcePanel(id="source-panel", classes="panel")
        yield StatePanel(id="state-panel", classes="panel")
        yield MemoryPanel(id="memory-panel", classes="panel")
        yield IOPanel(id="io-panel", classes="panel")
        yield OutputPanel(id="output-panel", classes="panel")
        yield Input(placeholder="input values (e.g. 5 or 1,2,3)", id="input-line")
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_panels()
        if self.auto_run:
            self.action_run_to_end()

    # -------------------------------------------------------------------
    # Panel refresh
    # -------------------------------------------------------------------

    def refresh_panels(self) -> None:
        self._refresh_source()
        self._refresh_state()
        self._refresh_memory()
        self._refresh_io()
        self._refresh_output()

    def _refresh_source(self) -> None:
        ip = self.runner.machine.ip.value
        lines = []
        for addr, text in self.runner.listing_around_ip():
            prefix = "●" if addr in self.runner.breakpoints else " "
            marker = "▸" if addr == ip else " "
            line = f"{prefix}{marker} {addr:5d}│ {_esc(text)}"
            if addr == ip:
                line = f"[bold reverse]{line}[/bold reverse]"
            lines.append(line)
        content = self.query_one("#source-content", Static)
        content.update("\n".join(lines) if lines else "(no program loaded)")

    def _refresh_state(self) -> None:
        m = self.runner.machine
        text = (
            f"[bold]State:[/bold] {m.state_name}    [bold]Steps:[/bold] {m.steps}\n"
            f"[bold]IP:[/bold] {m.ip.value}  [bold]RB:[/bold] {m.rb.value}\n"
            f"[bold]Memory:[/bold] {m.mem_reads}R/{m.mem_writes}W  "
            f"[bold]Extent:[/bold] {m.memory.extent}\n"
            f"[bold]Jumps:[/bold] {m.jumps_taken}  "
            f"[bold]Suspensions:[/bold] {m.suspensions}\n"
            f"[bold]Phase:[/bold] {self.runner.phase}"
        )
        content = self.query_one("#state-content", Static)
        content.update(text)

    def _refresh_memory(self) -> None:
        m = self.runner.machine
        ip = m.ip.value
        rb = m.rb.value
        lines = []
        for base, label in ((ip, "ip"), (rb, "rb")):
            start = max(0, base - 4)
            row = []
            for addr in range(start, start + 12):
                cell = f"{m.memory.read(addr)}"
                if addr == base:
                    cell = f"[green]{cell}[/green]"
                row.append(cell)
            lines.append(f"[bold]{label}@{start}:[/bold] " + " ".join(row))
        content = self.query_one("#memory-content", Static)
        content.update("\n".join(lines))

    def _refresh_io(self) -> None:
        m = self.runner.machine
        pending = list(m.inputs.buffer)
        text = (
            f"[bold]IN:[/bold] {_esc(str(pending)) if pending else '(empty)'}\n"
            f"[bold]OUT:[/bold] {len(m.outputs)} values"
        )
        if m.outputs:
            text += f", last {m.outputs[-1]}"
        content = self.query_one("#io-content", Static)
        content.update(text)

    def _refresh_output(self) -> None:
        log = self.query_one("#output-log", RichLog)
        while self._output_line_count < len(self.runner.output_lines):
            log.write(_esc(self.runner.output_lines[self._output_line_count]))
            self._output_line_count += 1

    # -------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------

    def _do_steps(self, count: int) -> None:
        for _ in range(count):
            if not self.runner.tick():
                break
        self.refresh_panels()

    def action_step_1(self) -> None:
        self._do_steps(1)

    def action_step_10(self) -> None:
        self._do_steps(10)

    def action_step_100(self) -> None:
        self._do_steps(100)

    def action_toggle_breakpoint(self) -> None:
        self.runner.toggle_breakpoint()
        self._refresh_source()

    @work(thread=True)
    def action_run_to_end(self) -> None:
        """Run to the next breakpoint or stop in a background thread."""
        for _ in self.runner.run_in_chunks(500):
            self.call_from_thread(self.refresh_panels)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        raw = event.value.replace(",", " ").split()
        try:
            values = [int(tok) for tok in raw]
        except ValueError:
            self.runner.output_lines.append(f"[ERROR] not an integer list: {event.value!r}")
        else:
            self.runner.queue_input(values)
        event.input.value = ""
        self.refresh_panels()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def launch(path: str | Path, inputs: list[int], auto_run: bool = False,
           max_steps: int | None = None) -> int:
    """Load a program file and run the debugger app. Returns an exit status."""
    path = Path(path)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    try:
        runner = ProgramRunner.from_file(path, inputs, max_steps)
    except IntcodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    app = IntcodeDebugger(runner, auto_run=auto_run)
    app.run()
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Intcode TUI debugger",
        prog="python -m intcode.debugger",
    )
    parser.add_argument("file", help="Path to program file")
    parser.add_argument("-i", "--input", type=int, action="append", default=[],
                        help="Queue an input value (repeatable)")
    parser.add_argument("--run", action="store_true",
                        help="Run to completion immediately (auto-run mode)")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Abort after this many executed instructions")
    args = parser.parse_args()
    sys.exit(launch(args.file, args.input, args.run, args.max_steps))


if __name__ == "__main__":
    main()
