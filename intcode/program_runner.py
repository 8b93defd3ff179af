"""
program_runner — step-by-step control of one machine for the debugger.

Wraps a batch-mode IntcodeMachine with an input queue fed from the UI,
address breakpoints, and a phase the debugger can display.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

from intcode.errors import IntcodeError
from intcode.host import disassemble
from intcode.loader import load_program, load_program_file
from intcode.machine import IntcodeMachine


class ProgramRunner:
    """Manages single-step execution of one Intcode program."""

    def __init__(self, program: str | Sequence[int],
                 inputs: Iterable[int] = (),
                 max_steps: int | None = None):
        if isinstance(program, str):
            program = load_program(program)
        self.machine = IntcodeMachine(program, inputs=list(inputs),
                                      max_steps=max_steps)
        self.output_lines: list[str] = []
        self.breakpoints: set[int] = set()
        self.error: IntcodeError | None = None
        self.phase: str = "running"  # "running" | "waiting" | "done" | "error"
        self.hit_break = False
        self._outputs_seen = 0

    @classmethod
    def from_file(cls, path: str | Path, inputs: Iterable[int] = (),
                  max_steps: int | None = None) -> ProgramRunner:
        return cls(load_program_file(path), inputs, max_steps)

    # -------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------

    def queue_input(self, values: Iterable[int]):
        """Feed values to the machine; a waiting machine becomes runnable."""
        values = list(values)
        if self.phase in ("done", "error"):
            self.output_lines.append(
                f"[ERROR] machine is {self.phase}; input {values} ignored")
            return
        self.machine.push_input(*values)
        if self.phase == "waiting":
            self.phase = "running"

    # -------------------------------------------------------------------
    # Tick interface
    # -------------------------------------------------------------------

    def tick(self) -> bool:
        """Advance the machine one instruction.

        Returns False when the machine cannot make progress: halted,
        failed, or waiting for input.
        """
        if self.phase != "running":
            return False

        try:
            running = self.machine.tick()
        except IntcodeError as e:
            self.error = e
            self.phase = "error"
            self.output_lines.append(f"[ERROR] {e}")
            return False

        self._collect_outputs()
        if running:
            return True
        self.phase = "done" if self.machine.halted else "waiting"
        return False

    def run_to_break(self, limit: int | None = None) -> int:
        """Tick until a breakpoint address, a stop, or ``limit`` ticks.

        The breakpoint at the current address is skipped on the first tick,
        so repeated calls advance from one breakpoint to the next.
        ``hit_break`` records whether the call stopped on a breakpoint.
        """
        self.hit_break = False
        count = 0
        while limit is None or count < limit:
            if not self.tick():
                break
            count += 1
            if self.machine.ip.value in self.breakpoints:
                self.hit_break = True
                break
        return count

    def run_in_chunks(self, chunk: int = 500) -> Iterator[int]:
        """Run to a breakpoint or stop, yielding the tick count of each chunk."""
        while True:
            count = self.run_to_break(limit=chunk)
            yield count
            if count < chunk or self.hit_break:
                return

    def toggle_breakpoint(self, address: int | None = None) -> bool:
        """Toggle a breakpoint (default: current address). Returns new setting."""
        if address is None:
            address = self.machine.ip.value
        if address in self.breakpoints:
            self.breakpoints.discard(address)
            return False
        self.breakpoints.add(address)
        return True

    def _collect_outputs(self):
        outputs = self.machine.outputs
        while self._outputs_seen < len(outputs):
            self.output_lines.append(str(outputs[self._outputs_seen]))
            self._outputs_seen += 1

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------

    def listing_around_ip(self, before: int = 4, after: int = 12) -> list[tuple[int, str]]:
        """Disassembly window. Sweeps from a few cells before the pointer,
        which can misalign on data; the pointer line itself is always exact."""
        ip = self.machine.ip.value
        head = [line for line in disassemble(self.machine.memory, max(0, ip - before), before)
                if line[0] < ip]
        return head + disassemble(self.machine.memory, ip, after)
