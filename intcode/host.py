"""
IntcodeHost — high-level interface to the Intcode machine.

Provides program loading, memory patching, batch evaluation, a
disassembler for listings and the debugger, and the noun/verb search used
to restore the "1202 program alarm" state.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Sequence

from .chips import SparseMemory
from .errors import InvalidOpcode, MachineHalted
from .loader import load_program
from .machine import (
    IntcodeMachine, decode_instruction, S_HALTED, STATE_NAMES,
    MODE_POSITION, MODE_IMMEDIATE, MODE_RELATIVE,
)

NOUN_VERB_RANGE = range(100)
NOUN_ADDR = 1
VERB_ADDR = 2


class IntcodeHost:
    """Keeps a parsed program image and runs fresh machines from it.

    Args:
        program: Program text or parsed memory image.
        max_steps: Step budget handed to every machine this host creates.
    """

    def __init__(self, program: str | Sequence[int],
                 max_steps: int | None = None):
        if isinstance(program, str):
            program = load_program(program)
        self.image: list[int] = list(program)
        self.max_steps = max_steps
        self.machine = self.reset()

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def reset(self, inputs: Iterable[int] = ()) -> IntcodeMachine:
        """Replace the current machine with a fresh batch-mode one."""
        self.machine = IntcodeMachine(self.image, inputs=list(inputs),
                                      max_steps=self.max_steps)
        return self.machine

    def patch(self, address: int, value: int):
        """Write a memory cell before (or between) runs."""
        if self.machine.halted:
            raise MachineHalted("cannot patch memory of a halted machine; reset first")
        self.machine.memory.write(address, value)

    def read(self, address: int) -> int:
        return self.machine.memory.read(address)

    # -------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------

    def eval(self, inputs: Iterable[int] = ()) -> dict:
        """
        Push inputs and run the current machine as far as it can go.

        Returns dict with the final state, output log and stats. ``ok`` is
        True only if the program halted; a machine left waiting for more
        input reports ``ok`` False and can be evaluated again.
        """
        self.machine.push_input(*inputs)
        state = self.machine.run_to_completion()
        return {
            "ok": state == S_HALTED,
            "state": STATE_NAMES[state],
            "outputs": list(self.machine.outputs),
            "stats": self.machine.stats(),
        }

    def listing(self, start: int = 0, count: int | None = None) -> list[tuple[int, str]]:
        return disassemble(self.machine.memory, start, count)


def run_program(program: str | Sequence[int], inputs: Iterable[int] = (),
                max_steps: int | None = None) -> list[int]:
    """One-shot batch run. Returns the output log."""
    machine = IntcodeMachine(program, inputs=list(inputs), max_steps=max_steps)
    machine.run_to_completion()
    return machine.outputs


def search_noun_verb(program: str | Sequence[int], target: int,
                     noun_range: Iterable[int] = NOUN_VERB_RANGE,
                     verb_range: Iterable[int] = NOUN_VERB_RANGE) -> tuple[int, int]:
    """Find the (noun, verb) pair that leaves ``target`` at address 0."""
    host = IntcodeHost(program)
    for noun, verb in itertools.product(noun_range, list(verb_range)):
        host.reset()
        host.patch(NOUN_ADDR, noun)
        host.patch(VERB_ADDR, verb)
        host.machine.run_to_completion()
        if host.read(0) == target:
            return noun, verb
    raise LookupError(f"no noun/verb pair produces {target}")


# ---------------------------------------------------------------------------
# Disassembly
# ---------------------------------------------------------------------------

def _as_memory(memory: SparseMemory | Sequence[int]) -> SparseMemory:
    if isinstance(memory, SparseMemory):
        return memory
    return SparseMemory(memory)


def format_instruction(memory: SparseMemory | Sequence[int],
                       address: int) -> tuple[str, int]:
    """Render the instruction at ``address``. Returns (text, length in cells).

    Operands are shown as ``[n]`` (position), ``#n`` (immediate) or
    ``rb+n`` (relative). Cells that do not decode are shown as ``DATA n``.
    """
    memory = _as_memory(memory)
    word = memory.read(address)
    try:
        instr = decode_instruction(word, address)
    except InvalidOpcode:
        return f"DATA {word}", 1

    params = []
    for pos in range(1, instr.length):
        raw = memory.read(address + pos)
        mode = instr.modes[pos - 1]
        if mode == MODE_POSITION:
            params.append(f"[{raw}]")
        elif mode == MODE_IMMEDIATE:
            params.append(f"#{raw}")
        elif mode == MODE_RELATIVE:
            params.append(f"rb{raw:+d}")
        else:
            return f"DATA {word}", 1

    if not params:
        return instr.name, instr.length
    return f"{instr.name:<4} {', '.join(params)}", instr.length


def disassemble(memory: SparseMemory | Sequence[int], start: int = 0,
                count: int | None = None) -> list[tuple[int, str]]:
    """Linear sweep from ``start``: ``count`` lines, or up to the memory extent."""
    memory = _as_memory(memory)
    lines = []
    addr = start
    while (count is None and addr < memory.extent) or \
          (count is not None and len(lines) < count):
        text, length = format_instruction(memory, addr)
        lines.append((addr, text))
        addr += length
    return lines
