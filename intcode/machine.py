"""
Intcode machine — resumable fetch/decode/execute engine.

Models the engine as an explicit object holding all of its state: sparse
memory, instruction pointer and relative base registers, an input FIFO and
an output log. Execution either runs to completion or parks in front of an
input instruction when no input is buffered, so a caller can drive several
machines round-robin without threads.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TextIO

from .chips import SparseMemory, Register, InputFIFO
from .errors import (
    InvalidOpcode, UnrecognizedParameterMode, InvalidAddress,
    InputError, MachineHalted, StepBudgetExceeded,
)
from .loader import load_program


# ---------------------------------------------------------------------------
# Instruction format: opcode = low two decimal digits of the word, then one
# mode digit per parameter, least significant digit for parameter 1
# ---------------------------------------------------------------------------

OP_ADD      = 1
OP_MUL      = 2
OP_INPUT    = 3
OP_OUTPUT   = 4
OP_JUMP_T   = 5
OP_JUMP_F   = 6
OP_LESS     = 7
OP_EQUALS   = 8
OP_ADJ_RB   = 9
OP_HALT     = 99

# Length in cells, opcode cell included
OPCODE_LENGTHS = {
    OP_ADD: 4, OP_MUL: 4, OP_INPUT: 2, OP_OUTPUT: 2, OP_JUMP_T: 3,
    OP_JUMP_F: 3, OP_LESS: 4, OP_EQUALS: 4, OP_ADJ_RB: 2, OP_HALT: 1,
}

OPCODE_NAMES = {
    OP_ADD: "ADD", OP_MUL: "MUL", OP_INPUT: "IN", OP_OUTPUT: "OUT",
    OP_JUMP_T: "JT", OP_JUMP_F: "JF", OP_LESS: "LT", OP_EQUALS: "EQ",
    OP_ADJ_RB: "ARB", OP_HALT: "HALT",
}

# Parameter modes
MODE_POSITION  = 0
MODE_IMMEDIATE = 1
MODE_RELATIVE  = 2

NUM_MODES = 3

# Engine states
S_RUNNING   = 0
S_SUSPENDED = 1   # parked in front of an input instruction, queue empty
S_HALTED    = 2

STATE_NAMES = {
    S_RUNNING: "S_RUNNING",
    S_SUSPENDED: "S_SUSPENDED",
    S_HALTED: "S_HALTED",
}


@dataclass(frozen=True)
class Instruction:
    opcode: int
    length: int
    modes: tuple[int, int, int]

    @property
    def name(self) -> str:
        return OPCODE_NAMES[self.opcode]


def decode_instruction(word: int, address: int = 0) -> Instruction:
    """Split an instruction word into opcode, length and three modes."""
    if word < 0:
        raise InvalidOpcode(word, address)
    opcode = word % 100
    if opcode not in OPCODE_LENGTHS:
        raise InvalidOpcode(word, address)
    digits = word // 100
    modes = tuple((digits // 10 ** i) % 10 for i in range(NUM_MODES))
    return Instruction(opcode, OPCODE_LENGTHS[opcode], modes)


# ---------------------------------------------------------------------------
# Machine
# ---------------------------------------------------------------------------

class IntcodeMachine:
    """Fetch/decode/execute engine for one Intcode program.

    Args:
        program: Program text or an already parsed memory image. The image
            is copied, so one parsed program can back many machines.
        inputs: Initial input queue. Passing a sequence (even an empty one)
            selects batch mode; None selects interactive mode, where input
            instructions read lines from ``stdin`` and outputs are also
            printed to ``stdout``.
        stdin, stdout: Text streams for interactive mode. Default to the
            process streams, looked up at use time.
        max_steps: Optional budget of executed instructions. None means
            unbounded.
    """

    def __init__(self, program: str | Sequence[int],
                 inputs: Iterable[int] | None = None,
                 stdin: TextIO | None = None,
                 stdout: TextIO | None = None,
                 max_steps: int | None = None):
        if isinstance(program, str):
            program = load_program(program)

        # --- State ---
        self.memory = SparseMemory(program)
        self.ip = Register(0)                   # instruction pointer
        self.rb = Register(0)                   # relative base
        self.state = Register(S_RUNNING)

        # --- IO ---
        self.interactive = inputs is None
        self.inputs = InputFIFO(inputs if inputs is not None else ())
        self.outputs: list[int] = []
        self.stdin = stdin
        self.stdout = stdout

        self.max_steps = max_steps

        self._handlers = {
            OP_ADD: self._op_add,
            OP_MUL: self._op_mul,
            OP_INPUT: self._op_input,
            OP_OUTPUT: self._op_output,
            OP_JUMP_T: self._op_jump_if_true,
            OP_JUMP_F: self._op_jump_if_false,
            OP_LESS: self._op_less_than,
            OP_EQUALS: self._op_equals,
            OP_ADJ_RB: self._op_adjust_relative_base,
        }

        # --- Counters ---
        self.steps = 0
        self.mem_reads = 0
        self.mem_writes = 0
        self.inputs_consumed = 0
        self.outputs_emitted = 0
        self.jumps_taken = 0
        self.suspensions = 0

    # -------------------------------------------------------------------
    # State queries
    # -------------------------------------------------------------------

    @property
    def halted(self) -> bool:
        return self.state.value == S_HALTED

    @property
    def suspended(self) -> bool:
        return self.state.value == S_SUSPENDED

    @property
    def state_name(self) -> str:
        return STATE_NAMES[self.state.value]

    def current_instruction(self) -> Instruction:
        """Decode the word at the instruction pointer without executing it."""
        addr = self.ip.value
        return decode_instruction(self.memory.read(addr), addr)

    # -------------------------------------------------------------------
    # Memory helpers
    # -------------------------------------------------------------------

    def mem_read(self, addr: int) -> int:
        self.mem_reads += 1
        return self.memory.read(addr)

    def mem_write(self, addr: int, val: int):
        self.mem_writes += 1
        self.memory.write(addr, val)

    def memory_dump(self, length: int | None = None) -> list[int]:
        return self.memory.dump(length)

    # -------------------------------------------------------------------
    # Addressing
    # -------------------------------------------------------------------

    def _address(self, instr: Instruction, position: int,
                 store: bool = False) -> int:
        """Effective address of the 1-based parameter ``position``."""
        mode = instr.modes[position - 1]
        operand_addr = self.ip.value + position

        if mode == MODE_POSITION:
            return self.mem_read(operand_addr)

        if mode == MODE_IMMEDIATE:
            if store:
                raise UnrecognizedParameterMode(
                    mode, position, instr.name, self.ip.value, store=True)
            return operand_addr

        if mode == MODE_RELATIVE:
            return self.rb.value + self.mem_read(operand_addr)

        raise UnrecognizedParameterMode(mode, position, instr.name, self.ip.value)

    def _load(self, instr: Instruction, position: int) -> int:
        return self.mem_read(self._address(instr, position))

    def _store(self, instr: Instruction, position: int, val: int):
        self.mem_write(self._address(instr, position, store=True), val)

    def _next(self, instr: Instruction) -> int:
        return self.ip.value + instr.length

    def _jump(self, target: int) -> int:
        if target < 0:
            raise InvalidAddress(target, "jump")
        self.jumps_taken += 1
        return target

    # -------------------------------------------------------------------
    # Instruction set. Each handler returns the new instruction pointer.
    # -------------------------------------------------------------------

    def _op_add(self, instr: Instruction) -> int:
        self._store(instr, 3, self._load(instr, 1) + self._load(instr, 2))
        return self._next(instr)

    def _op_mul(self, instr: Instruction) -> int:
        self._store(instr, 3, self._load(instr, 1) * self._load(instr, 2))
        return self._next(instr)

    def _op_input(self, instr: Instruction) -> int:
        dst = self._address(instr, 1, store=True)
        val = self.inputs.pop()
        if val is None:
            val = self._read_console()
        self.mem_write(dst, val)
        self.inputs_consumed += 1
        return self._next(instr)

    def _op_output(self, instr: Instruction) -> int:
        val = self._load(instr, 1)
        self.outputs.append(val)
        self.outputs_emitted += 1
        if self.interactive:
            print(val, file=self.stdout or sys.stdout, flush=True)
        return self._next(instr)

    def _op_jump_if_true(self, instr: Instruction) -> int:
        cond = self._load(instr, 1)
        target = self._load(instr, 2)
        if cond != 0:
            return self._jump(target)
        return self._next(instr)

    def _op_jump_if_false(self, instr: Instruction) -> int:
        cond = self._load(instr, 1)
        target = self._load(instr, 2)
        if cond == 0:
            return self._jump(target)
        return self._next(instr)

    def _op_less_than(self, instr: Instruction) -> int:
        flag = 1 if self._load(instr, 1) < self._load(instr, 2) else 0
        self._store(instr, 3, flag)
        return self._next(instr)

    def _op_equals(self, instr: Instruction) -> int:
        flag = 1 if self._load(instr, 1) == self._load(instr, 2) else 0
        self._store(instr, 3, flag)
        return self._next(instr)

    def _op_adjust_relative_base(self, instr: Instruction) -> int:
        self.rb.load(self.rb.value + self._load(instr, 1))
        return self._next(instr)

    # -------------------------------------------------------------------
    # IO
    # -------------------------------------------------------------------

    def push_input(self, *values: int):
        """Queue input values for the next input instructions."""
        if self.halted:
            raise MachineHalted("cannot feed input to a halted machine")
        for val in values:
            self.inputs.push(val)

    def _read_console(self) -> int:
        """Interactive input: one integer per line from the input stream."""
        stream = self.stdin or sys.stdin
        line = stream.readline()
        if not line:
            raise InputError(f"input stream closed at address {self.ip.value}")
        text = line.rstrip("\r\n")
        try:
            return int(text)
        except ValueError:
            raise InputError(f"expected an integer, got {text!r}") from None

    # -------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------

    def tick(self, suspend_on_input: bool = True) -> bool:
        """Execute one instruction. Returns True if still running.

        Halting and suspending do not move the instruction pointer, so a
        suspended machine re-executes the same input instruction once input
        has been pushed.
        """
        if self.halted:
            raise MachineHalted(
                f"machine halted at address {self.ip.value}; it cannot resume")

        addr = self.ip.value
        instr = decode_instruction(self.mem_read(addr), addr)

        if instr.opcode == OP_HALT:
            self.state.load(S_HALTED)
            return False

        if instr.opcode == OP_INPUT and not self.inputs.ready():
            # Batch mode has nowhere else to read from
            if suspend_on_input or not self.interactive:
                if self.state.value != S_SUSPENDED:
                    self.suspensions += 1
                self.state.load(S_SUSPENDED)
                return False

        if self.max_steps is not None and self.steps >= self.max_steps:
            raise StepBudgetExceeded(self.max_steps, addr)

        self.state.load(S_RUNNING)
        self.ip.load(self._handlers[instr.opcode](instr))
        self.steps += 1
        return True

    def run_until_suspended(self) -> int:
        """Run until halt, or until an input instruction finds the queue empty.

        Returns the resulting state (S_SUSPENDED or S_HALTED).
        """
        while self.tick(suspend_on_input=True):
            pass
        return self.state.value

    run_until_input_or_halt = run_until_suspended

    def run_to_completion(self) -> int:
        """Run until halt. In interactive mode, input is read from the stream.

        A batch-mode machine with an exhausted queue still suspends; the
        returned state tells the caller which happened.
        """
        while self.tick(suspend_on_input=False):
            pass
        return self.state.value

    # -------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------

    def reset_counters(self):
        self.steps = 0
        self.mem_reads = 0
        self.mem_writes = 0
        self.inputs_consumed = 0
        self.outputs_emitted = 0
        self.jumps_taken = 0
        self.suspensions = 0

    def stats(self) -> dict:
        return {
            "steps": self.steps,
            "mem_reads": self.mem_reads,
            "mem_writes": self.mem_writes,
            "inputs_consumed": self.inputs_consumed,
            "outputs_emitted": self.outputs_emitted,
            "jumps_taken": self.jumps_taken,
            "suspensions": self.suspensions,
            "memory_extent": self.memory.extent,
            "relative_base": self.rb.value,
        }

    def stats_summary(self) -> str:
        s = self.stats()
        return (
            f"Steps: {s['steps']}\n"
            f"Memory: {s['mem_reads']}R/{s['mem_writes']}W "
            f"({s['memory_extent']} cells addressed)\n"
            f"IO: {s['inputs_consumed']} in / {s['outputs_emitted']} out\n"
            f"Jumps taken: {s['jumps_taken']}\n"
            f"Suspensions: {s['suspensions']}\n"
            f"Relative base: {s['relative_base']}"
        )
