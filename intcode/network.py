"""
Amplifier network — N Intcode machines chained into a (feedback) pipeline.

The network is a deterministic round-robin scheduler. Each amplifier owns a
single-slot hand-off buffer holding the latest output of its predecessor.
Machines run one at a time until they suspend on input or halt; no machine
ever touches another machine's memory.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence

from .errors import NetworkStalled
from .loader import load_program
from .machine import IntcodeMachine
from .permutations import johnson_trotter

LINEAR_PHASES = (0, 1, 2, 3, 4)
FEEDBACK_PHASES = (5, 6, 7, 8, 9)


class HandoffSlot:
    """Single-value mailbox between two adjacent amplifiers."""

    def __init__(self):
        self.value: int | None = None

    def put(self, val: int):
        self.value = val

    def take(self) -> int | None:
        val, self.value = self.value, None
        return val

    def full(self) -> bool:
        return self.value is not None


class AmplifierNetwork:
    """Round-robin driver for a chain of machines sharing one program.

    Args:
        program: Program text or parsed memory image, shared read-only.
        phases: One phase setting per amplifier, injected as its first input.
        feedback: When True the last amplifier feeds the first and the
            network runs until the last amplifier halts. When False the
            signal makes a single pass down the chain.
        seed: Value handed to the first amplifier on the very first pass.
        max_steps: Per-machine step budget, passed through to each machine.
    """

    def __init__(self, program: str | Sequence[int], phases: Sequence[int],
                 feedback: bool = True, seed: int = 0,
                 max_steps: int | None = None):
        if isinstance(program, str):
            program = load_program(program)
        if not phases:
            raise ValueError("an amplifier network needs at least one phase")
        self.phases = tuple(phases)
        self.feedback = feedback
        self.seed = seed
        self.amplifiers = [
            IntcodeMachine(program, inputs=[phase], max_steps=max_steps)
            for phase in self.phases
        ]
        # slots[i] feeds amplifiers[i]
        self.slots = [HandoffSlot() for _ in self.amplifiers]
        self.rounds = 0
        self.activations = 0

    def _prime(self):
        """Consume each phase setting, parking every machine on its next input."""
        for amp in self.amplifiers:
            amp.run_until_suspended()

    def _step(self, i: int):
        """Hand amplifier i its pending value and run it until it parks again."""
        amp = self.amplifiers[i]
        val = self.slots[i].take()
        if val is None:
            raise NetworkStalled(f"amplifier {i} has no input from its predecessor")
        if amp.halted:
            raise NetworkStalled(
                f"amplifier {i} halted while the network was still running")

        before = len(amp.outputs)
        amp.push_input(val)
        amp.run_until_suspended()
        self.activations += 1

        produced = amp.outputs[before:]
        if produced:
            self.slots[(i + 1) % len(self.amplifiers)].put(produced[-1])

    def run(self) -> int:
        """Drive the network to termination and return the final signal."""
        self._prime()
        self.slots[0].put(self.seed)
        last = self.amplifiers[-1]

        while True:
            for i in range(len(self.amplifiers)):
                self._step(i)
            self.rounds += 1
            if not self.feedback or last.halted:
                break

        if not last.outputs:
            raise NetworkStalled("the last amplifier never produced a signal")
        return last.outputs[-1]


def run_network(program: str | Sequence[int], phases: Sequence[int],
                feedback: bool = True, seed: int = 0,
                max_steps: int | None = None) -> int:
    """Evaluate one phase configuration and return its final signal."""
    network = AmplifierNetwork(program, phases, feedback, seed, max_steps)
    return network.run()


def find_max_signal(program: str | Sequence[int],
                    phase_values: Sequence[int] | None = None,
                    feedback: bool = True, seed: int = 0,
                    max_steps: int | None = None,
                    verbose: bool = False) -> tuple[int, tuple[int, ...]]:
    """Try every ordering of ``phase_values``; return (best signal, ordering).

    Errors from any amplifier propagate unchanged.
    """
    if isinstance(program, str):
        program = load_program(program)
    if phase_values is None:
        phase_values = FEEDBACK_PHASES if feedback else LINEAR_PHASES

    best_signal: int | None = None
    best_phases: tuple[int, ...] = ()
    for phases in johnson_trotter(phase_values):
        signal = run_network(program, phases, feedback, seed, max_steps)
        if verbose:
            print(f"{list(phases)} -> {signal}", file=sys.stderr, flush=True)
        if best_signal is None or signal > best_signal:
            best_signal = signal
            best_phases = phases
    return best_signal, best_phases
