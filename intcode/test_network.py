"""
Tests for the amplifier network and the Johnson–Trotter generator.
"""

from __future__ import annotations

import itertools
import sys

import pytest

from intcode.errors import InvalidOpcode, NetworkStalled
from intcode.machine import IntcodeMachine
from intcode.network import (
    AmplifierNetwork, HandoffSlot, run_network, find_max_signal,
    LINEAR_PHASES, FEEDBACK_PHASES,
)
from intcode.permutations import johnson_trotter

# Published example chains: (program, best phases, best signal)
LINEAR_EXAMPLE = (
    "3,15,3,16,1002,16,10,16,1,16,15,15,4,15,99,0,0",
    (4, 3, 2, 1, 0), 43210,
)
LINEAR_EXAMPLE_2 = (
    "3,23,3,24,1002,24,10,24,1002,23,-1,23,101,5,23,23,1,24,23,23,4,23,99,0,0",
    (0, 1, 2, 3, 4), 54321,
)
FEEDBACK_EXAMPLE = (
    "3,26,1001,26,-4,26,3,27,1002,27,2,27,1,27,26,27,4,27,1001,28,-1,28,"
    "1005,28,6,99,0,0,5",
    (9, 8, 7, 6, 5), 139629729,
)


# ---------------------------------------------------------------------------
# Permutations
# ---------------------------------------------------------------------------

def test_johnson_trotter_is_complete():
    perms = list(johnson_trotter(range(5)))
    assert len(perms) == 120
    assert set(perms) == set(itertools.permutations(range(5)))
    assert perms[0] == (0, 1, 2, 3, 4)


def test_johnson_trotter_adjacent_swaps():
    perms = list(johnson_trotter(FEEDBACK_PHASES))
    for prev, cur in zip(perms, perms[1:]):
        diff = [i for i in range(5) if prev[i] != cur[i]]
        assert len(diff) == 2
        assert diff[1] == diff[0] + 1


def test_johnson_trotter_small_cases():
    assert list(johnson_trotter([])) == [()]
    assert list(johnson_trotter([7])) == [(7,)]
    assert list(johnson_trotter([1, 2, 3])) == [
        (1, 2, 3), (1, 3, 2), (3, 1, 2), (3, 2, 1), (2, 3, 1), (2, 1, 3),
    ]


def test_johnson_trotter_rejects_duplicates():
    with pytest.raises(ValueError):
        list(johnson_trotter([1, 1, 2]))


# ---------------------------------------------------------------------------
# Hand-off slot
# ---------------------------------------------------------------------------

def test_handoff_slot_holds_one_value():
    slot = HandoffSlot()
    assert not slot.full()
    slot.put(3)
    slot.put(4)
    assert slot.full()
    assert slot.take() == 4
    assert slot.take() is None


# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("example", [LINEAR_EXAMPLE, LINEAR_EXAMPLE_2])
def test_linear_chain(example):
    program, phases, signal = example
    assert run_network(program, phases, feedback=False) == signal


def test_feedback_loop():
    program, phases, signal = FEEDBACK_EXAMPLE
    network = AmplifierNetwork(program, phases, feedback=True)
    assert network.run() == signal
    assert all(amp.halted for amp in network.amplifiers)
    assert network.rounds == 5
    assert network.activations == 25


def test_same_permutation_is_deterministic():
    program, phases, _ = FEEDBACK_EXAMPLE
    assert run_network(program, phases) == run_network(program, phases)


@pytest.mark.parametrize("example,feedback", [
    (LINEAR_EXAMPLE, False), (LINEAR_EXAMPLE_2, False), (FEEDBACK_EXAMPLE, True),
])
def test_find_max_signal(example, feedback):
    program, phases, signal = example
    best, best_phases = find_max_signal(program, feedback=feedback)
    assert best == signal
    assert best_phases == phases


def test_find_max_signal_is_max_over_all_orderings():
    program = FEEDBACK_EXAMPLE[0]
    best, _ = find_max_signal(program, FEEDBACK_PHASES, feedback=True)
    signals = [run_network(program, p) for p in itertools.permutations(FEEDBACK_PHASES)]
    assert best == max(signals)


def test_default_phase_sets():
    assert LINEAR_PHASES == (0, 1, 2, 3, 4)
    assert FEEDBACK_PHASES == (5, 6, 7, 8, 9)


def test_seed_is_fed_to_first_amplifier():
    # each amplifier reads phase then signal and outputs phase + signal
    program = "3,11,3,12,1,11,12,13,4,13,99,0,0,0"
    assert run_network(program, (1, 2, 3), feedback=False, seed=100) == 106


def test_network_stalls_without_output():
    # reads phase and signal, emits nothing
    program = "3,9,3,9,99"
    with pytest.raises(NetworkStalled):
        run_network(program, (0, 1), feedback=False)


def test_feedback_stalls_when_an_early_amplifier_halts():
    # first amplifier halts after one pass, the second keeps looping
    network = AmplifierNetwork("3,20,3,21,4,21,99", (0, 1), feedback=True)
    network.amplifiers[1] = IntcodeMachine("3,20,3,21,4,21,1105,1,2", inputs=[1])
    with pytest.raises(NetworkStalled):
        network.run()
    assert network.amplifiers[0].halted
    assert not network.amplifiers[1].halted


def test_amplifier_errors_propagate():
    with pytest.raises(InvalidOpcode):
        run_network("3,5,3,6,42", (0, 1), feedback=False)


def test_empty_phase_list():
    with pytest.raises(ValueError):
        AmplifierNetwork("99", ())


def main():
    print("=" * 60)
    print("Amplifier Network — Verification Suite")
    print("=" * 60)
    sys.exit(pytest.main([__file__, "-q"]))


if __name__ == "__main__":
    main()
