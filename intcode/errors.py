"""
Error taxonomy for the Intcode machine.

Every fatal condition raised by the loader, the engine or the amplifier
network derives from IntcodeError. Running out of buffered input is not an
error: the engine parks in S_SUSPENDED and returns to its caller.
"""

from __future__ import annotations


class IntcodeError(Exception):
    """Base class for all fatal Intcode errors."""


class MalformedProgramText(IntcodeError, ValueError):
    """A program token failed to parse as a signed decimal integer."""

    def __init__(self, message: str, line: int | None = None,
                 column: int | None = None):
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)
        self.line = line
        self.column = column


class InvalidOpcode(IntcodeError):
    """The fetched word does not decode to a defined operation."""

    def __init__(self, word: int, address: int):
        self.opcode = word % 100 if word >= 0 else word
        super().__init__(
            f"invalid opcode {self.opcode} (word {word}) at address {address}"
        )
        self.word = word
        self.address = address


class UnrecognizedParameterMode(IntcodeError):
    """Mode digit outside {0, 1, 2}, or immediate mode on a store operand."""

    def __init__(self, mode: int, position: int, name: str, address: int,
                 store: bool = False):
        if store:
            detail = f"immediate mode is not valid for store parameter {position}"
        else:
            detail = f"unrecognized mode {mode} for parameter {position}"
        super().__init__(f"{detail} of {name} at address {address}")
        self.mode = mode
        self.position = position
        self.name = name
        self.address = address


class InvalidAddress(IntcodeError):
    """An effective address (or jump target) is negative."""

    def __init__(self, address: int, context: str = "access"):
        super().__init__(f"negative address {address} in memory {context}")
        self.address = address


class InputError(IntcodeError):
    """Interactive input stream ended or delivered a non-integer line."""


class MachineHalted(IntcodeError):
    """Attempt to resume or feed an engine that already reached opcode 99."""


class StepBudgetExceeded(IntcodeError):
    """The configured max_steps was used up before the program halted."""

    def __init__(self, max_steps: int, address: int):
        super().__init__(
            f"step budget of {max_steps} exhausted at address {address}"
        )
        self.max_steps = max_steps
        self.address = address


class NetworkStalled(IntcodeError):
    """An amplifier needed a hand-off value that its predecessor never produced."""
