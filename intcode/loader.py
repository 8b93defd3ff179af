"""
Program text loader.

An Intcode program is one line of comma-separated signed decimal integers.
The grammar is parsed with Lark (LALR) and each token is placed at
consecutive memory addresses starting from 0.
"""

from __future__ import annotations

from pathlib import Path

from lark import Lark, Transformer
from lark.exceptions import UnexpectedInput

from .errors import MalformedProgramText

# ============================================================
# Grammar
# ============================================================

GRAMMAR = r"""
    start: INT ("," INT)*

    INT: /-?[0-9]+/

    %ignore /[ \t\r\n]+/
"""


class _ProgramTransformer(Transformer):
    def start(self, items):
        return [int(tok) for tok in items]


parser = Lark(GRAMMAR, parser="lalr", transformer=_ProgramTransformer())


def load_program(text: str) -> list[int]:
    """Parse program text into the initial memory image."""
    if not text.strip():
        raise MalformedProgramText("empty program text")
    try:
        return parser.parse(text)
    except UnexpectedInput as e:
        line = getattr(e, "line", -1)
        if line is None or line < 1:
            raise MalformedProgramText("program text ends unexpectedly") from None
        raise MalformedProgramText(
            "malformed program text", line, getattr(e, "column", None),
        ) from None


def load_program_file(path: str | Path) -> list[int]:
    """Read and parse a program file."""
    with open(path) as f:
        text = f.read()
    return load_program(text)
