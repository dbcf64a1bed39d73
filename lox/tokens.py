"""Token values shared by the parser, resolver and interpreter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, eq=False)
class Token:
    """A lexeme together with its kind, literal value and source line.

    Tokens compare by identity. Two `x` identifiers on the same line are
    still different tokens, which keeps error reports tied to the exact
    occurrence that caused them.
    """
    kind: str
    lexeme: str
    literal: Any
    line: int

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.lexeme!r}, line={self.line})"

    @staticmethod
    def synthetic(kind: str, lexeme: str, line: int) -> 'Token':
        # used for names the runtime injects ("this", "super") and for
        # punctuation that lark filters out of the parse tree
        return Token(kind, lexeme, None, line)
