"""Tokenizer: splits jianpu source text into whitespace-delimited tokens."""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterator

from jianpu.notation_models import Position

_TOKEN_PATTERN = re.compile(r"\S+")


@dataclass(frozen=True)
class Token:
    """
    One token of source text.

    Attributes:
        text:     The token characters.
        offset:   Offset of the first character in the source string.
        position: 1-based line/column of the first character.
    """

    text: str
    offset: int
    position: Position

    @property
    def end(self) -> int:
        return self.offset + len(self.text)


def _line_starts(source: str) -> list[int]:
    starts = [0]
    for index, char in enumerate(source):
        if char == "\n":
            starts.append(index + 1)
    return starts


def position_at(source: str, offset: int) -> Position:
    """Return the 1-based line/column of ``offset`` within ``source``."""
    starts = _line_starts(source)
    line_index = bisect_right(starts, offset) - 1
    return Position(line=line_index + 1, column=offset - starts[line_index] + 1)


def tokenize(source: str) -> Iterator[Token]:
    """
    Yield the tokens of ``source`` in order.

    Each call restarts from the beginning of the text, so the result can be
    iterated again by calling ``tokenize`` again.
    """
    starts = _line_starts(source)
    for match in _TOKEN_PATTERN.finditer(source):
        offset = match.start()
        line_index = bisect_right(starts, offset) - 1
        yield Token(
            text=match.group(0),
            offset=offset,
            position=Position(line=line_index + 1, column=offset - starts[line_index] + 1),
        )
