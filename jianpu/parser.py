"""Parser: classifies every token of a source text, in order."""

from __future__ import annotations

from jianpu.classifier import classify
from jianpu.notation_models import ParsedNotation
from jianpu.tokenizer import tokenize


def parse(source: str) -> ParsedNotation:
    """
    Parse jianpu source text into an ordered, immutable node sequence.

    There is no lookahead or backtracking: each token maps to one node,
    independently of its neighbours.
    """
    nodes = tuple(
        classify(token.text, token.offset, position=token.position)
        for token in tokenize(source)
    )
    return ParsedNotation(nodes=nodes)
