"""Classifier: maps one token to exactly one typed notation node.

Rules live in ``RULES`` and are tried in order, most specific first. The
first rule whose pattern matches the whole token builds the node; a token no
rule accepts becomes an ``UnknownNode``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Final

from jianpu.notation_models import (
    Accidental,
    BarLineNode,
    DashNode,
    FineNode,
    KeySignatureNode,
    NoteNode,
    ParsedNode,
    Position,
    TempoNode,
    TimeSignatureNode,
    UnknownNode,
)
from jianpu.tokenizer import position_at

# Solfège syllables accepted in place of a scale-degree digit
SOLFEGE_DEGREES: Final[dict[str, int]] = {
    "do": 1,
    "re": 2,
    "mi": 3,
    "fa": 4,
    "so": 5,
    "sol": 5,
    "la": 6,
    "ti": 7,
    "si": 7,
}

NodeMetadata = dict[str, Any]  # raw, range and position keyword arguments


@dataclass(frozen=True)
class Rule:
    """A named grammar rule: a full-token pattern and a node builder."""

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str], NodeMetadata], ParsedNode]

    def match(self, token: str) -> re.Match[str] | None:
        return self.pattern.fullmatch(token)


def _accidental(symbol: str | None) -> Accidental:
    if symbol == "#":
        return 1
    if symbol == "b":
        return -1
    return 0


def degree_of(text: str) -> int:
    """Return the scale degree for a digit or solfège syllable; anything else is a rest."""
    if text.isdigit():
        return int(text)
    return SOLFEGE_DEGREES.get(text.lower(), 0)


def _octave(markers: str) -> int:
    if markers.startswith("+"):
        return len(markers)
    if markers.startswith("-"):
        return -len(markers)
    return 0


# ------------------------------------------------------------------
# Node builders
# ------------------------------------------------------------------


def _build_tempo(match: re.Match[str], metadata: NodeMetadata) -> ParsedNode:
    return TempoNode(beat=int(match.group(1)), spelling=match.group(1), **metadata)


def _build_key_signature(match: re.Match[str], metadata: NodeMetadata) -> ParsedNode:
    return KeySignatureNode(
        tonic=int(match.group(1)),
        accidental=_accidental(match.group(2)),
        pitch=match.group(3),
        **metadata,
    )


def _build_time_signature(match: re.Match[str], metadata: NodeMetadata) -> ParsedNode:
    return TimeSignatureNode(
        beat=int(match.group(1)),
        unit=int(match.group(2)),
        spelling=match.group(0),
        **metadata,
    )


def _build_note(match: re.Match[str], metadata: NodeMetadata) -> ParsedNode:
    continuation, accidental, spelling, octave, half, dot, leaning = match.groups()
    return NoteNode(
        continuation=bool(continuation),
        accidental=_accidental(accidental),
        notation=degree_of(spelling),
        octave=_octave(octave),
        dot=len(dot),
        half=len(half),
        leaning=bool(leaning),
        spelling=spelling,
        **metadata,
    )


def _build_dash(match: re.Match[str], metadata: NodeMetadata) -> ParsedNode:
    return DashNode(**metadata)


def _build_bar_line(match: re.Match[str], metadata: NodeMetadata) -> ParsedNode:
    token = match.group(0)
    if token == "||:":
        return BarLineNode(end=False, repeat=-1, **metadata)
    if token == ":||":
        return BarLineNode(end=False, repeat=1, **metadata)
    return BarLineNode(end=token == "||", repeat=0, **metadata)


def _build_fine(match: re.Match[str], metadata: NodeMetadata) -> ParsedNode:
    return FineNode(except_=int(match.group(1)), spelling=match.group(1), **metadata)


# ------------------------------------------------------------------
# Rule table (precedence order)
# ------------------------------------------------------------------

RULES: Final[tuple[Rule, ...]] = (
    Rule("tempo", re.compile(r"!(\d+)"), _build_tempo),
    Rule("key_signature", re.compile(r"([1-7])=([#b])?([A-G])"), _build_key_signature),
    Rule("time_signature", re.compile(r"(\d+)/(\d+)"), _build_time_signature),
    Rule(
        "note",
        re.compile(r"(\^)?([#b])?([A-Za-z]+|[0-7])(\+*|-*)(_*)(\.*)(&)?"),
        _build_note,
    ),
    Rule("dash", re.compile(r"-"), _build_dash),
    Rule("bar_line", re.compile(r"\|\|?|\|\|:|:\|\|"), _build_bar_line),
    Rule("fine", re.compile(r"\[(\d+)\."), _build_fine),
)


def match_rule(token: str) -> tuple[Rule, re.Match[str]] | None:
    """Return the first rule accepting ``token`` together with its match."""
    for rule in RULES:
        match = rule.match(token)
        if match is not None:
            return rule, match
    return None


def classify(
    token: str,
    offset: int = 0,
    source: str | None = None,
    *,
    position: Position | None = None,
) -> ParsedNode:
    """
    Classify a single token.

    Args:
        token:    The token text, without surrounding whitespace.
        offset:   Offset of the token within ``source``.
        source:   Full source text; when given, the node records its line/column.
        position: Precomputed line/column, used instead of scanning ``source``.

    Returns:
        The typed node. Never raises: unrecognised tokens become ``UnknownNode``.
    """
    if position is None and source is not None:
        position = position_at(source, offset)
    metadata: NodeMetadata = {
        "raw": token,
        "range": (offset, offset + len(token)),
        "position": position,
    }
    found = match_rule(token)
    if found is None:
        return UnknownNode(**metadata)
    rule, match = found
    return rule.build(match, metadata)
