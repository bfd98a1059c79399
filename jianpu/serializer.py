"""Serializer: turns parsed nodes back into jianpu source text."""

from __future__ import annotations

from typing import Iterable

from jianpu.notation_models import (
    BarLineNode,
    DashNode,
    FineNode,
    KeySignatureNode,
    NoteNode,
    ParsedNode,
    ParsedNotation,
    TempoNode,
    TimeSignatureNode,
    UnknownNode,
)

_ACCIDENTAL_SYMBOLS: dict[int, str] = {-1: "b", 0: "", 1: "#"}


def _serialize_note(node: NoteNode, canonical: bool) -> str:
    if node.octave > 0:
        octave = "+" * node.octave
    else:
        octave = "-" * -node.octave
    return "".join(
        (
            "^" if node.continuation else "",
            _ACCIDENTAL_SYMBOLS[node.accidental],
            _digits(node.spelling, node.notation, canonical),
            octave,
            "_" * node.half,
            "." * node.dot,
            "&" if node.leaning else "",
        )
    )


def _digits(spelling: str, value: object, canonical: bool) -> str:
    return str(value) if canonical or not spelling else spelling


def _serialize_bar_line(node: BarLineNode) -> str:
    if node.repeat == -1:
        return "||:"
    if node.repeat == 1:
        return ":||"
    return "||" if node.end else "|"


def serialize_node(node: ParsedNode, canonical: bool = False) -> str:
    """
    Return the token text of a single node.

    Notes keep their original degree spelling (``do``, ``sol``, ...) and
    numbers keep their leading zeros unless ``canonical`` is set, in which
    case degrees are written as digits and numbers in plain decimal.
    """
    if isinstance(node, TempoNode):
        return f"!{_digits(node.spelling, node.beat, canonical)}"
    if isinstance(node, KeySignatureNode):
        return f"{node.tonic}={_ACCIDENTAL_SYMBOLS[node.accidental]}{node.pitch}"
    if isinstance(node, TimeSignatureNode):
        return _digits(node.spelling, f"{node.beat}/{node.unit}", canonical)
    if isinstance(node, NoteNode):
        return _serialize_note(node, canonical)
    if isinstance(node, DashNode):
        return "-"
    if isinstance(node, BarLineNode):
        return _serialize_bar_line(node)
    if isinstance(node, FineNode):
        return f"[{_digits(node.spelling, node.except_, canonical)}."
    if isinstance(node, UnknownNode):
        return node.raw
    raise TypeError(f"Cannot serialize {type(node).__name__}")


def serialize(
    notation: ParsedNotation | Iterable[ParsedNode],
    canonical: bool = False,
) -> str:
    """
    Join node tokens back into source text.

    Adjacent nodes are separated by a newline when the second one was read
    from a later source line, and by a single space otherwise (including
    when either node carries no position).
    """
    parts: list[str] = []
    previous: ParsedNode | None = None
    for node in notation:
        if previous is not None:
            moved_line = (
                previous.position is not None
                and node.position is not None
                and node.position.line > previous.position.line
            )
            parts.append("\n" if moved_line else " ")
        parts.append(serialize_node(node, canonical))
        previous = node
    return "".join(parts)
