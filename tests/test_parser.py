"""Unit tests for parse()."""

import dataclasses

import pytest

from jianpu.notation_models import (
    BarLineNode,
    DashNode,
    KeySignatureNode,
    NoteNode,
    Position,
    TimeSignatureNode,
    UnknownNode,
)
from jianpu.parser import parse

SOURCE = "1=C 4/4\n1 2 | 3 -"


def test_parse_node_kinds_in_source_order() -> None:
    notation = parse(SOURCE)
    assert [type(node) for node in notation] == [
        KeySignatureNode,
        TimeSignatureNode,
        NoteNode,
        NoteNode,
        BarLineNode,
        NoteNode,
        DashNode,
    ]


def test_parse_ranges_slice_the_source() -> None:
    for node in parse(SOURCE):
        start, end = node.range
        assert SOURCE[start:end] == node.raw


def test_parse_records_positions() -> None:
    nodes = parse(SOURCE).nodes
    assert nodes[0].position == Position(line=1, column=1)
    assert nodes[2].position == Position(line=2, column=1)
    assert nodes[-1].position == Position(line=2, column=9)


def test_parse_empty_source() -> None:
    notation = parse("")
    assert len(notation) == 0
    assert notation.unknown_nodes == []


def test_parse_keeps_going_after_unknown_tokens() -> None:
    notation = parse("1 ?? 2")
    assert len(notation) == 3
    assert notation.unknown_nodes == [UnknownNode(raw="??")]
    assert isinstance(notation.nodes[2], NoteNode)


def test_parsed_notation_is_immutable() -> None:
    notation = parse("1 2")
    assert isinstance(notation.nodes, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        notation.nodes[0].notation = 3  # type: ignore[misc, union-attr]
