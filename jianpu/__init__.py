"""jianpu — numbered musical notation parser and timeline digitizer."""

from jianpu.classifier import classify
from jianpu.digitizer import Digitizer, digitize
from jianpu.errors import InvalidNotationError
from jianpu.notation_models import (
    BarLineNode,
    BreakNode,
    DashNode,
    DigitizedNode,
    DigitizedNotation,
    FineNode,
    FrequencyNode,
    KeySignatureNode,
    NoteNode,
    ParsedNode,
    ParsedNotation,
    Position,
    TempoNode,
    TimeSignatureNode,
    UnknownNode,
)
from jianpu.parser import parse
from jianpu.serializer import serialize, serialize_node
from jianpu.tokenizer import Token, tokenize

__version__ = "0.1.0"

__all__ = [
    "BarLineNode",
    "BreakNode",
    "DashNode",
    "DigitizedNode",
    "DigitizedNotation",
    "Digitizer",
    "FineNode",
    "FrequencyNode",
    "InvalidNotationError",
    "KeySignatureNode",
    "NoteNode",
    "ParsedNode",
    "ParsedNotation",
    "Position",
    "TempoNode",
    "TimeSignatureNode",
    "Token",
    "UnknownNode",
    "classify",
    "digitize",
    "parse",
    "serialize",
    "serialize_node",
    "tokenize",
]
