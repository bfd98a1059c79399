"""Data models for parsed and digitized jianpu notation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Literal, Union

Accidental = Literal[-1, 0, 1]
Repeat = Literal[-1, 0, 1]


@dataclass(frozen=True)
class Position:
    """1-based line and column of a token in its source text."""

    line: int
    column: int


# ---------------------------------------------------------------------------
# Parsed nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class BaseNode:
    """
    Fields shared by every parsed node.

    Source metadata (``raw``, ``range``, ``position``) is excluded from
    equality, so two nodes compare equal when they mean the same thing.
    """

    raw: str = field(default="", compare=False)
    range: tuple[int, int] = field(default=(0, 0), compare=False)
    position: Position | None = field(default=None, compare=False)


@dataclass(frozen=True, kw_only=True)
class TempoNode(BaseNode):
    """``!<beat>``: beats per minute. ``spelling`` keeps the digits as written."""

    beat: int
    spelling: str = field(default="", compare=False)


@dataclass(frozen=True, kw_only=True)
class KeySignatureNode(BaseNode):
    """``<tonic>=[#|b]<pitch>``, e.g. ``1=bB``."""

    tonic: int
    accidental: Accidental
    pitch: str


@dataclass(frozen=True, kw_only=True)
class TimeSignatureNode(BaseNode):
    """``<beat>/<unit>``: beats per measure over the beat note value.

    ``spelling`` keeps the token as written, leading zeros included.
    """

    beat: int
    unit: int
    spelling: str = field(default="", compare=False)


@dataclass(frozen=True, kw_only=True)
class NoteNode(BaseNode):
    """
    A single scale degree (or rest) with its modifiers.

    Attributes:
        continuation: Tie to the previous note (``^`` prefix).
        accidental:   -1, 0 or +1 semitone.
        notation:     Scale degree 1-7, or 0 for a rest.
        octave:       Count of ``+`` (positive) or ``-`` (negative) markers.
        dot:          Number of augmentation dots.
        half:         Number of underscores, each halving the length.
        leaning:      Grace note (``&`` suffix).
        spelling:     Degree text as written (``"1"``, ``"do"``, ...).
    """

    continuation: bool = False
    accidental: Accidental = 0
    notation: int
    octave: int = 0
    dot: int = 0
    half: int = 0
    leaning: bool = False
    spelling: str = field(default="", compare=False)

    @property
    def length(self) -> float:
        """Note length in beat units: halvings first, then the dotted extension."""
        dotted = (2 ** (self.dot + 1) - 1) / 2**self.dot
        return 2.0**-self.half * dotted

    @property
    def is_rest(self) -> bool:
        return self.notation == 0


@dataclass(frozen=True, kw_only=True)
class DashNode(BaseNode):
    """``-``: hold the previous sound for one more beat unit."""


@dataclass(frozen=True, kw_only=True)
class BarLineNode(BaseNode):
    """``|``, ``||``, ``||:`` or ``:||``."""

    end: bool = False
    repeat: Repeat = 0


@dataclass(frozen=True, kw_only=True)
class FineNode(BaseNode):
    """``[<n>.``: the following segment only plays on repeat pass ``n``.

    ``spelling`` keeps the pass digits as written.
    """

    except_: int
    spelling: str = field(default="", compare=False)


@dataclass(frozen=True, kw_only=True)
class UnknownNode(BaseNode):
    """A token no grammar rule recognised, kept verbatim."""

    raw: str = field(default="", compare=True)


ParsedNode = Union[
    TempoNode,
    KeySignatureNode,
    TimeSignatureNode,
    NoteNode,
    DashNode,
    BarLineNode,
    FineNode,
    UnknownNode,
]


@dataclass(frozen=True)
class ParsedNotation:
    """Ordered parsed nodes of one source text."""

    nodes: tuple[ParsedNode, ...]

    def __iter__(self) -> Iterator[ParsedNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def unknown_nodes(self) -> list[UnknownNode]:
        """Tokens that matched no rule, for callers that want strict input."""
        return [node for node in self.nodes if isinstance(node, UnknownNode)]


# ---------------------------------------------------------------------------
# Digitized nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FrequencyNode:
    """Pitch change at ``time`` seconds; ``value == 0`` is silence."""

    value: float
    time: float


@dataclass(frozen=True)
class BreakNode:
    """
    Articulation boundary at ``time`` seconds.

    Attributes:
        base:   Beat duration in seconds when the boundary was emitted.
        before: Duration in seconds of the sound that just ended.
        time:   Boundary time in seconds.
    """

    base: float
    before: float
    time: float


DigitizedNode = Union[FrequencyNode, BreakNode]


@dataclass(frozen=True)
class DigitizedNotation:
    """Timeline of frequency and break events plus total duration in seconds."""

    nodes: tuple[DigitizedNode, ...]
    duration: float

    @property
    def frequencies(self) -> list[FrequencyNode]:
        return [node for node in self.nodes if isinstance(node, FrequencyNode)]

    @property
    def breaks(self) -> list[BreakNode]:
        return [node for node in self.nodes if isinstance(node, BreakNode)]
