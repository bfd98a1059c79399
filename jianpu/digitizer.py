"""Digitizer: walks parsed notation and produces a timed frequency/break timeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

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
    TempoNode,
    TimeSignatureNode,
)
from jianpu.parser import parse
from jianpu.pitch import MIDDLE_C_KEY_NUMBER, note_frequency, tonic_key_number

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60.0


@dataclass
class _TimelineState:
    """Mutable state of one digitize pass. Never shared between calls."""

    current_duration: float
    key_number: int
    unit: int
    current_time: float = 0.0
    leaning_count: int = 0
    last_note_duration: float = 0.0
    anchor: int | None = None
    passes: int = 1
    fine: int | None = None
    events: list[DigitizedNode] = field(default_factory=list)

    @property
    def skipping(self) -> bool:
        """True while inside an ending bracket that belongs to another pass."""
        return self.fine is not None and self.fine != self.passes

    @property
    def last_event_time(self) -> float:
        return self.events[-1].time if self.events else 0.0

    def whole_beat(self) -> float:
        """Seconds taken by one beat unit under the current tempo and meter."""
        return self.current_duration * 4 / self.unit


class Digitizer:
    """
    Interprets a parsed jianpu node sequence as an absolute-time timeline.

    State machine overview
    ----------------------
    The nodes are walked left to right with an explicit index:

    1. **Tempo / key / meter** nodes update the beat duration, the tonic key
       number and the beat unit.

    2. **Notes** emit a ``FrequencyNode`` (0 Hz for a rest) and, for a fresh
       sounding note, a ``BreakNode`` carrying the length of the sound it
       interrupts. Tied notes (``^``) extend that sound instead. Grace notes
       (``&``) do not advance time; the note after them starts a quarter beat
       later per pending grace note.

    3. **Dashes** extend the current sound by one beat unit.

    4. **Repeats**: ``||:`` records an anchor, ``:||`` jumps back to it until
       ``max_passes`` passes have been played. ``[n.`` skips everything up
       to the next ``:||`` unless the current pass is ``n``.

    A trailing ``BreakNode`` closes the last sound.
    """

    DEFAULT_BEAT_DURATION = 1.0  # seconds per beat, i.e. 60 BPM
    DEFAULT_KEY_NUMBER = MIDDLE_C_KEY_NUMBER
    DEFAULT_UNIT = 4
    DEFAULT_MAX_PASSES = 2  # one extra pass per repeat

    def __init__(
        self,
        max_passes: int = DEFAULT_MAX_PASSES,
        beat_duration: float = DEFAULT_BEAT_DURATION,
        key_number: int = DEFAULT_KEY_NUMBER,
        unit: int = DEFAULT_UNIT,
    ) -> None:
        """
        Args:
            max_passes:    Times a repeated section is played in total.
            beat_duration: Initial seconds per beat before any tempo mark.
            key_number:    Initial piano key number of degree 1.
            unit:          Initial beat unit before any time signature.
        """
        if max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {max_passes}.")
        if beat_duration <= 0:
            raise ValueError(f"beat_duration must be positive, got {beat_duration}.")
        if unit <= 0:
            raise ValueError(f"unit must be positive, got {unit}.")
        self.max_passes = max_passes
        self.beat_duration = beat_duration
        self.key_number = key_number
        self.unit = unit

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _new_state(self) -> _TimelineState:
        return _TimelineState(
            current_duration=self.beat_duration,
            key_number=self.key_number,
            unit=self.unit,
        )

    def _apply_tempo(self, state: _TimelineState, node: TempoNode) -> None:
        if node.beat == 0:
            raise InvalidNotationError(f"Tempo must be positive: {node.raw!r}", node)
        state.current_duration = SECONDS_PER_MINUTE / node.beat

    def _apply_key_signature(self, state: _TimelineState, node: KeySignatureNode) -> None:
        state.key_number = tonic_key_number(node.pitch, node.accidental)

    def _apply_time_signature(self, state: _TimelineState, node: TimeSignatureNode) -> None:
        if node.unit == 0:
            raise InvalidNotationError(f"Time signature unit must be positive: {node.raw!r}", node)
        state.unit = node.unit

    def _apply_note(self, state: _TimelineState, node: NoteNode) -> None:
        frequency = note_frequency(state.key_number, node.notation, node.accidental, node.octave)
        actual_duration = node.length * state.whole_beat()

        borrowed = state.leaning_count * state.current_duration / 4
        # Grace notes longer than the main note must not push events out of order
        start = max(state.current_time + min(borrowed, actual_duration), state.last_event_time)
        state.events.append(FrequencyNode(value=frequency, time=start))

        if not node.continuation and not state.leaning_count and not node.is_rest:
            state.events.append(
                BreakNode(
                    base=state.current_duration,
                    before=state.last_note_duration,
                    time=state.current_time,
                )
            )

        if node.continuation:
            state.last_note_duration += actual_duration
        else:
            state.last_note_duration = actual_duration

        if node.leaning:
            state.leaning_count += 1
        else:
            state.leaning_count = 0
            state.current_time = max(state.current_time + actual_duration, start)

    def _apply_dash(self, state: _TimelineState, node: DashNode) -> None:
        actual_duration = state.whole_beat()
        state.last_note_duration += actual_duration
        state.current_time += actual_duration

    def _apply_bar_line(self, state: _TimelineState, node: BarLineNode, index: int) -> int | None:
        """Update repeat state; return the index to resume from after a jump."""
        if node.repeat == -1:
            state.anchor = index
            state.passes = 1
            state.fine = None
            return None
        if node.repeat != 1:
            return None

        if state.anchor is None:
            logger.debug("Ignoring repeat end %r without a start anchor", node.raw)
            state.fine = None
            return None
        if state.passes < self.max_passes:
            state.passes += 1
            state.fine = None
            return state.anchor + 1

        # Repeat consumed: the pass counter stays so a following ending still matches.
        state.anchor = None
        state.fine = None
        return None

    def _apply_fine(self, state: _TimelineState, node: FineNode) -> None:
        state.fine = node.except_
        if state.skipping:
            logger.debug("Skipping ending %r on pass %d", node.raw, state.passes)

    def _step(self, state: _TimelineState, node: ParsedNode, index: int) -> int | None:
        if isinstance(node, TempoNode):
            self._apply_tempo(state, node)
        elif isinstance(node, KeySignatureNode):
            self._apply_key_signature(state, node)
        elif isinstance(node, TimeSignatureNode):
            self._apply_time_signature(state, node)
        elif isinstance(node, NoteNode):
            self._apply_note(state, node)
        elif isinstance(node, DashNode):
            self._apply_dash(state, node)
        elif isinstance(node, BarLineNode):
            return self._apply_bar_line(state, node, index)
        elif isinstance(node, FineNode):
            self._apply_fine(state, node)
        else:
            logger.debug("Ignoring unrecognised token %r", node.raw)
        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def digitize(self, notation: str | ParsedNotation) -> DigitizedNotation:
        """
        Digitize source text or an already parsed notation.

        Returns:
            A ``DigitizedNotation`` whose events are ordered by time, plus the
            total duration in seconds.

        Raises:
            InvalidNotationError: If a processed tempo or time-signature unit is zero.
        """
        if isinstance(notation, str):
            notation = parse(notation)

        nodes = notation.nodes
        state = self._new_state()
        index = 0
        while index < len(nodes):
            node = nodes[index]
            is_repeat_end = isinstance(node, BarLineNode) and node.repeat == 1
            if state.skipping and not is_repeat_end:
                index += 1
                continue
            resume = self._step(state, node, index)
            index = resume if resume is not None else index + 1

        if state.events:
            state.events.append(
                BreakNode(
                    base=state.current_duration,
                    before=state.last_note_duration,
                    time=state.current_time,
                )
            )

        return DigitizedNotation(nodes=tuple(state.events), duration=state.current_time)


def digitize(
    notation: str | ParsedNotation,
    max_passes: int = Digitizer.DEFAULT_MAX_PASSES,
) -> DigitizedNotation:
    """Digitize ``notation`` with default tempo (60 BPM), key (1=C) and unit (4)."""
    return Digitizer(max_passes=max_passes).digitize(notation)
