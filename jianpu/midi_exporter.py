"""MidiExporter: writes a digitized jianpu timeline to a single-melody MIDI file."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from midiutil import MIDIFile

from jianpu.notation_models import BreakNode, DigitizedNotation, FrequencyNode
from jianpu.pitch import frequency_to_midi

# In midiutil Format 1 MIDI, track 0 is the conductor/tempo track.
TRACK_CONDUCTOR = 0  # Tempo only, never receives notes
TRACK_MELODY = 1

CHANNEL_MELODY = 0


@dataclass(frozen=True)
class MelodyNote:
    """
    One sounding MIDI note recovered from the timeline.

    Attributes:
        pitch:    MIDI note number.
        start:    Start time in seconds.
        duration: Duration in seconds.
    """

    pitch: int
    start: float
    duration: float


class MidiExporter:
    """
    Writes a ``DigitizedNotation`` as a Standard MIDI File (format 1).

    Track layout
    ------------
    Track 0 — conductor track (tempo only, no notes)

    Track 1 — "Melody"
        One note per articulated sound. A frequency change that is not
        followed by a break at the same instant (a tie) extends the running
        note when the pitch is unchanged. Rests leave a gap.

    Timing
    ------
    Timeline seconds are converted to beats using: beats = seconds × (tempo / 60).
    With the default tempo of 60 BPM one beat equals one second.
    """

    DEFAULT_TEMPO = 60
    DEFAULT_VELOCITY = 80  # MIDI velocity (0-127)
    DEFAULT_PROGRAM = 0  # General MIDI Acoustic Grand Piano

    def __init__(
        self,
        tempo: int = DEFAULT_TEMPO,
        velocity: int = DEFAULT_VELOCITY,
        program: int = DEFAULT_PROGRAM,
    ) -> None:
        """
        Args:
            tempo:    Tempo written to the conductor track, in BPM.
            velocity: MIDI note-on velocity.
            program:  General MIDI program number for the melody channel.
        """
        if tempo <= 0:
            raise ValueError(f"tempo must be positive, got {tempo}.")
        if not 0 <= velocity <= 127:
            raise ValueError(f"velocity must be within 0-127, got {velocity}.")
        if not 0 <= program <= 127:
            raise ValueError(f"program must be within 0-127, got {program}.")
        self.tempo = tempo
        self.velocity = velocity
        self.program = program

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _seconds_to_beats(self, seconds: float) -> float:
        """Convert a time in seconds to beats at the exporter tempo."""
        return seconds * (self.tempo / 60.0)

    def _articulated(self, notation: DigitizedNotation) -> list[bool]:
        """Flag each FrequencyNode that is immediately re-attacked by a BreakNode."""
        flags: list[bool] = []
        nodes = notation.nodes
        for index, node in enumerate(nodes):
            if not isinstance(node, FrequencyNode):
                continue
            following = nodes[index + 1] if index + 1 < len(nodes) else None
            flags.append(isinstance(following, BreakNode) and following.time == node.time)
        return flags

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def melody_notes(self, notation: DigitizedNotation) -> list[MelodyNote]:
        """
        Collapse the frequency timeline into discrete MIDI notes.

        Returns:
            Notes ordered by start time; zero-length notes are dropped.
        """
        frequencies = notation.frequencies
        if not frequencies:
            return []

        # Negative numbers mark rests or pitches below the MIDI range
        pitches = np.minimum(frequency_to_midi([node.value for node in frequencies]), 127)
        articulated = self._articulated(notation)
        ends = [node.time for node in frequencies[1:]] + [notation.duration]

        notes: list[MelodyNote] = []
        current: MelodyNote | None = None
        for node, pitch, attack, end in zip(frequencies, pitches, articulated, ends):
            pitch = int(pitch)
            if current is not None and pitch == current.pitch and not attack:
                current = MelodyNote(current.pitch, current.start, end - current.start)
                continue
            if current is not None and current.duration > 0:
                notes.append(current)
            current = MelodyNote(pitch, node.time, end - node.time) if pitch >= 0 else None
        if current is not None and current.duration > 0:
            notes.append(current)
        return notes

    def export(self, notation: DigitizedNotation, output_path: str) -> None:
        """
        Render a digitized notation to a Standard MIDI File.

        Args:
            notation:    Digitized timeline to write.
            output_path: Destination file path (e.g. "melody.mid").

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        midi = MIDIFile(numTracks=2, removeDuplicates=False, deinterleave=False)

        # --- Track 0: conductor (tempo only) ---
        midi.addTempo(TRACK_CONDUCTOR, 0, self.tempo)

        # --- Track 1: melody ---
        midi.addTrackName(TRACK_MELODY, 0, "Melody")
        midi.addProgramChange(TRACK_MELODY, CHANNEL_MELODY, 0, self.program)

        for note in self.melody_notes(notation):
            midi.addNote(
                track=TRACK_MELODY,
                channel=CHANNEL_MELODY,
                pitch=note.pitch,
                time=self._seconds_to_beats(note.start),
                duration=self._seconds_to_beats(note.duration),
                volume=self.velocity,
            )

        with open(output_path, "wb") as f:
            midi.writeFile(f)
