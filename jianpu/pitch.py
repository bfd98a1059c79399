"""Pitch arithmetic on 88-key piano key numbers (A4 = key 49 = 440 Hz)."""

from __future__ import annotations

import numpy as np

# ── Piano key constants ─────────────────────────────────────────────────────
SEMITONES_PER_OCTAVE = 12
A4_KEY_NUMBER = 49
A4_FREQUENCY = 440.0
A4_MIDI = 69
MIDDLE_C_KEY_NUMBER = 40  # C4

#: Semitones above C for each pitch letter
STEP_TO_SEMITONE: dict[str, int] = {
    "C": 0,
    "D": 2,
    "E": 4,
    "F": 5,
    "G": 7,
    "A": 9,
    "B": 11,
}

#: Semitones above the tonic for scale degrees 1..7 (major scale)
MAJOR_SCALE_OFFSETS: tuple[int, ...] = (0, 2, 4, 5, 7, 9, 11)


def piano_key_frequency(key_number: float) -> float:
    """Equal-tempered frequency in Hz of a piano key number."""
    return 2 ** ((key_number - A4_KEY_NUMBER) / SEMITONES_PER_OCTAVE) * A4_FREQUENCY


def tonic_key_number(pitch: str, accidental: int = 0) -> int:
    """
    Key number of a key-signature tonic in the middle-C octave.

    The tonic lies between C4 (key 40) and B4 (key 51) before the accidental
    is applied, so ``A`` and ``B`` sit above middle C.

    Raises:
        ValueError: If ``pitch`` is not a letter A-G.
    """
    step = pitch.strip().upper()
    if step not in STEP_TO_SEMITONE:
        raise ValueError(f"Unknown pitch letter {pitch!r}; use one of A-G.")
    return MIDDLE_C_KEY_NUMBER + STEP_TO_SEMITONE[step] + accidental


def scale_degree_key_number(
    tonic_key: int,
    degree: int,
    accidental: int = 0,
    octave: int = 0,
) -> int:
    """
    Key number of a scale degree relative to the tonic.

    Args:
        tonic_key:  Key number of degree 1.
        degree:     Scale degree 1-7.
        accidental: Semitone adjustment (-1, 0, +1).
        octave:     Whole-octave shift.

    Raises:
        ValueError: If ``degree`` is not within 1-7.
    """
    if not 1 <= degree <= 7:
        raise ValueError(f"Scale degree must be within 1-7, got {degree}.")
    return (
        tonic_key
        + accidental
        + MAJOR_SCALE_OFFSETS[degree - 1]
        + SEMITONES_PER_OCTAVE * octave
    )


def note_frequency(
    tonic_key: int,
    degree: int,
    accidental: int = 0,
    octave: int = 0,
) -> float:
    """Frequency in Hz of a scale degree, or ``0.0`` for a rest (degree 0)."""
    if degree == 0:
        return 0.0
    return piano_key_frequency(scale_degree_key_number(tonic_key, degree, accidental, octave))


def frequency_to_midi(frequencies: np.ndarray | list[float]) -> np.ndarray:
    """
    Convert frequencies in Hz to the nearest MIDI note numbers.

    Non-positive frequencies (rests) map to ``-1``.
    """
    values = np.asarray(frequencies, dtype=float)
    midi = np.full(values.shape, -1, dtype=int)
    sounding = values > 0
    midi[sounding] = np.rint(
        A4_MIDI + SEMITONES_PER_OCTAVE * np.log2(values[sounding] / A4_FREQUENCY)
    ).astype(int)
    return midi
