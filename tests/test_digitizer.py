"""Unit tests for the digitizer state machine."""

import pytest

from jianpu.digitizer import Digitizer, digitize
from jianpu.errors import InvalidNotationError
from jianpu.notation_models import BreakNode, DigitizedNotation, FrequencyNode
from jianpu.parser import parse
from jianpu.pitch import piano_key_frequency

C4 = piano_key_frequency(40)
D4 = piano_key_frequency(42)
E4 = piano_key_frequency(44)
F4 = piano_key_frequency(45)
B_FLAT4 = piano_key_frequency(50)


def _times(notation: DigitizedNotation) -> list[float]:
    return [node.time for node in notation.frequencies]


def _values(notation: DigitizedNotation) -> list[float]:
    return [node.value for node in notation.frequencies]


def _assert_monotonic(notation: DigitizedNotation) -> None:
    times = [node.time for node in notation.nodes]
    assert times == sorted(times)


# ---------------------------------------------------------------------------
# Single notes and defaults
# ---------------------------------------------------------------------------


def test_single_note_defaults() -> None:
    result = digitize("1")
    assert result.nodes == (
        FrequencyNode(value=pytest.approx(261.6255653), time=0.0),
        BreakNode(base=1.0, before=0.0, time=0.0),
        BreakNode(base=1.0, before=1.0, time=1.0),
    )
    assert result.duration == 1.0


def test_dash_extends_previous_note() -> None:
    result = digitize("1 -")
    assert result.duration == 2.0
    assert len(result.frequencies) == 1
    assert result.breaks[-1] == BreakNode(base=1.0, before=2.0, time=2.0)


def test_consecutive_notes_break_with_previous_length() -> None:
    result = digitize("1 2_ 3")
    assert _times(result) == [0.0, 1.0, 1.5]
    assert result.breaks == [
        BreakNode(base=1.0, before=0.0, time=0.0),
        BreakNode(base=1.0, before=1.0, time=1.0),
        BreakNode(base=1.0, before=0.5, time=1.5),
        BreakNode(base=1.0, before=1.0, time=2.5),
    ]


def test_empty_source_has_no_events() -> None:
    result = digitize("")
    assert result.nodes == ()
    assert result.duration == 0.0


def test_unknown_tokens_are_ignored() -> None:
    assert digitize("1 ?? 2") == digitize("1 2")


def test_accepts_parsed_notation() -> None:
    assert digitize(parse("1 2 3")) == digitize("1 2 3")


def test_digitize_is_repeatable() -> None:
    digitizer = Digitizer()
    source = "!90 1=D ||: 1 2& 3 [1. 4 :|| [2. 5 - ||"
    assert digitizer.digitize(source) == digitizer.digitize(source)


# ---------------------------------------------------------------------------
# Tempo, meter, key
# ---------------------------------------------------------------------------


def test_tempo_sets_beat_duration() -> None:
    result = digitize("!120 1 2")
    assert result.duration == pytest.approx(1.0)
    assert all(node.base == pytest.approx(0.5) for node in result.breaks)


def test_time_signature_unit_scales_length() -> None:
    result = digitize("3/8 1 2")
    assert _times(result) == [0.0, 0.5]
    assert result.duration == pytest.approx(1.0)


def test_dotted_note_length() -> None:
    result = digitize("1. 2_ 3")
    assert _times(result) == [0.0, 1.5, 2.0]


def test_key_signature_b_flat() -> None:
    result = digitize("1=bB 1")
    assert _values(result) == [pytest.approx(B_FLAT4)]
    assert B_FLAT4 == pytest.approx(466.1637615)


def test_key_signature_d() -> None:
    assert _values(digitize("1=D 1 3")) == [pytest.approx(D4), pytest.approx(piano_key_frequency(46))]


def test_octave_and_accidental() -> None:
    values = _values(digitize("1+ 1- #1 b3"))
    assert values == [
        pytest.approx(2 * C4),
        pytest.approx(C4 / 2),
        pytest.approx(piano_key_frequency(41)),
        pytest.approx(piano_key_frequency(43)),
    ]


# ---------------------------------------------------------------------------
# Rests, ties and grace notes
# ---------------------------------------------------------------------------


def test_rest_emits_silence_without_break() -> None:
    result = digitize("1 0 1")
    assert _values(result) == [pytest.approx(C4), 0.0, pytest.approx(C4)]
    assert [node.time for node in result.breaks] == [0.0, 2.0, 3.0]


def test_tie_does_not_rearticulate() -> None:
    result = digitize("1 ^1 ^1_")
    assert len(result.frequencies) == 3
    assert result.breaks == [
        BreakNode(base=1.0, before=0.0, time=0.0),
        BreakNode(base=1.0, before=2.5, time=2.5),
    ]


def test_grace_note_offsets_main_note_by_quarter_beat() -> None:
    plain = digitize("3 1")
    graced = digitize("3 2& 1")
    assert graced.frequencies[-1].time == pytest.approx(plain.frequencies[-1].time + 0.25)
    assert graced.duration == plain.duration


def test_grace_note_borrowing_follows_tempo() -> None:
    result = digitize("!120 2& 1")
    assert result.nodes[:3] == (
        FrequencyNode(value=pytest.approx(D4), time=0.0),
        BreakNode(base=0.5, before=0.0, time=0.0),
        FrequencyNode(value=pytest.approx(C4), time=pytest.approx(0.125)),
    )
    assert result.duration == pytest.approx(0.5)


def test_grace_note_does_not_advance_time() -> None:
    result = digitize("3& 2& 1")
    assert _times(result) == [0.0, 0.25, 0.5]
    assert len(result.breaks) == 2
    assert result.duration == 1.0


def test_short_main_note_after_grace_keeps_timeline_ordered() -> None:
    result = digitize("1& 1___ 2")
    _assert_monotonic(result)
    assert result.frequencies[1].time == pytest.approx(0.125)


# ---------------------------------------------------------------------------
# Repeats and endings
# ---------------------------------------------------------------------------


def test_repeat_plays_section_twice() -> None:
    result = digitize("||: 1 2 :||")
    assert _values(result) == [pytest.approx(v) for v in (C4, D4, C4, D4)]
    assert _times(result) == [0.0, 1.0, 2.0, 3.0]
    assert result.duration == 4.0


def test_plain_double_bar_does_not_repeat() -> None:
    assert digitize("1 2 ||").duration == 2.0


def test_repeat_end_without_anchor_is_inert() -> None:
    result = digitize(":|| 1")
    assert result.duration == 1.0


def test_repeat_marker_only_jumps_once() -> None:
    assert digitize("||: 1 :|| :|| :||").duration == 2.0


def test_ending_inside_repeat_plays_on_second_pass() -> None:
    result = digitize("||: 1 [2. 2 :||")
    assert _values(result) == [pytest.approx(C4), pytest.approx(C4), pytest.approx(D4)]
    assert _times(result) == [0.0, 1.0, 2.0]
    assert result.duration == 3.0


def test_first_and_second_endings() -> None:
    result = digitize("||: 1 [1. 2 :|| [2. 3 ||")
    assert _values(result) == [pytest.approx(v) for v in (C4, D4, C4, E4)]
    assert result.duration == 4.0
    _assert_monotonic(result)


def test_new_repeat_after_second_ending_plays_twice() -> None:
    result = digitize("||: 1 [1. 2 :|| [2. 3 || ||: 4 :||")
    assert _values(result) == [pytest.approx(v) for v in (C4, D4, C4, E4, F4, F4)]
    assert result.duration == 6.0
    _assert_monotonic(result)


def test_skipped_ending_changes_no_state() -> None:
    result = digitize("||: 1 [2. !30 2 :|| 3")
    # The tempo mark only takes effect on the second pass
    assert _times(result) == [0.0, 1.0, 2.0, 4.0]
    assert result.duration == pytest.approx(6.0)


@pytest.mark.parametrize(("max_passes", "duration"), [(1, 1.0), (2, 2.0), (3, 3.0)])
def test_max_passes_configures_repeat_count(max_passes: int, duration: float) -> None:
    assert Digitizer(max_passes=max_passes).digitize("||: 1 :||").duration == duration


def test_max_passes_must_be_positive() -> None:
    with pytest.raises(ValueError, match="max_passes"):
        Digitizer(max_passes=0)


def test_complex_piece_is_time_monotonic() -> None:
    source = """
    !96 1=G 3/4
    ||: 5_ 6_ 1+ 2+& 1+ | 7 ^7 6 | [1. 5 - 0 :||
    [2. 5. 3_ 1 | 1 - - ||
    """
    _assert_monotonic(digitize(source))


# ---------------------------------------------------------------------------
# Invalid values
# ---------------------------------------------------------------------------


def test_zero_tempo_is_rejected() -> None:
    with pytest.raises(InvalidNotationError, match="Tempo"):
        digitize("1 !0 1")


def test_zero_unit_is_rejected() -> None:
    with pytest.raises(InvalidNotationError) as excinfo:
        digitize("1\n4/0 1")
    assert "line 2, column 1" in str(excinfo.value)
    assert excinfo.value.node.raw == "4/0"


def test_invalid_notation_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        digitize("!0")
