import unittest

import pytest

from fretsight.music_theory import (
    convert_note_notation,
    format_note,
    frequency_to_midi,
    frequency_to_note_info,
    is_guitar_range,
    midi_to_frequency,
    midi_to_note_name,
    midi_to_octave,
    round_half_up,
)


class TestFrequencyConversion(unittest.TestCase):
    def test_a4(self):
        self.assertEqual(frequency_to_midi(440.0), 69)
        self.assertAlmostEqual(midi_to_frequency(69), 440.0)

    def test_middle_c(self):
        # Middle C (C4) should be ~261.63 Hz
        self.assertEqual(frequency_to_midi(261.63), 60)

    def test_low_e(self):
        self.assertEqual(frequency_to_midi(82.41), 40)

    def test_octave_down_halves_frequency(self):
        self.assertAlmostEqual(midi_to_frequency(57), 220.0)

    def test_slightly_sharp_snaps_to_nearest(self):
        self.assertEqual(frequency_to_midi(445.0), 69)
        self.assertEqual(frequency_to_midi(460.0), 70)

    def test_halves_round_up(self):
        self.assertEqual(round_half_up(68.5), 69)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(-2.5), -2)
        self.assertEqual(round_half_up(68.49), 68)

    def test_note_info_keeps_raw_frequency(self):
        info = frequency_to_note_info(445.0)
        self.assertEqual(info.midi_note, 69)
        self.assertEqual(info.note_name, "A")
        self.assertEqual(info.octave, 4)
        self.assertEqual(info.frequency, 445.0)
        self.assertEqual(str(info), "A4")


class TestNoteNames(unittest.TestCase):
    def test_names_use_sharps(self):
        self.assertEqual(midi_to_note_name(61), "C#")
        self.assertEqual(midi_to_note_name(70), "A#")

    def test_octave_transitions(self):
        # B3 -> C4
        self.assertEqual(midi_to_octave(59), 3)
        self.assertEqual(midi_to_octave(60), 4)

    def test_format_note(self):
        self.assertEqual(format_note("C#", 3), "C#3")

    def test_convert_notation(self):
        self.assertEqual(convert_note_notation("F#2", to_flats=True), "Gb2")
        self.assertEqual(convert_note_notation("Gb2", to_flats=False), "F#2")
        self.assertEqual(convert_note_notation("Bb", to_flats=False), "A#")
        # Naturals are unchanged
        self.assertEqual(convert_note_notation("E2", to_flats=True), "E2")


@pytest.mark.parametrize(
    "frequency,expected",
    [
        (74.9, False),
        (75.0, True),
        (82.41, True),
        (1318.5, True),
        (1400.0, True),
        (1400.1, False),
    ],
)
def test_is_guitar_range(frequency, expected):
    assert is_guitar_range(frequency) == expected


if __name__ == "__main__":
    unittest.main()
