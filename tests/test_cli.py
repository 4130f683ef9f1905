import tempfile
import unittest
from pathlib import Path
from unittest import mock

import click
from click.testing import CliRunner

from fretsight.cli.main import cli, parse_note
from fretsight.core.storage import CalibrationStore, KeyValueStore
from fretsight.note_types import Calibration


class CliTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.runner = CliRunner()
        patcher = mock.patch("fretsight.cli.main.setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.tmp.cleanup()

    def invoke(self, *args):
        return self.runner.invoke(cli, ["--config-dir", self.tmp.name, *args])

    def store(self):
        return CalibrationStore(KeyValueStore(str(Path(self.tmp.name) / "store.json")))


class TestParseNote(unittest.TestCase):
    def test_names(self):
        self.assertEqual(parse_note("E2"), 40)
        self.assertEqual(parse_note("a2"), 45)
        self.assertEqual(parse_note("C#3"), 49)
        self.assertEqual(parse_note("Db3"), 49)
        self.assertEqual(parse_note("60"), 60)

    def test_invalid(self):
        for text in ("H2", "A", "xyz"):
            with self.assertRaises(click.BadParameter):
                parse_note(text)


class TestResolveCommand(CliTestCase):
    def test_hand_in_region(self):
        result = self.invoke("resolve", "A2", "--fret", "5")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Note: A2 (MIDI 45)", result.output)
        self.assertIn("Candidates: S6F5, S5F0", result.output)
        self.assertIn("Confidence: high", result.output)
        self.assertIn("Position: string 6, fret 5", result.output)

    def test_no_hand(self):
        result = self.invoke("resolve", "A2")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Confidence: low", result.output)
        self.assertIn("Hand not detected", result.output)

    def test_tolerance_option(self):
        result = self.invoke("resolve", "E4", "--fret", "8", "--tolerance", "3")
        self.assertIn("Confidence: medium", result.output)
        self.assertIn("Position: string 3, fret 9", result.output)

    def test_bad_note(self):
        result = self.invoke("resolve", "H9")
        self.assertEqual(result.exit_code, 2)


class TestTunerCommand(CliTestCase):
    def test_in_tune(self):
        result = self.invoke("tuner", "82.41")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("string 6 (E2) 0 cents, in-tune", result.output)

    def test_sharp(self):
        result = self.invoke("tuner", "112")
        self.assertIn("string 5 (A2) +31 cents, sharp", result.output)

    def test_far_from_strings(self):
        result = self.invoke("tuner", "1000")
        self.assertIn("not close to any open string", result.output)


class TestScaleCommand(CliTestCase):
    def test_chart(self):
        result = self.invoke("scale", "A", "pentatonic_minor", "--frets", "5")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("A Minor Pentatonic", result.output)
        self.assertIn("[A]", result.output)
        # Six strings plus title, header and marker lines
        self.assertEqual(len(result.output.splitlines()), 9)

    def test_flat_root(self):
        result = self.invoke("scale", "Bb", "major")
        self.assertIn("A# Major", result.output)

    def test_bad_root(self):
        self.assertEqual(self.invoke("scale", "H").exit_code, 2)


class TestCalibrationCommands(CliTestCase):
    def test_show_not_calibrated(self):
        result = self.invoke("calibration", "show")
        self.assertIn("Not calibrated", result.output)

    def test_show(self):
        self.store().save_calibration(Calibration(fret1_x=0.2, fret12_x=0.8, picking_boundary_x=0.9))

        result = self.invoke("calibration", "show")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("0.200", result.output)
        self.assertIn("Left -> Right (right-handed)", result.output)
        self.assertIn("0.000 - 0.880", result.output)

    def test_clear(self):
        self.store().save_calibration(Calibration(fret1_x=0.2, fret12_x=0.8, picking_boundary_x=0.9))

        result = self.invoke("calibration", "clear")

        self.assertIn("Calibration cleared", result.output)
        self.assertIsNone(self.store().load_calibration())


if __name__ == "__main__":
    unittest.main()
