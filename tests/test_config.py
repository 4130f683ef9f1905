import json
import tempfile
import unittest
from pathlib import Path

from fretsight.core.config import DEFAULT_CONFIGS, ConfigManager


class TestConfigManager(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config_dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_defaults_written(self):
        manager = ConfigManager(str(self.config_dir))
        self.assertEqual(manager.get_config("audio_input")["sample_rate"], 44100)
        self.assertEqual(manager.get_config("pitch_detection")["clarity_threshold"], 0.9)
        self.assertEqual(manager.get_config("hand_tracking")["min_interval_ms"], 50)
        for name in DEFAULT_CONFIGS:
            self.assertTrue((self.config_dir / f"{name}.json").exists())

    def test_missing_keys_back_filled(self):
        (self.config_dir / "settings.json").write_text(json.dumps({"fret_tolerance": 3}))
        settings = ConfigManager(str(self.config_dir)).get_config("settings")
        self.assertEqual(settings["fret_tolerance"], 3)
        self.assertFalse(settings["is_left_handed"])

    def test_malformed_file_uses_defaults(self):
        (self.config_dir / "settings.json").write_text("not json")
        settings = ConfigManager(str(self.config_dir)).get_config("settings")
        self.assertEqual(settings, DEFAULT_CONFIGS["settings"])

    def test_update_persists(self):
        manager = ConfigManager(str(self.config_dir))
        self.assertTrue(manager.update_config("settings", {"is_left_handed": True}))
        reloaded = ConfigManager(str(self.config_dir))
        self.assertTrue(reloaded.get_config("settings")["is_left_handed"])

    def test_update_unknown(self):
        manager = ConfigManager(str(self.config_dir))
        self.assertFalse(manager.update_config("nope", {"a": 1}))
        self.assertEqual(manager.get_config("nope"), {})

    def test_reset(self):
        manager = ConfigManager(str(self.config_dir))
        manager.update_config("settings", {"fret_tolerance": 4})
        self.assertTrue(manager.reset_config("settings"))
        self.assertEqual(manager.get_config("settings")["fret_tolerance"], 2)
        self.assertFalse(manager.reset_config("nope"))

    def test_get_config_returns_copy(self):
        manager = ConfigManager(str(self.config_dir))
        manager.get_config("settings")["fret_tolerance"] = 99
        self.assertEqual(manager.get_config("settings")["fret_tolerance"], 2)


if __name__ == "__main__":
    unittest.main()
