"""
Tests for configuration loading
================================
"""

import logging

import pytest

from gesture_control.utils.config import Config, DEFAULTS, _deep_merge


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "camera:\n"
        "  device_id: 2\n"
        "tracking:\n"
        "  fist_hold_frames: 8\n"
        "media:\n"
        "  keybindings:\n"
        "    play: p\n"
    )
    return path


class TestDeepMerge:

    def test_nested_override(self):
        merged = _deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}})
        assert merged == {"a": {"b": 1, "c": 3}}

    def test_base_untouched(self):
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.tracking["fist_hold_frames"] == 5
        assert config.tracking["volume_debounce_ms"] == 100.0
        assert config.media["backend"] == "simulated"

    def test_load_merges_over_defaults(self, config_file):
        config = Config.from_file(str(config_file))
        assert config.camera["device_id"] == 2
        assert config.camera["width"] == 640
        assert config.get("tracking.fist_hold_frames") == 8
        assert config.get("tracking.window_size") == 5
        assert config.get("media.keybindings.play") == "p"
        assert config.get("media.keybindings.pause") == "space"

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = Config.from_file(str(tmp_path / "absent.yaml"))
        assert "not found" in caplog.text
        assert config.get("camera.fps") == 30

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert Config.from_file(str(path)).get("tracking.scrub_threshold") == 20.0

    def test_validation_warns(self, tmp_path, caplog):
        path = tmp_path / "bad.yaml"
        path.write_text("camera:\n  width: wide\ntracking:\n  window_size: true\n")
        with caplog.at_level(logging.WARNING):
            config = Config.from_file(str(path))
        assert "camera.width" in caplog.text
        assert "tracking.window_size" in caplog.text
        assert config.get("camera.width") == "wide"

    def test_int_accepted_for_float(self):
        assert Config({"tracking": {"scrub_threshold": 25}})._validate() == []

    def test_dot_path_default(self):
        assert Config().get("nope.missing", "fallback") == "fallback"

    def test_set(self):
        config = Config()
        config.set("camera.device_id", 3)
        assert config.camera["device_id"] == 3

    def test_instances_are_independent(self):
        a, b = Config(), Config()
        a.set("tracking.window_size", 9)
        assert b.get("tracking.window_size") == 5
        assert DEFAULTS["tracking"]["window_size"] == 5

    def test_shipped_config_loads_cleanly(self):
        config = Config.from_file()
        assert config._validate() == []
        assert config.get_section("tracking") == DEFAULTS["tracking"]
