"""
Config tests — defaults, clamped overrides, JSON file loading.
"""

import sys
import os
import json
import dataclasses
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from physics import SimConfig, load_config, COR, COLLISION_ITERATIONS


class TestSimConfig:

    def test_defaults(self):
        cfg = SimConfig()
        assert cfg.center == (300.0, 300.0)
        assert cfg.restitution == COR
        assert cfg.collision_iterations == COLLISION_ITERATIONS

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            SimConfig().gravity = 0.0

    def test_overrides_are_clamped(self):
        cfg = SimConfig.from_dict({"restitution": 1.5, "ball_radius": -3})
        assert cfg.restitution == 1.0
        assert cfg.ball_radius == 1.0

    def test_int_fields_stay_int(self):
        cfg = SimConfig.from_dict({"collision_iterations": "3", "width": 800.4})
        assert cfg.collision_iterations == 3
        assert isinstance(cfg.collision_iterations, int)
        assert cfg.width == 800

    def test_unknown_and_bad_values_skipped(self):
        cfg = SimConfig.from_dict({"colour": "red", "gravity": "heavy"})
        assert cfg == SimConfig()


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "absent.json")) == SimConfig()

    def test_reads_overrides(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"angular_speed": 0.0, "gravity": 500}), encoding="utf-8")
        cfg = load_config(str(path))
        assert cfg.angular_speed == 0.0
        assert cfg.gravity == 500.0

    def test_malformed_file_gives_defaults(self, tmp_path, capsys):
        path = tmp_path / "cfg.json"
        path.write_text("{gravity: ", encoding="utf-8")
        assert load_config(str(path)) == SimConfig()
        assert "[CFG]" in capsys.readouterr().out

    def test_non_object_gives_defaults(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        assert load_config(str(path)) == SimConfig()
