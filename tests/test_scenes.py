"""
Scene preset tests — setup-only layouts and short headless runs.
"""

import sys
import os
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from physics import SimConfig, HEX_RADIUS, BALL_RADIUS
from scenes import Scene, SCENES, SCENE_KEYS, max_center_distance


CENTER = SimConfig().center


class TestSetupOnly:
    """run=False only places balls."""

    @pytest.mark.parametrize("name", sorted(SCENES))
    def test_elapsed_is_zero(self, name):
        result = SCENES[name](run=False)
        assert result["elapsed"] == 0.0
        assert result["engine"] is not None

    @pytest.mark.parametrize("name", sorted(SCENES))
    def test_balls_start_at_rest_inside(self, name):
        result = SCENES[name](run=False)
        apothem = HEX_RADIUS * np.cos(np.pi / 6)
        for ball in result["balls"]:
            np.testing.assert_array_equal(ball.velocity, [0.0, 0.0])
            assert np.linalg.norm(ball.position - np.array(CENTER)) < apothem - BALL_RADIUS

    @pytest.mark.parametrize("name", sorted(SCENES))
    def test_ball_names_unique(self, name):
        names = [b.name for b in SCENES[name](run=False)["balls"]]
        assert len(names) == len(set(names))

    def test_ring_spacing(self):
        result = Scene.ring(run=False, count=8)
        dists = [np.linalg.norm(b.position - np.array(CENTER)) for b in result["balls"]]
        np.testing.assert_allclose(dists, result["ring_radius"])

    def test_scene_keys_point_at_scenes(self):
        assert set(SCENE_KEYS.values()) <= set(SCENES)

    def test_config_is_honoured(self):
        cfg = SimConfig(width=1000, height=800, ball_radius=6.0)
        result = Scene.single_drop(run=False, config=cfg)
        np.testing.assert_array_equal(result["ball"].position, [500.0, 400.0])
        assert result["ball"].radius == 6.0


class TestRuns:

    def test_single_drop_runs(self):
        result = Scene.single_drop(duration=1.0)
        assert result["elapsed"] == pytest.approx(1.0)
        assert result["ball"].position[1] > CENTER[1]

    @pytest.mark.parametrize("name", ["column", "ring"])
    def test_balls_stay_inside(self, name):
        result = SCENES[name](duration=10.0)
        assert max_center_distance(result["balls"], CENTER) < HEX_RADIUS
        for b in result["balls"]:
            assert np.all(np.isfinite(b.position))

    def test_max_center_distance_empty(self):
        assert max_center_distance([], CENTER) == 0.0
