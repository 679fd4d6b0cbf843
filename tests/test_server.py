"""
Web shell tests — frame serialisation and key handling, no event loop.
"""

import sys
import os
import json
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

pytest.importorskip("fastapi")

import server
from controller import HexagonController


@pytest.fixture
def ctrl(monkeypatch):
    fresh = HexagonController(seed=3)
    monkeypatch.setattr(server, "ctrl", fresh)
    return fresh


class TestFrameMessage:

    def test_frame_contents(self, ctrl):
        ctrl.add_body((300.0, 280.0), (10, 20, 30))
        frame = json.loads(server._build_frame_message())
        assert frame["type"] == "frame"
        assert len(frame["hexagon"]) == 6
        assert frame["balls"] == [{"name": "ball1", "pos": [300.0, 280.0],
                                   "color": [10, 20, 30]}]
        assert frame["events"][0]["type"] == "spawn_ball"
        assert frame["events"][0]["ball"]["name"] == "ball1"

    def test_pending_events_drained(self, ctrl):
        ctrl.add_body((300.0, 280.0))
        server._build_frame_message()
        assert ctrl.pending_events == []
        frame = json.loads(server._build_frame_message())
        assert frame["events"] == []


class TestClientMessages:

    def test_object_is_decoded(self):
        assert server._parse_client_message('{"cmd": "add_ball"}') == {"cmd": "add_ball"}

    @pytest.mark.parametrize("data", ["[1]", "3", '"text"', "null", "{broken"])
    def test_non_object_is_dropped(self, data):
        assert server._parse_client_message(data) is None


class TestKeys:

    def test_r_queues_remove(self, ctrl):
        ctrl.add_body((300.0, 280.0))
        server._handle_key_down("r")
        assert len(ctrl.bodies()) == 1
        ctrl.step(1 / 60)
        assert ctrl.bodies() == ()

    def test_digit_loads_scene(self, ctrl):
        server._handle_key_down("2")
        ctrl.step(1 / 60)
        assert len(ctrl.bodies()) == 6

    def test_other_keys_ignored(self, ctrl):
        server._handle_key_down("q")
        ctrl.step(1 / 60)
        assert ctrl.bodies() == ()
