"""Unit tests for waypoints and the waypoint sequencer."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from quadsim.gnc.guidance import Waypoint, WaypointSequencer


def _route(*points):
    return [Waypoint.at(x, y, z, id=f"wp{i}") for i, (x, y, z) in enumerate(points)]


class TestWaypoint:
    """Test waypoint construction."""

    def test_at(self):
        wp = Waypoint.at(1.0, 2.0, 3.0, name="corner")
        assert_allclose(wp.position, [1.0, 2.0, 3.0])
        assert wp.name == "corner"

    def test_unique_ids(self):
        assert Waypoint.at(0.0, 0.0, 1.0).id != Waypoint.at(0.0, 0.0, 1.0).id

    def test_position_read_only(self):
        wp = Waypoint.at(0.0, 0.0, 1.0)
        with pytest.raises(ValueError):
            wp.position[0] = 5.0

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            Waypoint(position=np.zeros(2))

    def test_distance(self):
        wp = Waypoint.at(3.0, 4.0, 0.0)
        assert wp.distance_to(np.zeros(3)) == pytest.approx(5.0)


class TestWaypointSequencer:
    """Test route progress and editing."""

    def test_empty(self):
        route = WaypointSequencer()
        assert route.current_index == -1
        assert route.active_waypoint is None
        assert not route.is_finished
        assert not route.update(np.zeros(3))

    def test_advances_on_arrival(self):
        route = WaypointSequencer(_route((0.0, 0.0, 1.0), (1.0, 0.0, 1.0)))
        assert route.current_index == 0

        assert not route.update(np.array([0.0, 0.0, 0.0]))
        assert route.current_index == 0

        assert not route.update(np.array([0.0, 0.0, 0.9]))
        assert route.current_index == 1
        assert route.active_waypoint.id == "wp1"

        assert route.update(np.array([1.0, 0.1, 1.0]))
        assert route.current_index == 2
        assert route.is_finished
        assert route.active_waypoint is None
        assert route.final_waypoint.id == "wp1"

    def test_finish_reported_once(self):
        route = WaypointSequencer(_route((0.0, 0.0, 1.0)))
        assert route.update(np.array([0.0, 0.0, 1.0]))
        assert not route.update(np.array([0.0, 0.0, 1.0]))

    def test_tolerance(self):
        position = np.array([0.5, 0.0, 1.0])
        assert not WaypointSequencer(_route((0.0, 0.0, 1.0))).update(position)
        assert WaypointSequencer(_route((0.0, 0.0, 1.0)), tolerance=1.0).update(position)

    def test_invalid_tolerance(self):
        with pytest.raises(ValueError):
            WaypointSequencer(tolerance=0.0)

    def test_add_to_empty(self):
        route = WaypointSequencer()
        route.add(Waypoint.at(1.0, 1.0, 1.0))
        assert route.current_index == 0
        assert len(route) == 1

    def test_remove_before_cursor(self):
        """Removing a reached waypoint keeps the same one active."""
        route = WaypointSequencer(_route((0.0, 0.0, 1.0), (1.0, 0.0, 1.0), (2.0, 0.0, 1.0)))
        route.update(np.array([0.0, 0.0, 1.0]))
        assert route.active_waypoint.id == "wp1"

        assert route.remove("wp0")
        assert route.current_index == 0
        assert route.active_waypoint.id == "wp1"

    def test_remove_active_last_clamps(self):
        route = WaypointSequencer(_route((0.0, 0.0, 1.0), (1.0, 0.0, 1.0)))
        route.update(np.array([0.0, 0.0, 1.0]))
        route.remove("wp1")
        assert route.current_index == 0
        assert route.active_waypoint.id == "wp0"

    def test_remove_from_finished_route(self):
        """A finished route does not reactivate a visited waypoint."""
        route = WaypointSequencer(_route((0.0, 0.0, 1.0), (1.0, 0.0, 1.0)))
        route.update(np.array([0.0, 0.0, 1.0]))
        route.update(np.array([1.0, 0.0, 1.0]))
        assert route.is_finished

        route.remove("wp0")
        assert route.is_finished
        assert route.current_index == 1
        assert route.active_waypoint is None
        assert route.final_waypoint.id == "wp1"

        route.remove("wp1")
        assert route.current_index == -1
        assert not route.is_finished

    def test_remove_unknown(self):
        route = WaypointSequencer(_route((0.0, 0.0, 1.0)))
        assert not route.remove("missing")
        assert len(route) == 1

    def test_remove_all(self):
        route = WaypointSequencer(_route((0.0, 0.0, 1.0)))
        route.remove("wp0")
        assert route.current_index == -1

    def test_set_and_clear(self):
        route = WaypointSequencer(_route((0.0, 0.0, 1.0)))
        route.update(np.array([0.0, 0.0, 1.0]))

        route.set(_route((5.0, 0.0, 1.0), (6.0, 0.0, 1.0)))
        assert route.current_index == 0
        assert not route.is_finished

        route.clear()
        assert route.current_index == -1
        assert route.waypoints == []

    def test_rewind(self):
        route = WaypointSequencer(_route((0.0, 0.0, 1.0)))
        route.update(np.array([0.0, 0.0, 1.0]))
        route.rewind()
        assert route.current_index == 0
        assert not route.is_finished
