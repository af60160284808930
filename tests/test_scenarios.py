"""Tests for the predefined flight scenarios."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from quadsim.gnc.control import FlightMode
from quadsim.mission import MissionBridge, MissionCommand
from quadsim.scenarios import get_scenario, list_scenarios, load_scenario
from quadsim.simulation import SimulationOrchestrator


class TestScenarioCatalog:
    """Test scenario lookup."""

    def test_ids(self):
        assert [s.id for s in list_scenarios()] == [
            "hover-test", "waypoint-navigation", "figure-eight", "scripted-mission",
        ]

    def test_unknown(self):
        with pytest.raises(KeyError):
            get_scenario("loop-the-loop")

    def test_square_route(self):
        scenario = get_scenario("waypoint-navigation")
        assert scenario.flight_mode is FlightMode.WAYPOINT
        assert scenario.route[0] == (3.0, 3.0, 2.0)
        assert scenario.route[-1] == (0.0, 0.0, 2.0)

    def test_fresh_waypoint_ids(self):
        scenario = get_scenario("figure-eight")
        first = {wp.id for wp in scenario.waypoints()}
        second = {wp.id for wp in scenario.waypoints()}
        assert len(first) == 5
        assert first.isdisjoint(second)

    def test_mission_requests(self):
        scenario = get_scenario("scripted-mission")
        requests = scenario.mission_requests()
        kinds = [r.kind for r in requests]

        assert kinds[0] is MissionCommand.TAKEOFF
        assert kinds[-1] is MissionCommand.LAND
        assert kinds.count(MissionCommand.MOVE_TO) == 5
        assert requests[0].id != scenario.mission_requests()[0].id


class TestLoadScenario:
    """Test applying scenarios to a simulation."""

    def test_load_resets_and_applies(self):
        sim = SimulationOrchestrator()
        sim.run(10)
        load_scenario(sim, "waypoint-navigation")

        assert sim.time == 0.0
        assert sim.get_flight_mode() is FlightMode.WAYPOINT
        assert len(sim.get_waypoints()) == 5
        assert sim.get_current_waypoint_index() == 0

    def test_hover_test_completes(self):
        sim = SimulationOrchestrator()
        load_scenario(sim, "hover-test")

        for _ in range(1000):
            sim.step()
            if sim.get_flight_mode() is FlightMode.POSITION_HOLD:
                break

        assert sim.get_flight_mode() is FlightMode.POSITION_HOLD
        assert_allclose(sim.get_setpoints().position, [0.0, 0.0, 2.0])

    def test_scripted_mission_completes(self):
        sim = SimulationOrchestrator()
        scenario = load_scenario(sim, "scripted-mission")
        bridge = MissionBridge(sim)

        requests = scenario.mission_requests()
        responses = bridge.run(requests, max_steps=15000)

        assert [r.id for r in responses] == [r.id for r in requests]
        assert all(r.ok for r in responses)
        state = sim.get_drone_state()
        assert state.position[2] < 0.1
        assert np.linalg.norm(state.position[:2]) < 0.5
