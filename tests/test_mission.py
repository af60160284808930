"""Unit tests for the scripted-mission protocol and bridge."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from quadsim.dynamics import KinematicState
from quadsim.gnc.control import FlightMode
from quadsim.mission import MissionBridge, MissionCommand, MissionRequest
from quadsim.simulation import SimulationOrchestrator

# =============================================================================
# Protocol
# =============================================================================


class TestMissionRequest:
    """Test request construction and validation."""

    def test_constructors(self):
        assert MissionRequest.takeoff(2.0).payload == {"altitude": 2.0}
        assert MissionRequest.move_to(1.0, 2.0, 3.0).payload == {"x": 1.0, "y": 2.0, "z": 3.0}
        assert MissionRequest.land().kind is MissionCommand.LAND
        assert MissionRequest.get_telemetry().payload == {}

    def test_unique_ids(self):
        assert MissionRequest.land().id != MissionRequest.land().id

    def test_missing_payload(self):
        with pytest.raises(ValueError):
            MissionRequest(MissionCommand.MOVE_TO, {"x": 1.0})

    def test_invalid_payload(self):
        with pytest.raises(ValueError):
            MissionRequest.takeoff(-1.0)
        with pytest.raises(ValueError):
            MissionRequest.move_to(float("nan"), 0.0, 1.0)
        with pytest.raises(ValueError):
            MissionRequest.sleep(-0.5)

    def test_motion_kinds(self):
        assert MissionCommand.TAKEOFF.is_motion
        assert MissionCommand.SLEEP.is_motion
        assert not MissionCommand.GET_TELEMETRY.is_motion


# =============================================================================
# Bridge
# =============================================================================


class TestMissionBridge:
    """Test request serving against a live simulation."""

    def test_takeoff_then_land(self):
        """Takeoff to 3 m then land ends on the ground."""
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        takeoff, land = MissionRequest.takeoff(3.0), MissionRequest.land()

        responses = bridge.run([takeoff, land], max_steps=6000)

        assert [r.id for r in responses] == [takeoff.id, land.id]
        assert all(r.ok for r in responses)
        assert sim.get_drone_state().position[2] < 0.1

        times = np.array([s.time for s in sim.get_data_history()])
        assert np.all(np.diff(times) > 0)
        assert bridge.is_idle

    def test_takeoff_reaches_altitude(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        [response] = bridge.run([MissionRequest.takeoff(3.0)], max_steps=3000)

        assert response.ok
        assert abs(sim.get_drone_state().position[2] - 3.0) < 0.1
        assert sim.get_flight_mode() is FlightMode.POSITION_HOLD

    def test_move_to(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        responses = bridge.run(
            [MissionRequest.takeoff(2.0), MissionRequest.move_to(1.0, 0.0, 2.0)],
            max_steps=4000,
        )

        assert len(responses) == 2
        assert all(r.ok for r in responses)
        assert sim.get_flight_mode() is FlightMode.POSITION_HOLD
        position = sim.get_drone_state().position
        assert np.linalg.norm(position - np.array([1.0, 0.0, 2.0])) < 0.3

    def test_sleep_uses_simulated_time(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        [response] = bridge.run([MissionRequest.sleep(0.5)], max_steps=200)

        assert response.ok
        assert sim.time >= 0.5
        assert sim.time < 0.6

    def test_telemetry_answered_immediately(self):
        sim = SimulationOrchestrator()
        sim.run(5)
        bridge = MissionBridge(sim)
        request_id = bridge.submit(MissionRequest.get_telemetry())

        response = bridge.poll_response()
        assert response.id == request_id
        assert response.ok
        assert isinstance(response.payload, KinematicState)
        assert response.payload.position[2] == sim.get_drone_state().position[2]

    def test_telemetry_answered_while_paused(self):
        """A stopped simulation still answers telemetry reads."""
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        sim.start()
        sim.pause()

        request_id = bridge.submit(MissionRequest.get_telemetry())
        response = bridge.poll_response()

        assert response.id == request_id
        assert_allclose(response.payload.position, np.zeros(3))
        assert sim.time == 0.0

    def test_run_with_telemetry_only(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        responses = bridge.run([MissionRequest.get_telemetry()], max_steps=10)
        assert len(responses) == 1
        assert sim.time == 0.0

    def test_telemetry_not_blocked_by_motion(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        bridge.submit(MissionRequest.takeoff(5.0))
        sim.step()
        assert bridge.active_request is not None

        telemetry_id = bridge.submit(MissionRequest.get_telemetry())
        assert [r.id for r in bridge.responses()] == [telemetry_id]
        assert bridge.active_request is not None

    def test_motion_requests_sequential(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        first, second = MissionRequest.takeoff(3.0), MissionRequest.land()
        bridge.submit(first)
        bridge.submit(second)

        sim.step()
        assert bridge.active_request is first

    def test_reset_fails_pending(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        takeoff, land = MissionRequest.takeoff(5.0), MissionRequest.land()
        bridge.submit(takeoff)
        bridge.submit(land)
        sim.run(10)

        sim.reset()
        responses = bridge.responses()

        assert [r.id for r in responses] == [takeoff.id, land.id]
        assert not any(r.ok for r in responses)
        assert all(r.error == "simulation reset" for r in responses)
        assert bridge.is_idle

    def test_close_detaches(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        bridge.close()
        bridge.submit(MissionRequest.sleep(0.01))
        sim.run(5)
        assert bridge.poll_response() is None
        assert bridge.active_request is None

    def test_run_budget_exhausted(self):
        sim = SimulationOrchestrator()
        bridge = MissionBridge(sim)
        responses = bridge.run([MissionRequest.takeoff(3.0)], max_steps=5)
        assert responses == []
        assert bridge.active_request is not None
