"""Request/response channel between a mission script and the simulation.

Telemetry requests are answered as soon as they are submitted. Motion
requests are queued: the bridge subscribes to the orchestrator's step and
reset events, and on every step it picks up new requests, starts the
next motion request when none is active and answers the active one
once its completion condition holds. Nothing times out: a request whose
condition never holds stays active until the simulation is reset.
"""

import logging
import queue
from collections import deque

import numpy as np
from beartype import beartype

from quadsim.gnc.control.mixer import FlightMode
from quadsim.gnc.guidance.waypoints import Waypoint
from quadsim.mission.protocol import MissionCommand, MissionRequest, MissionResponse
from quadsim.simulation.simulator import SimulationEvent, SimulationOrchestrator
from quadsim.simulation.telemetry import TelemetrySample

logger = logging.getLogger(__name__)

TAKEOFF_TOLERANCE = 0.1     # [m]
LANDED_ALTITUDE = 0.05      # [m]


@beartype
class MissionBridge:
    """Serves mission requests against a running simulation.

    Example:
        >>> sim = SimulationOrchestrator()
        >>> bridge = MissionBridge(sim)
        >>> request_id = bridge.submit(MissionRequest.takeoff(3.0))
        >>> sim.run(1000)
        >>> response = bridge.poll_response()
    """

    def __init__(self, sim: SimulationOrchestrator) -> None:
        self._sim = sim
        self._requests: queue.Queue[MissionRequest] = queue.Queue()
        self._responses: queue.Queue[MissionResponse] = queue.Queue()
        self._pending: deque[MissionRequest] = deque()
        self._active: MissionRequest | None = None
        self._active_since = 0.0

        sim.subscribe(SimulationEvent.STEP_COMPLETED, self._on_step)
        sim.subscribe(SimulationEvent.RESET, self._on_reset)

    def close(self) -> None:
        """Detach from the simulation."""
        self._sim.unsubscribe(SimulationEvent.STEP_COMPLETED, self._on_step)
        self._sim.unsubscribe(SimulationEvent.RESET, self._on_reset)

    # -------------------------------------------------------------------------
    # Script side
    # -------------------------------------------------------------------------

    def submit(self, request: MissionRequest) -> str:
        """Queue a motion request, or answer a telemetry request at once.

        Telemetry is answered from the current state whether or not the
        simulation is running.

        Returns:
            The request id, echoed by its response
        """
        if request.kind.is_motion:
            self._requests.put(request)
        else:
            self._respond(MissionResponse(request.id, payload=self._sim.get_drone_state()))
        return request.id

    def poll_response(self, timeout: float | None = None) -> MissionResponse | None:
        """Next response, or None if none arrives within ``timeout``."""
        try:
            return self._responses.get(block=timeout is not None, timeout=timeout)
        except queue.Empty:
            return None

    def responses(self) -> list[MissionResponse]:
        """Drain every response available now."""
        drained = []
        while (response := self.poll_response()) is not None:
            drained.append(response)
        return drained

    @property
    def active_request(self) -> MissionRequest | None:
        return self._active

    @property
    def is_idle(self) -> bool:
        """True when no request is queued or in progress."""
        return self._active is None and not self._pending and self._requests.empty()

    def run(self, requests: list[MissionRequest], max_steps: int) -> list[MissionResponse]:
        """Submit requests and step the simulation until all are answered.

        Args:
            requests: Requests in execution order
            max_steps: Step budget

        Returns:
            Responses received, in completion order. Fewer than
            ``len(requests)`` if the budget ran out.
        """
        for request in requests:
            self.submit(request)

        received = self.responses()
        for _ in range(max_steps):
            if len(received) >= len(requests):
                break
            self._sim.step()
            received.extend(self.responses())

        if len(received) < len(requests):
            logger.warning(
                "Mission incomplete after %d steps (%d/%d answered)",
                max_steps, len(received), len(requests),
            )
        return received

    # -------------------------------------------------------------------------
    # Simulation side
    # -------------------------------------------------------------------------

    def _on_step(self, sample: TelemetrySample) -> None:
        while True:
            try:
                request = self._requests.get_nowait()
            except queue.Empty:
                break
            self._pending.append(request)

        if self._active is not None and self._is_complete(self._active, sample):
            logger.info("Mission %s %s complete", self._active.kind.value, self._active.id)
            self._respond(MissionResponse(self._active.id))
            self._active = None

        if self._active is None and self._pending:
            self._begin(self._pending.popleft())

    def _on_reset(self) -> None:
        while True:
            try:
                self._pending.append(self._requests.get_nowait())
            except queue.Empty:
                break

        failed = ([self._active] if self._active is not None else []) + list(self._pending)
        for request in failed:
            self._respond(MissionResponse(request.id, ok=False, error="simulation reset"))
        if failed:
            logger.info("Reset cancelled %d mission request(s)", len(failed))

        self._active = None
        self._pending.clear()

    def _respond(self, response: MissionResponse) -> None:
        self._responses.put(response)

    def _begin(self, request: MissionRequest) -> None:
        sim = self._sim
        x, y, _ = (float(v) for v in sim.get_drone_state().position)
        payload = request.payload
        logger.info("Mission %s %s started %s", request.kind.value, request.id, payload)

        match request.kind:
            case MissionCommand.TAKEOFF:
                sim.set_flight_mode(FlightMode.POSITION_HOLD)
                sim.set_setpoints(position=np.array([x, y, float(payload["altitude"])]))
            case MissionCommand.LAND:
                sim.set_flight_mode(FlightMode.POSITION_HOLD)
                sim.set_setpoints(position=np.array([x, y, 0.0]))
            case MissionCommand.MOVE_TO:
                target = Waypoint.at(
                    float(payload["x"]), float(payload["y"]), float(payload["z"]),
                    name="mission",
                )
                sim.set_waypoints([target])
                sim.set_flight_mode(FlightMode.WAYPOINT)
            case MissionCommand.SLEEP:
                pass
            case MissionCommand.GET_TELEMETRY:
                raise ValueError("Telemetry requests are answered immediately")

        self._active = request
        self._active_since = sim.time

    def _is_complete(self, request: MissionRequest, sample: TelemetrySample) -> bool:
        z = sample.state.altitude
        match request.kind:
            case MissionCommand.TAKEOFF:
                return abs(z - request.payload["altitude"]) < TAKEOFF_TOLERANCE
            case MissionCommand.LAND:
                return z < LANDED_ALTITUDE
            case MissionCommand.MOVE_TO:
                return self._sim.flight_mode is not FlightMode.WAYPOINT
            case MissionCommand.SLEEP:
                return self._sim.time - self._active_since >= request.payload["seconds"]
            case _:
                return True
