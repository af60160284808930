"""Predefined flight scenarios.

A scenario is a route and a flight mode, optionally with a mission
script expressed as a list of mission requests.

Example:
    >>> from quadsim.scenarios import load_scenario
    >>> from quadsim.simulation import SimulationOrchestrator
    >>>
    >>> sim = SimulationOrchestrator()
    >>> scenario = load_scenario(sim, "waypoint-navigation")
    >>> sim.run(3000)
"""

import logging
from dataclasses import dataclass

from beartype import beartype

from quadsim.gnc.control.mixer import FlightMode
from quadsim.gnc.guidance.waypoints import Waypoint
from quadsim.mission.protocol import MissionRequest
from quadsim.simulation.simulator import SimulationOrchestrator

logger = logging.getLogger(__name__)


@beartype
@dataclass(frozen=True)
class FlightScenario:
    """A named starting configuration for the simulation.

    Attributes:
        id: Lookup key
        name: Display name
        description: One-sentence summary
        flight_mode: Mode selected when the scenario loads
        route: Waypoint positions (x, y, z) [m]
        mission: Mission requests to run after loading, if any
    """
    id: str
    name: str
    description: str
    flight_mode: FlightMode
    route: tuple[tuple[float, float, float], ...] = ()
    mission: tuple[MissionRequest, ...] = ()

    def waypoints(self) -> list[Waypoint]:
        """Fresh waypoints (new ids) for the route."""
        return [Waypoint.at(x, y, z) for x, y, z in self.route]

    def mission_requests(self) -> list[MissionRequest]:
        """Fresh copies (new ids) of the mission requests."""
        return [MissionRequest(r.kind, dict(r.payload)) for r in self.mission]


SCENARIOS: tuple[FlightScenario, ...] = (
    FlightScenario(
        id="hover-test",
        name="Hover Test",
        description="Take off and hold a stable position 2 m above the origin.",
        flight_mode=FlightMode.WAYPOINT,
        route=((0.0, 0.0, 2.0),),
    ),
    FlightScenario(
        id="waypoint-navigation",
        name="Waypoint Navigation",
        description="Fly a square pattern using the waypoint system.",
        flight_mode=FlightMode.WAYPOINT,
        route=(
            (3.0, 3.0, 2.0),
            (3.0, -3.0, 2.0),
            (-3.0, -3.0, 2.0),
            (-3.0, 3.0, 2.0),
            (0.0, 0.0, 2.0),
        ),
    ),
    FlightScenario(
        id="figure-eight",
        name="Figure-Eight Pattern",
        description="Fly a figure-eight pattern that exercises the position controller.",
        flight_mode=FlightMode.WAYPOINT,
        route=(
            (4.0, 4.0, 2.5),
            (2.0, -4.0, 2.5),
            (-2.0, 4.0, 2.5),
            (-4.0, -4.0, 2.5),
            (0.0, 0.0, 2.5),
        ),
    ),
    FlightScenario(
        id="scripted-mission",
        name="Scripted Mission",
        description="Take off, fly a square with mission commands and land.",
        flight_mode=FlightMode.POSITION_HOLD,
        mission=(
            MissionRequest.takeoff(2.0),
            MissionRequest.move_to(2.0, 2.0, 2.0),
            MissionRequest.move_to(2.0, -2.0, 2.0),
            MissionRequest.move_to(-2.0, -2.0, 2.0),
            MissionRequest.move_to(-2.0, 2.0, 2.0),
            MissionRequest.move_to(0.0, 0.0, 2.0),
            MissionRequest.land(),
        ),
    ),
)


def list_scenarios() -> list[FlightScenario]:
    return list(SCENARIOS)


@beartype
def get_scenario(scenario_id: str) -> FlightScenario:
    """Look up a scenario by id.

    Raises:
        KeyError: If no scenario has that id
    """
    for scenario in SCENARIOS:
        if scenario.id == scenario_id:
            return scenario
    raise KeyError(f"Unknown scenario: {scenario_id}")


@beartype
def load_scenario(sim: SimulationOrchestrator, scenario_id: str) -> FlightScenario:
    """Reset the simulation and apply a scenario's route and flight mode.

    The mission, if any, is not submitted; pass ``scenario.mission_requests()``
    to a ``MissionBridge``.

    Returns:
        The loaded scenario
    """
    scenario = get_scenario(scenario_id)
    sim.reset()
    sim.set_waypoints(scenario.waypoints())
    sim.set_flight_mode(scenario.flight_mode)
    logger.info("Loaded scenario %s", scenario.id)
    return scenario
