"""Scripted-mission message types.

A mission script talks to the simulation only through requests and
responses correlated by id. Motion requests (takeoff, land, move-to,
sleep) are answered once their completion condition holds; telemetry
requests are answered on the next step.

Example:
    >>> from quadsim.mission import MissionRequest
    >>>
    >>> mission = [
    ...     MissionRequest.takeoff(2.0),
    ...     MissionRequest.move_to(2.0, 2.0, 2.0),
    ...     MissionRequest.land(),
    ... ]
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from beartype import beartype

from quadsim.dynamics.state import KinematicState


class MissionCommand(Enum):
    """Kinds of mission request."""
    TAKEOFF = "takeoff"
    LAND = "land"
    MOVE_TO = "move_to"
    SLEEP = "sleep"
    GET_TELEMETRY = "get_telemetry"

    @property
    def is_motion(self) -> bool:
        """True for requests that are served one at a time until done."""
        return self is not MissionCommand.GET_TELEMETRY


_REQUIRED_PAYLOAD: dict[MissionCommand, tuple[str, ...]] = {
    MissionCommand.TAKEOFF: ("altitude",),
    MissionCommand.LAND: (),
    MissionCommand.MOVE_TO: ("x", "y", "z"),
    MissionCommand.SLEEP: ("seconds",),
    MissionCommand.GET_TELEMETRY: (),
}


@beartype
@dataclass(frozen=True)
class MissionRequest:
    """A command from a mission script.

    Attributes:
        kind: Command kind
        payload: Command arguments (altitude; x, y, z; seconds)
        id: Correlation id echoed in the response
    """
    kind: MissionCommand
    payload: dict[str, float] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def __post_init__(self) -> None:
        """Validate the payload for the command kind."""
        missing = [k for k in _REQUIRED_PAYLOAD[self.kind] if k not in self.payload]
        if missing:
            raise ValueError(f"{self.kind.value} request is missing {missing}")
        if not all(np.isfinite(v) for v in self.payload.values()):
            raise ValueError(f"{self.kind.value} payload must be finite, got {self.payload}")
        if self.payload.get("altitude", 0.0) < 0 or self.payload.get("seconds", 0.0) < 0:
            raise ValueError(f"{self.kind.value} payload must be non-negative, got {self.payload}")

    @classmethod
    def takeoff(cls, altitude: float) -> "MissionRequest":
        """Climb to ``altitude`` [m] above the current x/y position."""
        return cls(MissionCommand.TAKEOFF, {"altitude": altitude})

    @classmethod
    def land(cls) -> "MissionRequest":
        """Descend to the ground at the current x/y position."""
        return cls(MissionCommand.LAND)

    @classmethod
    def move_to(cls, x: float, y: float, z: float) -> "MissionRequest":
        """Fly to an absolute position [m]."""
        return cls(MissionCommand.MOVE_TO, {"x": x, "y": y, "z": z})

    @classmethod
    def sleep(cls, seconds: float) -> "MissionRequest":
        """Wait for ``seconds`` of simulated time."""
        return cls(MissionCommand.SLEEP, {"seconds": seconds})

    @classmethod
    def get_telemetry(cls) -> "MissionRequest":
        return cls(MissionCommand.GET_TELEMETRY)


@beartype
@dataclass(frozen=True)
class MissionResponse:
    """Answer to a mission request.

    Attributes:
        id: Id of the request being answered
        ok: False if the request failed
        payload: Vehicle state for telemetry requests
        error: Failure reason when ``ok`` is False
    """
    id: str
    ok: bool = True
    payload: KinematicState | None = None
    error: str | None = None
