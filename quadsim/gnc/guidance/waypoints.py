"""Waypoint route following.

Holds an ordered list of waypoints and a cursor on the active one. The
cursor advances when the vehicle comes within a completion tolerance of
the active waypoint. Once it has passed the last entry the route is
finished; switching the flight mode in response is up to the owner of
the sequencer.

Example:
    >>> from quadsim.gnc.guidance import Waypoint, WaypointSequencer
    >>>
    >>> route = WaypointSequencer([Waypoint.at(0.0, 0.0, 2.0)], tolerance=0.2)
    >>> finished = route.update(np.array([0.0, 0.0, 1.9]))
"""

import logging
import uuid
from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


# =============================================================================
# Waypoint
# =============================================================================


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


@beartype
@dataclass(frozen=True)
class Waypoint:
    """A target position with an identifier.

    Attributes:
        position: [x, y, z] world position [m]
        id: Unique identifier
        name: Optional display name
    """
    position: NDArray[np.float64]
    id: str = field(default_factory=_new_id)
    name: str | None = None

    def __post_init__(self) -> None:
        """Store a read-only copy of the position."""
        position = np.array(self.position, dtype=np.float64)
        if position.shape != (3,):
            raise ValueError(f"Waypoint position must be shape (3,), got {position.shape}")
        position.flags.writeable = False
        object.__setattr__(self, "position", position)

    @classmethod
    def at(cls, x: float, y: float, z: float, id: str | None = None,
           name: str | None = None) -> "Waypoint":
        """Create a waypoint from coordinates."""
        return cls(position=np.array([x, y, z]), id=id or _new_id(), name=name)

    def distance_to(self, position: NDArray[np.float64]) -> float:
        """Euclidean distance from a position [m]."""
        return float(np.linalg.norm(position - self.position))


# =============================================================================
# Sequencer
# =============================================================================


@beartype
class WaypointSequencer:
    """Ordered waypoints with a cursor on the active one.

    The index is -1 for an empty route, otherwise in [0, len]. An index
    equal to ``len(waypoints)`` means every waypoint has been reached.
    """

    def __init__(
        self,
        waypoints: list[Waypoint] | None = None,
        tolerance: float = 0.2,
    ) -> None:
        """Initialize the route.

        Args:
            waypoints: Initial route
            tolerance: Completion radius around each waypoint [m]
        """
        if not tolerance > 0:
            raise ValueError(f"Tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance
        self._waypoints: list[Waypoint] = list(waypoints or [])
        self._index = 0 if self._waypoints else -1

    def __len__(self) -> int:
        return len(self._waypoints)

    @property
    def waypoints(self) -> list[Waypoint]:
        return list(self._waypoints)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def is_finished(self) -> bool:
        """True when the cursor has passed the last waypoint."""
        return bool(self._waypoints) and self._index >= len(self._waypoints)

    @property
    def active_waypoint(self) -> Waypoint | None:
        """Waypoint currently being flown to, if any."""
        if 0 <= self._index < len(self._waypoints):
            return self._waypoints[self._index]
        return None

    @property
    def final_waypoint(self) -> Waypoint | None:
        return self._waypoints[-1] if self._waypoints else None

    def update(self, position: NDArray[np.float64]) -> bool:
        """Advance the cursor if the active waypoint has been reached.

        Args:
            position: Current vehicle position [m]

        Returns:
            True only on the call where the last waypoint is reached
        """
        active = self.active_waypoint
        if active is None or active.distance_to(position) > self.tolerance:
            return False

        self._index += 1
        logger.debug("Reached waypoint %s (%d/%d)", active.id, self._index, len(self._waypoints))
        return self._index == len(self._waypoints)

    # -------------------------------------------------------------------------
    # Route editing
    # -------------------------------------------------------------------------

    def add(self, waypoint: Waypoint) -> None:
        """Append a waypoint. An empty route starts at the new entry."""
        self._waypoints.append(waypoint)
        if self._index < 0:
            self._index = 0

    def remove(self, waypoint_id: str) -> bool:
        """Remove a waypoint by id.

        Waypoints before the cursor shift it back by one; removing the
        active waypoint makes the next one active, clamped into range.
        A finished route stays finished.

        Returns:
            False if no waypoint has that id
        """
        for i, waypoint in enumerate(self._waypoints):
            if waypoint.id == waypoint_id:
                break
        else:
            return False

        finished = self.is_finished
        del self._waypoints[i]
        if finished and self._waypoints:
            self._index = len(self._waypoints)
            return True

        if i < self._index:
            self._index -= 1
        self._clamp_index()
        return True

    def set(self, waypoints: list[Waypoint]) -> None:
        """Replace the route and start from its first entry."""
        self._waypoints = list(waypoints)
        self._index = 0 if self._waypoints else -1

    def clear(self) -> None:
        self.set([])

    def rewind(self) -> None:
        """Restart the route from its first entry."""
        self._index = 0 if self._waypoints else -1

    def _clamp_index(self) -> None:
        if not self._waypoints:
            self._index = -1
        else:
            self._index = min(max(self._index, 0), len(self._waypoints) - 1)
