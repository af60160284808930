"""Guidance for the quadrotor: waypoint route following."""

from quadsim.gnc.guidance.waypoints import (
    Waypoint,
    WaypointSequencer,
)

__all__ = [
    "Waypoint",
    "WaypointSequencer",
]
