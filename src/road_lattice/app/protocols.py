from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from road_lattice.domain.entities.geography import Transform


# ------------- Map provider --------------------
@runtime_checkable
class Position(Protocol):
    """
    A located point on the road network, supplied by the map provider.
    Responsibilities:
      • Identify itself (position, road and lane ids) and its arc length on the road.
      • Answer local queries: successors within a distance, adjacent lanes.
    Instances are immutable; equal position ids mean the same place.
    Units: meters.
    """

    @property
    def position_id(self) -> int: ...
    @property
    def road_id(self) -> int: ...
    @property
    def lane_id(self) -> int: ...
    @property
    def s(self) -> float: ...
    @property
    def transform(self) -> Transform: ...

    def next_positions(self, max_distance: float) -> Sequence["Position"]:
        """All positions reachable `max_distance` ahead along valid directions of travel."""

    def left_lane_position(self) -> "Position | None": ...
    def right_lane_position(self) -> "Position | None": ...


@runtime_checkable
class PositionSource(Protocol):
    """Entry point into a map: resolve a lookup key to a position on the network."""

    def position(self, road_id: int, lane_id: int, s: float) -> Position | None: ...


# ------------- Routing --------------------
@runtime_checkable
class RouteOracle(Protocol):
    """
    Responsibilities:
      • Decide whether a position continues onto the route.
      • Report the road before/after a road on the route.
      • Find the on-route position a given distance ahead.
    Raises NotOnRouteError for roads the route does not contain.
    """

    def waypoint_on_route(self, candidate: Position) -> Position | None: ...
    def next_road(self, road: int | Position) -> int | None: ...
    def prev_road(self, road: int | Position) -> int | None: ...
    def front_waypoint(self, position: Position, distance: float) -> Position | None: ...


# ------------- Lattice lifecycle --------------------
class LatticeHooks(Protocol):
    def built(self, *, nodes: int, range: float, resolution: float): ...
    def extended(self, *, added: int, old_range: float, new_range: float): ...
    def shortened(self, *, removed: int, old_range: float, new_range: float): ...
    def advanced(self, *, movement: float, added: int, removed: int, range: float): ...
    def query_miss(self, op: str, *, position_id: int, range: float, reason: str): ...
    def error(self, *, exc: BaseException, **extra): ...