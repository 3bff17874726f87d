from collections.abc import Iterable

from road_lattice.app.protocols import Position, RouteOracle
from road_lattice.domain.errors import InvalidArgumentError, NotOnRouteError

# Successors closer than this are "the same place, continued": used to peek past junction seams.
ON_ROUTE_PEEK_M = 0.01


def _road_id(road: int | Position) -> int:
    return road.road_id if hasattr(road, "road_id") else int(road)


class SequenceRouter(RouteOracle):
    """
    Route over an ordered sequence of road ids. Subclasses decide what lies
    beyond either end of the sequence.
    """

    def __init__(self, roads: Iterable[int]):
        seq = tuple(int(r) for r in roads)
        if not seq:
            raise InvalidArgumentError("route needs at least one road")
        if len(set(seq)) != len(seq):
            dupes = sorted({r for r in seq if seq.count(r) > 1})
            raise InvalidArgumentError(f"route has duplicate roads {dupes}")
        self._roads = seq
        self._index = {r: i for i, r in enumerate(seq)}

    @property
    def roads(self) -> tuple[int, ...]:
        return self._roads

    def __len__(self) -> int:
        return len(self._roads)

    def __contains__(self, road: object) -> bool:
        return road in self._index

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._roads)!r})"

    def _position_of(self, road: int | Position) -> int:
        rid = _road_id(road)
        try:
            return self._index[rid]
        except KeyError:
            raise NotOnRouteError(rid) from None

    def _after(self, i: int) -> int | None:
        raise NotImplementedError

    def _before(self, i: int) -> int | None:
        raise NotImplementedError

    # --------------------------------------------------------

    def waypoint_on_route(self, candidate: Position) -> Position | None:
        for nxt in candidate.next_positions(ON_ROUTE_PEEK_M):
            if nxt.road_id in self._index:
                return nxt
        return None

    def next_road(self, road: int | Position) -> int | None:
        return self._after(self._position_of(road))

    def prev_road(self, road: int | Position) -> int | None:
        return self._before(self._position_of(road))

    def front_waypoint(self, position: Position, distance: float) -> Position | None:
        if distance <= 0.0:
            raise InvalidArgumentError(f"front waypoint distance must be > 0, got {distance}")

        this_road = position.road_id
        next_road = self.next_road(this_road)

        found = None
        for candidate in position.next_positions(distance):
            # Staying on the current road always wins.
            if candidate.road_id == this_road:
                return candidate
            if next_road is not None and candidate.road_id == next_road:
                found = candidate
        return found


class LoopRouter(SequenceRouter):
    """Closed loop: the road after the last one is the first one."""

    def _after(self, i: int) -> int:
        return self._roads[(i + 1) % len(self._roads)]

    def _before(self, i: int) -> int:
        return self._roads[(i - 1) % len(self._roads)]

    def next_road(self, road: int | Position) -> int:
        return super().next_road(road)

    def prev_road(self, road: int | Position) -> int:
        return super().prev_road(road)


class LinearRouter(SequenceRouter):
    """Open route with a start and an end; nothing lies past either end."""

    def _after(self, i: int) -> int | None:
        return self._roads[i + 1] if i + 1 < len(self._roads) else None

    def _before(self, i: int) -> int | None:
        return self._roads[i - 1] if i > 0 else None
