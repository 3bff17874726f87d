import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from road_lattice.app.protocols import PositionSource
from road_lattice.domain.entities.geography import Location, RoadLaneKey, Rotation, Transform

# Arc lengths are snapped to millimeters when assigning position ids.
_S_DIGITS = 3


@dataclass(frozen=True)
class RoadGeometry:
    road_id: int
    length_m: float
    lanes: tuple[int, ...]  # ordered left to right, all with the same direction of travel
    origin: Location = Location(0.0, 0.0)
    heading_deg: float = 0.0
    lane_width_m: float = 3.5


@dataclass(frozen=True)
class MapPosition:
    road_id: int
    lane_id: int
    s: float
    map: "LaneMap" = field(compare=False, repr=False)

    @property
    def position_id(self) -> int:
        return self.map.position_id(self.road_id, self.lane_id, self.s)

    @property
    def transform(self) -> Transform:
        return self.map.transform(self.road_id, self.lane_id, self.s)

    def next_positions(self, max_distance: float) -> list["MapPosition"]:
        return self.map.advance(self.road_id, self.lane_id, self.s, max_distance)

    def left_lane_position(self) -> "MapPosition | None":
        return self.map.adjacent(self, -1)

    def right_lane_position(self) -> "MapPosition | None":
        return self.map.adjacent(self, +1)


class LaneMap(PositionSource):
    """
    In-memory road network of straight roads joined end to start.

    Each road carries parallel lanes of equal length; lane connectivity
    between roads is explicit, so merges and branches are expressible.
    """

    def __init__(self):
        self._roads: dict[int, RoadGeometry] = {}
        self._successors: dict[RoadLaneKey, list[RoadLaneKey]] = {}
        self._ids: dict[tuple[int, int, float], int] = {}

    @property
    def roads(self) -> Mapping[int, RoadGeometry]:
        return self._roads

    def add_road(
        self,
        road_id: int,
        length_m: float,
        lanes: Sequence[int] = (-1,),
        *,
        origin: Location | None = None,
        heading_deg: float = 0.0,
        lane_width_m: float = 3.5,
    ) -> RoadGeometry:
        if road_id in self._roads:
            raise ValueError(f"road {road_id} already exists")
        if length_m <= 0:
            raise ValueError(f"road {road_id} length must be > 0")
        if not lanes or len(set(lanes)) != len(lanes):
            raise ValueError(f"road {road_id} needs distinct lanes, got {lanes!r}")
        road = RoadGeometry(
            road_id,
            float(length_m),
            tuple(lanes),
            origin or Location(0.0, 0.0),
            heading_deg,
            lane_width_m,
        )
        self._roads[road_id] = road
        return road

    def connect(self, road_id: int, to_road_id: int, lanes: Mapping[int, int] | None = None) -> None:
        """Link the end of `road_id` to the start of `to_road_id`; by default lanes with equal ids."""
        src, dst = self._roads[road_id], self._roads[to_road_id]
        if lanes is None:
            pairs = [(lane, lane) for lane in src.lanes if lane in dst.lanes]
        else:
            pairs = list(lanes.items())
        for a, b in pairs:
            if a not in src.lanes or b not in dst.lanes:
                raise ValueError(f"no lane pair {a}->{b} between roads {road_id} and {to_road_id}")
            self._successors.setdefault((road_id, a), []).append((to_road_id, b))

    def position_id(self, road_id: int, lane_id: int, s: float) -> int:
        """Sequential id per (road, lane, arc length); the same place always maps to the same id."""
        key = (road_id, lane_id, round(s, _S_DIGITS))
        return self._ids.setdefault(key, len(self._ids))

    # --------------- PositionSource -----------------------------

    def position(self, road_id: int, lane_id: int, s: float) -> MapPosition | None:
        road = self._roads.get(road_id)
        if road is None or lane_id not in road.lanes or not (0.0 <= s <= road.length_m):
            return None
        return MapPosition(road_id, lane_id, float(s), self)

    def advance(self, road_id: int, lane_id: int, s: float, distance: float) -> list[MapPosition]:
        road = self._roads[road_id]
        target = s + distance
        if target <= road.length_m:
            return [MapPosition(road_id, lane_id, target, self)]

        remaining = target - road.length_m
        out: list[MapPosition] = []
        for nxt_road, nxt_lane in self._successors.get((road_id, lane_id), ()):
            out.extend(self.advance(nxt_road, nxt_lane, 0.0, remaining))
        return out

    def adjacent(self, position: MapPosition, step: int) -> MapPosition | None:
        lanes = self._roads[position.road_id].lanes
        i = lanes.index(position.lane_id) + step
        if not 0 <= i < len(lanes):
            return None
        return MapPosition(position.road_id, lanes[i], position.s, self)

    def transform(self, road_id: int, lane_id: int, s: float) -> Transform:
        road = self._roads[road_id]
        h = math.radians(road.heading_deg)
        # lateral offset grows to the right of the road's left-most lane
        d = road.lanes.index(lane_id) * road.lane_width_m
        x = road.origin.x + s * math.cos(h) + d * math.sin(h)
        y = road.origin.y + s * math.sin(h) - d * math.cos(h)
        return Transform(Location(x, y, road.origin.z), Rotation(yaw=road.heading_deg))


def build_loop_map(
    lengths: Mapping[int, float] | Iterable[tuple[int, float]],
    lanes: Sequence[int] = (-1,),
    *,
    lane_width_m: float = 3.5,
) -> LaneMap:
    """A closed loop of roads in the given order, laid out as a regular polygon."""
    items = list(lengths.items() if isinstance(lengths, Mapping) else lengths)
    m = LaneMap()
    x = y = 0.0
    turn = 360.0 / max(len(items), 1)
    for k, (road_id, length) in enumerate(items):
        heading = k * turn
        m.add_road(
            road_id,
            length,
            lanes,
            origin=Location(x, y),
            heading_deg=heading,
            lane_width_m=lane_width_m,
        )
        x += length * math.cos(math.radians(heading))
        y += length * math.sin(math.radians(heading))
    for (a, _), (b, _) in zip(items, items[1:] + items[:1]):
        m.connect(a, b)
    return m
