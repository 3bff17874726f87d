# tests/domain/test_lattice_queries.py
import pytest

from road_lattice.domain.lattice.lattice_core import Lattice
from road_lattice.domain.maps.lane_map import LaneMap
from road_lattice.domain.routing.routers import LoopRouter
from road_lattice.sim.hooks import NoopHooks


class MissHooks(NoopHooks):
    def __init__(self):
        self.misses = []

    def query_miss(self, op, *, position_id, range, reason):
        self.misses.append((op, reason))


@pytest.fixture
def road() -> LaneMap:
    m = LaneMap()
    m.add_road(1, 200.0, lanes=(-1, -2, -3))
    m.add_road(9, 50.0)
    return m


@pytest.fixture
def hooks() -> MissHooks:
    return MissHooks()


@pytest.fixture
def lattice(road: LaneMap, hooks: MissHooks) -> Lattice:
    return Lattice(road.position(1, -2, 0.0), 100.0, 1.0, LoopRouter([1]), hooks=hooks)


# ---------- front / back


def test_front_and_back_walk_the_lane(road: LaneMap, lattice: Lattice):
    start = road.position(1, -2, 0.0)
    q50 = road.position(1, -2, 50.0)

    assert lattice.front(start, 50.0).position == q50
    assert lattice.back(q50, 20.0).position.s == pytest.approx(30.0)
    assert lattice.front(start, 0.0) is lattice.entry
    assert lattice.front(start, 100.0) is lattice.exit


def test_signed_range_reverses_direction(road: LaneMap, lattice: Lattice):
    q50 = road.position(1, -2, 50.0)
    assert lattice.front(q50, -10.0) is lattice.back(q50, 10.0)
    assert lattice.back(q50, -10.0).position.s == pytest.approx(60.0)


def test_walking_off_the_lattice_is_none(road: LaneMap, lattice: Lattice, hooks: MissHooks):
    start = road.position(1, -2, 0.0)
    assert lattice.front(start, 150.0) is None
    assert lattice.back(start, 1.0) is None
    assert hooks.misses == [("front", "front"), ("back", "back")]


def test_query_between_nodes_snaps_to_nearest(road: LaneMap, lattice: Lattice):
    q = road.position(1, -2, 50.3)
    assert q.position_id not in lattice
    assert lattice.front(q, 10.0).position.s == pytest.approx(60.0)


def test_half_resolution_tie_goes_to_the_nearer_node(road: LaneMap, lattice: Lattice):
    start = road.position(1, -2, 0.0)
    assert lattice.front(start, 10.5).position.s == pytest.approx(10.0)
    q20 = road.position(1, -2, 20.0)
    assert lattice.back(q20, 10.5).position.s == pytest.approx(10.0)


def test_query_off_lattice_is_none(road: LaneMap, lattice: Lattice, hooks: MissHooks):
    assert lattice.front(road.position(9, -1, 10.0), 1.0) is None
    assert lattice.front(road.position(1, -2, 150.0), 1.0) is None
    assert [r for _, r in hooks.misses] == ["off_lattice", "off_lattice"]


# ---------- closest_node


def test_closest_node_tolerance(road: LaneMap, lattice: Lattice):
    q = road.position(1, -1, 50.3)
    assert lattice.closest_node(q, 0.2) is None
    node = lattice.closest_node(q, 0.5)
    assert node.position.lane_id == -1
    assert node.position.s == pytest.approx(50.0)
    exact = road.position(1, -3, 12.0)
    assert lattice.closest_node(exact, 0.0).position_id == exact.position_id


# ---------- lateral combinations

PAIRS = [
    ("left_front", "front_left", -1, +1),
    ("left_back", "back_left", -1, -1),
    ("right_front", "front_right", -3, +1),
    ("right_back", "back_right", -3, -1),
]


@pytest.mark.parametrize("step_walk, walk_step, lane, sign", PAIRS)
def test_step_then_walk_equals_walk_then_step(road, lattice, step_walk, walk_step, lane, sign):
    q = road.position(1, -2, 50.0)
    a = getattr(lattice, step_walk)(q, 10.0)
    b = getattr(lattice, walk_step)(q, 10.0)
    assert a is not None and a is b
    assert a.position.lane_id == lane
    assert a.position.s == pytest.approx(50.0 + sign * 10.0)


@pytest.mark.parametrize("step_walk, walk_step, lane, sign", PAIRS)
def test_both_orders_fail_past_the_boundary(road, lattice, step_walk, walk_step, lane, sign):
    q = road.position(1, -2, 50.0)
    assert getattr(lattice, step_walk)(q, 60.0) is None
    assert getattr(lattice, walk_step)(q, 60.0) is None


def test_missing_lateral_lane_is_none(road: LaneMap, lattice: Lattice, hooks: MissHooks):
    leftmost = road.position(1, -1, 20.0)
    rightmost = road.position(1, -3, 20.0)
    assert lattice.left_front(leftmost, 5.0) is None
    assert lattice.front_left(leftmost, 5.0) is None
    assert lattice.right_back(rightmost, 5.0) is None
    assert lattice.back_right(rightmost, 5.0) is None
    assert ("left_front", "left") in hooks.misses
    assert ("back_right", "right") in hooks.misses


def test_queries_do_not_touch_the_map(road: LaneMap, lattice: Lattice, monkeypatch):
    def boom(*a, **kw):
        raise AssertionError("map queried")

    monkeypatch.setattr(road, "advance", boom)
    monkeypatch.setattr(road, "adjacent", boom)
    q = road.position(1, -2, 30.0)
    assert lattice.front_right(q, 5.0) is lattice.right_front(q, 5.0)
