# tests/domain/test_routers.py
from dataclasses import dataclass, field

import pytest

from road_lattice.domain.errors import InvalidArgumentError, NotOnRouteError
from road_lattice.domain.routing.routers import LinearRouter, LoopRouter


# --- Minimal position stub: successors are canned per distance ---
@dataclass
class _Pos:
    road_id: int
    lane_id: int = -1
    s: float = 0.0
    successors: list = field(default_factory=list)
    asked: list = field(default_factory=list)

    @property
    def position_id(self):
        return hash((self.road_id, self.lane_id, self.s))

    def next_positions(self, max_distance):
        self.asked.append(max_distance)
        return list(self.successors)


ROUTE = [47, 558, 48]


@pytest.fixture
def loop() -> LoopRouter:
    return LoopRouter(ROUTE)


# ---------- next / prev


def test_next_and_prev_wrap_around(loop: LoopRouter):
    assert loop.next_road(47) == 558
    assert loop.next_road(48) == 47
    assert loop.prev_road(47) == 48
    assert loop.prev_road(558) == 47


def test_next_prev_are_inverse_on_every_road(loop: LoopRouter):
    for r in ROUTE:
        assert loop.prev_road(loop.next_road(r)) == r
        assert loop.next_road(loop.prev_road(r)) == r


def test_road_not_on_route_raises(loop: LoopRouter):
    with pytest.raises(NotOnRouteError) as ei:
        loop.next_road(99)
    assert ei.value.road_id == 99
    with pytest.raises(NotOnRouteError):
        loop.prev_road(99)
    # still a LookupError for callers that don't know our taxonomy
    with pytest.raises(LookupError):
        loop.next_road(_Pos(road_id=12))


def test_position_overloads_use_road_id(loop: LoopRouter):
    assert loop.next_road(_Pos(road_id=558)) == 48
    assert loop.prev_road(_Pos(road_id=558)) == 47


def test_single_road_loop_is_its_own_neighbor():
    r = LoopRouter([7])
    assert r.next_road(7) == 7 and r.prev_road(7) == 7


def test_route_must_be_nonempty_and_distinct():
    with pytest.raises(InvalidArgumentError):
        LoopRouter([])
    with pytest.raises(InvalidArgumentError):
        LoopRouter([1, 2, 1])


def test_sequence_accessors(loop: LoopRouter):
    assert loop.roads == (47, 558, 48)
    assert len(loop) == 3
    assert 558 in loop and 5 not in loop


# ---------- waypoint_on_route


def test_waypoint_on_route_picks_first_successor_on_route(loop: LoopRouter):
    off, on_a, on_b = _Pos(road_id=900), _Pos(road_id=558), _Pos(road_id=48)
    p = _Pos(road_id=47, successors=[off, on_a, on_b])
    assert loop.waypoint_on_route(p) is on_a
    assert p.asked == [pytest.approx(0.01)]


def test_waypoint_on_route_none_when_all_branches_leave(loop: LoopRouter):
    p = _Pos(road_id=47, successors=[_Pos(road_id=900), _Pos(road_id=901)])
    assert loop.waypoint_on_route(p) is None


# ---------- front_waypoint


def test_front_waypoint_rejects_non_positive_distance(loop: LoopRouter):
    p = _Pos(road_id=47)
    for d in (0.0, -1.0):
        with pytest.raises(InvalidArgumentError):
            loop.front_waypoint(p, d)
    assert p.asked == []  # no partial work


def test_front_waypoint_prefers_same_road(loop: LoopRouter):
    nxt, same = _Pos(road_id=558), _Pos(road_id=47, s=5.0)
    p = _Pos(road_id=47, successors=[nxt, same])
    assert loop.front_waypoint(p, 5.0) is same


def test_front_waypoint_follows_route_at_branch(loop: LoopRouter):
    off, nxt = _Pos(road_id=900), _Pos(road_id=558)
    p = _Pos(road_id=47, successors=[off, nxt])
    assert loop.front_waypoint(p, 2.0) is nxt


def test_front_waypoint_wraps_past_last_road(loop: LoopRouter):
    first = _Pos(road_id=47)
    p = _Pos(road_id=48, successors=[_Pos(road_id=558), first])
    assert loop.front_waypoint(p, 1.0) is first


def test_front_waypoint_none_when_nothing_on_route(loop: LoopRouter):
    assert loop.front_waypoint(_Pos(road_id=47, successors=[_Pos(road_id=900)]), 1.0) is None
    assert loop.front_waypoint(_Pos(road_id=47), 1.0) is None


def test_front_waypoint_off_route_position_raises(loop: LoopRouter):
    with pytest.raises(NotOnRouteError):
        loop.front_waypoint(_Pos(road_id=900, successors=[_Pos(road_id=900)]), 1.0)


# ---------- LinearRouter


def test_linear_router_has_open_ends():
    r = LinearRouter([1, 2, 3])
    assert r.next_road(1) == 2 and r.prev_road(3) == 2
    assert r.next_road(3) is None
    assert r.prev_road(1) is None


def test_linear_router_front_stops_at_route_end():
    r = LinearRouter([1, 2, 3])
    same = _Pos(road_id=3, s=4.0)
    assert r.front_waypoint(_Pos(road_id=3, successors=[_Pos(road_id=1), same]), 1.0) is same
    assert r.front_waypoint(_Pos(road_id=3, successors=[_Pos(road_id=1)]), 1.0) is None
