# road_lattice/domain/lattice/lattice_core.py
from bisect import insort
from collections import deque
from collections.abc import Iterator
from dataclasses import replace

import numpy as np

from road_lattice.app.protocols import LatticeHooks, Position, RouteOracle
from road_lattice.domain.entities.geography import RoadLaneKey, road_lane_key
from road_lattice.domain.entities.node import Direction, LatticeNode
from road_lattice.domain.errors import InvalidArgumentError
from road_lattice.sim.hooks import NoopHooks

FRONT, BACK, LEFT, RIGHT = Direction.FRONT, Direction.BACK, Direction.LEFT, Direction.RIGHT

_EPS = 1e-6


class Lattice:
    """
    Conformal lattice over the road network, grown from a start position.

    Nodes live in an arena keyed by position id; links between nodes are
    position ids as well, so removing a node is a table edit. Two tables are
    maintained alongside the graph:
      • position id -> node
      • (road id, lane id) -> position ids on that lane, ordered by arc length

    Longitudinal growth goes through the router (so the lattice follows the
    route at junctions); lateral growth asks the position for its adjacent
    lanes. Queries only walk the graph and never touch the map.

    Copying is explicit: `copy.copy` is refused, `clone()` / `copy.deepcopy`
    produce an independent node graph sharing positions and router.
    """

    def __init__(
        self,
        start: Position,
        range: float,
        resolution: float,
        router: RouteOracle,
        *,
        hooks: LatticeHooks | None = None,
    ):
        if resolution <= 0.0:
            raise InvalidArgumentError(f"resolution must be > 0, got {resolution}")
        if range < 0.0:
            raise InvalidArgumentError(f"range must be >= 0, got {range}")

        self._router = router
        self._resolution = float(resolution)
        self._hooks = hooks or NoopHooks()
        self._nodes: dict[int, LatticeNode] = {}
        self._roadlanes: dict[RoadLaneKey, list[int]] = {}
        # movement accepted by advance() but not yet applied to the entry
        self._pending = 0.0

        self._entry = LatticeNode(start, 0.0)
        self._register(self._entry)
        self._grow(deque([self._entry]), float(range))
        self._exit = self._farthest_front(self._entry)
        self._drop_beyond_exit()

        self._hooks.built(nodes=len(self._nodes), range=self.range, resolution=self._resolution)

    # --------------- Accessors -----------------------------

    @property
    def entry(self) -> LatticeNode:
        return self._entry

    @property
    def exit(self) -> LatticeNode:
        return self._exit

    @property
    def range(self) -> float:
        return self._exit.distance - self._entry.distance

    @property
    def resolution(self) -> float:
        return self._resolution

    @property
    def router(self) -> RouteOracle:
        return self._router

    def node(self, position_id: int) -> LatticeNode | None:
        return self._nodes.get(position_id)

    def nodes(self) -> Iterator[LatticeNode]:
        return iter(self._nodes.values())

    def road_lane_positions(self, road_id: int, lane_id: int) -> tuple[int, ...]:
        return tuple(self._roadlanes.get(road_lane_key(road_id, lane_id), ()))

    def road_lanes(self) -> list[RoadLaneKey]:
        return list(self._roadlanes)

    def neighbor(self, node: LatticeNode, direction: Direction) -> LatticeNode | None:
        pid = node.link(direction)
        return None if pid is None else self._nodes.get(pid)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, item: object) -> bool:
        pid = getattr(item, "position_id", item)
        return pid in self._nodes

    def __repr__(self) -> str:
        return (
            f"Lattice(nodes={len(self._nodes)}, range={self.range:.3f}, "
            f"resolution={self._resolution}, entry={self._entry!r})"
        )

    # --------------- Copying -----------------------------

    def __copy__(self):
        raise TypeError("Lattice shares its node graph; use clone() for an independent copy")

    def __deepcopy__(self, memo):
        return self.clone()

    def clone(self) -> "Lattice":
        other = type(self).__new__(type(self))
        other._router = self._router
        other._resolution = self._resolution
        other._hooks = self._hooks
        other._pending = self._pending
        other._nodes = {pid: replace(n) for pid, n in self._nodes.items()}
        other._roadlanes = {k: list(v) for k, v in self._roadlanes.items()}
        other._entry = other._nodes[self._entry.position_id]
        other._exit = other._nodes[self._exit.position_id]
        return other

    # --------------- Resizing -----------------------------

    def extend(self, range: float) -> None:
        """Grow the lattice to `range`. No-op unless `range` exceeds the current range."""
        old = self.range
        if range <= old:
            return

        # Every node without a front link is a growth frontier, on every lane.
        frontier = sorted(
            (n for n in self._nodes.values() if n.front is None), key=lambda n: n.distance
        )
        before = len(self._nodes)
        self._grow(deque(frontier), self._entry.distance + range)
        self._exit = self._farthest_front(self._exit)
        self._drop_beyond_exit()
        self._hooks.extended(
            added=len(self._nodes) - before, old_range=old, new_range=self.range
        )

    def shorten(self, range: float) -> None:
        """Drop nodes beyond `range`. No-op unless `range` is below the current range."""
        if range < 0.0:
            raise InvalidArgumentError(f"range must be >= 0, got {range}")
        old = self.range
        if range >= old:
            return

        limit = self._entry.distance + range
        new_exit = self._last_within(self._entry, limit)
        removed = self._remove([n for n in self._nodes.values() if n.distance > limit + _EPS])
        self._exit = new_exit
        self._hooks.shortened(removed=removed, old_range=old, new_range=self.range)

    def shift(self, movement: float) -> None:
        """
        Extend by `movement` then shorten back to the current range.
        The entry node is not relocated; use `advance` to slide the window.
        """
        range = self.range
        self.extend(range + movement)
        self.shorten(range)

    def advance(self, movement: float) -> float:
        """
        Slide the window forward by `movement`: grow the front, drop the nodes
        left behind and re-base distances on the new entry.

        The entry moves from node to node, so it lands on the node nearest to
        the requested spot; the difference is carried into the next call.
        Running past the exit stops at the exit and drops the carry.
        Returns the distance the entry actually moved.
        """
        if movement < 0.0:
            raise InvalidArgumentError(f"movement must be >= 0, got {movement}")
        self._pending += movement
        range = self.range
        before = len(self._nodes)
        # the entry may land up to half a resolution past the pending movement
        self.extend(range + max(self._pending, 0.0) + self._resolution / 2.0)
        added = len(self._nodes) - before

        new_entry = self._walk(self._entry, self._pending, FRONT)
        if new_entry is None:
            new_entry, self._pending = self._exit, 0.0
        else:
            self._pending -= new_entry.distance - self._entry.distance
        moved = new_entry.distance - self._entry.distance

        offset = new_entry.distance
        limit = offset + range
        self._exit = self._last_within(new_entry, limit)
        removed = self._remove(
            [n for n in self._nodes.values() if not offset - _EPS <= n.distance <= limit + _EPS]
        )
        for n in self._nodes.values():
            n.distance -= offset
        self._entry = new_entry
        self._hooks.advanced(movement=movement, added=added, removed=removed, range=self.range)
        return moved

    # --------------- Node queries -----------------------------

    def closest_node(self, position: Position, tolerance: float) -> LatticeNode | None:
        """
        The node holding `position`, or else the node on the same road+lane
        nearest to it in arc length, if that is within `tolerance`.
        """
        node = self._nodes.get(position.position_id)
        if node is not None:
            return node

        ids = self._roadlanes.get(road_lane_key(position.road_id, position.lane_id))
        if not ids:
            return None
        s = np.fromiter((self._nodes[pid].position.s for pid in ids), dtype=float, count=len(ids))
        gaps = np.abs(s - position.s)
        i = int(np.argmin(gaps))
        return self._nodes[ids[i]] if gaps[i] <= tolerance else None

    # Step-then-walk and walk-then-step variants agree whenever both succeed.

    def front(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("front", query, (FRONT, range))

    def back(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("back", query, (BACK, range))

    def left_front(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("left_front", query, (LEFT, None), (FRONT, range))

    def front_left(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("front_left", query, (FRONT, range), (LEFT, None))

    def left_back(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("left_back", query, (LEFT, None), (BACK, range))

    def back_left(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("back_left", query, (BACK, range), (LEFT, None))

    def right_front(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("right_front", query, (RIGHT, None), (FRONT, range))

    def front_right(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("front_right", query, (FRONT, range), (RIGHT, None))

    def right_back(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("right_back", query, (RIGHT, None), (BACK, range))

    def back_right(self, query: Position, range: float) -> LatticeNode | None:
        return self._query("back_right", query, (BACK, range), (RIGHT, None))

    # --------------- Helpers -----------------------------

    def _query(self, op: str, query: Position, *moves) -> LatticeNode | None:
        range = next((d for _, d in moves if d is not None), 0.0)
        node = self.closest_node(query, self._resolution)
        if node is None:
            self._hooks.query_miss(op, position_id=query.position_id, range=range, reason="off_lattice")
            return None
        for direction, distance in moves:
            if distance is None:
                node = self.neighbor(node, direction)
            else:
                node = self._walk(node, distance, direction)
            if node is None:
                self._hooks.query_miss(
                    op, position_id=query.position_id, range=range, reason=direction.value
                )
                return None
        return node

    def _walk(self, node: LatticeNode, range: float, direction: Direction) -> LatticeNode | None:
        """
        Follow `direction` links to the node whose distance is within half a
        resolution of `node.distance ± range`; a tie goes to the node met first.
        """
        if range < 0.0:
            direction, range = direction.opposite, -range
        sign = 1.0 if direction is FRONT else -1.0
        target = node.distance + sign * range
        half = self._resolution / 2.0

        cur = node
        while sign * (target - cur.distance) > half + _EPS:
            nxt = self.neighbor(cur, direction)
            if nxt is None or sign * (nxt.distance - cur.distance) <= 0.0:
                return None
            cur = nxt
        return cur if abs(target - cur.distance) <= half + _EPS else None

    def _farthest_front(self, node: LatticeNode) -> LatticeNode:
        cur = node
        while (nxt := self.neighbor(cur, FRONT)) is not None and nxt.distance > cur.distance:
            cur = nxt
        return cur

    def _last_within(self, node: LatticeNode, limit: float) -> LatticeNode:
        cur = node
        while (nxt := self.neighbor(cur, FRONT)) is not None and nxt.distance <= limit + _EPS:
            cur = nxt
        return cur

    def _drop_beyond_exit(self) -> int:
        # Side lanes outrun the entry lane when it ends before them.
        limit = self._exit.distance + _EPS
        return self._remove([n for n in self._nodes.values() if n.distance > limit])

    def _grow(self, queue: deque[LatticeNode], limit: float) -> None:
        while queue:
            node = queue.popleft()
            for direction in (FRONT, LEFT, RIGHT):
                new = self._extend(node, direction, limit)
                if new is not None:
                    queue.append(new)

    def _extend(self, node: LatticeNode, direction: Direction, limit: float) -> LatticeNode | None:
        if node.link(direction) is not None:
            return None

        if direction is FRONT:
            distance = node.distance + self._resolution
            if distance > limit + _EPS:
                return None
            candidate = self._router.front_waypoint(node.position, self._resolution)
        elif direction is LEFT:
            distance = node.distance
            candidate = node.position.left_lane_position()
        else:
            distance = node.distance
            candidate = node.position.right_lane_position()

        if candidate is None:
            return None

        half = self._resolution / 2.0
        existing = self.closest_node(candidate, half)
        if existing is not None:
            # A match at an unexpected distance is the route closing on itself.
            if abs(existing.distance - distance) < half:
                self._connect(node, direction, existing)
            return None

        new = LatticeNode(candidate, distance)
        self._register(new)
        self._connect(node, direction, new)
        return new

    def _connect(self, node: LatticeNode, direction: Direction, other: LatticeNode) -> None:
        node.set_link(direction, other.position_id)
        if other.link(direction.opposite) is None:
            other.set_link(direction.opposite, node.position_id)

    def _register(self, node: LatticeNode) -> None:
        p = node.position
        self._nodes[p.position_id] = node
        ids = self._roadlanes.setdefault(road_lane_key(p.road_id, p.lane_id), [])
        insort(ids, p.position_id, key=lambda pid: self._nodes[pid].position.s)

    def _unregister(self, node: LatticeNode) -> None:
        p = node.position
        self._nodes.pop(p.position_id, None)
        key = road_lane_key(p.road_id, p.lane_id)
        ids = self._roadlanes.get(key)
        if ids is not None:
            ids[:] = [pid for pid in ids if pid != p.position_id]
            if not ids:
                del self._roadlanes[key]

    def _remove(self, doomed: list[LatticeNode]) -> int:
        for n in doomed:
            self._unregister(n)
        if doomed:
            # Survivors may point at removed nodes without a reciprocal link (merges).
            for n in self._nodes.values():
                for direction, pid in n.links().items():
                    if pid not in self._nodes:
                        n.set_link(direction, None)
        return len(doomed)
