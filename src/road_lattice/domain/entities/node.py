from dataclasses import dataclass
from enum import Enum

from road_lattice.app.protocols import Position


class Direction(Enum):
    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITE[self]


_OPPOSITE = {
    Direction.FRONT: Direction.BACK,
    Direction.BACK: Direction.FRONT,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


@dataclass(eq=False)
class LatticeNode:
    """
    One lattice vertex. Links hold the position id of the neighbor node,
    resolved through the owning lattice's node table.

    `distance` is the arc length from the lattice entry, which differs from
    `position.s` (the arc length on the position's own road).
    """

    position: Position
    distance: float = 0.0
    front: int | None = None
    back: int | None = None
    left: int | None = None
    right: int | None = None

    @property
    def position_id(self) -> int:
        return self.position.position_id

    def link(self, direction: Direction) -> int | None:
        return getattr(self, direction.value)

    def set_link(self, direction: Direction, position_id: int | None) -> None:
        setattr(self, direction.value, position_id)

    def links(self) -> dict[Direction, int]:
        return {d: pid for d in Direction if (pid := self.link(d)) is not None}

    def __repr__(self) -> str:
        p = self.position
        return (
            f"LatticeNode(id={p.position_id}, road={p.road_id}, lane={p.lane_id}, "
            f"s={p.s:.3f}, distance={self.distance:.3f})"
        )
