from dataclasses import dataclass


# Pose types carried by positions; the lattice itself never reads them.
@dataclass(frozen=True)
class Location:
    x: float  # meters in map frame
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class Rotation:
    yaw: float  # degrees
    pitch: float = 0.0
    roll: float = 0.0


@dataclass(frozen=True)
class Transform:
    location: Location
    rotation: Rotation


RoadLaneKey = tuple[int, int]


def road_lane_key(road_id: int, lane_id: int) -> RoadLaneKey:
    return (int(road_id), int(lane_id))
