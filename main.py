# main.py
from road_lattice.app.build import build
from road_lattice.domain.maps.lane_map import build_loop_map

# Loop of town roads with two same-direction lanes; junction roads are the short ones.
ROADS = {47: 120.0, 558: 15.0, 48: 90.0, 887: 15.0, 49: 120.0, 717: 15.0, 50: 90.0, 42: 15.0}


def run(steps: int, movement_m: float = 5.0):
    town = build_loop_map(ROADS, lanes=(-1, -2))
    cfg = {
        "name": "loop_town",
        "run_id": "demo",
        "router": {"kind": "loop", "roads": list(ROADS)},
        "lattice": {"range_m": 100.0, "resolution_m": 1.0},
    }
    start = town.position(47, -1, 0.0)
    app = build(cfg, start)
    lattice = app.lattice

    # Ego sits mid-lattice with 50 m of lattice ahead of it.
    ego = lattice.front(start, 50.0)
    for _ in range(steps):
        # Ego and window move together, so ego stays 50 m past the entry.
        ego = lattice.front(ego.position, movement_m)
        lattice.advance(movement_m)
        lead = lattice.front(ego.position, 30.0)
        overtake = lattice.right_front(ego.position, 30.0)
        app.hooks.log.info(
            "ego",
            extra={
                "extra": {
                    "road": ego.position.road_id,
                    "s": ego.position.s,
                    "lead_s": lead.position.s if lead else None,
                    "overtake_lane": overtake.position.lane_id if overtake else None,
                }
            },
        )
    return app


if __name__ == "__main__":
    run(steps=20)
