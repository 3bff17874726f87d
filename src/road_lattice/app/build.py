# road_lattice/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from road_lattice.app.protocols import LatticeHooks, Position, RouteOracle
from road_lattice.config.models import ScenarioModel
from road_lattice.domain.lattice.lattice_core import Lattice
from road_lattice.io.lattice_logging import LatticeLogging
from road_lattice.runtime.registries import make_router
from road_lattice.sim.hooks import NoopHooks


@dataclass
class App:
    router: RouteOracle
    lattice: Lattice
    hooks: LatticeHooks


def build(cfg: ScenarioModel | Mapping, start: Position, *, use_logging: bool = True) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, ScenarioModel) else ScenarioModel.model_validate(cfg)

    # 1) Hooks
    hooks = (
        LatticeLogging(
            run_id=model.run_id,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else NoopHooks()
    )

    # 2) Router (shared by the lattice for its whole life)
    router = make_router(model.router)

    # 3) Lattice grown from the caller's start position
    try:
        lattice = Lattice(
            start,
            model.lattice.range_m,
            model.lattice.resolution_m,
            router,
            hooks=hooks,
        )
    except (LookupError, ValueError) as exc:
        hooks.error(exc=exc, road_id=start.road_id, lane_id=start.lane_id)
        raise

    return App(router, lattice, hooks)
