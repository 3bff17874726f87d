# runtime/registries.py
from collections.abc import Callable

from road_lattice.app.protocols import RouteOracle
from road_lattice.config.models import RouterLinearModel, RouterLoopModel, RouterUnion
from road_lattice.domain.routing.routers import LinearRouter, LoopRouter

RouterFactory = Callable[[RouterUnion, dict], RouteOracle]

_router_registry: dict[str, RouterFactory] = {}


def register_router(kind: str):
    def deco(fn: RouterFactory):
        _router_registry[kind] = fn
        return fn

    return deco


def make_router(cfg: RouterUnion, *, deps: dict | None = None) -> RouteOracle:
    try:
        factory = _router_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown router kind {cfg.kind!r}") from None
    return factory(cfg, deps or {})


@register_router("loop")
def _make_loop(cfg: RouterLoopModel, deps):
    return LoopRouter(cfg.roads)


@register_router("linear")
def _make_linear(cfg: RouterLinearModel, deps):
    return LinearRouter(cfg.roads)
