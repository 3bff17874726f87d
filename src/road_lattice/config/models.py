from collections import Counter
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


# ----------------- ROUTERS ---------------------


class _RouterBase(BaseModel):
    model_config = ConfigDict(extra="forbid")
    roads: list[int]

    @field_validator("roads")
    @classmethod
    def _check_roads(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("roads must name at least one road")
        dupes = sorted(r for r, n in Counter(v).items() if n > 1)
        if dupes:
            raise ValueError(f"roads must be distinct, repeated: {dupes}")
        return v


class RouterLoopModel(_RouterBase):
    kind: Literal["loop"] = "loop"


class RouterLinearModel(_RouterBase):
    kind: Literal["linear"] = "linear"


RouterUnion = Annotated[RouterLoopModel | RouterLinearModel, Field(discriminator="kind")]


# ----------------- LATTICE ---------------------


class LatticeModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    range_m: float = Field(default=100.0, ge=0)
    resolution_m: float = Field(default=1.0, gt=0)


# ------------------------------------------------------------------


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    run_id: str = "local"
    log: LogModel = LogModel()
    router: RouterUnion
    lattice: LatticeModel = LatticeModel()
