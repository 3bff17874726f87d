# road_lattice/domain/errors.py


class NotOnRouteError(LookupError):
    """A road id was queried against a router whose sequence does not contain it."""

    def __init__(self, road_id: int):
        super().__init__(f"road {road_id} is not on route")
        self.road_id = road_id


class InvalidArgumentError(ValueError):
    pass
