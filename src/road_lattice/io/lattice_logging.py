# io/lattice_logging.py
import json
import logging
import sys

from road_lattice.sim.hooks import NoopHooks


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; the `extra` dict passed by `_emit` is merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {"level": record.levelname, "msg": record.getMessage(), "logger": record.name}
        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            payload.update(fields)
        if record.exc_info:
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _default_json_logger(name="road_lattice", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(JsonLineFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class LatticeLogging(NoopHooks):
    """
    Structured logs for lattice lifecycle (build, resize) and, in debug mode,
    a sample of the queries that found nothing.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
    ):
        self.run_id, self.debug, self.sample_every = run_id, debug, max(1, sample_every)
        self.log = logger or _default_json_logger(level=level)
        self._misses = 0

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id, **extra}
        self.log.log(getattr(logging, level), msg, extra={"extra": payload})

    # lifecycle

    def built(self, *, nodes: int, range: float, resolution: float):
        self._emit("INFO", "lattice_built", nodes=nodes, range=range, resolution=resolution)

    def extended(self, *, added: int, old_range: float, new_range: float):
        self._emit("INFO", "lattice_extended", added=added, old_range=old_range, new_range=new_range)

    def shortened(self, *, removed: int, old_range: float, new_range: float):
        self._emit(
            "INFO", "lattice_shortened", removed=removed, old_range=old_range, new_range=new_range
        )

    def advanced(self, *, movement: float, added: int, removed: int, range: float):
        self._emit(
            "INFO", "lattice_advanced", movement=movement, added=added, removed=removed, range=range
        )

    # queries

    def query_miss(self, op: str, *, position_id: int, range: float, reason: str):
        self._misses += 1
        if self.debug and (self._misses % self.sample_every) == 0:
            self._emit(
                "DEBUG", "query_miss", op=op, position_id=position_id, range=range, reason=reason
            )

    def error(self, *, exc: BaseException, **extra):
        self._emit("ERROR", "lattice_error", error=str(exc), error_type=type(exc).__name__, **extra)
