import itertools
import uuid
from collections import defaultdict
from collections.abc import Iterator


class UuidIdGenerator:
    """Random, collision-free identifiers such as ``apt-3f2b9c1e…``."""

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex}"


class SequentialIdGenerator:
    """Deterministic ``prefix-1``, ``prefix-2``, … identifiers, counted per prefix."""

    def __init__(self, start: int = 1) -> None:
        self._counters: defaultdict[str, Iterator[int]] = defaultdict(
            lambda: itertools.count(start)
        )

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counters[prefix])}"
