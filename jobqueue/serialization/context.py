from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class VisitationContext:
    """Compound values currently being normalized on the path from the root."""

    def __init__(self) -> None:
        # id -> (path, value); the value is held so its id stays unique while entered
        self._ancestors: dict[int, tuple[str, Any]] = {}

    def path_of(self, value: Any) -> str | None:
        entry = self._ancestors.get(id(value))
        if entry is None:
            return None
        return entry[0]

    @contextmanager
    def enter(self, value: Any, path: str) -> Iterator[None]:
        key = id(value)
        self._ancestors[key] = (path, value)
        try:
            yield
        finally:
            del self._ancestors[key]

    @property
    def depth(self) -> int:
        return len(self._ancestors)

    def __contains__(self, value: Any) -> bool:
        return id(value) in self._ancestors


def key_path(parent: str, key: str) -> str:
    return f"{parent}.{key}" if parent else key


def index_path(parent: str, index: int) -> str:
    return f"{parent}[{index}]"
