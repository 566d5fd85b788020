"""Turn arbitrary payload values into plain, JSON-safe data.

Objects become dicts of their public data attributes followed by their
``property``/``cached_property`` values. Dates become ISO-8601 strings.
A compound value met again while it is still being walked (a cycle) is
replaced by ``"[circular *<path>]"``, where ``<path>`` is where the
back-reference sits, e.g. ``child.parent`` or ``orders[0].customer``.
"""

import functools
import logging
import math
import types
from collections.abc import Iterator, Mapping, Sequence, Set
from enum import Enum
from typing import Any

from pydantic import BaseModel

from jobqueue.serialization.context import VisitationContext, index_path, key_path
from jobqueue.serialization.registry import get_converter

logger = logging.getLogger(__name__)

MAX_DEPTH_MARKER = "[max depth reached]"

_OMIT = object()

_NON_DATA = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.ModuleType,
    functools.partial,
    type,
)

# Accessors declared on these classes are framework internals, not payload.
_OPAQUE_BASES = (object, BaseModel)

_ACCESSORS = (property, functools.cached_property)


def circular_marker(path: str) -> str:
    return f"[circular *{path}]"


def normalize(value: Any, *, max_depth: int | None = None) -> Any:
    """Return a plain copy of ``value`` built from dicts, lists and primitives.

    ``max_depth`` caps how many compound levels are walked; deeper values
    are replaced with ``MAX_DEPTH_MARKER``. ``None`` walks without a cap.
    """
    result = _Normalizer(max_depth).walk(value, "")
    return None if result is _OMIT else result


class _Normalizer:
    def __init__(self, max_depth: int | None) -> None:
        self._max_depth = max_depth
        self._context = VisitationContext()

    def walk(self, value: Any, path: str) -> Any:
        if isinstance(value, Enum):
            return self.walk(value.value, path)
        if value is None or isinstance(value, (bool, int, str)):
            return value
        if isinstance(value, float):
            return value if math.isfinite(value) else None

        converter = get_converter(value)
        if converter is not None:
            return converter(value)
        if isinstance(value, _NON_DATA):
            return _OMIT

        if isinstance(value, (Mapping, Sequence, Set)) or _has_attributes(value):
            return self._walk_compound(value, path)
        if _has_default_repr(value):
            return {}
        return str(value)

    def _walk_compound(self, value: Any, path: str) -> Any:
        ancestor = self._context.path_of(value)
        if ancestor is not None:
            logger.debug(
                "Circular reference replaced",
                extra={"path": path, "ancestor_path": ancestor},
            )
            return circular_marker(path)
        if self._max_depth is not None and self._context.depth >= self._max_depth:
            logger.debug(
                "Max depth reached", extra={"path": path, "max_depth": self._max_depth}
            )
            return MAX_DEPTH_MARKER

        with self._context.enter(value, path):
            if isinstance(value, Mapping):
                return self._walk_pairs(
                    ((str(key), item) for key, item in value.items()), path
                )
            if isinstance(value, (Sequence, Set)):
                return self._walk_items(value, path)
            return self._walk_pairs(_attributes(value), path)

    def _walk_pairs(self, pairs: Iterator[tuple[str, Any]], path: str) -> dict[str, Any]:
        output: dict[str, Any] = {}
        for key, item in pairs:
            normalized = self.walk(item, key_path(path, key))
            if normalized is _OMIT:
                continue
            if key in output:
                logger.warning(
                    "Mapping keys collide after conversion to str",
                    extra={"path": key_path(path, key)},
                )
            output[key] = normalized
        return output

    def _walk_items(self, items: Sequence[Any] | Set[Any], path: str) -> list[Any]:
        output: list[Any] = []
        for index, item in enumerate(items):
            normalized = self.walk(item, index_path(path, index))
            output.append(None if normalized is _OMIT else normalized)
        return output


def _has_attributes(value: Any) -> bool:
    return hasattr(value, "__dict__") or hasattr(type(value), "__slots__")


def _has_default_repr(value: Any) -> bool:
    kind = type(value)
    return kind.__repr__ is object.__repr__ and kind.__str__ is object.__str__


def _attributes(value: Any) -> Iterator[tuple[str, Any]]:
    accessors = accessor_names(type(value))
    emitted: set[str] = set()

    for name, item in _data_attributes(value):
        if name in accessors or name in emitted:
            continue
        emitted.add(name)
        yield name, item

    for name in accessors:
        if name not in emitted:
            emitted.add(name)
            yield name, getattr(value, name)


def _data_attributes(value: Any) -> Iterator[tuple[str, Any]]:
    for name, item in getattr(value, "__dict__", {}).items():
        if not name.startswith("_"):
            yield name, item

    for klass in reversed(type(value).__mro__):
        slots = vars(klass).get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name.startswith("_"):
                continue
            try:
                yield name, getattr(value, name)
            except AttributeError:
                continue

    if isinstance(value, BaseModel) and value.__pydantic_extra__:
        yield from value.__pydantic_extra__.items()


def accessor_names(cls: type) -> list[str]:
    """Public accessors of ``cls``, most-derived class first, in definition order."""
    names: list[str] = []
    shadowed: set[str] = set()
    for klass in cls.__mro__:
        if klass in _OPAQUE_BASES:
            continue
        for name, member in vars(klass).items():
            if name in shadowed:
                continue
            shadowed.add(name)
            if not name.startswith("_") and isinstance(member, _ACCESSORS):
                names.append(name)
    return names
