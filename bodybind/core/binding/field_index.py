from __future__ import annotations

import dataclasses
import logging
import threading
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel

from bodybind.core.binding.coercion import FieldKind, decode_literal
from bodybind.core.binding.errors import CoercionError, NotARecordError
from bodybind.core.observability.metrics import FIELD_INDEX_BUILDS_TOTAL, inc_named

log = logging.getLogger("bodybind.index")

TAG_KEY = "json"

FieldIndex = Mapping[str, "FieldSlot"]

_KINDS: Dict[Any, FieldKind] = {
    str: FieldKind.STRING,
    int: FieldKind.INTEGER,
    float: FieldKind.FLOAT,
    bool: FieldKind.BOOLEAN,
}


@dataclass(frozen=True)
class FieldSlot:
    """Stable reference to one bindable attribute of a record shape."""

    wire_key: str
    attr: str
    kind: FieldKind
    nullable: bool = False

    def decode(self, raw: Union[bytes, str]) -> Any:
        try:
            return decode_literal(self.kind, raw, nullable=self.nullable)
        except (ValueError, TypeError) as e:
            raise CoercionError(key=self.wire_key, kind=self.kind.value) from e

    def assign(self, target: Any, raw: Union[bytes, str]) -> None:
        setattr(target, self.attr, self.decode(raw))


def wire_field(key: str, *, default: Any = dataclasses.MISSING, default_factory: Any = dataclasses.MISSING, **kwargs: Any) -> Any:
    """dataclasses.field() that tags the field with its wire key."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = key
    return dataclasses.field(default=default, default_factory=default_factory, metadata=metadata, **kwargs)


def _parse_tag(tag: Optional[str]) -> Optional[str]:
    # "name,omitempty" binds under "name"; "-" and empty tags are not bindable
    if not tag:
        return None
    name = tag.split(",", 1)[0].strip()
    if not name or name == "-":
        return None
    return name


def _resolve_kind(shape: type, attr: str, annotation: Any) -> Tuple[FieldKind, bool]:
    nullable = False
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        non_null = [a for a in args if a is not type(None)]
        nullable = len(non_null) != len(args)
        if len(non_null) == 1:
            annotation = non_null[0]

    kind = _KINDS.get(annotation)
    if kind is None:
        raise NotARecordError(
            target_type=shape.__name__,
            reason=f"field {attr!r} has unsupported type {annotation!r} (flat str/int/float/bool only)",
        )
    return kind, nullable


def is_pydantic_shape(shape: Any) -> bool:
    return isinstance(shape, type) and issubclass(shape, BaseModel)


def is_record(target: Any) -> bool:
    if isinstance(target, type):
        return False
    return dataclasses.is_dataclass(target) or isinstance(target, BaseModel)


def _dataclass_slots(shape: type) -> Dict[str, FieldSlot]:
    params = getattr(shape, "__dataclass_params__", None)
    if params is not None and params.frozen:
        raise NotARecordError(target_type=shape.__name__, reason="frozen records cannot be bound in place")

    try:
        hints = typing.get_type_hints(shape)
    except (NameError, TypeError) as e:
        raise NotARecordError(target_type=shape.__name__, reason=f"unresolvable annotations: {e}") from e

    slots: Dict[str, FieldSlot] = {}
    for f in dataclasses.fields(shape):
        if f.name.startswith("_"):
            continue
        key = _parse_tag(f.metadata.get(TAG_KEY))
        if key is None:
            continue
        kind, nullable = _resolve_kind(shape, f.name, hints.get(f.name, f.type))
        slots[key] = FieldSlot(wire_key=key, attr=f.name, kind=kind, nullable=nullable)
    return slots


def _pydantic_slots(shape: type) -> Dict[str, FieldSlot]:
    if shape.model_config.get("frozen"):
        raise NotARecordError(target_type=shape.__name__, reason="frozen records cannot be bound in place")

    slots: Dict[str, FieldSlot] = {}
    for name, info in shape.model_fields.items():
        if name.startswith("_"):
            continue
        key = _parse_tag(info.alias)
        if key is None or info.frozen:
            continue
        kind, nullable = _resolve_kind(shape, name, info.annotation)
        slots[key] = FieldSlot(wire_key=key, attr=name, kind=kind, nullable=nullable)
    return slots


def build_field_index(shape: type) -> FieldIndex:
    """Reflect over ``shape`` once and return an immutable wire-key -> slot mapping."""
    if dataclasses.is_dataclass(shape):
        slots = _dataclass_slots(shape)
    elif is_pydantic_shape(shape):
        slots = _pydantic_slots(shape)
    else:
        raise NotARecordError(target_type=getattr(shape, "__name__", repr(shape)))
    return types.MappingProxyType(slots)


class FieldIndexCache:
    """
    Process-wide field index cache keyed by record shape.

    Lookups are lock-free; a miss takes the build lock and re-checks before
    building, so each shape is reflected over at most once. Entries are never
    evicted: one per distinct shape ever bound.
    """

    def __init__(self, builder: Callable[[type], FieldIndex] = build_field_index):
        self._builder = builder
        self._lock = threading.Lock()
        self._indexes: Dict[type, FieldIndex] = {}
        self._builds = 0

    def get_or_build(self, shape: type) -> FieldIndex:
        index = self._indexes.get(shape)
        if index is not None:
            return index

        with self._lock:
            index = self._indexes.get(shape)
            if index is None:
                index = self._builder(shape)
                self._indexes[shape] = index
                self._builds += 1
                FIELD_INDEX_BUILDS_TOTAL.inc()
                inc_named("field_index_builds")
                log.debug("built field index shape=%s keys=%s", shape.__qualname__, sorted(index))
        return index

    @property
    def build_count(self) -> int:
        return self._builds

    def __len__(self) -> int:
        return len(self._indexes)

    def __contains__(self, shape: object) -> bool:
        return shape in self._indexes

    def stats(self) -> Dict[str, Any]:
        return {
            "shapes": sorted(s.__qualname__ for s in list(self._indexes)),
            "size": len(self._indexes),
            "builds": self._builds,
        }
