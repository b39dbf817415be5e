"""Value tree produced by the JSON parser, with lenient accessors."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

__all__ = ["JsonType", "JsonValue", "JSON_VALUE_NONE"]


class JsonType(enum.IntEnum):
    """Kind of a JSON value."""

    NONE = 0
    OBJECT = 1
    ARRAY = 2
    INTEGER = 3
    DOUBLE = 4
    STRING = 5
    BOOLEAN = 6
    NULL = 7


Member = tuple[str, "JsonValue"]


@dataclass(eq=True)
class JsonValue:
    """One node of a parsed JSON document.

    ``value`` holds, by type: a list of ``(name, JsonValue)`` pairs for an
    object (order and duplicates kept), a list of ``JsonValue`` for an array,
    an ``int``, a ``float``, a ``str``, a ``bool``, or ``None`` for null and
    for the empty ``NONE`` value.

    Lookups never raise: a missing member, an index out of range, or a lookup
    on the wrong kind of value yields the ``NONE`` value, and the numeric,
    string and truth conversions fall back to ``0``, ``""`` and ``False``.
    """

    type: JsonType = JsonType.NONE
    value: Any = None
    parent: Union["JsonValue", None] = field(default=None, repr=False, compare=False)

    def __getitem__(self, key: Union[int, str]) -> "JsonValue":
        if isinstance(key, str):
            if self.type is not JsonType.OBJECT:
                return JSON_VALUE_NONE
            for name, member in self.value:
                if name == key:
                    return member
            return JSON_VALUE_NONE
        if isinstance(key, bool) or not isinstance(key, int):
            raise TypeError(f"JSON value indices must be int or str, not {type(key).__name__}")
        if self.type is not JsonType.ARRAY or key < 0 or key >= len(self.value):
            return JSON_VALUE_NONE
        return self.value[key]

    def __str__(self) -> str:
        if self.type is JsonType.STRING:
            return self.value
        return ""

    def __int__(self) -> int:
        if self.type is JsonType.INTEGER:
            return self.value
        if self.type is JsonType.DOUBLE:
            return int(self.value)
        return 0

    def __float__(self) -> float:
        if self.type in (JsonType.INTEGER, JsonType.DOUBLE):
            return float(self.value)
        return 0.0

    def __bool__(self) -> bool:
        if self.type is not JsonType.BOOLEAN:
            return False
        return bool(self.value)

    def __len__(self) -> int:
        if self.type in (JsonType.ARRAY, JsonType.OBJECT, JsonType.STRING):
            return len(self.value)
        return 0

    def __iter__(self) -> Iterator[Any]:
        if self.type in (JsonType.ARRAY, JsonType.OBJECT):
            return iter(self.value)
        return iter(())

    def to_python(self) -> Any:
        """Convert the tree to plain Python objects.

        Objects become dicts; where a name repeats, the first member wins,
        as it does for lookups by name.
        """
        if self.type is JsonType.OBJECT:
            result: dict[str, Any] = {}
            for name, member in self.value:
                if name not in result:
                    result[name] = member.to_python()
            return result
        if self.type is JsonType.ARRAY:
            return [item.to_python() for item in self.value]
        if self.type is JsonType.BOOLEAN:
            return bool(self.value)
        if self.type in (JsonType.NULL, JsonType.NONE):
            return None
        return self.value


JSON_VALUE_NONE = JsonValue()