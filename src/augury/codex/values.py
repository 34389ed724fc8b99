"""
Decoded values and their typed projections.

Every DecodedValue carries the (resolved) TypeSpec it was decoded with.
Projections check that spec and raise TypeMismatch instead of coercing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, Optional

from ..errors import FieldNotFound, TypeMismatch
from ..spec.typespec import (
    AvlTreeSpec,
    Kind,
    MapSpec,
    OptionSpec,
    Primitive,
    StructSpec,
    TypeSpec,
    VecSpec,
)

# Integers up to 32 bits are "numbers"; wider ones are big integers.
NUMBER_MAX_WIDTH = 4


@dataclass(frozen=True)
class Hash:
    value: bytes

    def hex(self) -> str:
        return self.value.hex()

    def __str__(self) -> str:
        return self.value.hex()


@dataclass(frozen=True)
class Address:
    value: bytes

    def hex(self) -> str:
        return self.value.hex()

    def __str__(self) -> str:
        return self.value.hex()


class StructValue(Mapping):
    """Ordered, read-only field map of a decoded struct."""

    def __init__(self, name: str | None, fields: dict[str, "DecodedValue"]) -> None:
        self._name = name
        self._fields = MappingProxyType(dict(fields))

    @property
    def name(self) -> str | None:
        return self._name

    def get_field_value(self, name: str) -> "DecodedValue":
        try:
            return self._fields[name]
        except KeyError:
            raise FieldNotFound(name) from None

    def __getitem__(self, name: str) -> "DecodedValue":
        return self.get_field_value(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructValue):
            return NotImplemented
        return self._name == other._name and list(self._fields.items()) == list(other._fields.items())

    def __hash__(self) -> int:
        return hash((self._name, tuple(self._fields.items())))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v.value!r}" for k, v in self._fields.items())
        return f"StructValue({self._name or 'struct'}: {inner})"


def category(spec: TypeSpec) -> str:
    """Human-readable category of a resolved spec, used in mismatch errors."""
    if isinstance(spec, Primitive):
        if spec.kind is Kind.INT:
            return "number" if spec.width <= NUMBER_MAX_WIDTH else "big integer"
        return spec.kind.value
    if isinstance(spec, StructSpec):
        return "struct"
    if isinstance(spec, VecSpec):
        return "vec"
    if isinstance(spec, OptionSpec):
        return "option"
    if isinstance(spec, MapSpec):
        return "map"
    if isinstance(spec, AvlTreeSpec):
        return "avl tree"
    return type(spec).__name__


@dataclass(frozen=True)
class DecodedValue:
    spec: TypeSpec
    value: Any

    @property
    def category(self) -> str:
        return category(self.spec)

    def _expect(self, expected: str) -> Any:
        actual = self.category
        if actual != expected:
            raise TypeMismatch(expected, actual)
        return self.value

    def as_number(self) -> int:
        return self._expect("number")

    def as_bn(self) -> int:
        return self._expect("big integer")

    def as_bool(self) -> bool:
        return self._expect("bool")

    def as_string(self) -> str:
        return self._expect("string")

    def bytes_value(self) -> bytes:
        return self._expect("bytes")

    def hash_value(self) -> Hash:
        return self._expect("hash")

    def address_value(self) -> Address:
        return self._expect("address")

    def struct_value(self) -> StructValue:
        return self._expect("struct")

    def vec_value(self) -> tuple["DecodedValue", ...]:
        return self._expect("vec")

    def option_value(self) -> Optional["DecodedValue"]:
        return self._expect("option")

    def map_value(self) -> tuple[tuple["DecodedValue", "DecodedValue"], ...]:
        return self._expect("map")

    def tree_id(self) -> int:
        return self._expect("avl tree")

    def plain(self) -> Any:
        """Hashable Python rendering; byte-like values compare as raw bytes."""
        value = self.value
        if isinstance(value, (Hash, Address)):
            return value.value
        if isinstance(value, StructValue):
            return tuple((name, field.plain()) for name, field in value.items())
        cat = self.category
        if cat == "vec":
            return tuple(item.plain() for item in value)
        if cat == "option":
            return None if value is None else value.plain()
        if cat == "map":
            return tuple((k.plain(), v.plain()) for k, v in value)
        return value

    def to_json(self) -> Any:
        value = self.value
        if isinstance(value, (Hash, Address)):
            return value.hex()
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).hex()
        if isinstance(value, StructValue):
            return {name: field.to_json() for name, field in value.items()}
        cat = self.category
        if cat == "vec":
            return [item.to_json() for item in value]
        if cat == "option":
            return None if value is None else value.to_json()
        if cat == "map":
            return [[k.to_json(), v.to_json()] for k, v in value]
        if cat == "big integer":
            return str(value)
        return value
