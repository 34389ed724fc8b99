"""
Binary Writer - Serialize Python values in the contract state layout.

The inverse of BinaryReader. Used to build AVL lookup keys from plain
Python values and to produce fixtures; it does not encode write-call
arguments.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from ..errors import TypeMismatch, TypeSpecError
from ..spec.typespec import (
    AvlTreeSpec,
    Kind,
    MapSpec,
    NamedRef,
    OptionSpec,
    Primitive,
    StructSpec,
    TypeRegistry,
    TypeSpec,
    VecSpec,
)
from ..utils import bytes_from_hex
from .reader import LENGTH_PREFIX_WIDTH, TREE_ID_WIDTH, ByteOrder
from .values import Address, DecodedValue, Hash


def _as_bytes(value: Any, label: str) -> bytes:
    if isinstance(value, (Hash, Address)):
        return value.value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes_from_hex(value)
    raise TypeMismatch(label, type(value).__name__)


class BinaryWriter:
    def __init__(self, registry: Optional[TypeRegistry] = None, byteorder: ByteOrder = "little") -> None:
        self.registry = registry
        self.byteorder = byteorder
        self._buf = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def write_uint(self, value: int, width: int) -> None:
        try:
            self._buf += int(value).to_bytes(width, self.byteorder, signed=False)
        except OverflowError as exc:
            raise TypeSpecError(f"{value} does not fit in u{width * 8}") from exc

    def write_int(self, value: int, width: int) -> None:
        try:
            self._buf += int(value).to_bytes(width, self.byteorder, signed=True)
        except OverflowError as exc:
            raise TypeSpecError(f"{value} does not fit in i{width * 8}") from exc

    def write_bytes(self, data: bytes) -> None:
        self._buf += data

    def write_var_bytes(self, data: bytes) -> None:
        self.write_uint(len(data), LENGTH_PREFIX_WIDTH)
        self._buf += data

    def _resolve(self, spec: TypeSpec) -> TypeSpec:
        if isinstance(spec, NamedRef):
            if self.registry is None:
                raise TypeSpecError(f"Cannot resolve {spec.name!r} without a type registry")
            return self.registry.deref(spec)
        return spec

    def _write_primitive(self, spec: Primitive, value: Any) -> None:
        kind = spec.kind
        if kind is Kind.INT:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeMismatch(spec.label, type(value).__name__)
            if spec.signed:
                self.write_int(value, spec.width)
            else:
                self.write_uint(value, spec.width)
        elif kind is Kind.BOOL:
            if not isinstance(value, bool):
                raise TypeMismatch("bool", type(value).__name__)
            self.write_uint(1 if value else 0, 1)
        elif kind is Kind.STRING:
            if not isinstance(value, str):
                raise TypeMismatch("string", type(value).__name__)
            self.write_var_bytes(value.encode("utf-8"))
        else:
            data = _as_bytes(value, spec.label)
            if spec.width is None:
                self.write_var_bytes(data)
                return
            if len(data) != spec.width:
                raise TypeSpecError(f"{spec.label} needs {spec.width} bytes, got {len(data)}")
            self.write_bytes(data)

    def write_value(self, spec: TypeSpec, value: Any) -> None:
        if isinstance(value, DecodedValue):
            value = value.value
        resolved = self._resolve(spec)

        if isinstance(resolved, Primitive):
            self._write_primitive(resolved, value)
        elif isinstance(resolved, StructSpec):
            if not isinstance(value, Mapping):
                raise TypeMismatch("struct", type(value).__name__)
            for f in resolved.fields:
                if f.name not in value:
                    raise TypeSpecError(f"Missing field {f.name!r} for {resolved.label}")
                self.write_value(f.spec, value[f.name])
        elif isinstance(resolved, VecSpec):
            items = list(value)
            self.write_uint(len(items), LENGTH_PREFIX_WIDTH)
            for item in items:
                self.write_value(resolved.element, item)
        elif isinstance(resolved, OptionSpec):
            if value is None:
                self.write_uint(0, 1)
            else:
                self.write_uint(1, 1)
                self.write_value(resolved.element, value)
        elif isinstance(resolved, MapSpec):
            pairs = list(value.items()) if isinstance(value, Mapping) else list(value)
            self.write_uint(len(pairs), LENGTH_PREFIX_WIDTH)
            for key, item in pairs:
                self.write_value(resolved.key, key)
                self.write_value(resolved.value, item)
        elif isinstance(resolved, AvlTreeSpec):
            self.write_int(value, TREE_ID_WIDTH)
        else:
            raise TypeSpecError(f"Unsupported type spec: {resolved!r}")


def encode(
    value: Any,
    spec: TypeSpec,
    registry: Optional[TypeRegistry] = None,
    byteorder: ByteOrder = "little",
) -> bytes:
    writer = BinaryWriter(registry, byteorder=byteorder)
    writer.write_value(spec, value)
    return writer.getvalue()
