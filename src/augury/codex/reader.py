"""
Binary Reader - Cursor-based decoding of contract state bytes.

Integers are little-endian by default (contract state layout); pass
byteorder="big" for big-endian payloads. Every read advances the cursor
by exactly the consumed width and fails with BufferUnderrun when the
buffer runs out.

A reader owns its cursor. Never share one reader between concurrent
decodes; create a new reader over the same bytes instead.
"""

from __future__ import annotations

from typing import Literal, Optional

from ..errors import BufferUnderrun, DecodeError, TrailingBytes, TypeSpecError
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
from .values import Address, DecodedValue, Hash, StructValue

LENGTH_PREFIX_WIDTH = 4
TREE_ID_WIDTH = 4

ByteOrder = Literal["little", "big"]


class BinaryReader:
    def __init__(
        self,
        data: bytes,
        registry: Optional[TypeRegistry] = None,
        *,
        offset: int = 0,
        byteorder: ByteOrder = "little",
    ) -> None:
        if offset < 0 or offset > len(data):
            raise ValueError(f"Offset {offset} outside buffer of {len(data)} bytes")
        self._data = bytes(data)
        self._pos = offset
        self.registry = registry
        self.byteorder = byteorder

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos == len(self._data)

    def expect_end(self) -> None:
        if not self.at_end():
            raise TrailingBytes(self._pos, len(self._data))

    def _take(self, n: int) -> bytes:
        if n < 0:
            raise DecodeError(f"Negative read length {n}")
        if n > self.remaining:
            raise BufferUnderrun(self._pos, n, self.remaining)
        chunk = self._data[self._pos:self._pos + n]
        self._pos += n
        return chunk

    # ============ Primitive reads ============

    def read_uint(self, width: int) -> int:
        return int.from_bytes(self._take(width), self.byteorder, signed=False)

    def read_int(self, width: int) -> int:
        return int.from_bytes(self._take(width), self.byteorder, signed=True)

    def read_u8(self) -> int:
        return self.read_uint(1)

    def read_u16(self) -> int:
        return self.read_uint(2)

    def read_u32(self) -> int:
        return self.read_uint(4)

    def read_u64(self) -> int:
        return self.read_uint(8)

    def read_u128(self) -> int:
        return self.read_uint(16)

    def read_bool(self) -> bool:
        offset = self._pos
        byte = self.read_u8()
        if byte not in (0, 1):
            raise DecodeError(f"Invalid bool byte {byte:#04x} at offset {offset}")
        return byte == 1

    def read_bytes(self, length: int) -> bytes:
        return self._take(length)

    def read_var_bytes(self) -> bytes:
        length = self.read_uint(LENGTH_PREFIX_WIDTH)
        return self._take(length)

    def read_string(self) -> str:
        offset = self._pos
        raw = self.read_var_bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Invalid UTF-8 string at offset {offset}") from exc

    def read_hash(self, width: int = 32) -> Hash:
        return Hash(self._take(width))

    def read_address(self, width: int = 21) -> Address:
        return Address(self._take(width))

    # ============ Schema-driven reads ============

    def resolve(self, spec: TypeSpec) -> TypeSpec:
        if isinstance(spec, NamedRef):
            if self.registry is None:
                raise TypeSpecError(f"Cannot resolve {spec.name!r} without a type registry")
            return self.registry.deref(spec)
        return spec

    def _read_primitive(self, spec: Primitive):
        kind = spec.kind
        if kind is Kind.INT:
            return self.read_int(spec.width) if spec.signed else self.read_uint(spec.width)
        if kind is Kind.BOOL:
            return self.read_bool()
        if kind is Kind.HASH:
            return self.read_hash(spec.width)
        if kind is Kind.ADDRESS:
            return self.read_address(spec.width)
        if kind is Kind.BYTES:
            return self.read_var_bytes() if spec.width is None else self.read_bytes(spec.width)
        if kind is Kind.STRING:
            return self.read_string()
        raise TypeSpecError(f"Unsupported primitive kind: {kind}")

    def read_value(self, spec: TypeSpec) -> DecodedValue:
        resolved = self.resolve(spec)

        if isinstance(resolved, Primitive):
            return DecodedValue(resolved, self._read_primitive(resolved))
        if isinstance(resolved, StructSpec):
            return self.read_struct(resolved)
        if isinstance(resolved, VecSpec):
            count = self.read_uint(LENGTH_PREFIX_WIDTH)
            return DecodedValue(resolved, tuple(self.read_value(resolved.element) for _ in range(count)))
        if isinstance(resolved, OptionSpec):
            if self._read_option_tag():
                return DecodedValue(resolved, self.read_value(resolved.element))
            return DecodedValue(resolved, None)
        if isinstance(resolved, MapSpec):
            count = self.read_uint(LENGTH_PREFIX_WIDTH)
            pairs = []
            for _ in range(count):
                key = self.read_value(resolved.key)
                pairs.append((key, self.read_value(resolved.value)))
            return DecodedValue(resolved, tuple(pairs))
        if isinstance(resolved, AvlTreeSpec):
            return DecodedValue(resolved, self.read_int(TREE_ID_WIDTH))
        raise TypeSpecError(f"Unsupported type spec: {resolved!r}")

    def read_struct(self, spec: StructSpec | NamedRef) -> DecodedValue:
        """Decode every field of a struct in declaration order."""
        resolved = self.resolve(spec)
        if not isinstance(resolved, StructSpec):
            raise TypeSpecError(f"{getattr(resolved, 'label', resolved)} is not a struct")
        fields = {f.name: self.read_value(f.spec) for f in resolved.fields}
        return DecodedValue(resolved, StructValue(resolved.name, fields))

    def _read_option_tag(self) -> bool:
        offset = self._pos
        tag = self.read_u8()
        if tag not in (0, 1):
            raise DecodeError(f"Invalid option tag {tag:#04x} at offset {offset}")
        return tag == 1

    def skip(self, spec: TypeSpec) -> int:
        """Advance past one value without materializing it; returns its width."""
        start = self._pos
        resolved = self.resolve(spec)

        if isinstance(resolved, Primitive):
            if resolved.width is None:
                self._take(self.read_uint(LENGTH_PREFIX_WIDTH))
            else:
                self._take(resolved.width)
        elif isinstance(resolved, StructSpec):
            for f in resolved.fields:
                self.skip(f.spec)
        elif isinstance(resolved, VecSpec):
            for _ in range(self.read_uint(LENGTH_PREFIX_WIDTH)):
                self.skip(resolved.element)
        elif isinstance(resolved, OptionSpec):
            if self._read_option_tag():
                self.skip(resolved.element)
        elif isinstance(resolved, MapSpec):
            for _ in range(self.read_uint(LENGTH_PREFIX_WIDTH)):
                self.skip(resolved.key)
                self.skip(resolved.value)
        elif isinstance(resolved, AvlTreeSpec):
            self._take(TREE_ID_WIDTH)
        else:
            raise TypeSpecError(f"Unsupported type spec: {resolved!r}")
        return self._pos - start


def decode(
    data: bytes,
    spec: TypeSpec,
    registry: Optional[TypeRegistry] = None,
    byteorder: ByteOrder = "little",
) -> DecodedValue:
    """Decode exactly one value that must span the whole buffer."""
    reader = BinaryReader(data, registry, byteorder=byteorder)
    value = reader.read_value(spec)
    reader.expect_end()
    return value
