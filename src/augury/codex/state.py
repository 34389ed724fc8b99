"""
State Map - Lazily decoded view of a contract's top-level state.

Construction walks the blob once in schema field order and records where
each field starts and how wide it is. Field values are decoded from
those offsets on every access; nothing is cached, so a StateMap is fully
immutable once built.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Optional

from ..errors import FieldNotFound, TypeSpecError
from ..spec.typespec import NamedRef, StructSpec, TypeRegistry, TypeSpec
from .reader import BinaryReader, ByteOrder
from .values import DecodedValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSlot:
    name: str
    spec: TypeSpec
    offset: int
    width: int


class StateMap(Mapping):
    def __init__(
        self,
        data: bytes,
        slots: dict[str, FieldSlot],
        registry: Optional[TypeRegistry] = None,
        byteorder: ByteOrder = "little",
        schema_name: str | None = None,
    ) -> None:
        self._data = bytes(data)
        self._slots = MappingProxyType(dict(slots))
        self._registry = registry
        self._byteorder = byteorder
        self.schema_name = schema_name

    @classmethod
    def decode(
        cls,
        data: bytes,
        root_schema: TypeSpec | str,
        registry: Optional[TypeRegistry] = None,
        byteorder: ByteOrder = "little",
    ) -> "StateMap":
        """
        Index a state blob against its root struct schema.

        Args:
            data: Raw serialized state
            root_schema: StructSpec, NamedRef, or the registered name of the state struct
            registry: Registry for named types referenced by the schema
            byteorder: Integer byte order of the blob

        Returns:
            StateMap over the blob

        Raises:
            BufferUnderrun: If the blob is shorter than the schema requires
            TrailingBytes: If the blob is longer than the schema describes
            UnknownType: If a walked field references an unregistered name
        """
        if isinstance(root_schema, str):
            root_schema = NamedRef(root_schema)
        reader = BinaryReader(data, registry, byteorder=byteorder)
        struct = reader.resolve(root_schema)
        if not isinstance(struct, StructSpec):
            raise TypeSpecError(f"State root must be a struct, got {getattr(struct, 'label', struct)}")

        slots: dict[str, FieldSlot] = {}
        for f in struct.fields:
            offset = reader.position
            width = reader.skip(f.spec)
            slots[f.name] = FieldSlot(f.name, f.spec, offset, width)
        reader.expect_end()

        logger.debug("Indexed state %s: %d fields over %d bytes", struct.label, len(slots), len(data))
        return cls(data, slots, registry, byteorder, schema_name=struct.name)

    def slot(self, name: str) -> FieldSlot:
        try:
            return self._slots[name]
        except KeyError:
            raise FieldNotFound(name) from None

    def get_field_value(self, name: str) -> DecodedValue:
        slot = self.slot(name)
        reader = BinaryReader(self._data, self._registry, offset=slot.offset, byteorder=self._byteorder)
        value = reader.read_value(slot.spec)
        if reader.position != slot.offset + slot.width:
            raise TypeSpecError(f"Field {name!r} decoded to a different width than indexed")
        return value

    def raw_field(self, name: str) -> bytes:
        slot = self.slot(name)
        return self._data[slot.offset:slot.offset + slot.width]

    def __getitem__(self, name: str) -> DecodedValue:
        return self.get_field_value(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __repr__(self) -> str:
        return f"StateMap({self.schema_name or 'state'}: {', '.join(self._slots)})"


def decode_state(
    data: bytes,
    schema: TypeSpec | str,
    registry: Optional[TypeRegistry] = None,
) -> StateMap:
    return StateMap.decode(data, schema, registry)
