"""
AVL Tree Accessor - Read large on-chain key/value trees.

Two strategies:
- bulk_read: download the whole serialized tree in one call and decode
  every entry. O(n) latency and memory; meant for trees up to roughly a
  million entries (a guideline, not enforced).
- fetch_by_key: let the node walk the tree and return only the value for
  one serialized key. Cost is independent of tree size. An absent key
  yields None.

Both decode values through the same struct path as contract state, so
named value types resolve through the registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from collections.abc import Sequence
from typing import Any, Callable, Iterator, Optional

from ..codex.reader import decode
from ..codex.values import Address, DecodedValue, Hash
from ..codex.writer import encode
from ..errors import DecodeError, DuplicateKey, TypeSpecError
from ..spec.typespec import Kind, MapSpec, NamedRef, Primitive, StructSpec, TypeRegistry, TypeSpec
from ..utils import bytes_from_hex
from .rest import StateTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvlTreeHandle:
    tree_id: int
    key_spec: TypeSpec
    value_spec: TypeSpec
    is_named_value: bool = False


@dataclass(frozen=True)
class AvlEntry:
    key: DecodedValue
    value: DecodedValue


def _key_target(key: Any, spec: TypeSpec) -> Any:
    """Normalize a lookup key to the form DecodedValue.plain() produces."""
    if isinstance(key, DecodedValue):
        return key.plain()
    if isinstance(key, (Hash, Address)):
        return key.value
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    if isinstance(key, str) and isinstance(spec, Primitive) and spec.kind in (
        Kind.HASH, Kind.ADDRESS, Kind.BYTES,
    ):
        return bytes_from_hex(key)
    return key


class AvlTree(Sequence):
    """Decoded entries of one tree, in the order the node delivered them."""

    def __init__(self, handle: AvlTreeHandle, entries: list[AvlEntry], key_spec: TypeSpec) -> None:
        self.handle = handle
        self._entries = tuple(entries)
        self._key_spec = key_spec

    def __getitem__(self, index):
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AvlEntry]:
        return iter(self._entries)

    def filter(self, predicate: Callable[[AvlEntry], bool]) -> list[AvlEntry]:
        return [entry for entry in self._entries if predicate(entry)]

    def find(self, key: Any) -> Optional[AvlEntry]:
        """
        Find the entry whose decoded key equals `key`.

        Numeric keys compare numerically; hash, address and bytes keys
        compare as exact bytes (raw bytes, hex strings, Hash/Address and
        DecodedValue are all accepted).
        """
        target = _key_target(key, self._key_spec)
        for entry in self._entries:
            if entry.key.plain() == target:
                return entry
        return None

    def get(self, key: Any, default: Optional[DecodedValue] = None) -> Optional[DecodedValue]:
        entry = self.find(key)
        return entry.value if entry is not None else default


class AvlAccessor:
    def __init__(
        self,
        transport: StateTransport,
        address: str,
        registry: Optional[TypeRegistry] = None,
    ) -> None:
        self.transport = transport
        self.address = address
        self.registry = registry if registry is not None else TypeRegistry()

    def handle(
        self,
        tree_id: int,
        key_spec: TypeSpec,
        value_spec: TypeSpec | str,
        is_named_value: bool = False,
    ) -> AvlTreeHandle:
        if is_named_value:
            if isinstance(value_spec, str):
                value_spec = NamedRef(value_spec)
            if not isinstance(value_spec, NamedRef):
                raise TypeSpecError("A named value type must be given by name")
        elif isinstance(value_spec, (str, NamedRef)):
            raise TypeSpecError("Named value types require is_named_value=True")
        return AvlTreeHandle(tree_id, key_spec, value_spec, is_named_value)

    def decode_tree(self, handle: AvlTreeHandle, data: bytes) -> AvlTree:
        """Decode a serialized tree (u32 count + key/value pairs)."""
        decoded = decode(data, MapSpec(handle.key_spec, handle.value_spec), self.registry)
        entries: list[AvlEntry] = []
        seen: set[Any] = set()
        for key, value in decoded.map_value():
            plain = key.plain()
            if plain in seen:
                raise DuplicateKey(f"Tree {handle.tree_id} holds key {key.to_json()!r} more than once")
            seen.add(plain)
            entries.append(AvlEntry(key, value))
        return AvlTree(handle, entries, self.registry.deref(handle.key_spec))

    async def bulk_read(
        self,
        tree_id: int,
        key_spec: TypeSpec,
        value_spec: TypeSpec | str,
        is_named_value: bool = False,
    ) -> AvlTree:
        handle = self.handle(tree_id, key_spec, value_spec, is_named_value)
        data = await self.transport.get_avl_tree(self.address, tree_id)
        tree = self.decode_tree(handle, data)
        logger.debug("Materialized AVL tree %d of %s: %d entries", tree_id, self.address, len(tree))
        return tree

    def _zero_width(self, spec: TypeSpec) -> bool:
        resolved = self.registry.deref(spec)
        return isinstance(resolved, StructSpec) and all(self._zero_width(f.spec) for f in resolved.fields)

    def serialize_key(self, key: Any, key_spec: TypeSpec) -> bytes:
        """
        Serialize a lookup key.

        Raw bytes are validated against the key spec; any other value is
        encoded with it.
        """
        if isinstance(key, (bytes, bytearray)):
            key = bytes(key)
            try:
                decode(key, key_spec, self.registry)
            except DecodeError as exc:
                raise TypeSpecError(f"Key bytes do not match key type: {exc}") from exc
            return key
        return encode(key, key_spec, self.registry)

    async def fetch_by_key(
        self,
        tree_id: int,
        key: Any,
        key_spec: TypeSpec,
        value_spec: TypeSpec | str,
        is_named_value: Optional[bool] = None,
    ) -> Optional[DecodedValue]:
        """
        Fetch and decode the value stored under one key.

        Args:
            tree_id: Tree id within the contract state
            key: Serialized key bytes, or a value to serialize with key_spec
            key_spec: Key type
            value_spec: Value type (a name string means a named type)
            is_named_value: Defaults to True when value_spec is a name

        Returns:
            The decoded value, or None when the tree has no such key
        """
        if is_named_value is None:
            is_named_value = isinstance(value_spec, (str, NamedRef))
        handle = self.handle(tree_id, key_spec, value_spec, is_named_value)
        key_bytes = self.serialize_key(key, key_spec)
        data = await self.transport.get_avl_value(self.address, tree_id, key_bytes)
        if data is None or (not data and not self._zero_width(handle.value_spec)):
            logger.debug("AVL tree %d of %s has no key %s", tree_id, self.address, key_bytes.hex())
            return None
        return decode(data, handle.value_spec, self.registry)
