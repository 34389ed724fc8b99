"""
Read-only contract instances.

An instance binds an interface to one (connection, address) pair once, so
each subsequent read needs only a method name and arguments.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

from ..codex.state import StateMap
from ..codex.values import DecodedValue
from ..errors import TypeSpecError, UnsupportedOperation
from ..spec.schemas import ContractSchema
from ..spec.typespec import NamedRef, TypeRegistry, TypeSpec
from .abi import AbiFunction, ContractAbi
from .avl import AvlAccessor, AvlTree
from .batch import BatchRequest, CallDescriptor, Outcome

if TYPE_CHECKING:
    from .chains import ChainConnection


class ReadOnlyContract:
    """EVM contract bound to an address; reads go through eth_call."""

    def __init__(self, connection: "ChainConnection", address: str, abi: ContractAbi | list) -> None:
        self.connection = connection
        self.address = address
        self.abi = abi if isinstance(abi, ContractAbi) else ContractAbi(abi)

    def _function(self, name: str, args: tuple) -> AbiFunction:
        fn = self.abi.function(name, arg_count=len(args))
        if not fn.read_only:
            raise UnsupportedOperation(f"{fn.signature} is not a view/pure function")
        return fn

    def descriptor(
        self,
        name: str,
        *args: Any,
        on_resolve: Optional[Callable[[Outcome], None]] = None,
        block: str = "latest",
    ) -> CallDescriptor:
        fn = self._function(name, args)
        return CallDescriptor(
            target_address=self.address,
            method=name,
            encoded_args=fn.encode_call(list(args)),
            result_decoder=fn.decode_result,
            on_resolve=on_resolve,
            block=block,
        )

    async def call(self, name: str, *args: Any, block: str = "latest") -> Any:
        """
        Read from the contract (eth_call).

        Returns:
            Decoded return value(s); None for empty return data
        """
        desc = self.descriptor(name, *args, block=block)
        result = await self.connection.rpc.call(desc.rpc_method, desc.params())
        return desc.result_decoder(result)

    def queue(
        self,
        batch: BatchRequest,
        name: str,
        *args: Any,
        on_resolve: Optional[Callable[[Outcome], None]] = None,
        block: str = "latest",
    ) -> int:
        """Add a read to a batch instead of sending it; returns the request id."""
        return batch.add_call(self.descriptor(name, *args, on_resolve=on_resolve, block=block))


class ReadOnlyStateContract:
    """State-chain contract bound to an address; reads decode state bytes."""

    def __init__(
        self,
        connection: "ChainConnection",
        address: str,
        schema: ContractSchema | TypeRegistry,
        state_type: Optional[str] = None,
    ) -> None:
        if isinstance(schema, ContractSchema):
            registry = schema.registry
            state_type = state_type or schema.state_type
        else:
            registry = schema
        self.connection = connection
        self.address = address
        self.registry = registry
        self.state_type = state_type
        self.avl = AvlAccessor(connection.state, address, registry)

    async def state(self, root: Optional[TypeSpec | str] = None) -> StateMap:
        root = root or self.state_type
        if root is None:
            raise TypeSpecError("No state type given for this contract")
        if isinstance(root, str):
            root = NamedRef(root)
        data = await self.connection.state.get_state(self.address)
        return StateMap.decode(data, root, self.registry)

    async def tree(
        self,
        tree_id: int,
        key_spec: TypeSpec,
        value_spec: TypeSpec | str,
        is_named_value: bool = False,
    ) -> AvlTree:
        return await self.avl.bulk_read(tree_id, key_spec, value_spec, is_named_value)

    async def tree_value(
        self,
        tree_id: int,
        key: Any,
        key_spec: TypeSpec,
        value_spec: TypeSpec | str,
    ) -> Optional[DecodedValue]:
        return await self.avl.fetch_by_key(tree_id, key, key_spec, value_spec)
