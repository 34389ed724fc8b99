"""
Connection Resolver - Map chain identifiers to endpoints and dialects.

A ChainDefinition says how to talk to a chain: which protocol dialect
("evm" for JSON-RPC eth_call nodes, "partisia" for state-reader REST
nodes) and which endpoint. ChainResolver.connect() turns it into a
ChainConnection that owns the HTTP client and hands out read-only
contract instances.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Optional

import httpx

from ..config import endpoint_override, get_timeout
from ..errors import UnknownChain, UnsupportedOperation
from .batch import BatchRequest
from .rest import StateRestTransport
from .rpc import JsonRpcTransport

logger = logging.getLogger(__name__)

EVM = "evm"
PARTISIA = "partisia"
DIALECTS = (EVM, PARTISIA)


@dataclass(frozen=True)
class ChainDefinition:
    identifier: str
    dialect: str
    endpoint_url: str
    read_only: bool = True
    chain_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.dialect not in DIALECTS:
            raise ValueError(f"Unknown protocol dialect {self.dialect!r}; expected one of {DIALECTS}")


DEFAULT_CHAINS = (
    ChainDefinition("partisia-testnet", PARTISIA, "https://node1.testnet.partisiablockchain.com"),
    ChainDefinition("partisia-mainnet", PARTISIA, "https://reader.partisiablockchain.com"),
    ChainDefinition("ethereum-mainnet", EVM, "https://ethereum-rpc.publicnode.com", chain_id=1),
    ChainDefinition("ethereum-sepolia", EVM, "https://ethereum-sepolia-rpc.publicnode.com", chain_id=11155111),
    ChainDefinition("base-sepolia", EVM, "https://sepolia.base.org", chain_id=84532),
)


class ChainResolver:
    """Append-only registry of chain definitions."""

    def __init__(self, definitions: tuple[ChainDefinition, ...] | list[ChainDefinition] = DEFAULT_CHAINS) -> None:
        self._chains: dict[str, ChainDefinition] = {}
        self._lock = threading.Lock()
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ChainDefinition) -> None:
        with self._lock:
            if definition.identifier in self._chains:
                raise ValueError(f"Chain {definition.identifier!r} is already registered")
            self._chains[definition.identifier] = definition

    def identifiers(self) -> list[str]:
        return sorted(self._chains)

    def resolve(self, identifier: str) -> ChainDefinition:
        """
        Resolve a chain identifier.

        Endpoint overrides from AUGURY_RPC_<CHAIN> take precedence over the
        registered endpoint.

        Raises:
            UnknownChain: If the identifier was never registered
        """
        try:
            definition = self._chains[identifier]
        except KeyError:
            raise UnknownChain(identifier) from None
        override = endpoint_override(identifier)
        if override:
            definition = replace(definition, endpoint_url=override)
        return definition

    def connect(
        self,
        identifier: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> "ChainConnection":
        return ChainConnection(self.resolve(identifier), client=client, timeout=timeout)


class ChainConnection:
    """
    Transport bound to one chain. Use as an async context manager so the
    HTTP client is closed.
    """

    def __init__(
        self,
        definition: ChainDefinition,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        owns_client: Optional[bool] = None,
    ) -> None:
        self.definition = definition
        self._owns_client = client is None if owns_client is None else owns_client
        self.client = client or httpx.AsyncClient(timeout=timeout if timeout is not None else get_timeout())
        self._rpc: Optional[JsonRpcTransport] = None
        self._state: Optional[StateRestTransport] = None
        logger.debug("Connected to %s (%s) at %s", definition.identifier, definition.dialect, definition.endpoint_url)

    @property
    def dialect(self) -> str:
        return self.definition.dialect

    @property
    def rpc(self) -> JsonRpcTransport:
        if self.dialect != EVM:
            raise UnsupportedOperation(f"{self.definition.identifier} does not speak JSON-RPC")
        if self._rpc is None:
            self._rpc = JsonRpcTransport(self.definition.endpoint_url, client=self.client)
        return self._rpc

    @property
    def state(self) -> StateRestTransport:
        if self.dialect != PARTISIA:
            raise UnsupportedOperation(f"{self.definition.identifier} has no state-reader API")
        if self._state is None:
            self._state = StateRestTransport(self.definition.endpoint_url, client=self.client)
        return self._state

    def batch(self) -> BatchRequest:
        return BatchRequest(self.rpc)

    def read_only_instance(self, address: str, interface: Any, state_type: Optional[str] = None):
        """
        Bind a contract interface to one address on this chain.

        Args:
            address: Contract address
            interface: ContractAbi / ABI list for EVM chains;
                       ContractSchema / TypeRegistry for state chains
            state_type: Name of the state struct (state chains only)
        """
        from ..spec.schemas import ContractSchema
        from ..spec.typespec import TypeRegistry
        from .abi import ContractAbi
        from .contract import ReadOnlyContract, ReadOnlyStateContract

        if self.dialect == EVM:
            if not isinstance(interface, (ContractAbi, list)):
                raise UnsupportedOperation(f"{self.definition.identifier} contracts need an ABI")
            return ReadOnlyContract(self, address, interface)
        if not isinstance(interface, (ContractSchema, TypeRegistry)):
            raise UnsupportedOperation(f"{self.definition.identifier} contracts need type definitions, not an ABI")
        return ReadOnlyStateContract(self, address, interface, state_type=state_type)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "ChainConnection":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
