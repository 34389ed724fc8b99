"""
Batch RPC Aggregator - many independent read calls, one round trip.

Calls are queued without touching the network. execute() sends them as a
single JSON-RPC batch, matches every response to its call by request id,
and resolves handlers in queue order.

Failure semantics:
- Transport failure or timeout: execute() raises, no handler fires.
- Error embedded for one call: only that call resolves to CallFailed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from ..config import get_batch_timeout
from ..errors import BatchClosed, CallFailed, NetworkFailure, Timeout
from .rpc import RpcTransport, build_request

logger = logging.getLogger(__name__)

Outcome = Union[Any, CallFailed]


@dataclass(frozen=True)
class CallDescriptor:
    """
    One queued read call.

    Attributes:
        target_address: Contract the call is made against
        method: Human-readable method name (for logs and errors)
        encoded_args: 0x-prefixed calldata
        result_decoder: Turns the raw hex result into a value
        on_resolve: Receives the decoded value or a CallFailed
        rpc_method: JSON-RPC method used to carry the call
        block: Block tag the call is evaluated at
    """
    target_address: str
    method: str
    encoded_args: str
    result_decoder: Optional[Callable[[Any], Any]] = None
    on_resolve: Optional[Callable[[Outcome], None]] = None
    rpc_method: str = "eth_call"
    block: str = "latest"

    def params(self) -> list:
        return [{"to": self.target_address, "data": self.encoded_args}, self.block]


class BatchRequest:
    """Open until execute() is called; closed for good afterwards."""

    def __init__(self, connection: RpcTransport) -> None:
        self.connection = connection
        self._pending: list[tuple[int, CallDescriptor]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_calls(self) -> tuple[CallDescriptor, ...]:
        return tuple(desc for _, desc in self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def add_call(self, descriptor: CallDescriptor) -> int:
        """Queue a call; returns its request id."""
        if self._closed:
            raise BatchClosed("Cannot add calls to a batch that has been executed")
        request_id = self.connection.next_id()
        self._pending.append((request_id, descriptor))
        return request_id

    async def execute(self, timeout: Optional[float] = None) -> list[Outcome]:
        """
        Send all queued calls as one batch and resolve their handlers.

        Args:
            timeout: Seconds to wait for the whole batch (default: AUGURY_BATCH_TIMEOUT or 20)

        Returns:
            One outcome per queued call, in queue order: the decoded value,
            or a CallFailed for calls that failed individually

        Raises:
            BatchClosed: If the batch was already executed
            Timeout: If no complete response arrived in time
            NetworkFailure: If the batch could not be delivered
        """
        if self._closed:
            raise BatchClosed("Batch has already been executed")
        self._closed = True

        if not self._pending:
            return []

        timeout = timeout if timeout is not None else get_batch_timeout()
        requests = [build_request(desc.rpc_method, desc.params(), rid) for rid, desc in self._pending]

        try:
            envelopes = await asyncio.wait_for(self.connection.send_batch(requests), timeout)
        except asyncio.TimeoutError as exc:
            raise Timeout(f"Batch of {len(requests)} calls timed out after {timeout}s") from exc

        by_id: dict[Any, dict[str, Any]] = {}
        for envelope in envelopes:
            if not isinstance(envelope, dict) or "id" not in envelope:
                raise NetworkFailure(f"Malformed batch response entry: {envelope!r}")
            by_id[envelope["id"]] = envelope

        outcomes = [self._outcome(rid, desc, by_id.get(rid)) for rid, desc in self._pending]
        failed = sum(1 for o in outcomes if isinstance(o, CallFailed))
        logger.debug("Batch of %d calls resolved, %d failed", len(outcomes), failed)

        for (_, desc), outcome in zip(self._pending, outcomes):
            if desc.on_resolve is not None:
                desc.on_resolve(outcome)
        return outcomes

    @staticmethod
    def _outcome(request_id: int, desc: CallDescriptor, envelope: Optional[dict[str, Any]]) -> Outcome:
        if envelope is None:
            return CallFailed(f"No response for {desc.method}", request_id=request_id)
        if "error" in envelope:
            return CallFailed.from_rpc_error(envelope["error"], request_id=request_id)
        result = envelope.get("result")
        if desc.result_decoder is None:
            return result
        try:
            return desc.result_decoder(result)
        except Exception as exc:  # decoder failures belong to this call only
            failure = CallFailed(f"Cannot decode {desc.method} result: {exc}", request_id=request_id)
            failure.__cause__ = exc
            return failure
