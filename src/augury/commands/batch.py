"""
Batch - Several read-only calls in one JSON-RPC round trip.

Each --function is either NAME or NAME=JSON_ARGS. Calls that fail
individually are reported in place; the command exits non-zero only
when the batch as a whole could not be delivered.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..errors import CallFailed
from ..pneuma.abi import ContractAbi
from .common import (
    address_option,
    chain_option,
    echo_json,
    endpoint_option,
    existing_file,
    jsonable,
    open_connection,
    parse_json_args,
    run,
)


def parse_call(text: str) -> tuple[str, list]:
    name, sep, args_json = text.partition("=")
    if not name:
        raise click.BadParameter(f"Missing function name in {text!r}")
    return name, parse_json_args(args_json) if sep else []


@click.command()
@chain_option
@address_option
@endpoint_option
@click.option("--abi", "abi_path", required=True, callback=existing_file, help="ABI or compiled artifact JSON")
@click.option("--function", "functions", multiple=True, required=True, help="NAME or NAME=JSON_ARGS (repeatable)")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for the whole batch")
def batch(
    chain: str,
    address: str,
    endpoint: Optional[str],
    abi_path: Path,
    functions: tuple[str, ...],
    timeout: Optional[float],
) -> None:
    """
    Queue several view calls and send them as one batch.
    """
    calls = [parse_call(text) for text in functions]
    results: list[dict] = []

    def _collector(label: str):
        def on_resolve(outcome):
            if isinstance(outcome, CallFailed):
                results.append({"call": label, "error": outcome.message, "code": outcome.code})
            else:
                results.append({"call": label, "result": jsonable(outcome)})
        return on_resolve

    async def _main() -> None:
        abi = ContractAbi.from_path(abi_path)
        async with open_connection(chain, endpoint) as connection:
            contract = connection.read_only_instance(address, abi)
            request = connection.batch()
            for name, args in calls:
                contract.queue(request, name, *args, on_resolve=_collector(name))
            await request.execute(timeout=timeout)

    run(_main())
    echo_json(results)
