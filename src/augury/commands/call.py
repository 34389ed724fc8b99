"""
Call - One read-only contract call (eth_call).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

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


@click.command()
@chain_option
@address_option
@endpoint_option
@click.option("--abi", "abi_path", required=True, callback=existing_file, help="ABI or compiled artifact JSON")
@click.option("--function", "function_name", required=True, help="View/pure function name")
@click.option("--args", "args_json", default="[]", help="Arguments as a JSON array")
def call(
    chain: str,
    address: str,
    endpoint: Optional[str],
    abi_path: Path,
    function_name: str,
    args_json: str,
) -> None:
    """Call a view function and print the decoded result as JSON."""
    args = parse_json_args(args_json)

    async def _main():
        abi = ContractAbi.from_path(abi_path)
        async with open_connection(chain, endpoint) as connection:
            contract = connection.read_only_instance(address, abi)
            return await contract.call(function_name, *args)

    echo_json(jsonable(run(_main())))
