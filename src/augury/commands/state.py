"""
State - Decode a contract's state fields.

Fetches the serialized state of a contract from a state-reader node and
decodes it against a JSON type definition file. Fields are decoded only
when printed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..spec.schemas import load_definitions_file
from .common import address_option, chain_option, echo_json, endpoint_option, existing_file, open_connection, run


@click.command()
@chain_option
@address_option
@endpoint_option
@click.option("--schema", "schema_path", required=True, callback=existing_file, help="JSON type definitions file")
@click.option("--state-type", default=None, help="State struct name (default: the file's 'state' entry)")
@click.option("--field", "fields", multiple=True, help="Only print these fields (repeatable)")
def state(
    chain: str,
    address: str,
    endpoint: Optional[str],
    schema_path: Path,
    state_type: Optional[str],
    fields: tuple[str, ...],
) -> None:
    """
    Decode and print contract state fields as JSON.
    """
    async def _main() -> dict:
        schema = load_definitions_file(schema_path)
        async with open_connection(chain, endpoint) as connection:
            contract = connection.read_only_instance(address, schema, state_type=state_type)
            state_map = await contract.state()
            names = list(fields) or list(state_map)
            return {name: state_map.get_field_value(name).to_json() for name in names}

    echo_json(run(_main()))
