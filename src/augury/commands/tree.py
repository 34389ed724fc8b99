"""
Tree - Read an AVL tree from contract state.

Without --key the whole tree is downloaded and decoded. With --key only
the value stored under that key is fetched; the node walks the tree.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from ..spec.schemas import load_definitions_file, parse_type
from ..spec.typespec import NamedRef, TypeRegistry
from .common import address_option, chain_option, echo_json, endpoint_option, existing_file, open_connection, parse_key, run


@click.command()
@chain_option
@address_option
@endpoint_option
@click.option("--tree-id", type=int, required=True, help="AVL tree id within the contract state")
@click.option("--key-type", required=True, help="Key type, e.g. u64, address, hash")
@click.option("--value-type", required=True, help="Value type; a name refers to a type in --schema")
@click.option("--schema", "schema_path", default=None, callback=existing_file, help="JSON type definitions file")
@click.option("--key", default=None, help="Fetch only this key (JSON value or hex string)")
@click.option("--limit", type=int, default=None, help="Print at most this many entries")
def tree(
    chain: str,
    address: str,
    endpoint: Optional[str],
    tree_id: int,
    key_type: str,
    value_type: str,
    schema_path: Optional[Path],
    key: Optional[str],
    limit: Optional[int],
) -> None:
    """
    Print AVL tree entries, or one value with --key.
    """
    key_spec = parse_type(key_type)
    value_spec = parse_type(value_type)
    is_named = isinstance(value_spec, NamedRef)

    async def _main():
        registry = load_definitions_file(schema_path).registry if schema_path else TypeRegistry()
        async with open_connection(chain, endpoint) as connection:
            contract = connection.read_only_instance(address, registry)
            if key is not None:
                value = await contract.avl.fetch_by_key(tree_id, parse_key(key, key_spec), key_spec, value_spec, is_named)
                return None if value is None else value.to_json()
            entries = await contract.avl.bulk_read(tree_id, key_spec, value_spec, is_named)
            shown = entries[:limit] if limit is not None else entries
            return [{"key": e.key.to_json(), "value": e.value.to_json()} for e in shown]

    result = run(_main())
    if key is not None and result is None:
        click.secho(f"Key {key} not found in tree {tree_id}", fg="yellow", err=True)
        sys.exit(4)
    echo_json(result)
