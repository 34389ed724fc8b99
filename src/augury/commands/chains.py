"""
Chains - List the chains Augury can connect to.
"""

from __future__ import annotations

import click

from .common import build_resolver


@click.command()
def chains() -> None:
    """List known chains, their dialect and endpoint."""
    resolver = build_resolver()
    for identifier in resolver.identifiers():
        definition = resolver.resolve(identifier)
        chain_id = f"  chain id {definition.chain_id}" if definition.chain_id is not None else ""
        click.echo(f"  {identifier:<20} {definition.dialect:<9} {definition.endpoint_url}{chain_id}")
