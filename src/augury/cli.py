"""
Augury CLI

Command-line interface for reading smart-contract state.

Commands:
  chains  - List known chains and their endpoints
  state   - Decode a contract's state fields
  tree    - Read an AVL tree (whole tree or a single key)
  call    - Make one read-only contract call
  batch   - Make several read-only calls in one round trip
"""

from __future__ import annotations

import logging

import click

from .config import load_env

VERSION = "0.3.0"


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="augury")
@click.option("-v", "--verbose", is_flag=True, help="Log network round trips and decode passes")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Augury: read-only smart-contract state client."""
    load_env()
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


from .commands.batch import batch
from .commands.call import call
from .commands.chains import chains
from .commands.state import state
from .commands.tree import tree

cli.add_command(chains)
cli.add_command(state)
cli.add_command(tree)
cli.add_command(call)
cli.add_command(batch)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
