"""testnet command-line interface."""

import click

from testnet import __version__
from testnet.commands import join, launch


@click.group()
@click.version_option(version=__version__, prog_name="testnet")
def cli() -> None:
    """testnet - Local multi-node test network launcher.

    Starts a genesis node, hands its contacts to the nodes that follow,
    and fails fast when a node does not survive startup.
    """


cli.add_command(launch)
cli.add_command(join)


if __name__ == "__main__":
    cli()
