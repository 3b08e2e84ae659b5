import logging

import click
from dcim_cli.graph.graph import graph
from dcim_cli.power.power import power
from dcim_core.codebase.debug import configure_spy_logger, spy_enabled


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log snapshot loading and engine warnings.")
def cli(verbose: bool):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if spy_enabled():
        configure_spy_logger()


# add cli groups here

cli.add_command(graph)
cli.add_command(power)
