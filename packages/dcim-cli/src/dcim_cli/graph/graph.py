import sys

import click
from rich.console import Console

console = Console()


@click.group()
def graph():
    """Graphviz renderings of the power topology."""
    pass


@graph.command()
@click.option(
    "--snapshot",
    type=click.Path(path_type=str, dir_okay=False, exists=False),
    default="doctrine/snapshot.yaml",
    show_default=True,
    help="Store snapshot to render.",
)
@click.option(
    "--routing",
    type=click.Path(path_type=str, dir_okay=False, exists=False),
    default="doctrine/routing.yaml",
    show_default=True,
    help="Room -> chain routing YAML.",
)
@click.option(
    "--down",
    "downed",
    type=click.Choice(["A", "B", "C"], case_sensitive=False),
    multiple=True,
    help="Grey out a downed chain (repeatable).",
)
@click.option("--output", default="dcim_power_topology.dot", show_default=True, help="Output .dot path.")
@click.option("--source-only", is_flag=True, help="Write the .dot source without running graphviz.")
def power(snapshot: str, routing: str, downed: tuple[str, ...], output: str, source_only: bool):
    """Chain -> room -> rack power topology."""
    try:
        from dcim_core.data import load_routing, load_snapshot
        from dcim_graph.render import render_power_topology

        dot = render_power_topology(
            load_snapshot(snapshot), sorted({c.upper() for c in downed}), load_routing(routing)
        )
        if source_only:
            dot.save(output)
        else:
            dot.render(output)
        console.print(f"[green]✓[/green] Power topology written to {output}")
    except Exception as e:
        console.print(f"[red]Error rendering power topology: {e}[/red]")
        sys.exit(1)
