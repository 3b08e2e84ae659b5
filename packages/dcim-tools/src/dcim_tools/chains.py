from __future__ import annotations

from typing import Iterable

from dcim_core.models.capacities import Capacities
from dcim_core.models.power import ChainLoad
from dcim_core.power.phases import calculate_imbalance, classify_utilization, utilization_percent
from rich.console import Console
from rich.table import Table

console = Console()

LEVEL_STYLE = {"critical": "red", "warning": "yellow", "ok": "green"}


def print_chain_loads(
    loads: dict[str, ChainLoad],
    capacities: Capacities,
    downed_chains: Iterable[str] = (),
) -> None:
    """Final per-phase load of each chain against its per-phase capacity, then the load breakdown."""
    downed = set(downed_chains)
    title = "UPS Chain Loads"
    if downed:
        title += f" (down: {', '.join(sorted(downed))})"

    console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    table = Table(title="Final Load per Phase (kW)")
    table.add_column("Chain", style="cyan")
    table.add_column("Status")
    table.add_column("P1", justify="right")
    table.add_column("P2", justify="right")
    table.add_column("P3", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Cap/phase", justify="right")
    table.add_column("Util", justify="right")
    table.add_column("Imbal", justify="right")

    for chain, load in sorted(loads.items()):
        capacity = capacities.chain_capacity(chain)
        if chain in downed:
            table.add_row(chain, "[red]DOWN[/red]", "-", "-", "-", "-", f"{capacity:.0f}", "-", "-", style="dim")
            continue

        pct = utilization_percent(load.final_total, capacity * 3)
        level_style = LEVEL_STYLE[classify_utilization(pct)]
        phases = [f"[red]{p:.2f}[/red]" if capacity > 0 and p > capacity else f"{p:.2f}" for p in load.final_phases]
        table.add_row(
            chain,
            "[green]UP[/green]",
            *phases,
            f"{load.final_total:.2f}",
            f"{capacity:.0f}",
            f"[{level_style}]{pct:.1f}%[/{level_style}]",
            f"{calculate_imbalance(*load.final_phases):.1f}%",
        )
    console.print(table)

    breakdown = Table(title="Load Breakdown (kW)")
    breakdown.add_column("Chain", style="cyan")
    breakdown.add_column("IT AC", justify="right")
    breakdown.add_column("IT DC", justify="right")
    breakdown.add_column("Other AC", justify="right")
    breakdown.add_column("Other DC", justify="right")
    breakdown.add_column("Transferred", justify="right")
    for chain, load in sorted(loads.items()):
        breakdown.add_row(
            chain,
            f"{load.it_ac_total:.2f}",
            f"{load.it_dc:.2f}",
            f"{load.other_ac_total:.2f}",
            f"{load.other_dc:.2f}",
            f"{load.transferred_total:.2f}",
        )
    console.print(breakdown)

    console.print("[dim]Note: DC load is counted on AC at 96% rectifier efficiency, spread over three phases.[/dim]")
