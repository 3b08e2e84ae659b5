from __future__ import annotations

from dcim_core.models.capacities import Capacities
from dcim_core.models.power import CanalisReport, RectifierReport
from dcim_core.power.phases import classify_utilization, utilization_percent
from rich.console import Console
from rich.table import Table

from dcim_tools.chains import LEVEL_STYLE

console = Console()


def _pct_cell(value: float, capacity: float) -> str:
    pct = utilization_percent(value, capacity)
    style = LEVEL_STYLE[classify_utilization(pct)]
    return f"[{style}]{pct:.1f}%[/{style}]"


def print_rectifier_report(
    report: dict[str, dict[str, RectifierReport]],
    capacities: Capacities,
    *,
    details: bool = False,
) -> None:
    """N+1 view of the DC plant: per room, each rectifier and its panels."""
    console.print("\n[bold cyan]DC Rectifier N+1 Analysis[/bold cyan]")
    console.print(
        f"[dim]Reference capacities: rectifier {capacities.rectifier_kw:.0f} kW, "
        f"panel on failure {capacities.dc_panel_failover_kw:.0f} kW[/dim]"
    )

    if not report:
        console.print("\n[yellow]No DC panels with a rectifier id found.[/yellow]")
        return

    for room, rectifiers in report.items():
        table = Table(title=f"Room {room or '(unnamed)'}")
        table.add_column("Rectifier / Panel", style="cyan")
        table.add_column("Chain")
        table.add_column("Own", justify="right")
        table.add_column("Failover", justify="right")
        table.add_column("On failure", justify="right")
        table.add_column("Simulated", justify="right")
        table.add_column("Util", justify="right")

        for rectifier_id, rectifier in rectifiers.items():
            table.add_row(
                f"[bold]{rectifier_id}[/bold]",
                "",
                "",
                "",
                f"{rectifier.total_power_on_failure:.2f}",
                "",
                _pct_cell(rectifier.total_power_on_failure, capacities.rectifier_kw),
            )
            for panel in rectifier.panels:
                table.add_row(
                    f"  {panel.id}",
                    panel.chaine,
                    f"{panel.own_power:.2f}",
                    f"{panel.failover_potential_power:.2f}",
                    f"{panel.total_on_failure:.2f}",
                    f"{panel.simulated_load:.2f}",
                    _pct_cell(panel.total_on_failure, capacities.dc_panel_failover_kw),
                )
        console.print(table)

        if details:
            for rectifier in rectifiers.values():
                for panel in rectifier.panels:
                    for detail in panel.connections:
                        console.print(
                            f"  [green]{panel.id}[/green] {detail.rack_name} / {detail.equipment_name}: "
                            f"{detail.primary_power:.2f} kW, redundant "
                            f"{detail.redundant_panel or '-'} {detail.redundant_power:.2f} kW"
                        )


def print_canalis_report(report: dict[str, CanalisReport], capacities: Capacities, *, details: bool = False) -> None:
    """Own and failover load of each canalis against the reference capacity."""
    console.print("\n[bold cyan]AC Canalis N+1 Analysis[/bold cyan]")
    console.print(f"[dim]Reference capacity: {capacities.canalis_kw:.0f} kW[/dim]")

    if not report:
        console.print("\n[yellow]No canalis-fed AC connections found.[/yellow]")
        return

    table = Table(title="Canalis Load on Failure (kW)")
    table.add_column("Canalis", style="cyan")
    table.add_column("Own", justify="right")
    table.add_column("Failover", justify="right")
    table.add_column("On failure", justify="right")
    table.add_column("Util", justify="right")
    for canalis_id, canalis in report.items():
        table.add_row(
            canalis_id,
            f"{canalis.own_power:.2f}",
            f"{canalis.failover_power:.2f}",
            f"{canalis.total_on_failure:.2f}",
            _pct_cell(canalis.total_on_failure, capacities.canalis_kw),
        )
    console.print(table)

    if details:
        for canalis_id, canalis in report.items():
            for pair in canalis.connection_pairs:
                console.print(
                    f"  [green]{canalis_id}[/green] {pair.rack_name} / {pair.equipment_name}: "
                    f"{pair.primary_box} {pair.primary_power:.2f} kW, redundant "
                    f"{pair.redundant_box or '-'} {pair.redundant_power:.2f} kW"
                )
