from __future__ import annotations

from dcim_core.models.capacities import Capacities
from dcim_core.models.power import SiteSummary
from dcim_core.models.records import AllData, Rack
from dcim_core.power.outlets import parse_rack_dimensions
from dcim_core.power.phases import utilization_percent
from dcim_core.power.rack import compute_rack_power, get_rack_power_type
from dcim_core.power.utilization import detect_rack_anomaly, measured_power
from rich.console import Console
from rich.table import Table

console = Console()


def print_site_summary(summary: SiteSummary, capacities: Capacities) -> None:
    """Dashboard indicators: power per room, occupancy, weight and stranded capacity."""
    console.print("\n[bold cyan]Site Summary[/bold cyan]\n")

    console.print(f"Racks: [bold]{summary.total_racks}[/bold] ({summary.high_power_racks} above 80% of PDU)")
    console.print(
        f"IT power: [yellow]{summary.total_it_power:.2f} kW[/yellow], "
        f"other consumers: [yellow]{summary.total_other_power:.2f} kW[/yellow]"
    )
    console.print(
        f"Occupancy: [magenta]{summary.physical_occupancy_percent:.1f}%[/magenta] "
        f"({summary.total_u_used:.0f} / {summary.total_u_available:.0f} U)"
    )
    console.print(
        f"Stranded power: [yellow]{summary.stranded_power_kw:.2f} kW[/yellow], "
        f"stranded space: [yellow]{summary.stranded_space_u:.0f} U[/yellow]"
    )

    table = Table(title="Power per Room (kW)")
    table.add_column("Room", style="cyan")
    table.add_column("AC", justify="right")
    table.add_column("DC", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Capacity", justify="right")
    table.add_column("Util", justify="right")
    for room, load in summary.power_per_room.items():
        capacity = capacities.room_capacity(room)
        table.add_row(
            room or "(unnamed)",
            f"{load.ac:.2f}",
            f"{load.dc:.2f}",
            f"{load.total:.2f}",
            f"{capacity:.0f}" if capacity > 0 else "-",
            f"{utilization_percent(load.total, capacity):.1f}%" if capacity > 0 else "-",
        )
    console.print(table)

    if summary.heavy_racks:
        heavy = Table(title="Heavy Racks (> 80% of max weight)")
        heavy.add_column("Rack", style="cyan")
        heavy.add_column("Weight", justify="right")
        heavy.add_column("Max", justify="right")
        heavy.add_column("%", justify="right")
        for rack in summary.heavy_racks:
            heavy.add_row(
                rack.rack_id,
                f"{rack.current_weight_kg:.0f} kg",
                f"{rack.max_weight_kg:.0f} kg",
                f"{rack.weight_percent:.1f}%",
            )
        console.print(heavy)

    if summary.top_anomaly_racks:
        console.print(f"\nTop anomalies: [red]{', '.join(summary.top_anomaly_racks)}[/red]")


def print_rack_detail(rack: Rack, data: AllData) -> None:
    """Calculated vs measured power of one rack, with its equipment and connections."""
    calculated = compute_rack_power(rack.id, data)
    measured = measured_power(rack)
    anomaly = detect_rack_anomaly(rack, calculated)

    console.print(f"\n[bold cyan]Rack {rack.id}[/bold cyan] {rack.designation}")
    console.print(
        f"Room {rack.salle}, row {rack.rangee}, {parse_rack_dimensions(rack.dimensions)}U, "
        f"type [magenta]{get_rack_power_type(rack, data)}[/magenta]"
    )

    table = Table(title="Power (kW)")
    table.add_column("Source", style="cyan")
    table.add_column("Voie")
    table.add_column("P1", justify="right")
    table.add_column("P2", justify="right")
    table.add_column("P3", justify="right")
    table.add_column("DC", justify="right")
    for source, power in (("calculated", calculated), ("measured", measured)):
        for voie_name, voie in (("1", power.v1), ("2", power.v2)):
            table.add_row(source, voie_name, f"{voie.p1:.2f}", f"{voie.p2:.2f}", f"{voie.p3:.2f}", f"{voie.dc:.2f}")
    console.print(table)

    pct = utilization_percent(calculated.total, rack.puissance_pdu_kw)
    console.print(f"PDU: {calculated.total:.2f} / {rack.puissance_pdu_kw:.2f} kW ({pct:.1f}%)")
    if anomaly.has_anomaly:
        console.print(
            f"[red]Anomaly[/red]: measured {anomaly.total_real:.2f} kW vs calculated "
            f"{anomaly.total_calculated:.2f} kW, imbalance v1 {anomaly.imbalance_v1:.1f}% "
            f"v2 {anomaly.imbalance_v2:.1f}%"
        )

    equipment = sorted((eq for eq in data.equipements if eq.rack_fk == rack.id), key=lambda eq: eq.u_position)
    if not equipment:
        console.print("[dim]No equipment in this rack.[/dim]")
        return

    eq_table = Table(title="Equipment")
    eq_table.add_column("ID", style="cyan")
    eq_table.add_column("Name")
    eq_table.add_column("U", justify="right")
    eq_table.add_column("Feeds")
    for eq in equipment:
        feeds = [
            f"v{c.voie} {c.ac_box_fk}/{c.outlet_name} {c.phase} {c.puissance_kw:.2f}kW"
            for c in data.connexions_ac
            if c.equipment_fk == eq.id
        ]
        feeds += [
            f"v{c.voie} {c.dc_panel_fk} #{c.breaker_number:.0f} {c.puissance_kw:.2f}kW"
            for c in data.connexions_dc
            if c.equipment_fk == eq.id
        ]
        eq_table.add_row(eq.id, eq.nom_equipement, f"{eq.u_position:.0f}", "\n".join(feeds) or "-")
    console.print(eq_table)
