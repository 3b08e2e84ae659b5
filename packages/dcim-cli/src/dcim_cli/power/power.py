import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

console = Console()

CHAIN_CHOICE = click.Choice(["A", "B", "C"], case_sensitive=False)

snapshot_option = click.option(
    "--snapshot",
    type=click.Path(path_type=str, dir_okay=False, exists=False),
    default="doctrine/snapshot.yaml",
    show_default=True,
    help="Store snapshot (YAML or JSON export of all collections).",
)
capacities_option = click.option(
    "--capacities",
    type=click.Path(path_type=str, dir_okay=False, exists=False),
    default="doctrine/capacities.yaml",
    show_default=True,
    help="Capacity ceilings YAML (defaults apply when missing).",
)
routing_option = click.option(
    "--routing",
    type=click.Path(path_type=str, dir_okay=False, exists=False),
    default="doctrine/routing.yaml",
    show_default=True,
    help="Room -> chain routing YAML (ITN1/ITN2/ITN3 table when missing).",
)
down_option = click.option(
    "--down",
    "downed",
    type=CHAIN_CHOICE,
    multiple=True,
    help="Simulate the loss of a chain (repeatable).",
)
export_option = click.option(
    "--export",
    type=click.Path(path_type=str, dir_okay=False),
    help="Export the report to a YAML file.",
)


def _downed(downed: tuple[str, ...]) -> list[str]:
    return sorted({chain.upper() for chain in downed})


def _export(obj, export: Optional[str]) -> None:
    if not export:
        return
    from dcim_tools.export import export_yaml

    export_yaml(obj, export)
    console.print(f"[green]✓[/green] Report exported to {export}")


@click.group()
def power() -> None:
    """Power chain, redundancy and capacity analysis."""
    pass


@power.command("chains")
@snapshot_option
@capacities_option
@routing_option
@down_option
@export_option
def chains(snapshot: str, capacities: str, routing: str, downed: tuple[str, ...], export: Optional[str]) -> None:
    """Per-phase load of chains A, B and C, optionally with chains down."""
    try:
        from dcim_core.data import load_capacities, load_routing, load_snapshot
        from dcim_core.power import compute_chain_loads
        from dcim_tools.chains import print_chain_loads

        data = load_snapshot(snapshot)
        down = _downed(downed)
        loads = compute_chain_loads(data, down, load_routing(routing))
        print_chain_loads(loads, load_capacities(capacities), down)
        _export(loads, export)
    except Exception as e:
        console.print(f"[red]Error computing chain loads: {e}[/red]")
        sys.exit(1)


@power.command("rectifiers")
@snapshot_option
@capacities_option
@down_option
@click.option("--details", is_flag=True, help="List the equipment behind each panel.")
@export_option
def rectifiers(
    snapshot: str, capacities: str, downed: tuple[str, ...], details: bool, export: Optional[str]
) -> None:
    """N+1 analysis of DC panels grouped by room and rectifier."""
    try:
        from dcim_core.data import load_capacities, load_snapshot
        from dcim_core.power import compute_dc_rectifier_report
        from dcim_tools.capacity import print_rectifier_report

        data = load_snapshot(snapshot)
        report = compute_dc_rectifier_report(data, _downed(downed))
        print_rectifier_report(report, load_capacities(capacities), details=details)
        _export(report, export)
    except Exception as e:
        console.print(f"[red]Error computing rectifier report: {e}[/red]")
        sys.exit(1)


@power.command("canalis")
@snapshot_option
@capacities_option
@click.option("--details", is_flag=True, help="List the connection pairs behind each canalis.")
@export_option
def canalis(snapshot: str, capacities: str, details: bool, export: Optional[str]) -> None:
    """N+1 analysis of AC canalis."""
    try:
        from dcim_core.data import load_capacities, load_snapshot
        from dcim_core.power import compute_ac_canalis_report
        from dcim_tools.capacity import print_canalis_report

        data = load_snapshot(snapshot)
        report = compute_ac_canalis_report(data)
        print_canalis_report(report, load_capacities(capacities), details=details)
        _export(report, export)
    except Exception as e:
        console.print(f"[red]Error computing canalis report: {e}[/red]")
        sys.exit(1)


@power.command("summary")
@snapshot_option
@capacities_option
@export_option
def summary(snapshot: str, capacities: str, export: Optional[str]) -> None:
    """Site indicators: power per room, occupancy, stranded capacity, anomalies."""
    try:
        from dcim_core.data import load_capacities, load_snapshot
        from dcim_core.power import compute_site_summary
        from dcim_tools.site import print_site_summary

        data = load_snapshot(snapshot)
        site = compute_site_summary(data)
        print_site_summary(site, load_capacities(capacities))
        _export(site, export)
    except Exception as e:
        console.print(f"[red]Error computing site summary: {e}[/red]")
        sys.exit(1)


@power.command("rack")
@click.argument("rack_id")
@snapshot_option
def rack(rack_id: str, snapshot: str) -> None:
    """Calculated and measured power of one rack."""
    try:
        from dcim_core.data import load_snapshot
        from dcim_tools.site import print_rack_detail

        data = load_snapshot(snapshot)
        found = next((r for r in data.racks if r.id == rack_id), None)
        if found is None:
            console.print(f"[red]Rack {rack_id} not found in {snapshot}[/red]")
            sys.exit(1)
        print_rack_detail(found, data)
    except Exception as e:
        console.print(f"[red]Error reading rack {rack_id}: {e}[/red]")
        sys.exit(1)


@power.command("delete-equipment")
@click.argument("equipment_id")
@snapshot_option
@click.option(
    "--export",
    type=click.Path(path_type=str, dir_okay=False),
    required=True,
    help="Write the resulting snapshot (store payload) to this YAML file.",
)
def delete_equipment(equipment_id: str, snapshot: str, export: str) -> None:
    """Remove an equipment with its connections and recalculate its rack."""
    try:
        from dcim_core.data import load_snapshot, to_store_payload
        from dcim_core.power import delete_equipment_cascade
        from dcim_tools.export import export_yaml

        data = load_snapshot(snapshot)
        equipment = next((eq for eq in data.equipements if eq.id == equipment_id), None)
        if equipment is None:
            console.print(f"[red]Equipment {equipment_id} not found in {snapshot}[/red]")
            sys.exit(1)

        after = delete_equipment_cascade(data, equipment_id)
        before_rack = next((r for r in data.racks if r.id == equipment.rack_fk), None)
        after_rack = next((r for r in after.racks if r.id == equipment.rack_fk), None)

        removed_ac = len(data.connexions_ac) - len(after.connexions_ac)
        removed_dc = len(data.connexions_dc) - len(after.connexions_dc)
        console.print(
            f"\n[bold cyan]Deleted {equipment_id}[/bold cyan] ({equipment.nom_equipement}): "
            f"{removed_ac} AC and {removed_dc} DC connections removed"
        )

        if before_rack is not None and after_rack is not None:
            table = Table(title=f"Rack {after_rack.id} calculated power (kW)")
            table.add_column("Field", style="cyan")
            table.add_column("Before", justify="right")
            table.add_column("After", justify="right")
            for field in (
                "conso_baie_v1_ph1_kw",
                "conso_baie_v1_ph2_kw",
                "conso_baie_v1_ph3_kw",
                "conso_baie_v1_dc_kw",
                "conso_baie_v2_ph1_kw",
                "conso_baie_v2_ph2_kw",
                "conso_baie_v2_ph3_kw",
                "conso_baie_v2_dc_kw",
            ):
                table.add_row(field, f"{getattr(before_rack, field):.2f}", f"{getattr(after_rack, field):.2f}")
            console.print(table)

        export_yaml(to_store_payload(after), export)
        console.print(f"[green]✓[/green] Snapshot written to {export}")
    except Exception as e:
        console.print(f"[red]Error deleting equipment {equipment_id}: {e}[/red]")
        sys.exit(1)


@power.command("validate")
@snapshot_option
@capacities_option
@routing_option
@down_option
@click.option(
    "--strict",
    is_flag=True,
    help="Treat warnings as failures (exit code 2).",
)
@export_option
def validate(
    snapshot: str,
    capacities: str,
    routing: str,
    downed: tuple[str, ...],
    strict: bool,
    export: Optional[str],
) -> None:
    """Check chains, rooms, rows, racks and N+1 headroom against capacities."""
    try:
        from dcim_core.data import load_capacities, load_routing, load_snapshot
        from dcim_core.validation.capacity import run_capacity_validation

        console.print("\n[bold cyan]Capacity Validation[/bold cyan]")

        data = load_snapshot(snapshot)
        report = run_capacity_validation(data, load_capacities(capacities), _downed(downed), load_routing(routing))

        _export(report, export)

        table = Table(title="Validation Summary")
        table.add_column("Severity", style="cyan")
        table.add_column("Count", justify="right")

        table.add_row("PASS", str(report.summary.get("pass", 0)), style="green")
        table.add_row("INFO", str(report.summary.get("info", 0)), style="blue")
        table.add_row("WARN", str(report.summary.get("warn", 0)), style="yellow")
        table.add_row("FAIL", str(report.summary.get("fail", 0)), style="red")

        console.print(table)

        if report.findings:
            console.print("\n[bold]Findings:[/bold]")
            for finding in report.findings:
                severity_color = {"FAIL": "red", "WARN": "yellow", "INFO": "blue"}.get(finding.severity, "white")
                console.print(
                    f"[{severity_color}]{finding.severity}[/{severity_color}] {finding.code}: {finding.message}"
                )
        else:
            console.print("\n[green]✓ All capacity checks passed[/green]")

        fail_count = report.summary.get("fail", 0)
        warn_count = report.summary.get("warn", 0)

        if fail_count > 0:
            console.print(f"\n[red]✗[/red] Validation failed with {fail_count} errors")
            sys.exit(1)
        elif strict and warn_count > 0:
            console.print(f"\n[yellow]⚠[/yellow] Validation completed with {warn_count} warnings (strict mode)")
            sys.exit(2)
        else:
            console.print("\n[green]✓[/green] Validation completed successfully")
            sys.exit(0)

    except Exception as e:
        console.print(f"[red]Error during validation: {e}[/red]")
        sys.exit(1)
