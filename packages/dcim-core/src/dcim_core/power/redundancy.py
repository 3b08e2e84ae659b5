"""
N+1 redundancy analysis of DC rectifiers and AC canalis.

Each equipment is fed twice: its voie-1 and voie-2 connections are paired by
position (see `pair_voie_connections`). If one side of a pair fails, its load
lands on the other side, so every panel or canalis must be able to carry its
own load plus the load of the connections paired with it.
"""

from __future__ import annotations

from typing import Iterable

from dcim_core.codebase.debug import spy_trace
from dcim_core.models.power import (
    CanalisConnectionPair,
    CanalisReport,
    DCConnectionDetail,
    PanelReport,
    RectifierReport,
)
from dcim_core.models.records import AllData
from dcim_core.power.constants import MIN_DC_PANEL_ID_SEGMENTS
from dcim_core.power.pairing import pair_voie_connections, redundant_connection_map


def rectifier_id_for_panel(panel_id: str) -> str | None:
    """Rectifier id encoded in a DC panel id, or None when the id is malformed.

    "IT.1-SWB.REC.A.4.1" -> "IT.1-SWB.REC.A.4"
    """
    parts = panel_id.split(".")
    if len(parts) < MIN_DC_PANEL_ID_SEGMENTS:
        return None
    return ".".join(parts[:-1])


@spy_trace
def compute_dc_rectifier_report(
    data: AllData,
    downed_chains: Iterable[str] = (),
) -> dict[str, dict[str, RectifierReport]]:
    """Group DC panels per room and rectifier, with own, failover and simulated loads.

    `failover_potential_power` is what a panel receives if every paired
    connection fails; `failover_active_power` only counts the pairs whose
    panel sits on a chain in `downed_chains` while this panel's chain is up.
    """
    downed = set(downed_chains)
    panels_by_id = {panel.id: panel for panel in data.tableaux_dc}
    equipment_by_id = {eq.id: eq for eq in data.equipements}
    racks_by_id = {rack.id: rack for rack in data.racks}
    redundant_of = redundant_connection_map(pair_voie_connections(data.connexions_dc, sort_key=lambda c: c.id))

    by_room: dict[str, dict[str, RectifierReport]] = {}
    panel_reports: dict[str, PanelReport] = {}

    for panel in data.tableaux_dc:
        rectifier_id = rectifier_id_for_panel(panel.id)
        if rectifier_id is None:
            continue
        rectifier = by_room.setdefault(panel.salle, {}).setdefault(rectifier_id, RectifierReport(id=rectifier_id))
        if panel.id in panel_reports:
            continue
        report = PanelReport(id=panel.id, designation=panel.designation, chaine=panel.chaine)
        rectifier.panels.append(report)
        panel_reports[panel.id] = report

    for conn in data.connexions_dc:
        equipment = equipment_by_id.get(conn.equipment_fk)
        if equipment is None:
            continue
        rack = racks_by_id.get(equipment.rack_fk)
        if rack is None:
            continue
        report = panel_reports.get(conn.dc_panel_fk)
        if report is None:
            continue

        redundant = redundant_of.get(conn.id)
        redundant_power = redundant.puissance_kw if redundant is not None else 0.0
        redundant_panel = panels_by_id.get(redundant.dc_panel_fk) if redundant is not None else None

        report.own_power += conn.puissance_kw
        report.failover_potential_power += redundant_power
        if redundant_panel is not None and redundant_panel.chaine in downed and report.chaine not in downed:
            report.failover_active_power += redundant_power

        # One detail line per equipment on this panel
        detail = next(
            (
                d
                for d in report.connections
                if d.rack_name == rack.designation and d.equipment_name == equipment.nom_equipement
            ),
            None,
        )
        if detail is None:
            report.connections.append(
                DCConnectionDetail(
                    rack_name=rack.designation,
                    equipment_name=equipment.nom_equipement,
                    primary_panel=conn.dc_panel_fk,
                    primary_power=conn.puissance_kw,
                    redundant_panel=redundant_panel.id if redundant_panel is not None else None,
                    redundant_power=redundant_power,
                )
            )
        else:
            detail.primary_power += conn.puissance_kw
            detail.redundant_power += redundant_power

    for rectifiers in by_room.values():
        for rectifier in rectifiers.values():
            for report in rectifier.panels:
                report.simulated_load = report.own_power + report.failover_active_power
                report.connections.sort(key=lambda d: (d.rack_name, d.equipment_name))
            rectifier.total_power_on_failure = sum(p.own_power + p.failover_potential_power for p in rectifier.panels)

    return {room: dict(sorted(by_room[room].items())) for room in sorted(by_room)}


@spy_trace
def compute_ac_canalis_report(data: AllData) -> dict[str, CanalisReport]:
    """Own and failover power per canalis.

    AC connections are paired in their stored order. A pair whose two sides
    land on the same canalis brings no failover load to it.
    """
    canalis_of_box = {box.id: box.canalis for box in data.boitiers_ac}
    equipment_by_id = {eq.id: eq for eq in data.equipements}
    racks_by_id = {rack.id: rack for rack in data.racks}
    reports: dict[str, CanalisReport] = {}

    def _update(canalis_id, own, failover, equipment, rack, primary, redundant) -> None:
        report = reports.setdefault(canalis_id, CanalisReport(id=canalis_id))
        report.own_power += own
        report.failover_power += failover
        report.connection_pairs.append(
            CanalisConnectionPair(
                rack_id=rack.id,
                rack_name=rack.designation,
                equipment_id=equipment.id,
                equipment_name=equipment.nom_equipement,
                primary_box=primary.ac_box_fk,
                primary_power=primary.puissance_kw,
                redundant_box=redundant.ac_box_fk if redundant is not None else None,
                redundant_power=redundant.puissance_kw if redundant is not None else 0.0,
            )
        )

    for equipment_id, pairs in pair_voie_connections(data.connexions_ac).items():
        equipment = equipment_by_id.get(equipment_id)
        if equipment is None:
            continue
        rack = racks_by_id.get(equipment.rack_fk)
        if rack is None:
            continue

        for conn1, conn2 in pairs:
            canalis1 = canalis_of_box.get(conn1.ac_box_fk) if conn1 is not None else None
            canalis2 = canalis_of_box.get(conn2.ac_box_fk) if conn2 is not None else None
            power1 = conn1.puissance_kw if conn1 is not None else 0.0
            power2 = conn2.puissance_kw if conn2 is not None else 0.0
            split = canalis1 != canalis2

            if canalis1 and conn1 is not None:
                _update(canalis1, power1, power2 if split else 0.0, equipment, rack, conn1, conn2)
            if canalis2 and conn2 is not None:
                _update(canalis2, power2, power1 if split else 0.0, equipment, rack, conn2, conn1)

    for report in reports.values():
        report.total_on_failure = report.own_power + report.failover_power

    return dict(sorted(reports.items()))
