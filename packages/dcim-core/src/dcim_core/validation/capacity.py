"""
Capacity validation for a DCIM snapshot.

Runs the power engine over a snapshot and checks the results against the
configured capacity ceilings: UPS chains (per phase), rooms, rows, rack PDUs,
and the N+1 headroom of DC panels, rectifiers and canalis.
"""

from __future__ import annotations

from typing import Iterable

from dcim_core.models.capacities import DEFAULT_ROUTING, Capacities, ChainRouting
from dcim_core.models.power import AreaLoad, CanalisReport, ChainLoad, RackPowerAnomaly, RackUtilization, RectifierReport
from dcim_core.models.records import AllData
from dcim_core.models.report import Finding, Report, Severity
from dcim_core.power.chains import compute_chain_loads
from dcim_core.power.constants import IMBALANCE_THRESHOLD_PCT
from dcim_core.power.phases import classify_utilization, utilization_percent
from dcim_core.power.redundancy import compute_ac_canalis_report, compute_dc_rectifier_report
from dcim_core.power.site import compute_room_loads, compute_row_loads
from dcim_core.power.utilization import compute_rack_power_anomalies, compute_rack_utilizations

_LEVEL_SEVERITY: dict[str, Severity] = {"critical": "FAIL", "warning": "WARN"}


def _utilization_finding(code: str, subject: str, load: float, capacity: float, context: dict) -> Finding | None:
    """FAIL above 90 %, WARN above 80 %, nothing otherwise."""
    percentage = utilization_percent(load, capacity)
    severity = _LEVEL_SEVERITY.get(classify_utilization(percentage))
    if severity is None:
        return None
    return Finding(
        severity=severity,
        code=code,
        message=f"{subject} at {percentage:.1f}% of capacity ({load:.2f} / {capacity:.2f} kW)",
        context={**context, "load_kw": load, "capacity_kw": capacity, "utilization_percent": percentage},
    )


def validate_chain_loads(loads: dict[str, ChainLoad], capacities: Capacities, downed: set[str]) -> list[Finding]:
    """Per-phase overload and overall utilization of each UPS chain."""
    findings: list[Finding] = []
    for chain, load in sorted(loads.items()):
        if chain in downed:
            findings.append(
                Finding(
                    severity="INFO",
                    code="CHAIN_DOWN",
                    message=f"chain {chain} is down, its load is carried by the sibling chains",
                    context={"chain": chain},
                )
            )
            continue

        capacity = capacities.chain_capacity(chain)
        if capacity <= 0:
            findings.append(
                Finding(
                    severity="WARN",
                    code="CHAIN_CAPACITY_UNDEFINED",
                    message=f"no capacity defined for chain {chain}",
                    context={"chain": chain},
                )
            )
            continue

        for index, phase_load in enumerate(load.final_phases, start=1):
            if phase_load > capacity:
                findings.append(
                    Finding(
                        severity="FAIL",
                        code="CHAIN_PHASE_OVERLOAD",
                        message=f"chain {chain} phase P{index} carries {phase_load:.2f} kW, capacity {capacity:.2f} kW",
                        context={"chain": chain, "phase": f"P{index}", "load_kw": phase_load, "capacity_kw": capacity},
                    )
                )

        finding = _utilization_finding(
            "CHAIN_UTILIZATION", f"chain {chain}", load.final_total, capacity * 3, {"chain": chain}
        )
        if finding is not None:
            findings.append(finding)
    return findings


def validate_room_loads(room_loads: dict[str, AreaLoad], capacities: Capacities) -> list[Finding]:
    findings: list[Finding] = []
    for room, load in room_loads.items():
        capacity = capacities.room_capacity(room)
        if capacity <= 0:
            findings.append(
                Finding(
                    severity="INFO",
                    code="ROOM_CAPACITY_UNDEFINED",
                    message=f"no capacity defined for room {room or '(unnamed)'}",
                    context={"room": room, "load_kw": load.total},
                )
            )
            continue
        finding = _utilization_finding("ROOM_CAPACITY", f"room {room}", load.total, capacity, {"room": room})
        if finding is not None:
            findings.append(finding)
    return findings


def validate_row_loads(row_loads: dict[tuple[str, str], AreaLoad], capacities: Capacities) -> list[Finding]:
    """AC and DC totals of each row against the per-row ceilings."""
    findings: list[Finding] = []
    for (room, row), load in row_loads.items():
        context = {"room": room, "row": row}
        for kind, value, capacity in (("AC", load.ac, capacities.row_ac_kw), ("DC", load.dc, capacities.row_dc_kw)):
            finding = _utilization_finding(
                f"ROW_{kind}_CAPACITY", f"row {room}/{row} {kind}", value, capacity, context
            )
            if finding is not None:
                findings.append(finding)
    return findings


def validate_rack_utilizations(utilizations: dict[str, RackUtilization]) -> list[Finding]:
    findings: list[Finding] = []
    for rack_id, utilization in utilizations.items():
        finding = _utilization_finding(
            "RACK_PDU_CAPACITY",
            f"rack {rack_id} PDU",
            utilization.total_power,
            utilization.capacity,
            {"rack_id": rack_id},
        )
        if finding is not None:
            findings.append(finding)
    return findings


def validate_rack_anomalies(anomalies: dict[str, RackPowerAnomaly]) -> list[Finding]:
    """Measured power above the calculated figure, and imbalanced measured phases."""
    findings: list[Finding] = []
    for rack_id, anomaly in anomalies.items():
        if anomaly.is_over_power:
            findings.append(
                Finding(
                    severity="WARN",
                    code="RACK_OVER_POWER",
                    message=(
                        f"rack {rack_id} measures {anomaly.total_real:.2f} kW, "
                        f"{anomaly.power_difference_kw:.2f} kW above its calculated {anomaly.total_calculated:.2f} kW"
                    ),
                    context={
                        "rack_id": rack_id,
                        "total_real": anomaly.total_real,
                        "total_calculated": anomaly.total_calculated,
                        "difference_kw": anomaly.power_difference_kw,
                    },
                )
            )
        if anomaly.has_imbalance:
            findings.append(
                Finding(
                    severity="WARN",
                    code="RACK_PHASE_IMBALANCE",
                    message=(
                        f"rack {rack_id} measured phase imbalance above {IMBALANCE_THRESHOLD_PCT}% "
                        f"(voie 1 {anomaly.imbalance_v1:.1f}%, voie 2 {anomaly.imbalance_v2:.1f}%)"
                    ),
                    context={
                        "rack_id": rack_id,
                        "imbalance_v1": anomaly.imbalance_v1,
                        "imbalance_v2": anomaly.imbalance_v2,
                    },
                )
            )
    return findings


def validate_dc_redundancy(report: dict[str, dict[str, RectifierReport]], capacities: Capacities) -> list[Finding]:
    """Load of each DC panel and rectifier if every redundant side fails."""
    findings: list[Finding] = []
    for room, rectifiers in report.items():
        for rectifier_id, rectifier in rectifiers.items():
            finding = _utilization_finding(
                "RECTIFIER_N1_CAPACITY",
                f"rectifier {rectifier_id} on failure",
                rectifier.total_power_on_failure,
                capacities.rectifier_kw,
                {"room": room, "rectifier_id": rectifier_id},
            )
            if finding is not None:
                findings.append(finding)
            for panel in rectifier.panels:
                finding = _utilization_finding(
                    "DC_PANEL_N1_CAPACITY",
                    f"DC panel {panel.id} on failure",
                    panel.total_on_failure,
                    capacities.dc_panel_failover_kw,
                    {"room": room, "rectifier_id": rectifier_id, "panel_id": panel.id},
                )
                if finding is not None:
                    findings.append(finding)
    return findings


def validate_canalis_redundancy(report: dict[str, CanalisReport], capacities: Capacities) -> list[Finding]:
    findings: list[Finding] = []
    for canalis_id, canalis in report.items():
        finding = _utilization_finding(
            "CANALIS_N1_CAPACITY",
            f"canalis {canalis_id} on failure",
            canalis.total_on_failure,
            capacities.canalis_kw,
            {"canalis_id": canalis_id},
        )
        if finding is not None:
            findings.append(finding)
    return findings


def run_capacity_validation(
    data: AllData,
    capacities: Capacities | None = None,
    downed_chains: Iterable[str] = (),
    routing: ChainRouting = DEFAULT_ROUTING,
) -> Report:
    """
    Top-level capacity validation.

    Runs every check over the snapshot, with `downed_chains` failed for the
    chain checks, and returns a structured Report.
    """
    capacities = capacities or Capacities()
    downed = set(downed_chains)

    chain_loads = compute_chain_loads(data, downed, routing)
    room_loads = compute_room_loads(data)
    row_loads = compute_row_loads(data)
    rack_utilizations = compute_rack_utilizations(data)
    anomalies = compute_rack_power_anomalies(data)
    rectifiers = compute_dc_rectifier_report(data, downed)
    canalis = compute_ac_canalis_report(data)

    all_findings: list[Finding] = []
    all_findings.extend(validate_chain_loads(chain_loads, capacities, downed))
    all_findings.extend(validate_room_loads(room_loads, capacities))
    all_findings.extend(validate_row_loads(row_loads, capacities))
    all_findings.extend(validate_rack_utilizations(rack_utilizations))
    all_findings.extend(validate_rack_anomalies(anomalies))
    all_findings.extend(validate_dc_redundancy(rectifiers, capacities))
    all_findings.extend(validate_canalis_redundancy(canalis, capacities))

    summary = {
        "pass": 0,
        "warn": len([f for f in all_findings if f.severity == "WARN"]),
        "fail": len([f for f in all_findings if f.severity == "FAIL"]),
        "info": len([f for f in all_findings if f.severity == "INFO"]),
    }

    # One check per subject: chains, rooms, rows (AC and DC), racks (PDU and
    # anomalies), rectifiers, panels and canalis
    total_checks = (
        len(chain_loads)
        + len(room_loads)
        + 2 * len(row_loads)
        + 2 * len(rack_utilizations)
        + sum(len(r) + sum(len(rec.panels) for rec in r.values()) for r in rectifiers.values())
        + len(canalis)
    )
    summary["pass"] = max(0, total_checks - summary["warn"] - summary["fail"])

    return Report(summary=summary, findings=all_findings)
