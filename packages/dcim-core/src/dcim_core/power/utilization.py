from __future__ import annotations

from dcim_core.models.power import (
    ACBoxUtilization,
    DCPanelUtilization,
    RackPower,
    RackPowerAnomaly,
    RackUtilization,
    VoiePower,
)
from dcim_core.models.records import AllData, Rack
from dcim_core.power.constants import IMBALANCE_THRESHOLD_PCT
from dcim_core.power.outlets import get_outlets_for_ac_box
from dcim_core.power.phases import calculate_imbalance, utilization_percent
from dcim_core.power.rack import compute_all_rack_power


def compute_rack_utilizations(data: AllData) -> dict[str, RackUtilization]:
    """Calculated power of each rack (both voies) against its PDU capacity."""
    rack_power = compute_all_rack_power(data)
    out: dict[str, RackUtilization] = {}
    for rack in data.racks:
        total = rack_power[rack.id].total
        out[rack.id] = RackUtilization(
            total_power=total,
            capacity=rack.puissance_pdu_kw,
            percentage=utilization_percent(total, rack.puissance_pdu_kw),
        )
    return out


def compute_dc_panel_utilizations(data: AllData) -> dict[str, DCPanelUtilization]:
    """Breakers in use per DC panel, one per DC connection."""
    used: dict[str, int] = {}
    for conn in data.connexions_dc:
        used[conn.dc_panel_fk] = used.get(conn.dc_panel_fk, 0) + 1

    out: dict[str, DCPanelUtilization] = {}
    for panel in data.tableaux_dc:
        total = int(panel.nombre_disjoncteurs_total)
        count = used.get(panel.id, 0)
        out[panel.id] = DCPanelUtilization(
            used_breakers=count, total_breakers=total, percentage=utilization_percent(count, total)
        )
    return out


def compute_ac_box_utilizations(data: AllData) -> dict[str, ACBoxUtilization]:
    """Outlets in use per AC box, counting each outlet name once."""
    used: dict[str, set[str]] = {}
    for conn in data.connexions_ac:
        if conn.outlet_name:
            used.setdefault(conn.ac_box_fk, set()).add(conn.outlet_name)

    out: dict[str, ACBoxUtilization] = {}
    for box in data.boitiers_ac:
        total = len(get_outlets_for_ac_box(box.configuration))
        count = len(used.get(box.id, ()))
        out[box.id] = ACBoxUtilization(
            used_outlets=count, total_outlets=total, percentage=utilization_percent(count, total)
        )
    return out


def measured_power(rack: Rack) -> RackPower:
    return RackPower(
        v1=VoiePower(
            p1=rack.conso_reelle_v1_ph1_kw,
            p2=rack.conso_reelle_v1_ph2_kw,
            p3=rack.conso_reelle_v1_ph3_kw,
            dc=rack.conso_reelle_v1_dc_kw,
        ),
        v2=VoiePower(
            p1=rack.conso_reelle_v2_ph1_kw,
            p2=rack.conso_reelle_v2_ph2_kw,
            p3=rack.conso_reelle_v2_ph3_kw,
            dc=rack.conso_reelle_v2_dc_kw,
        ),
    )


def detect_rack_anomaly(rack: Rack, calculated: RackPower) -> RackPowerAnomaly:
    """Compare a rack's measured power with its calculated power."""
    real = measured_power(rack)
    total_real = real.total
    total_calculated = calculated.total

    if total_real <= 0:
        return RackPowerAnomaly(total_real=total_real, total_calculated=total_calculated)

    difference = total_real - total_calculated
    difference_pct = difference / total_calculated * 100.0 if total_calculated > 0 else float("inf")
    is_over_power = total_real > total_calculated

    imbalance_v1 = calculate_imbalance(real.v1.p1, real.v1.p2, real.v1.p3)
    imbalance_v2 = calculate_imbalance(real.v2.p1, real.v2.p2, real.v2.p3)
    has_imbalance = imbalance_v1 > IMBALANCE_THRESHOLD_PCT or imbalance_v2 > IMBALANCE_THRESHOLD_PCT

    return RackPowerAnomaly(
        power_difference_kw=difference,
        power_difference_percent=difference_pct,
        is_over_power=is_over_power,
        imbalance_v1=imbalance_v1,
        imbalance_v2=imbalance_v2,
        has_imbalance=has_imbalance,
        has_anomaly=is_over_power or has_imbalance,
        total_real=total_real,
        total_calculated=total_calculated,
    )


def compute_rack_power_anomalies(data: AllData) -> dict[str, RackPowerAnomaly]:
    rack_power = compute_all_rack_power(data)
    return {rack.id: detect_rack_anomaly(rack, rack_power[rack.id]) for rack in data.racks}
