from __future__ import annotations

from dcim_core.models.power import AreaLoad, HeavyRack, SiteSummary
from dcim_core.models.records import AllData
from dcim_core.power.constants import FULL_RACK_SPACE_PCT, HEAVY_RACK_PCT, HIGH_POWER_RACK_PCT
from dcim_core.power.outlets import parse_rack_dimensions
from dcim_core.power.phases import utilization_percent
from dcim_core.power.rack import compute_all_rack_power
from dcim_core.power.utilization import compute_rack_power_anomalies, compute_rack_utilizations

TOP_ANOMALY_COUNT = 5


def compute_room_loads(data: AllData) -> dict[str, AreaLoad]:
    """Calculated AC and DC load per room, rooms in sorted order."""
    rack_power = compute_all_rack_power(data)
    loads: dict[str, AreaLoad] = {}
    for rack in data.racks:
        power = rack_power[rack.id]
        load = loads.setdefault(rack.salle, AreaLoad())
        load.ac += power.v1.ac_total + power.v2.ac_total
        load.dc += power.v1.dc + power.v2.dc
    return dict(sorted(loads.items()))


def compute_row_loads(data: AllData) -> dict[tuple[str, str], AreaLoad]:
    """Calculated AC and DC load per (room, row)."""
    rack_power = compute_all_rack_power(data)
    loads: dict[tuple[str, str], AreaLoad] = {}
    for rack in data.racks:
        power = rack_power[rack.id]
        load = loads.setdefault((rack.salle, rack.rangee), AreaLoad())
        load.ac += power.v1.ac_total + power.v2.ac_total
        load.dc += power.v1.dc + power.v2.dc
    return dict(sorted(loads.items()))


def compute_site_summary(data: AllData) -> SiteSummary:
    """Site-wide power, space and weight indicators."""
    utilizations = compute_rack_utilizations(data)
    anomalies = compute_rack_power_anomalies(data)
    power_per_room = compute_room_loads(data)

    used_u_by_rack: dict[str, float] = {}
    weight_by_rack: dict[str, float] = {}
    for eq in data.equipements:
        weight_by_rack[eq.rack_fk] = weight_by_rack.get(eq.rack_fk, 0.0) + eq.poids_kg
        if eq.type_equipement != "PDU":
            used_u_by_rack[eq.rack_fk] = used_u_by_rack.get(eq.rack_fk, 0.0) + eq.hauteur_u

    total_u_available = float(sum(parse_rack_dimensions(rack.dimensions) for rack in data.racks))
    total_u_used = sum(eq.hauteur_u for eq in data.equipements if eq.type_equipement != "PDU")

    heavy_racks: list[HeavyRack] = []
    stranded_power = 0.0
    stranded_space = 0.0
    for rack in data.racks:
        weight = weight_by_rack.get(rack.id, 0.0)
        weight_pct = utilization_percent(weight, rack.poids_max_kg)
        if weight_pct > HEAVY_RACK_PCT:
            heavy_racks.append(
                HeavyRack(
                    rack_id=rack.id,
                    current_weight_kg=weight,
                    max_weight_kg=rack.poids_max_kg,
                    weight_percent=weight_pct,
                )
            )

        total_u = parse_rack_dimensions(rack.dimensions)
        used_u = used_u_by_rack.get(rack.id, 0.0)
        utilization = utilizations[rack.id]
        # Space is full but the PDU still has power to give
        if utilization_percent(used_u, total_u) > FULL_RACK_SPACE_PCT and utilization.capacity > utilization.total_power:
            stranded_power += utilization.capacity - utilization.total_power
        # Power is nearly exhausted while U remain free
        if utilization.percentage > HIGH_POWER_RACK_PCT:
            stranded_space += total_u - used_u

    top_anomalies = sorted(
        (rack_id for rack_id, anomaly in anomalies.items() if anomaly.total_real > 0),
        key=lambda rack_id: abs(anomalies[rack_id].power_difference_kw),
        reverse=True,
    )[:TOP_ANOMALY_COUNT]

    return SiteSummary(
        total_racks=len(data.racks),
        high_power_racks=sum(1 for u in utilizations.values() if u.percentage > HIGH_POWER_RACK_PCT),
        total_it_power=sum(load.total for load in power_per_room.values()),
        total_other_power=sum(c.acp1 + c.acp2 + c.acp3 + c.dc for c in data.autres_consommateurs),
        power_per_room=power_per_room,
        physical_occupancy_percent=utilization_percent(total_u_used, total_u_available),
        total_u_used=total_u_used,
        total_u_available=total_u_available,
        heavy_racks=heavy_racks,
        stranded_power_kw=stranded_power,
        stranded_space_u=stranded_space,
        top_anomaly_racks=top_anomalies,
    )
