"""
Per-rack power derivation.

A rack's calculated power is always derived from the AC/DC connection records
of the equipment it holds; the `conso_baie_*` fields stored on the rack are a
cache of that derivation for the store, refreshed by `recalculate_rack_power`.
"""

from __future__ import annotations

import logging
from typing import Iterable

from dcim_core.codebase.debug import spy_trace
from dcim_core.models.power import PowerType, RackPower
from dcim_core.models.records import ACConnection, AllData, DCConnection, Rack

logger = logging.getLogger("dcim.power")

_SINGLE_PHASES = {"P1": "p1", "P2": "p2", "P3": "p3"}


def _accumulate(
    totals: dict[str, RackPower],
    rack_of_equipment: dict[str, str],
    ac_connections: Iterable[ACConnection],
    dc_connections: Iterable[DCConnection],
) -> None:
    for conn in dc_connections:
        rack_id = rack_of_equipment.get(conn.equipment_fk)
        if rack_id is None:
            continue
        voie = totals[rack_id].voie(conn.voie)
        if voie is not None:
            voie.dc += conn.puissance_kw

    for conn in ac_connections:
        rack_id = rack_of_equipment.get(conn.equipment_fk)
        if rack_id is None:
            continue
        voie = totals[rack_id].voie(conn.voie)
        if voie is None:
            continue
        if conn.phase in _SINGLE_PHASES:
            attr = _SINGLE_PHASES[conn.phase]
            setattr(voie, attr, getattr(voie, attr) + conn.puissance_kw)
        elif conn.phase == "P123":
            share = conn.puissance_kw / 3
            voie.p1 += share
            voie.p2 += share
            voie.p3 += share


def compute_rack_power(rack_id: str, data: AllData) -> RackPower:
    """Calculated voie/phase totals of one rack from its equipment's connections."""
    rack_of_equipment = {eq.id: rack_id for eq in data.equipements if eq.rack_fk == rack_id}
    totals = {rack_id: RackPower()}
    _accumulate(totals, rack_of_equipment, data.connexions_ac, data.connexions_dc)
    return totals[rack_id]


def compute_all_rack_power(data: AllData) -> dict[str, RackPower]:
    """Calculated totals for every rack of the snapshot, in a single pass over the connections."""
    totals = {rack.id: RackPower() for rack in data.racks}
    rack_of_equipment = {eq.id: eq.rack_fk for eq in data.equipements if eq.rack_fk in totals}
    _accumulate(totals, rack_of_equipment, data.connexions_ac, data.connexions_dc)
    return totals


@spy_trace
def recalculate_rack_power(rack: Rack, data: AllData) -> Rack:
    """Return a copy of `rack` with its eight `conso_baie_*` fields recomputed from connections."""
    return rack.model_copy(update=compute_rack_power(rack.id, data).as_rack_fields())


def recalculate_all_racks(data: AllData) -> AllData:
    """Refresh the cached power fields of every rack (used after loading a snapshot)."""
    totals = compute_all_rack_power(data)
    racks = [rack.model_copy(update=totals[rack.id].as_rack_fields()) for rack in data.racks]
    return data.model_copy(update={"racks": racks})


def get_rack_power_type(rack: Rack, data: AllData) -> PowerType:
    """Dominant electrical nature of a rack: 'DC', 'AC_TRI' or 'AC_MONO'.

    Live connection records take precedence over the rack's cached fields.
    """
    equipment_ids = {eq.id for eq in data.equipements if eq.rack_fk == rack.id}

    if any(conn.equipment_fk in equipment_ids for conn in data.connexions_dc):
        return "DC"

    ac_connections = [conn for conn in data.connexions_ac if conn.equipment_fk in equipment_ids]
    if ac_connections:
        is_tri = any(conn.phase == "P123" or "TRI" in conn.outlet_name.upper() for conn in ac_connections)
        return "AC_TRI" if is_tri else "AC_MONO"

    # No connections: fall back to the legacy rack-level fields
    if rack.conso_baie_v1_dc_kw > 0 or rack.conso_baie_v2_dc_kw > 0:
        return "DC"

    outlets = [(rack.ac_outlet_v1 or "").upper(), (rack.ac_outlet_v2 or "").upper()]
    if any("TRI" in outlet for outlet in outlets):
        return "AC_TRI"
    if any("MONO" in outlet for outlet in outlets):
        return "AC_MONO"

    v1_phases = sum(
        1 for p in (rack.conso_baie_v1_ph1_kw, rack.conso_baie_v1_ph2_kw, rack.conso_baie_v1_ph3_kw) if p > 0
    )
    v2_phases = sum(
        1 for p in (rack.conso_baie_v2_ph1_kw, rack.conso_baie_v2_ph2_kw, rack.conso_baie_v2_ph3_kw) if p > 0
    )
    if v1_phases > 1 or v2_phases > 1:
        return "AC_TRI"
    return "AC_MONO"


@spy_trace
def delete_equipment_cascade(data: AllData, equipment_id: str) -> AllData:
    """Remove an equipment with its AC/DC connections and recalculate its rack.

    Unknown ids leave the snapshot untouched.
    """
    equipment = next((eq for eq in data.equipements if eq.id == equipment_id), None)
    if equipment is None:
        logger.warning("Equipment %s not found for deletion", equipment_id)
        return data

    after_deletion = data.model_copy(
        update={
            "equipements": [eq for eq in data.equipements if eq.id != equipment_id],
            "connexions_ac": [c for c in data.connexions_ac if c.equipment_fk != equipment_id],
            "connexions_dc": [c for c in data.connexions_dc if c.equipment_fk != equipment_id],
        }
    )
    racks = [
        recalculate_rack_power(rack, after_deletion) if rack.id == equipment.rack_fk else rack
        for rack in after_deletion.racks
    ]
    return after_deletion.model_copy(update={"racks": racks})
