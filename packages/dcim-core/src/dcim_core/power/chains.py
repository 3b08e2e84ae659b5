"""
Chain load aggregation and chain-down failover simulation.

Every rack is fed by two voies; the room it stands in decides which UPS chain
feeds each voie (see `ChainRouting`). Chain loads are recomputed from the
snapshot on every call.
"""

from __future__ import annotations

from typing import Iterable

from dcim_core.codebase.debug import spy_trace
from dcim_core.models.capacities import DEFAULT_ROUTING, ChainRouting
from dcim_core.models.power import ChainLoad, VoiePower
from dcim_core.models.records import CHAINS, AllData
from dcim_core.power.constants import PHASE_COUNT, RECTIFIER_EFFICIENCY
from dcim_core.power.rack import compute_all_rack_power


def _add(load: ChainLoad, prefix: str, power: VoiePower) -> None:
    setattr(load, f"{prefix}_p1", getattr(load, f"{prefix}_p1") + power.p1)
    setattr(load, f"{prefix}_p2", getattr(load, f"{prefix}_p2") + power.p2)
    setattr(load, f"{prefix}_p3", getattr(load, f"{prefix}_p3") + power.p3)
    setattr(load, f"{prefix}_dc", getattr(load, f"{prefix}_dc") + power.dc)


def _finalize(load: ChainLoad, is_down: bool) -> None:
    if is_down:
        load.final_p1 = load.final_p2 = load.final_p3 = 0.0
        return

    total_dc = load.it_dc + load.other_dc + load.transferred_dc
    # DC loads are fed through rectifiers, spread evenly over the three phases
    ac_from_dc_per_phase = total_dc / RECTIFIER_EFFICIENCY / PHASE_COUNT

    load.final_p1 = load.it_p1 + load.other_p1 + load.transferred_p1 + ac_from_dc_per_phase
    load.final_p2 = load.it_p2 + load.other_p2 + load.transferred_p2 + ac_from_dc_per_phase
    load.final_p3 = load.it_p3 + load.other_p3 + load.transferred_p3 + ac_from_dc_per_phase


@spy_trace
def compute_chain_loads(
    data: AllData,
    downed_chains: Iterable[str] = (),
    routing: ChainRouting = DEFAULT_ROUTING,
) -> dict[str, ChainLoad]:
    """Per-phase load of chains A, B and C, with the chains in `downed_chains` failed.

    When a rack's voie sits on a downed chain and its sibling voie does not,
    that voie's load is transferred to the sibling's chain. Load is lost when
    both voies are down. Other-consumer load on a downed chain is dropped,
    not redistributed.
    """
    downed = set(downed_chains)
    loads = {chain: ChainLoad() for chain in CHAINS}
    rack_power = compute_all_rack_power(data)

    for rack in data.racks:
        route = routing.for_room(rack.salle)
        power = rack_power[rack.id]
        _add(loads[route.voie1], "it", power.v1)
        _add(loads[route.voie2], "it", power.v2)

    for consumer in data.autres_consommateurs:
        load = loads.get(consumer.chaine)
        if load is None:
            continue
        _add(load, "other", VoiePower(p1=consumer.acp1, p2=consumer.acp2, p3=consumer.acp3, dc=consumer.dc))

    if downed:
        for rack in data.racks:
            route = routing.for_room(rack.salle)
            power = rack_power[rack.id]
            if route.voie1 in downed and route.voie2 not in downed:
                _add(loads[route.voie2], "transferred", power.v1)
            if route.voie2 in downed and route.voie1 not in downed:
                _add(loads[route.voie1], "transferred", power.v2)

    for chain, load in loads.items():
        _finalize(load, chain in downed)

    return loads
