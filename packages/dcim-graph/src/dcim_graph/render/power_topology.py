from typing import Iterable

import graphviz
from dcim_core.models.capacities import DEFAULT_ROUTING, ChainRouting
from dcim_core.models.records import CHAINS, AllData
from dcim_core.power.chains import compute_chain_loads
from dcim_core.power.rack import compute_all_rack_power


def render_power_topology(
    data: AllData,
    downed_chains: Iterable[str] = (),
    routing: ChainRouting = DEFAULT_ROUTING,
) -> graphviz.Digraph:
    """
    Render the power chain topology of the site:
    - One node per UPS chain, labelled with its final load.
    - One cluster per room holding its racks.
    - Each rack gets a voie-1 and a voie-2 edge from the chains its room routes to.
    Downed chains and the voies they feed are greyed out.
    """
    downed = set(downed_chains)
    loads = compute_chain_loads(data, downed, routing)
    rack_power = compute_all_rack_power(data)

    dot = graphviz.Digraph("dcim_power_topology", format="svg")
    dot.attr(rankdir="TB")

    for chain in CHAINS:
        load = loads[chain]
        is_down = chain in downed
        dot.node(
            f"chain@{chain}",
            label=f"Chain {chain}\\n{'DOWN' if is_down else f'{load.final_total:.1f} kW'}",
            shape="box",
            style="filled",
            fillcolor="lightgray" if is_down else "orange",
        )

    rooms = sorted({rack.salle for rack in data.racks})
    for room in rooms:
        with dot.subgraph(name=f"cluster_{room}") as c:
            c.attr(label=f"Room: {room}", style="rounded", color="gray")
            for rack in (r for r in data.racks if r.salle == room):
                power = rack_power[rack.id]
                c.node(
                    f"rack@{rack.id}",
                    label=f"{rack.designation or rack.id}\\n{power.total:.1f} kW",
                    shape="ellipse",
                    style="filled",
                    fillcolor="lightblue",
                )

    for rack in data.racks:
        power = rack_power[rack.id]
        voies = routing.for_room(rack.salle)
        for voie, chain, voie_power in (("V1", voies.voie1, power.v1), ("V2", voies.voie2, power.v2)):
            attrs = {"label": f"{voie} {voie_power.total:.1f} kW"}
            if chain in downed:
                attrs.update(color="gray", fontcolor="gray", style="dashed")
            dot.edge(f"chain@{chain}", f"rack@{rack.id}", **attrs)

    return dot
