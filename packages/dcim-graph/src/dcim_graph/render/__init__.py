from .power_topology import render_power_topology

__all__ = [
    "render_power_topology",
]
