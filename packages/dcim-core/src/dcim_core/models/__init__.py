from .capacities import DEFAULT_ROUTING, Capacities, ChainRouting, VoieRouting
from .power import ChainLoad, RackPower, VoiePower
from .records import CHAINS, ACBox, ACConnection, AllData, DCConnection, DCPanel, Equipment, OtherConsumer, Rack

__all__ = [
    "ACBox",
    "ACConnection",
    "AllData",
    "CHAINS",
    "Capacities",
    "ChainLoad",
    "ChainRouting",
    "DCConnection",
    "DCPanel",
    "DEFAULT_ROUTING",
    "Equipment",
    "OtherConsumer",
    "Rack",
    "RackPower",
    "VoiePower",
    "VoieRouting",
]
