import logging
from pathlib import Path

from dcim_core.data.loader import load_yaml_typed
from dcim_core.models.capacities import DEFAULT_ROUTING, Capacities, ChainRouting

logger = logging.getLogger("dcim.snapshot")


def load_capacities(path: Path | str = Path("doctrine/capacities.yaml")) -> Capacities:
    """Capacity ceilings from YAML; built-in defaults when the file does not exist."""
    p = Path(path)
    if not p.exists():
        logger.info("No capacities file at %s, using defaults", p)
        return Capacities()
    return load_yaml_typed(p, model=Capacities)


def load_routing(path: Path | str = Path("doctrine/routing.yaml")) -> ChainRouting:
    """Room -> chain routing from YAML; the ITN1/ITN2/ITN3 table when the file does not exist."""
    p = Path(path)
    if not p.exists():
        logger.info("No routing file at %s, using default routing", p)
        return DEFAULT_ROUTING
    return load_yaml_typed(p, model=ChainRouting)
