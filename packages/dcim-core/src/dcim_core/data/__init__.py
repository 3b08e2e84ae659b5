from .capacities import load_capacities, load_routing
from .loader import load_yaml_typed, read_yaml
from .snapshot import (
    KeyMappingInfo,
    SnapshotDiagnostics,
    load_snapshot,
    load_snapshot_with_diagnostics,
    normalize_snapshot,
    to_store_payload,
)

__all__ = [
    "KeyMappingInfo",
    "SnapshotDiagnostics",
    "load_capacities",
    "load_routing",
    "load_snapshot",
    "load_snapshot_with_diagnostics",
    "load_yaml_typed",
    "normalize_snapshot",
    "read_yaml",
    "to_store_payload",
]
