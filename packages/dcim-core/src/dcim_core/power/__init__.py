from dcim_core.codebase.numeric import to_num

from .chains import compute_chain_loads
from .outlets import get_outlets_for_ac_box, parse_outlet_string, parse_rack_dimensions
from .pairing import pair_voie_connections, redundant_connection_map
from .phases import calculate_imbalance, classify_utilization, utilization_percent
from .rack import (
    compute_all_rack_power,
    compute_rack_power,
    delete_equipment_cascade,
    get_rack_power_type,
    recalculate_all_racks,
    recalculate_rack_power,
)
from .redundancy import compute_ac_canalis_report, compute_dc_rectifier_report, rectifier_id_for_panel
from .site import compute_room_loads, compute_row_loads, compute_site_summary
from .utilization import (
    compute_ac_box_utilizations,
    compute_dc_panel_utilizations,
    compute_rack_power_anomalies,
    compute_rack_utilizations,
    detect_rack_anomaly,
)

__all__ = [
    "calculate_imbalance",
    "classify_utilization",
    "compute_ac_box_utilizations",
    "compute_ac_canalis_report",
    "compute_all_rack_power",
    "compute_chain_loads",
    "compute_dc_panel_utilizations",
    "compute_dc_rectifier_report",
    "compute_rack_power",
    "compute_rack_power_anomalies",
    "compute_rack_utilizations",
    "compute_room_loads",
    "compute_row_loads",
    "compute_site_summary",
    "delete_equipment_cascade",
    "detect_rack_anomaly",
    "get_outlets_for_ac_box",
    "get_rack_power_type",
    "pair_voie_connections",
    "parse_outlet_string",
    "parse_rack_dimensions",
    "recalculate_all_racks",
    "recalculate_rack_power",
    "rectifier_id_for_panel",
    "redundant_connection_map",
    "to_num",
    "utilization_percent",
]
