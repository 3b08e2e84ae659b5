# ----------------------------
# Electrical constants
# ----------------------------

RECTIFIER_EFFICIENCY = 0.96
PHASE_COUNT = 3

# ----------------------------
# Flagging thresholds (percent)
# ----------------------------

IMBALANCE_THRESHOLD_PCT = 20.0
CRITICAL_UTILIZATION_PCT = 90.0
WARNING_UTILIZATION_PCT = 80.0
HIGH_POWER_RACK_PCT = 80.0
HEAVY_RACK_PCT = 80.0
FULL_RACK_SPACE_PCT = 95.0

# ----------------------------
# Inventory conventions
# ----------------------------

MIN_DC_PANEL_ID_SEGMENTS = 5
DEFAULT_RACK_U = 42
WATTS_ENTRY_THRESHOLD_KW = 100.0
