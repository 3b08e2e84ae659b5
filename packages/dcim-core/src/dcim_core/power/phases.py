from typing import Literal

from dcim_core.power.constants import CRITICAL_UTILIZATION_PCT, WARNING_UTILIZATION_PCT

UtilizationLevel = Literal["critical", "warning", "ok"]


def calculate_imbalance(p1: float, p2: float, p3: float) -> float:
    """Percentage spread between the active (> 0) phases of a circuit.

    A circuit with fewer than two active phases cannot be imbalanced and yields 0.
    """
    phases = [p for p in (p1, p2, p3) if p > 0]
    if len(phases) < 2:
        return 0.0

    max_phase = max(phases)
    min_phase = min(phases)
    return (max_phase - min_phase) / max_phase * 100.0


def utilization_percent(value: float, capacity: float) -> float:
    return value / capacity * 100.0 if capacity > 0 else 0.0


def classify_utilization(percentage: float) -> UtilizationLevel:
    if percentage > CRITICAL_UTILIZATION_PCT:
        return "critical"
    if percentage > WARNING_UTILIZATION_PCT:
        return "warning"
    return "ok"
