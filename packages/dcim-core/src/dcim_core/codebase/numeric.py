import math
import re
from typing import Any

# Leading decimal number, the way spreadsheet exports tend to carry them ("12.5 kW", " 3", "1e3").
_NUMERIC_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def to_num(value: Any) -> float:
    """Coerce a raw store value into a finite kW number.

    Missing values, booleans, NaN/infinite numbers and unparsable strings all
    become 0. Strings may use a comma as decimal separator ("2,5" -> 2.5).
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        out = float(value)
        return out if math.isfinite(out) else 0.0
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value.replace(",", ".", 1))
        if not match:
            return 0.0
        try:
            out = float(match.group(1))
        except ValueError:
            return 0.0
        return out if math.isfinite(out) else 0.0
    return 0.0
