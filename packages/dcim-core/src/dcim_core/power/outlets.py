import re
from typing import NamedTuple

from dcim_core.power.constants import DEFAULT_RACK_U

_LOCKED_PHASE = re.compile(r"\((P\d)\)")
_SUMMARY_PART = re.compile(r"(\d+)(TRI|MONO)")


class OutletSpec(NamedTuple):
    name: str
    phase: str | None
    is_locked: bool


def parse_rack_dimensions(dimensions: str | None) -> int:
    """Rack height in U from a dimension string such as "42U 600x1200" (default 42)."""
    if not dimensions:
        return DEFAULT_RACK_U
    match = re.search(r"\d+", dimensions)
    return int(match.group(0)) if match else DEFAULT_RACK_U


def parse_outlet_string(outlet: str | None) -> OutletSpec:
    """Split an outlet label into its name and the phase it is wired to.

    "MONO 1 (P1)" -> ("MONO 1", "P1", True)
    "TRI 1"       -> ("TRI 1", None, False)
    """
    if not outlet:
        return OutletSpec("", None, False)

    match = _LOCKED_PHASE.search(outlet)
    if match:
        return OutletSpec(outlet.replace(match.group(0), "", 1).strip(), match.group(1), True)
    return OutletSpec(outlet, None, False)


def get_outlets_for_ac_box(configuration: str | None) -> list[str]:
    """List the outlets of an AC box.

    Accepts the descriptive format ("TRI 1, MONO 1 (P1), MONO 2 (P2)") and the
    legacy summary format ("2TRI+3MONO").
    """
    if not configuration:
        return []

    if "," in configuration:
        return [part.strip() for part in configuration.split(",") if part.strip()]

    outlets: list[str] = []
    for part in configuration.upper().split("+"):
        match = _SUMMARY_PART.search(part)
        if match:
            count, kind = int(match.group(1)), match.group(2)
            outlets.extend(f"{kind} {i}" for i in range(1, count + 1))
    return outlets
