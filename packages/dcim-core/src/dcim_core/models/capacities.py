import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dcim_core.models.records import ChainId

# Flat keys used by the dashboard settings export, e.g. upsChainA_kW, roomITN1_kW, rowAC_kW.
_FLAT_CHAIN_KEY = re.compile(r"^upsChain([A-Za-z0-9]+)_kW$")
_FLAT_ROOM_KEY = re.compile(r"^room(.+)_kW$")

DEFAULT_CHAIN_KW = {"A": 333.0, "B": 333.0, "C": 333.0}
DEFAULT_ROOM_KW = {"ITN1": 500.0, "ITN2": 500.0, "ITN3": 500.0}


class Capacities(BaseModel):
    """Named kW ceilings used by the capacity checks and reports."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    ups_chains: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_CHAIN_KW))
    rooms: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_ROOM_KW))
    row_ac_kw: float = 80.0
    row_dc_kw: float = 80.0

    # N+1 reference ceilings
    dc_panel_failover_kw: float = 40.0
    rectifier_kw: float = 80.0
    canalis_kw: float = 160.0

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_keys(cls, data: Any):
        if not isinstance(data, dict):
            return data
        out = dict(data)
        # Partial tables only override the chains and rooms they name
        chains = {**DEFAULT_CHAIN_KW, **(out.get("ups_chains") or {})}
        rooms = {**DEFAULT_ROOM_KW, **(out.get("rooms") or {})}
        for key, value in data.items():
            if m := _FLAT_CHAIN_KEY.match(str(key)):
                chains[m.group(1).upper()] = value
                out.pop(key)
            elif m := _FLAT_ROOM_KEY.match(str(key)):
                rooms[m.group(1)] = value
                out.pop(key)
        if "rowAC_kW" in out:
            out["row_ac_kw"] = out.pop("rowAC_kW")
        if "rowDC_kW" in out:
            out["row_dc_kw"] = out.pop("rowDC_kW")
        out["ups_chains"] = chains
        out["rooms"] = rooms
        return out

    def chain_capacity(self, chain: str) -> float:
        """Per-phase capacity of a UPS chain, 0 if unknown."""
        return float(self.ups_chains.get(chain, 0.0))

    def room_capacity(self, room: str) -> float:
        return float(self.rooms.get(room, 0.0))


class VoieRouting(BaseModel):
    """Chains feeding voie 1 and voie 2 of a rack."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    voie1: ChainId
    voie2: ChainId


class ChainRouting(BaseModel):
    """Room -> chain lookup table. Rooms not listed use `default`."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    rooms: dict[str, VoieRouting] = Field(default_factory=dict)
    default: VoieRouting = VoieRouting(voie1="B", voie2="C")

    def for_room(self, room: str) -> VoieRouting:
        return self.rooms.get(room, self.default)


DEFAULT_ROUTING = ChainRouting(
    rooms={
        "ITN1": VoieRouting(voie1="A", voie2="B"),
        "ITN2": VoieRouting(voie1="A", voie2="C"),
        "ITN3": VoieRouting(voie1="B", voie2="C"),
    },
    default=VoieRouting(voie1="B", voie2="C"),
)
