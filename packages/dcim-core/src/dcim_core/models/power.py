from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PowerType = Literal["DC", "AC_TRI", "AC_MONO"]


class VoiePower(BaseModel):
    """AC phase and DC totals of one voie, in kW."""

    model_config = ConfigDict(extra="ignore")
    p1: float = 0.0
    p2: float = 0.0
    p3: float = 0.0
    dc: float = 0.0

    @property
    def ac_total(self) -> float:
        return self.p1 + self.p2 + self.p3

    @property
    def total(self) -> float:
        return self.ac_total + self.dc


class RackPower(BaseModel):
    """Calculated power of a rack, split by voie."""

    model_config = ConfigDict(extra="ignore")
    v1: VoiePower = Field(default_factory=VoiePower)
    v2: VoiePower = Field(default_factory=VoiePower)

    @property
    def total(self) -> float:
        return self.v1.total + self.v2.total

    def voie(self, voie: str) -> VoiePower | None:
        if voie == "1":
            return self.v1
        if voie == "2":
            return self.v2
        return None

    def as_rack_fields(self) -> dict[str, float]:
        return {
            "conso_baie_v1_ph1_kw": self.v1.p1,
            "conso_baie_v1_ph2_kw": self.v1.p2,
            "conso_baie_v1_ph3_kw": self.v1.p3,
            "conso_baie_v1_dc_kw": self.v1.dc,
            "conso_baie_v2_ph1_kw": self.v2.p1,
            "conso_baie_v2_ph2_kw": self.v2.p2,
            "conso_baie_v2_ph3_kw": self.v2.p3,
            "conso_baie_v2_dc_kw": self.v2.dc,
        }


class ChainLoad(BaseModel):
    """Load on one UPS chain: IT, other consumers, failover transfers and final per-phase load."""

    model_config = ConfigDict(extra="ignore")
    it_p1: float = 0.0
    it_p2: float = 0.0
    it_p3: float = 0.0
    it_dc: float = 0.0
    other_p1: float = 0.0
    other_p2: float = 0.0
    other_p3: float = 0.0
    other_dc: float = 0.0
    transferred_p1: float = 0.0
    transferred_p2: float = 0.0
    transferred_p3: float = 0.0
    transferred_dc: float = 0.0
    final_p1: float = 0.0
    final_p2: float = 0.0
    final_p3: float = 0.0

    @property
    def final_total(self) -> float:
        return self.final_p1 + self.final_p2 + self.final_p3

    @property
    def it_ac_total(self) -> float:
        return self.it_p1 + self.it_p2 + self.it_p3

    @property
    def other_ac_total(self) -> float:
        return self.other_p1 + self.other_p2 + self.other_p3

    @property
    def transferred_total(self) -> float:
        return self.transferred_p1 + self.transferred_p2 + self.transferred_p3 + self.transferred_dc

    @property
    def final_phases(self) -> tuple[float, float, float]:
        return (self.final_p1, self.final_p2, self.final_p3)


class RackUtilization(BaseModel):
    model_config = ConfigDict(extra="ignore")
    total_power: float
    capacity: float
    percentage: float


class DCPanelUtilization(BaseModel):
    model_config = ConfigDict(extra="ignore")
    used_breakers: int
    total_breakers: int
    percentage: float


class ACBoxUtilization(BaseModel):
    model_config = ConfigDict(extra="ignore")
    used_outlets: int
    total_outlets: int
    percentage: float


class RackPowerAnomaly(BaseModel):
    """Measured vs calculated power of a rack."""

    model_config = ConfigDict(extra="ignore")
    power_difference_kw: float = 0.0
    power_difference_percent: float = 0.0
    is_over_power: bool = False
    imbalance_v1: float = 0.0
    imbalance_v2: float = 0.0
    has_imbalance: bool = False
    has_anomaly: bool = False
    total_real: float = 0.0
    total_calculated: float = 0.0


# -------------------------------
# N+1 redundancy reports
# -------------------------------


class DCConnectionDetail(BaseModel):
    """One equipment's contribution to a DC panel, with its redundant side."""

    model_config = ConfigDict(extra="ignore")
    rack_name: str
    equipment_name: str
    primary_panel: str
    primary_power: float
    redundant_panel: str | None = None
    redundant_power: float = 0.0


class PanelReport(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    designation: str = ""
    chaine: str = ""
    own_power: float = 0.0
    failover_potential_power: float = 0.0
    failover_active_power: float = 0.0
    simulated_load: float = 0.0
    connections: list[DCConnectionDetail] = Field(default_factory=list)

    @property
    def total_on_failure(self) -> float:
        return self.own_power + self.failover_potential_power


class RectifierReport(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    total_power_on_failure: float = 0.0
    panels: list[PanelReport] = Field(default_factory=list)


class CanalisConnectionPair(BaseModel):
    model_config = ConfigDict(extra="ignore")
    rack_id: str
    rack_name: str
    equipment_id: str
    equipment_name: str
    primary_box: str
    primary_power: float
    redundant_box: str | None = None
    redundant_power: float = 0.0


class CanalisReport(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    own_power: float = 0.0
    failover_power: float = 0.0
    total_on_failure: float = 0.0
    connection_pairs: list[CanalisConnectionPair] = Field(default_factory=list)


# -------------------------------
# Site dashboard
# -------------------------------


class AreaLoad(BaseModel):
    """AC and DC totals of a room or a row."""

    model_config = ConfigDict(extra="ignore")
    ac: float = 0.0
    dc: float = 0.0

    @property
    def total(self) -> float:
        return self.ac + self.dc


class HeavyRack(BaseModel):
    model_config = ConfigDict(extra="ignore")
    rack_id: str
    current_weight_kg: float
    max_weight_kg: float
    weight_percent: float


class SiteSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")
    total_racks: int = 0
    high_power_racks: int = 0
    total_it_power: float = 0.0
    total_other_power: float = 0.0
    power_per_room: dict[str, AreaLoad] = Field(default_factory=dict)
    physical_occupancy_percent: float = 0.0
    total_u_used: float = 0.0
    total_u_available: float = 0.0
    heavy_racks: list[HeavyRack] = Field(default_factory=list)
    stranded_power_kw: float = 0.0
    stranded_space_u: float = 0.0
    top_anomaly_racks: list[str] = Field(default_factory=list)
