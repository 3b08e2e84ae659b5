from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from dcim_core.codebase.numeric import to_num

ChainId = Literal["A", "B", "C"]

CHAINS: tuple[ChainId, ...] = ("A", "B", "C")


def _clean_str(v: Any) -> str:
    return "" if v is None else str(v).strip()


class Rack(BaseModel):
    """Rack record as exported by the inventory store."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    id: str
    designation: str = ""
    salle: str = ""
    rangee: str = ""
    numero_baie: int | str = ""
    dimensions: str = ""
    poids_max_kg: float = 0.0
    puissance_pdu_kw: float = 0.0

    # Calculated from the equipment connections (see recalculate_rack_power)
    conso_baie_v1_ph1_kw: float = 0.0
    conso_baie_v1_ph2_kw: float = 0.0
    conso_baie_v1_ph3_kw: float = 0.0
    conso_baie_v1_dc_kw: float = 0.0
    conso_baie_v2_ph1_kw: float = 0.0
    conso_baie_v2_ph2_kw: float = 0.0
    conso_baie_v2_ph3_kw: float = 0.0
    conso_baie_v2_dc_kw: float = 0.0

    # Measured on site
    conso_reelle_v1_ph1_kw: float = 0.0
    conso_reelle_v1_ph2_kw: float = 0.0
    conso_reelle_v1_ph3_kw: float = 0.0
    conso_reelle_v1_dc_kw: float = 0.0
    conso_reelle_v2_ph1_kw: float = 0.0
    conso_reelle_v2_ph2_kw: float = 0.0
    conso_reelle_v2_ph3_kw: float = 0.0
    conso_reelle_v2_dc_kw: float = 0.0

    # Legacy rack-level cabling, superseded by connection records
    ac_box_id_v1: str | None = None
    ac_outlet_v1: str | None = None
    ac_box_id_v2: str | None = None
    ac_outlet_v2: str | None = None
    dc_panel_id_v1: str | None = None
    dc_breaker_v1: str | None = None
    dc_panel_id_v2: str | None = None
    dc_breaker_v2: str | None = None

    @field_validator("id", "designation", "salle", "rangee", "dimensions", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return _clean_str(v)

    @field_validator("numero_baie", mode="before")
    @classmethod
    def _coerce_slot(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return v
        return _clean_str(v)

    @field_validator(
        "poids_max_kg",
        "puissance_pdu_kw",
        "conso_baie_v1_ph1_kw",
        "conso_baie_v1_ph2_kw",
        "conso_baie_v1_ph3_kw",
        "conso_baie_v1_dc_kw",
        "conso_baie_v2_ph1_kw",
        "conso_baie_v2_ph2_kw",
        "conso_baie_v2_ph3_kw",
        "conso_baie_v2_dc_kw",
        "conso_reelle_v1_ph1_kw",
        "conso_reelle_v1_ph2_kw",
        "conso_reelle_v1_ph3_kw",
        "conso_reelle_v1_dc_kw",
        "conso_reelle_v2_ph1_kw",
        "conso_reelle_v2_ph2_kw",
        "conso_reelle_v2_ph3_kw",
        "conso_reelle_v2_dc_kw",
        mode="before",
    )
    @classmethod
    def _coerce_kw(cls, v):
        return to_num(v)

    @field_validator(
        "ac_box_id_v1",
        "ac_outlet_v1",
        "ac_box_id_v2",
        "ac_outlet_v2",
        "dc_panel_id_v1",
        "dc_breaker_v1",
        "dc_panel_id_v2",
        "dc_breaker_v2",
        mode="before",
    )
    @classmethod
    def _coerce_optional_str(cls, v):
        return None if v is None or v == "" else str(v).strip()


class Equipment(BaseModel):
    """Equipment mounted in a rack."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    id: str
    rack_fk: str
    nom_equipement: str = ""
    type_equipement: str = ""
    type_alimentation: str = "AC"  # 'AC', 'DC' or 'AC/DC'
    u_position: float = 0.0
    hauteur_u: float = 0.0
    poids_kg: float = 0.0
    numero_serie: str = ""
    statut: str = ""

    @field_validator("id", "rack_fk", "nom_equipement", "type_equipement", "numero_serie", "statut", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return _clean_str(v)

    @field_validator("type_alimentation", mode="before")
    @classmethod
    def _coerce_alimentation(cls, v):
        return _clean_str(v).upper() or "AC"

    @field_validator("u_position", "hauteur_u", "poids_kg", mode="before")
    @classmethod
    def _coerce_num(cls, v):
        return to_num(v)


class ACBox(BaseModel):
    """AC power box tapped onto a canalis (busway)."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    id: str
    canalis: str = ""
    salle: str = ""
    configuration: str = ""
    rangee: str = ""

    @field_validator("id", "canalis", "salle", "configuration", "rangee", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return _clean_str(v)


class DCPanel(BaseModel):
    """DC distribution panel. The dotted id encodes its rectifier (all segments but the last)."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    id: str
    salle: str = ""
    designation: str = ""
    capacite_a: float = 0.0
    nombre_disjoncteurs_total: float = 0.0
    capacite_disjoncteurs: str = ""
    chaine: str = ""

    @field_validator("id", "salle", "designation", "capacite_disjoncteurs", "chaine", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return _clean_str(v)

    @field_validator("capacite_a", "nombre_disjoncteurs_total", mode="before")
    @classmethod
    def _coerce_num(cls, v):
        return to_num(v)


class ACConnection(BaseModel):
    """Equipment plugged into an AC box outlet on one voie."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    id: str
    equipment_fk: str
    ac_box_fk: str = ""
    outlet_name: str = ""
    phase: str = ""
    voie: str = ""
    puissance_kw: float = 0.0

    @field_validator("id", "equipment_fk", "ac_box_fk", "outlet_name", "voie", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return _clean_str(v)

    @field_validator("phase", mode="before")
    @classmethod
    def _coerce_phase(cls, v):
        return _clean_str(v).upper()

    @field_validator("puissance_kw", mode="before")
    @classmethod
    def _coerce_kw(cls, v):
        return to_num(v)


class DCConnection(BaseModel):
    """Equipment wired to breakers of a DC panel on one voie."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    id: str
    equipment_fk: str
    dc_panel_fk: str = ""
    breaker_number: float = 0.0
    breaker_rating_a: float = 0.0
    voie: str = ""
    puissance_kw: float = 0.0

    @field_validator("id", "equipment_fk", "dc_panel_fk", "voie", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return _clean_str(v)

    @field_validator("breaker_number", "breaker_rating_a", "puissance_kw", mode="before")
    @classmethod
    def _coerce_num(cls, v):
        return to_num(v)


class OtherConsumer(BaseModel):
    """Fixed non-IT load on a power chain (cooling, lighting, ...)."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    chaine: str
    acp1: float = 0.0
    acp2: float = 0.0
    acp3: float = 0.0
    dc: float = 0.0

    @field_validator("chaine", mode="before")
    @classmethod
    def _coerce_chain(cls, v):
        return _clean_str(v).upper()

    @field_validator("acp1", "acp2", "acp3", "dc", mode="before")
    @classmethod
    def _coerce_kw(cls, v):
        return to_num(v)


class AllData(BaseModel):
    """Complete store snapshot. Every collection must be present, even if empty."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    racks: list[Rack]
    equipements: list[Equipment]
    boitiers_ac: list[ACBox] = Field(validation_alias=AliasChoices("boitiers_ac", "boitiersAC"))
    tableaux_dc: list[DCPanel] = Field(validation_alias=AliasChoices("tableaux_dc", "tableauxDC"))
    connexions_ac: list[ACConnection] = Field(validation_alias=AliasChoices("connexions_ac", "connexionsAC"))
    connexions_dc: list[DCConnection] = Field(validation_alias=AliasChoices("connexions_dc", "connexionsDC"))
    autres_consommateurs: list[OtherConsumer] = Field(
        validation_alias=AliasChoices("autres_consommateurs", "autresConsommateurs")
    )
    ports_alimentation: list[dict] = Field(validation_alias=AliasChoices("ports_alimentation", "portsAlimentation"))
    cablage_alimentation: list[dict] = Field(
        validation_alias=AliasChoices("cablage_alimentation", "cablageAlimentation")
    )
