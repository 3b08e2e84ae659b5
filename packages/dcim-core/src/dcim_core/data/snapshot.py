"""
Store snapshot ingestion and export.

The inventory store hands back one mapping of sheet name -> list of rows. Sheet
names and column headers are loose (case, accents, spaces), connection sheets
use their own column names, and power cells are sometimes typed in watts.
`normalize_snapshot` turns such a payload into the canonical shape of
`AllData`; `to_store_payload` goes the other way for saving.
"""

from __future__ import annotations

import logging
import unicodedata
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dcim_core.codebase.numeric import to_num
from dcim_core.data.loader import read_yaml
from dcim_core.models.records import AllData
from dcim_core.power.constants import WATTS_ENTRY_THRESHOLD_KW
from dcim_core.power.rack import recalculate_all_racks

logger = logging.getLogger("dcim.snapshot")

CANONICAL_KEYS: tuple[str, ...] = (
    "racks",
    "equipements",
    "boitiers_ac",
    "tableaux_dc",
    "connexions_ac",
    "connexions_dc",
    "autres_consommateurs",
    "ports_alimentation",
    "cablage_alimentation",
)

# Raw sheet names, lower-cased with underscores removed
KEY_MAPPINGS: dict[str, str] = {
    "racks": "racks",
    "equipements": "equipements",
    "boitiersac": "boitiers_ac",
    "tableauxdc": "tableaux_dc",
    "connexionsac": "connexions_ac",
    "connexionsdc": "connexions_dc",
    "autresconsommateurs": "autres_consommateurs",
    "otherconsumers": "autres_consommateurs",
    "portsalimentation": "ports_alimentation",
    "cablagealimentation": "cablage_alimentation",
}

# Store column names for the two connection sheets. Both sheets are written
# with the same superset of columns.
_AC_COLUMNS = ("boitier_fk", "prise_utilisee", "phase")
_DC_COLUMNS = ("tableau_dc_fk", "numero_disjoncteur", "calibre_a")
STORE_CONNECTION_COLUMNS = ("id", "equipement_fk", "voie", "puissance_kw", *_AC_COLUMNS, *_DC_COLUMNS)

_STORE_COLLECTION_KEYS = {
    "racks": "racks",
    "equipements": "equipements",
    "boitiers_ac": "boitiersAC",
    "tableaux_dc": "tableauxDC",
    "connexions_ac": "connexionsAC",
    "connexions_dc": "connexionsDC",
    "autres_consommateurs": "autresConsommateurs",
    "ports_alimentation": "portsAlimentation",
    "cablage_alimentation": "cablageAlimentation",
}


class KeyMappingInfo(BaseModel):
    """How one canonical collection was resolved from the raw payload."""

    model_config = ConfigDict(extra="ignore")
    canonical_key: str
    status: Literal["found", "missing"] = "missing"
    raw_key_found: str | None = None
    row_count: int = 0


class SnapshotDiagnostics(BaseModel):
    model_config = ConfigDict(extra="ignore")
    raw_keys_found: list[str] = Field(default_factory=list)
    key_mapping: list[KeyMappingInfo] = Field(default_factory=list)

    @property
    def missing(self) -> list[str]:
        return [info.canonical_key for info in self.key_mapping if info.status == "missing"]


# -------------------------------
# Row helpers
# -------------------------------


def normalize_key(key: str) -> str:
    """Lower-case a column header, strip accents and turn whitespace into underscores.

    "Équipement FK" -> "equipement_fk"
    """
    decomposed = unicodedata.normalize("NFD", str(key).lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return "_".join(stripped.split())


def normalize_row_keys(row: Any) -> Any:
    if not isinstance(row, dict):
        return row
    return {normalize_key(k): v for k, v in row.items()}


def _first(row: dict, *keys: str) -> str:
    """First non-empty cell among `keys`, as a stripped string."""
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return str(value).strip()
    return ""


def _power_kw(row: dict) -> float:
    power = to_num(_first(row, "puissance-kw", "puissance_kw") or "0")
    # Connection power above 100 kW was typed in watts
    if power > WATTS_ENTRY_THRESHOLD_KW:
        power = power / 1000
    return power


def _map_ac_connection(row: dict) -> dict:
    return {
        "id": _first(row, "id"),
        "equipment_fk": _first(row, "equipement_fk", "equipementfk", "equipment_fk"),
        "ac_box_fk": _first(row, "boitier_fk", "boitierfk", "ac_box_fk"),
        "outlet_name": _first(row, "prise_utilisee", "priseutilisee", "outlet_name"),
        "phase": _first(row, "phase"),
        "voie": _first(row, "voie"),
        "puissance_kw": _power_kw(row),
    }


def _map_dc_connection(row: dict) -> dict:
    return {
        "id": _first(row, "id"),
        "equipment_fk": _first(row, "equipement_fk", "equipementfk", "equipment_fk"),
        "dc_panel_fk": _first(row, "tableau_dc_fk", "tableaudcfk", "dc_panel_fk"),
        "breaker_number": _first(row, "numero_disjoncteur", "numerodisjoncteur", "breaker_number"),
        "breaker_rating_a": _first(row, "calibre_a", "calibrea", "breaker_rating_a"),
        "voie": _first(row, "voie"),
        "puissance_kw": _power_kw(row),
    }


def _map_other_consumer(row: dict) -> dict:
    return {
        "chaine": _first(row, "chaine"),
        "acp1": row.get("acp1") or 0,
        "acp2": row.get("acp2") or 0,
        "acp3": row.get("acp3") or 0,
        "dc": row.get("dc") or 0,
    }


_ROW_MAPPERS = {
    "connexions_ac": _map_ac_connection,
    "connexions_dc": _map_dc_connection,
    "autres_consommateurs": _map_other_consumer,
}


# -------------------------------
# Payload normalization
# -------------------------------


def _raw_key_for(raw: dict, canonical_key: str) -> str | None:
    for raw_key in raw:
        if KEY_MAPPINGS.get(str(raw_key).lower().replace("_", "")) == canonical_key:
            return raw_key
    return None


def normalize_snapshot(raw: dict[str, Any]) -> tuple[dict[str, list], SnapshotDiagnostics]:
    """Map a raw store payload onto the canonical collections.

    Every canonical collection is present in the result; the ones the payload
    lacks (or holds as something other than a list) are empty.
    """
    normalized: dict[str, list] = {}
    mapping: list[KeyMappingInfo] = []

    for canonical_key in CANONICAL_KEYS:
        info = KeyMappingInfo(canonical_key=canonical_key)
        raw_key = _raw_key_for(raw, canonical_key)
        rows = raw.get(raw_key) if raw_key is not None else None

        if isinstance(rows, list):
            info.status = "found"
            info.raw_key_found = str(raw_key)
            info.row_count = len(rows)
            rows = [normalize_row_keys(row) for row in rows]
            mapper = _ROW_MAPPERS.get(canonical_key)
            if mapper is not None:
                rows = [mapper(row) for row in rows if isinstance(row, dict)]
            normalized[canonical_key] = rows
        else:
            normalized[canonical_key] = []
        mapping.append(info)

    diagnostics = SnapshotDiagnostics(raw_keys_found=[str(k) for k in raw], key_mapping=mapping)
    if diagnostics.missing:
        logger.warning("Snapshot collections missing, using empty lists: %s", ", ".join(diagnostics.missing))
    return normalized, diagnostics


def load_snapshot_with_diagnostics(
    path: Path | str,
    *,
    recalculate: bool = True,
) -> tuple[AllData, SnapshotDiagnostics]:
    raw = read_yaml(path)
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid structure in {path}: expected a mapping of collections")

    normalized, diagnostics = normalize_snapshot(raw)
    try:
        data = AllData.model_validate(normalized)
    except ValidationError as e:
        raise ValueError(f"Invalid structure in {path}: {e}") from e

    logger.info(
        "Loaded snapshot %s: %d racks, %d equipements, %d AC / %d DC connections",
        path,
        len(data.racks),
        len(data.equipements),
        len(data.connexions_ac),
        len(data.connexions_dc),
    )
    if recalculate:
        data = recalculate_all_racks(data)
    return data, diagnostics


def load_snapshot(path: Path | str = Path("doctrine/snapshot.yaml"), *, recalculate: bool = True) -> AllData:
    """Load and normalize a store snapshot.

    With `recalculate`, the cached `conso_baie_*` fields of every rack are
    refreshed from the connection records.
    """
    data, _ = load_snapshot_with_diagnostics(path, recalculate=recalculate)
    return data


# -------------------------------
# Export
# -------------------------------


def _store_number(value: float) -> int | float | str:
    if not value:
        return ""
    return int(value) if float(value).is_integer() else value


def to_store_payload(data: AllData) -> dict[str, list]:
    """Full snapshot in the store's shape, every collection included."""
    payload: dict[str, list] = {}
    for canonical_key, store_key in _STORE_COLLECTION_KEYS.items():
        if canonical_key == "connexions_ac":
            rows = [
                {
                    "id": conn.id,
                    "equipement_fk": conn.equipment_fk,
                    "voie": conn.voie,
                    "puissance_kw": conn.puissance_kw,
                    "boitier_fk": conn.ac_box_fk,
                    "prise_utilisee": conn.outlet_name,
                    "phase": conn.phase,
                    **{column: "" for column in _DC_COLUMNS},
                }
                for conn in data.connexions_ac
            ]
        elif canonical_key == "connexions_dc":
            rows = [
                {
                    "id": conn.id,
                    "equipement_fk": conn.equipment_fk,
                    "voie": conn.voie,
                    "puissance_kw": conn.puissance_kw,
                    "tableau_dc_fk": conn.dc_panel_fk,
                    "numero_disjoncteur": _store_number(conn.breaker_number),
                    "calibre_a": _store_number(conn.breaker_rating_a),
                    **{column: "" for column in _AC_COLUMNS},
                }
                for conn in data.connexions_dc
            ]
        elif canonical_key in ("ports_alimentation", "cablage_alimentation"):
            rows = [dict(row) for row in getattr(data, canonical_key)]
        else:
            rows = [record.model_dump() for record in getattr(data, canonical_key)]
        payload[store_key] = rows
    return payload
