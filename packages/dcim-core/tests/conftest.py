import pytest
from dcim_core.models.records import AllData

COLLECTIONS = (
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


def _build(**collections) -> AllData:
    payload = {key: [] for key in COLLECTIONS}
    payload.update(collections)
    return AllData.model_validate(payload)


@pytest.fixture
def make_data():
    """Factory building an AllData snapshot; unspecified collections are empty."""
    return _build


@pytest.fixture
def itn1_rack_data():
    """One ITN1 rack holding one equipment: voie 1 at 3/3/3 kW, voie 2 at 2/2/2 kW."""
    return _build(
        racks=[{"id": "R1", "designation": "ITN1-A-01", "salle": "ITN1", "rangee": "A", "puissance_pdu_kw": 22}],
        equipements=[{"id": "EQ1", "rack_fk": "R1", "nom_equipement": "srv-01", "hauteur_u": 2}],
        boitiers_ac=[
            {"id": "AC1", "canalis": "A1", "salle": "ITN1", "configuration": "3MONO"},
            {"id": "AC2", "canalis": "B1", "salle": "ITN1", "configuration": "3MONO"},
        ],
        connexions_ac=[
            {"id": "C1", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "outlet_name": "MONO 1", "phase": "P1", "voie": "1", "puissance_kw": 3},
            {"id": "C2", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "outlet_name": "MONO 2", "phase": "P2", "voie": "1", "puissance_kw": 3},
            {"id": "C3", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "outlet_name": "MONO 3", "phase": "P3", "voie": "1", "puissance_kw": 3},
            {"id": "C4", "equipment_fk": "EQ1", "ac_box_fk": "AC2", "outlet_name": "MONO 1", "phase": "P1", "voie": "2", "puissance_kw": 2},
            {"id": "C5", "equipment_fk": "EQ1", "ac_box_fk": "AC2", "outlet_name": "MONO 2", "phase": "P2", "voie": "2", "puissance_kw": 2},
            {"id": "C6", "equipment_fk": "EQ1", "ac_box_fk": "AC2", "outlet_name": "MONO 3", "phase": "P3", "voie": "2", "puissance_kw": 2},
        ],
    )
