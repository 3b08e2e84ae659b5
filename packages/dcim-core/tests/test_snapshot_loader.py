"""
Unit tests for snapshot ingestion, store export and the capacity/routing loaders.
"""

import pytest
from dcim_core.data.capacities import load_capacities, load_routing
from dcim_core.data.snapshot import (
    STORE_CONNECTION_COLUMNS,
    load_snapshot,
    load_snapshot_with_diagnostics,
    normalize_key,
    normalize_snapshot,
    to_store_payload,
)
from dcim_core.models.capacities import DEFAULT_ROUTING, Capacities

STORE_SNAPSHOT = """
Racks:
  - {ID: R1, Désignation: ITN1-A-01, Salle: ITN1, Rangée: A, puissance_pdu_kw: "22"}
Equipements:
  - {id: EQ1, rack_fk: R1, nom_equipement: srv-01, type_alimentation: ac}
boitiersAC:
  - {id: AC1, canalis: A1, configuration: 2TRI+3MONO}
tableaux_DC:
  - {id: IT.1-SWB.REC.A.1, salle: ITN1, chaine: A}
connexionsAC:
  - {id: C1, Equipement FK: EQ1, boitier_fk: AC1, prise_utilisee: MONO 1, phase: p1, voie: 1, puissance_kw: "1,5"}
  - {id: C2, equipement_fk: EQ1, boitier_fk: AC1, prise_utilisee: MONO 2, phase: P2, voie: 2, puissance_kw: 1200}
connexionsDC:
  - {id: D1, equipement_fk: EQ1, tableau_dc_fk: IT.1-SWB.REC.A.1, numero_disjoncteur: 5, calibre_a: 32, voie: "1", puissance_kw: 2}
otherConsumers:
  - {chaine: b, acp1: 1.5}
"""


class TestNormalizeKey:
    @pytest.mark.parametrize(
        "raw,expected",
        [("Équipement FK", "equipement_fk"), ("Rangée", "rangee"), ("  Prise   utilisée ", "prise_utilisee"), ("id", "id")],
    )
    def test_normalize_key(self, raw, expected):
        assert normalize_key(raw) == expected


class TestNormalizeSnapshot:
    def test_every_collection_is_present(self):
        normalized, diagnostics = normalize_snapshot({"racks": [{"id": "R1"}]})

        assert normalized["racks"] == [{"id": "R1"}]
        assert normalized["connexions_ac"] == []
        assert normalized["cablage_alimentation"] == []
        assert "equipements" in diagnostics.missing
        assert "racks" not in diagnostics.missing

    def test_key_mapping_info(self):
        _, diagnostics = normalize_snapshot({"Boitiers_AC": [{"id": "AC1"}, {"id": "AC2"}], "junk": 1})
        info = next(i for i in diagnostics.key_mapping if i.canonical_key == "boitiers_ac")

        assert info.status == "found"
        assert info.raw_key_found == "Boitiers_AC"
        assert info.row_count == 2
        assert diagnostics.raw_keys_found == ["Boitiers_AC", "junk"]

    def test_non_list_collection_is_missing(self):
        normalized, diagnostics = normalize_snapshot({"racks": "oops"})
        assert normalized["racks"] == []
        assert "racks" in diagnostics.missing

    def test_connection_columns_are_mapped(self):
        normalized, _ = normalize_snapshot(
            {
                "connexions_dc": [
                    {"id": "D1", "equipement_fk": "EQ1", "tableau_dc_fk": "P1", "numero_disjoncteur": 3, "calibre_a": 63}
                ]
            }
        )
        row = normalized["connexions_dc"][0]
        assert row["equipment_fk"] == "EQ1"
        assert row["dc_panel_fk"] == "P1"
        assert row["breaker_number"] == "3"
        assert row["breaker_rating_a"] == "63"

    def test_canonical_connection_columns_are_accepted(self):
        normalized, _ = normalize_snapshot(
            {"connexions_ac": [{"id": "C1", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "outlet_name": "TRI 1"}]}
        )
        row = normalized["connexions_ac"][0]
        assert row["equipment_fk"] == "EQ1"
        assert row["ac_box_fk"] == "AC1"
        assert row["outlet_name"] == "TRI 1"

    @pytest.mark.parametrize("raw,expected", [(1200, 1.2), ("100", 100.0), ("100.5", 0.1005), (None, 0.0)])
    def test_watts_heuristic(self, raw, expected):
        normalized, _ = normalize_snapshot({"connexions_ac": [{"id": "C1", "puissance_kw": raw}]})
        assert normalized["connexions_ac"][0]["puissance_kw"] == pytest.approx(expected)


class TestLoadSnapshot:
    def test_happy_path(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text(STORE_SNAPSHOT, encoding="utf-8")

        data = load_snapshot(path)

        assert [r.id for r in data.racks] == ["R1"]
        assert data.racks[0].designation == "ITN1-A-01"
        assert data.racks[0].rangee == "A"
        assert data.racks[0].puissance_pdu_kw == 22.0
        assert data.equipements[0].type_alimentation == "AC"
        assert data.connexions_ac[0].equipment_fk == "EQ1"
        assert data.connexions_ac[0].phase == "P1"
        assert data.connexions_ac[0].voie == "1"
        assert data.connexions_ac[0].puissance_kw == pytest.approx(1.5)
        assert data.connexions_ac[1].puissance_kw == pytest.approx(1.2)
        assert data.connexions_dc[0].breaker_number == 5.0
        assert data.autres_consommateurs[0].chaine == "B"
        assert data.ports_alimentation == []

    def test_racks_are_recalculated(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text(STORE_SNAPSHOT, encoding="utf-8")

        rack = load_snapshot(path).racks[0]
        assert rack.conso_baie_v1_ph1_kw == pytest.approx(1.5)
        assert rack.conso_baie_v2_ph2_kw == pytest.approx(1.2)
        assert rack.conso_baie_v1_dc_kw == pytest.approx(2.0)

    def test_without_recalculation(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text(STORE_SNAPSHOT, encoding="utf-8")

        rack = load_snapshot(path, recalculate=False).racks[0]
        assert rack.conso_baie_v1_ph1_kw == 0.0

    def test_json_export(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text('{"racks": [{"id": "R1", "salle": "ITN1"}], "equipements": []}', encoding="utf-8")

        data, diagnostics = load_snapshot_with_diagnostics(path)
        assert data.racks[0].salle == "ITN1"
        assert "connexions_ac" in diagnostics.missing

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text("racks: [unclosed", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_snapshot(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_snapshot(path)

    def test_invalid_rows(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text("equipements:\n  - {nom_equipement: no-id}\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid structure"):
            load_snapshot(path)


class TestStorePayload:
    def test_connection_rows_share_one_shape(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text(STORE_SNAPSHOT, encoding="utf-8")

        payload = to_store_payload(load_snapshot(path))

        assert set(payload["connexionsAC"][0]) == set(STORE_CONNECTION_COLUMNS)
        assert set(payload["connexionsDC"][0]) == set(STORE_CONNECTION_COLUMNS)
        assert payload["connexionsAC"][0]["tableau_dc_fk"] == ""
        assert payload["connexionsDC"][0]["prise_utilisee"] == ""
        assert payload["connexionsDC"][0]["numero_disjoncteur"] == 5

    def test_all_collections_written(self, make_data):
        payload = to_store_payload(make_data())
        assert set(payload) == {
            "racks",
            "equipements",
            "boitiersAC",
            "tableauxDC",
            "connexionsAC",
            "connexionsDC",
            "autresConsommateurs",
            "portsAlimentation",
            "cablageAlimentation",
        }

    def test_payload_normalizes_back(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text(STORE_SNAPSHOT, encoding="utf-8")
        data = load_snapshot(path)

        normalized, diagnostics = normalize_snapshot(to_store_payload(data))
        assert diagnostics.missing == []
        assert normalized["connexions_ac"][0]["ac_box_fk"] == "AC1"
        assert normalized["connexions_dc"][0]["dc_panel_fk"] == "IT.1-SWB.REC.A.1"


class TestCapacitiesAndRouting:
    def test_missing_files_use_defaults(self, tmp_path):
        assert load_capacities(tmp_path / "none.yaml") == Capacities()
        assert load_routing(tmp_path / "none.yaml") == DEFAULT_ROUTING

    def test_partial_capacities_keep_defaults(self, tmp_path):
        path = tmp_path / "capacities.yaml"
        path.write_text("ups_chains:\n  A: 400\nrow_ac_kw: 60\n", encoding="utf-8")

        capacities = load_capacities(path)
        assert capacities.chain_capacity("A") == 400.0
        assert capacities.chain_capacity("B") == 333.0
        assert capacities.row_ac_kw == 60.0
        assert capacities.canalis_kw == 160.0

    def test_flat_dashboard_keys(self, tmp_path):
        path = tmp_path / "capacities.yaml"
        path.write_text("upsChainC_kW: 250\nroomITN2_kW: 450\nrowDC_kW: 70\n", encoding="utf-8")

        capacities = load_capacities(path)
        assert capacities.chain_capacity("C") == 250.0
        assert capacities.room_capacity("ITN2") == 450.0
        assert capacities.room_capacity("ITN1") == 500.0
        assert capacities.row_dc_kw == 70.0

    def test_routing_file(self, tmp_path):
        path = tmp_path / "routing.yaml"
        path.write_text("rooms:\n  LAB: {voie1: C, voie2: A}\n", encoding="utf-8")

        routing = load_routing(path)
        assert routing.for_room("LAB").voie1 == "C"
        assert routing.for_room("ITN1").voie1 == "B"

    def test_invalid_routing_chain(self, tmp_path):
        path = tmp_path / "routing.yaml"
        path.write_text("rooms:\n  LAB: {voie1: Z, voie2: A}\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid structure"):
            load_routing(path)
