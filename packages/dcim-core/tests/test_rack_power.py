"""
Tests for rack power derivation, power-type classification and cascading delete.
"""

import pytest
from dcim_core.power.rack import (
    compute_all_rack_power,
    delete_equipment_cascade,
    get_rack_power_type,
    recalculate_all_racks,
    recalculate_rack_power,
)


@pytest.fixture
def mixed_data(make_data):
    """Rack R1 with an AC server (mono + tri) and a DC router; rack R2 empty."""
    return make_data(
        racks=[
            {"id": "R1", "salle": "ITN1", "conso_baie_v1_ph1_kw": 99, "conso_baie_v2_dc_kw": 99},
            {"id": "R2", "salle": "ITN1"},
        ],
        equipements=[
            {"id": "EQ1", "rack_fk": "R1"},
            {"id": "EQ2", "rack_fk": "R1"},
        ],
        connexions_ac=[
            {"id": "A1", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "phase": "P1", "voie": "1", "puissance_kw": 1.5},
            {"id": "A2", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "phase": "P123", "voie": "2", "puissance_kw": 6},
            {"id": "A3", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "phase": "P2", "voie": "3", "puissance_kw": 50},
        ],
        connexions_dc=[
            {"id": "D1", "equipment_fk": "EQ2", "dc_panel_fk": "P", "voie": "1", "puissance_kw": 2.5},
            {"id": "D2", "equipment_fk": "EQ2", "dc_panel_fk": "P", "voie": "2", "puissance_kw": 2.5},
            {"id": "D3", "equipment_fk": "GHOST", "dc_panel_fk": "P", "voie": "1", "puissance_kw": 10},
        ],
    )


class TestRecalculateRackPower:
    def test_fields_from_connections(self, mixed_data):
        rack = recalculate_rack_power(mixed_data.racks[0], mixed_data)

        assert rack.conso_baie_v1_ph1_kw == pytest.approx(1.5)
        assert rack.conso_baie_v1_ph2_kw == 0.0
        assert rack.conso_baie_v1_dc_kw == pytest.approx(2.5)
        # P123 is split evenly over the three phases
        assert rack.conso_baie_v2_ph1_kw == pytest.approx(2.0)
        assert rack.conso_baie_v2_ph2_kw == pytest.approx(2.0)
        assert rack.conso_baie_v2_ph3_kw == pytest.approx(2.0)
        assert rack.conso_baie_v2_dc_kw == pytest.approx(2.5)

    def test_stale_cached_fields_are_replaced(self, mixed_data):
        rack = recalculate_rack_power(mixed_data.racks[0], mixed_data)
        assert rack.conso_baie_v1_ph1_kw != 99
        assert rack.conso_baie_v2_dc_kw == pytest.approx(2.5)

    def test_unknown_voie_and_orphan_connections_are_ignored(self, mixed_data):
        power = compute_all_rack_power(mixed_data)["R1"]
        assert power.total == pytest.approx(1.5 + 6 + 5)

    def test_rack_without_equipment_is_zero(self, mixed_data):
        rack = recalculate_rack_power(mixed_data.racks[1], mixed_data)
        assert rack.conso_baie_v1_ph1_kw == 0.0
        assert rack.conso_baie_v2_dc_kw == 0.0

    def test_idempotent(self, mixed_data):
        once = recalculate_rack_power(mixed_data.racks[0], mixed_data)
        twice = recalculate_rack_power(once, mixed_data)
        assert once == twice

    def test_input_rack_is_not_mutated(self, mixed_data):
        original = mixed_data.racks[0]
        recalculate_rack_power(original, mixed_data)
        assert original.conso_baie_v1_ph1_kw == 99

    def test_other_fields_are_preserved(self, mixed_data):
        rack = recalculate_rack_power(mixed_data.racks[0], mixed_data)
        assert rack.id == "R1"
        assert rack.salle == "ITN1"

    def test_recalculate_all_racks(self, mixed_data):
        refreshed = recalculate_all_racks(mixed_data)
        assert [r.id for r in refreshed.racks] == ["R1", "R2"]
        assert refreshed.racks[0].conso_baie_v1_ph1_kw == pytest.approx(1.5)
        assert refreshed.connexions_ac == mixed_data.connexions_ac


class TestRackPowerType:
    def test_dc_connection_wins(self, mixed_data):
        assert get_rack_power_type(mixed_data.racks[0], mixed_data) == "DC"

    def test_p123_connection_is_tri(self, make_data):
        data = make_data(
            racks=[{"id": "R1"}],
            equipements=[{"id": "EQ1", "rack_fk": "R1"}],
            connexions_ac=[{"id": "A1", "equipment_fk": "EQ1", "phase": "P123", "voie": "1", "puissance_kw": 3}],
        )
        assert get_rack_power_type(data.racks[0], data) == "AC_TRI"

    def test_tri_outlet_name_is_tri(self, make_data):
        data = make_data(
            racks=[{"id": "R1"}],
            equipements=[{"id": "EQ1", "rack_fk": "R1"}],
            connexions_ac=[
                {"id": "A1", "equipment_fk": "EQ1", "outlet_name": "TRI 2", "phase": "P1", "voie": "1"},
            ],
        )
        assert get_rack_power_type(data.racks[0], data) == "AC_TRI"

    def test_single_phase_connections_are_mono(self, make_data):
        data = make_data(
            racks=[{"id": "R1"}],
            equipements=[{"id": "EQ1", "rack_fk": "R1"}],
            connexions_ac=[
                {"id": "A1", "equipment_fk": "EQ1", "outlet_name": "MONO 1", "phase": "P1", "voie": "1"},
                {"id": "A2", "equipment_fk": "EQ1", "outlet_name": "MONO 2", "phase": "P2", "voie": "1"},
            ],
        )
        assert get_rack_power_type(data.racks[0], data) == "AC_MONO"

    def test_legacy_dc_fields(self, make_data):
        data = make_data(racks=[{"id": "R1", "conso_baie_v2_dc_kw": 1}])
        assert get_rack_power_type(data.racks[0], data) == "DC"

    def test_legacy_outlet_names(self, make_data):
        data = make_data(racks=[{"id": "R1", "ac_outlet_v1": "tri 1"}, {"id": "R2", "ac_outlet_v2": "MONO 3"}])
        assert get_rack_power_type(data.racks[0], data) == "AC_TRI"
        assert get_rack_power_type(data.racks[1], data) == "AC_MONO"

    def test_legacy_multi_phase_values(self, make_data):
        data = make_data(racks=[{"id": "R1", "conso_baie_v1_ph1_kw": 1, "conso_baie_v1_ph3_kw": 1}])
        assert get_rack_power_type(data.racks[0], data) == "AC_TRI"

    def test_default_is_mono(self, make_data):
        data = make_data(racks=[{"id": "R1", "conso_baie_v1_ph1_kw": 1}])
        assert get_rack_power_type(data.racks[0], data) == "AC_MONO"


class TestDeleteEquipmentCascade:
    def test_removes_equipment_and_connections(self, mixed_data):
        after = delete_equipment_cascade(mixed_data, "EQ2")

        assert [eq.id for eq in after.equipements] == ["EQ1"]
        assert [c.id for c in after.connexions_dc] == ["D3"]
        assert [c.id for c in after.connexions_ac] == ["A1", "A2", "A3"]

    def test_recalculates_owning_rack(self, mixed_data):
        after = delete_equipment_cascade(mixed_data, "EQ2")
        rack = next(r for r in after.racks if r.id == "R1")

        assert rack.conso_baie_v1_dc_kw == 0.0
        assert rack.conso_baie_v2_dc_kw == 0.0
        assert rack.conso_baie_v1_ph1_kw == pytest.approx(1.5)

    def test_other_racks_untouched(self, mixed_data):
        after = delete_equipment_cascade(mixed_data, "EQ2")
        assert after.racks[1] == mixed_data.racks[1]

    def test_original_snapshot_unchanged(self, mixed_data):
        delete_equipment_cascade(mixed_data, "EQ2")
        assert len(mixed_data.equipements) == 2
        assert len(mixed_data.connexions_dc) == 3

    def test_unknown_equipment_is_a_no_op(self, mixed_data, caplog):
        with caplog.at_level("WARNING", logger="dcim.power"):
            after = delete_equipment_cascade(mixed_data, "NOPE")
        assert after == mixed_data
        assert "NOPE" in caplog.text
