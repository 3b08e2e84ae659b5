"""
Tests for utilization maps, anomaly detection, outlet helpers and the site summary.
"""

import math

import pytest
from dcim_core.power.outlets import get_outlets_for_ac_box, parse_outlet_string, parse_rack_dimensions
from dcim_core.power.site import compute_room_loads, compute_row_loads, compute_site_summary
from dcim_core.power.utilization import (
    compute_ac_box_utilizations,
    compute_dc_panel_utilizations,
    compute_rack_power_anomalies,
    compute_rack_utilizations,
)


@pytest.fixture
def site_data(make_data):
    """
    R1 (ITN1/A): nearly full (40U of 42), 9 kW on a 10 kW PDU, 85 kg of 100 kg.
    R2 (ITN2/B): 4 kW DC on a 20 kW PDU, measured 9 kW with imbalanced phases.
    """
    return make_data(
        racks=[
            {"id": "R1", "salle": "ITN1", "rangee": "A", "dimensions": "42U", "poids_max_kg": 100, "puissance_pdu_kw": 10},
            {
                "id": "R2",
                "salle": "ITN2",
                "rangee": "B",
                "dimensions": "",
                "poids_max_kg": 1000,
                "puissance_pdu_kw": 20,
                "conso_reelle_v1_ph1_kw": 6,
                "conso_reelle_v1_ph2_kw": 3,
            },
        ],
        equipements=[
            {"id": "EQ1", "rack_fk": "R1", "type_equipement": "Serveur", "hauteur_u": 40, "poids_kg": 85},
            {"id": "PDU1", "rack_fk": "R1", "type_equipement": "PDU", "hauteur_u": 2},
            {"id": "EQ2", "rack_fk": "R2", "type_equipement": "Routeur", "hauteur_u": 4, "poids_kg": 20},
        ],
        boitiers_ac=[{"id": "AC1", "canalis": "A1", "configuration": "2TRI+3MONO"}],
        tableaux_dc=[{"id": "IT.2-SWB.REC.C.1", "nombre_disjoncteurs_total": 24}],
        connexions_ac=[
            {"id": "C1", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "outlet_name": "MONO 1", "phase": "P1", "voie": "1", "puissance_kw": 9},
            {"id": "C2", "equipment_fk": "EQ1", "ac_box_fk": "AC1", "outlet_name": "MONO 1", "phase": "P1", "voie": "2", "puissance_kw": 0},
        ],
        connexions_dc=[
            {"id": "D1", "equipment_fk": "EQ2", "dc_panel_fk": "IT.2-SWB.REC.C.1", "voie": "2", "puissance_kw": 4},
        ],
        autres_consommateurs=[{"chaine": "A", "acp1": 1, "dc": 2}],
    )


class TestOutletHelpers:
    @pytest.mark.parametrize("text,expected", [("47U 600x1200", 47), ("42U", 42), ("", 42), (None, 42), ("n/a", 42)])
    def test_parse_rack_dimensions(self, text, expected):
        assert parse_rack_dimensions(text) == expected

    def test_parse_locked_outlet(self):
        assert parse_outlet_string("MONO 1 (P1)") == ("MONO 1", "P1", True)

    def test_parse_free_outlet(self):
        assert parse_outlet_string("TRI 1") == ("TRI 1", None, False)
        assert parse_outlet_string(None) == ("", None, False)

    def test_summary_configuration(self):
        assert get_outlets_for_ac_box("2TRI+3MONO") == ["TRI 1", "TRI 2", "MONO 1", "MONO 2", "MONO 3"]

    def test_descriptive_configuration(self):
        assert get_outlets_for_ac_box("TRI 1, MONO 1 (P1), ") == ["TRI 1", "MONO 1 (P1)"]

    def test_empty_configuration(self):
        assert get_outlets_for_ac_box("") == []


class TestUtilizationMaps:
    def test_rack_utilization(self, site_data):
        utilizations = compute_rack_utilizations(site_data)

        assert utilizations["R1"].total_power == pytest.approx(9.0)
        assert utilizations["R1"].percentage == pytest.approx(90.0)
        assert utilizations["R2"].total_power == pytest.approx(4.0)
        assert utilizations["R2"].percentage == pytest.approx(20.0)

    def test_rack_without_pdu_capacity(self, make_data):
        data = make_data(racks=[{"id": "R1"}])
        assert compute_rack_utilizations(data)["R1"].percentage == 0.0

    def test_dc_panel_breakers(self, site_data):
        panel = compute_dc_panel_utilizations(site_data)["IT.2-SWB.REC.C.1"]
        assert panel.used_breakers == 1
        assert panel.total_breakers == 24

    def test_ac_box_counts_each_outlet_once(self, site_data):
        box = compute_ac_box_utilizations(site_data)["AC1"]
        assert box.used_outlets == 1
        assert box.total_outlets == 5
        assert box.percentage == pytest.approx(20.0)


class TestAnomalies:
    def test_no_measurement_means_no_anomaly(self, site_data):
        anomaly = compute_rack_power_anomalies(site_data)["R1"]
        assert anomaly.has_anomaly is False
        assert anomaly.power_difference_kw == 0.0
        assert anomaly.total_calculated == pytest.approx(9.0)

    def test_over_power_and_imbalance(self, site_data):
        anomaly = compute_rack_power_anomalies(site_data)["R2"]

        assert anomaly.total_real == pytest.approx(9.0)
        assert anomaly.power_difference_kw == pytest.approx(5.0)
        assert anomaly.power_difference_percent == pytest.approx(125.0)
        assert anomaly.is_over_power is True
        assert anomaly.imbalance_v1 == pytest.approx(50.0)
        assert anomaly.has_imbalance is True
        assert anomaly.has_anomaly is True

    def test_measured_without_calculated_is_infinite_percent(self, make_data):
        data = make_data(racks=[{"id": "R1", "conso_reelle_v2_dc_kw": 2}])
        anomaly = compute_rack_power_anomalies(data)["R1"]
        assert math.isinf(anomaly.power_difference_percent)
        assert anomaly.is_over_power is True


class TestAreaLoads:
    def test_room_loads(self, site_data):
        rooms = compute_room_loads(site_data)
        assert list(rooms) == ["ITN1", "ITN2"]
        assert rooms["ITN1"].ac == pytest.approx(9.0)
        assert rooms["ITN2"].dc == pytest.approx(4.0)
        assert rooms["ITN2"].total == pytest.approx(4.0)

    def test_row_loads(self, site_data):
        rows = compute_row_loads(site_data)
        assert set(rows) == {("ITN1", "A"), ("ITN2", "B")}
        assert rows[("ITN1", "A")].ac == pytest.approx(9.0)


class TestSiteSummary:
    def test_counts_and_power(self, site_data):
        summary = compute_site_summary(site_data)

        assert summary.total_racks == 2
        assert summary.high_power_racks == 1
        assert summary.total_it_power == pytest.approx(13.0)
        assert summary.total_other_power == pytest.approx(3.0)

    def test_space_excludes_pdus(self, site_data):
        summary = compute_site_summary(site_data)

        assert summary.total_u_used == pytest.approx(44.0)
        assert summary.total_u_available == pytest.approx(84.0)
        assert summary.physical_occupancy_percent == pytest.approx(44 / 84 * 100)

    def test_heavy_racks(self, site_data):
        summary = compute_site_summary(site_data)
        assert [r.rack_id for r in summary.heavy_racks] == ["R1"]
        assert summary.heavy_racks[0].weight_percent == pytest.approx(85.0)

    def test_stranded_capacity(self, site_data):
        summary = compute_site_summary(site_data)
        # R1 is 95%+ full in space with 1 kW of PDU left, and 90% in power with 2U free
        assert summary.stranded_power_kw == pytest.approx(1.0)
        assert summary.stranded_space_u == pytest.approx(2.0)

    def test_top_anomalies_only_measured_racks(self, site_data):
        summary = compute_site_summary(site_data)
        assert summary.top_anomaly_racks == ["R2"]

    def test_empty_site(self, make_data):
        summary = compute_site_summary(make_data())
        assert summary.total_racks == 0
        assert summary.physical_occupancy_percent == 0.0
        assert summary.power_per_room == {}
