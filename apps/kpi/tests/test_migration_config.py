import pytest

from apps.kpi.constants import CalculationType
from apps.kpi.migration_config import (
    config_key,
    load_header_normalizations,
    load_parser_configs,
    load_sub_header_normalizations,
    parse_parser_configs,
)


class TestParserConfigs:
    """Test cases for the CSV parser configuration registry"""

    def test_shipped_configurations(self):
        configs = load_parser_configs()

        assert set(configs) == {"revenue-department-sdm", "revenue-department-tehsildar"}
        tehsildar = configs["revenue-department-tehsildar"]
        assert tehsildar.key == "revenue-department-tehsildar"
        assert tehsildar.officer_name_column == "पीठासीन अधिकारी"
        assert len(tehsildar.kpi_mappings) == 9
        assert len(configs["revenue-department-sdm"].kpi_mappings) == 8

    def test_kpi_ordinal_follows_declaration_order(self):
        sdm = load_parser_configs()["revenue-department-sdm"]
        assert sdm.kpi_ordinal("व्यपवर्तन") == 0
        assert sdm.kpi_ordinal("जाति प्रमाणपत्र") == 4

    def test_search_terms_default_to_kpi_name(self):
        configs = parse_parser_configs(
            {
                "health-doctor": {
                    "department_slug": "health",
                    "role": "doctor",
                    "officer_name_column": "officer",
                    "kpi_mappings": {"OPD": {"calculation_type": "direct"}},
                }
            }
        )

        mapping = configs["health-doctor"].kpi_mappings["OPD"]
        assert mapping.search_terms == ("OPD",)
        assert mapping.calculation_type == CalculationType.DIRECT

    def test_unknown_calculation_type(self):
        with pytest.raises(ValueError):
            parse_parser_configs(
                {
                    "health-doctor": {
                        "department_slug": "health",
                        "role": "doctor",
                        "officer_name_column": "officer",
                        "kpi_mappings": {"OPD": {"calculation_type": "average"}},
                    }
                }
            )

    def test_registry_is_read_only(self):
        configs = load_parser_configs()
        with pytest.raises(TypeError):
            configs["other"] = None

    def test_config_key(self):
        assert config_key("revenue-department", "sdm") == "revenue-department-sdm"


class TestNormalizationTables:
    """Test cases for loading the header tables"""

    def test_sub_header_table(self):
        table = load_sub_header_normalizations()
        assert list(table) == ["कुल दर्ज", "कुल निराकृत", "कुल लंबित"]

    def test_custom_table_file(self, tmp_path):
        path = tmp_path / "headers.yaml"
        path.write_text('"Officer":\n  - "officer"\n  - "name"\n', encoding="utf-8")

        assert dict(load_header_normalizations(path)) == {"Officer": ("officer", "name")}

    def test_table_must_be_a_mapping(self, tmp_path):
        path = tmp_path / "headers.yaml"
        path.write_text("- officer\n- name\n", encoding="utf-8")

        with pytest.raises(ValueError):
            load_header_normalizations(path)
