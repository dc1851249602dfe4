"""Tests for the lookup resolver."""

import math

import pandas as pd
import pytest

from send_settings.core.errors import ConfigurationError
from send_settings.core.types import (
    AnalystSetting,
    CategoryDefinition,
    EstablishmentIdentity,
    EstabType,
)
from send_settings.pipeline.lookups import (
    clean_bool,
    clean_str,
    clean_value,
    column_key,
    frame_to_map,
    resolve_analyst_settings,
    resolve_areas,
    resolve_designations,
    resolve_estab_cats,
    resolve_estab_type_to_estab_cat,
    resolve_lookup,
    to_identity,
)


# ---------------------------------------------------------------------------
# Cell normalisation
# ---------------------------------------------------------------------------

class TestCleaning:
    def test_column_key(self):
        assert column_key("sen-unit-indicator") == "sen_unit_indicator"
        assert column_key("designate?") == "designate"
        assert column_key(" split-area? ") == "split_area"

    def test_missing_values(self):
        assert clean_value(None) is None
        assert clean_value(math.nan) is None
        assert clean_value(pd.NA) is None
        assert clean_value("  ") is None
        assert clean_value("x") == "x"

    def test_clean_str_integral_float(self):
        assert clean_str(113644.0) == "113644"
        assert clean_str(113644) == "113644"
        assert clean_str(" 879 ") == "879"
        assert clean_str(math.nan) is None

    @pytest.mark.parametrize("value,expected", [
        (True, True), (False, False), ("true", True), ("TRUE", True),
        ("false", False), (None, False), (math.nan, False), ("", False),
    ])
    def test_clean_bool(self, value, expected):
        assert clean_bool(value) is expected

    def test_clean_bool_rejects_garbage(self):
        with pytest.raises(ValueError, match="Not a boolean"):
            clean_bool("maybe")


# ---------------------------------------------------------------------------
# frame_to_map / resolve_lookup
# ---------------------------------------------------------------------------

class TestFrameToMap:
    def test_single_key_single_value_is_scalar(self):
        df = pd.DataFrame({"k": ["a", "b"], "v": [1, 2]})
        assert frame_to_map(df, "k") == {"a": 1, "b": 2}

    def test_multiple_values_are_dicts(self):
        df = pd.DataFrame({"k": ["a"], "v1": [1], "v2": ["x"]})
        assert frame_to_map(df, "k") == {"a": {"v1": 1, "v2": "x"}}

    def test_multiple_keys_are_tuples(self):
        df = pd.DataFrame({"k1": ["a"], "k2": ["b"], "v": ["x"]})
        assert frame_to_map(df, ["k1", "k2"]) == {("a", "b"): "x"}

    def test_val_cols_selects(self):
        df = pd.DataFrame({"k": ["a"], "v1": [1], "v2": [2]})
        assert frame_to_map(df, "k", val_cols="v2") == {"a": 2}

    def test_as_records_forces_dicts(self):
        df = pd.DataFrame({"k": ["a"], "v": [1]})
        assert frame_to_map(df, "k", as_records=True) == {"a": {"v": 1}}

    def test_hyphenated_columns_normalised(self):
        df = pd.DataFrame({"estab-cat": ["SpMdA"], "la-code": ["879"]})
        assert frame_to_map(df, "estab_cat") == {"SpMdA": "879"}

    def test_missing_cells_become_none(self):
        df = pd.DataFrame({"k": ["a"], "v1": [math.nan], "v2": ["x"]})
        assert frame_to_map(df, "k") == {"a": {"v1": None, "v2": "x"}}

    def test_missing_column_raises(self):
        df = pd.DataFrame({"k": ["a"]})
        with pytest.raises(KeyError, match="Columns not in dataset"):
            frame_to_map(df, "k", val_cols="nope")


class TestResolveLookup:
    def test_none_is_empty_mapping(self):
        assert resolve_lookup(None, "k") == {}

    def test_mapping_used_as_is(self):
        m = {"a": 1}
        assert resolve_lookup(m, "k") is m

    def test_dataframe_converted(self):
        df = pd.DataFrame({"k": ["a"], "v": [1]})
        assert resolve_lookup(df, "k") == {"a": 1}

    def test_unsupported_source(self):
        with pytest.raises(TypeError, match="Unsupported lookup source"):
            resolve_lookup(42, "k")


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

class TestResolveDefinitions:
    def test_estab_cats_from_frame(self, estab_cats_df):
        cats = resolve_estab_cats(estab_cats_df)
        assert list(cats) == ["MMSIA", "SpMdA", "SENU", "OLAS"]
        spmda = cats["SpMdA"]
        assert spmda == CategoryDefinition(
            abbreviation="SpMdA", order=2, name="Special", label="Special School",
            definition="Special school", designate=True, split_area=True,
        )
        assert cats["MMSIA"].designate is False
        assert cats["MMSIA"].split_area is True

    def test_sorted_by_order_not_row_position(self):
        df = pd.DataFrame({"abbreviation": ["B", "A"], "order": [2, 1]})
        assert list(resolve_designations(df)) == ["A", "B"]

    def test_inline_partial_mapping(self):
        cats = resolve_estab_cats({"SpMdA": {"designate?": True}})
        assert cats["SpMdA"].designate is True
        assert cats["SpMdA"].split_area is False
        assert cats["SpMdA"].name is None
        assert cats["SpMdA"].order == 0

    def test_missing_order_falls_back_to_position(self):
        areas = resolve_areas({"OoA": {}, "InA": {}})
        assert list(areas) == ["OoA", "InA"]
        assert [a.order for a in areas.values()] == [0, 1]

    def test_definition_instances_kept(self):
        cat = CategoryDefinition("X", order=5, designate=True)
        assert resolve_estab_cats({"X": cat})["X"] is cat

    def test_none_is_empty(self):
        assert resolve_estab_cats(None) == {}


# ---------------------------------------------------------------------------
# Estab type -> estab cat
# ---------------------------------------------------------------------------

class TestResolveEstabTypeToEstabCat:
    def test_from_frame(self, estab_type_df):
        mapping = resolve_estab_type_to_estab_cat(estab_type_df)
        assert mapping[EstabType("Foundation special school")] == "SpMdA"
        assert mapping[EstabType("Community school", is_unit=True)] == "SENU"
        assert mapping[EstabType(None, sen_setting="OLA")] == "OLAS"

    def test_missing_key_columns_treated_as_empty(self):
        df = pd.DataFrame({"type-of-establishment-name": ["Academy special sponsor led"],
                           "estab-cat": ["SpMdA"]})
        mapping = resolve_estab_type_to_estab_cat(df)
        assert mapping == {EstabType("Academy special sponsor led"): "SpMdA"}

    def test_inline_tuple_keys(self):
        mapping = resolve_estab_type_to_estab_cat({("Free schools special", False, False, None): "SpMdA"})
        assert mapping == {EstabType("Free schools special"): "SpMdA"}


# ---------------------------------------------------------------------------
# Manual / override
# ---------------------------------------------------------------------------

class TestResolveAnalystSettings:
    def test_from_frame(self):
        df = pd.DataFrame([
            {"urn": "401923", "ukprn": None, "sen-unit-indicator": "false",
             "resourced-provision-indicator": "false", "sen-setting": None,
             "estab-name": "Greenfield Special School", "estab-cat": "SpMdA",
             "designation": "SEMH", "la-code": "675"},
            {"urn": None, "ukprn": "10088118", "sen-unit-indicator": "false",
             "resourced-provision-indicator": "false", "sen-setting": None,
             "estab-name": "Orchard Manor School", "estab-cat": "SpMdA",
             "designation": "HCOIN+SEMH", "la-code": "878"},
        ])
        table = resolve_analyst_settings(df)
        assert table[EstablishmentIdentity(reference_id="401923")] == AnalystSetting(
            estab_name="Greenfield Special School", estab_cat="SpMdA",
            designation="SEMH", la_code="675",
        )
        assert table[EstablishmentIdentity(provider_id="10088118")].la_code == "878"

    def test_value_columns_optional(self):
        df = pd.DataFrame([{"urn": "1", "ukprn": None, "sen-unit-indicator": False,
                            "resourced-provision-indicator": False, "sen-setting": None,
                            "designation": "OVERRIDE~DESIGNATION"}])
        table = resolve_analyst_settings(df)
        assert table == {
            EstablishmentIdentity(reference_id="1"): AnalystSetting(designation="OVERRIDE~DESIGNATION"),
        }

    def test_inline_identity_keys(self):
        identity = EstablishmentIdentity(reference_id="1")
        table = resolve_analyst_settings({identity: {"estab-cat": "X"}})
        assert table[identity] == AnalystSetting(estab_cat="X")


class TestToIdentity:
    def test_from_dict_with_source_column_names(self):
        identity = to_identity({"urn": 113644, "sen-unit-indicator": "true"})
        assert identity == EstablishmentIdentity(reference_id="113644", is_unit=True)

    def test_from_dict_with_field_names(self):
        identity = to_identity({"reference_id": "1", "is_resourced_provision": True})
        assert identity == EstablishmentIdentity(reference_id="1", is_resourced_provision=True)

    def test_from_tuple(self):
        assert to_identity(("1", None, False, False, "OLA")) == EstablishmentIdentity(
            reference_id="1", sen_setting="OLA",
        )

    def test_identity_passthrough(self):
        identity = EstablishmentIdentity(reference_id="1")
        assert to_identity(identity) is identity


class TestMalformedCells:
    def test_bad_flag_in_definitions(self):
        df = pd.DataFrame({"abbreviation": ["SpMdA", "OLAS"], "designate?": ["maybe", "false"]})
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_estab_cats(df)
        assert exc_info.value.problems == ["CategoryDefinition 'SpMdA': designate?: Not a boolean: 'maybe'"]

    def test_bad_order_in_definitions(self):
        with pytest.raises(ConfigurationError, match="order: Not an integer: 'x'"):
            resolve_areas({"InA": {"order": "x"}})

    def test_every_bad_row_reported(self):
        df = pd.DataFrame({"abbreviation": ["A", "B"], "order": ["x", "y"]})
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_designations(df)
        assert len(exc_info.value.problems) == 2

    def test_bad_flag_in_analyst_table(self):
        df = pd.DataFrame([{"urn": "1", "ukprn": None, "sen-unit-indicator": "sometimes",
                            "resourced-provision-indicator": "false", "sen-setting": None,
                            "estab-cat": "SpMdA"}])
        with pytest.raises(ConfigurationError, match="sen-unit-indicator: Not a boolean: 'sometimes'"):
            resolve_analyst_settings(df)

    def test_bad_flag_in_estab_type_table(self):
        with pytest.raises(ConfigurationError, match="resourced-provision-indicator"):
            resolve_estab_type_to_estab_cat({("Community school", False, "perhaps", None): "MMSIA"})

    def test_configuration_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_areas({"InA": {"order": "x"}})
