"""Shared test fixtures."""

import mlflow
import pandas as pd
import pytest

from send_settings.core.types import RegistryRecord
from send_settings.pipeline.registry import Registry


@pytest.fixture(autouse=True)
def _disable_mlflow_tracing():
    """Disable MLflow tracing during tests so nothing is written to mlruns/."""
    mlflow.tracing.disable()
    yield
    mlflow.tracing.enable()


@pytest.fixture
def estab_cats_df():
    return pd.DataFrame([
        {"abbreviation": "MMSIA", "order": "1", "name": "Mainstream", "label": "Mainstream School",
         "definition": "Mainstream school", "designate?": "false", "split-area?": "true"},
        {"abbreviation": "SpMdA", "order": "2", "name": "Special", "label": "Special School",
         "definition": "Special school", "designate?": "true", "split-area?": "true"},
        {"abbreviation": "SENU", "order": "3", "name": "SEN Unit", "label": "SEN Unit",
         "definition": "SEN unit", "designate?": "true", "split-area?": "false"},
        {"abbreviation": "OLAS", "order": "4", "name": "Other", "label": "Other Arrangements",
         "definition": "Other arrangements", "designate?": "false", "split-area?": "false"},
    ])


@pytest.fixture
def designations_df():
    return pd.DataFrame([
        {"abbreviation": "SEMH", "order": "1", "name": "SEMH", "label": "SEMH",
         "definition": "Social, emotional and mental health needs"},
        {"abbreviation": "GEN", "order": "2", "name": "General", "label": "General",
         "definition": "General needs"},
    ])


@pytest.fixture
def areas_df():
    return pd.DataFrame([
        {"abbreviation": "InA", "order": "1", "name": "In area", "label": "In Area",
         "definition": "In area"},
        {"abbreviation": "OoA", "order": "2", "name": "Out of area", "label": "Out of Area",
         "definition": "Out of area"},
    ])


@pytest.fixture
def estab_type_df():
    return pd.DataFrame([
        {"type-of-establishment-name": "Foundation special school", "sen-unit-indicator": "false",
         "resourced-provision-indicator": "false", "sen-setting": None, "estab-cat": "SpMdA"},
        {"type-of-establishment-name": "Community school", "sen-unit-indicator": "false",
         "resourced-provision-indicator": "false", "sen-setting": None, "estab-cat": "MMSIA"},
        {"type-of-establishment-name": "Community school", "sen-unit-indicator": "true",
         "resourced-provision-indicator": "false", "sen-setting": None, "estab-cat": "SENU"},
        {"type-of-establishment-name": None, "sen-unit-indicator": "false",
         "resourced-provision-indicator": "false", "sen-setting": "OLA", "estab-cat": "OLAS"},
    ])


@pytest.fixture
def registry():
    return Registry.from_records([
        RegistryRecord(
            reference_id="113644",
            provider_id="10012345",
            establishment_name="Oakwood School",
            type_of_establishment_name="Foundation special school",
            la_code="879",
            sen_provision_types=("ASD", "SEMH"),
        ),
        RegistryRecord(
            reference_id="100001",
            provider_id=None,
            establishment_name="Hill Primary",
            type_of_establishment_name="Community school",
            la_code="675",
            sen_provision_types=("SLCN",),
        ),
        RegistryRecord(
            reference_id="401923",
            establishment_name="Greenfield Special School",
            type_of_establishment_name="Welsh establishment",
        ),
    ])
