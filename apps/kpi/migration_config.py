"""
Read-only configuration tables for CSV migration.

The header normalization tables and the per department/role parser
configurations live as YAML files in ``apps/kpi/data``. Each file is read
once per process and frozen, then handed to ``HeaderNormalizer`` and
``KPICsvParser``. Paths can be overridden with the ``KPI_*_FILE`` settings.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml
from django.conf import settings

from apps.kpi.constants import CalculationType

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

DEFAULT_HEADER_NORMALIZATIONS_FILE = DATA_DIR / "header_normalizations.yaml"
DEFAULT_SUB_HEADER_NORMALIZATIONS_FILE = DATA_DIR / "sub_header_normalizations.yaml"
DEFAULT_PARSER_CONFIGS_FILE = DATA_DIR / "parser_configs.yaml"

ERROR_INVALID_TABLE = "Configuration file {path} must contain a mapping"
ERROR_INVALID_CALCULATION_TYPE = "Unknown calculation type '{value}' for KPI '{kpi}' in {key}"


@dataclass(frozen=True)
class KPIColumnMapping:
    search_terms: tuple
    calculation_type: str


@dataclass(frozen=True)
class ParserConfig:
    """CSV layout of one department/role combination."""

    department_slug: str
    role: str
    officer_name_column: str
    kpi_mappings: Mapping[str, KPIColumnMapping]

    @property
    def key(self) -> str:
        return config_key(self.department_slug, self.role)

    def kpi_ordinal(self, kpi_name: str) -> int:
        """Position of ``kpi_name`` among this configuration's KPIs."""
        return list(self.kpi_mappings).index(kpi_name)


def config_key(department_slug: str, role: str) -> str:
    return f"{department_slug}-{role}"


@lru_cache(maxsize=None)
def _read_yaml(path: str) -> dict:
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(ERROR_INVALID_TABLE.format(path=path))
    logger.debug(f"Loaded configuration table {path} ({len(data)} entries)")
    return data


def _freeze_normalizations(data: dict) -> Mapping[str, tuple]:
    return MappingProxyType(
        {str(canonical): tuple(str(variant) for variant in variants or ()) for canonical, variants in data.items()}
    )


def load_header_normalizations(path=None) -> Mapping[str, tuple]:
    path = path or getattr(settings, "KPI_HEADER_NORMALIZATIONS_FILE", None) or DEFAULT_HEADER_NORMALIZATIONS_FILE
    return _freeze_normalizations(_read_yaml(str(path)))


def load_sub_header_normalizations(path=None) -> Mapping[str, tuple]:
    path = (
        path
        or getattr(settings, "KPI_SUB_HEADER_NORMALIZATIONS_FILE", None)
        or DEFAULT_SUB_HEADER_NORMALIZATIONS_FILE
    )
    return _freeze_normalizations(_read_yaml(str(path)))


def parse_parser_configs(data: dict) -> Mapping[str, ParserConfig]:
    """Build frozen ``ParserConfig`` objects from the raw YAML mapping.

    Raises:
        ValueError: When a KPI declares an unknown calculation type
    """
    configs = {}
    for key, raw in data.items():
        mappings = {}
        for kpi_name, mapping in (raw.get("kpi_mappings") or {}).items():
            calculation_type = mapping.get("calculation_type", CalculationType.PERCENTAGE)
            if calculation_type not in CalculationType.values:
                raise ValueError(ERROR_INVALID_CALCULATION_TYPE.format(value=calculation_type, kpi=kpi_name, key=key))
            mappings[str(kpi_name)] = KPIColumnMapping(
                search_terms=tuple(str(term) for term in mapping.get("search_terms") or (kpi_name,)),
                calculation_type=calculation_type,
            )
        configs[str(key)] = ParserConfig(
            department_slug=raw["department_slug"],
            role=raw["role"],
            officer_name_column=raw["officer_name_column"],
            kpi_mappings=MappingProxyType(mappings),
        )
    return MappingProxyType(configs)


def load_parser_configs(path=None) -> Mapping[str, ParserConfig]:
    path = path or getattr(settings, "KPI_PARSER_CONFIGS_FILE", None) or DEFAULT_PARSER_CONFIGS_FILE
    return parse_parser_configs(_read_yaml(str(path)))
