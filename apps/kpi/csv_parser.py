"""
Parser for historical KPI CSV exports.

Supported files have two header rows followed by data rows::

    पीठासीन अधिकारी,न्यायालय,खाता विभाजन,,,नामांतरण,,,...
    ,,कुल दर्ज,कुल निराकृत,कुल लंबित,कुल दर्ज,कुल निराकृत,कुल लंबित,...
    राम कुमार,तहसील रायपुर,100,96,4,50,40,10,...

The first two columns hold the officer name and a secondary unit (the court
for tehsildars). Every percentage KPI then occupies a block of three columns
(registered, disposed, pending) in the order of the parser configuration.
Fields are split on bare commas; quoting is not supported.
"""

import logging
import math
import re
from dataclasses import asdict, dataclass, field
from typing import Mapping, Optional

from apps.kpi.constants import (
    CSV_KPI_BLOCK_WIDTH,
    CSV_RESERVED_COLUMNS,
    MULTI_COURT_ROLE,
    OFFICER_NAME_KEY,
    SUB_HEADER_DISPOSED,
    SUB_HEADER_PENDING,
    SUB_HEADER_REGISTERED,
    SUB_HEADER_SEARCH_RANGE,
    CalculationType,
)
from apps.kpi.exceptions import ConfigNotFound, MalformedCsv
from apps.kpi.header_matching import HeaderMapping, HeaderNormalizer
from apps.kpi.migration_config import (
    ParserConfig,
    config_key,
    load_header_normalizations,
    load_parser_configs,
    load_sub_header_normalizations,
)
from libs.decimals import round_half_up

logger = logging.getLogger(__name__)

LEADING_INTEGER_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class CsvKpiRecord:
    """KPI values extracted for one officer (and court) from one CSV row."""

    officer_name: str
    court_name: Optional[str] = None
    kpi_values: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def parse_leading_int(value: Optional[str]) -> Optional[int]:
    """Parse the integer prefix of ``value`` ("12 cases" -> 12), None if absent."""
    if not value:
        return None
    match = LEADING_INTEGER_RE.match(value)
    return int(match.group(1)) if match else None


def parse_number(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def disposal_percentage(registered: Optional[str], disposed: Optional[str]) -> Optional[float]:
    """Share of registered cases that were disposed, capped at 100.

    Returns None when either count is missing or nothing was registered.

    Example:
        >>> disposal_percentage("120", "100")
        83.33
    """
    registered_count = parse_leading_int(registered)
    disposed_count = parse_leading_int(disposed)
    if registered_count is None or disposed_count is None or registered_count <= 0:
        return None
    return round_half_up(min(disposed_count / registered_count * 100, 100))


def _split_lines(csv_text: str) -> list[str]:
    return (csv_text or "").strip().splitlines()


def _split_fields(line: str) -> list[str]:
    return line.split(",")


def _cell(values: list[str], index: int) -> Optional[str]:
    if 0 <= index < len(values):
        return values[index].strip()
    return None


class KPICsvParser:
    """Turn CSV exports into per-officer KPI values.

    Args:
        normalizer: Matcher for the primary header row
        sub_header_normalizer: Matcher for the registered/disposed/pending row
        parser_configs: Registry keyed by ``"<department_slug>-<role>"``

    Missing arguments are loaded from the configuration files.
    """

    def __init__(
        self,
        normalizer: Optional[HeaderNormalizer] = None,
        sub_header_normalizer: Optional[HeaderNormalizer] = None,
        parser_configs: Optional[Mapping[str, ParserConfig]] = None,
    ):
        self.normalizer = normalizer or HeaderNormalizer(load_header_normalizations())
        self.sub_header_normalizer = sub_header_normalizer or HeaderNormalizer(load_sub_header_normalizations())
        self.parser_configs = parser_configs if parser_configs is not None else load_parser_configs()

    def get_config(self, department_slug: str, role: str) -> ParserConfig:
        key = config_key(department_slug, role)
        try:
            return self.parser_configs[key]
        except KeyError:
            raise ConfigNotFound(f"No CSV parser configuration found for {key}") from None

    def build_header_mapping(self, headers: list[str], config: ParserConfig) -> dict[str, HeaderMapping]:
        """Map the officer-name column and every configured KPI to a header.

        For each KPI the search terms are tried in order and the first one
        that matches a header is kept. KPIs without a match are left out.
        """
        mapping: dict[str, HeaderMapping] = {}

        officer_match = self.normalizer.find_best_match(config.officer_name_column, headers)
        if officer_match:
            mapping[OFFICER_NAME_KEY] = officer_match
            logger.info(
                f"Mapped officer name: {officer_match.original_header} -> {officer_match.normalized_header} "
                f"(confidence: {officer_match.confidence})"
            )
        else:
            logger.warning(f"Could not find officer name column matching: {config.officer_name_column}")

        for kpi_name, column in config.kpi_mappings.items():
            for term in column.search_terms:
                match = self.normalizer.find_best_match(term, headers)
                if match:
                    mapping[kpi_name] = match
                    logger.info(
                        f"Mapped KPI {kpi_name}: {match.original_header} -> {match.normalized_header} "
                        f"(confidence: {match.confidence})"
                    )
                    break
            else:
                logger.warning(f"Could not find KPI column for: {kpi_name}")

        return mapping

    def _read_header_rows(self, lines: list[str]) -> tuple[list[str], list[str]]:
        if len(lines) < 2:
            raise MalformedCsv("CSV must contain a header row and a sub-header row")
        return _split_fields(lines[0]), _split_fields(lines[1])

    def _officer_index(self, header_mapping: dict[str, HeaderMapping]) -> int:
        officer_mapping = header_mapping.get(OFFICER_NAME_KEY)
        if officer_mapping is None:
            raise MalformedCsv("Could not find officer name column")
        return officer_mapping.index

    def extract_percentage(self, values: list[str], config: ParserConfig, kpi_name: str) -> Optional[float]:
        base_index = CSV_RESERVED_COLUMNS + config.kpi_ordinal(kpi_name) * CSV_KPI_BLOCK_WIDTH
        registered = _cell(values, base_index)
        disposed = _cell(values, base_index + 1)
        percentage = disposal_percentage(registered, disposed)
        logger.debug(
            f"{kpi_name}: registered[{base_index}]={registered!r} disposed[{base_index + 1}]={disposed!r} "
            f"-> {percentage}"
        )
        return percentage

    def parse(self, csv_text: str, department_slug: str, role: str) -> list[CsvKpiRecord]:
        """Parse CSV text into one record per data row with KPI values.

        Raises:
            ConfigNotFound: No configuration for the department and role
            MalformedCsv: Header rows missing or officer-name column not found
        """
        config = self.get_config(department_slug, role)
        lines = _split_lines(csv_text)
        headers, sub_headers = self._read_header_rows(lines)
        logger.info(f"CSV headers: {', '.join(headers)}")
        logger.debug(f"CSV sub-headers: {', '.join(sub_headers)}")

        header_mapping = self.build_header_mapping(headers, config)
        officer_index = self._officer_index(header_mapping)
        logger.info(f"Officer name column index: {officer_index}")

        records = []
        for line_number, line in enumerate(lines[2:], start=2):
            values = _split_fields(line)
            if len(values) < 2:
                logger.warning(f"Skipping line {line_number}: insufficient values")
                continue

            officer_name = _cell(values, officer_index)
            if not officer_name:
                logger.warning(f"Skipping line {line_number}: no officer name found")
                continue

            kpi_values = {}
            for kpi_name, column in config.kpi_mappings.items():
                kpi_mapping = header_mapping.get(kpi_name)
                if kpi_mapping is None:
                    continue
                if column.calculation_type == CalculationType.PERCENTAGE:
                    value = self.extract_percentage(values, config, kpi_name)
                else:
                    value = parse_number(_cell(values, kpi_mapping.index))
                if value is not None:
                    kpi_values[kpi_name] = value

            if not kpi_values:
                logger.warning(f"No valid KPI values found for {officer_name}")
                continue

            court_name = None
            if role == MULTI_COURT_ROLE:
                court_name = _cell(values, 1) or None

            records.append(CsvKpiRecord(officer_name=officer_name, court_name=court_name, kpi_values=kpi_values))
            logger.info(
                f"Added record for {officer_name}{f' ({court_name})' if court_name else ''} "
                f"with {len(kpi_values)} KPIs"
            )

        logger.info(f"Parsed {len(records)} records from CSV")
        return records

    def find_sub_header_column(
        self, headers: list[str], sub_headers: list[str], start_index: int, target: str
    ) -> Optional[dict]:
        """Find ``target`` in the sub-header row within a few columns of ``start_index``."""
        first = max(0, start_index - SUB_HEADER_SEARCH_RANGE)
        last = min(len(headers) - 1, start_index + SUB_HEADER_SEARCH_RANGE)
        for index in range(first, last + 1):
            sub_header = _cell(sub_headers, index)
            if not sub_header:
                continue
            if self.sub_header_normalizer.normalize(sub_header) == target:
                return {"index": index, "value": sub_header}
        return None

    def inspect(self, csv_text: str, department_slug: str, role: str) -> dict:
        """Describe how the parser reads ``csv_text`` without extracting records.

        Reports the header mapping, the officer-name column and, for each
        mapped KPI, the positional block the parser reads next to the
        sub-header columns found around the matched header.
        """
        config = self.get_config(department_slug, role)
        lines = _split_lines(csv_text)
        if len(lines) < 3:
            raise MalformedCsv("CSV must contain two header rows and at least one data row")

        headers, sub_headers = self._read_header_rows(lines)
        data_values = _split_fields(lines[2])
        header_mapping = self.build_header_mapping(headers, config)
        officer_mapping = header_mapping.get(OFFICER_NAME_KEY)
        officer_index = officer_mapping.index if officer_mapping else -1

        kpi_results = {}
        for kpi_name, kpi_mapping in header_mapping.items():
            if kpi_name == OFFICER_NAME_KEY:
                continue
            base_index = CSV_RESERVED_COLUMNS + config.kpi_ordinal(kpi_name) * CSV_KPI_BLOCK_WIDTH
            kpi_results[kpi_name] = {
                "original_header": kpi_mapping.original_header,
                "normalized_header": kpi_mapping.normalized_header,
                "confidence": kpi_mapping.confidence,
                "index": kpi_mapping.index,
                "value": _cell(data_values, kpi_mapping.index),
                "calculation_type": config.kpi_mappings[kpi_name].calculation_type,
                "block": {
                    "registered": base_index,
                    "disposed": base_index + 1,
                    "pending": base_index + 2,
                },
                "sub_header_columns": {
                    "registered": self.find_sub_header_column(
                        headers, sub_headers, kpi_mapping.index, SUB_HEADER_REGISTERED
                    ),
                    "disposed": self.find_sub_header_column(
                        headers, sub_headers, kpi_mapping.index, SUB_HEADER_DISPOSED
                    ),
                    "pending": self.find_sub_header_column(headers, sub_headers, kpi_mapping.index, SUB_HEADER_PENDING),
                },
            }

        return {
            "lines": len(lines),
            "config_key": config.key,
            "headers": headers,
            "sub_headers": sub_headers,
            "data_values": data_values,
            "header_mapping": {key: asdict(value) for key, value in header_mapping.items()},
            "officer_name_index": officer_index,
            "officer_name": _cell(data_values, officer_index),
            "kpi_results": kpi_results,
        }
