"""Rule-based scoring of KPI values against template items.

Template items carry their scoring rules as raw JSON. The rules are parsed
into one of three shapes before scoring:

- ``ThresholdRule``: ``{"value": 90, "score": 10}``, percentage items only.
  The greatest threshold that does not exceed the value wins.
- ``RangeRule``: ``{"min": 0, "max": 10, "score": 5}``, numeric items.
- ``ExactRule``: ``{"value": 3, "score": 1}`` for numeric items or
  ``{"value": "yes", "score": 5}`` for binary/qualitative items.

Rules that fit none of the shapes never match.
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from apps.kpi.constants import STRING_KPI_TYPES, KPIType
from apps.kpi.exceptions import InvalidValueType, MissingItem, OutOfRange, UnknownItem, UnknownKpiType


@dataclass(frozen=True)
class ThresholdRule:
    value: float
    score: float

    def matches(self, value) -> bool:
        return self.value <= value


@dataclass(frozen=True)
class RangeRule:
    min: float
    max: float
    score: float

    def matches(self, value) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class ExactRule:
    value: Union[str, float]
    score: float

    def matches(self, value) -> bool:
        return self.value == value


ScoringRule = Union[ThresholdRule, RangeRule, ExactRule]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_kpi_type(kpi_type: str) -> None:
    if kpi_type not in KPIType.values:
        raise UnknownKpiType(f"Unknown KPI type: {kpi_type}")


def parse_rules(kpi_type: str, raw_rules: Optional[Iterable[dict]]) -> list[ScoringRule]:
    """Turn a template item's raw rule list into typed rules.

    Args:
        kpi_type: KPI type of the template item
        raw_rules: List of rule dicts as stored on the item

    Returns:
        Typed rules in their original order, malformed rules dropped
    """
    _check_kpi_type(kpi_type)
    rules: list[ScoringRule] = []
    for raw in raw_rules or []:
        if not isinstance(raw, dict) or not _is_number(raw.get("score")):
            continue
        score = raw["score"]
        rule_value = raw.get("value")

        if kpi_type == KPIType.PERCENTAGE:
            if _is_number(rule_value):
                rules.append(ThresholdRule(value=rule_value, score=score))
        elif kpi_type in STRING_KPI_TYPES:
            if isinstance(rule_value, str):
                rules.append(ExactRule(value=rule_value, score=score))
        elif _is_number(raw.get("min")) and _is_number(raw.get("max")):
            rules.append(RangeRule(min=raw["min"], max=raw["max"], score=score))
        elif _is_number(rule_value):
            rules.append(ExactRule(value=rule_value, score=score))
    return rules


def validate_value(item, value) -> None:
    """Check that ``value`` lies in the domain of the item's KPI type.

    Raises:
        InvalidValueType: When the value has the wrong type
        OutOfRange: When a numeric value is outside its allowed range
        UnknownKpiType: When the item's KPI type is not supported
    """
    kpi_type = item.kpi_type
    _check_kpi_type(kpi_type)

    if kpi_type in STRING_KPI_TYPES:
        if not isinstance(value, str):
            raise InvalidValueType(
                f"KPI item '{item.name}' expects a string value",
                errors={item.name: ["Expected a string."]},
            )
        return

    if not _is_number(value) or not math.isfinite(value):
        raise InvalidValueType(
            f"KPI item '{item.name}' expects a numeric value",
            errors={item.name: ["Expected a number."]},
        )

    if kpi_type == KPIType.PERCENTAGE:
        low, high = 0, 100
    elif kpi_type == KPIType.SCORE:
        low, high = 0, item.max_marks
    else:
        low, high = 0, None

    if value < low or (high is not None and value > high):
        bounds = f"between {low} and {high}" if high is not None else f"at least {low}"
        raise OutOfRange(
            f"KPI item '{item.name}' value {value} must be {bounds}",
            errors={item.name: [f"Must be {bounds}."]},
        )


def calculate_score(item, value) -> float:
    """Map a validated value to its point score.

    Args:
        item: Template item (``name``, ``max_marks``, ``kpi_type``, ``scoring_rules``)
        value: Raw value already accepted by ``validate_value``

    Returns:
        The score, 0 when no rule matches
    """
    kpi_type = item.kpi_type
    if kpi_type == KPIType.SCORE:
        return min(value, item.max_marks)

    rules = parse_rules(kpi_type, item.scoring_rules)
    if kpi_type == KPIType.PERCENTAGE:
        rules = sorted(rules, key=lambda rule: rule.value, reverse=True)

    for rule in rules:
        if rule.matches(value):
            return rule.score
    return 0


def _index_items(items) -> dict:
    return {item.name: item for item in items}


def validate_template_items(items, values: Iterable[dict]) -> None:
    """Reject values whose names are not items of the template.

    Raises:
        UnknownItem: Listing every offending name
    """
    known = _index_items(items)
    unknown = [value["name"] for value in values if value["name"] not in known]
    if unknown:
        raise UnknownItem(unknown)


def validate_completeness(items, values: Iterable[dict]) -> None:
    """Require a value for every template item and nothing else.

    Raises:
        MissingItem: Listing every template item without a value
        UnknownItem: Listing every value name the template does not define
    """
    values = list(values)
    provided = {value["name"] for value in values}
    missing = [item.name for item in items if item.name not in provided]
    if missing:
        raise MissingItem(missing)
    validate_template_items(items, values)


def validate_and_score(items, raw_values: Iterable[dict]) -> list[dict]:
    """Validate raw ``{name, value}`` pairs and attach their scores.

    Args:
        items: Template items the values are scored against
        raw_values: Submitted values

    Returns:
        List of ``{"name", "value", "score"}`` dicts in submission order
    """
    raw_values = list(raw_values)
    validate_template_items(items, raw_values)
    by_name = _index_items(items)

    scored = []
    for raw in raw_values:
        item = by_name[raw["name"]]
        value = raw.get("value")
        validate_value(item, value)
        scored.append({"name": item.name, "value": value, "score": calculate_score(item, value)})
    return scored


def total_score(values: Iterable[dict]) -> float:
    return sum(value.get("score") or 0 for value in values)


def merge_values(existing: Iterable[dict], new: Iterable[dict]) -> list[dict]:
    """Merge ``new`` into ``existing`` by item name.

    Same-named values are replaced in place, unseen names are appended and
    everything else is kept.
    """
    merged = [dict(value) for value in existing]
    positions = {value["name"]: index for index, value in enumerate(merged)}
    for value in new:
        name = value["name"]
        if name in positions:
            merged[positions[name]] = dict(value)
        else:
            positions[name] = len(merged)
            merged.append(dict(value))
    return merged
