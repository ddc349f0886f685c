"""
Rankings and percentile statistics over generated KPI entries.

Only entries with status ``generated`` are considered. Employees are ranked
by the share of the achievable marks they scored across their entries.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings

from apps.kpi.constants import (
    COHORT_RATIO,
    DEFAULT_RANKING_LIMIT,
    NODAL_OFFICER_ROLE_PREFIX,
    SCORE_BUCKET_AVERAGE,
    SCORE_BUCKET_EXCELLENT,
    SCORE_BUCKET_GOOD,
    EntryStatus,
)
from apps.kpi.identity import IdentityServiceClient
from apps.kpi.models import KPIEntry
from apps.kpi.serializers import StatisticsFilterSerializer
from apps.kpi.services.entries import validate_payload
from libs.pagination import paginate

logger = logging.getLogger(__name__)


@dataclass
class StatisticsFilters:
    """Selection of entries for rankings and statistics.

    ``departments`` left empty means the default departments for rankings
    and the global breakdown for ``get_overall_statistics``. Role filters
    match by prefix. ``limit=None`` disables pagination.
    """

    month: Optional[int] = None
    year: Optional[int] = None
    departments: list = field(default_factory=list)
    roles: list = field(default_factory=list)
    exclude_departments: list = field(default_factory=list)
    exclude_roles: list = field(default_factory=list)
    limit: Optional[int] = DEFAULT_RANKING_LIMIT
    page: int = 1

    @classmethod
    def from_payload(cls, payload: Optional[dict] = None) -> "StatisticsFilters":
        data = validate_payload(StatisticsFilterSerializer, payload or {})
        return cls(**data)

    def unbounded(self) -> "StatisticsFilters":
        return StatisticsFilters(
            month=self.month,
            year=self.year,
            departments=list(self.departments),
            roles=list(self.roles),
            exclude_departments=list(self.exclude_departments),
            exclude_roles=list(self.exclude_roles),
            limit=None,
            page=1,
        )


def _matches_department(department_slug: str, filters: StatisticsFilters) -> bool:
    departments = filters.departments or settings.KPI_DEFAULT_DEPARTMENTS
    return department_slug in departments and department_slug not in filters.exclude_departments


def _matches_role(role: str, filters: StatisticsFilters) -> bool:
    if filters.roles and not any(role.startswith(prefix) for prefix in filters.roles):
        return False
    return not any(role.startswith(prefix) for prefix in filters.exclude_roles)


def _percentage(score: float, max_score: float) -> float:
    return score / max_score * 100 if max_score > 0 else 0


def score_distribution(rankings: list) -> dict:
    distribution = {"excellent": 0, "good": 0, "average": 0, "poor": 0}
    for ranking in rankings:
        percentage = ranking["percentage_score"]
        if percentage >= SCORE_BUCKET_EXCELLENT:
            distribution["excellent"] += 1
        elif percentage >= SCORE_BUCKET_GOOD:
            distribution["good"] += 1
        elif percentage >= SCORE_BUCKET_AVERAGE:
            distribution["average"] += 1
        else:
            distribution["poor"] += 1
    return distribution


def average_percentage(rankings: list) -> float:
    if not rankings:
        return 0
    return sum(ranking["percentage_score"] for ranking in rankings) / len(rankings)


def cohort_size(total: int) -> int:
    return math.ceil(total * COHORT_RATIO)


def top_cohort(rankings: list) -> dict:
    """Best ``ceil(n * 5%)`` performers of rankings sorted best first.

    The cutoff is the lowest percentage inside the cohort.
    """
    count = cohort_size(len(rankings))
    performers = rankings[:count]
    return {
        "count": count,
        "performers": performers,
        "cutoff_score": performers[-1]["percentage_score"] if performers else 0,
        "average_score": average_percentage(performers),
    }


def bottom_cohort(rankings: list) -> dict:
    """Worst ``ceil(n * 5%)`` performers, worst first.

    The cutoff is the highest percentage inside the cohort.
    """
    count = cohort_size(len(rankings))
    performers = list(reversed(rankings[-count:])) if count else []
    return {
        "count": count,
        "performers": performers,
        "cutoff_score": performers[-1]["percentage_score"] if performers else 0,
        "average_score": average_percentage(performers),
    }


def group_statistics(rankings: list) -> dict:
    return {
        "total_employees": len(rankings),
        "average_score": average_percentage(rankings),
        "rankings": rankings,
        "top_5_percent": top_cohort(rankings),
        "bottom_5_percent": bottom_cohort(rankings),
        "score_distribution": score_distribution(rankings),
    }


def _group_by(rankings: list, key: str) -> dict:
    groups = defaultdict(list)
    for ranking in rankings:
        groups[ranking[key]].append(ranking)
    return groups


def department_statistics(rankings: list) -> list[dict]:
    """Group ranked employees by department, each with its roles nested."""
    departments = []
    for department_slug, department_rankings in _group_by(rankings, "department_slug").items():
        roles = [
            {"role": role, **group_statistics(role_rankings)}
            for role, role_rankings in _group_by(department_rankings, "role").items()
        ]
        departments.append(
            {"department_slug": department_slug, **group_statistics(department_rankings), "roles": roles}
        )
    return departments


class KPIStatisticsService:
    """Employee rankings and department/role statistics."""

    @staticmethod
    def _ranked_employees(filters: StatisticsFilters) -> list[dict]:
        queryset = KPIEntry.objects.filter(status=EntryStatus.GENERATED).select_related("template")
        if filters.month:
            queryset = queryset.filter(month=filters.month)
        if filters.year:
            queryset = queryset.filter(year=filters.year)
        queryset = queryset.prefetch_related("template__items").order_by("created_at", "id")

        employees: dict[str, dict] = {}
        entry_count = 0
        for entry in queryset:
            entry_count += 1
            template = entry.template
            if not _matches_department(template.department_slug, filters):
                continue
            if not _matches_role(template.role, filters):
                continue

            employee = employees.get(entry.created_for)
            if employee is None:
                employee = employees[entry.created_for] = {
                    "employee_id": entry.created_for,
                    "created_for": entry.created_for,
                    "department_slug": template.department_slug,
                    "role": template.role,
                    "total_score": 0,
                    "max_possible_score": 0,
                    "kpi_entries": [],
                }

            template_max = template.total_max_marks
            entry_score = entry.total_score or 0
            employee["total_score"] += entry_score
            employee["max_possible_score"] += template_max
            employee["kpi_entries"].append(
                {
                    "entry_id": entry.pk,
                    "template_id": template.pk,
                    "template_name": template.name,
                    "total_score": entry_score,
                    "max_possible_score": template_max,
                    "percentage_score": _percentage(entry_score, template_max),
                    "status": entry.status,
                }
            )

        rankings = []
        for employee in employees.values():
            employee["percentage_score"] = _percentage(employee["total_score"], employee["max_possible_score"])
            rankings.append(employee)

        # sorted() is stable, so equal percentages keep first-seen order
        rankings = sorted(rankings, key=lambda ranking: ranking["percentage_score"], reverse=True)
        for position, ranking in enumerate(rankings, start=1):
            ranking["rank"] = position

        logger.info(f"Ranked {len(rankings)} employees from {entry_count} generated entries")
        return rankings

    @staticmethod
    def get_employee_rankings(filters: Optional[StatisticsFilters] = None) -> dict:
        """Rank employees by percentage score.

        Returns:
            Dict with ``rankings`` for the requested page plus ``total``,
            ``page``, ``limit``, ``total_pages``, ``has_next_page`` and
            ``has_previous_page``
        """
        filters = filters or StatisticsFilters()
        rankings = KPIStatisticsService._ranked_employees(filters)
        page_rankings, meta = paginate(rankings, page=filters.page, limit=filters.limit)
        return {"rankings": page_rankings, **meta}

    @staticmethod
    def get_department_statistics(filters: Optional[StatisticsFilters] = None) -> list[dict]:
        """Per-department statistics, each with its roles nested."""
        filters = (filters or StatisticsFilters()).unbounded()
        return department_statistics(KPIStatisticsService._ranked_employees(filters))

    @staticmethod
    def get_role_statistics(filters: Optional[StatisticsFilters] = None) -> list[dict]:
        filters = (filters or StatisticsFilters()).unbounded()
        rankings = KPIStatisticsService._ranked_employees(filters)
        return [
            {"role": role, **group_statistics(role_rankings)}
            for role, role_rankings in _group_by(rankings, "role").items()
        ]

    @staticmethod
    def get_overall_statistics(filters: Optional[StatisticsFilters] = None):
        """Statistics shaped by the department filter.

        Without a department filter: ``{"overall": {...}, "departments": [...]}``.
        With one department: that department's statistics, or None when it
        has no ranked employees. With several: a list of department statistics.
        """
        filters = filters or StatisticsFilters()
        rankings = KPIStatisticsService._ranked_employees(filters.unbounded())
        departments = department_statistics(rankings)

        if not filters.departments:
            return {"overall": group_statistics(rankings), "departments": departments}

        if len(filters.departments) == 1:
            return departments[0] if departments else None
        return departments

    @staticmethod
    def get_top_5_percent(filters: Optional[StatisticsFilters] = None) -> dict:
        filters = (filters or StatisticsFilters()).unbounded()
        rankings = KPIStatisticsService._ranked_employees(filters)
        return {"total_employees": len(rankings), **top_cohort(rankings)}

    @staticmethod
    def get_bottom_5_percent(filters: Optional[StatisticsFilters] = None) -> dict:
        filters = (filters or StatisticsFilters()).unbounded()
        rankings = KPIStatisticsService._ranked_employees(filters)
        return {"total_employees": len(rankings), **bottom_cohort(rankings)}

    @staticmethod
    def get_filter_options(identity_client: Optional[IdentityServiceClient] = None) -> dict:
        """Department slugs and member roles available for filtering.

        Roles starting with ``nodalOfficer`` are left out.
        """
        client = identity_client or IdentityServiceClient()
        departments = [department.slug for department in client.list_departments()]
        roles = sorted({member.role for member in client.list_members(limit=1000) if member.role})
        return {
            "departments": departments,
            "roles": [role for role in roles if not role.startswith(NODAL_OFFICER_ROLE_PREFIX)],
        }
