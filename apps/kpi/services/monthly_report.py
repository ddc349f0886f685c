import logging
from typing import Optional

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from apps.kpi.constants import EntryStatus
from apps.kpi.models import KPIEntry
from apps.kpi.serializers import MonthlyReportSerializer
from apps.kpi.services.entries import validate_payload

logger = logging.getLogger(__name__)


def _month_queryset(month: int, year: int, department: Optional[str]):
    queryset = KPIEntry.objects.filter(month=month, year=year)
    if department:
        queryset = queryset.filter(template__department_slug=department)
    return queryset


def status_counts(queryset) -> dict:
    """Count entries per status, every status present with 0 as default."""
    counts = {status: 0 for status in EntryStatus.values}
    for row in queryset.order_by().values("status").annotate(count=Count("id")):
        counts[row["status"]] = row["count"]
    return counts


class MonthlyReportService:
    """Close a month by marking its filled-in entries as generated."""

    @staticmethod
    @transaction.atomic
    def generate_monthly_report(month: int, year: int, department: Optional[str] = None) -> dict:
        """Mark the month's ``created``/``initiated`` entries that have values as ``generated``.

        Entries without values are left untouched and counted as skipped.

        Args:
            month: Month of the entries
            year: Year of the entries
            department: Restrict to templates of this department slug

        Returns:
            Dict with ``total_entries``, ``updated_entries``, ``skipped_entries``,
            ``department``, ``month``, ``year`` and the per-status ``details``
            counted after the update
        """
        data = validate_payload(MonthlyReportSerializer, {"month": month, "year": year, "department": department})
        month, year, department = data["month"], data["year"], data["department"]

        pending = list(
            _month_queryset(month, year, department).filter(status__in=[EntryStatus.CREATED, EntryStatus.INITIATED])
        )
        ready_ids = [entry.pk for entry in pending if entry.values]
        skipped = len(pending) - len(ready_ids)
        for entry in pending:
            if not entry.values:
                logger.info(f"Skipping entry {entry.pk}: no values provided")

        updated = KPIEntry.objects.filter(pk__in=ready_ids).update(
            status=EntryStatus.GENERATED, updated_at=timezone.now()
        )

        result = {
            "total_entries": len(pending),
            "updated_entries": updated,
            "skipped_entries": skipped,
            "department": department,
            "month": month,
            "year": year,
            "details": status_counts(_month_queryset(month, year, department)),
        }
        logger.info(f"Monthly report generated: {result}")
        return result

    @staticmethod
    def get_monthly_report_summary(month: int, year: int, department: Optional[str] = None) -> dict:
        data = validate_payload(MonthlyReportSerializer, {"month": month, "year": year, "department": department})
        details = status_counts(_month_queryset(data["month"], data["year"], data["department"]))
        return {
            "total_entries": sum(details.values()),
            "updated_entries": 0,
            "skipped_entries": 0,
            "department": data["department"],
            "month": data["month"],
            "year": data["year"],
            "details": details,
        }
