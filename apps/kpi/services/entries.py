import logging
from typing import Iterable, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.kpi.constants import EntryStatus
from apps.kpi.exceptions import AlreadyExists, KPIValidationError, NotFound
from apps.kpi.identity import IdentityServiceClient
from apps.kpi.models import KPIEntry, KPITemplate
from apps.kpi.scoring import merge_values, total_score, validate_and_score, validate_template_items
from apps.kpi.serializers import (
    BulkStatusUpdateSerializer,
    EntryListFilterSerializer,
    EntryStatusSerializer,
    KPIEntryCreateSerializer,
    KPIEntryUpdateSerializer,
)
from libs.pagination import paginate

logger = logging.getLogger(__name__)


def validate_payload(serializer_class, data, **kwargs) -> dict:
    """Run ``data`` through a serializer and return its validated data.

    Raises:
        KPIValidationError: Carrying the serializer errors
    """
    serializer = serializer_class(data=data, **kwargs)
    if not serializer.is_valid():
        raise KPIValidationError("Invalid payload", errors=serializer.errors)
    return serializer.validated_data


def get_template(template_id) -> KPITemplate:
    try:
        return KPITemplate.objects.prefetch_related("items").get(pk=template_id)
    except KPITemplate.DoesNotExist:
        raise NotFound(f"KPI template {template_id} not found") from None


def fallback_kpi_ref() -> dict:
    return dict(settings.KPI_FALLBACK_KPI_REF)


class KPIEntryService:
    """Create, read, update and delete KPI entries."""

    @staticmethod
    def create_entry(
        payload: dict,
        identity_client: Optional[IdentityServiceClient] = None,
        cookies=None,
    ) -> list[KPIEntry]:
        """Create the month's entries of one employee for a template.

        One entry is created per scorable unit (``kpiRef``) the employee holds
        in the identity service, all with status ``created`` and no values.

        Args:
            payload: ``month``, ``year``, ``template_id``, ``created_for``, ``created_by``
            identity_client: Client used to fetch the employee
            cookies: Caller cookies forwarded to the identity service

        Returns:
            The created entries

        Raises:
            KPIValidationError: If the payload is invalid
            NotFound: If the template or the employee does not exist
            AlreadyExists: If the employee already has an entry for the period and template
            ExternalServiceFailure: If the identity service cannot be reached
        """
        data = validate_payload(KPIEntryCreateSerializer, payload)
        template = get_template(data["template_id"])

        if KPIEntry.objects.filter(
            created_for=data["created_for"],
            month=data["month"],
            year=data["year"],
            template=template,
        ).exists():
            raise AlreadyExists("KPI entry already exists for this employee, month, year, and template")

        client = identity_client or IdentityServiceClient()
        member = client.get_member(data["created_for"], cookies=cookies)
        if member is None:
            raise NotFound("Member not found")

        refs = [ref.to_dict() for ref in member.kpi_refs] or [fallback_kpi_ref()]
        entries = [
            KPIEntry(
                month=data["month"],
                year=data["year"],
                template=template,
                kpi_ref_label=ref["label"],
                kpi_ref_value=ref["value"],
                created_by=data["created_by"],
                created_for=data["created_for"],
                status=EntryStatus.CREATED,
            )
            for ref in refs
        ]
        try:
            with transaction.atomic():
                for entry in entries:
                    entry.save()
        except IntegrityError as e:
            raise AlreadyExists("KPI entry already exists for this employee, month, year, and template") from e

        logger.info(f"Created {len(entries)} KPI entries for {data['created_for']} ({data['month']}/{data['year']})")
        return entries

    @staticmethod
    def get_entry(entry_id) -> KPIEntry:
        try:
            return KPIEntry.objects.select_related("template").get(pk=entry_id)
        except KPIEntry.DoesNotExist:
            raise NotFound(f"KPI entry {entry_id} not found") from None

    @staticmethod
    def list_entries(filters: Optional[dict] = None) -> dict:
        """List entries newest first with pagination metadata.

        Args:
            filters: Optional ``month``, ``year``, ``template_id``, ``status``,
                ``created_by``, ``created_for`` plus ``page`` and ``limit``

        Returns:
            Dict with ``docs`` and the pagination fields
        """
        data = validate_payload(EntryListFilterSerializer, filters or {})
        page = data.pop("page")
        limit = data.pop("limit")

        queryset = KPIEntry.objects.filter(**data).order_by("-created_at", "-id")
        docs, meta = paginate(queryset, page=page, limit=limit)
        return {"docs": docs, **meta}

    @staticmethod
    def update_entry(entry_id, payload: dict) -> KPIEntry:
        """Apply a partial update to an entry.

        Submitted ``values`` are merged by name into the stored values, the
        merged list is validated against the template and rescored, and the
        total score is recomputed. Other fields are written as given; the
        status only changes when the payload carries one.

        Raises:
            NotFound: If the entry does not exist
            KPIValidationError: If the payload or any merged value is invalid
        """
        data = validate_payload(KPIEntryUpdateSerializer, payload, partial=True)
        entry = KPIEntryService.get_entry(entry_id)

        with transaction.atomic():
            if "values" in data:
                items = list(entry.template.items.all())
                merged = merge_values(entry.values or [], [dict(value) for value in data.pop("values")])
                validate_template_items(items, merged)
                entry.values = validate_and_score(items, merged)
                entry.total_score = total_score(entry.values)

            for field, value in data.items():
                setattr(entry, field, value)

            try:
                entry.save()
            except IntegrityError as e:
                raise AlreadyExists("Another KPI entry already exists for this period and unit") from e

        logger.info(f"Updated KPI entry {entry.pk} (total score {entry.total_score})")
        return entry

    @staticmethod
    def update_status(entry_id, status: str) -> KPIEntry:
        data = validate_payload(EntryStatusSerializer, {"status": status})
        entry = KPIEntryService.get_entry(entry_id)
        entry.status = data["status"]
        entry.save(update_fields=["status", "updated_at"])
        return entry

    @staticmethod
    def bulk_update_status(ids: Iterable, status: str) -> dict:
        """Set ``status`` on every entry in ``ids``.

        Returns:
            ``{"matched": <entries found>, "updated": <entries whose status changed>}``
        """
        data = validate_payload(BulkStatusUpdateSerializer, {"ids": list(ids), "status": status})
        queryset = KPIEntry.objects.filter(pk__in=data["ids"])
        matched = queryset.count()
        updated = queryset.exclude(status=data["status"]).update(status=data["status"], updated_at=timezone.now())
        logger.info(f"Bulk status update to {data['status']}: matched={matched} updated={updated}")
        return {"matched": matched, "updated": updated}

    @staticmethod
    def delete_entry(entry_id) -> KPIEntry:
        entry = KPIEntryService.get_entry(entry_id)
        entry.delete()
        return entry

    @staticmethod
    def list_employee_entries(created_for: str, month: Optional[int] = None, year: Optional[int] = None):
        queryset = KPIEntry.objects.filter(created_for=created_for)
        if month:
            queryset = queryset.filter(month=month)
        if year:
            queryset = queryset.filter(year=year)
        return list(queryset.order_by("-created_at", "-id"))

    @staticmethod
    def list_entries_by_status(status: str):
        data = validate_payload(EntryStatusSerializer, {"status": status})
        return list(KPIEntry.objects.filter(status=data["status"]).order_by("-created_at", "-id"))
