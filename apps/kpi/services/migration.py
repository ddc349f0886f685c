"""
Migration of historical KPI data from CSV exports.

Each parsed CSV row is matched to an employee of the identity service,
scored against the template and stored as a ``generated`` entry. Rows are
processed one by one; a failing row is recorded and the batch goes on.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

from django.db import IntegrityError, transaction

from apps.kpi.constants import (
    COURT_REF_LABEL,
    MESSAGE_ENTRY_CREATED,
    MESSAGE_ENTRY_EXISTS,
    MESSAGE_MEMBER_NOT_FOUND,
    MESSAGE_NO_CSV_DATA,
    EntryStatus,
)
from apps.kpi.csv_parser import CsvKpiRecord, KPICsvParser
from apps.kpi.identity import IdentityServiceClient, Member
from apps.kpi.models import KPIEntry, KPITemplate
from apps.kpi.scoring import total_score, validate_and_score
from apps.kpi.serializers import CsvPreviewSerializer, MigrationRequestSerializer
from apps.kpi.services.entries import fallback_kpi_ref, get_template, validate_payload

logger = logging.getLogger(__name__)

SYSTEM_USER = "system"

OUTCOME_SUCCESS = "success"
OUTCOME_SKIPPED = "skipped"


@dataclass
class MigrationResult:
    """Counts and per-row details of one migration run.

    ``total_records`` always equals the sum of the three outcome counters.
    """

    total_records: int = 0
    successful_entries: int = 0
    failed_entries: int = 0
    skipped_entries: int = 0
    errors: list = field(default_factory=list)
    details: dict = field(default_factory=dict)

    def record_success(self, key: str, message: str, entry_id) -> None:
        self.successful_entries += 1
        self.details[key] = {"success": True, "message": message, "entry_id": entry_id}

    def record_skip(self, key: str, message: str) -> None:
        self.skipped_entries += 1
        self.details[key] = {"success": False, "message": message}

    def record_failure(self, key: str, officer_name: str, message: str) -> None:
        self.failed_entries += 1
        self.errors.append(f"Error processing {officer_name}: {message}")
        self.details[key] = {"success": False, "message": message}

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class RecordOutcome:
    status: str
    message: str
    entry_id: Optional[int] = None


def _court_suffix(court_name: Optional[str]) -> str:
    return f" for court '{court_name}'" if court_name else ""


def detail_key(record: CsvKpiRecord) -> str:
    if record.court_name:
        return f"{record.officer_name} ({record.court_name})"
    return record.officer_name


class KPIMigrationService:
    """Import CSV rows as KPI entries.

    Args:
        identity_client: Resolves officer names to employees
        parser: Turns CSV text into per-officer KPI values
    """

    def __init__(self, identity_client: Optional[IdentityServiceClient] = None, parser: Optional[KPICsvParser] = None):
        self.identity_client = identity_client or IdentityServiceClient()
        self.parser = parser or KPICsvParser()

    def migrate_from_payload(self, payload: dict, created_by: Optional[str] = None) -> MigrationResult:
        """Validate a migration request dict and run ``migrate``."""
        data = validate_payload(MigrationRequestSerializer, payload)
        return self.migrate(
            csv_content=data["csv_content"],
            month=data["month"],
            year=data["year"],
            template_id=data["template_id"],
            department_slug=data["department_slug"],
            role=data["role"],
            created_by=created_by,
        )

    def preview(self, payload: dict) -> dict:
        """Parse a CSV and return the records a migration would import."""
        data = validate_payload(CsvPreviewSerializer, payload)
        records = self.parser.parse(data["csv_content"], data["department_slug"], data["role"])
        return {
            "total_records": len(records),
            "records": [record.to_dict() for record in records],
        }

    def inspect(self, payload: dict) -> dict:
        """Return the parser's view of a CSV (header mapping, column blocks)."""
        data = validate_payload(CsvPreviewSerializer, payload)
        return self.parser.inspect(data["csv_content"], data["department_slug"], data["role"])

    def migrate(
        self,
        csv_content: str,
        month: int,
        year: int,
        template_id,
        department_slug: str,
        role: str,
        created_by: Optional[str] = None,
    ) -> MigrationResult:
        """Import every parsed CSV row as a ``generated`` KPI entry.

        Rows whose officer is unknown or whose entry already exists are
        skipped. Any other error fails that row only.

        Raises:
            NotFound: If the template does not exist
            ConfigNotFound: If no parser configuration exists for the department and role
            MalformedCsv: If the CSV lacks its header rows or officer-name column
        """
        created_by = created_by or SYSTEM_USER
        logger.info(f"Starting migration for month {month}, year {year}, template {template_id}")

        template = get_template(template_id)
        records = self.parser.parse(csv_content, department_slug, role)
        if not records:
            return MigrationResult(errors=[MESSAGE_NO_CSV_DATA])

        items = list(template.items.all())
        result = MigrationResult(total_records=len(records))

        for record in records:
            key = detail_key(record)
            try:
                with transaction.atomic():
                    outcome = self._migrate_record(
                        record, template, items, month, year, department_slug, role, created_by
                    )
            except IntegrityError:
                logger.warning(f"Duplicate entry for {key} rejected by the database")
                result.record_skip(key, f"{MESSAGE_ENTRY_EXISTS}{_court_suffix(record.court_name)}")
                continue
            except Exception as e:
                logger.exception(f"Error processing record for {key}")
                result.record_failure(key, record.officer_name, str(e) or e.__class__.__name__)
                continue

            if outcome.status == OUTCOME_SUCCESS:
                result.record_success(key, outcome.message, outcome.entry_id)
            else:
                result.record_skip(key, outcome.message)

        logger.info(
            f"Migration completed: {result.successful_entries} successful, "
            f"{result.failed_entries} failed, {result.skipped_entries} skipped"
        )
        return result

    def resolve_member(self, record: CsvKpiRecord, department_slug: str, role: str) -> Optional[Member]:
        """Find the employee behind a CSV row.

        With a court, same-named members of the role and department are
        listed and the one holding that court wins; otherwise the first of
        them is used. Without a court the name is looked up directly.
        """
        if not record.court_name:
            return self.identity_client.get_member_by_name(record.officer_name)

        members = self.identity_client.list_members(role=role, department_slug=department_slug)
        same_name = [member for member in members if member.name == record.officer_name]
        if not same_name:
            logger.error(f"Member not found for name: {record.officer_name}")
            return None
        if len(same_name) == 1:
            return same_name[0]

        for member in same_name:
            if member.find_ref(COURT_REF_LABEL, record.court_name):
                logger.info(f"Found member {member.name} for court: {record.court_name}")
                return member

        logger.warning(
            f"No exact court match found for {record.officer_name} and court {record.court_name}, "
            "returning first member with this name"
        )
        return same_name[0]

    @staticmethod
    def resolve_kpi_ref(member: Member, court_name: Optional[str]) -> dict:
        if court_name:
            court_ref = member.find_ref(COURT_REF_LABEL, court_name)
            if court_ref:
                return court_ref.to_dict()
        if member.kpi_refs:
            return member.kpi_refs[0].to_dict()
        return fallback_kpi_ref()

    def _migrate_record(
        self,
        record: CsvKpiRecord,
        template: KPITemplate,
        items: list,
        month: int,
        year: int,
        department_slug: str,
        role: str,
        created_by: str,
    ) -> RecordOutcome:
        member = self.resolve_member(record, department_slug, role)
        if member is None:
            logger.warning(f"Skipping {record.officer_name}: member not found")
            return RecordOutcome(OUTCOME_SKIPPED, MESSAGE_MEMBER_NOT_FOUND)

        existing = KPIEntry.objects.filter(created_for=member.user_id, month=month, year=year, template=template)
        if record.court_name:
            existing = existing.filter(kpi_ref_value=record.court_name)
        if existing.exists():
            logger.warning(f"Skipping {detail_key(record)}: entry already exists")
            return RecordOutcome(OUTCOME_SKIPPED, f"{MESSAGE_ENTRY_EXISTS}{_court_suffix(record.court_name)}")

        raw_values = [{"name": name, "value": value} for name, value in record.kpi_values.items()]
        values = validate_and_score(items, raw_values)
        kpi_ref = self.resolve_kpi_ref(member, record.court_name)

        entry = KPIEntry.objects.create(
            month=month,
            year=year,
            template=template,
            kpi_ref_label=kpi_ref["label"],
            kpi_ref_value=kpi_ref["value"],
            values=values,
            total_score=total_score(values),
            status=EntryStatus.GENERATED,
            created_by=created_by,
            created_for=member.user_id,
        )
        logger.info(f"Created KPI entry for {detail_key(record)}: {entry.pk}")
        return RecordOutcome(OUTCOME_SUCCESS, f"{MESSAGE_ENTRY_CREATED}{_court_suffix(record.court_name)}", entry.pk)
