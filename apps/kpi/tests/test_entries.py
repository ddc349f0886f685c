"""Tests for manual KPI entry management."""

import pytest

from apps.kpi.constants import EntryStatus, KPIType
from apps.kpi.exceptions import AlreadyExists, KPIValidationError, NotFound, OutOfRange, UnknownItem
from apps.kpi.models import KPIEntry
from apps.kpi.services import KPIEntryService
from apps.kpi.tests.conftest import PERCENTAGE_RULES, FakeIdentityClient, make_member


@pytest.fixture
def mixed_template(template_factory):
    """Template with a percentage item and a 10-mark score item."""
    return template_factory(
        [
            ("Disposal", KPIType.PERCENTAGE, 10, PERCENTAGE_RULES),
            ("Inspection", KPIType.SCORE, 10, []),
        ]
    )


def make_entry(template, created_for="u-1", unit="court-1", status=EntryStatus.CREATED, values=None, month=3):
    values = values or []
    return KPIEntry.objects.create(
        month=month,
        year=2024,
        template=template,
        kpi_ref_label="court",
        kpi_ref_value=unit,
        values=values,
        total_score=sum(value["score"] for value in values),
        status=status,
        created_by="admin",
        created_for=created_for,
    )


def create_payload(template, created_for="u-1"):
    return {"month": 3, "year": 2024, "template_id": template.pk, "created_for": created_for, "created_by": "admin"}


@pytest.mark.django_db
class TestCreateEntry:
    """Test cases for KPIEntryService.create_entry"""

    def test_one_entry_per_unit(self, mixed_template, identity_client):
        entries = KPIEntryService.create_entry(create_payload(mixed_template), identity_client=identity_client)

        assert [entry.kpi_ref for entry in entries] == [
            {"label": "court", "value": "तहसील रायपुर"},
            {"label": "court", "value": "तहसील अभनपुर"},
        ]
        assert all(entry.status == EntryStatus.CREATED for entry in entries)
        assert all(entry.values == [] and entry.total_score == 0 for entry in entries)
        assert KPIEntry.objects.filter(created_for="u-1").count() == 2

    def test_member_without_units_gets_fallback(self, mixed_template, identity_client, settings):
        settings.KPI_FALLBACK_KPI_REF = {"label": "area", "value": "raipur"}

        entries = KPIEntryService.create_entry(create_payload(mixed_template, "u-5"), identity_client=identity_client)

        assert [entry.kpi_ref for entry in entries] == [{"label": "area", "value": "raipur"}]

    def test_duplicate_period(self, mixed_template, identity_client):
        """A second creation for the same employee, period and template is rejected"""
        KPIEntryService.create_entry(create_payload(mixed_template), identity_client=identity_client)

        with pytest.raises(AlreadyExists):
            KPIEntryService.create_entry(create_payload(mixed_template), identity_client=identity_client)
        assert KPIEntry.objects.count() == 2
        assert [call for call in identity_client.calls if call[0] == "get_member"] == [("get_member", "u-1")]

    def test_unknown_member(self, mixed_template):
        with pytest.raises(NotFound):
            KPIEntryService.create_entry(create_payload(mixed_template, "ghost"), identity_client=FakeIdentityClient())
        assert KPIEntry.objects.count() == 0

    def test_unknown_template(self, identity_client):
        payload = {"month": 3, "year": 2024, "template_id": 999, "created_for": "u-1", "created_by": "admin"}
        with pytest.raises(NotFound):
            KPIEntryService.create_entry(payload, identity_client=identity_client)

    def test_invalid_payload(self, mixed_template, identity_client):
        payload = create_payload(mixed_template)
        payload["month"] = 13

        with pytest.raises(KPIValidationError) as exc_info:
            KPIEntryService.create_entry(payload, identity_client=identity_client)
        assert "month" in exc_info.value.errors


@pytest.mark.django_db
class TestUpdateEntry:
    """Test cases for KPIEntryService.update_entry"""

    def setup_entry(self, template):
        return make_entry(
            template,
            values=[
                {"name": "Disposal", "value": 95, "score": 10},
                {"name": "Inspection", "value": 4, "score": 4},
            ],
        )

    def test_values_merged_and_rescored(self, mixed_template):
        """Unmentioned items keep their values, the total is recomputed"""
        entry = self.setup_entry(mixed_template)

        updated = KPIEntryService.update_entry(entry.pk, {"values": [{"name": "Disposal", "value": 60}]})

        assert updated.values == [
            {"name": "Disposal", "value": 60, "score": 5},
            {"name": "Inspection", "value": 4, "score": 4},
        ]
        assert updated.total_score == 9
        assert updated.status == EntryStatus.CREATED
        entry.refresh_from_db()
        assert entry.total_score == 9

    def test_first_values_on_empty_entry(self, mixed_template):
        entry = make_entry(mixed_template)

        updated = KPIEntryService.update_entry(entry.pk, {"values": [{"name": "Inspection", "value": 7.5}]})

        assert updated.values == [{"name": "Inspection", "value": 7.5, "score": 7.5}]
        assert updated.total_score == 7.5

    def test_status_and_fields_written(self, mixed_template):
        entry = self.setup_entry(mixed_template)

        updated = KPIEntryService.update_entry(entry.pk, {"status": "initiated", "created_by": "manager"})

        assert updated.status == EntryStatus.INITIATED
        assert updated.created_by == "manager"
        assert updated.total_score == 14

    def test_unknown_item_leaves_entry_untouched(self, mixed_template):
        entry = self.setup_entry(mixed_template)

        with pytest.raises(UnknownItem):
            KPIEntryService.update_entry(entry.pk, {"values": [{"name": "Revenue", "value": 3}]})

        entry.refresh_from_db()
        assert entry.total_score == 14

    def test_out_of_range_value(self, mixed_template):
        entry = self.setup_entry(mixed_template)

        with pytest.raises(OutOfRange):
            KPIEntryService.update_entry(entry.pk, {"values": [{"name": "Inspection", "value": 11}]})

    def test_duplicate_names_in_payload(self, mixed_template):
        entry = self.setup_entry(mixed_template)

        with pytest.raises(KPIValidationError) as exc_info:
            KPIEntryService.update_entry(
                entry.pk,
                {"values": [{"name": "Disposal", "value": 60}, {"name": "Disposal", "value": 70}]},
            )
        assert "values" in exc_info.value.errors

    def test_boolean_value_rejected(self, mixed_template):
        entry = self.setup_entry(mixed_template)

        with pytest.raises(KPIValidationError):
            KPIEntryService.update_entry(entry.pk, {"values": [{"name": "Inspection", "value": True}]})

    def test_moving_onto_an_existing_period(self, mixed_template):
        make_entry(mixed_template, month=4)
        entry = make_entry(mixed_template, month=3)

        with pytest.raises(AlreadyExists):
            KPIEntryService.update_entry(entry.pk, {"month": 4})

    def test_missing_entry(self):
        with pytest.raises(NotFound):
            KPIEntryService.update_entry(999, {"status": "initiated"})


@pytest.mark.django_db
class TestEntryQueries:
    """Test cases for status changes, listing and deletion"""

    def test_update_status(self, mixed_template):
        entry = make_entry(mixed_template)

        assert KPIEntryService.update_status(entry.pk, "generated").status == EntryStatus.GENERATED

    def test_update_status_rejects_unknown_status(self, mixed_template):
        entry = make_entry(mixed_template)

        with pytest.raises(KPIValidationError):
            KPIEntryService.update_status(entry.pk, "archived")

    def test_bulk_update_status(self, mixed_template):
        """Only entries whose status actually changes count as updated"""
        first = make_entry(mixed_template, unit="court-1")
        second = make_entry(mixed_template, unit="court-2")
        third = make_entry(mixed_template, unit="court-3", status=EntryStatus.GENERATED)

        result = KPIEntryService.bulk_update_status([first.pk, second.pk, third.pk, 999], "generated")

        assert result == {"matched": 3, "updated": 2}
        assert set(KPIEntry.objects.values_list("status", flat=True)) == {EntryStatus.GENERATED}

    def test_bulk_update_requires_ids(self):
        with pytest.raises(KPIValidationError):
            KPIEntryService.bulk_update_status([], "generated")

    def test_list_entries_newest_first(self, mixed_template):
        entries = [make_entry(mixed_template, unit=f"court-{index}") for index in range(3)]

        result = KPIEntryService.list_entries({"limit": 2})

        assert [doc.pk for doc in result["docs"]] == [entries[2].pk, entries[1].pk]
        assert result["total"] == 3
        assert result["total_pages"] == 2
        assert result["has_next_page"] is True

    def test_list_entries_filters(self, mixed_template):
        make_entry(mixed_template, unit="court-1")
        generated = make_entry(mixed_template, unit="court-2", status=EntryStatus.GENERATED)
        make_entry(mixed_template, created_for="u-2", unit="court-1", status=EntryStatus.GENERATED)

        result = KPIEntryService.list_entries({"status": "generated", "created_for": "u-1"})

        assert [doc.pk for doc in result["docs"]] == [generated.pk]
        assert result["page"] == 1
        assert result["limit"] == 10

    def test_employee_and_status_listings(self, mixed_template):
        march = make_entry(mixed_template, month=3)
        make_entry(mixed_template, month=4, status=EntryStatus.GENERATED)
        make_entry(mixed_template, created_for="u-2")

        assert KPIEntryService.list_employee_entries("u-1", month=3, year=2024) == [march]
        assert len(KPIEntryService.list_employee_entries("u-1")) == 2
        assert [entry.month for entry in KPIEntryService.list_entries_by_status("generated")] == [4]

    def test_delete_entry(self, mixed_template):
        entry = make_entry(mixed_template)

        KPIEntryService.delete_entry(entry.pk)

        with pytest.raises(NotFound):
            KPIEntryService.get_entry(entry.pk)

    def test_to_dict(self, mixed_template):
        entry = make_entry(mixed_template)

        data = entry.to_dict()

        assert data["kpi_ref"] == {"label": "court", "value": "court-1"}
        assert data["template_id"] == mixed_template.pk
        assert data["status"] == "created"


@pytest.mark.django_db
class TestTemplateModel:
    def test_total_max_marks(self, mixed_template):
        assert mixed_template.total_max_marks == 20

    def test_items_ordered(self, mixed_template):
        assert [item.name for item in mixed_template.items.all()] == ["Disposal", "Inspection"]

    def test_member_helper_refs(self):
        member = make_member("u-9", "X", refs=[("court", "A")])
        assert member.find_ref("court", "A").value == "A"
        assert member.find_ref("court", "B") is None
