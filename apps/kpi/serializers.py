"""Payload serializers for the KPI services.

The services receive plain dicts from their callers and validate them here
before touching the database.
"""

from rest_framework import serializers

from apps.kpi.constants import DEFAULT_RANKING_LIMIT, EntryStatus

MONTH_MIN = 1
MONTH_MAX = 12
YEAR_MIN = 2020
MIGRATION_YEAR_MAX = 2030


class KPIValueField(serializers.Field):
    """A KPI value: a number or a string, never a boolean."""

    default_error_messages = {
        "invalid": "KPI value must be a number or a string.",
    }

    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (int, float, str)):
            self.fail("invalid")
        return data

    def to_representation(self, value):
        return value


class KPIValueSerializer(serializers.Serializer):
    """Serializer for one submitted ``{name, value}`` pair"""

    name = serializers.CharField(max_length=255)
    value = KPIValueField()


class KPIEntryCreateSerializer(serializers.Serializer):
    """Serializer for manual KPI entry creation"""

    month = serializers.IntegerField(min_value=MONTH_MIN, max_value=MONTH_MAX)
    year = serializers.IntegerField(min_value=YEAR_MIN)
    template_id = serializers.IntegerField()
    created_for = serializers.CharField(max_length=100)
    created_by = serializers.CharField(max_length=100)


class KPIEntryUpdateSerializer(serializers.Serializer):
    """Serializer for partial KPI entry updates.

    ``values`` are merged by name with the stored ones; the remaining fields
    overwrite the stored fields as-is.
    """

    month = serializers.IntegerField(min_value=MONTH_MIN, max_value=MONTH_MAX, required=False)
    year = serializers.IntegerField(min_value=YEAR_MIN, required=False)
    values = KPIValueSerializer(many=True, required=False)
    status = serializers.ChoiceField(choices=EntryStatus.choices, required=False)
    created_by = serializers.CharField(max_length=100, required=False)

    def validate_values(self, values):
        names = [value["name"] for value in values]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise serializers.ValidationError(f"Duplicate KPI items: {', '.join(duplicates)}")
        return values


class EntryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=EntryStatus.choices)


class BulkStatusUpdateSerializer(serializers.Serializer):
    """Serializer for bulk status updates"""

    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    status = serializers.ChoiceField(choices=EntryStatus.choices)


class EntryListFilterSerializer(serializers.Serializer):
    """Serializer for entry listing filters and pagination"""

    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, default=10)
    month = serializers.IntegerField(min_value=MONTH_MIN, max_value=MONTH_MAX, required=False)
    year = serializers.IntegerField(min_value=YEAR_MIN, required=False)
    template_id = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=EntryStatus.choices, required=False)
    created_by = serializers.CharField(required=False)
    created_for = serializers.CharField(required=False)


class CsvPreviewSerializer(serializers.Serializer):
    """Serializer for parsing a CSV without persisting anything"""

    csv_content = serializers.CharField(trim_whitespace=False)
    department_slug = serializers.CharField(max_length=100)
    role = serializers.CharField(max_length=100)


class MigrationRequestSerializer(CsvPreviewSerializer):
    """Serializer for CSV migration requests"""

    month = serializers.IntegerField(min_value=MONTH_MIN, max_value=MONTH_MAX)
    year = serializers.IntegerField(min_value=YEAR_MIN, max_value=MIGRATION_YEAR_MAX)
    template_id = serializers.IntegerField()


class StatisticsFilterSerializer(serializers.Serializer):
    """Serializer for statistics filters.

    An empty ``departments`` list falls back to ``KPI_DEFAULT_DEPARTMENTS``.
    ``limit`` may be null to return every ranking.
    """

    month = serializers.IntegerField(min_value=MONTH_MIN, max_value=MONTH_MAX, required=False, allow_null=True)
    year = serializers.IntegerField(min_value=YEAR_MIN, required=False, allow_null=True)
    departments = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    roles = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    exclude_departments = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    exclude_roles = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    limit = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=DEFAULT_RANKING_LIMIT)
    page = serializers.IntegerField(min_value=1, required=False, default=1)


class MonthlyReportSerializer(serializers.Serializer):
    month = serializers.IntegerField(min_value=MONTH_MIN, max_value=MONTH_MAX)
    year = serializers.IntegerField(min_value=YEAR_MIN)
    department = serializers.CharField(max_length=100, required=False, allow_null=True, default=None)
