from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.kpi.constants import EntryStatus
from libs.models import BaseModel


class KPIEntry(BaseModel):
    """Monthly KPI submission of one employee against a template.

    ``kpi_ref_label``/``kpi_ref_value`` identify the scorable unit (a court, an
    area) when one employee holds several. At most one entry exists per
    employee, month, year, template and unit.

    Attributes:
        month: Month of the entry (1-12)
        year: Year of the entry (2020 onwards)
        template: Template the values are scored against
        kpi_ref_label: Kind of scorable unit (e.g. 'court', 'area')
        kpi_ref_value: Identifier of the scorable unit
        values: List of ``{"name", "value", "score"}`` dicts
        total_score: Sum of the scores in ``values``
        status: Workflow tag (created/initiated/generated)
        created_by: Identity id of the submitter
        created_for: Identity id of the assessed employee
    """

    month = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(12)],
        verbose_name="Month",
    )
    year = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(2020)],
        verbose_name="Year",
    )
    template = models.ForeignKey(
        "KPITemplate",
        on_delete=models.PROTECT,
        related_name="entries",
        verbose_name="Template",
    )
    kpi_ref_label = models.CharField(max_length=100, verbose_name="KPI reference label")
    kpi_ref_value = models.CharField(max_length=255, verbose_name="KPI reference value")
    values = models.JSONField(default=list, blank=True, verbose_name="Values")
    total_score = models.FloatField(default=0, verbose_name="Total score")
    status = models.CharField(
        max_length=20,
        choices=EntryStatus.choices,
        default=EntryStatus.CREATED,
        verbose_name="Status",
    )
    created_by = models.CharField(max_length=100, verbose_name="Created by")
    created_for = models.CharField(max_length=100, verbose_name="Created for")

    class Meta:
        verbose_name = "KPI Entry"
        verbose_name_plural = "KPI Entries"
        db_table = "kpi_entry"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["created_for", "month", "year", "template", "kpi_ref_value"],
                name="kpi_entry_unique_period_unit",
            ),
        ]
        indexes = [
            models.Index(fields=["created_for", "month", "year", "template"], name="kpi_entry_for_period_idx"),
            models.Index(fields=["status"], name="kpi_entry_status_idx"),
            models.Index(fields=["created_by"], name="kpi_entry_created_by_idx"),
            models.Index(fields=["created_for"], name="kpi_entry_created_for_idx"),
        ]

    def __str__(self):
        return f"{self.created_for} - {self.month:02d}/{self.year} - {self.kpi_ref_value}"

    @property
    def kpi_ref(self) -> dict:
        return {"label": self.kpi_ref_label, "value": self.kpi_ref_value}

    def to_dict(self) -> dict:
        return {
            "id": self.pk,
            "month": self.month,
            "year": self.year,
            "template_id": self.template_id,
            "kpi_ref": self.kpi_ref,
            "values": self.values,
            "total_score": self.total_score,
            "status": self.status,
            "created_by": self.created_by,
            "created_for": self.created_for,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
