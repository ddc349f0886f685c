from django.core.validators import MinValueValidator
from django.db import models

from apps.kpi.constants import KPIType
from libs.models import BaseModel


class KPITemplate(BaseModel):
    """KPI template defining the scorable items for a department and role.

    Templates are maintained by admin tooling; the KPI services only read them.

    Attributes:
        name: Display name of the template
        department_slug: Slug of the department the template belongs to
        role: Role the template applies to (e.g. 'sdm', 'tehsildar')
    """

    name = models.CharField(max_length=255, verbose_name="Name")
    department_slug = models.CharField(
        max_length=100,
        db_index=True,
        verbose_name="Department slug",
    )
    role = models.CharField(max_length=100, db_index=True, verbose_name="Role")

    class Meta:
        verbose_name = "KPI Template"
        verbose_name_plural = "KPI Templates"
        db_table = "kpi_template"
        ordering = ["department_slug", "role", "name"]

    def __str__(self):
        return f"{self.department_slug} - {self.role} - {self.name}"

    @property
    def total_max_marks(self) -> float:
        return sum(item.max_marks for item in self.items.all())


class KPITemplateItem(BaseModel):
    """One scorable item of a KPI template.

    ``scoring_rules`` holds the raw rule list. Its shape depends on ``kpi_type``:
    ``{"value": 90, "score": 10}`` thresholds for percentage items,
    ``{"min": 0, "max": 10, "score": 5}`` ranges or ``{"value": 3, "score": 1}``
    exact numbers for quantitative items, and ``{"value": "yes", "score": 5}``
    exact strings for binary/qualitative items.
    """

    template = models.ForeignKey(
        KPITemplate,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name="Template",
    )
    name = models.CharField(max_length=255, verbose_name="Name")
    max_marks = models.FloatField(
        validators=[MinValueValidator(0)],
        verbose_name="Max marks",
    )
    kpi_type = models.CharField(
        max_length=20,
        choices=KPIType.choices,
        verbose_name="KPI type",
    )
    scoring_rules = models.JSONField(default=list, blank=True, verbose_name="Scoring rules")
    order = models.PositiveIntegerField(default=0, verbose_name="Order")

    class Meta:
        verbose_name = "KPI Template Item"
        verbose_name_plural = "KPI Template Items"
        db_table = "kpi_template_item"
        ordering = ["template", "order", "id"]
        constraints = [
            models.UniqueConstraint(fields=["template", "name"], name="kpi_template_item_unique_name"),
        ]

    def __str__(self):
        return f"{self.name} ({self.kpi_type}, {self.max_marks})"
