# Generated migration for KPI templates and entries

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="KPITemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("department_slug", models.CharField(db_index=True, max_length=100, verbose_name="Department slug")),
                ("role", models.CharField(db_index=True, max_length=100, verbose_name="Role")),
            ],
            options={
                "verbose_name": "KPI Template",
                "verbose_name_plural": "KPI Templates",
                "db_table": "kpi_template",
                "ordering": ["department_slug", "role", "name"],
            },
        ),
        migrations.CreateModel(
            name="KPITemplateItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                (
                    "max_marks",
                    models.FloatField(
                        validators=[django.core.validators.MinValueValidator(0)],
                        verbose_name="Max marks",
                    ),
                ),
                (
                    "kpi_type",
                    models.CharField(
                        choices=[
                            ("quantitative", "Quantitative"),
                            ("percentage", "Percentage"),
                            ("binary", "Binary"),
                            ("qualitative", "Qualitative"),
                            ("score", "Score"),
                        ],
                        max_length=20,
                        verbose_name="KPI type",
                    ),
                ),
                ("scoring_rules", models.JSONField(blank=True, default=list, verbose_name="Scoring rules")),
                ("order", models.PositiveIntegerField(default=0, verbose_name="Order")),
                (
                    "template",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="kpi.kpitemplate",
                        verbose_name="Template",
                    ),
                ),
            ],
            options={
                "verbose_name": "KPI Template Item",
                "verbose_name_plural": "KPI Template Items",
                "db_table": "kpi_template_item",
                "ordering": ["template", "order", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("template", "name"), name="kpi_template_item_unique_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="KPIEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "month",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(12),
                        ],
                        verbose_name="Month",
                    ),
                ),
                (
                    "year",
                    models.PositiveSmallIntegerField(
                        validators=[django.core.validators.MinValueValidator(2020)],
                        verbose_name="Year",
                    ),
                ),
                ("kpi_ref_label", models.CharField(max_length=100, verbose_name="KPI reference label")),
                ("kpi_ref_value", models.CharField(max_length=255, verbose_name="KPI reference value")),
                ("values", models.JSONField(blank=True, default=list, verbose_name="Values")),
                ("total_score", models.FloatField(default=0, verbose_name="Total score")),
                (
                    "status",
                    models.CharField(
                        choices=[("created", "Created"), ("initiated", "Initiated"), ("generated", "Generated")],
                        default="created",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("created_by", models.CharField(max_length=100, verbose_name="Created by")),
                ("created_for", models.CharField(max_length=100, verbose_name="Created for")),
                (
                    "template",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="entries",
                        to="kpi.kpitemplate",
                        verbose_name="Template",
                    ),
                ),
            ],
            options={
                "verbose_name": "KPI Entry",
                "verbose_name_plural": "KPI Entries",
                "db_table": "kpi_entry",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_for", "month", "year", "template"], name="kpi_entry_for_period_idx"),
                    models.Index(fields=["status"], name="kpi_entry_status_idx"),
                    models.Index(fields=["created_by"], name="kpi_entry_created_by_idx"),
                    models.Index(fields=["created_for"], name="kpi_entry_created_for_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("created_for", "month", "year", "template", "kpi_ref_value"),
                        name="kpi_entry_unique_period_unit",
                    ),
                ],
            },
        ),
    ]
