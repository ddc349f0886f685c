from django.apps import AppConfig


class KPIConfig(AppConfig):
    """Configuration for KPI application"""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.kpi"
    verbose_name = "KPI Management"
