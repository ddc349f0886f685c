from .kpi_entry import KPIEntry
from .kpi_template import KPITemplate, KPITemplateItem

__all__ = [
    "KPIEntry",
    "KPITemplate",
    "KPITemplateItem",
]
