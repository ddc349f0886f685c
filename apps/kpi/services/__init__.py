from .entries import KPIEntryService
from .migration import KPIMigrationService, MigrationResult
from .monthly_report import MonthlyReportService
from .statistics import KPIStatisticsService, StatisticsFilters

__all__ = [
    "KPIEntryService",
    "KPIMigrationService",
    "KPIStatisticsService",
    "MigrationResult",
    "MonthlyReportService",
    "StatisticsFilters",
]
