from .base import config

# Identity service (employees, departments, kpiRef units)
IDENTITY_SERVICE_URL = config("IDENTITY_SERVICE_URL", default="http://127.0.0.1:4000")
IDENTITY_SERVICE_TIMEOUT = config("IDENTITY_SERVICE_TIMEOUT", default=10, cast=int)
IDENTITY_SERVICE_LIST_TIMEOUT = config("IDENTITY_SERVICE_LIST_TIMEOUT", default=30, cast=int)

# Statistics
KPI_DEFAULT_DEPARTMENTS = ["collector-office", "revenue-department"]

# Unit assigned to entries of employees without any kpiRef
KPI_FALLBACK_KPI_REF = {"label": "area", "value": "raipur"}

# CSV migration tables, None means the files shipped in apps/kpi/data
KPI_HEADER_NORMALIZATIONS_FILE = config("KPI_HEADER_NORMALIZATIONS_FILE", default=None)
KPI_SUB_HEADER_NORMALIZATIONS_FILE = config("KPI_SUB_HEADER_NORMALIZATIONS_FILE", default=None)
KPI_PARSER_CONFIGS_FILE = config("KPI_PARSER_CONFIGS_FILE", default=None)
