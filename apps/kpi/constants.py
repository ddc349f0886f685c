"""KPI module constants and enums."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class KPIType(models.TextChoices):
    """How a template item's raw value is validated and scored."""

    QUANTITATIVE = "quantitative", _("Quantitative")
    PERCENTAGE = "percentage", _("Percentage")
    BINARY = "binary", _("Binary")
    QUALITATIVE = "qualitative", _("Qualitative")
    SCORE = "score", _("Score")


class EntryStatus(models.TextChoices):
    """Workflow tag of a KPI entry."""

    CREATED = "created", _("Created")
    INITIATED = "initiated", _("Initiated")
    GENERATED = "generated", _("Generated")


class CalculationType(models.TextChoices):
    """How a CSV migration column is turned into a KPI value."""

    PERCENTAGE = "percentage", _("Percentage")
    DIRECT = "direct", _("Direct")


NUMERIC_KPI_TYPES = (KPIType.QUANTITATIVE, KPIType.PERCENTAGE, KPIType.SCORE)
STRING_KPI_TYPES = (KPIType.BINARY, KPIType.QUALITATIVE)

# CSV layout
OFFICER_NAME_KEY = "officer_name"
CSV_RESERVED_COLUMNS = 2
CSV_KPI_BLOCK_WIDTH = 3
MULTI_COURT_ROLE = "tehsildar"
COURT_REF_LABEL = "court"
SUB_HEADER_SEARCH_RANGE = 3
SUB_HEADER_REGISTERED = "कुल दर्ज"
SUB_HEADER_DISPOSED = "कुल निराकृत"
SUB_HEADER_PENDING = "कुल लंबित"
FUZZY_MATCH_THRESHOLD = 0.7

# Header match scores
EXACT_MATCH_SCORE = 100
CONTAINS_MATCH_SCORE = 50

# Statistics
SCORE_BUCKET_EXCELLENT = 90
SCORE_BUCKET_GOOD = 70
SCORE_BUCKET_AVERAGE = 50
COHORT_RATIO = 0.05
DEFAULT_RANKING_LIMIT = 50
NODAL_OFFICER_ROLE_PREFIX = "nodalOfficer"

# Migration messages
MESSAGE_MEMBER_NOT_FOUND = "Member not found"
MESSAGE_ENTRY_EXISTS = "Entry already exists"
MESSAGE_ENTRY_CREATED = "Entry created successfully"
MESSAGE_NO_CSV_DATA = "No valid data found in CSV"
