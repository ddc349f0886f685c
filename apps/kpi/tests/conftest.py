"""Shared pytest fixtures for KPI tests."""

import pytest

from apps.kpi.constants import KPIType
from apps.kpi.exceptions import ExternalServiceFailure
from apps.kpi.identity import Department, KPIRef, Member
from apps.kpi.models import KPITemplate, KPITemplateItem

PERCENTAGE_RULES = [
    {"value": 50, "score": 5},
    {"value": 90, "score": 10},
    {"value": 70, "score": 7},
]

TEHSILDAR_KPIS = [
    "खाता विभाजन (विवादित + अविवादित)",
    "नामांतरण (विवादित + अविवादित)",
    "सीमांकन",
    "विविध राजस्व मामले (बी-121)",
    "कुल निराकरण",
    "जाति प्रमाणपत्र",
    "अवैध उत्खनन/अतिक्रमण",
    "आर बी सी 6 (4)",
    "टी.एल./जनदर्शन / जनशिकायत /लोक सेवा",
]

# Column headers as they appear in real exports (spelling variants included)
TEHSILDAR_HEADERS = [
    "खाता विभाजन (विवादित + अविवादित)",
    "नामांतरण (विवादित + अविवादित)",
    "सीमांकन",
    "विविध राजस्व मामले (बी-121)",
    "कूल निराकरण",
    "जाति प्रमाण पत्र",
    "अवैध उत्खनन /अतिक्रमण",
    "आर बी सी 6 (4)",
    "टी.एल./जनदर्शन / जनशिकायत /लोक सेवा",
]

SDM_KPIS = [
    "व्यपवर्तन",
    "अभिलेख दुरुस्ती/त्रुटियुधार",
    "अपील निराकरण",
    "कुल प्रकरणों का निराकरण",
    "जाति प्रमाणपत्र",
    "आँगनबाड़ी/स्कूल/पीडीएस शॉप/विकास कार्य निरीक्षण",
    "RBC 6(4)",
    "टीएल/जनदर्शन/जनशिकायत/पीजी",
]

SUB_HEADERS = ["कुल दर्ज", "कुल निराकृत", "कुल लंबित"]


def build_csv(kpi_headers, rows, unit_header="न्यायालय"):
    """Build a two-header-row CSV export.

    Args:
        kpi_headers: KPI column headers, one 3-column block each
        rows: ``(officer, unit, [(registered, disposed, pending), ...])`` tuples
        unit_header: Header of the second column

    Returns:
        CSV text
    """
    header = ["पीठासीन अधिकारी", unit_header]
    sub_header = ["", ""]
    for kpi_header in kpi_headers:
        header += [kpi_header, "", ""]
        sub_header += SUB_HEADERS

    lines = [",".join(header), ",".join(sub_header)]
    for officer, unit, blocks in rows:
        cells = [officer, unit]
        for block in blocks:
            cells += [str(value) for value in block]
        lines.append(",".join(cells))
    return "\n".join(lines)


class FakeIdentityClient:
    """In-memory stand-in for ``IdentityServiceClient``."""

    def __init__(self, members=None, departments=None, failing_names=()):
        self.members = list(members or [])
        self.departments = list(departments or [])
        self.failing_names = set(failing_names)
        self.calls = []

    def _check(self, name):
        if name in self.failing_names:
            raise ExternalServiceFailure(f"Identity service unreachable for {name}")

    def get_member(self, member_id, cookies=None):
        self.calls.append(("get_member", member_id))
        return next((member for member in self.members if member.user_id == member_id), None)

    def get_member_by_name(self, name):
        self.calls.append(("get_member_by_name", name))
        self._check(name)
        return next((member for member in self.members if member.name == name), None)

    def list_members(self, role=None, department_slug=None, limit=100):
        self.calls.append(("list_members", role, department_slug))
        return [
            member
            for member in self.members
            if (not role or member.role == role) and (not department_slug or member.department_slug == department_slug)
        ]

    def list_departments(self):
        self.calls.append(("list_departments",))
        return self.departments


def make_member(user_id, name, role="tehsildar", department_slug="revenue-department", refs=()):
    return Member(
        user_id=user_id,
        name=name,
        role=role,
        department_slug=department_slug,
        kpi_refs=tuple(KPIRef(label=label, value=value) for label, value in refs),
    )


@pytest.fixture
def template_factory(db):
    """Factory creating a template with its items.

    Items are ``(name, kpi_type, max_marks, scoring_rules)`` tuples.
    """

    def _create(items, name="Monthly KPI", department_slug="revenue-department", role="tehsildar"):
        template = KPITemplate.objects.create(name=name, department_slug=department_slug, role=role)
        for order, (item_name, kpi_type, max_marks, rules) in enumerate(items):
            KPITemplateItem.objects.create(
                template=template,
                name=item_name,
                kpi_type=kpi_type,
                max_marks=max_marks,
                scoring_rules=rules,
                order=order,
            )
        return template

    return _create


@pytest.fixture
def tehsildar_template(template_factory):
    """Template with every tehsildar CSV KPI as a 10-mark percentage item."""
    return template_factory(
        [(name, KPIType.PERCENTAGE, 10, PERCENTAGE_RULES) for name in TEHSILDAR_KPIS],
        name="Tehsildar KPI",
        role="tehsildar",
    )


@pytest.fixture
def sdm_template(template_factory):
    return template_factory(
        [(name, KPIType.PERCENTAGE, 10, PERCENTAGE_RULES) for name in SDM_KPIS],
        name="SDM KPI",
        role="sdm",
    )


@pytest.fixture
def score_template(template_factory):
    """Template with a single 100-mark score item, so total score equals percentage."""
    return template_factory([("Overall", KPIType.SCORE, 100, [])], name="Score KPI")


@pytest.fixture
def identity_client():
    return FakeIdentityClient(
        members=[
            make_member("u-1", "राम कुमार", refs=[("court", "तहसील रायपुर"), ("court", "तहसील अभनपुर")]),
            make_member("u-2", "सीता देवी", refs=[("court", "तहसील आरंग")]),
            make_member("u-3", "राम कुमार", refs=[("court", "तहसील तिल्दा")]),
            make_member("u-4", "मोहन लाल", role="sdm", refs=[("area", "रायपुर")]),
            make_member("u-5", "गीता शर्मा", role="sdm"),
        ],
        departments=[Department(slug="revenue-department", name="Revenue"), Department(slug="collector-office")],
    )
