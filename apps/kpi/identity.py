"""
Client for the external identity service.

Employees, their departments, roles and scorable units (``kpiRef``) are owned
by the identity service. This module only reads them over HTTP.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

import requests
from django.conf import settings

from apps.kpi.exceptions import ExternalServiceFailure

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@dataclass(frozen=True)
class KPIRef:
    label: str
    value: str

    def to_dict(self) -> dict:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class Member:
    """Employee record as returned by the identity service."""

    user_id: str
    name: str
    role: str = ""
    department_slug: str = ""
    kpi_refs: tuple = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: dict) -> "Member":
        metadata = payload.get("metadata") or {}
        user = payload.get("user") or {}
        refs = tuple(
            KPIRef(label=str(ref.get("label", "")), value=str(ref.get("value", "")))
            for ref in metadata.get("kpiRef") or []
            if isinstance(ref, dict)
        )
        return cls(
            user_id=str(payload.get("userId") or user.get("_id") or ""),
            name=user.get("name", ""),
            role=payload.get("role", ""),
            department_slug=payload.get("departmentSlug", ""),
            kpi_refs=refs,
        )

    def find_ref(self, label: str, value: str) -> Optional[KPIRef]:
        for ref in self.kpi_refs:
            if ref.label == label and ref.value == value:
                return ref
        return None


@dataclass(frozen=True)
class Department:
    slug: str
    name: str = ""


class IdentityServiceClient:
    """Thin ``requests`` wrapper around the identity service REST API.

    Not-found answers (HTTP 404 or ``success: false``) come back as None or
    an empty list. Transport errors and other failing statuses raise
    ``ExternalServiceFailure``.
    """

    def __init__(self, base_url: Optional[str] = None, timeout=None, list_timeout=None):
        self.base_url = (base_url or settings.IDENTITY_SERVICE_URL).rstrip("/") + API_PREFIX
        self.timeout = timeout or settings.IDENTITY_SERVICE_TIMEOUT
        self.list_timeout = list_timeout or settings.IDENTITY_SERVICE_LIST_TIMEOUT

    def _get(self, path: str, params=None, cookies=None, timeout=None) -> Optional[dict]:
        url = f"{self.base_url}{path}"
        try:
            response = requests.get(
                url,
                params=params,
                cookies=cookies,
                headers={"Content-Type": "application/json"},
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Identity service request to {url} failed: {e}")
            raise ExternalServiceFailure(f"Identity service unreachable: {e}") from e

        if response.status_code == 404:
            return None
        if not 200 <= response.status_code < 300:
            logger.error(f"Identity service returned {response.status_code} for {url}: {response.text[:200]}")
            raise ExternalServiceFailure(f"Identity service returned status {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceFailure("Identity service returned invalid JSON") from e

    def get_member(self, member_id: str, cookies=None) -> Optional[Member]:
        data = self._get(f"/members/{quote(str(member_id), safe='')}", cookies=cookies)
        if not data or not data.get("success") or not data.get("member"):
            logger.warning(f"No member found for id: {member_id}")
            return None
        return Member.from_payload(data["member"])

    def get_member_by_name(self, name: str) -> Optional[Member]:
        data = self._get(f"/members/name/{quote(name.strip(), safe='')}")
        member = (data or {}).get("member") or {}
        if not data or not data.get("success") or not member.get("user"):
            logger.warning(f"No member found for name: {name}")
            return None
        return Member.from_payload(member)

    def list_members(self, role: Optional[str] = None, department_slug: Optional[str] = None, limit: int = 100):
        """Return members, optionally narrowed to one role and department.

        ``limit`` is the page size. Pages are fetched until the service
        reports no next page.
        """
        params = {"limit": limit, "page": 1}
        if role:
            params["role"] = role
        if department_slug:
            params["departmentSlug"] = department_slug

        members = []
        while True:
            data = self._get("/members", params=params, timeout=self.list_timeout)
            if not data or data.get("docs") is None or data.get("success") is False:
                logger.error(f"No members returned for role={role} department={department_slug} page={params['page']}")
                break
            members.extend(Member.from_payload(doc) for doc in data["docs"])
            if not data.get("hasNextPage") or not data["docs"]:
                break
            params = {**params, "page": params["page"] + 1}
        return members

    def list_departments(self) -> list[Department]:
        data = self._get("/departments")
        if not data or not data.get("success"):
            logger.error("Failed to fetch departments from identity service")
            return []
        return [Department(slug=doc.get("slug", ""), name=doc.get("name", "")) for doc in data.get("docs") or []]
