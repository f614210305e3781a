# kezekshi_dashboard/services/access.py
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.errors import KezekshiAPIError
from kezekshi_dashboard.core.logging import log

ALL_REGIONS_LABEL = "Все регионы"
ALL_SCHOOLS_LABEL = "Все школы"

class Role(str, enum.Enum):
    ADMIN = "AD"
    DEPARTMENT = "DE"
    SCHOOL = "SC"
    USER = "US"

PUBLIC_PAGES = {"login", "register", "reset"}

PAGES_BY_ROLE = {
    Role.DEPARTMENT: PUBLIC_PAGES | {"home", "stats", "planning", "profile"},
    Role.SCHOOL: PUBLIC_PAGES | {"home", "stats", "profile"},
    Role.USER: PUBLIC_PAGES | {"my-children", "profile"},
}

def _same_id(a: Any, b: Any) -> bool:
    try:
        return int(a) == int(b)
    except (TypeError, ValueError):
        return False

class AccessPolicy:
    """Role-based page, region and school access for one user profile."""

    def __init__(self, profile: Optional[Dict[str, Any]]):
        self.profile = profile or {}

    def has_role(self, role: Role | str) -> bool:
        roles = self.profile.get("roles")
        value = role.value if isinstance(role, Role) else role
        return isinstance(roles, list) and value in roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)

    @property
    def is_de(self) -> bool:
        return self.has_role(Role.DEPARTMENT)

    @property
    def is_sc(self) -> bool:
        return self.has_role(Role.SCHOOL)

    @property
    def is_user(self) -> bool:
        return self.has_role(Role.USER)

    @property
    def user_region_id(self) -> Optional[int]:
        return self.profile.get("region_id")

    @property
    def user_school_id(self) -> Optional[int]:
        return self.profile.get("school_id")

    def can_access_page(self, page: str) -> bool:
        if self.is_admin:
            return True
        # First matching role wins: DE, then SC, then US
        for role in (Role.DEPARTMENT, Role.SCHOOL, Role.USER):
            if self.has_role(role):
                return page in PAGES_BY_ROLE[role]
        return page in PUBLIC_PAGES

    def can_access_region(self, region_id: Any) -> bool:
        if self.is_admin:
            return True
        if region_id is None:
            return False
        if self.is_de and self.user_region_id is not None:
            return _same_id(region_id, self.user_region_id)
        return False

    def can_access_school(self, school_id: Any, school_region_id: Any = None) -> bool:
        if self.is_admin:
            return True
        if school_id is None:
            return False
        if self.is_sc and self.user_school_id is not None:
            return _same_id(school_id, self.user_school_id)
        if self.is_de:
            # Unknown school region: deny
            if school_region_id is None:
                return False
            return _same_id(school_region_id, self.user_region_id)
        return False

    def filter_schools_by_scope(self, schools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if self.is_admin:
            return list(schools)
        if self.is_sc and self.user_school_id is not None:
            return [s for s in schools if _same_id(s.get("id", s.get("school_id")), self.user_school_id)]
        if self.is_de and self.user_region_id is not None:
            return [s for s in schools if _same_id(s.get("region_id"), self.user_region_id)]
        return []

    def landing_page(self) -> str:
        return "/my-children" if self.is_user else "/"

@dataclass
class Option:
    value: str
    label: str

@dataclass
class FilterScope:
    regions: List[Option] = field(default_factory=list)
    schools: List[Option] = field(default_factory=list)
    selected_region: str = ""
    selected_school: str = ""

async def resolve_filters(policy: AccessPolicy, client: KezekshiClient, default_region: str = "all") -> FilterScope:
    """Region/school filter options the user may pick from.

    DE users are pinned to their region; SC users to the region holding their
    school and to the school itself. Everyone else gets every region.
    """
    scope = FilterScope(selected_region=default_region)
    data = await client.get_regions()
    if not isinstance(data, list):
        return scope
    regions = [Option(value=str(r.get("id")), label=r.get("name_ru")) for r in data]

    if policy.is_de and policy.user_region_id is not None:
        mine = next((r for r in regions if _same_id(r.value, policy.user_region_id)), None)
        scope.regions = [mine] if mine else []
        scope.selected_region = mine.value if mine else ""
        return scope

    if policy.is_sc and policy.user_school_id is not None:
        for region in regions:
            try:
                schools = await client.get_schools(region.value)
            except (KezekshiAPIError, httpx.HTTPError) as e:
                log.warning("scope_school_search_failed", region_id=region.value, error=str(e))
                continue
            found = next((s for s in schools or [] if _same_id(s.get("school_id"), policy.user_school_id)), None)
            if found:
                scope.regions = [region]
                scope.selected_region = region.value
                scope.schools = [Option(value=str(found["school_id"]), label=found.get("school_name_ru"))]
                scope.selected_school = str(found["school_id"])
                return scope
        scope.selected_region = ""
        return scope

    scope.regions = [Option(value="all", label=ALL_REGIONS_LABEL)] + regions
    return scope

async def school_options(policy: AccessPolicy, client: KezekshiClient, region: str) -> tuple[List[Option], str]:
    """School options for a region plus the preselected school."""
    if not region:
        return [], ""
    data = await client.get_schools(region)
    if not isinstance(data, list):
        return [], ""
    schools = [Option(value=str(s.get("school_id")), label=s.get("school_name_ru")) for s in data]

    if policy.is_sc and policy.user_school_id is not None:
        mine = next((s for s in schools if _same_id(s.value, policy.user_school_id)), None)
        return ([mine], mine.value) if mine else ([], "")

    return [Option(value="all", label=ALL_SCHOOLS_LABEL)] + schools, ""
