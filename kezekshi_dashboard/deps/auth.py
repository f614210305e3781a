from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException

from kezekshi_dashboard.clients.kezekshi import ALL, KezekshiClient
from kezekshi_dashboard.core.errors import KezekshiAPIError
from kezekshi_dashboard.deps.services import get_client
from kezekshi_dashboard.services.access import AccessPolicy

class AuthContext:
    def __init__(self, token: str, profile: Dict[str, Any]):
        self.token = token
        self.profile = profile
        self.policy = AccessPolicy(profile)

def parse_bearer(auth_header: Optional[str]) -> str:
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    if not auth_header.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Malformed Authorization header")
    return auth_header.split(" ", 1)[1]

async def get_auth_ctx(
    authorization: Optional[str] = Header(None),
    client: KezekshiClient = Depends(get_client),
) -> AuthContext:
    token = parse_bearer(authorization)
    try:
        profile = await client.get_user_data(token)
    except KezekshiAPIError as e:
        if e.status in (401, 403):
            raise HTTPException(status_code=401, detail="Not authenticated")
        raise
    return AuthContext(token=token, profile=profile or {})

def require_page(page: str):
    """Dependency factory: 403 unless the caller's role may open ``page``."""
    async def dependency(ctx: AuthContext = Depends(get_auth_ctx)) -> AuthContext:
        if not ctx.policy.can_access_page(page):
            raise HTTPException(status_code=403, detail=f"Access to '{page}' is not allowed")
        return ctx
    return dependency

def _blank(value: Any) -> bool:
    return value is None or str(value).strip() in ("", ALL)

async def school_region(client: KezekshiClient, school_id: Any) -> Any:
    """Region of a school, None when the school is unknown."""
    for school in await client.get_schools(ALL) or []:
        if str(school.get("school_id")) == str(school_id):
            return school.get("region_id")
    return None

async def resolve_scope(ctx: AuthContext, client: KezekshiClient, region: Any = None,
                        school: Any = None) -> tuple[str, str]:
    """Region/school filters narrowed to the caller's scope.

    Admins pass through. A DE user with no region chosen (or "all") gets
    their own region, an SC user gets their own school and its region.
    Anything outside the scope is a 403.
    """
    policy = ctx.policy
    region = "" if region is None else str(region)
    school = "" if school is None else str(school)
    if policy.is_admin:
        return region, school

    if policy.is_de and policy.user_region_id is not None:
        if _blank(region):
            region = str(policy.user_region_id)
        elif not policy.can_access_region(region):
            raise HTTPException(status_code=403, detail="Region is outside of your scope")
        if not _blank(school) and not policy.can_access_school(school, await school_region(client, school)):
            raise HTTPException(status_code=403, detail="School is outside of your scope")
        return region, school

    if policy.is_sc and policy.user_school_id is not None:
        if _blank(school):
            school = str(policy.user_school_id)
        elif not policy.can_access_school(school):
            raise HTTPException(status_code=403, detail="School is outside of your scope")
        own_region = await school_region(client, school)
        if _blank(region):
            region = "" if own_region is None else str(own_region)
        elif str(region) != str(own_region):
            raise HTTPException(status_code=403, detail="Region is outside of your scope")
        return region, school

    raise HTTPException(status_code=403, detail="No region or school is assigned to this account")
