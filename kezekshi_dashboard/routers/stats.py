from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.deps.auth import AuthContext, require_page, resolve_scope
from kezekshi_dashboard.deps.services import get_client
from kezekshi_dashboard.routers.dashboard import filters_out
from kezekshi_dashboard.schemas.stats import FiltersOut, StatsPage
from kezekshi_dashboard.services.access import resolve_filters
from kezekshi_dashboard.services.stats import StatsService

router = APIRouter(prefix="/stats", tags=["Stats"])

@router.get("/filters", response_model=FiltersOut)
async def filters(ctx: AuthContext = Depends(require_page("stats")), client: KezekshiClient = Depends(get_client)):
    # Unlike the dashboard, the table starts with no region selected
    return filters_out(await resolve_filters(ctx.policy, client, default_region=""))

@router.get("", response_model=StatsPage)
async def stats(
    region: str = Query(""),
    school: str = Query(""),
    start: Optional[date] = None,
    end: Optional[date] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=200),
    ctx: AuthContext = Depends(require_page("stats")),
    client: KezekshiClient = Depends(get_client),
):
    region, school = await resolve_scope(ctx, client, region=region, school=school)
    return await StatsService(client).page(region, school, start, end, page, per_page)
