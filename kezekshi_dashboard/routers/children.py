# kezekshi_dashboard/routers/children.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.deps.auth import AuthContext, require_page
from kezekshi_dashboard.deps.services import get_client
from kezekshi_dashboard.schemas.children import Child, EventsOut
from kezekshi_dashboard.services.children import ChildrenService, period_range

router = APIRouter(prefix="/my-children", tags=["Parents"])

@router.get("", response_model=List[Child])
async def my_children(ctx: AuthContext = Depends(require_page("my-children")), client: KezekshiClient = Depends(get_client)):
    return await ChildrenService(client).fetch_children(ctx.token)

@router.get("/events", response_model=EventsOut)
async def events(
    tab: str = Query("attendance", pattern="^(children|attendance|dining)$"),
    period: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    ctx: AuthContext = Depends(require_page("my-children")),
    client: KezekshiClient = Depends(get_client),
):
    """Events for a named period (today/yesterday/week/month) or an explicit range; defaults to today."""
    if period:
        start, end = period_range(period, date.today())
    start = start or date.today()
    end = end or start
    data = await ChildrenService(client).fetch_events(ctx.token, tab, start, end)
    return EventsOut(tab=tab, start=start, end=end, events=data)
