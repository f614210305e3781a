# kezekshi_dashboard/routers/dashboard.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.deps.auth import AuthContext, require_page, resolve_scope
from kezekshi_dashboard.deps.budget import get_budget_repo
from kezekshi_dashboard.deps.services import get_client
from kezekshi_dashboard.repositories.budget import BudgetRepository
from kezekshi_dashboard.schemas.budget import BudgetFiguresOut
from kezekshi_dashboard.schemas.stats import DashboardOut, FiltersOut, OptionOut, SummaryData
from kezekshi_dashboard.services.access import FilterScope, resolve_filters, school_options
from kezekshi_dashboard.services.budget import BudgetFigures
from kezekshi_dashboard.services.dashboard import DashboardService, apply_budget

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

class ApplyBudgetRequest(BaseModel):
    students: Optional[float] = None
    price: Optional[float] = None
    meals_today: int = 0
    planned: float = 0
    spent: float = 0
    range_start: Optional[date] = None

def filters_out(scope: FilterScope) -> FiltersOut:
    return FiltersOut(
        regions=[OptionOut(value=o.value, label=o.label) for o in scope.regions],
        schools=[OptionOut(value=o.value, label=o.label) for o in scope.schools],
        selected_region=scope.selected_region,
        selected_school=scope.selected_school,
    )

@router.get("/filters", response_model=FiltersOut)
async def filters(ctx: AuthContext = Depends(require_page("home")), client: KezekshiClient = Depends(get_client)):
    return filters_out(await resolve_filters(ctx.policy, client, default_region="all"))

@router.get("/schools")
async def schools(
    region: str = Query(""),
    ctx: AuthContext = Depends(require_page("home")),
    client: KezekshiClient = Depends(get_client),
):
    region, _ = await resolve_scope(ctx, client, region=region)
    options, selected = await school_options(ctx.policy, client, region)
    return {"schools": [OptionOut(value=o.value, label=o.label) for o in options], "selected_school": selected}

@router.get("/summary", response_model=DashboardOut)
async def summary(
    region: str = Query("all"),
    school: str = Query(""),
    start: Optional[date] = None,
    end: Optional[date] = None,
    students: Optional[str] = None,
    price: Optional[str] = None,
    ctx: AuthContext = Depends(require_page("home")),
    client: KezekshiClient = Depends(get_client),
    repo: BudgetRepository = Depends(get_budget_repo),
):
    region, school = await resolve_scope(ctx, client, region=region, school=school)
    return await DashboardService(client, repo).summary(region, school, start, end, students, price)

@router.post("/apply-budget", response_model=BudgetFiguresOut)
async def apply_manual_budget(body: ApplyBudgetRequest, ctx: AuthContext = Depends(require_page("home"))):
    figures = apply_budget(
        SummaryData(meals_today=body.meals_today),
        BudgetFigures(planned=body.planned, spent=body.spent),
        body.students,
        body.price,
        body.range_start,
        date.today(),
    )
    return BudgetFiguresOut(**figures.as_dict())
