# kezekshi_dashboard/routers/budgets.py
from datetime import date
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.deps.auth import AuthContext, require_page, resolve_scope
from kezekshi_dashboard.deps.budget import get_budget_repo
from kezekshi_dashboard.deps.services import get_client
from kezekshi_dashboard.repositories.budget import BudgetRepository
from kezekshi_dashboard.schemas.budget import (
    BudgetForm, BudgetHistoryPage, BudgetSaveResult, ExistingBudget, MonthlySaving, PlannedBudgetOut,
)
from kezekshi_dashboard.services.budget import BudgetPlanner, working_days_in_month

router = APIRouter(prefix="/budgets", tags=["Budgets"])

def _as_id(value: str) -> Optional[int]:
    return int(value) if value and value != "all" else None

async def _planner(ctx: AuthContext, client: KezekshiClient, repo: BudgetRepository,
                   region_id: Any = None) -> BudgetPlanner:
    """Planner primed with the schools of the selected (or the user's own) region for naming."""
    lists = []
    for region in {str(r) for r in (region_id, ctx.policy.user_region_id) if r}:
        lists.append(await client.get_schools(region))
    return BudgetPlanner(repo, client, lists)

@router.get("/history", response_model=BudgetHistoryPage)
async def history(
    search: str = "",
    page: int = Query(1, ge=1),
    per_page: int = Query(5, ge=1, le=100),
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    school_id: Optional[int] = None,
    ctx: AuthContext = Depends(require_page("planning")),
    client: KezekshiClient = Depends(get_client),
    repo: BudgetRepository = Depends(get_budget_repo),
):
    region, school = await resolve_scope(ctx, client, school=school_id)
    planner = await _planner(ctx, client, repo)
    return await planner.history(search, page, per_page, year=year, month=month,
                                 region_id=region, school_id=school)

@router.get("/existing", response_model=ExistingBudget)
async def existing(
    school_id: int,
    year: int,
    month: int = Query(..., ge=1, le=12),
    region_id: Optional[int] = None,
    ctx: AuthContext = Depends(require_page("planning")),
    client: KezekshiClient = Depends(get_client),
    repo: BudgetRepository = Depends(get_budget_repo),
):
    await resolve_scope(ctx, client, region=region_id, school=school_id)
    form = BudgetForm(region_id=region_id, school_id=school_id, year=year, month=month)
    filled, plan = await BudgetPlanner(repo, client).load_existing(form)
    return ExistingBudget(form=filled, existing=PlannedBudgetOut(**plan) if plan else None)

@router.post("", response_model=BudgetSaveResult)
async def save(
    form: BudgetForm,
    ctx: AuthContext = Depends(require_page("planning")),
    client: KezekshiClient = Depends(get_client),
    repo: BudgetRepository = Depends(get_budget_repo),
):
    region, school = await resolve_scope(ctx, client, region=form.region_id, school=form.school_id)
    form = form.model_copy(update={"region_id": _as_id(region), "school_id": _as_id(school)})
    planner = await _planner(ctx, client, repo, form.region_id)
    plan, updated = await planner.save(form)
    return BudgetSaveResult(
        plan=PlannedBudgetOut(**plan),
        updated=updated,
        message="Бюджет успешно обновлен" if updated else "Бюджет запланирован",
    )

@router.get("/savings", response_model=List[MonthlySaving])
async def savings(
    year: Optional[int] = None,
    region: str = Query("all"),
    school: str = Query(""),
    ctx: AuthContext = Depends(require_page("home")),
    client: KezekshiClient = Depends(get_client),
    repo: BudgetRepository = Depends(get_budget_repo),
):
    region, school = await resolve_scope(ctx, client, region=region, school=school)
    return await BudgetPlanner(repo, client).monthly_savings(year or date.today().year, region, school)

@router.get("/working-days")
async def working_days(
    year: int,
    month: int = Query(..., ge=1, le=12),
    ctx: AuthContext = Depends(require_page("planning")),
):
    return {"year": year, "month": month, "working_days": working_days_in_month(year, month)}
