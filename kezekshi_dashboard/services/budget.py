# kezekshi_dashboard/services/budget.py
"""
Monthly meal budget: plan arithmetic, planned/spent/saved reconciliation and
the budget history workflow behind the planning page.

A plan is ``students x price x working days`` for one school and month.
Actual spend is the number of meals served that month times the planned
price, so the saved figure is always measured in the plan's own price.
"""

import asyncio
import calendar
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.errors import KezekshiAPIError, ValidationError
from kezekshi_dashboard.core.logging import log
from kezekshi_dashboard.repositories.budget import BudgetRepository
from kezekshi_dashboard.schemas.budget import (
    BudgetForm, BudgetHistoryItem, BudgetHistoryPage, MonthlySaving, PlannedBudgetOut,
)

ALL_SCHOOLS = "Все школы"

MONTH_NAMES = {
    1: "Январь", 2: "Февраль", 3: "Март", 4: "Апрель", 5: "Май", 6: "Июнь",
    7: "Июль", 8: "Август", 9: "Сентябрь", 10: "Октябрь", 11: "Ноябрь", 12: "Декабрь",
}

def working_days_in_month(year: int, month: int) -> int:
    """Number of Monday..Friday days in the month (month is 1-12)."""
    _, days = calendar.monthrange(year, month)
    return sum(1 for day in range(1, days + 1) if date(year, month, day).weekday() < 5)

def month_bounds(year: int, month: int) -> tuple[str, str]:
    _, last_day = calendar.monthrange(year, month)
    return f"{year:04d}-{month:02d}-01", f"{year:04d}-{month:02d}-{last_day:02d}"

def build_month_iso(year: Any, month: Any) -> Optional[str]:
    """``"YYYY-MM-01"`` for the planning API, None when either part is blank."""
    if year is None or month is None:
        return None
    y, m = str(year).strip(), str(month).strip()
    if not y or not m:
        return None
    return f"{y}-{m.zfill(2)}-01"

def to_number(value: Any) -> Optional[float]:
    """Numeric form input or None for blanks and garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return None if math.isnan(number) else number

def planned_amount(students: float, price: float, year: int, month: int) -> float:
    return students * price * working_days_in_month(year, month)

def derive_student_count(amount: Any, price: Any, year: int, month: int) -> Optional[int]:
    """Invert ``planned_amount``: students implied by a stored plan total."""
    amount_n, price_n = to_number(amount), to_number(price)
    days = working_days_in_month(year, month)
    if not price_n or not days or amount_n is None:
        return None
    return round(amount_n / (price_n * days))

@dataclass
class BudgetFigures:
    planned: float = 0
    spent: float = 0
    saved: float = 0

    def as_dict(self) -> Dict[str, float]:
        return {"planned": self.planned, "spent": self.spent, "saved": self.saved}

def reconcile(planned: float, meals: float, price: float) -> BudgetFigures:
    spent = meals * price
    return BudgetFigures(planned=planned, spent=spent, saved=planned - spent)

def reconcile_month(month_summary: Optional[Dict[str, Any]], stored_plan: Optional[Dict[str, Any]],
                    manual_students: Any, manual_price: Any, year: int, month: int) -> BudgetFigures:
    """Dashboard budget for one month.

    Precedence, later steps overriding earlier ones:
    upstream planned/actual expense, then a stored plan (its total and its
    price applied to the month's meals), then a manual student count and
    price, then a manual price alone for the spent figure. An explicit
    manual ``0`` counts as a value.
    """
    planned, spent, price = 0.0, 0.0, None
    meals = (month_summary or {}).get("students_with_meals_total") or 0

    if month_summary:
        planned = month_summary.get("planned_expense") or 0
        spent = month_summary.get("actual_expense") or 0

    if stored_plan:
        planned = float(stored_plan.get("plan_sum_all") or 0)
        price = float(stored_plan.get("sum_per_student") or 0)

    students_n, price_n = to_number(manual_students), to_number(manual_price)
    if students_n is not None and price_n is not None:
        planned = planned_amount(students_n, price_n, year, month)
    if price_n is not None:
        price = price_n

    if month_summary and price is not None:
        return reconcile(planned, meals, price)
    return BudgetFigures(planned=planned, spent=spent, saved=planned - spent)

def month_name(month: Any) -> Any:
    try:
        return MONTH_NAMES.get(int(month), month)
    except (TypeError, ValueError):
        return month

def lookup_school_name(school_id: Any, *school_lists: Iterable[Dict[str, Any]]) -> Optional[str]:
    for schools in school_lists:
        for s in schools or []:
            if str(s.get("school_id")) == str(school_id) and s.get("school_name_ru"):
                return s["school_name_ru"]
    return None

def school_name(school_id: Any, saved_name: str | None = None,
                *school_lists: Iterable[Dict[str, Any]]) -> str:
    if saved_name:
        return saved_name
    if not school_id:
        return ALL_SCHOOLS
    return lookup_school_name(school_id, *school_lists) or f"Школа #{school_id}"

class BudgetPlanner:
    """Planning page workflow over a budget repository."""

    def __init__(self, repo: BudgetRepository, client: KezekshiClient,
                 school_lists: Sequence[Iterable[Dict[str, Any]]] = ()):
        self.repo = repo
        self.client = client
        self.school_lists = list(school_lists)

    async def find_existing(self, school_id: Any, year: Any, month: Any) -> Optional[Dict[str, Any]]:
        if not school_id or not year or not month:
            return None
        return await self.repo.find(year=int(year), month=int(month), school_id=school_id)

    async def load_existing(self, form: BudgetForm) -> tuple[BudgetForm, Optional[Dict[str, Any]]]:
        """Prefill the form from the plan already stored for its school and month."""
        existing = await self.find_existing(form.school_id, form.year, form.month)
        if not existing:
            return form, None

        count = derive_student_count(existing.get("plan_sum_all"), existing.get("sum_per_student"),
                                     int(existing["year"]), int(existing["month"]))
        filled = form.model_copy(update={
            "student_count": count,
            "price": existing.get("sum_per_student") or None,
            "plan_sum_all": existing.get("plan_sum_all"),
        })
        log.info("budget_loaded_existing", plan_id=existing.get("id"), school_id=form.school_id,
                 year=form.year, month=form.month)
        return filled, existing

    async def save(self, form: BudgetForm) -> tuple[Dict[str, Any], bool]:
        """Upsert the plan for the form's (school, year, month); returns (plan, updated)."""
        if not form.student_count or not form.price or not form.year or not form.month:
            raise ValidationError("Заполните все обязательные поля")

        plan_sum_all = form.plan_sum_all
        if plan_sum_all is None:
            plan_sum_all = planned_amount(form.student_count, form.price, form.year, form.month)

        plan = {
            "region_id": form.region_id,
            "school_id": form.school_id,
            "school_name": lookup_school_name(form.school_id, *self.school_lists) if form.school_id else None,
            "year": form.year,
            "month": form.month,
            "plan_students_count": int(form.student_count),
            "sum_per_student": float(form.price),
            "plan_sum_all": float(plan_sum_all),
        }
        saved, created = await self.repo.upsert(plan)
        log.info("budget_saved", plan_id=saved.get("id"), school_id=form.school_id,
                 year=form.year, month=form.month, updated=not created)
        return saved, not created

    async def history(self, search: str = "", page: int = 1, per_page: int = 5, year: Any = None,
                      month: Any = None, region_id: Any = None, school_id: Any = None) -> BudgetHistoryPage:
        plans = await self.repo.list(year=year, month=month, region_id=region_id, school_id=school_id)

        items = []
        for plan in plans:
            item = BudgetHistoryItem(
                **PlannedBudgetOut(**plan).model_dump(),
                month_name=str(month_name(plan.get("month"))),
                display_school_name=school_name(plan.get("school_id"), plan.get("school_name"), *self.school_lists),
            )
            items.append(item)

        query = (search or "").strip().lower()
        if query:
            items = [
                item for item in items
                if query in item.display_school_name.lower()
                or query in item.month_name.lower()
                or query in str(item.year)
            ]

        total = len(items)
        start = (page - 1) * per_page
        return BudgetHistoryPage(
            items=items[start:start + per_page],
            total=total,
            page=page,
            per_page=per_page,
            total_pages=math.ceil(total / per_page) if per_page else 0,
        )

    async def monthly_savings(self, year: int, region_id: Any = None, school_id: Any = None) -> List[MonthlySaving]:
        plans = await self.repo.list(year=year, region_id=region_id, school_id=school_id)

        # Newest first, so the first plan seen for a month is the current one
        latest: Dict[int, Dict[str, Any]] = {}
        for plan in plans:
            latest.setdefault(int(plan["month"]), plan)

        async def saving_for(month: int, plan: Dict[str, Any]) -> MonthlySaving:
            meals = 0
            start, end = month_bounds(int(year), month)
            try:
                stats = await self.client.get_summary_stats(start, end, region_id, school_id)
                meals = (stats or {}).get("students_with_meals_total") or 0
            except (KezekshiAPIError, httpx.HTTPError) as e:
                log.warning("monthly_savings_stats_failed", year=year, month=month, error=str(e))
            figures = reconcile(float(plan.get("plan_sum_all") or 0), meals,
                                float(plan.get("sum_per_student") or 0))
            return MonthlySaving(month=month, saved_expense=figures.saved, actual_expense=figures.spent)

        results = await asyncio.gather(*(saving_for(m, p) for m, p in latest.items()))
        return sorted(results, key=lambda s: s.month)
