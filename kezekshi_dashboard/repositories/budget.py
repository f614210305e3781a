# kezekshi_dashboard/repositories/budget.py
from typing import Any, Callable, ContextManager, Dict, List, Optional, Protocol, Tuple

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.database import get_db_session
from kezekshi_dashboard.models.budget import PlannedBudget

def _scope_value(value: Any) -> Optional[int]:
    """'all', '' and None mean "no filter"; everything else is an integer id."""
    if value is None or str(value).strip() in ("", "all"):
        return None
    return int(value)

def normalize_plan(record: Dict[str, Any]) -> Dict[str, Any]:
    """Bring a stored or remote plan to one shape.

    Remote plans carry ``month`` as ``"YYYY-MM-01"``; older local records used
    ``amount``/``price`` for what is now ``plan_sum_all``/``sum_per_student``.
    """
    plan = dict(record)
    month = plan.get("month")
    if isinstance(month, str) and "-" in month:
        year_part, month_part = month.split("-")[:2]
        if plan.get("year") in (None, ""):
            plan["year"] = int(year_part)
        plan["month"] = int(month_part)
    elif month not in (None, ""):
        plan["month"] = int(month)
    if plan.get("year") not in (None, ""):
        plan["year"] = int(plan["year"])

    if plan.get("plan_sum_all") is None and plan.get("amount") is not None:
        plan["plan_sum_all"] = plan["amount"]
    if plan.get("sum_per_student") is None and plan.get("price") is not None:
        plan["sum_per_student"] = plan["price"]
    for key in ("plan_sum_all", "sum_per_student"):
        if plan.get(key) is not None:
            plan[key] = float(plan[key])
    if plan.get("plan_students_count") is not None:
        plan["plan_students_count"] = int(plan["plan_students_count"])
    return plan

def _matches(plan: Dict[str, Any], year=None, month=None, region_id=None, school_id=None) -> bool:
    if year is not None and int(plan.get("year") or 0) != int(year):
        return False
    if month is not None and int(plan.get("month") or 0) != int(month):
        return False
    # Remote plans often come without a region; those are not filtered by it
    region = _scope_value(region_id)
    if region is not None and plan.get("region_id") is not None and str(plan["region_id"]) != str(region):
        return False
    school = _scope_value(school_id)
    if school is not None and str(plan.get("school_id")) != str(school):
        return False
    return True

class BudgetRepository(Protocol):
    async def list(self, *, year: Optional[int] = None, month: Optional[int] = None,
                   region_id: Any = None, school_id: Any = None) -> List[Dict[str, Any]]: ...

    async def find(self, *, year: int, month: int, region_id: Any = None,
                   school_id: Any = None) -> Optional[Dict[str, Any]]: ...

    async def upsert(self, plan: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]: ...

class SqlBudgetRepository:
    """Local budget history kept in the gateway's own database."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]] = get_db_session):
        self.session_factory = session_factory

    def _query(self, year=None, month=None, region_id=None, school_id=None):
        stmt = select(PlannedBudget)
        if year is not None:
            stmt = stmt.where(PlannedBudget.year == int(year))
        if month is not None:
            stmt = stmt.where(PlannedBudget.month == int(month))
        region = _scope_value(region_id)
        if region is not None:
            stmt = stmt.where(PlannedBudget.region_id == region)
        school = _scope_value(school_id)
        if school is not None:
            stmt = stmt.where(PlannedBudget.school_id == school)
        return stmt.order_by(desc(PlannedBudget.updated_at), desc(PlannedBudget.id))

    async def list(self, *, year=None, month=None, region_id=None, school_id=None) -> List[Dict[str, Any]]:
        with self.session_factory() as db:
            rows = db.execute(self._query(year, month, region_id, school_id)).scalars().all()
            return [row.to_dict() for row in rows]

    async def find(self, *, year, month, region_id=None, school_id=None) -> Optional[Dict[str, Any]]:
        with self.session_factory() as db:
            row = db.execute(self._query(year, month, region_id, school_id).limit(1)).scalars().first()
            return row.to_dict() if row else None

    async def upsert(self, plan: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """Insert or update the plan keyed by (school, year, month).

        Plans without a school are region-wide and keyed by (region, year, month).
        """
        plan = normalize_plan(plan)
        school_id = _scope_value(plan.get("school_id"))
        region_id = _scope_value(plan.get("region_id"))

        with self.session_factory() as db:
            stmt = select(PlannedBudget).where(
                PlannedBudget.year == plan["year"],
                PlannedBudget.month == plan["month"],
            )
            if school_id is not None:
                stmt = stmt.where(PlannedBudget.school_id == school_id)
            elif region_id is not None:
                stmt = stmt.where(PlannedBudget.school_id.is_(None), PlannedBudget.region_id == region_id)
            else:
                stmt = stmt.where(PlannedBudget.school_id.is_(None), PlannedBudget.region_id.is_(None))
            row = db.execute(stmt).scalars().first()

            created = row is None
            if created:
                row = PlannedBudget(year=plan["year"], month=plan["month"], school_id=school_id)
                db.add(row)

            if region_id is not None or created:
                row.region_id = region_id
            if plan.get("school_name"):
                row.school_name = plan["school_name"]
            row.plan_students_count = plan.get("plan_students_count") or 0
            row.sum_per_student = plan.get("sum_per_student") or 0
            row.plan_sum_all = plan.get("plan_sum_all") or 0

            db.flush()
            db.refresh(row)
            return row.to_dict(), created

class RemoteBudgetRepository:
    """Budget history owned by the upstream API."""

    def __init__(self, client: KezekshiClient, token: str | None = None):
        self.client = client
        self.token = token

    async def list(self, *, year=None, month=None, region_id=None, school_id=None) -> List[Dict[str, Any]]:
        month_iso = f"{int(year):04d}-{int(month):02d}-01" if year is not None and month is not None else None
        data = await self.client.get_planned_budgets(self.token, month_iso, _scope_value(school_id))
        plans = [normalize_plan(item) for item in data or []]
        return [p for p in plans if _matches(p, year, month, region_id, school_id)]

    async def find(self, *, year, month, region_id=None, school_id=None) -> Optional[Dict[str, Any]]:
        plans = await self.list(year=year, month=month, region_id=region_id, school_id=school_id)
        return plans[0] if plans else None

    async def upsert(self, plan: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        plan = normalize_plan(plan)
        school_id = _scope_value(plan.get("school_id"))
        existing = await self.find(year=plan["year"], month=plan["month"],
                                   region_id=plan.get("region_id"), school_id=school_id)
        payload: Dict[str, Any] = {
            "month": f"{plan['year']:04d}-{plan['month']:02d}-01",
            "plan_students_count": plan.get("plan_students_count"),
            "sum_per_student": plan.get("sum_per_student"),
            "plan_sum_all": plan.get("plan_sum_all"),
        }
        if school_id is not None:
            payload["school_id"] = school_id
        if existing and existing.get("id"):
            payload["id"] = existing["id"]

        response = await self.client.set_planned_budget(self.token, payload)
        saved = {**(existing or {}), **plan}
        if existing and existing.get("id"):
            saved["id"] = existing["id"]
        if isinstance(response, dict) and response.get("id") is not None:
            saved["id"] = response["id"]
        return saved, existing is None
