# kezekshi_dashboard/services/dashboard.py
import asyncio
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.logging import log
from kezekshi_dashboard.repositories.budget import BudgetRepository
from kezekshi_dashboard.schemas.budget import BudgetFiguresOut
from kezekshi_dashboard.schemas.stats import ChartSlice, DashboardOut, SummaryData
from kezekshi_dashboard.services.budget import (
    BudgetFigures, month_bounds, planned_amount, reconcile_month, to_number,
)
from kezekshi_dashboard.services.grades import JUNIOR, SENIOR, STAFF, iter_classes, tally_bands

PRESENT, ABSENT = "Присутствуют", "Отсутствуют"
RECEIVED, NOT_RECEIVED = "Получено", "Не получено"
VISITED, NOT_VISITED = "Посетили", "Не посетили"

def _pair(yes_label: str, yes: int, no_label: str, no: int) -> List[ChartSlice]:
    return [ChartSlice(name=yes_label, value=yes), ChartSlice(name=no_label, value=no)]

def attendance_chart(passage: Any) -> Dict[str, List[ChartSlice]]:
    t = tally_bands(iter_classes(passage), "students_who_attended", "students_who_didnt_attended")
    j, s, st = t.band(JUNIOR), t.band(SENIOR), t.band(STAFF)
    banded = j.positive + s.positive + st.positive + j.negative + s.negative + st.negative
    return {
        "all": _pair(PRESENT, t.positive, ABSENT, banded - t.positive),
        "1-4": _pair(PRESENT, j.positive, ABSENT, j.negative),
        "5-11": _pair(PRESENT, s.positive, ABSENT, s.negative),
        "staff": _pair(PRESENT, st.positive, ABSENT, st.negative),
    }

def meals_chart(dinner: Any) -> Dict[str, List[ChartSlice]]:
    t = tally_bands(iter_classes(dinner), "students_with_meals", "students_without_meals", include_staff=False)
    j, s = t.band(JUNIOR), t.band(SENIOR)
    return {
        "all": _pair(RECEIVED, t.positive, NOT_RECEIVED, j.negative + s.negative),
        "1-4": _pair(RECEIVED, j.positive, NOT_RECEIVED, j.negative),
        "5-11": _pair(RECEIVED, s.positive, NOT_RECEIVED, s.negative),
    }

def library_chart(library: Any) -> Dict[str, List[ChartSlice]]:
    t = tally_bands(iter_classes(library), "students_who_attended", "students_who_didnt_attended", include_staff=False)
    j, s = t.band(JUNIOR), t.band(SENIOR)
    return {
        "all": _pair(VISITED, t.positive, NOT_VISITED, t.negative),
        "1-4": _pair(VISITED, j.positive, NOT_VISITED, j.negative),
        "5-11": _pair(VISITED, s.positive, NOT_VISITED, s.negative),
    }

def summary_counters(stats: Optional[Dict[str, Any]]) -> SummaryData:
    stats = stats or {}
    return SummaryData(
        total_children=stats.get("total_students") or 0,
        visited_today=stats.get("students_who_attended_school") or 0,
        meals_today=stats.get("students_with_meals_total") or 0,
        meals_1_to_4=stats.get("students_with_meals_1_4") or 0,
        meals_5_to_11=stats.get("students_with_meals_5_11") or 0,
    )

def apply_budget(summary: SummaryData, budget: BudgetFigures, students: Any, price: Any,
                 range_start: Optional[date], today: date) -> BudgetFigures:
    """Manual what-if: plan for the month of the range start, spend at the manual price."""
    students_n, price_n = to_number(students), to_number(price)
    result = BudgetFigures(planned=budget.planned, spent=budget.spent)
    if students_n is not None and price_n is not None:
        anchor = range_start or today
        result.planned = planned_amount(students_n, price_n, anchor.year, anchor.month)
    if price_n is not None:
        result.spent = summary.meals_today * price_n
    result.saved = result.planned - result.spent
    return result

class DashboardService:
    def __init__(self, client: KezekshiClient, budgets: BudgetRepository,
                 today: Callable[[], date] = date.today):
        self.client = client
        self.budgets = budgets
        self.today = today

    async def summary(self, region: str = "all", school: str = "", start: Optional[date] = None,
                      end: Optional[date] = None, manual_students: Any = None,
                      manual_price: Any = None) -> DashboardOut:
        now = self.today()
        start = start or now
        end = end or start
        start_s, end_s = start.isoformat(), end.isoformat()
        month_start, month_end = month_bounds(now.year, now.month)

        log.info("dashboard_summary", region=region, school=school, start=start_s, end=end_s)
        range_stats, month_stats, passage, dinner, library = await asyncio.gather(
            self.client.get_summary_stats(start_s, end_s, region, school),
            self.client.get_summary_stats(month_start, month_end, region, school),
            self.client.get_passage_stats(start_s, end_s, region, school),
            self.client.get_dinner_stats(start_s, end_s, region, school),
            self.client.get_library_stats(start_s, end_s, region, school),
        )

        figures = BudgetFigures()
        if range_stats:
            stored = await self.budgets.find(year=now.year, month=now.month, region_id=region, school_id=school)
            figures = reconcile_month(month_stats, stored, manual_students, manual_price, now.year, now.month)

        return DashboardOut(
            summary=summary_counters(range_stats),
            charts={
                "attendance": attendance_chart(passage),
                "meals": meals_chart(dinner),
                "library": library_chart(library),
            },
            budget=BudgetFiguresOut(**figures.as_dict()),
        )
