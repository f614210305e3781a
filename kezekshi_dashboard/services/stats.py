# kezekshi_dashboard/services/stats.py
import asyncio
from datetime import date
from typing import Any, List, Optional

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.logging import log
from kezekshi_dashboard.schemas.stats import (
    MealShare, StatsPage, StatsRow, StatsTotals, TotalSystem, Visited,
)
from kezekshi_dashboard.services.grades import (
    JUNIOR, SENIOR, STAFF, find_school, iter_schools, school_classes, tally_bands,
)

def percentage(part: int, total: int) -> int:
    return round(part / total * 100) if total > 0 else 0

def build_rows(students: Any, passage: Any, dinner: Any) -> List[StatsRow]:
    """One row per school of the students tree, joined with passage and dinner by school id."""
    rows: List[StatsRow] = []
    for region, school in iter_schools(students):
        school_id = school.get("school_id")

        totals = tally_bands(school_classes(school), "total_students")
        visited = tally_bands(school_classes(find_school(passage, school_id)), "students_who_attended")
        meals = tally_bands(school_classes(find_school(dinner, school_id)), "students_with_meals",
                            "total_students", include_staff=False)

        # tally "negative" slot carries class totals for the meal percentage
        junior_meals, senior_meals = meals.band(JUNIOR), meals.band(SENIOR)
        rows.append(StatsRow(
            id=len(rows) + 1,
            school_name=school.get("school_name"),
            city=region.get("region_name"),
            total_system=TotalSystem(
                grades_1_to_4=totals.band(JUNIOR).positive,
                grades_5_to_11=totals.band(SENIOR).positive,
                total_students=school.get("total_students") or 0,
                staff=totals.band(STAFF).positive,
            ),
            visited=Visited(
                grades_1_to_4=visited.band(JUNIOR).positive,
                grades_5_to_11=visited.band(SENIOR).positive,
                staff=visited.band(STAFF).positive,
            ),
            meals_1_to_4=MealShare(
                received=junior_meals.positive,
                percentage=percentage(junior_meals.positive, junior_meals.negative),
            ),
            meals_5_to_11=MealShare(
                received=senior_meals.positive,
                percentage=percentage(senior_meals.positive, senior_meals.negative),
            ),
        ))
    return rows

def total_stats(rows: List[StatsRow]) -> Optional[StatsTotals]:
    if not rows:
        return None
    totals = StatsTotals(total_system=TotalSystem(), visited=Visited(),
                         meals_1_to_4=MealShare(), meals_5_to_11=MealShare())
    for row in rows:
        for name in ("grades_1_to_4", "grades_5_to_11", "total_students", "staff"):
            setattr(totals.total_system, name, getattr(totals.total_system, name) + getattr(row.total_system, name))
        for name in ("grades_1_to_4", "grades_5_to_11", "staff"):
            setattr(totals.visited, name, getattr(totals.visited, name) + getattr(row.visited, name))
        totals.meals_1_to_4.received += row.meals_1_to_4.received
        totals.meals_5_to_11.received += row.meals_5_to_11.received
    return totals

def paginate(items: list, page: int, per_page: int) -> list:
    start = (page - 1) * per_page
    return items[start:start + per_page]

class StatsService:
    def __init__(self, client: KezekshiClient):
        self.client = client

    async def fetch_rows(self, region: str, school: str = "", start: Optional[date] = None,
                         end: Optional[date] = None) -> List[StatsRow]:
        if not region:
            return []
        start = start or date.today()
        end = end or start
        log.info("stats_fetch", region=region, school=school, start=start.isoformat(), end=end.isoformat())

        students, passage, dinner = await asyncio.gather(
            self.client.get_students_stats(region, school),
            self.client.get_passage_stats(start.isoformat(), end.isoformat(), region, school),
            self.client.get_dinner_stats(start.isoformat(), end.isoformat(), region, school),
        )
        return build_rows(students, passage, dinner)

    async def page(self, region: str, school: str = "", start: Optional[date] = None,
                   end: Optional[date] = None, page: int = 1, per_page: int = 10) -> StatsPage:
        rows = await self.fetch_rows(region, school, start, end)
        return StatsPage(
            rows=paginate(rows, page, per_page),
            total=len(rows),
            page=page,
            per_page=per_page,
            totals=total_stats(rows),
        )
