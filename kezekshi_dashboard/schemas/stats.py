from typing import Dict, List, Optional

from pydantic import BaseModel

from kezekshi_dashboard.schemas.budget import BudgetFiguresOut

class OptionOut(BaseModel):
    value: str
    label: Optional[str] = None

class FiltersOut(BaseModel):
    regions: List[OptionOut]
    schools: List[OptionOut]
    selected_region: str
    selected_school: str

class SummaryData(BaseModel):
    total_children: int = 0
    visited_today: int = 0
    meals_today: int = 0
    meals_1_to_4: int = 0
    meals_5_to_11: int = 0

class ChartSlice(BaseModel):
    name: str
    value: int

class DashboardOut(BaseModel):
    summary: SummaryData
    # topic ("attendance" | "meals" | "library") -> band ("all" | "1-4" | "5-11" | "staff") -> slices
    charts: Dict[str, Dict[str, List[ChartSlice]]]
    budget: BudgetFiguresOut

class TotalSystem(BaseModel):
    grades_1_to_4: int = 0
    grades_5_to_11: int = 0
    total_students: int = 0
    staff: int = 0

class Visited(BaseModel):
    grades_1_to_4: int = 0
    grades_5_to_11: int = 0
    staff: int = 0

class MealShare(BaseModel):
    received: int = 0
    percentage: int = 0

class StatsRow(BaseModel):
    id: int
    school_name: Optional[str] = None
    city: Optional[str] = None
    total_system: TotalSystem
    visited: Visited
    meals_1_to_4: MealShare
    meals_5_to_11: MealShare

class StatsTotals(BaseModel):
    total_system: TotalSystem
    visited: Visited
    meals_1_to_4: MealShare
    meals_5_to_11: MealShare

class StatsPage(BaseModel):
    rows: List[StatsRow]
    total: int
    page: int
    per_page: int
    totals: Optional[StatsTotals] = None
