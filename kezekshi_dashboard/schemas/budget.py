# kezekshi_dashboard/schemas/budget.py
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

class BudgetForm(BaseModel):
    """Budget planning form. A missing school means a region-wide plan."""
    region_id: Optional[int] = None
    school_id: Optional[int] = None
    year: Optional[int] = Field(default_factory=lambda: date.today().year)
    month: Optional[int] = Field(default_factory=lambda: date.today().month, ge=1, le=12)
    student_count: Optional[float] = None
    price: Optional[float] = None
    plan_sum_all: Optional[float] = None

class PlannedBudgetOut(BaseModel):
    id: Optional[int] = None
    region_id: Optional[int] = None
    school_id: Optional[int] = None
    school_name: Optional[str] = None
    year: int
    month: int
    plan_students_count: Optional[int] = None
    sum_per_student: Optional[float] = None
    plan_sum_all: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

class BudgetSaveResult(BaseModel):
    plan: PlannedBudgetOut
    updated: bool
    message: str

class ExistingBudget(BaseModel):
    form: BudgetForm
    existing: Optional[PlannedBudgetOut] = None

class BudgetHistoryItem(PlannedBudgetOut):
    month_name: str
    display_school_name: str

class BudgetHistoryPage(BaseModel):
    items: List[BudgetHistoryItem]
    total: int
    page: int
    per_page: int
    total_pages: int

class BudgetFiguresOut(BaseModel):
    planned: float = 0
    spent: float = 0
    saved: float = 0

class MonthlySaving(BaseModel):
    month: int
    saved_expense: float
    actual_expense: float
