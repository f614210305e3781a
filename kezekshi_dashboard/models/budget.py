# kezekshi_dashboard/models/budget.py
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Integer, String, Float, DateTime, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from kezekshi_dashboard.models.base import Base

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class PlannedBudget(Base):
    """Monthly meal budget of one school (school_id NULL = all schools of the region)."""

    __tablename__ = "planned_budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    region_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    school_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    school_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..12
    plan_students_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sum_per_student: Mapped[float] = mapped_column(Float, nullable=False, default=0)  # price of one meal
    plan_sum_all: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("uq_planned_budget_school_month", "school_id", "year", "month", unique=True),
        Index("ix_planned_budgets_region", "region_id"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_planned_budget_month"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "region_id": self.region_id,
            "school_id": self.school_id,
            "school_name": self.school_name,
            "year": self.year,
            "month": self.month,
            "plan_students_count": self.plan_students_count,
            "sum_per_student": self.sum_per_student,
            "plan_sum_all": self.plan_sum_all,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
