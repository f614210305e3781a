"""create planned budgets

Revision ID: 4f2a9c1e7d30
Revises:
Create Date: 2025-09-01 10:12:04.518211
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4f2a9c1e7d30"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def upgrade() -> None:
    op.create_table(
        "planned_budgets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("region_id", sa.Integer(), nullable=True),
        sa.Column("school_id", sa.Integer(), nullable=True),
        sa.Column("school_name", sa.String(length=255), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("plan_students_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sum_per_student", sa.Float(), nullable=False, server_default="0"),
        sa.Column("plan_sum_all", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_planned_budget_month"),
    )
    op.create_index("uq_planned_budget_school_month", "planned_budgets", ["school_id", "year", "month"], unique=True)
    op.create_index("ix_planned_budgets_region", "planned_budgets", ["region_id"])

def downgrade() -> None:
    op.drop_index("ix_planned_budgets_region", table_name="planned_budgets")
    op.drop_index("uq_planned_budget_school_month", table_name="planned_budgets")
    op.drop_table("planned_budgets")
