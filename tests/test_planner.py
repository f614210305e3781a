import pytest

from kezekshi_dashboard.core.errors import ValidationError
from kezekshi_dashboard.schemas.budget import BudgetForm
from kezekshi_dashboard.services.budget import BudgetPlanner

from tests.conftest import SCHOOLS


def _form(**overrides):
    data = {"region_id": 1, "school_id": 10, "year": 2025, "month": 1, "student_count": 100, "price": 500}
    data.update(overrides)
    return BudgetForm(**data)


@pytest.mark.asyncio
async def test_save_requires_students_and_price(budget_repo, fake_client):
    planner = BudgetPlanner(budget_repo, fake_client)
    with pytest.raises(ValidationError):
        await planner.save(_form(price=None))
    with pytest.raises(ValidationError):
        await planner.save(_form(student_count=0))


@pytest.mark.asyncio
async def test_save_computes_plan_and_reports_update(budget_repo, fake_client):
    planner = BudgetPlanner(budget_repo, fake_client, [SCHOOLS])

    plan, updated = await planner.save(_form())
    assert updated is False
    assert plan["plan_sum_all"] == 100 * 500 * 23
    assert plan["school_name"] == "Школа-лицей 10"

    plan, updated = await planner.save(_form(student_count=50, plan_sum_all=12345))
    assert updated is True
    assert plan["plan_sum_all"] == 12345
    assert plan["plan_students_count"] == 50


@pytest.mark.asyncio
async def test_load_existing_prefills_form(budget_repo, fake_client):
    planner = BudgetPlanner(budget_repo, fake_client)
    await planner.save(_form(student_count=80, price=600))

    form, existing = await planner.load_existing(BudgetForm(school_id=10, year=2025, month=1))
    assert existing is not None
    assert form.student_count == 80
    assert form.price == 600
    assert form.plan_sum_all == 80 * 600 * 23


@pytest.mark.asyncio
async def test_load_existing_without_plan_returns_form_untouched(budget_repo, fake_client):
    planner = BudgetPlanner(budget_repo, fake_client)
    form = BudgetForm(school_id=10, year=2025, month=2)
    filled, existing = await planner.load_existing(form)
    assert existing is None
    assert filled is form


@pytest.mark.asyncio
async def test_history_search_and_pagination(budget_repo, fake_client):
    planner = BudgetPlanner(budget_repo, fake_client, [SCHOOLS])
    for month in range(1, 7):
        await planner.save(_form(month=month))
    await planner.save(_form(school_id=11, month=3))

    page = await planner.history(per_page=5)
    assert page.total == 7
    assert page.total_pages == 2
    assert len(page.items) == 5

    second = await planner.history(page=2, per_page=5)
    assert len(second.items) == 2

    by_school = await planner.history(search="гимназия")
    assert [item.display_school_name for item in by_school.items] == ["Гимназия 11"]

    by_month = await planner.history(search="март")
    assert {item.school_id for item in by_month.items} == {10, 11}
    assert all(item.month_name == "Март" for item in by_month.items)


@pytest.mark.asyncio
async def test_monthly_savings_sorted_and_tolerates_stats_failures(budget_repo, fake_client):
    planner = BudgetPlanner(budget_repo, fake_client)
    await planner.save(_form(month=3, student_count=10, price=100))
    await planner.save(_form(month=1, student_count=10, price=100))
    await planner.save(_form(month=2, student_count=10, price=100))

    fake_client.summary_default = {"students_with_meals_total": 40}
    fake_client.summary_errors = {"2025-02-01"}

    savings = await planner.monthly_savings(2025, 1, 10)
    assert [s.month for s in savings] == [1, 2, 3]

    january = savings[0]
    assert january.actual_expense == 4000
    assert january.saved_expense == 10 * 100 * 23 - 4000

    february = savings[1]
    assert february.actual_expense == 0
    assert february.saved_expense == 10 * 100 * 20
