from datetime import date

import pytest

from kezekshi_dashboard.services.stats import StatsService, build_rows, paginate, percentage, total_stats

STUDENTS = [{"region_name": "Астана", "schools": [
    {"school_id": 10, "school_name": "Школа-лицей 10", "total_students": 60, "classes": [
        {"grade": "1", "total_students": 20},
        {"grade": "5", "total_students": 30},
        {"grade": "Персонал", "total_students": 10},
    ]},
    {"school_id": 11, "school_name": "Гимназия 11", "total_students": 5, "classes": [
        {"grade": "3", "total_students": 5},
    ]},
]}]

PASSAGE = [{"schools": [{"school_id": 10, "classes": [
    {"grade": "1", "students_who_attended": 18},
    {"grade": "5", "students_who_attended": 25},
    {"grade": "Персонал", "students_who_attended": 9},
]}]}]

DINNER = [{"schools": [{"school_id": 10, "classes": [
    {"grade": "1", "students_with_meals": 15, "total_students": 20},
    {"grade": "5", "students_with_meals": 10, "total_students": 30},
]}]}]


def test_percentage():
    assert percentage(15, 20) == 75
    assert percentage(10, 30) == 33
    assert percentage(1, 0) == 0


def test_build_rows_joins_passage_and_dinner_by_school():
    rows = build_rows(STUDENTS, PASSAGE, DINNER)
    assert [r.id for r in rows] == [1, 2]

    first = rows[0]
    assert first.school_name == "Школа-лицей 10"
    assert first.city == "Астана"
    assert (first.total_system.grades_1_to_4, first.total_system.grades_5_to_11) == (20, 30)
    assert (first.total_system.total_students, first.total_system.staff) == (60, 10)
    assert (first.visited.grades_1_to_4, first.visited.grades_5_to_11, first.visited.staff) == (18, 25, 9)
    assert (first.meals_1_to_4.received, first.meals_1_to_4.percentage) == (15, 75)
    assert (first.meals_5_to_11.received, first.meals_5_to_11.percentage) == (10, 33)

    # school without passage/dinner data gets zeros
    second = rows[1]
    assert second.visited.grades_1_to_4 == 0
    assert second.meals_1_to_4.percentage == 0


def test_total_stats_sums_rows():
    totals = total_stats(build_rows(STUDENTS, PASSAGE, DINNER))
    assert totals.total_system.grades_1_to_4 == 25
    assert totals.total_system.total_students == 65
    assert totals.visited.staff == 9
    assert totals.meals_1_to_4.received == 15
    assert total_stats([]) is None


def test_paginate():
    assert paginate(list(range(25)), 3, 10) == [20, 21, 22, 23, 24]
    assert paginate([1, 2], 2, 10) == []


@pytest.mark.asyncio
async def test_stats_page_without_region_makes_no_calls(fake_client):
    page = await StatsService(fake_client).page("")
    assert page.rows == []
    assert page.totals is None
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_stats_page_fetches_range(fake_client):
    fake_client.students = STUDENTS
    fake_client.passage = PASSAGE
    fake_client.dinner = DINNER

    page = await StatsService(fake_client).page("1", "", date(2025, 1, 1), date(2025, 1, 31), page=1, per_page=1)
    assert page.total == 2
    assert len(page.rows) == 1
    assert page.totals.total_system.total_students == 65
    assert fake_client.called("get_dinner_stats") == [("2025-01-01", "2025-01-31", "1", "")]
