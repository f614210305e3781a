from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kezekshi_dashboard.core.database import create_tables
from kezekshi_dashboard.core.errors import KezekshiAPIError
from kezekshi_dashboard.repositories.budget import SqlBudgetRepository


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_tables(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False)

    @contextmanager
    def factory():
        db = Session()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    yield factory
    engine.dispose()


@pytest.fixture
def budget_repo(session_factory):
    return SqlBudgetRepository(session_factory)


REGIONS = [
    {"id": 1, "name_ru": "Астана"},
    {"id": 2, "name_ru": "Алматы"},
]

SCHOOLS = [
    {"school_id": 10, "region_id": 1, "school_name_ru": "Школа-лицей 10"},
    {"school_id": 11, "region_id": 1, "school_name_ru": "Гимназия 11"},
    {"school_id": 20, "region_id": 2, "school_name_ru": "Школа 20"},
]


class FakeKezekshiClient:
    """In-memory stand-in for KezekshiClient; every call is recorded in ``calls``."""

    def __init__(self, profiles: Optional[dict[str, dict]] = None):
        self.profiles = profiles or {}
        self.calls: list[tuple[str, tuple]] = []
        self.summary_by_start: dict[str, Any] = {}
        self.summary_default: Any = None
        self.summary_errors: set[str] = set()
        self.passage: Any = []
        self.dinner: Any = []
        self.library: Any = []
        self.students: Any = []
        self.pupils: list[dict] = []
        self.statuses: dict = {}
        self.photos: dict[str, Any] = {}
        self.events: dict = {"daily_events": []}
        self.regions_error: Optional[Exception] = None

    async def get_user_data(self, token, changes_after=None):
        self.calls.append(("get_user_data", (token,)))
        if token not in self.profiles:
            raise KezekshiAPIError(401, "Could not validate credentials")
        return self.profiles[token]

    async def get_regions(self):
        self.calls.append(("get_regions", ()))
        if self.regions_error:
            raise self.regions_error
        return list(REGIONS)

    async def get_schools(self, region_id):
        self.calls.append(("get_schools", (region_id,)))
        if str(region_id) == "all":
            return list(SCHOOLS)
        return [s for s in SCHOOLS if str(s["region_id"]) == str(region_id)]

    async def get_summary_stats(self, start_date, end_date, region_id=None, school_id=None):
        self.calls.append(("get_summary_stats", (start_date, end_date, region_id, school_id)))
        if start_date in self.summary_errors:
            raise KezekshiAPIError(500, "summary failed")
        return self.summary_by_start.get(start_date, self.summary_default)

    async def get_passage_stats(self, start_date, end_date, region_id=None, school_id=None):
        self.calls.append(("get_passage_stats", (start_date, end_date, region_id, school_id)))
        return self.passage

    async def get_dinner_stats(self, start_date, end_date, region_id=None, school_id=None):
        self.calls.append(("get_dinner_stats", (start_date, end_date, region_id, school_id)))
        return self.dinner

    async def get_library_stats(self, start_date, end_date, region_id=None, school_id=None):
        self.calls.append(("get_library_stats", (start_date, end_date, region_id, school_id)))
        return self.library

    async def get_students_stats(self, region_id=None, school_id=None):
        self.calls.append(("get_students_stats", (region_id, school_id)))
        return self.students

    async def get_pupils(self, token):
        return self.pupils

    async def get_pupil_statuses(self, token, event_classes=None, pupil_iin=None):
        self.calls.append(("get_pupil_statuses", (tuple(event_classes or []),)))
        return self.statuses

    async def get_pupil_events(self, token, start_time, end_time, event_classes=None, pupil_iin=None,
                               addition_data=False):
        self.calls.append(("get_pupil_events", (start_time, end_time, tuple(event_classes or []))))
        return self.events

    async def download_student_photo(self, token, iin):
        photo = self.photos.get(iin)
        if isinstance(photo, Exception):
            raise photo
        return photo

    async def download_user_photo(self, token):
        return self.photos.get("me")

    def called(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]


@pytest.fixture
def fake_client():
    return FakeKezekshiClient()
