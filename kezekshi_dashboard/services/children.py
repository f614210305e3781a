# kezekshi_dashboard/services/children.py
import asyncio
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import httpx

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.errors import KezekshiAPIError, ValidationError
from kezekshi_dashboard.core.logging import log
from kezekshi_dashboard.schemas.children import Child
from kezekshi_dashboard.utils.photos import normalize_photo_url

PASSAGE_EVENTS = "1"
DINING_EVENTS = "2"

TAB_EVENT_CLASSES = {
    "attendance": [PASSAGE_EVENTS],
    "dining": [DINING_EVENTS],
}

def period_range(period: str, today: date) -> tuple[date, date]:
    if period == "today":
        return today, today
    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if period == "week":
        return today - timedelta(days=7), today
    if period == "month":
        return today - timedelta(days=30), today
    raise ValidationError(f"Unknown period: {period}")

def _status_for(entries: Any, pupil_id: Any) -> Any:
    for entry in entries or []:
        if entry.get("id") == pupil_id:
            return entry.get("status")
    return None

class ChildrenService:
    """Parent view: the caller's children with today's statuses and event history."""

    def __init__(self, client: KezekshiClient):
        self.client = client

    async def fetch_children(self, token: str) -> List[Child]:
        pupils, statuses = await asyncio.gather(
            self.client.get_pupils(token),
            self.client.get_pupil_statuses(token, [PASSAGE_EVENTS, DINING_EVENTS]),
        )
        statuses = statuses or {}

        children = [
            Child(
                id=pupil.get("id"),
                iin=pupil.get("iin"),
                at_school=_status_for(statuses.get("pupils_at_school"), pupil.get("id")),
                had_lunch=_status_for(statuses.get("pupils_had_lunch"), pupil.get("id")),
                data=pupil,
            )
            for pupil in pupils or []
        ]

        photos = await asyncio.gather(*(self._photo(token, child.iin) for child in children))
        for child, photo in zip(children, photos):
            child.photo_url = photo
        return children

    async def _photo(self, token: str, iin: Optional[str]) -> Optional[str]:
        if not iin:
            return None
        try:
            return normalize_photo_url(await self.client.download_student_photo(token, iin))
        except (KezekshiAPIError, httpx.HTTPError) as e:
            log.warning("student_photo_failed", iin=iin, error=str(e))
            return None

    async def fetch_events(self, token: str, tab: str, start: date, end: Optional[date] = None) -> List[Dict[str, Any]]:
        """Daily events for the attendance or dining tab; the children tab has none."""
        event_classes = TAB_EVENT_CLASSES.get(tab)
        if event_classes is None:
            return []
        data = await self.client.get_pupil_events(
            token, start.isoformat(), (end or start).isoformat(), event_classes, None, True,
        )
        return (data or {}).get("daily_events") or []
