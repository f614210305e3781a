from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

class Child(BaseModel):
    id: Any
    iin: Optional[str] = None
    at_school: Any = None
    had_lunch: Any = None
    photo_url: Optional[str] = None
    data: Dict[str, Any] = {}

class EventsOut(BaseModel):
    tab: str
    start: date
    end: date
    events: List[Dict[str, Any]]
