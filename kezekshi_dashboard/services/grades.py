# kezekshi_dashboard/services/grades.py
"""
Grade-band grouping over the nested region -> school -> class statistics
returned by the dashboard endpoints.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Optional

JUNIOR = "1-4"
SENIOR = "5-11"
STAFF = "staff"

JUNIOR_GRADES = {"0", "1", "2", "3", "4", "kp", "кп"}
SENIOR_GRADES = {"5", "6", "7", "8", "9", "10", "11", "12"}
STAFF_MARKERS = ("персонал", "staff", "teacher")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

def _leading_int(value: str) -> Optional[int]:
    m = _LEADING_INT.match(value)
    return int(m.group(1)) if m else None

def grade_band(grade: Any, staff: bool = True) -> Optional[str]:
    """Map a class grade label to "1-4", "5-11", "staff" or None.

    With ``staff=False`` staff labels are not recognised and fall through to
    the numeric rule like any other label.
    """
    g = str(grade).lower()
    if g in JUNIOR_GRADES:
        return JUNIOR
    if g in SENIOR_GRADES:
        return SENIOR
    if staff and any(marker in g for marker in STAFF_MARKERS):
        return STAFF
    num = _leading_int(g)
    if num is None:
        return None
    if 0 <= num <= 4:
        return JUNIOR
    if 5 <= num <= 12:
        return SENIOR
    return None

def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []

def iter_schools(tree: Any) -> Iterator[tuple[Dict[str, Any], Dict[str, Any]]]:
    for region in _as_list(tree):
        for school in _as_list(region.get("schools")):
            yield region, school

def iter_classes(tree: Any) -> Iterator[Dict[str, Any]]:
    for _, school in iter_schools(tree):
        yield from _as_list(school.get("classes"))

def find_school(tree: Any, school_id: Any) -> Optional[Dict[str, Any]]:
    for _, school in iter_schools(tree):
        if school.get("school_id") == school_id:
            return school
    return None

def school_classes(school: Optional[Dict[str, Any]]) -> list:
    return _as_list(school.get("classes")) if school else []

@dataclass
class BandCount:
    positive: int = 0
    negative: int = 0

@dataclass
class BandTally:
    positive: int = 0
    negative: int = 0
    bands: Dict[str, BandCount] = field(default_factory=lambda: {JUNIOR: BandCount(), SENIOR: BandCount(), STAFF: BandCount()})

    def band(self, name: str) -> BandCount:
        return self.bands[name]

def tally_bands(rows: Iterable[Dict[str, Any]], positive: str, negative: str | None = None,
                include_staff: bool = True) -> BandTally:
    """Sum ``positive``/``negative`` counters per grade band.

    Overall totals include every row, even ones whose grade falls in no band.
    With ``include_staff=False`` staff labels get no band of their own.
    """
    tally = BandTally()
    for row in rows:
        pos = row.get(positive) or 0
        neg = (row.get(negative) or 0) if negative else 0
        tally.positive += pos
        tally.negative += neg

        band = grade_band(row.get("grade"), staff=include_staff)
        if band is None:
            continue
        tally.bands[band].positive += pos
        tally.bands[band].negative += neg
    return tally
