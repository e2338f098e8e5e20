"""
Filtering, sorting and pagination for the lead and student list views.
"""
import math
from typing import Dict, List, Optional

from config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, STATUS_FILTER_ALL
from utils.time_utils import DateRange, date_in_range
from utils.validation import field_text


def _matches_status(record: Dict, status: Optional[str]) -> bool:
    if not status or status == STATUS_FILTER_ALL:
        return True
    return field_text(record, "Status") == status


def filter_leads(
    leads: List[Dict],
    search: Optional[str] = None,
    status: Optional[str] = None,
    date_range: Optional[DateRange] = None,
) -> List[Dict]:
    """Leads matching the search text (name, phone, country), status and date range."""
    search_lower = (search or "").strip().lower()
    result = []
    for lead in leads:
        if search_lower and not (
            search_lower in field_text(lead, "Name").lower()
            or search_lower in field_text(lead, "Phone").lower()
            or search_lower in field_text(lead, "Country").lower()
        ):
            continue
        if not _matches_status(lead, status):
            continue
        if not date_in_range(field_text(lead, "Registered_Date"), date_range):
            continue
        result.append(lead)
    return result


def sort_leads(leads: List[Dict], sort_by: str = "newest") -> List[Dict]:
    """Return a sorted copy. Unknown sort keys fall back to newest first."""
    if sort_by == "name":
        return sorted(leads, key=lambda x: field_text(x, "Name").lower())
    if sort_by == "country":
        return sorted(leads, key=lambda x: field_text(x, "Country").lower())
    if sort_by == "status":
        return sorted(leads, key=lambda x: field_text(x, "Status"))

    def registered_key(lead):
        return field_text(lead, "Registered_Date"), field_text(lead, "Registered_Time")

    return sorted(leads, key=registered_key, reverse=(sort_by != "oldest"))


def filter_students(
    students: List[Dict],
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Dict]:
    """Students matching the search text (name, last name, phone, email) and status."""
    search_lower = (search or "").strip().lower()
    result = []
    for student in students:
        if search_lower and not any(
            search_lower in field_text(student, key).lower()
            for key in ("First_Name", "Last_Name", "Phone", "Email")
        ):
            continue
        if not _matches_status(student, status):
            continue
        result.append(student)
    return result


def sort_students(students: List[Dict], order: str = "desc") -> List[Dict]:
    """Sort by purchase date; students without one go last in either order."""
    dated = [s for s in students if field_text(s, "Purchase_Date")]
    undated = [s for s in students if not field_text(s, "Purchase_Date")]
    dated.sort(key=lambda s: field_text(s, "Purchase_Date"), reverse=(order != "asc"))
    return dated + undated


def paginate(items: List[Dict], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Dict:
    """Slice a list into one page, clamping page and page_size into valid bounds."""
    page_size = max(1, min(int(page_size or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE))
    total = len(items)
    total_pages = max(1, math.ceil(total / page_size))
    page = max(1, min(int(page or 1), total_pages))
    start = (page - 1) * page_size

    return {
        "items": items[start:start + page_size],
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
    }
