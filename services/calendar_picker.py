"""
Calendar pickers used by the dashboard filters.

DateRangePicker accumulates a range from two clicks over a dual-month grid
and reports it only when applied. SingleDatePicker tracks one day and
reports it as a local YYYY-MM-DD string. Weeks start on Monday.
"""
import calendar
from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Dict, List, Optional

from utils.time_utils import (
    DateLike,
    DateRange,
    add_months,
    format_local_ymd,
    now_local,
    parse_local_ymd,
    same_day,
    to_local_date,
)

MONTH_NAMES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]
WEEKDAY_LABELS = ["L", "M", "X", "J", "V", "S", "D"]

NO_RANGE_LABEL = "Seleccionar fechas"
NO_DATE_LABEL = "dd/mm/aaaa"


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def start_offset(year: int, month: int) -> int:
    """Blank cells before the 1st in a Monday-first week (Monday=0 .. Sunday=6)."""
    return date(year, month, 1).weekday()


def month_grid(year: int, month: int) -> List[List[Optional[date]]]:
    """Week rows of a month, padded with None before the 1st and after the last day."""
    cells: List[Optional[date]] = [None] * start_offset(year, month)
    cells.extend(date(year, month, day) for day in range(1, days_in_month(year, month) + 1))
    cells.extend([None] * (-len(cells) % 7))
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def month_title(month_start: date) -> str:
    return f"{MONTH_NAMES[month_start.month - 1]} {month_start.year}"


class _MonthView(ABC):
    """Navigation over months shared by both pickers."""

    def __init__(self, today: Optional[DateLike] = None):
        today = to_local_date(today if today is not None else now_local())
        self.view_month = today.replace(day=1)
        self.is_open = False

    def open(self):
        self.is_open = True

    def toggle(self):
        if self.is_open:
            self.cancel()
        else:
            self.open()

    @abstractmethod
    def cancel(self):
        """Close without reporting the pending selection."""

    def previous_month(self):
        self.view_month = add_months(self.view_month, -1)

    def next_month(self):
        self.view_month = add_months(self.view_month, 1)

    @abstractmethod
    def _cell(self, day: date) -> Dict:
        """Render state of one day cell."""

    def _render_month(self, month_start: date) -> Dict:
        return {
            "title": month_title(month_start),
            "year": month_start.year,
            "month": month_start.month,
            "weekdays": list(WEEKDAY_LABELS),
            "weeks": [
                [self._cell(day) if day else None for day in week]
                for week in month_grid(month_start.year, month_start.month)
            ],
        }


class DateRangePicker(_MonthView):
    """Two-click date range selection over a dual-month calendar."""

    def __init__(self, on_apply: Callable[[DateRange], None], today: Optional[DateLike] = None):
        super().__init__(today)
        self.on_apply = on_apply
        self.selection = DateRange()
        self.applied = DateRange()

    @property
    def right_month(self) -> date:
        return add_months(self.view_month, 1)

    def click(self, day: DateLike):
        """
        First click sets the start; the second sets the end, swapping the two
        if it is earlier. A click after a completed range starts a new one.
        """
        start, end = self.selection.start, self.selection.end
        if start is None or end is not None:
            self.selection = DateRange(day, None)
        elif to_local_date(day) < to_local_date(start):
            self.selection = DateRange(day, start)
        else:
            self.selection = DateRange(start, day)

    def is_start(self, day: DateLike) -> bool:
        return same_day(day, self.selection.start)

    def is_end(self, day: DateLike) -> bool:
        return same_day(day, self.selection.end)

    def is_endpoint(self, day: DateLike) -> bool:
        return self.is_start(day) or self.is_end(day)

    def is_in_range(self, day: DateLike) -> bool:
        """Strictly between start and end; endpoints are not in range."""
        if not self.selection.is_bounded:
            return False
        current = to_local_date(day)
        return to_local_date(self.selection.start) < current < to_local_date(self.selection.end)

    def apply(self):
        """Report the current selection to the consumer and close."""
        self.applied = self.selection
        self.is_open = False
        self.on_apply(self.selection)

    def clear(self):
        """Reset the selection and report the empty range right away."""
        self.selection = DateRange()
        self.applied = self.selection
        self.is_open = False
        self.on_apply(self.selection)

    def cancel(self):
        """Drop changes made since the last apply and close without reporting."""
        self.selection = self.applied
        self.is_open = False

    def label(self) -> str:
        start, end = self.selection.start, self.selection.end
        if start is None:
            return NO_RANGE_LABEL

        def fmt(value):
            day = to_local_date(value)
            return f"{day.day} {MONTH_NAMES[day.month - 1][:3]}."

        if end is None:
            return fmt(start)
        return f"{fmt(start)} - {fmt(end)} {to_local_date(end).year}"

    def _cell(self, day: date) -> Dict:
        return {
            "day": day.day,
            "date": format_local_ymd(day),
            "selected": self.is_endpoint(day),
            "in_range": self.is_in_range(day),
            "is_start": self.is_start(day),
            "is_end": self.is_end(day),
        }

    def render(self) -> List[Dict]:
        """Left and right month grids with per-day selection state."""
        return [self._render_month(self.view_month), self._render_month(self.right_month)]


class SingleDatePicker(_MonthView):
    """Single-day picker emitting local YYYY-MM-DD strings ('' when cleared)."""

    def __init__(
        self,
        value: Optional[str],
        on_change: Callable[[str], None],
        today: Optional[DateLike] = None,
    ):
        super().__init__(today)
        self.on_change = on_change
        self.value = ""
        self.selected_date: Optional[date] = None
        self.set_value(value)

    def set_value(self, value: Optional[str]):
        """Sync from an external value; invalid strings clear the selection."""
        parsed = parse_local_ymd(value)
        self.value = format_local_ymd(parsed) if parsed else ""
        self.selected_date = parsed
        if parsed:
            self.view_month = parsed.replace(day=1)

    def click(self, day: DateLike):
        self.selected_date = to_local_date(day)

    def is_selected(self, day: DateLike) -> bool:
        return same_day(day, self.selected_date)

    def apply(self):
        value = format_local_ymd(self.selected_date) if self.selected_date else ""
        self.value = value
        self.is_open = False
        self.on_change(value)

    def clear(self):
        self.selected_date = None
        self.value = ""
        self.is_open = False
        self.on_change("")

    def cancel(self):
        self.selected_date = parse_local_ymd(self.value)
        self.is_open = False

    def display_text(self) -> str:
        if not self.selected_date:
            return NO_DATE_LABEL
        return self.selected_date.strftime("%d/%m/%Y")

    def _cell(self, day: date) -> Dict:
        return {
            "day": day.day,
            "date": format_local_ymd(day),
            "selected": self.is_selected(day),
        }

    def render(self) -> Dict:
        return self._render_month(self.view_month)
