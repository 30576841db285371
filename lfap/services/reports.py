"""
Leave utilization reports over approved (``tm_approved``) requests.
"""
import calendar
from collections import Counter
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func

from lfap.models.leave_request import LeaveRequest, LeaveStatus
from lfap.models.user import User
from lfap.services.base import BaseService


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def days_within(start: date, end: date, period_start: date, period_end: date) -> int:
    """Days of [start, end] falling inside [period_start, period_end], both inclusive."""
    clipped_start = max(start, period_start)
    clipped_end = min(end, period_end)
    return (clipped_end - clipped_start).days + 1


def _most_utilized(counts: Counter) -> Optional[Dict[str, Any]]:
    best = None
    for leave_type, count in counts.items():
        if best is None or count > best["count"]:
            best = {"type": leave_type, "count": count}
    return best


class UtilizationReportService(BaseService):

    def _department_headcount(self) -> Dict[str, int]:
        rows = (
            self.db.query(User.department, func.count(User.id))
            .filter(User.department.isnot(None))
            .group_by(User.department)
            .all()
        )
        return {department: count for department, count in rows}

    def _approved_between(self, period_start: date, period_end: date) -> Sequence[Tuple[LeaveRequest, User]]:
        return (
            self.db.query(LeaveRequest, User)
            .join(User, LeaveRequest.user_id == User.id)
            .filter(
                LeaveRequest.start_date <= period_end,
                LeaveRequest.end_date >= period_start,
                LeaveRequest.status == LeaveStatus.TM_APPROVED,
            )
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
            .all()
        )

    def _summarize(
        self,
        rows: Sequence[Tuple[LeaveRequest, User]],
        headcount: Dict[str, int],
        period_start: date,
        period_end: date,
    ) -> Dict[str, Any]:
        departments: Dict[str, Dict[str, Any]] = {}
        type_counts: Counter = Counter()
        employees: List[Dict[str, Any]] = []

        for leave, owner in rows:
            if leave.end_date < period_start or leave.start_date > period_end:
                continue
            if not owner.department:
                continue
            days = days_within(leave.start_date, leave.end_date, period_start, period_end)
            entry = departments.setdefault(owner.department, {
                "department": owner.department,
                "leave_days": 0,
                "employee_count": headcount.get(owner.department, 0),
            })
            entry["leave_days"] += days
            type_counts[leave.leave_type] += 1
            employees.append({
                "name": owner.full_name,
                "department": owner.department,
                "leave_days": days,
                "leave_type": leave.leave_type,
            })

        return {
            "department_data": list(departments.values()),
            "employee_data": employees,
            "most_utilized_leave_type": _most_utilized(type_counts),
        }

    def monthly(self, year: int, month: int) -> Dict[str, Any]:
        first_day, last_day = month_bounds(year, month)
        summary = self._summarize(
            self._approved_between(first_day, last_day),
            self._department_headcount(),
            first_day,
            last_day,
        )
        summary.update({"year": year, "month": month})
        return summary

    def yearly(self, year: int) -> Dict[str, Any]:
        rows = self._approved_between(date(year, 1, 1), date(year, 12, 31))
        headcount = self._department_headcount()

        monthly_data = []
        for month in range(1, 13):
            first_day, last_day = month_bounds(year, month)
            summary = self._summarize(rows, headcount, first_day, last_day)
            monthly_data.append({
                "month": month,
                "month_name": calendar.month_name[month],
                "department_data": summary["department_data"],
                "most_utilized_leave_type": summary["most_utilized_leave_type"],
            })
        return {"year": year, "monthly_data": monthly_data}
