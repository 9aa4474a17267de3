from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

import pandas as pd

from ..attendance.model import AttendanceExportRow, ExportFilters
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local, parse_optional_date
from ..common.formatters import format_status
from ..common.validators import require_date_order
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..sites.repository import SiteRepository
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

RECORD_COLUMNS = [
    "User ID",
    "Employee Name",
    "Campaign",
    "Shift Date",
    "Scheduled Time In",
    "Scheduled Time Out",
    "Actual Time In",
    "Actual Time Out",
    "Time In Site",
    "Time Out Site",
    "Status",
    "Secondary Status",
    "Tardy (mins)",
    "Undertime (mins)",
    "Overtime (mins)",
    "OT Approved",
    "Cross-Site Bio",
    "Admin Verified",
]

BREAKDOWN_STATUSES = (
    AttendanceStatus.ON_TIME,
    AttendanceStatus.TARDY,
    AttendanceStatus.HALF_DAY_ABSENCE,
    AttendanceStatus.NCNS,
    AttendanceStatus.ADVISED_ABSENCE,
    AttendanceStatus.ON_LEAVE,
    AttendanceStatus.UNDERTIME,
    AttendanceStatus.UNDERTIME_MORE_THAN_HOUR,
    AttendanceStatus.FAILED_BIO_IN,
    AttendanceStatus.FAILED_BIO_OUT,
    AttendanceStatus.NEEDS_MANUAL_REVIEW,
    AttendanceStatus.NON_WORK_DAY,
)


@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: bytes
    row_count: int
    mimetype: str = XLSX_MIMETYPE


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _record_row(r: AttendanceExportRow) -> dict:
    return {
        "User ID": r.user_id,
        "Employee Name": r.employee_name,
        "Campaign": r.campaign_name or "",
        "Shift Date": r.shift_date.strftime("%Y-%m-%d"),
        "Scheduled Time In": r.scheduled_time_in.strftime("%H:%M") if r.scheduled_time_in else "",
        "Scheduled Time Out": r.scheduled_time_out.strftime("%H:%M") if r.scheduled_time_out else "",
        "Actual Time In": r.actual_time_in.strftime("%Y-%m-%d %H:%M") if r.actual_time_in else "",
        "Actual Time Out": r.actual_time_out.strftime("%Y-%m-%d %H:%M") if r.actual_time_out else "",
        "Time In Site": r.time_in_site or "",
        "Time Out Site": r.time_out_site or "",
        "Status": format_status(r.status),
        "Secondary Status": format_status(r.secondary_status) if r.secondary_status else "",
        "Tardy (mins)": r.tardy_minutes,
        "Undertime (mins)": r.undertime_minutes,
        "Overtime (mins)": r.overtime_minutes,
        "OT Approved": _yes_no(r.overtime_approved),
        "Cross-Site Bio": _yes_no(r.is_cross_site_bio),
        "Admin Verified": _yes_no(r.admin_verified),
    }


def build_statistics(rows: Sequence[AttendanceExportRow], filters: ExportFilters) -> pd.DataFrame:
    total = len(rows)

    def pct(count: int) -> str:
        return f"{(count / total * 100):.1f}%" if total else "0.0%"

    stats: list[dict] = [
        {"Metric": "Date Range", "Value": f"{filters.start_date:%Y-%m-%d} to {filters.end_date:%Y-%m-%d}", "Percentage": ""},
        {"Metric": "Total Records", "Value": total, "Percentage": ""},
    ]
    for status in BREAKDOWN_STATUSES:
        count = sum(1 for r in rows if r.status == status)
        stats.append({"Metric": format_status(status), "Value": count, "Percentage": pct(count)})

    with_overtime = [r for r in rows if (r.overtime_minutes or 0) > 0]
    verified = sum(1 for r in rows if r.admin_verified)
    stats.extend(
        [
            {"Metric": "Total Tardy Minutes", "Value": sum(r.tardy_minutes or 0 for r in rows), "Percentage": ""},
            {"Metric": "Total Undertime Minutes", "Value": sum(r.undertime_minutes or 0 for r in rows), "Percentage": ""},
            {"Metric": "Total Overtime Minutes", "Value": sum(r.overtime_minutes or 0 for r in rows), "Percentage": ""},
            {"Metric": "Records with Overtime", "Value": len(with_overtime), "Percentage": ""},
            {"Metric": "OT Approved Records", "Value": sum(1 for r in rows if r.overtime_approved), "Percentage": ""},
            {"Metric": "Admin Verified Records", "Value": verified, "Percentage": ""},
            {"Metric": "Pending Verification", "Value": total - verified, "Percentage": ""},
        ]
    )
    return pd.DataFrame(stats, columns=["Metric", "Value", "Percentage"])


class ExportService:
    """Attendance spreadsheet export (pandas + openpyxl)."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        sites: SiteRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._sites = sites
        self._clock = clock

    def filter_options(self) -> dict:
        return {
            "users": [{"id": u.user_id, "name": u.full_name} for u in self._users.list_active()],
            "sites": [{"id": s.site_id, "name": s.name} for s in self._sites.list_all()],
            "campaigns": [{"id": c.campaign_id, "name": c.name} for c in self._sites.list_campaigns()],
        }

    def build_filters(
        self,
        start: Optional[str],
        end: Optional[str],
        *,
        user_ids: Sequence[int] = (),
        site_ids: Sequence[int] = (),
        campaign_ids: Sequence[int] = (),
    ) -> ExportFilters:
        start_date = parse_optional_date(start, "Start date")
        end_date = parse_optional_date(end, "End date")
        if not start_date or not end_date:
            raise ValidationError("Start date and end date are required")
        require_date_order(start_date, end_date)
        return ExportFilters(
            start_date=start_date,
            end_date=end_date,
            user_ids=tuple(user_ids),
            site_ids=tuple(site_ids),
            campaign_ids=tuple(campaign_ids),
        )

    def export(self, filters: ExportFilters) -> ExportFile:
        rows = list(self._attendance.list_for_export(filters))
        records = pd.DataFrame([_record_row(r) for r in rows], columns=RECORD_COLUMNS)
        statistics = build_statistics(rows, filters)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            records.to_excel(writer, index=False, sheet_name="Attendance Records")
            statistics.to_excel(writer, index=False, sheet_name="Statistics")

        export_id = self._clock().strftime("%Y%m%d%H%M%S")
        filename = (
            f"attendance_export_{filters.start_date:%Y-%m-%d}_to_{filters.end_date:%Y-%m-%d}_{export_id}.xlsx"
        )
        logger.info("Exported %s attendance row(s) to %s", len(rows), filename)
        return ExportFile(filename=filename, content=output.getvalue(), row_count=len(rows))
