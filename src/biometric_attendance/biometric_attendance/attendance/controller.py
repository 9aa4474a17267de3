from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

from ..common.datetime_utils import parse_iso_date, parse_optional_date
from ..common.validators import optional_int, parse_id_list
from ..common.web import admin_required, json_error, login_required, request_value, request_values
from ..container import Container
from ..core.enums import AttendanceStatus
from ..core.exceptions import DomainError, ValidationError
from .model import REVIEW_SCOPES, ReviewFilters

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _debug() -> bool:
        return bool(app.config.get("DEBUG", False))

    def _system_error(action: str, e: Exception) -> None:
        logger.exception("Attendance %s failed", action)
        flash(f"System error while {action}: {e}" if _debug() else f"System error while {action}", "danger")

    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        try:
            stats = service.statistics(request.args.get("start_date"), request.args.get("end_date"))
        except ValidationError as e:
            flash(str(e), "danger")
            stats = service.statistics()
        return render_template("dashboard.html", name=session.get("name"), stats=stats, active_page="dashboard")

    @app.route("/attendance/statistics", endpoint="attendance_statistics")
    @admin_required
    def attendance_statistics():
        try:
            return jsonify(service.statistics(request.args.get("start_date"), request.args.get("end_date")))
        except Exception as e:
            return json_error(e, debug=_debug())

    @app.route("/attendance/roster", endpoint="attendance_roster")
    @admin_required
    def attendance_roster():
        filters = {
            "date": request.args.get("date") or "",
            "site_id": request.args.get("site_id") or "",
            "campaign_id": request.args.get("campaign_id") or "",
            "status": request.args.get("status") or "all",
            "search": request.args.get("search") or "",
        }
        try:
            data = service.roster(
                parse_optional_date(filters["date"], "Date"),
                site_id=optional_int(filters["site_id"]),
                campaign_id=optional_int(filters["campaign_id"]),
                status=filters["status"],
                search=filters["search"],
            )
        except ValidationError as e:
            flash(str(e), "danger")
            data = service.roster()

        filters["date"] = data["date"].strftime("%Y-%m-%d")
        return render_template(
            "attendance/roster.html",
            filters=filters,
            options=service.filter_options(),
            active_page="attendance_roster",
            **data,
        )

    @app.route("/attendance/generate", methods=["POST"], endpoint="attendance_generate")
    @admin_required
    def attendance_generate():
        try:
            entry = service.validate_manual(request.form)
            service.store_manual(entry, created_by=session.get("name") or "admin")
            flash("Attendance record created successfully.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception as e:
            _system_error("creating attendance", e)
        return redirect(url_for("attendance_roster", date=request.form.get("shift_date") or None))

    @app.route("/attendance/<int:attendance_id>/verify", methods=["POST"], endpoint="attendance_verify")
    @admin_required
    def attendance_verify(attendance_id: int):
        try:
            service.verify(attendance_id, service.validate_verification(request.form))
            flash("Attendance record verified and updated successfully.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception as e:
            _system_error("verifying attendance", e)
        return redirect(request.referrer or url_for("attendance_roster"))

    @app.route("/attendance/review", endpoint="attendance_review")
    @admin_required
    def attendance_review():
        try:
            filters = service.build_review_filters(request.args)
            page = service.review(filters, request.args.get("page", 1))
        except ValidationError as e:
            flash(str(e), "danger")
            filters = ReviewFilters()
            page = service.review(filters)

        return render_template(
            "attendance/review.html",
            records=page,
            filters=filters.to_query(),
            options={
                "users": container.user_directory.options(),
                "statuses": [s.value for s in AttendanceStatus],
                "verify_statuses": service.filter_options()["statuses"],
                "scopes": REVIEW_SCOPES,
            },
            active_page="attendance_review",
        )

    @app.route("/attendance/<int:attendance_id>/advised", methods=["POST"], endpoint="attendance_mark_advised")
    @admin_required
    def attendance_mark_advised(attendance_id: int):
        try:
            service.mark_advised(attendance_id, notes=request.form.get("notes"), by=session.get("name") or "admin")
            flash("Attendance marked as advised absence.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception as e:
            _system_error("marking attendance as advised", e)
        return redirect(request.referrer or url_for("attendance_review"))

    @app.route("/attendance/bulk-delete", methods=["POST"], endpoint="attendance_bulk_delete")
    @admin_required
    def attendance_bulk_delete():
        try:
            count = service.bulk_delete(parse_id_list(request_values("ids")))
            flash(f"Successfully deleted {count} attendance record{'' if count == 1 else 's'}.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception as e:
            _system_error("deleting attendance", e)
        return redirect(request.referrer or url_for("attendance_review"))

    @app.route("/attendance/suggest", methods=["POST"], endpoint="attendance_suggest")
    @admin_required
    def attendance_suggest():
        try:
            user_id = optional_int(request_value("user_id"))
            shift_date_s = request_value("shift_date")
            if user_id is None or not shift_date_s:
                raise ValidationError("Employee and shift date are required")
            try:
                shift_date = parse_iso_date(shift_date_s)
            except ValueError:
                raise ValidationError("Shift date must be a YYYY-MM-DD date")

            suggestion = service.suggest(
                user_id,
                shift_date,
                request_value("actual_time_in"),
                request_value("actual_time_out"),
            )
            return jsonify({"success": True, **suggestion.to_dict()})
        except Exception as e:
            return json_error(e, debug=_debug())
