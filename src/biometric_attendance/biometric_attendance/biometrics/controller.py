from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.datetime_utils import parse_iso_date, parse_optional_date
from ..common.validators import optional_int
from ..common.web import admin_required
from ..container import Container
from ..core.exceptions import NotFoundError, ValidationError
from .model import BiometricFilters

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.biometric_service

    @app.route("/biometric-records", endpoint="biometric_records")
    @admin_required
    def biometric_records():
        try:
            filters = BiometricFilters(
                user_id=optional_int(request.args.get("user_id")),
                site_id=optional_int(request.args.get("site_id")),
                date_from=parse_optional_date(request.args.get("date_from"), "Date from"),
                date_to=parse_optional_date(request.args.get("date_to"), "Date to"),
                search=(request.args.get("search") or "").strip() or None,
            )
            page = service.list_records(filters, request.args.get("page", 1))
        except ValidationError as e:
            flash(str(e), "danger")
            filters = BiometricFilters()
            page = service.list_records(filters)

        return render_template(
            "biometric_records/index.html",
            records=page,
            stats=service.statistics(),
            options=service.filter_options(),
            filters=filters.to_query(),
            active_page="biometric_records",
        )

    @app.route("/biometric-records/<int:user_id>/<date_s>", endpoint="biometric_records_show")
    @admin_required
    def biometric_records_show(user_id: int, date_s: str):
        try:
            data = service.records_for_user_on(user_id, parse_iso_date(date_s))
        except ValueError:
            flash("Invalid date", "danger")
            return redirect(url_for("biometric_records"))
        except NotFoundError as e:
            flash(str(e), "danger")
            return redirect(url_for("biometric_records"))

        return render_template("biometric_records/show.html", active_page="biometric_records", **data)

    @app.route("/biometric-records/import", methods=["GET", "POST"], endpoint="biometric_records_import")
    @admin_required
    def biometric_records_import():
        result = None
        if request.method == "POST":
            upload = request.files.get("file")
            try:
                if not upload or not upload.filename:
                    raise ValidationError("Please choose a device export file")
                result = service.import_export_file(upload.read(), site_id=optional_int(request.form.get("site_id")))
                flash(
                    f"Imported {result.inserted} scan(s), skipped {result.duplicates} duplicate(s), "
                    f"processed {result.processed_shifts} shift(s) for {result.processed_users} employee(s).",
                    "success",
                )
                if result.errors:
                    flash(f"Attendance processing failed for {len(result.errors)} employee(s).", "warning")
                if result.unmatched_names:
                    flash(f"{len(result.unmatched_names)} name(s) could not be matched to an employee.", "warning")
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception as e:
                logger.exception("Biometric import failed")
                if bool(app.config.get("DEBUG", False)):
                    flash(f"System error while importing: {e}", "danger")
                else:
                    flash("System error while importing", "danger")

        return render_template(
            "biometric_records/import.html",
            result=result,
            options=service.filter_options(),
            active_page="biometric_records",
        )
