from __future__ import annotations

import io
import logging

from flask import Flask, flash, redirect, render_template, request, send_file, url_for

from ..common.validators import parse_id_list
from ..common.web import admin_required, request_values
from ..container import Container
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.export_service

    @app.route("/biometric-export", endpoint="biometric_export")
    @admin_required
    def biometric_export():
        return render_template(
            "biometric_export/index.html",
            options=service.filter_options(),
            active_page="biometric_export",
        )

    @app.route("/biometric-export/download", methods=["GET", "POST"], endpoint="biometric_export_download")
    @admin_required
    def biometric_export_download():
        try:
            filters = service.build_filters(
                request.values.get("start_date"),
                request.values.get("end_date"),
                user_ids=parse_id_list(request_values("user_ids")),
                site_ids=parse_id_list(request_values("site_ids")),
                campaign_ids=parse_id_list(request_values("campaign_ids")),
            )
            exported = service.export(filters)
        except ValidationError as e:
            flash(str(e), "danger")
            return redirect(url_for("biometric_export"))
        except Exception as e:
            logger.exception("Attendance export failed")
            if bool(app.config.get("DEBUG", False)):
                flash(f"System error while exporting: {e}", "danger")
            else:
                flash("System error while exporting", "danger")
            return redirect(url_for("biometric_export"))

        return send_file(
            io.BytesIO(exported.content),
            download_name=exported.filename,
            as_attachment=True,
            mimetype=exported.mimetype,
        )
