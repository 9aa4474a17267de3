from __future__ import annotations

from flask import Flask, jsonify, render_template

from ..common.datetime_utils import parse_optional_date
from ..common.validators import parse_id_list
from ..common.web import admin_required, json_error, request_value, request_values
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.reprocessing_service

    def _range_from_request():
        start = parse_optional_date(request_value("start_date"), "Start date")
        end = parse_optional_date(request_value("end_date"), "End date")
        if not start or not end:
            raise ValidationError("Start date and end date are required")
        return start, end, parse_id_list(request_values("user_ids"))

    @app.route("/biometric-reprocessing", endpoint="biometric_reprocessing")
    @admin_required
    def biometric_reprocessing():
        return render_template(
            "biometric_reprocessing/index.html",
            users=container.user_directory.options(),
            stats=service.statistics(),
            active_page="biometric_reprocessing",
        )

    @app.route("/biometric-reprocessing/preview", methods=["POST"], endpoint="biometric_reprocessing_preview")
    @admin_required
    def biometric_reprocessing_preview():
        try:
            start, end, user_ids = _range_from_request()
            return jsonify({"success": True, "preview": service.preview(start, end, user_ids)})
        except Exception as e:
            return json_error(e, debug=bool(app.config.get("DEBUG", False)))

    @app.route("/biometric-reprocessing/reprocess", methods=["POST"], endpoint="biometric_reprocessing_run")
    @admin_required
    def biometric_reprocessing_run():
        try:
            start, end, user_ids = _range_from_request()
            delete_raw = (request_value("delete_existing", "true") or "").strip().lower()
            result = service.reprocess(
                start,
                end,
                user_ids,
                delete_existing=delete_raw not in {"0", "false", "off", "no"},
            )
        except Exception as e:
            return json_error(e, debug=bool(app.config.get("DEBUG", False)))

        return jsonify(
            {
                "success": True,
                "message": f"Reprocessed {result.processed} employees successfully",
                "results": result.to_dict(),
            }
        )
