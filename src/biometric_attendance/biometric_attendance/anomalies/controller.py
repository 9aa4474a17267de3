from __future__ import annotations

from flask import Flask, flash, jsonify, render_template, request

from ..common.datetime_utils import parse_optional_date
from ..common.web import admin_required, json_error, request_value, request_values
from ..container import Container
from ..core.enums import AnomalyType, Severity
from ..core.exceptions import ValidationError
from .service import parse_anomaly_types, parse_severity


def register(app: Flask, container: Container) -> None:
    service = container.anomaly_service

    def _detect_from_request():
        return service.detect(
            start_date=parse_optional_date(request_value("start_date"), "Start date"),
            end_date=parse_optional_date(request_value("end_date"), "End date"),
            anomaly_types=parse_anomaly_types(request_values("anomaly_types")),
            min_severity=parse_severity(request_value("min_severity")),
        )

    @app.route("/biometric-anomalies", endpoint="biometric_anomalies")
    @admin_required
    def biometric_anomalies():
        start, end = service.default_range()
        result = None
        try:
            result = _detect_from_request()
        except ValidationError as e:
            flash(str(e), "danger")

        return render_template(
            "biometric_anomalies/index.html",
            result=result,
            default_start=start.strftime("%Y-%m-%d"),
            default_end=end.strftime("%Y-%m-%d"),
            anomaly_types=[t.value for t in AnomalyType],
            severities=[s.value for s in Severity],
            filters={
                "start_date": request.args.get("start_date") or start.strftime("%Y-%m-%d"),
                "end_date": request.args.get("end_date") or end.strftime("%Y-%m-%d"),
                "anomaly_types": request_values("anomaly_types"),
                "min_severity": request.args.get("min_severity") or "",
            },
            active_page="biometric_anomalies",
        )

    @app.route("/biometric-anomalies/detect", methods=["POST"], endpoint="biometric_anomalies_detect")
    @admin_required
    def biometric_anomalies_detect():
        try:
            result = _detect_from_request()
            return jsonify({"success": True, **result.to_dict()})
        except Exception as e:
            return json_error(e, debug=bool(app.config.get("DEBUG", False)))
