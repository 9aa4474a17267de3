from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from ..common.web import admin_required, json_error
from ..container import Container
from ..core.enums import PolicyScope, RecordType
from ..core.exceptions import DomainError, NotFoundError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.retention_service

    def _debug() -> bool:
        return bool(app.config.get("DEBUG", False))

    def _render_form(policy=None, form=None):
        return render_template(
            "biometric_retention_policies/form.html",
            policy=policy,
            form=form or (policy.to_dict() if policy else {}),
            sites=container.sites_repo.list_all(),
            scopes=[s.value for s in PolicyScope],
            record_types=[t.value for t in RecordType],
            active_page="biometric_retention_policies",
        )

    @app.route("/biometric-retention-policies", endpoint="biometric_retention_policies")
    @admin_required
    def biometric_retention_policies():
        return render_template(
            "biometric_retention_policies/index.html",
            policies=service.list_policies(),
            stats=service.age_statistics(),
            active_page="biometric_retention_policies",
        )

    @app.route("/biometric-retention-policies/new", methods=["GET", "POST"], endpoint="biometric_retention_policies_create")
    @admin_required
    def biometric_retention_policies_create():
        if request.method == "POST":
            try:
                service.create_policy(request.form)
                flash("Retention policy created successfully.", "success")
                return redirect(url_for("biometric_retention_policies"))
            except DomainError as e:
                flash(str(e), "danger")
            except Exception as e:
                logger.exception("Creating retention policy failed")
                flash(f"System error: {e}" if _debug() else "System error", "danger")
            return _render_form(form=request.form)
        return _render_form()

    @app.route(
        "/biometric-retention-policies/<int:policy_id>/edit",
        methods=["GET", "POST"],
        endpoint="biometric_retention_policies_edit",
    )
    @admin_required
    def biometric_retention_policies_edit(policy_id: int):
        try:
            policy = service.get_policy(policy_id)
        except NotFoundError as e:
            flash(str(e), "danger")
            return redirect(url_for("biometric_retention_policies"))

        if request.method == "POST":
            try:
                service.update_policy(policy_id, request.form)
                flash("Retention policy updated successfully.", "success")
                return redirect(url_for("biometric_retention_policies"))
            except DomainError as e:
                flash(str(e), "danger")
            except Exception as e:
                logger.exception("Updating retention policy %s failed", policy_id)
                flash(f"System error: {e}" if _debug() else "System error", "danger")
            return _render_form(policy, form=request.form)
        return _render_form(policy)

    @app.route(
        "/biometric-retention-policies/<int:policy_id>/delete",
        methods=["POST"],
        endpoint="biometric_retention_policies_delete",
    )
    @admin_required
    def biometric_retention_policies_delete(policy_id: int):
        try:
            service.delete_policy(policy_id)
            flash("Retention policy deleted successfully.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        return redirect(url_for("biometric_retention_policies"))

    @app.route(
        "/biometric-retention-policies/<int:policy_id>/toggle",
        methods=["POST"],
        endpoint="biometric_retention_policies_toggle",
    )
    @admin_required
    def biometric_retention_policies_toggle(policy_id: int):
        try:
            policy = service.toggle_policy(policy_id)
            return jsonify({"success": True, "policy": policy.to_dict()})
        except Exception as e:
            return json_error(e, debug=_debug())

    @app.route(
        "/biometric-retention-policies/<int:policy_id>/preview",
        endpoint="biometric_retention_policies_preview",
    )
    @admin_required
    def biometric_retention_policies_preview(policy_id: int):
        try:
            return jsonify({"success": True, **service.preview(policy_id)})
        except Exception as e:
            return json_error(e, debug=_debug())
