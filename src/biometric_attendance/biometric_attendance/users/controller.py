from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, flash, redirect, render_template, request, session, url_for

from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.exceptions import AuthenticationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    app.jinja_env.globals["csrf_token"] = lambda: ""

    @app.route("/", methods=["GET", "POST"], endpoint="login")
    def login():
        if "user_id" in session:
            return redirect(url_for("dashboard"))

        if request.method == "POST":
            username = request.form.get("username", "")
            password = request.form.get("password", "")
            remember = request.form.get("remember_me")

            try:
                s_user = container.auth_service.authenticate(username, password)

                session.permanent = bool(remember)
                app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

                session["user_id"] = s_user.user_id
                session["name"] = s_user.full_name
                session["role"] = s_user.role.value

                flash("Signed in successfully.", "success")
                return redirect(url_for("dashboard"))
            except AuthenticationError as e:
                flash(str(e), "danger")
            except Exception as e:
                logger.exception("Login failed unexpectedly")
                if bool(app.config.get("DEBUG", False)):
                    flash(f"System error while signing in: {e}", "danger")
                else:
                    flash("System error while signing in", "danger")

        return render_template("login.html")

    @app.route("/logout", endpoint="logout")
    def logout():
        session.clear()
        flash("You have been signed out.", "info")
        return redirect(url_for("login"))
