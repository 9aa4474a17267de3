from dataclasses import replace
from datetime import date, datetime, time
from pathlib import Path
from types import SimpleNamespace

import pytest
from flask import Flask
from werkzeug.security import generate_password_hash

from src.biometric_attendance.biometric_attendance.attendance.model import Attendance
from src.biometric_attendance.biometric_attendance.attendance.processor import AttendanceProcessor
from src.biometric_attendance.biometric_attendance.attendance.service import AttendanceService
from src.biometric_attendance.biometric_attendance.core.enums import AttendanceStatus, Role
from src.biometric_attendance.biometric_attendance.main import register_routes
from src.biometric_attendance.biometric_attendance.reprocessing.service import ReprocessingService
from src.biometric_attendance.biometric_attendance.retention.model import RetentionPolicy
from src.biometric_attendance.biometric_attendance.retention.service import RetentionService
from src.biometric_attendance.biometric_attendance.sites.model import Site
from src.biometric_attendance.biometric_attendance.users.service import AuthService, UserDirectory
from tests.fakes import (
    InMemoryAttendance,
    InMemoryBiometrics,
    InMemoryLeaves,
    InMemoryPolicies,
    InMemorySchedules,
    InMemorySites,
    InMemoryUsers,
    make_schedule,
    make_user,
    scans,
)

TEMPLATES = Path(__file__).resolve().parents[2] / "templates"
NOW = datetime(2025, 11, 15, 9, 0)

ADMIN = replace(make_user(1, "Root", "Admin", role=Role.ADMIN), password_hash=generate_password_hash("secret"))
STAFF = make_user(2, "Juan", "Reyes")
SANTOS = make_user(3, "Maria", "Santos")


@pytest.fixture()
def app():
    users = InMemoryUsers([ADMIN, STAFF, SANTOS])
    sites = InMemorySites([Site(1, "Main")])
    schedules = InMemorySchedules([make_schedule(3, time(8, 0), time(17, 0))])
    leaves = InMemoryLeaves()
    attendance = InMemoryAttendance(
        [
            Attendance(user_id=3, shift_date=date(2025, 10, 20), status=AttendanceStatus.FAILED_BIO_OUT),
            Attendance(user_id=2, shift_date=date(2025, 10, 21), status=AttendanceStatus.NCNS),
        ],
        names={2: STAFF.full_name, 3: SANTOS.full_name},
    )
    records = InMemoryBiometrics(scans(3, "2025-11-05 08:00", "2025-11-05 17:00"))
    policies = InMemoryPolicies([RetentionPolicy(policy_id=1, name="Default", retention_months=3)])

    container = SimpleNamespace(
        sites_repo=sites,
        auth_service=AuthService(users),
        user_directory=UserDirectory(users),
        attendance_service=AttendanceService(attendance, schedules, leaves, users, sites, clock=lambda: NOW),
        retention_service=RetentionService(policies, records, sites, clock=lambda: NOW),
        reprocessing_service=ReprocessingService(
            records, attendance, users, AttendanceProcessor(attendance, schedules, leaves)
        ),
        biometric_service=None,
        anomaly_service=None,
        export_service=None,
    )

    flask_app = Flask(__name__, template_folder=str(TEMPLATES))
    flask_app.secret_key = "test"
    flask_app.config["TESTING"] = True
    register_routes(flask_app, container)
    return flask_app


@pytest.fixture()
def client(app):
    return app.test_client()


def sign_in(client, user):
    with client.session_transaction() as sess:
        sess["user_id"] = user.user_id
        sess["name"] = user.full_name
        sess["role"] = user.role.value


def test_login_sets_session(client):
    resp = client.post("/", data={"username": "root.admin", "password": "secret"})

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/dashboard")
    with client.session_transaction() as sess:
        assert sess["role"] == "admin"
        assert sess["name"] == "Root Admin"


def test_login_rejects_bad_password(client):
    resp = client.post("/", data={"username": "root.admin", "password": "nope"})

    assert resp.status_code == 200
    assert b"Invalid username or password" in resp.data


def test_anonymous_page_request_redirects_to_login(client):
    resp = client.get("/biometric-retention-policies")

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/")


def test_anonymous_json_request_gets_401(client):
    resp = client.post("/attendance/suggest", json={"user_id": 3})

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_staff_are_forbidden(client):
    sign_in(client, STAFF)

    page = client.get("/biometric-retention-policies")
    api = client.post("/biometric-reprocessing/preview", json={})

    assert page.status_code == 403
    assert api.status_code == 403
    assert api.get_json()["message"] == "Admin access required"


def test_suggest_returns_status(client):
    sign_in(client, ADMIN)

    resp = client.post(
        "/attendance/suggest",
        json={
            "user_id": 3,
            "shift_date": "2025-11-05",
            "actual_time_in": "2025-11-05T08:10",
            "actual_time_out": "2025-11-05T17:00",
        },
    )

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["status"] == "tardy"
    assert body["tardy_minutes"] == 10


def test_suggest_errors(client):
    sign_in(client, ADMIN)

    missing = client.post("/attendance/suggest", json={"user_id": 3})
    no_schedule = client.post("/attendance/suggest", json={"user_id": 2, "shift_date": "2025-11-05"})

    assert missing.status_code == 400
    assert missing.get_json()["message"] == "Employee and shift date are required"
    assert no_schedule.status_code == 404


def test_statistics_json(client):
    sign_in(client, ADMIN)

    resp = client.get("/attendance/statistics?start_date=2025-11-01&end_date=2025-11-30")

    assert resp.status_code == 200
    assert resp.get_json()["total"] == 0


def test_retention_toggle_and_preview(client):
    sign_in(client, ADMIN)

    toggled = client.post("/biometric-retention-policies/1/toggle")
    preview = client.get("/biometric-retention-policies/1/preview")
    missing = client.post("/biometric-retention-policies/9/toggle")

    assert toggled.get_json()["policy"]["is_active"] is False
    assert preview.get_json()["cutoff_date"] == "2025-08-15"
    assert preview.get_json()["total_affected"] == 0
    assert missing.status_code == 404


def test_retention_create_form(client):
    sign_in(client, ADMIN)

    invalid = client.post("/biometric-retention-policies/new", data={"name": "", "retention_months": "3"})
    created = client.post(
        "/biometric-retention-policies/new",
        data={"name": "Main site", "retention_months": "6", "applies_to_type": "site", "applies_to_id": "1"},
    )

    assert invalid.status_code == 200
    assert b"Name is required" in invalid.data
    assert created.status_code == 302
    assert created.headers["Location"].endswith("/biometric-retention-policies")


def test_reprocess_endpoint(client):
    sign_in(client, ADMIN)

    resp = client.post(
        "/biometric-reprocessing/reprocess",
        json={"start_date": "2025-11-05", "end_date": "2025-11-05", "user_ids": [3]},
    )
    missing = client.post("/biometric-reprocessing/preview", json={"start_date": "2025-11-05"})

    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Reprocessed 1 employees successfully"
    assert resp.get_json()["results"]["details"][0]["shifts_processed"] == 1
    assert missing.status_code == 400


def test_review_page_lists_rows_needing_verification(client):
    sign_in(client, ADMIN)

    default = client.get("/attendance/review")
    everything = client.get("/attendance/review?scope=all")
    invalid = client.get("/attendance/review?scope=bogus")

    assert default.status_code == 200
    assert b"1 record(s)" in default.data
    assert b"2025-10-20" in default.data
    assert b"2025-10-21" not in default.data
    assert b"2 record(s)" in everything.data
    assert b"Invalid verification filter" in invalid.data


def test_mark_advised(client):
    sign_in(client, ADMIN)

    resp = client.post("/attendance/1/advised", data={"notes": "Called in"}, follow_redirects=True)
    missing = client.post("/attendance/99/advised", data={}, follow_redirects=True)

    assert b"Attendance marked as advised absence." in resp.data
    assert b"0 record(s)" in resp.data
    assert b"1 record(s)" in client.get("/attendance/review?scope=verified").data
    assert b"Attendance record not found" in missing.data


def test_bulk_delete(client):
    sign_in(client, ADMIN)

    empty = client.post("/attendance/bulk-delete", data={}, follow_redirects=True)
    resp = client.post("/attendance/bulk-delete", data={"ids": ["1", "2"]}, follow_redirects=True)

    assert b"Select at least one attendance record" in empty.data
    assert b"Successfully deleted 2 attendance records." in resp.data
    assert b"0 record(s)" in client.get("/attendance/review?scope=all").data


def test_reprocessing_page_shows_stored_range(client):
    sign_in(client, ADMIN)

    resp = client.get("/biometric-reprocessing")

    assert resp.status_code == 200
    assert b"2 stored scan(s), oldest 2025-11-05, newest 2025-11-05." in resp.data
