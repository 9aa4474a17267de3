from datetime import datetime

from src.biometric_attendance.biometric_attendance.biometrics.name_matcher import NameMatcher
from tests.fakes import make_user


def test_matches_last_name_and_initial():
    santos = make_user(1, "Maria", "Santos")
    matcher = NameMatcher([santos, make_user(2, "Juan", "Reyes")])

    assert matcher.match("santos m") == santos
    assert matcher.match("santos ma") == santos
    assert matcher.match("maria santos") == santos
    assert matcher.match("unknown x") is None


def test_middle_name_patterns():
    user = make_user(3, "Ana", "Cruz", middle="Lopez")
    matcher = NameMatcher([user])

    assert matcher.match("cruz ana lopez") == user
    assert matcher.match("ana l cruz") == user


def test_siblings_sharing_initial_resolve_alphabetically():
    michelle = make_user(4, "Michelle", "Dela")
    mark = make_user(5, "Mark", "Dela")
    matcher = NameMatcher([michelle, mark])

    assert matcher.match("dela m") == mark
    assert matcher.match("dela mi") == michelle
    assert matcher.match("dela mark") == mark


def test_shared_pattern_split_by_schedule_band():
    morning = make_user(6, "Jose", "Garcia")
    night = make_user(7, "Jaime", "Garcia")
    hours = {6: 8, 7: 22}
    matcher = NameMatcher([morning, night], scheduled_hour=hours.get)

    assert matcher.match("garcia j", [datetime(2025, 11, 5, 21, 55)]) == night
    assert matcher.match("garcia j", [datetime(2025, 11, 5, 7, 50)]) == morning
