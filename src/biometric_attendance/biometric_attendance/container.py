from __future__ import annotations

from dataclasses import dataclass

from .anomalies.service import AnomalyService
from .attendance.calculator.standard_calculator import StandardWorkedTimeCalculator
from .attendance.factory import ShiftStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.processor import AttendanceProcessor
from .attendance.service import AttendanceService
from .biometrics.mysql_biometric_repository import MySQLBiometricRecordRepository
from .biometrics.service import BiometricRecordService
from .core.constants import DEFAULT_ANOMALY_DAYS, RECORDS_PER_PAGE
from .database.connection import DBConfig, DatabaseConnection
from .exports.service import ExportService
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .reprocessing.service import ReprocessingService
from .retention.mysql_retention_repository import MySQLRetentionPolicyRepository
from .retention.service import RetentionService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .sites.mysql_site_repository import MySQLSiteRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserDirectory


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    sites_repo: MySQLSiteRepository
    schedules_repo: MySQLScheduleRepository
    leaves_repo: MySQLLeaveRepository
    biometric_repo: MySQLBiometricRecordRepository
    retention_repo: MySQLRetentionPolicyRepository
    attendance_repo: MySQLAttendanceRepository

    auth_service: AuthService
    user_directory: UserDirectory
    retention_service: RetentionService
    biometric_service: BiometricRecordService
    anomaly_service: AnomalyService
    attendance_processor: AttendanceProcessor
    attendance_service: AttendanceService
    reprocessing_service: ReprocessingService
    export_service: ExportService


def build_container(
    *,
    db_config: dict,
    per_page: int = RECORDS_PER_PAGE,
    anomaly_days: int = DEFAULT_ANOMALY_DAYS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    users_repo = MySQLUserRepository(conn)
    sites_repo = MySQLSiteRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    biometric_repo = MySQLBiometricRecordRepository(conn)
    retention_repo = MySQLRetentionPolicyRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    calculator = StandardWorkedTimeCalculator()

    auth_service = AuthService(users_repo)
    user_directory = UserDirectory(users_repo)
    retention_service = RetentionService(retention_repo, biometric_repo, sites_repo)
    attendance_processor = AttendanceProcessor(
        attendance_repo,
        schedules_repo,
        leaves_repo,
        strategy_factory=ShiftStrategyFactory(),
        calculator=calculator,
    )
    biometric_service = BiometricRecordService(
        biometric_repo,
        users_repo,
        sites_repo,
        schedules_repo,
        retention_service,
        processor=attendance_processor,
        per_page=per_page,
    )
    anomaly_service = AnomalyService(biometric_repo, default_days=anomaly_days)
    attendance_service = AttendanceService(
        attendance_repo,
        schedules_repo,
        leaves_repo,
        users_repo,
        sites_repo,
        calculator=calculator,
    )
    reprocessing_service = ReprocessingService(biometric_repo, attendance_repo, users_repo, attendance_processor)
    export_service = ExportService(attendance_repo, users_repo, sites_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        sites_repo=sites_repo,
        schedules_repo=schedules_repo,
        leaves_repo=leaves_repo,
        biometric_repo=biometric_repo,
        retention_repo=retention_repo,
        attendance_repo=attendance_repo,
        auth_service=auth_service,
        user_directory=user_directory,
        retention_service=retention_service,
        biometric_service=biometric_service,
        anomaly_service=anomaly_service,
        attendance_processor=attendance_processor,
        attendance_service=attendance_service,
        reprocessing_service=reprocessing_service,
        export_service=export_service,
    )
