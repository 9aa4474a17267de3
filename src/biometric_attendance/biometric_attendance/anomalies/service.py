from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from ..biometrics.repository import BiometricRecordRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_date_order
from ..core.constants import DEFAULT_ANOMALY_DAYS
from ..core.enums import AnomalyType, Severity
from ..core.exceptions import ValidationError
from .detector import DETECTORS, build_statistics
from .model import DetectionResult

logger = logging.getLogger(__name__)


def parse_anomaly_types(values: Iterable[str]) -> list[AnomalyType]:
    types: list[AnomalyType] = []
    for value in values or []:
        try:
            anomaly_type = AnomalyType(str(value).strip())
        except ValueError:
            raise ValidationError(f"Unknown anomaly type: {value}")
        if anomaly_type not in types:
            types.append(anomaly_type)
    return types


def parse_severity(value: Optional[str]) -> Optional[Severity]:
    if value is None or not str(value).strip():
        return None
    try:
        return Severity(str(value).strip())
    except ValueError:
        raise ValidationError(f"Unknown severity: {value}")


class AnomalyService:
    def __init__(
        self,
        records: BiometricRecordRepository,
        *,
        default_days: int = DEFAULT_ANOMALY_DAYS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._default_days = int(default_days)
        self._clock = clock

    def default_range(self) -> tuple[date, date]:
        today = self._clock().date()
        return today - timedelta(days=self._default_days), today

    def detect(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        anomaly_types: Optional[Iterable[AnomalyType]] = None,
        min_severity: Optional[Severity] = None,
    ) -> DetectionResult:
        default_start, default_end = self.default_range()
        start = start_date or default_start
        end = end_date or default_end
        require_date_order(start, end)

        selected = list(anomaly_types or []) or list(DETECTORS)
        records = list(self._records.list_between(start, end))

        anomalies = []
        for anomaly_type in selected:
            anomalies.extend(DETECTORS[anomaly_type](records))

        if min_severity is not None:
            anomalies = [a for a in anomalies if a.severity.rank >= min_severity.rank]

        logger.info(
            "Detected %s anomalies over %s record(s) between %s and %s",
            len(anomalies),
            len(records),
            start,
            end,
        )
        return DetectionResult(anomalies=anomalies, statistics=build_statistics(anomalies))
