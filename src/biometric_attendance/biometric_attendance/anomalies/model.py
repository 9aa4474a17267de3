from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import AnomalyType, Severity


@dataclass(frozen=True)
class Anomaly:
    """A heuristic flag over one user's scans."""

    type: AnomalyType
    severity: Severity
    user_id: int
    user_name: str
    description: str
    record_ids: tuple[int, ...] = ()
    on: Optional[date] = None
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "description": self.description,
            "record_ids": list(self.record_ids),
            "date": self.on.strftime("%Y-%m-%d") if self.on else None,
            "details": self.details,
        }


@dataclass(frozen=True)
class DetectionResult:
    anomalies: list[Anomaly]
    statistics: dict

    def to_dict(self) -> dict:
        return {
            "anomalies": [a.to_dict() for a in self.anomalies],
            "statistics": self.statistics,
        }
