from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import PolicyScope, RecordType


@dataclass(frozen=True)
class RetentionPolicy:
    """How many months records of a type/scope are kept before deletion."""

    policy_id: int
    name: str
    retention_months: int
    applies_to_type: PolicyScope = PolicyScope.GLOBAL
    applies_to_id: Optional[int] = None
    record_type: RecordType = RecordType.ALL
    priority: int = 0
    is_active: bool = True
    description: Optional[str] = None
    site_name: Optional[str] = None

    def applies_to_site(self, site_id: Optional[int]) -> bool:
        return self.applies_to_type == PolicyScope.SITE and site_id is not None and self.applies_to_id == site_id

    @property
    def is_global(self) -> bool:
        return self.applies_to_type == PolicyScope.GLOBAL

    def to_dict(self) -> dict:
        return {
            "id": self.policy_id,
            "name": self.name,
            "description": self.description,
            "retention_months": self.retention_months,
            "applies_to_type": self.applies_to_type.value,
            "applies_to_id": self.applies_to_id,
            "site_name": self.site_name,
            "record_type": self.record_type.value,
            "priority": self.priority,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class PolicyInput:
    """Validated create/update payload."""

    name: str
    retention_months: int
    applies_to_type: PolicyScope
    applies_to_id: Optional[int]
    record_type: RecordType
    priority: int
    description: Optional[str] = None
    # None keeps the stored flag on update and means active on create.
    is_active: Optional[bool] = None
