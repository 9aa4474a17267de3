from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Mapping, Optional

from ..biometrics.repository import BiometricRecordRepository
from ..common.datetime_utils import now_local, subtract_months
from ..common.validators import optional_bool, require_int_between, require_max_length, require_non_empty
from ..core.constants import DEFAULT_EXPIRY_WARNING_DAYS, MAX_RETENTION_MONTHS, MIN_RETENTION_MONTHS
from ..core.enums import PolicyScope, RecordType
from ..core.exceptions import NotFoundError, ValidationError
from ..sites.repository import SiteRepository
from .model import PolicyInput, RetentionPolicy
from .repository import RetentionPolicyRepository
from .resolver import resolve_retention_months

logger = logging.getLogger(__name__)

AGE_BUCKETS = (
    ("0-3 months", 0, 3),
    ("3-6 months", 3, 6),
    ("6-12 months", 6, 12),
    ("12-24 months", 12, 24),
    ("24+ months", 24, None),
)

GLOBAL_SCOPE_LABEL = "Global (No Site)"


@dataclass(frozen=True)
class SiteCleanup:
    site_id: Optional[int]
    site_name: str
    retention_months: int
    cutoff: date
    count: int


@dataclass
class CleanupReport:
    dry_run: bool
    sites: list[SiteCleanup] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(s.count for s in self.sites)


@dataclass(frozen=True)
class ExpiryWarning:
    site_id: Optional[int]
    site_name: str
    count: int
    oldest_date: Optional[date]
    newest_date: Optional[date]
    deletion_date: date
    retention_months: int


class RetentionService:
    """Retention policy CRUD plus cleanup of biometric records past their cutoff."""

    def __init__(
        self,
        policies: RetentionPolicyRepository,
        records: BiometricRecordRepository,
        sites: SiteRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._policies = policies
        self._records = records
        self._sites = sites
        self._clock = clock

    # ---- policies -------------------------------------------------------

    def list_policies(self) -> list[RetentionPolicy]:
        return list(self._policies.list_all())

    def get_policy(self, policy_id: int) -> RetentionPolicy:
        policy = self._policies.get_by_id(policy_id)
        if not policy:
            raise NotFoundError("Retention policy not found")
        return policy

    def validate(self, form: Mapping) -> PolicyInput:
        name = require_non_empty(form.get("name") or "", "Name")
        require_max_length(name, "Name", 255)
        description = (form.get("description") or "").strip() or None

        months = require_int_between(
            form.get("retention_months"), "Retention months", MIN_RETENTION_MONTHS, MAX_RETENTION_MONTHS
        )

        try:
            scope = PolicyScope((form.get("applies_to_type") or "").strip())
        except ValueError:
            raise ValidationError("Applies to must be global or site")

        applies_to_id: Optional[int] = None
        if scope == PolicyScope.SITE:
            raw_site = form.get("applies_to_id")
            if raw_site in (None, ""):
                raise ValidationError("A site is required for site policies")
            try:
                applies_to_id = int(raw_site)
            except (TypeError, ValueError):
                raise ValidationError("Invalid site")
            if not self._sites.get_by_id(applies_to_id):
                raise ValidationError("Site does not exist")

        try:
            record_type = RecordType((form.get("record_type") or RecordType.ALL.value).strip())
        except ValueError:
            raise ValidationError("Unknown record type")

        raw_priority = form.get("priority")
        priority = 0
        if raw_priority not in (None, ""):
            try:
                priority = int(raw_priority)
            except (TypeError, ValueError):
                raise ValidationError("Priority must be a whole number")
            if priority < 0:
                raise ValidationError("Priority must be 0 or greater")

        return PolicyInput(
            name=name,
            description=description,
            retention_months=months,
            applies_to_type=scope,
            applies_to_id=applies_to_id,
            record_type=record_type,
            priority=priority,
            is_active=optional_bool(form.get("is_active")),
        )

    def create_policy(self, form: Mapping) -> int:
        data = self.validate(form)
        policy_id = self._policies.create(data)
        logger.info("Created retention policy %s (%s months, %s)", data.name, data.retention_months, data.record_type.value)
        return policy_id

    def update_policy(self, policy_id: int, form: Mapping) -> None:
        self.get_policy(policy_id)
        data = self.validate(form)
        self._policies.update(policy_id, data)
        logger.info("Updated retention policy %s", policy_id)

    def delete_policy(self, policy_id: int) -> None:
        policy = self.get_policy(policy_id)
        self._policies.delete(policy_id)
        logger.info("Deleted retention policy %s (%s)", policy_id, policy.name)

    def toggle_policy(self, policy_id: int) -> RetentionPolicy:
        policy = self.get_policy(policy_id)
        self._policies.set_active(policy_id, not policy.is_active)
        logger.info("Retention policy %s is now %s", policy_id, "inactive" if policy.is_active else "active")
        return self.get_policy(policy_id)

    # ---- resolution -----------------------------------------------------

    def retention_months(self, *, site_id: Optional[int] = None, record_type: RecordType = RecordType.BIOMETRIC_RECORD) -> int:
        return resolve_retention_months(self._policies.list_active(), site_id=site_id, record_type=record_type)

    def cutoff_date(
        self,
        *,
        site_id: Optional[int] = None,
        record_type: RecordType = RecordType.BIOMETRIC_RECORD,
        today: Optional[date] = None,
    ) -> date:
        today = today or self._clock().date()
        return subtract_months(today, self.retention_months(site_id=site_id, record_type=record_type))

    # ---- reporting ------------------------------------------------------

    def preview(self, policy_id: int) -> dict:
        """What deleting under one policy would remove. Only biometric records are stored here."""
        policy = self.get_policy(policy_id)
        cutoff = subtract_months(self._clock().date(), policy.retention_months)

        rows: list[dict] = []
        if policy.record_type in (RecordType.ALL, RecordType.BIOMETRIC_RECORD):
            site_id = policy.applies_to_id if policy.applies_to_type == PolicyScope.SITE else None
            count = self._records.count(before=cutoff, site_id=site_id)
            oldest, newest = self._records.date_bounds(before=cutoff, site_id=site_id)
            rows.append(
                {
                    "record_type": RecordType.BIOMETRIC_RECORD.value,
                    "label": "Biometric Records",
                    "count": count,
                    "oldest_date": oldest.strftime("%Y-%m-%d") if oldest else None,
                    "newest_date": newest.strftime("%Y-%m-%d") if newest else None,
                }
            )

        return {
            "policy": {
                "id": policy.policy_id,
                "name": policy.name,
                "retention_months": policy.retention_months,
                "applies_to_type": policy.applies_to_type.value,
                "record_type": policy.record_type.value,
            },
            "cutoff_date": cutoff.strftime("%Y-%m-%d"),
            "preview": rows,
            "total_affected": sum(r["count"] for r in rows),
        }

    def age_statistics(self) -> dict:
        today = self._clock().date()
        by_age = []
        for label, start_months, end_months in AGE_BUCKETS:
            upper = subtract_months(today, start_months) if start_months else None
            lower = subtract_months(today, end_months) if end_months is not None else None
            by_age.append({"range": label, "count": self._records.count(date_from=lower, before=upper)})
        return {
            "biometric_record": {
                "label": "Biometric Records",
                "total": self._records.count(),
                "by_age": by_age,
            }
        }

    # ---- cleanup --------------------------------------------------------

    def _scope_cutoffs(self, today: date):
        """(site_id, site_name, months, cutoff) per site, then the unsited scope."""
        scopes = [(site.site_id, site.name) for site in self._sites.list_all()]
        scopes.append((None, GLOBAL_SCOPE_LABEL))
        for site_id, site_name in scopes:
            months = self.retention_months(site_id=site_id)
            yield site_id, site_name, months, subtract_months(today, months)

    def eligible_count(self) -> int:
        """Biometric records already past their site (or global) cutoff."""
        today = self._clock().date()
        return sum(
            self._records.count(before=cutoff, site_id=site_id, unsited=site_id is None)
            for site_id, _, _, cutoff in self._scope_cutoffs(today)
        )

    def cleanup(self, *, dry_run: bool = False) -> CleanupReport:
        """Delete biometric records older than each site's cutoff.

        Records without a site use the global cutoff.
        """
        today = self._clock().date()
        report = CleanupReport(dry_run=dry_run)

        for site_id, site_name, months, cutoff in self._scope_cutoffs(today):
            unsited = site_id is None
            if dry_run:
                count = self._records.count(before=cutoff, site_id=site_id, unsited=unsited)
            else:
                count = self._records.delete_before(cutoff, site_id=site_id, unsited=unsited)

            report.sites.append(
                SiteCleanup(site_id=site_id, site_name=site_name, retention_months=months, cutoff=cutoff, count=count)
            )
            if count:
                logger.info(
                    "%s %s biometric record(s) for %s older than %s (%s months)",
                    "Would delete" if dry_run else "Deleted",
                    count,
                    site_name,
                    cutoff,
                    months,
                )

        logger.info("Retention cleanup finished: %s record(s)%s", report.total, " (dry run)" if dry_run else "")
        return report

    def check_expiry(self, *, days: int = DEFAULT_EXPIRY_WARNING_DAYS) -> list[ExpiryWarning]:
        """Records that will pass their cutoff within `days` days, per site and global."""
        if int(days) < 0:
            raise ValidationError("Days must be 0 or greater")

        today = self._clock().date()
        warnings: list[ExpiryWarning] = []
        for site_id, site_name, months, cutoff in self._scope_cutoffs(today):
            # inclusive on both ends
            window_end = cutoff + timedelta(days=int(days) + 1)
            unsited = site_id is None

            count = self._records.count(date_from=cutoff, before=window_end, site_id=site_id, unsited=unsited)
            if not count:
                continue
            oldest, newest = self._records.date_bounds(date_from=cutoff, before=window_end, site_id=site_id, unsited=unsited)
            warnings.append(
                ExpiryWarning(
                    site_id=site_id,
                    site_name=site_name,
                    count=count,
                    oldest_date=oldest,
                    newest_date=newest,
                    deletion_date=cutoff,
                    retention_months=months,
                )
            )
            logger.warning("%s: %s records expiring (from %s to %s)", site_name, count, oldest, newest)

        if warnings:
            logger.warning(
                "%s biometric record(s) will be deleted in approximately %s days; back up attendance data first",
                sum(w.count for w in warnings),
                days,
            )
        return warnings
