from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Site:
    """A physical location with its own biometric device."""

    site_id: int
    name: str


@dataclass(frozen=True)
class Campaign:
    campaign_id: int
    name: str
