from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PolicyInput, RetentionPolicy


class RetentionPolicyRepository(Protocol):
    def list_all(self) -> Sequence[RetentionPolicy]:
        """All policies, highest priority first."""

        raise NotImplementedError

    def list_active(self) -> Sequence[RetentionPolicy]:
        raise NotImplementedError

    def get_by_id(self, policy_id: int) -> Optional[RetentionPolicy]:
        raise NotImplementedError

    def create(self, data: PolicyInput) -> int:
        raise NotImplementedError

    def update(self, policy_id: int, data: PolicyInput) -> bool:
        raise NotImplementedError

    def delete(self, policy_id: int) -> bool:
        raise NotImplementedError

    def set_active(self, policy_id: int, is_active: bool) -> bool:
        raise NotImplementedError
