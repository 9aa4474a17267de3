from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for users.

    Services depend on this protocol, never on a concrete database class.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def get_many(self, user_ids: Sequence[int]) -> Sequence[User]:
        raise NotImplementedError

    def list_active(self) -> Sequence[User]:
        """Active users ordered by first then last name."""

        raise NotImplementedError
