from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an employee or administrator account.

    Plain data object, no database access here.
    """

    user_id: int
    first_name: str
    last_name: str
    username: str
    password_hash: str
    role: Role
    middle_name: Optional[str] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
