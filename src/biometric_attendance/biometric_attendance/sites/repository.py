from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Campaign, Site


class SiteRepository(Protocol):
    def list_all(self) -> Sequence[Site]:
        raise NotImplementedError

    def get_by_id(self, site_id: int) -> Optional[Site]:
        raise NotImplementedError

    def list_campaigns(self) -> Sequence[Campaign]:
        raise NotImplementedError
