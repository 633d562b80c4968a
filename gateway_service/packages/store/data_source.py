"""Static store information data source."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StoreInfoDataSource:
    """Serves store details without a round trip to the legacy API."""

    code: str = "default"
    name: str = "Main Website Store"
    currency: str = "USD"
    locales: list[str] = field(default_factory=lambda: ["en_US"])

    def get_store_info(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "currency": self.currency,
            "locales": list(self.locales),
        }
