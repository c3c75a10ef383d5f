"""Row change events as delivered by the change feed.

Shape mirrors the platform's realtime payload: ``new`` carries the row after
an INSERT/UPDATE, ``old`` carries at least the id of a DELETEd row.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.ps_common.enums import ChangeType


@dataclass(frozen=True)
class ChangeEvent:
    type: ChangeType
    table: str
    new: Mapping[str, Any] = field(default_factory=dict)
    old: Mapping[str, Any] = field(default_factory=dict)

    @property
    def row_id(self) -> str | None:
        row = self.old if self.type == ChangeType.DELETE else self.new
        value = row.get("id")
        return None if value is None else str(value)

    @property
    def owner_id(self) -> str | None:
        row = self.old if self.type == ChangeType.DELETE else self.new
        value = row.get("user_id")
        return None if value is None else str(value)
