from __future__ import annotations

from dataclasses import dataclass

from ..models_transactions import MaintenanceRecord, MaintenanceSearchQuery
from .base import BaseClient


@dataclass
class MaintenanceClient(BaseClient):
    def search_candidates(self, query: MaintenanceSearchQuery) -> list[MaintenanceRecord]:
        params = None
        if query.candidate_line_item_ids:
            params = {"candidate_line_item_ids": ",".join(query.candidate_line_item_ids)}
        rows = self._get_rows(
            f"/api/v1/equipment/{query.equipment_id}/maintenance",
            what="maintenance",
            params=params,
        )
        return [MaintenanceRecord.model_validate(row) for row in rows]
