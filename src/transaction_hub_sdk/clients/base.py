from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None
    site_id: str | None = None

    def _request(self, method: str, path: str, *, headers: dict[str, str] | None = None, **kwargs: Any):
        scoped = dict(headers or {})
        if self.access_token:
            scoped.setdefault("Authorization", f"Bearer {self.access_token}")
        if self.site_id:
            scoped.setdefault("X-Site-ID", self.site_id)
        return self.http.request(method, path, headers=scoped, **kwargs)

    def _get_rows(self, path: str, *, what: str, params: dict[str, Any] | None = None) -> list[Any]:
        """GET a listing that may come back bare or wrapped as ``{"rows": [...]}``."""
        payload = self._request("GET", path, params=params)
        rows = payload.get("rows") if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            raise ValueError(f"Expected {what} response to be a JSON list")
        return rows
