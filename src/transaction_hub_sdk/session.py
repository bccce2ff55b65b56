from __future__ import annotations

from dataclasses import dataclass

from .clients.maintenance_client import MaintenanceClient
from .clients.transactions_client import TransactionsClient
from .config import ClientConfig
from .http_client import HttpClient
from .models_transactions import Identity
from .tracing import TraceContext


@dataclass
class ApiSession:
    config: ClientConfig
    trace: TraceContext | None = None
    token: str | None = None
    actor: Identity | None = None
    site_id: str | None = None

    def __post_init__(self) -> None:
        self.trace = self.trace or TraceContext()

    def _http(self) -> HttpClient:
        return HttpClient(config=self.config, trace=self.trace)

    def transactions_client(self) -> TransactionsClient:
        return TransactionsClient(http=self._http(), access_token=self.token, site_id=self.site_id)

    def maintenance_client(self) -> MaintenanceClient:
        return MaintenanceClient(http=self._http(), access_token=self.token, site_id=self.site_id)

    def establish(self, token: str, actor: Identity) -> None:
        self.token = token
        self.actor = actor

    def clear(self) -> None:
        self.token = None
        self.actor = None
