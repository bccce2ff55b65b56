from .base import BaseClient
from .maintenance_client import MaintenanceClient
from .transactions_client import TransactionsClient

__all__ = [
    "BaseClient",
    "MaintenanceClient",
    "TransactionsClient",
]
