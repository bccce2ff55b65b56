from .acceptance_processor_view import AcceptanceProcessorView
from .transaction_hub_view import TransactionHubView

__all__ = ["AcceptanceProcessorView", "TransactionHubView"]
