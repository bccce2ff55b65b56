from .acceptance_service import AcceptanceService, HubServiceError

__all__ = ["AcceptanceService", "HubServiceError"]
