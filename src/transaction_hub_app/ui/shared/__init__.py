from .error_presenter import ErrorPresenter, PresentedError
from .notification_center import NotificationCenter

__all__ = ["ErrorPresenter", "NotificationCenter", "PresentedError"]
