from plantlink.services.notification_service import MoistureNotifier
from plantlink.services.status_polling_service import PollSession, StatusPollingService

__all__ = ["MoistureNotifier", "PollSession", "StatusPollingService"]
