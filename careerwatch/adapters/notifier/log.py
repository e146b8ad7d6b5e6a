import logging

from careerwatch.adapters.base import Notifier
from careerwatch.core.models import DiffResult, notifications_for

logger = logging.getLogger(__name__)


class LogNotifier(Notifier):
    """
    Notifier that writes change alerts to the application log.
    Handy for local runs where no chat webhook is configured.
    """

    async def notify(self, diff: DiffResult) -> None:
        for notification in notifications_for(diff):
            logger.info(
                f"[{notification.type.value}] {notification.company_name} "
                f"({notification.source_url}): {notification.message}"
            )
            for job in notification.payload or []:
                logger.info(f"  - {job.title} {job.url}".rstrip())
