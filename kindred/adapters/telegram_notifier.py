"""Telegram notification adapter — implements NotificationPort.

Each reminder becomes a one-shot job on the bot's JobQueue that sends a
message to the owner's chat at the trigger time. Job names double as
notification identifiers.
"""

from __future__ import annotations

import logging
from datetime import timezone, tzinfo

from telegram.ext import CallbackContext, JobQueue

from kindred.core.clock import to_datetime
from kindred.ports.notification_port import NotificationRequest, ScheduledNotification

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(
        self,
        job_queue: JobQueue,
        chat_id: int | None,
        tz: tzinfo | None = None,
    ) -> None:
        self._job_queue = job_queue
        self._chat_id = chat_id
        self._tz = tz or timezone.utc

    async def ensure_permissions(self) -> bool:
        """Reminders can only be delivered once an owner chat is configured."""
        return self._chat_id is not None

    async def list_scheduled(self) -> list[ScheduledNotification]:
        scheduled: list[ScheduledNotification] = []
        for job in self._job_queue.jobs():
            payload = job.data if isinstance(job.data, dict) else None
            if payload is None or "notification" not in payload:
                continue
            scheduled.append(
                ScheduledNotification(identifier=job.name, data=payload["notification"])
            )
        return scheduled

    async def cancel(self, identifier: str) -> None:
        for job in self._job_queue.get_jobs_by_name(identifier):
            job.schedule_removal()

    async def schedule(self, request: NotificationRequest) -> str:
        when = to_datetime(request.trigger_at, self._tz)
        self._job_queue.run_once(
            _deliver,
            when=when,
            name=request.identifier,
            chat_id=self._chat_id,
            data={
                "notification": dict(request.data),
                "text": f"{request.title}\n{request.body}",
            },
        )
        logger.debug("Queued %s for %s", request.identifier, when.isoformat())
        return request.identifier


async def _deliver(context: CallbackContext) -> None:
    job = context.job
    await context.bot.send_message(chat_id=job.chat_id, text=job.data["text"])
