"""
Daily follow-up reminder emails for tracked job applications
"""
import asyncio
import contextlib
import smtplib
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from careerhub.models.schemas import JobStatus, as_utc
from careerhub.services.db import MongoService, to_object_id
from careerhub.services.mailer import Mailer
from careerhub.utils.exceptions import ConfigurationError
from careerhub.utils.logging_config import get_logger

logger = get_logger(__name__)

OPEN_STATUSES = [JobStatus.APPLIED.value, JobStatus.INTERVIEW_SCHEDULED.value]


def build_reminder(user: dict, job: dict) -> Tuple[str, str]:
    subject = f"Reminder: Follow up on {job['title']} at {job['company']}"
    lines = [
        f"Dear {user.get('name', '')},",
        "",
        f"This is a reminder to follow up on your job application for {job['title']} "
        f"at {job['company']}. Status: {job.get('status', JobStatus.APPLIED.value)}.",
    ]
    if job.get("reminderDate"):
        lines.append(f"Reminder set for: {job['reminderDate']:%Y-%m-%d %H:%M}")
    if job.get("url"):
        lines.append(f"View job: {job['url']}")
    return subject, "\n".join(lines)


async def send_due_reminders(mongo: MongoService, mailer: Mailer, now: Optional[datetime] = None) -> int:
    """Email the owner of every open job whose reminder falls within the next day.

    Returns the number of emails sent. A failed send is logged and skipped.
    """
    now = as_utc(now or datetime.now(timezone.utc))
    jobs = await mongo.jobs.find({
        "reminderDate": {"$gte": now, "$lte": now + timedelta(days=1)},
        "status": {"$in": OPEN_STATUSES},
    }).to_list(length=None)
    logger.info(f"Running job reminder job at {now.isoformat()} - {len(jobs)} due")

    loop = asyncio.get_running_loop()
    sent = 0
    for job in jobs:
        user_oid = to_object_id(job.get("userId"))
        user = await mongo.users.find_one({"_id": user_oid}) if user_oid else None
        if not user:
            logger.warning(f"Skipping reminder for job {job.get('_id')}: owner not found")
            continue

        subject, body = build_reminder(user, job)
        try:
            await loop.run_in_executor(None, mailer.send, user["email"], subject, body)
        except (smtplib.SMTPException, OSError, ConfigurationError) as e:
            logger.error(f"Failed to send reminder to {user['email']} for job {job['title']}: {e}")
            continue
        sent += 1
        logger.info(f"Email reminder sent to {user['email']} for job {job['title']}")
    return sent


def seconds_until(hour: int, now: Optional[datetime] = None) -> float:
    """Seconds from ``now`` to the next occurrence of ``hour``:00 local time"""
    now = now or datetime.now()
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class ReminderScheduler:
    """Runs send_due_reminders once a day; started and stopped by the lifespan"""

    def __init__(self, mongo: MongoService, mailer: Mailer, hour: int = 9):
        self.mongo = mongo
        self.mailer = mailer
        self.hour = hour
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run_forever())
            logger.info(f"Reminder scheduler started (daily at {self.hour:02d}:00)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Reminder scheduler stopped")

    async def _run_forever(self) -> None:
        while True:
            await asyncio.sleep(seconds_until(self.hour))
            try:
                await send_due_reminders(self.mongo, self.mailer)
            except Exception as e:
                # one bad run must not stop tomorrow's
                logger.error(f"Reminder job failed: {e}", exc_info=True)
