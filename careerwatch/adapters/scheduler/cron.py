import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from careerwatch.adapters.base import ScheduledJob, Scheduler
from careerwatch.config.settings import settings

logger = logging.getLogger(__name__)

CRON_FIELDS = ("minute", "hour", "day", "month", "day_of_week")

# Crontab numbering: 0 and 7 are Sunday. APScheduler counts from Monday,
# so weekdays are handed over by name.
WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _weekday_number(token: str) -> int:
    token = token.strip().lower()
    if token in WEEKDAY_NAMES:
        return WEEKDAY_NAMES.index(token)
    if token.isdigit() and int(token) <= 7:
        return int(token)
    raise ValueError(f"Invalid day of week: '{token}'")


def crontab_weekdays(field: str) -> str:
    """
    Translate a crontab day-of-week field into APScheduler weekday names.

    "1-5" -> "mon,tue,wed,thu,fri", "0" and "7" -> "sun", "*/2" -> "sun,tue,thu,sat"
    """
    if field == "*":
        return field

    days = set()
    for part in field.split(","):
        base, _, step = part.partition("/")
        if step and not (step.isdigit() and int(step) > 0):
            raise ValueError(f"Invalid day of week step: '{part}'")
        if base == "*":
            first, last = 0, 6
        elif "-" in base:
            start, end = base.split("-", 1)
            first, last = _weekday_number(start), _weekday_number(end)
        else:
            first = _weekday_number(base)
            last = 6 if step else first
        if first > last:
            raise ValueError(f"Invalid day of week range: '{part}'")
        days.update(day % 7 for day in range(first, last + 1, int(step or 1)))

    return ",".join(WEEKDAY_NAMES[day] for day in sorted(days))


def parse_cron(expression: str, timezone=None) -> CronTrigger:
    """
    Build a trigger from a 5-field crontab, or 6 fields with leading seconds.

    Raises:
        ValueError: wrong number of fields or an invalid field value
    """
    fields = expression.split()
    if len(fields) == 5:
        values = dict(zip(CRON_FIELDS, fields))
        values["second"] = "0"
    elif len(fields) == 6:
        values = dict(zip(("second",) + CRON_FIELDS, fields))
    else:
        raise ValueError(
            f"Invalid cron expression '{expression}': expected 5 or 6 fields, got {len(fields)}"
        )
    values["day_of_week"] = crontab_weekdays(values["day_of_week"])
    return CronTrigger(timezone=timezone, **values)


async def run_guarded(job: ScheduledJob) -> None:
    """
    Run one tick. A failing job is logged and never stops the scheduler.
    """
    try:
        await job()
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Job execution error")


class CronScheduler(Scheduler):
    """
    Scheduler backed by APScheduler's AsyncIOScheduler.

    Ticks do not wait for the previous run to finish; at most
    `max_instances` runs of the same job may overlap. Once stopped, the
    scheduler stays stopped: a later start() returns without firing.
    """

    def __init__(self, max_instances: int = settings.MAX_OVERLAPPING_RUNS, timezone=None):
        self._scheduler = AsyncIOScheduler(timezone=timezone)
        self._max_instances = max_instances
        self._stopped = asyncio.Event()

    def schedule(self, expression: str, job: ScheduledJob) -> None:
        trigger = parse_cron(expression, self._scheduler.timezone)
        self._scheduler.add_job(
            run_guarded,
            trigger,
            args=[job],
            max_instances=self._max_instances,
            coalesce=True,
            misfire_grace_time=None,
        )
        logger.info(f"Scheduled job with cron expression: {expression}")

    async def start(self) -> None:
        if self._stopped.is_set():
            logger.info("Scheduler was stopped before it started")
            return

        self._scheduler.start()
        logger.info("Scheduler started")
        try:
            await self._stopped.wait()
        finally:
            self._shutdown()

    async def stop(self) -> None:
        self._stopped.set()
        self._shutdown()

    def _shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
