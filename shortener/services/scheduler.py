import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from shortener.core import database
from shortener.core.config import BACKUP_KEEP, BACKUPS_DIR, RESET_HOUR, RESET_MINUTE, RESET_TIMEZONE

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone=RESET_TIMEZONE)


def build_trigger() -> CronTrigger:
    return CronTrigger(hour=RESET_HOUR, minute=RESET_MINUTE, timezone=RESET_TIMEZONE)


def local_now() -> datetime:
    return datetime.now(ZoneInfo(RESET_TIMEZONE))


def daily_reset():
    """
    Обнуляет дневные счётчики всех ссылок и пишет резервную копию документа.
    Имя копии строится по местному времени RESET_TIMEZONE.

    Повторный запуск в тот же момент даёт тот же результат.
    """

    now = local_now()
    store = database.get_links()
    store.reset_today(now)
    store.snapshot(BACKUPS_DIR, BACKUP_KEEP, now)


def start_scheduler():
    scheduler.add_job(daily_reset, build_trigger(), id="daily-reset", replace_existing=True,
                      misfire_grace_time=3600, coalesce=True)
    scheduler.start()
    logger.info("Планировщик запущен: обнуление в %02d:%02d (%s)", RESET_HOUR, RESET_MINUTE, RESET_TIMEZONE)


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown()
