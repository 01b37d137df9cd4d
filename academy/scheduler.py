from datetime import timedelta
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from academy.config import settings
from academy.core.time_provider import default_time_provider
from academy.metrics import run_timed_job
from academy.services.class_expansion_service import expand_upcoming
from academy.services.salary_service import generate_for_period
from academy.store import get_store
from academy.utils.timezone import parse_hhmm


scheduler = BackgroundScheduler(timezone=settings.app_timezone)
logger = logging.getLogger(__name__)


def weekly_expansion_job():
    run_timed_job('weekly_expansion', lambda: expand_upcoming(get_store()))


def monthly_salary_job():
    def _job():
        last_month = default_time_provider.today().replace(day=1) - timedelta(days=1)
        return generate_for_period(get_store(), last_month.month, last_month.year)

    run_timed_job('monthly_salary_reports', _job)


def start_scheduler():
    run_at = parse_hhmm(settings.expansion_job_time)
    scheduler.add_job(
        weekly_expansion_job,
        'cron',
        hour=run_at.hour,
        minute=run_at.minute,
        id='weekly_expansion',
        replace_existing=True,
    )
    scheduler.add_job(monthly_salary_job, 'cron', day=1, hour=2, minute=0, id='monthly_salary_reports', replace_existing=True)
    if not scheduler.running:
        scheduler.start()
    logger.info('scheduler_started expansion_time=%s', settings.expansion_job_time)


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
