from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

import config
from tasks.eod_tasks import run_eod_tasks

# One run at a time; a missed run within the hour still fires once
scheduler = BackgroundScheduler(
    timezone=config.APP_TIMEZONE,
    job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 3600},
)

# Overdue invoice sweep, daily at 23:00 local time
scheduler.add_job(
    run_eod_tasks,
    CronTrigger(hour=23, minute=0, timezone=config.APP_TIMEZONE),
    id="mark_overdue_invoices",
    replace_existing=True,
)
