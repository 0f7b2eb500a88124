# boxbox/tasks/scheduler.py
from __future__ import annotations

import atexit
import threading
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

_start_lock = threading.Lock()


def init_scheduler(app):
    """
    Starts the due-soon scheduler on the first request the app serves.
    CLI commands (init-db, due-soon-check) never serve a request, so they
    never get a background sweep next to their own work.
    """
    if not app.config.get("SCHEDULER_ENABLED", True):
        app.logger.info("[scheduler] Disabled by config.")
        return

    @app.before_request
    def _ensure_scheduler():
        if "apscheduler" not in app.extensions:
            start_scheduler(app)


def start_scheduler(app):
    """
    Runs the due-soon sweep once right away (session start) and then on an
    interval.
    - The job runs inside an app context.
    - Started at most once per app.
    - Stopped at interpreter exit.
    """
    # imported here to avoid a circular import through the services
    from boxbox.tasks.due_soon_check import run_due_soon_check_job

    with _start_lock:
        if "apscheduler" in app.extensions:
            return app.extensions["apscheduler"]

        minutes = int(app.config.get("DUE_SOON_INTERVAL_MINUTES", 60))
        scheduler = BackgroundScheduler(timezone="UTC")

        def _job_wrapper():
            try:
                run_due_soon_check_job(app)
            except Exception as ex:
                app.logger.exception(f"[scheduler] due_soon_check_job error: {ex}")

        scheduler.add_job(
            func=_job_wrapper,
            trigger=IntervalTrigger(minutes=minutes),
            id="due_soon_check_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=120,
            next_run_time=datetime.now(timezone.utc),
        )

        scheduler.start()
        app.logger.info(f"[scheduler] Due-soon check started (every {minutes} minutes).")

        app.extensions["apscheduler"] = scheduler

    def _shutdown_scheduler():
        if scheduler.running:
            scheduler.shutdown(wait=False)

    atexit.register(_shutdown_scheduler)
    return scheduler
