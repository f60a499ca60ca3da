"""
Background scheduler: runs the recurring expense materializer inside the
Flask process.

Jobs:
  - Recurring expense materialization (every RECURRING_INTERVAL_HOURS, default 24h)
"""
import atexit
import logging

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

JOB_ID = "recurring_expenses"


def run_recurring_tick(app):
    """One materializer pass inside an application context. Never raises."""
    from .extensions import db
    from .services.recurring_service import RecurringExpenseMaterializer
    from .time_utils import utcnow

    with app.app_context():
        materializer = RecurringExpenseMaterializer(
            db.session, clock=app.config.get("CLOCK") or utcnow,
        )
        try:
            return materializer.run_once()
        except Exception:
            logger.exception("Recurring expense job failed")
            return None
        finally:
            db.session.remove()


def create_scheduler(app) -> BackgroundScheduler:
    """Build (but do not start) a scheduler with the materializer job registered."""
    scheduler = BackgroundScheduler(daemon=True, timezone="UTC")
    scheduler.add_job(
        run_recurring_tick,
        "interval",
        hours=app.config["RECURRING_INTERVAL_HOURS"],
        args=[app],
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def start_scheduler(app) -> BackgroundScheduler:
    """Start the background scheduler with all periodic jobs."""
    scheduler = create_scheduler(app)
    scheduler.start()
    app.extensions["scheduler"] = scheduler
    atexit.register(shutdown_scheduler, app)
    logger.info(
        "Scheduler started: recurring_expenses (every %s h)",
        app.config["RECURRING_INTERVAL_HOURS"],
    )
    return scheduler


def shutdown_scheduler(app):
    """Gracefully stop the scheduler."""
    scheduler = app.extensions.pop("scheduler", None)
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
