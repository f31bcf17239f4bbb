"""
Background refresh of the category prediction cache.

Once a day the job predicts the current month for every variable category
of every user and upserts the result. Failures are isolated per user.
"""

import atexit
import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..database.repository import FinanceRepository
from .expense_predictor import ExpensePredictor
from .time_series import month_start

logger = logging.getLogger(__name__)

JOB_ID = "category-prediction-refresh"


@dataclass
class RefreshSummary:
    users_processed: int = 0
    users_failed: int = 0
    predictions_saved: int = 0


class PredictionRefreshJob:
    """Regenerates cached predictions for all users."""

    def __init__(self, repository: FinanceRepository, predictor: ExpensePredictor):
        self.repository = repository
        self.predictor = predictor

    def run(self, target_month: Optional[date] = None) -> RefreshSummary:
        target = month_start(target_month or self.predictor.today())
        user_ids = self.repository.list_user_ids()
        summary = RefreshSummary()

        logger.info(f"Starting prediction refresh for {len(user_ids)} users ({target.isoformat()})")

        for user_id in user_ids:
            try:
                summary.predictions_saved += self.refresh_user(user_id, target)
                summary.users_processed += 1
            except Exception as e:
                summary.users_failed += 1
                logger.error(f"Failed to refresh predictions for user {user_id}: {e}")

        logger.info(
            f"Prediction refresh finished: {summary.users_processed} users, "
            f"{summary.predictions_saved} predictions, {summary.users_failed} failures"
        )
        return summary

    def refresh_user(self, user_id: str, target_month: date) -> int:
        saved = 0
        for prediction in self.predictor.predict_variable_expenses(user_id, target_month):
            self.repository.save_prediction(user_id, prediction)
            saved += 1
        return saved


def stop_scheduler(scheduler: BackgroundScheduler) -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Prediction refresh scheduler stopped")


def schedule_prediction_refresh(app, job_factory) -> Optional[BackgroundScheduler]:
    """
    Register the daily refresh on a background scheduler.

    Args:
        app: Flask application; the job runs inside its app context
        job_factory: Callable returning a PredictionRefreshJob (called per run)

    Returns:
        The started scheduler, or None when disabled by configuration or when
        running in the debug reloader's watcher process
    """
    if not app.config.get('PREDICTION_JOB_ENABLED'):
        logger.info("Prediction refresh job disabled")
        return None
    if app.debug and os.environ.get('WERKZEUG_RUN_MAIN') != 'true':
        # Reloader watcher process; the serving child schedules the job
        logger.info("Prediction refresh job deferred to the reloader child process")
        return None

    def run_in_context():
        with app.app_context():
            job_factory().run()

    scheduler = BackgroundScheduler(daemon=True)
    scheduler.add_job(
        run_in_context,
        trigger="cron",
        id=JOB_ID,
        hour=app.config.get('PREDICTION_JOB_HOUR', 4),
        minute=0,
        replace_existing=True
    )
    scheduler.start()
    atexit.register(stop_scheduler, scheduler)
    logger.info(f"Prediction refresh scheduled daily at {app.config.get('PREDICTION_JOB_HOUR', 4):02d}:00")
    return scheduler
