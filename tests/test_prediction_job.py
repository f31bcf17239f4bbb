from datetime import date

import pytest
from flask import Flask

from forecast_engine.forecasting import ExpensePredictor, PredictionRefreshJob, schedule_prediction_refresh
from forecast_engine.forecasting import prediction_job
from forecast_engine.forecasting.prediction_job import JOB_ID
from tests.conftest import USER, monthly_expenses

OTHER_USER = "user-2"


class FlakyPredictor(ExpensePredictor):
    """Fails for one user to check isolation."""

    def predict_variable_expenses(self, user_id, target_month=None):
        if user_id == OTHER_USER:
            raise RuntimeError("boom")
        return super().predict_variable_expenses(user_id, target_month)


@pytest.fixture
def seeded_repo(repo):
    repo.add_category(USER, "fun")
    monthly_expenses(repo, "fun", {(2024, 2): 50.0, (2024, 4): 400.0, (2024, 6): 90.0})
    repo.add_account(OTHER_USER, 100.0)
    return repo


def test_refresh_saves_current_month_predictions(seeded_repo, clock):
    job = PredictionRefreshJob(seeded_repo, ExpensePredictor(seeded_repo, today=clock))

    saved = job.refresh_user(USER, date(2024, 7, 1))

    assert saved == 1
    cached = seeded_repo.get_cached_prediction(USER, "fun", date(2024, 7, 1))
    assert cached["month"] == "2024-07"


def test_one_failing_user_does_not_stop_the_run(seeded_repo, clock):
    job = PredictionRefreshJob(seeded_repo, FlakyPredictor(seeded_repo, today=clock))

    summary = job.run()

    assert summary.users_processed == 1
    assert summary.users_failed == 1
    assert summary.predictions_saved == 1


def test_rerun_overwrites_cached_rows(seeded_repo, clock):
    job = PredictionRefreshJob(seeded_repo, ExpensePredictor(seeded_repo, today=clock))

    job.run()
    job.run()

    assert seeded_repo.save_calls == 2
    assert len(seeded_repo.predictions) == 1


def test_scheduler_is_not_started_when_disabled():
    app = Flask(__name__)
    app.config['PREDICTION_JOB_ENABLED'] = False

    assert schedule_prediction_refresh(app, lambda: None) is None


def test_scheduler_registers_daily_job():
    app = Flask(__name__)
    app.config['PREDICTION_JOB_ENABLED'] = True
    app.config['PREDICTION_JOB_HOUR'] = 3

    scheduler = schedule_prediction_refresh(app, lambda: None)
    try:
        job = scheduler.get_job(JOB_ID)
        assert job is not None
        assert str(job.trigger.fields[5]) == "3"  # hour
    finally:
        scheduler.shutdown(wait=False)


def test_scheduler_is_stopped_at_exit(monkeypatch):
    registered = []
    monkeypatch.setattr(prediction_job.atexit, "register", lambda fn, *args: registered.append((fn, args)))
    app = Flask(__name__)
    app.config['PREDICTION_JOB_ENABLED'] = True

    scheduler = schedule_prediction_refresh(app, lambda: None)

    assert registered == [(prediction_job.stop_scheduler, (scheduler,))]
    prediction_job.stop_scheduler(scheduler)
    assert scheduler.running is False
    prediction_job.stop_scheduler(scheduler)  # already stopped, no error


def test_reloader_watcher_does_not_schedule(monkeypatch):
    monkeypatch.delenv('WERKZEUG_RUN_MAIN', raising=False)
    app = Flask(__name__)
    app.config['PREDICTION_JOB_ENABLED'] = True
    app.debug = True

    assert schedule_prediction_refresh(app, lambda: None) is None
