"""
Unit tests for the cron task scheduler.
"""

import pytest

from lunchbot.background_jobs import TaskScheduler


@pytest.fixture
def scheduler():
    s = TaskScheduler(timezone="Asia/Seoul")
    yield s
    s.shutdown()


class TestAddTask:
    def test_registers_paused(self, scheduler):
        scheduler.add_task("daily", "0 11 * * 1-5", lambda: None)
        status = scheduler.get_task_status("daily")

        assert status["name"] == "daily"
        assert status["cron_expression"] == "0 11 * * 1-5"
        assert status["timezone"] == "Asia/Seoul"
        assert status["is_running"] is False
        assert status["next_run_time"] is None

    def test_invalid_cron_rejected(self, scheduler):
        with pytest.raises(ValueError, match="Invalid cron expression"):
            scheduler.add_task("bad", "every day at noon", lambda: None)
        assert scheduler.get_task_status("bad") is None

    def test_duplicate_name_rejected(self, scheduler):
        scheduler.add_task("daily", "0 11 * * *", lambda: None)
        with pytest.raises(ValueError):
            scheduler.add_task("daily", "0 12 * * *", lambda: None)

    def test_task_timezone_override(self, scheduler):
        scheduler.add_task("utc", "0 3 * * *", lambda: None, timezone="UTC")
        assert scheduler.get_task_status("utc")["timezone"] == "UTC"


class TestStartStop:
    def test_start_and_stop_all(self, scheduler):
        scheduler.add_task("one", "0 11 * * *", lambda: None)
        scheduler.add_task("two", "30 11 * * *", lambda: None)

        scheduler.start_all_tasks()
        statuses = scheduler.get_all_tasks_status()
        assert [s["is_running"] for s in statuses] == [True, True]
        assert all(s["next_run_time"] for s in statuses)

        scheduler.stop_all_tasks()
        statuses = scheduler.get_all_tasks_status()
        assert [s["is_running"] for s in statuses] == [False, False]
        assert all(s["next_run_time"] is None for s in statuses)

    def test_unknown_task(self, scheduler):
        with pytest.raises(KeyError):
            scheduler.start_task("missing")
        with pytest.raises(KeyError):
            scheduler.remove_task("missing")

    def test_remove_task(self, scheduler):
        scheduler.add_task("daily", "0 11 * * *", lambda: None)
        scheduler.remove_task("daily")
        assert scheduler.get_all_tasks_status() == []


class TestRunTaskNow:
    def test_returns_result(self, scheduler):
        scheduler.add_task("daily", "0 11 * * *", lambda: {"success": True})
        assert scheduler.run_task_now("daily") == {"success": True}

    def test_failure_calls_error_callback(self, scheduler):
        errors = []

        def job():
            raise RuntimeError("scrape failed")

        scheduler.add_task("daily", "0 11 * * *", job, on_error=lambda e, name: errors.append((str(e), name)))

        with pytest.raises(RuntimeError):
            scheduler.run_task_now("daily")
        assert errors == [("scrape failed", "daily")]

    def test_scheduled_run_swallows_after_callback(self, scheduler):
        """The cron path must not propagate into APScheduler's worker."""
        errors = []

        def job():
            raise RuntimeError("boom")

        scheduler.add_task("daily", "0 11 * * *", job, on_error=lambda e, name: errors.append(name))
        assert scheduler._execute("daily") is None
        assert errors == ["daily"]

    def test_failing_callback_is_contained(self, scheduler):
        def job():
            raise RuntimeError("boom")

        def callback(error, name):
            raise ValueError("slack down")

        scheduler.add_task("daily", "0 11 * * *", job, on_error=callback)
        with pytest.raises(RuntimeError):
            scheduler.run_task_now("daily")
