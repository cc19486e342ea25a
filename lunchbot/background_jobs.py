"""
Background job scheduler for periodic tasks.
Uses APScheduler for running cron-style jobs like the daily menu post.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[Exception, str], Any]


@dataclass
class ScheduledTask:
    name: str
    cron_expression: str
    timezone: str
    func: Callable[[], Any]
    on_error: Optional[ErrorCallback] = None
    is_running: bool = False


class TaskScheduler:
    """Named cron tasks on top of a BackgroundScheduler.

    Tasks are registered paused and only fire after start_task/start_all_tasks.
    """

    def __init__(self, timezone: str = "Asia/Seoul", scheduler: Optional[BackgroundScheduler] = None):
        self.timezone = timezone
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone)
        self.tasks: Dict[str, ScheduledTask] = {}

    def _get(self, name: str) -> ScheduledTask:
        task = self.tasks.get(name)
        if task is None:
            raise KeyError(f"Task '{name}' not found")
        return task

    def _execute(self, name: str, reraise: bool = False):
        """Run a task, timing it and routing failures to its error callback."""
        task = self._get(name)
        logger.info(f"Starting scheduled task: {name}")
        started = time.monotonic()
        try:
            result = task.func()
        except Exception as e:
            logger.exception(f"Task '{name}' failed: {e}")
            if task.on_error is not None:
                try:
                    task.on_error(e, name)
                except Exception:
                    logger.exception(f"Error callback failed for task '{name}'")
            if reraise:
                raise
            return None

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(f"Task '{name}' completed successfully in {duration_ms}ms")
        return result

    def add_task(
        self,
        name: str,
        cron_expression: str,
        func: Callable[[], Any],
        on_error: Optional[ErrorCallback] = None,
        timezone: Optional[str] = None,
    ) -> ScheduledTask:
        """
        Register a cron task in the paused state.

        Args:
            name: Unique task name, also the APScheduler job id
            cron_expression: Standard 5-field crontab expression
            func: Zero-argument callable to run
            on_error: Called as on_error(exception, name) when func raises
            timezone: Overrides the scheduler timezone for this task

        Raises:
            ValueError: invalid cron expression or duplicate name
        """
        if name in self.tasks:
            raise ValueError(f"Task '{name}' already registered")

        tz = timezone or self.timezone
        try:
            trigger = CronTrigger.from_crontab(cron_expression, timezone=tz)
        except ValueError as e:
            raise ValueError(f"Invalid cron expression: {cron_expression}") from e

        task = ScheduledTask(
            name=name,
            cron_expression=cron_expression,
            timezone=tz,
            func=func,
            on_error=on_error,
        )
        self.tasks[name] = task
        self.scheduler.add_job(
            func=self._execute,
            trigger=trigger,
            args=[name],
            id=name,
            name=name,
            replace_existing=True,
            next_run_time=None,
        )
        logger.info(f"Task '{name}' registered with schedule: {cron_expression} ({tz})")
        return task

    def start_task(self, name: str) -> None:
        task = self._get(name)
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Background job scheduler started")
        self.scheduler.resume_job(name)
        task.is_running = True
        logger.info(f"Task '{name}' started")

    def stop_task(self, name: str) -> None:
        task = self._get(name)
        self.scheduler.pause_job(name)
        task.is_running = False
        logger.info(f"Task '{name}' stopped")

    def start_all_tasks(self) -> None:
        for name, task in self.tasks.items():
            if not task.is_running:
                self.start_task(name)
        logger.info("All tasks started")

    def stop_all_tasks(self) -> None:
        for name, task in self.tasks.items():
            if task.is_running:
                self.stop_task(name)
        logger.info("All tasks stopped")

    def remove_task(self, name: str) -> None:
        self._get(name)
        self.scheduler.remove_job(name)
        del self.tasks[name]
        logger.info(f"Task '{name}' removed")

    def run_task_now(self, name: str):
        """Run a task immediately in the calling thread. Failures are re-raised."""
        logger.info(f"Running task '{name}' immediately")
        return self._execute(name, reraise=True)

    def get_task_status(self, name: str) -> Optional[Dict[str, Any]]:
        task = self.tasks.get(name)
        if task is None:
            return None

        job = self.scheduler.get_job(name)
        next_run = getattr(job, "next_run_time", None) if job else None
        return {
            "name": task.name,
            "cron_expression": task.cron_expression,
            "timezone": task.timezone,
            "is_running": task.is_running,
            "next_run_time": next_run.isoformat() if next_run else None,
        }

    def get_all_tasks_status(self) -> List[Dict[str, Any]]:
        return [self.get_task_status(name) for name in self.tasks]

    def shutdown(self) -> None:
        """Stop the background job scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Background job scheduler stopped")
        for task in self.tasks.values():
            task.is_running = False
