"""
LunchBot wires the collaborators together:
scraper -> Slack upload on a schedule, and the selection service behind the buttons.
"""
import logging
from typing import Dict, Optional

from lunchbot.background_jobs import TaskScheduler
from lunchbot.config import Settings, local_now, local_today, today_key
from lunchbot.services import messages
from lunchbot.services.interactions import InteractionHandler
from lunchbot.services.menu_scraper import KakaoMenuScraper
from lunchbot.services.menu_selection import MenuSelectionService
from lunchbot.services.menu_supplier import build_menu_supplier
from lunchbot.services.slack_client import SlackApiError, SlackClient
from lunchbot.services.state_store import DailyStateStore
from lunchbot.services.weather import OpenMeteoWeatherSource

logger = logging.getLogger(__name__)

DAILY_TASK_NAME = "daily-lunch-menu"


class LunchBot:
    def __init__(
        self,
        settings: Settings,
        slack_client: Optional[SlackClient] = None,
        scraper: Optional[KakaoMenuScraper] = None,
        scheduler: Optional[TaskScheduler] = None,
        store: Optional[DailyStateStore] = None,
        menu_supplier=None,
    ):
        self.settings = settings
        self.slack = slack_client or SlackClient(settings.slack_bot_token or "")
        self.scraper = scraper or KakaoMenuScraper()
        self.scheduler = scheduler or TaskScheduler(timezone=settings.app_timezone)
        self.store = store or DailyStateStore(
            settings.state_file, today=lambda: local_today(settings)
        )
        self.store.load()
        self.selection = MenuSelectionService(self.store)

        if menu_supplier is None:
            weather = OpenMeteoWeatherSource(
                latitude=settings.weather_latitude,
                longitude=settings.weather_longitude,
                timezone=settings.app_timezone,
                cold_threshold=settings.cold_threshold,
            )
            menu_supplier = build_menu_supplier(settings, weather)
        self.menu_supplier = menu_supplier

        self.interactions = InteractionHandler(
            selection=self.selection,
            menu_supplier=self.menu_supplier,
            responder=self.slack,
            today=lambda: today_key(settings),
            is_admin=settings.is_admin,
        )
        self.is_running = False
        self._initialized = False

    def initialize(self) -> None:
        """
        Validate config, check Slack, register the daily task.

        Raises:
            RuntimeError: required environment variables are missing
            SlackApiError: the bot token is rejected
        """
        if self._initialized:
            return

        missing = self.settings.missing_required()
        if missing:
            raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

        logger.info("Initializing lunch menu bot...")
        info = self.slack.test_connection()
        logger.info(f"Connected to Slack team: {info.get('team')}")

        self.scheduler.add_task(
            DAILY_TASK_NAME,
            self.settings.schedule_cron,
            self.publish_daily_menu,
            on_error=self.handle_task_error,
            timezone=self.settings.app_timezone,
        )
        self._initialized = True
        logger.info("Bot initialized successfully")

    def send_startup_notification(self) -> None:
        try:
            self.slack.send_message(
                self.settings.slack_startup_channel_id,
                messages.startup_notice(
                    local_now(self.settings),
                    self.settings.schedule_cron,
                    self.settings.kakao_plus_friend_url,
                ),
            )
            logger.info("Startup notification sent to Slack")
        except SlackApiError as e:
            logger.error(f"Failed to send startup notification: {e}")

    def publish_daily_menu(self) -> Dict:
        """Scrape today's menu image and post it with the alternate-menu buttons."""
        channel = self.settings.slack_lunch_channel_id
        now = local_now(self.settings)
        try:
            image = self.scraper.fetch_menu_image(self.settings.kakao_plus_friend_url)
            upload = self.slack.upload_image(
                channel,
                image.content,
                f"lunch_menu_{now:%Y-%m-%d}.{image.extension}",
                messages.daily_menu_comment(now, self.settings.kakao_plus_friend_url),
            )
            actions = messages.daily_menu_actions(now.date().isoformat())
            self.slack.send_message(channel, actions["text"], actions["blocks"])
        except Exception as e:
            logger.error(f"Daily menu publish failed: {e}")
            try:
                self.slack.send_message(channel, messages.failure_notice(now, e))
            except SlackApiError as slack_error:
                logger.error(f"Failed to send failure notice to Slack: {slack_error}")
            raise

        logger.info(f"Daily menu published. File ID: {upload['file_id']}")
        return {
            "success": True,
            "timestamp": now.isoformat(),
            "file_id": upload["file_id"],
            "permalink": upload.get("permalink"),
        }

    def handle_task_error(self, error: Exception, task_name: str) -> None:
        logger.error(f"Task error handler called for '{task_name}': {error}")
        try:
            self.slack.send_message(
                self.settings.slack_channel_id,
                messages.task_error_notice(task_name, local_now(self.settings), error),
            )
        except SlackApiError as e:
            logger.error(f"Failed to send task error notification to Slack: {e}")

    def start(self) -> None:
        self.initialize()
        self.send_startup_notification()
        logger.info(f"Starting scheduled tasks with cron: {self.settings.schedule_cron}")
        self.scheduler.start_all_tasks()
        self.is_running = True
        status = self.scheduler.get_task_status(DAILY_TASK_NAME)
        logger.info(f"Lunch menu bot started, next run at {status['next_run_time']}")

    def stop(self) -> None:
        logger.info("Stopping lunch menu bot...")
        self.scheduler.stop_all_tasks()
        self.scheduler.shutdown()
        self.is_running = False
        logger.info("Bot stopped")

    def run_now(self) -> Dict:
        """Publish today's menu immediately (manual trigger)."""
        self.initialize()
        logger.info("Running daily menu publish immediately...")
        return self.scheduler.run_task_now(DAILY_TASK_NAME)

    def get_status(self) -> Dict:
        return {
            "is_running": self.is_running,
            "scheduled_tasks": self.scheduler.get_all_tasks_status(),
            "config": {
                "schedule": self.settings.schedule_cron,
                "timezone": self.settings.app_timezone,
                "kakao_url": self.settings.kakao_plus_friend_url,
                "slack_channel": self.settings.slack_channel_id,
                "weather_enabled": self.settings.weather_enabled,
            },
            "today": today_key(self.settings),
            "records": messages.record_summary(self.store.all_records()),
        }
