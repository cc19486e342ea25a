"""Centralized configuration loaded from environment variables (.env supported)."""
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


DEFAULT_ALTERNATIVE_MENUS = [
    "김치찌개",
    "된장찌개",
    "부대찌개",
    "비빔밥",
    "제육볶음",
    "돈까스",
    "불고기",
    "삼겹살",
    "치킨",
    "피자",
    "파스타",
    "햄버거",
    "초밥",
    "라멘",
    "쌀국수",
]

# Menus that do not require walking far from the office
DEFAULT_INDOOR_MENUS = [
    "김치찌개",
    "된장찌개",
    "비빔밥",
    "돈까스",
    "라멘",
]

WEEKDAY_KEYS = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]

REQUIRED_ENV_VARS = (
    "SLACK_BOT_TOKEN",
    "SLACK_CHANNEL_ID",
    "KAKAO_PLUS_FRIEND_URL",
)


def _split_list(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_menu_exclusions(value: Optional[str]) -> Dict[int, Tuple[str, ...]]:
    """Parse ``MON:피자,치킨;FRI:초밥`` into ``{0: ("피자", "치킨"), 4: ("초밥",)}``.

    Keys are ``date.weekday()`` numbers. Unknown day names raise ValueError.
    """
    exclusions: Dict[int, Tuple[str, ...]] = {}
    if not value:
        return exclusions

    for chunk in value.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        day, _, menus = chunk.partition(":")
        day = day.strip().upper()[:3]
        if day not in WEEKDAY_KEYS:
            raise ValueError(f"Unknown weekday in MENU_EXCLUSIONS: {chunk!r}")
        names = tuple(m.strip() for m in menus.split(",") if m.strip())
        weekday = WEEKDAY_KEYS.index(day)
        exclusions[weekday] = exclusions.get(weekday, ()) + names
    return exclusions


@dataclass(frozen=True)
class Settings:
    slack_bot_token: Optional[str] = None
    slack_channel_id: Optional[str] = None
    slack_startup_channel_id: Optional[str] = None
    slack_lunch_channel_id: Optional[str] = None
    slack_signing_secret: Optional[str] = None
    kakao_plus_friend_url: Optional[str] = None
    schedule_cron: str = "0 11 * * 1-5"
    app_timezone: str = "Asia/Seoul"
    log_level: str = "INFO"
    log_dir: str = "logs"
    server_host: str = "0.0.0.0"
    server_port: int = 3000
    state_file: str = os.path.join("data", "usage.json")
    alternative_menus: List[str] = field(default_factory=lambda: list(DEFAULT_ALTERNATIVE_MENUS))
    indoor_menus: List[str] = field(default_factory=lambda: list(DEFAULT_INDOOR_MENUS))
    menu_exclusions: Dict[int, Tuple[str, ...]] = field(default_factory=dict)
    weather_enabled: bool = True
    weather_latitude: float = 37.5665
    weather_longitude: float = 126.9780
    cold_threshold: float = -5.0
    admin_user_ids: Tuple[str, ...] = ()

    def missing_required(self) -> List[str]:
        """Return the names of required environment variables that are unset."""
        values = {
            "SLACK_BOT_TOKEN": self.slack_bot_token,
            "SLACK_CHANNEL_ID": self.slack_channel_id,
            "KAKAO_PLUS_FRIEND_URL": self.kakao_plus_friend_url,
        }
        return [name for name in REQUIRED_ENV_VARS if not values[name]]

    def is_admin(self, user_id: Optional[str]) -> bool:
        """Everyone is an admin unless ADMIN_USER_IDS restricts it."""
        if not self.admin_user_ids:
            return True
        return user_id in self.admin_user_ids


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the process environment (or the given mapping)."""
    env = os.environ if environ is None else environ

    channel_id = env.get("SLACK_CHANNEL_ID")
    admin_ids = tuple(_split_list(env.get("ADMIN_USER_IDS"), []))

    return Settings(
        slack_bot_token=env.get("SLACK_BOT_TOKEN"),
        slack_channel_id=channel_id,
        slack_startup_channel_id=env.get("SLACK_STARTUP_CHANNEL_ID") or channel_id,
        slack_lunch_channel_id=env.get("SLACK_LUNCH_CHANNEL_ID") or channel_id,
        slack_signing_secret=env.get("SLACK_SIGNING_SECRET") or None,
        kakao_plus_friend_url=env.get("KAKAO_PLUS_FRIEND_URL"),
        schedule_cron=env.get("SCHEDULE_CRON", "0 11 * * 1-5"),
        app_timezone=env.get("APP_TIMEZONE", "Asia/Seoul"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        log_dir=env.get("LOG_DIR", "logs"),
        server_host=env.get("SERVER_HOST", "0.0.0.0"),
        server_port=int(env.get("SERVER_PORT", "3000")),
        state_file=env.get("STATE_FILE", os.path.join("data", "usage.json")),
        alternative_menus=_split_list(env.get("ALTERNATIVE_MENUS"), DEFAULT_ALTERNATIVE_MENUS),
        indoor_menus=_split_list(env.get("INDOOR_MENUS"), DEFAULT_INDOOR_MENUS),
        menu_exclusions=parse_menu_exclusions(env.get("MENU_EXCLUSIONS")),
        weather_enabled=env.get("WEATHER_ENABLED", "true").lower() == "true",
        weather_latitude=float(env.get("WEATHER_LATITUDE", "37.5665")),
        weather_longitude=float(env.get("WEATHER_LONGITUDE", "126.9780")),
        cold_threshold=float(env.get("COLD_THRESHOLD", "-5")),
        admin_user_ids=admin_ids,
    )


def get_app_tz(settings: Optional[Settings] = None) -> ZoneInfo:
    """Get the application timezone."""
    name = settings.app_timezone if settings else os.getenv("APP_TIMEZONE", "Asia/Seoul")
    return ZoneInfo(name)


def local_now(settings: Optional[Settings] = None) -> datetime:
    return datetime.now(get_app_tz(settings))


def local_today(settings: Optional[Settings] = None) -> date:
    return local_now(settings).date()


def today_key(settings: Optional[Settings] = None) -> str:
    """Today's date in the app timezone as ``YYYY-MM-DD`` (the state store key)."""
    return local_today(settings).isoformat()
