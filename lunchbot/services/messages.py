"""Slack message payloads (text + Block Kit) for the lunch bot."""
from datetime import datetime
from typing import Dict, List, Optional

from lunchbot.models import DailyRecord, WeatherContext

PREVIEW_ACTION = "preview_alternative_menu"
CONFIRM_ACTION = "confirm_alternative_menu"
INSTANT_ACTION = "instant_alternative_menu"
REROLL_ACTION = "reroll_alternative_menu"
CANCEL_ACTION = "cancel_alternative_menu"
RESET_ACTION = "reset_menu_usage"

WEEKDAY_NAMES = ["월요일", "화요일", "수요일", "목요일", "금요일", "토요일", "일요일"]

PERSISTENCE_WARNING = "⚠️ 선택 내용을 디스크에 저장하지 못했습니다. 봇이 재시작되면 사라질 수 있습니다."


def _section(text: str) -> Dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _context(text: str) -> Dict:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def _button(text: str, action_id: str, value: str, style: Optional[str] = None) -> Dict:
    button = {
        "type": "button",
        "text": {"type": "plain_text", "text": text, "emoji": True},
        "action_id": action_id,
        "value": value,
    }
    if style:
        button["style"] = style
    return button


def _weather_line(weather: Optional[WeatherContext]) -> str:
    if weather and weather.indoor_only and weather.reason:
        return f"\n{weather.reason}\n🏠 실내 메뉴 중에서 골랐어요."
    return ""


def _with_warning(message: Dict, persisted: bool) -> Dict:
    if not persisted:
        message["blocks"].append(_context(PERSISTENCE_WARNING))
    return message


def ephemeral(text: str) -> Dict:
    return {
        "text": text,
        "blocks": [_section(text)],
        "replace_original": False,
        "response_type": "ephemeral",
    }


def daily_menu_comment(now: datetime, reference_url: Optional[str] = None) -> str:
    """Caption for the scheduled menu image upload."""
    text = (
        f"🍽️ *오늘의 점심메뉴입니다!*\n\n"
        f"📅 {now:%Y-%m-%d} ({WEEKDAY_NAMES[now.weekday()]})\n"
        f"🍚 맛있는 식사 되세요! 🥢"
    )
    if reference_url:
        text += f"\n\n🔗 *참조 사이트:* <{reference_url}|카카오톡 플러스친구 페이지>"
    return text


def daily_menu_actions(date_key: str) -> Dict:
    """Follow-up message with the alternate-menu buttons."""
    text = "🤔 오늘 메뉴가 마음에 들지 않나요?"
    return {
        "text": text,
        "blocks": [
            _section(f"{text}\n대체 메뉴는 하루에 한 번만 정할 수 있어요."),
            {
                "type": "actions",
                "elements": [
                    _button("🎲 대체 메뉴 미리보기", PREVIEW_ACTION, date_key, "primary"),
                    _button("⚡ 그냥 아무거나 골라줘", INSTANT_ACTION, date_key),
                    _button("🔄 초기화 (관리자)", RESET_ACTION, date_key, "danger"),
                ],
            },
        ],
    }


def preview_message(record: DailyRecord, persisted: bool = True) -> Dict:
    text = f"👀 *대체 메뉴 후보*\n\n🍽️ *{record.selected_menu}*{_weather_line(record.weather_context)}"
    message = {
        "text": f"대체 메뉴 후보: {record.selected_menu}",
        "blocks": [
            _section(text),
            _context("이 후보는 나에게만 보입니다. 확정하면 채널에 공개돼요."),
            {
                "type": "actions",
                "elements": [_button("✅ 이 메뉴로 확정", CONFIRM_ACTION, record.date, "primary")],
            },
        ],
        "replace_original": False,
        "response_type": "ephemeral",
    }
    return _with_warning(message, persisted)


def confirmed_message(record: DailyRecord, actor_id: Optional[str], rerolled: bool = False,
                      persisted: bool = True) -> Dict:
    title = "🔁 *대체 메뉴가 다시 선택되었습니다!*" if rerolled else "🎲 *오늘의 대체 메뉴가 선택되었습니다!*"
    actor = f"<@{actor_id}>" if actor_id else "누군가"
    message = {
        "text": f"오늘의 대체 메뉴: {record.selected_menu}",
        "blocks": [
            _section(
                f"{title}\n\n🍽️ *{record.selected_menu}*"
                f"{_weather_line(record.weather_context)}\n\n맛있는 식사 되세요! 😋"
            ),
            _context(f"💡 {record.date} | {actor} 님이 선택했어요"),
            {
                "type": "actions",
                "elements": [
                    _button("🔁 다시 뽑기", REROLL_ACTION, record.date),
                    _button("↩️ 확정 취소", CANCEL_ACTION, record.date),
                ],
            },
        ],
        "replace_original": False,
        "response_type": "in_channel",
    }
    return _with_warning(message, persisted)


def cancelled_message(record: DailyRecord, actor_id: Optional[str], persisted: bool = True) -> Dict:
    text = (
        f"↩️ *대체 메뉴 확정이 취소되었습니다.*\n\n"
        f"<@{actor_id}> 님이 확정을 취소했어요. 후보 *{record.selected_menu}* 은(는) 그대로 남아 있습니다."
    )
    message = {
        "text": "대체 메뉴 확정이 취소되었습니다.",
        "blocks": [_section(text)],
        "replace_original": False,
        "response_type": "in_channel",
    }
    return _with_warning(message, persisted)


def reset_message(date_key: str, actor_id: Optional[str], persisted: bool = True) -> Dict:
    text = (
        f"✅ *메뉴 선택이 초기화되었습니다!*\n\n"
        f"{date_key} 기록이 삭제되었습니다. 다시 메뉴를 고를 수 있어요! 🎲"
    )
    message = {
        "text": "메뉴 선택이 초기화되었습니다.",
        "blocks": [_section(text), _context(f"💡 <@{actor_id}> 님이 초기화했어요")],
        "replace_original": False,
        "response_type": "in_channel",
    }
    return _with_warning(message, persisted)


def already_confirmed_message(record: DailyRecord) -> Dict:
    return ephemeral(
        f"⏰ *오늘은 이미 메뉴가 정해졌습니다!*\n\n"
        f"오늘의 메뉴: *{record.selected_menu}*\n"
        f"메뉴 확정은 하루에 한 번만 가능합니다. 내일 다시 시도해주세요! 😊"
    )


def no_preview_message() -> Dict:
    return ephemeral("🤷 아직 미리본 대체 메뉴가 없습니다. 먼저 *대체 메뉴 미리보기* 를 눌러주세요.")


def nothing_to_clear_message() -> Dict:
    return ephemeral("ℹ️ *초기화할 데이터가 없습니다.*\n\n오늘은 아직 메뉴가 선택되지 않았습니다.")


def not_admin_message() -> Dict:
    return ephemeral("🔒 초기화는 관리자만 할 수 있습니다.")


def error_message() -> Dict:
    return ephemeral("❌ 메뉴 처리 중 오류가 발생했습니다. 다시 시도해주세요.")


def failure_notice(now: datetime, error: Exception) -> str:
    return (
        f"❌ *오늘의 점심메뉴 가져오기 실패*\n\n"
        f"🕒 실패 시간: {now:%Y-%m-%d %H:%M:%S}\n"
        f"📝 오류 내용: {error}\n\n"
        f"😔 죄송합니다. 점심메뉴를 확인할 수 없습니다."
    )


def task_error_notice(task_name: str, now: datetime, error: Exception) -> str:
    return (
        f"🚨 *스케줄 작업 실패 알림*\n\n"
        f"📋 작업명: {task_name}\n"
        f"🕒 실패 시간: {now:%Y-%m-%d %H:%M:%S}\n"
        f"📝 오류 내용: {error}"
    )


def startup_notice(now: datetime, schedule_cron: str, page_url: Optional[str]) -> str:
    return (
        f"🚀 *점심메뉴 봇이 시작되었습니다!*\n\n"
        f"📅 시작시간: {now:%Y-%m-%d %H:%M:%S}\n"
        f"⏰ 스케줄: `{schedule_cron}`\n"
        f"🔗 모니터링 대상: {page_url}\n\n"
        f"✨ 맛있는 점심시간을 기대해주세요!"
    )


def record_summary(records: List[DailyRecord]) -> List[Dict]:
    return [
        {
            "date": r.date,
            "state": r.state.value,
            "selected_menu": r.selected_menu,
            "first_actor_id": r.first_actor_id,
            "first_actor_timestamp": r.first_actor_timestamp,
        }
        for r in records
    ]
