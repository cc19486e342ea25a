"""
Slack button-press handling.

Maps each action id onto a MenuSelectionService operation and posts the
outcome to the interaction's response_url: public for decisions the whole
channel should see, ephemeral (actor-only) for previews and refusals.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from lunchbot.exceptions import AlreadyConfirmed, NoPreview, SupplierFailure
from lunchbot.services import messages
from lunchbot.services.menu_selection import MenuSelectionService, MenuSupplier
from lunchbot.services.slack_client import SlackApiError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ButtonPress:
    action_id: str
    user_id: str
    user_name: Optional[str]
    response_url: str


def parse_button_press(payload: Dict) -> Optional[ButtonPress]:
    """Extract the first action of a block_actions payload, or None for anything else."""
    if payload.get("type") != "block_actions":
        return None
    actions = payload.get("actions") or []
    user = payload.get("user") or {}
    if not actions or not user.get("id") or not payload.get("response_url"):
        return None

    action = actions[0]
    return ButtonPress(
        action_id=action.get("action_id", ""),
        user_id=user["id"],
        user_name=user.get("name") or user.get("username"),
        response_url=payload["response_url"],
    )


class InteractionHandler:
    def __init__(
        self,
        selection: MenuSelectionService,
        menu_supplier: MenuSupplier,
        responder,
        today: Callable[[], str],
        is_admin: Callable[[str], bool] = lambda user_id: True,
    ):
        self.selection = selection
        self.menu_supplier = menu_supplier
        self.responder = responder
        self._today = today
        self._is_admin = is_admin
        self._handlers = {
            messages.PREVIEW_ACTION: self._preview,
            messages.CONFIRM_ACTION: self._confirm,
            messages.INSTANT_ACTION: self._instant,
            messages.REROLL_ACTION: self._reroll,
            messages.CANCEL_ACTION: self._cancel,
            messages.RESET_ACTION: self._reset,
        }

    def handle(self, press: ButtonPress) -> None:
        """Run the action and publish its result. Never raises."""
        handler = self._handlers.get(press.action_id)
        if handler is None:
            logger.info(f"Ignoring unknown action {press.action_id!r} from {press.user_id}")
            return

        date_key = self._today()
        try:
            message = handler(press, date_key)
        except AlreadyConfirmed as e:
            logger.info(
                f"User {press.user_id} tried {press.action_id} but {date_key} "
                f"was already confirmed by {e.record.first_actor_id}"
            )
            message = messages.already_confirmed_message(e.record)
        except NoPreview:
            logger.info(f"User {press.user_id} tried to confirm {date_key} without a preview")
            message = messages.no_preview_message()
        except SupplierFailure as e:
            logger.error(f"Menu supplier failed for {press.action_id} on {date_key}: {e}")
            message = messages.error_message()
        except Exception:
            logger.exception(f"Error handling {press.action_id} for {press.user_id}")
            message = messages.error_message()

        try:
            self.responder.respond(press.response_url, message)
        except SlackApiError as e:
            logger.error(f"Could not deliver {press.action_id} result to {press.user_id}: {e}")

    def _preview(self, press: ButtonPress, date_key: str) -> Dict:
        outcome = self.selection.preview(date_key, self.menu_supplier)
        return messages.preview_message(outcome.record, outcome.persisted)

    def _confirm(self, press: ButtonPress, date_key: str) -> Dict:
        outcome = self.selection.confirm(date_key, actor_id=press.user_id)
        if not outcome.changed:
            return messages.already_confirmed_message(outcome.record)
        return messages.confirmed_message(
            outcome.record, outcome.record.first_actor_id, persisted=outcome.persisted
        )

    def _instant(self, press: ButtonPress, date_key: str) -> Dict:
        outcome = self.selection.instant_select_and_confirm(
            date_key, self.menu_supplier, actor_id=press.user_id
        )
        return messages.confirmed_message(outcome.record, press.user_id, persisted=outcome.persisted)

    def _reroll(self, press: ButtonPress, date_key: str) -> Dict:
        outcome = self.selection.reroll(date_key, self.menu_supplier, actor_id=press.user_id)
        return messages.confirmed_message(
            outcome.record, press.user_id, rerolled=True, persisted=outcome.persisted
        )

    def _cancel(self, press: ButtonPress, date_key: str) -> Dict:
        existed, outcome = self.selection.cancel(date_key)
        if not existed:
            return messages.nothing_to_clear_message()
        return messages.cancelled_message(outcome.record, press.user_id, outcome.persisted)

    def _reset(self, press: ButtonPress, date_key: str) -> Dict:
        if not self._is_admin(press.user_id):
            logger.warning(f"Non-admin user {press.user_id} tried to reset {date_key}")
            return messages.not_admin_message()

        existed, outcome = self.selection.reset_admin(date_key)
        if not existed:
            return messages.nothing_to_clear_message()
        logger.info(f"Usage reset by admin user {press.user_id} ({press.user_name}) for {date_key}")
        return messages.reset_message(date_key, press.user_id, outcome.persisted)
