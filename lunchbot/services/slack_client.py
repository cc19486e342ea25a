"""
Slack Web API client over requests.
Covers only the calls the bot makes: auth.test, chat.postMessage,
the external file upload flow and interaction response URLs.
"""
import logging
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

SLACK_API_URL = "https://slack.com/api"


class SlackApiError(Exception):
    """Slack answered with ok: false, or the HTTP call failed."""

    def __init__(self, method: str, error: str):
        self.method = method
        self.error = error
        super().__init__(f"Slack {method} failed: {error}")


class SlackClient:
    def __init__(
        self,
        bot_token: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ):
        self.bot_token = bot_token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method: str, json: Optional[Dict] = None, data: Optional[Dict] = None) -> Dict:
        headers = {"Authorization": f"Bearer {self.bot_token}"}
        try:
            if json is not None:
                response = self.session.post(
                    f"{SLACK_API_URL}/{method}", json=json, headers=headers, timeout=self.timeout
                )
            else:
                response = self.session.post(
                    f"{SLACK_API_URL}/{method}", data=data or {}, headers=headers, timeout=self.timeout
                )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise SlackApiError(method, str(e)) from e

        if not body.get("ok"):
            raise SlackApiError(method, body.get("error", "unknown_error"))
        return body

    def test_connection(self) -> Dict:
        """Verify the bot token. Returns team/user info."""
        body = self._call("auth.test", data={})
        logger.info(f"Slack auth ok: team={body.get('team')} user={body.get('user')}")
        return {"team": body.get("team"), "user": body.get("user"), "bot_id": body.get("bot_id")}

    def send_message(self, channel_id: str, text: str, blocks: Optional[List[Dict]] = None) -> Dict:
        payload = {
            "channel": channel_id,
            "text": text,
            "blocks": blocks or [{"type": "section", "text": {"type": "mrkdwn", "text": text}}],
        }
        body = self._call("chat.postMessage", json=payload)
        logger.info(f"Message sent to Slack channel {channel_id}")
        return {"ts": body.get("ts"), "channel": body.get("channel")}

    def upload_image(
        self,
        channel_id: str,
        content: bytes,
        filename: str,
        initial_comment: str = "",
        title: str = "오늘의 점심메뉴",
    ) -> Dict:
        """
        Upload an image and share it in a channel.

        Uses the external upload flow:
        1. files.getUploadURLExternal => upload_url, file_id
        2. POST the bytes to upload_url
        3. files.completeUploadExternal shares it with an initial comment

        Returns:
            Dict with file_id and permalink
        """
        ticket = self._call(
            "files.getUploadURLExternal",
            data={"filename": filename, "length": str(len(content))},
        )

        try:
            response = self.session.post(
                ticket["upload_url"],
                files={"file": (filename, content)},
                timeout=self.timeout * 3,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise SlackApiError("upload", str(e)) from e

        completed = self._call(
            "files.completeUploadExternal",
            json={
                "files": [{"id": ticket["file_id"], "title": title}],
                "channel_id": channel_id,
                "initial_comment": initial_comment,
            },
        )
        files = completed.get("files") or [{}]
        logger.info(f"Image uploaded to Slack channel {channel_id}: {ticket['file_id']}")
        return {"file_id": ticket["file_id"], "permalink": files[0].get("permalink")}

    def respond(self, response_url: str, message: Dict) -> None:
        """Post to an interaction response_url (public or ephemeral per message)."""
        try:
            response = self.session.post(response_url, json=message, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SlackApiError("response_url", str(e)) from e
