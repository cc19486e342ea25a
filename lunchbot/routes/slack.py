"""
Slack Interactive Components endpoint.

Slack expects an answer within 3 seconds, so the request is acknowledged right
away and the menu selection runs as a background task.
"""
import hashlib
import hmac
import json
import logging
import time
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import Response

from lunchbot.services.interactions import parse_button_press

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/slack", tags=["slack"])

MAX_REQUEST_AGE_SECONDS = 60 * 5


def verify_slack_signature(
    signing_secret: str,
    body: bytes,
    timestamp: Optional[str],
    signature: Optional[str],
    now: Optional[float] = None,
) -> bool:
    """Check the v0 HMAC-SHA256 signature Slack puts on every request."""
    if not timestamp or not signature:
        return False
    try:
        request_time = int(timestamp)
    except ValueError:
        return False

    current = time.time() if now is None else now
    if abs(current - request_time) > MAX_REQUEST_AGE_SECONDS:
        return False

    basestring = b"v0:" + timestamp.encode() + b":" + body
    expected = "v0=" + hmac.new(signing_secret.encode(), basestring, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


@router.post("/interactions")
async def slack_interactions(request: Request, background_tasks: BackgroundTasks):
    """Receive a button press, acknowledge, then handle it in the background."""
    bot = request.app.state.bot
    body = await request.body()

    secret = bot.settings.slack_signing_secret
    if secret and not verify_slack_signature(
        secret,
        body,
        request.headers.get("X-Slack-Request-Timestamp"),
        request.headers.get("X-Slack-Signature"),
    ):
        logger.warning("Rejected Slack interaction with a bad signature")
        raise HTTPException(status_code=401, detail="Invalid signature")

    form = await request.form()
    try:
        payload = json.loads(form.get("payload") or "")
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")

    press = parse_button_press(payload)
    logger.info(
        f"Received Slack interaction: type={payload.get('type')} "
        f"user={press.user_id if press else None} action={press.action_id if press else None}"
    )
    if press is not None:
        background_tasks.add_task(bot.interactions.handle, press)

    return Response(status_code=200)
