from __future__ import annotations

import hashlib
import hmac
import time
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from starlette.concurrency import run_in_threadpool

from src.commands.handler import CommandHandler, error_response
from src.config import Settings, get_settings

router = APIRouter(prefix="/slack", tags=["slack"])

MAX_REQUEST_AGE = 60 * 5  # seconds


def verify_slack_signature(
    signing_secret: str, timestamp: str, body: bytes, signature: str
) -> bool:
    """Check a Slack ``v0`` request signature and reject stale timestamps."""
    try:
        ts = int(timestamp)
    except (TypeError, ValueError):
        return False
    if abs(time.time() - ts) > MAX_REQUEST_AGE:
        return False

    base = f"v0:{ts}:".encode() + body
    expected = "v0=" + hmac.new(signing_secret.encode(), base, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature or "")


def get_command_handler(request: Request) -> CommandHandler:
    return request.app.state.command_handler


@router.post("/commands")
async def slash_command(
    request: Request,
    handler: CommandHandler = Depends(get_command_handler),
    settings: Settings = Depends(get_settings),
):
    body = await request.body()

    if not settings.slack_signing_secret:
        raise HTTPException(status_code=503, detail="Slack signing secret not configured")
    if not verify_slack_signature(
        settings.slack_signing_secret,
        request.headers.get("X-Slack-Request-Timestamp", ""),
        body,
        request.headers.get("X-Slack-Signature", ""),
    ):
        logger.warning("Rejected slash command with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        form = {k: v[0] for k, v in parse_qs(body.decode("utf-8")).items()}
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Request body is not valid UTF-8")
    logger.info(
        f"Received command: {form.get('command', '')} {form.get('text', '')} "
        f"from user: {form.get('user_id', '')} in channel: {form.get('channel_id', '')}"
    )
    if not form.get("channel_id"):
        raise HTTPException(status_code=400, detail="channel_id is required")

    try:
        return await run_in_threadpool(
            handler.handle,
            form.get("text", ""),
            form["channel_id"],
            form.get("channel_name", ""),
            form.get("team_id", ""),
        )
    except Exception as e:
        logger.error(f"Error handling slash command: {e}")
        return error_response("Something went wrong, please try again")
