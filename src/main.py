from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Header, HTTPException
from loguru import logger

from src.api.router import api_router
from src.commands.handler import CommandHandler
from src.config import get_settings
from src.db.database import get_session_factory, init_db
from src.db.repositories import DataManager
from src.notifications.slack import SlackSender
from src.rotation.engine import RotationEngine
from src.rotation.service import RotationService
from src.scheduler.runner import NotificationScheduler, start_scheduler

settings = get_settings()
scheduler: Optional[NotificationScheduler] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler
    logger.info("Starting up...")
    init_db()

    data_manager = DataManager(get_session_factory())
    sender = SlackSender()
    if not SlackSender.is_configured():
        logger.warning("SLACK_BOT_TOKEN is not set, notifications will fail")

    # Start the notification loop
    scheduler = start_scheduler(data_manager, sender)
    service = RotationService(data_manager, RotationEngine(data_manager), sender, scheduler)
    app.state.command_handler = CommandHandler(service, settings.timezone)

    yield

    # Stop the notification loop
    if scheduler:
        scheduler.stop()
    logger.info("Shutting down...")


# Disable interactive docs in production
docs_url = None if settings.is_production else "/docs"
redoc_url = None if settings.is_production else "/redoc"

app = FastAPI(
    title="Slack Rotation Bot",
    description="Rotates a duty role among channel members and posts daily reminders",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url,
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/admin/status")
async def admin_status(x_admin_key: str = Header(None)):
    # Require admin key in production
    if settings.is_production:
        if not settings.admin_api_key:
            raise HTTPException(status_code=503, detail="Admin API not configured")
        if x_admin_key != settings.admin_api_key:
            raise HTTPException(status_code=401, detail="Invalid admin key")

    next_batch = None
    if scheduler and scheduler.next_batch:
        next_batch = {
            "at": scheduler.next_batch.at.isoformat(),
            "channel_ids": scheduler.next_batch.channel_ids,
        }

    return {
        "scheduler_running": scheduler is not None and scheduler.running,
        "scheduler_state": scheduler.state.value if scheduler else "stopped",
        "next_notification": next_batch,
    }
