import argparse

from loguru import logger

from src.config import get_settings
from src.db.database import get_session_factory, init_db
from src.db.repositories import DataManager
from src.scheduler.runner import create_scheduler

settings = get_settings()


def init_database():
    """Create the database tables."""
    init_db()


def advance_rotation(channel: str) -> bool:
    """Advance a channel's rotation now and post the reminder."""
    init_db()
    data_manager = DataManager(get_session_factory())

    with data_manager.session() as stores:
        found = stores.channels.get_by_external_id(channel)
    if found is None:
        logger.error(f"Unknown channel: {channel}")
        return False

    scheduler = create_scheduler(data_manager)
    sent = scheduler.notify_channel(found.id)
    logger.info(f"Result: {'sent' if sent else 'failed'}")
    return sent


def main():
    parser = argparse.ArgumentParser(description="Slack Rotation Bot CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # serve command
    subparsers.add_parser("serve", help="Start API server and scheduler")

    # next command
    next_parser = subparsers.add_parser("next", help="Advance rotation and notify now")
    next_parser.add_argument("--channel", "-c", required=True, help="Slack channel id")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "src.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    elif args.command == "next":
        if not advance_rotation(args.channel):
            raise SystemExit(1)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
