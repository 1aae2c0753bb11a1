"""Entry point for taskboard.

This module allows running taskboard as a module:
    python -m taskboard PROJECT_ID

Or as an installed command:
    taskboard PROJECT_ID [--demo]
"""

import argparse
import asyncio
import sys
from typing import Optional

from taskboard.logging_config import setup_logging, get_logger

# Initialize logger for this module
logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskboard",
        description="Kanban board for one project with automatic completion.",
    )
    parser.add_argument("project_id", metavar="PROJECT_ID", help="project to open")
    parser.add_argument(
        "--demo",
        action="store_true",
        help="use an in-memory database seeded with demo data",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="also log to the Textual devtools console",
    )
    return parser


async def create_backend(config, demo: bool = False):
    """
    Build the backend selected by configuration.

    Args:
        config: Loaded Config
        demo: Force an in-memory local backend seeded with demo data

    Returns:
        A ready Backend
    """
    from taskboard.config import DEFAULT_DATABASE_URL
    from taskboard.database import init_database
    from taskboard.demo_data import seed_demo_data
    from taskboard.services.local_backend import LocalBackend
    from taskboard.services.rest_backend import RestBackend

    if demo:
        db_manager = await init_database(DEFAULT_DATABASE_URL)
        await seed_demo_data(db_manager)
        return LocalBackend(db_manager)

    backend_config = config.get_backend_config()
    if backend_config["mode"] == "local":
        db_manager = await init_database(backend_config["database_url"])
        return LocalBackend(db_manager)
    if backend_config["mode"] != "rest":
        raise ValueError(f"Unknown backend mode: {backend_config['mode']}")
    return RestBackend.from_config(config.get_api_config())


async def run_board(project_id: str, demo: bool = False) -> None:
    """Run the board app on the current event loop."""
    from taskboard.config import Config
    from taskboard.services.animation import CompletionAnimation
    from taskboard.services.project_detail import ProjectDetailStore
    from taskboard.ui.app import BoardApp

    config = Config()
    backend = await create_backend(config, demo=demo)
    animation = CompletionAnimation("project", config.get_animation_config()["project"])
    try:
        store = ProjectDetailStore(backend, project_id, animation=animation)
        await BoardApp(store).run_async()
    finally:
        await backend.close()


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point for taskboard.

    Args:
        args: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]
    options = build_parser().parse_args(args)

    # Initialize logging before any other operations
    setup_logging(log_level=options.log_level, use_textual_handler=options.dev)

    try:
        asyncio.run(run_board(options.project_id, demo=options.demo))
        logger.info("taskboard exited normally")
        return 0
    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        logger.info("taskboard closed by user (Ctrl+C)")
        return 0
    except Exception:
        logger.error("Error running taskboard", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
