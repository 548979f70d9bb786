"""
API server.

Builds the aiohttp application around a CourseContractService and runs it.
"""

from aiohttp import web
from loguru import logger

from coursechain.config.settings import Settings, settings
from coursechain.services.blockchain.service_facade import CourseContractService
from coursechain.services.blockchain.singleton import (
    init_course_service,
    reset_course_service,
)
from coursechain.utils.logging import setup_logging

from .keys import SERVICE_KEY
from .routes import routes
from .websocket import websocket_handler


async def _on_shutdown(app: web.Application) -> None:
    service = app[SERVICE_KEY]
    logger.info("Shutting down course contract API...")
    service.stop_listening()
    await service.close()
    logger.info("Course contract API stopped")


def create_app(service: CourseContractService) -> web.Application:
    """
    Create the aiohttp application.

    Args:
        service: Course contract service used by every handler

    Returns:
        Configured application; shutting it down stops event listeners
        and closes the service
    """
    app = web.Application()
    app[SERVICE_KEY] = service
    app.add_routes(routes)
    app.router.add_get("/ws", websocket_handler)
    app.on_shutdown.append(_on_shutdown)
    return app


async def _build_app(settings: Settings) -> web.Application:
    # Built inside the running loop so the RPC session binds to it
    service = init_course_service(settings)
    app = create_app(service)

    async def _forget_singleton(app: web.Application) -> None:
        reset_course_service()

    app.on_cleanup.append(_forget_singleton)
    return app


def main() -> None:
    """Run the API server with settings from the environment."""
    setup_logging(settings)
    logger.info(
        f"Starting course contract API on {settings.api_host}:{settings.api_port}"
    )
    logger.info(f"  - Docs: http://{settings.api_host}:{settings.api_port}/api/docs")
    logger.info(f"  - Health: http://{settings.api_host}:{settings.api_port}/health")

    web.run_app(
        _build_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        print=None,
    )


if __name__ == "__main__":
    main()
