#!/usr/bin/env python3
"""
Main entry point for URL shortener service.

Concurrency: requests are handled concurrently on one asyncio event loop
(FastAPI + asyncpg connection pool + redis.asyncio). Set WORKERS > 1 for
multi-process scaling across CPU cores (each worker has its own DB pool).

Usage:
    python app.py

Environment variables:
    DATABASE_URL - Store connection URL (postgresql://... or memory://), required
    DATABASE_CREATE_TABLES - Create tables and indexes at startup (default true)
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
    LOG_SERVER_URL - Remote log collector endpoint
    ENVIRONMENT / NODE_ENV - 'production' limits console output to warnings
"""

import asyncio
import logging
import os
import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from config import Config, load_config
from shortener.analytics import AnalyticsRecorder
from shortener.common.log_sink import RemoteLogSink
from shortener.common.logging_config import setup_logging
from shortener.common.url_builder import link_root
from shortener.database import create_database
from shortener.database.cache import RedisCache
from shortener.service import URLShortenerService
from shortener.shortcode import ShortCodeGenerator, ShortcodeAllocator
from web_app import create_app


# Global instances for graceful shutdown and fatal error handling
server_instance: Optional[uvicorn.Server] = None
fatal_error = False


def build_components(config: Config, logger: logging.Logger) -> Tuple[URLShortenerService, AnalyticsRecorder]:
    """Wire the store, cache, allocator, service and analytics recorder from configuration."""
    db = create_database(
        config.database_url,
        pool_max_size=config.database_pool_max_size,
        command_timeout_seconds=config.database_command_timeout,
        create_tables=config.database_create_tables,
        logger=logger.getChild("database"),
    )

    cache = None
    if config.redis_url:
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger.getChild("cache"),
        )

    allocator = ShortcodeAllocator(
        db=db,
        generator=ShortCodeGenerator(default_length=config.short_code_length),
        max_attempts=config.max_collision_retries,
        max_length=config.max_short_code_length,
        logger=logger.getChild("shortcode_generator"),
    )

    service = URLShortenerService(
        db=db,
        allocator=allocator,
        cache=cache,
        base_url=config.base_url,
        path_prefix=config.path_prefix,
        default_validity_minutes=config.default_validity_minutes,
        max_validity_minutes=config.max_validity_minutes,
        max_insert_retries=config.max_collision_retries,
        logger=logger.getChild("url_service"),
    )

    analytics = AnalyticsRecorder(db=db, logger=logger.getChild("analytics_service"))

    return service, analytics


def _handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    """Unhandled errors in background tasks are fatal."""
    global fatal_error
    logger = logging.getLogger("url_shortener.server")
    exception = context.get("exception")
    logger.critical(
        f"Unhandled async error: {context.get('message')}",
        exc_info=(type(exception), exception, exception.__traceback__) if exception else None,
    )
    fatal_error = True
    if server_instance is not None:
        server_instance.should_exit = True
    else:
        # Worker process: let its uvicorn server shut down on the usual signal
        os.kill(os.getpid(), signal.SIGTERM)


def _handle_uncaught_exception(exc_type, exc_value, exc_traceback) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logging.getLogger("url_shortener.server").critical(
        f"Uncaught exception: {exc_value}",
        exc_info=(exc_type, exc_value, exc_traceback),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger
    log_sink = app.state.log_sink

    if log_sink is not None:
        await log_sink.start()

    loop = asyncio.get_running_loop()
    previous_exception_handler = loop.get_exception_handler()
    loop.set_exception_handler(_handle_loop_exception)

    logger.info("Starting URL Shortener Microservice...")

    service, analytics = build_components(config, logger)

    try:
        logger.info("Connecting to database...")
        await service.db.initialize()
    except Exception as e:
        logger.critical(f"Database connection failed: {e}")
        if log_sink is not None:
            await log_sink.stop()
        loop.set_exception_handler(previous_exception_handler)
        raise

    if service.cache is not None:
        await service.cache.connect()
    else:
        logger.info("Redis caching disabled")

    app.state.service = service
    app.state.analytics = analytics

    logger.info(f"Short links served under: {link_root(config.base_url, config.path_prefix)}/")
    logger.info(f"Health check available at: {config.base_url.rstrip('/')}/health")
    logger.info(f"Environment: {config.environment}")
    logger.info("URL Shortener Microservice successfully started")

    yield

    logger.info("Shutting down URL shortener service...")

    await service.close()

    logger.info("Service stopped")

    if log_sink is not None:
        await log_sink.stop(drain_timeout=config.log_server_timeout)

    loop.set_exception_handler(previous_exception_handler)


def build_application(config: Config) -> FastAPI:
    """Configure logging and the remote log sink, then create the app with its lifespan."""
    log_sink = RemoteLogSink(
        url=config.log_server_url,
        timeout=config.log_server_timeout,
        echo_failures=not config.is_production,
    )

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
        environment=config.environment,
        remote_sink=log_sink,
    )
    sys.excepthook = _handle_uncaught_exception

    app = create_app(
        service_instance=None,  # Set in lifespan
        analytics_instance=None,
        config=config,
        log_sink=log_sink,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    return app


def create_worker_app() -> FastAPI:
    """App factory imported by every uvicorn worker process when WORKERS > 1."""
    return build_application(load_config())


def run_workers(config: Config) -> None:
    """Multi-process mode: uvicorn supervises the workers and handles signals."""
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
        environment=config.environment,
    )
    logger.info(f"Starting {config.workers} worker processes on {config.host}:{config.port}")

    uvicorn.run(
        "app:create_worker_app",
        factory=True,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=True,
        proxy_headers=True,
    )


def main():
    """Main entry point."""
    global server_instance

    try:
        config = load_config()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    if config.workers > 1:
        run_workers(config)
        return

    app = build_application(config)
    logger = app.state.logger

    logger.info("URL Shortener Service")
    logger.info(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=True,
        proxy_headers=True,
    )

    server_instance = uvicorn.Server(uvicorn_config)

    # Setup signal handlers for graceful shutdown
    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        server_instance.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server_instance.run()
    except Exception as e:
        logger.critical(f"Server error: {e}")
        sys.exit(1)

    if not server_instance.started:
        logger.critical("Failed to start server")
        sys.exit(1)

    if fatal_error:
        sys.exit(1)


if __name__ == "__main__":
    main()
