"""Structured logging configuration for the OpenWRT Metrics Exporter"""
import logging
import os
import sys
from typing import Any, Dict
import structlog
from structlog.stdlib import LoggerFactory
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, StackInfoRenderer
from config import Config


def setup_structured_logging(config: Config) -> None:
    """Setup structured logging with JSON format for production and console for development"""

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        TimeStamper(fmt="iso"),
        StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    # Use JSON renderer for production, console for development
    is_development = os.getenv("ENVIRONMENT", "production").lower() == "development"
    if is_development:
        processors.append(ConsoleRenderer())
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, config.log_level.upper())
    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    # Routers usually log to stdout only, the file is opt-in
    if config.log_file is not None:
        file_handler = logging.FileHandler(str(config.log_file))
        file_handler.setLevel(level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )

    # Set specific logger levels to reduce noise
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('fastapi').setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)


def log_scrape(logger: structlog.stdlib.BoundLogger, samples_count: int, scrape_time: float, errors: int = 0) -> None:
    """Log a completed scrape with structured data"""
    logger.info(
        "Scrape completed",
        samples_count=samples_count,
        scrape_time_seconds=round(scrape_time, 3),
        errors=errors,
        event_type="scrape"
    )


def log_probe_cycle(logger: structlog.stdlib.BoundLogger, targets: int, failed: int, probe_time: float) -> None:
    """Log one round of ICMP probes across all targets"""
    logger.info(
        "Probe cycle completed",
        targets=targets,
        failed_targets=failed,
        probe_time_seconds=round(probe_time, 3),
        event_type="probe_cycle"
    )


def log_server_startup(logger: structlog.stdlib.BoundLogger, config: Config) -> None:
    """Log server startup with configuration details"""
    settings = config.probe_settings()
    logger.info(
        "Server starting up",
        service_name=config.service_name,
        service_version=config.service_version,
        listen_address=config.listen_address,
        metrics_path=config.metrics_path,
        enabled_collectors=config.enabled_collectors,
        ping_targets=[f"{t.host}/{t.family.value}" for t in config.probe_targets],
        ping_count=settings.count,
        ping_interval_seconds=settings.interval,
        ping_timeout_seconds=settings.timeout,
        ping_concurrency=settings.concurrency,
        ping_privileged=settings.privileged,
        event_type="server_startup"
    )


def log_error(logger: structlog.stdlib.BoundLogger, error: Exception, context: Dict[str, Any] = None) -> None:
    """Log error with structured context"""
    logger.error(
        "Error occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context or {},
        event_type="error",
        exc_info=True
    )
