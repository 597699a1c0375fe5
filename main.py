#!/usr/bin/env python3
"""Main entry point for the OpenWRT Metrics Exporter"""
import sys
import uvicorn
from config import Config
from app.server import MetricsServer
from logging_config import setup_structured_logging, get_logger, log_server_startup, log_error


def main():
    """Main application entry point"""
    try:
        # Load configuration once; it is immutable for the process lifetime
        config = Config()

        setup_structured_logging(config)
        logger = get_logger(__name__)

        log_server_startup(logger, config)

        server = MetricsServer(config)
        host, port = config.get_listen_host_port()
        logger.info(
            "Listening",
            host=host,
            port=port,
            metrics_path=config.metrics_path,
            event_type="server_listen"
        )

        uvicorn.run(
            server.get_app(),
            host=host,
            port=port,
            log_config=None  # We handle logging ourselves
        )

    except Exception as e:
        logger = get_logger(__name__)
        log_error(logger, e, {"component": "main", "phase": "startup"})
        sys.exit(1)


if __name__ == '__main__':
    main()
