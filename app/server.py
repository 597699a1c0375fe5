"""FastAPI server setup and routes"""
import threading
import time
from fastapi import FastAPI, HTTPException, Response
from fastapi.responses import HTMLResponse
from config import Config
from metrics.registry import MetricsRegistry
from metrics.exporters.prometheus import CONTENT_TYPE, PrometheusExporter
from logging_config import get_logger, log_scrape, log_error
from middleware.request_logging import RequestLoggingMiddleware


logger = get_logger(__name__)

HOME_PAGE = """<html>
<head><title>OpenWRT Exporter</title></head>
<body>
<h1>OpenWRT Exporter</h1>
<p><a href="{metrics_path}">Metrics</a></p>
</body>
</html>"""


class MetricsServer:
    """FastAPI server exposing a pull-based metrics snapshot"""

    def __init__(self, config: Config, registry: MetricsRegistry = None):
        self.config = config
        self.app = FastAPI(
            title="OpenWRT Metrics Exporter",
            version=config.service_version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )
        self.registry = registry if registry is not None else MetricsRegistry(config)
        self.registry.freeze()
        self.exporter = PrometheusExporter()

        # Scrape counters, reported on /health only
        self.scrape_count = 0
        self.scrape_errors = 0
        self._counter_lock = threading.Lock()

        # /health requests are logged at debug level
        self.app.add_middleware(RequestLoggingMiddleware, quiet_paths=("/health",))
        self._setup_routes()

    def _setup_routes(self):
        """Setup FastAPI routes"""

        # Sync handler: FastAPI runs it on its threadpool and the scrape may take seconds
        @self.app.get(self.config.metrics_path, response_class=Response)
        def get_metrics():
            """Run a full describe and collect cycle and serve it as Prometheus text"""
            try:
                content = self.scrape()
            except ValueError as e:
                log_error(logger, e, {"component": "exposition", "endpoint": self.config.metrics_path})
                raise HTTPException(status_code=500, detail={"error": str(e)})
            return Response(content, media_type=CONTENT_TYPE)

        @self.app.get('/health')
        def health_check():
            """Liveness endpoint"""
            with self._counter_lock:
                total_scrapes, scrape_errors = self.scrape_count, self.scrape_errors
            return {
                "status": "ok",
                "collectors": self.registry.list_collectors(),
                "total_scrapes": total_scrapes,
                "scrape_errors": scrape_errors,
            }

        @self.app.get('/collectors')
        def list_collectors():
            """List registered collectors"""
            return {
                "collectors": self.registry.get_collector_status(),
                "enabled_collectors": self.config.enabled_collectors
            }

        @self.app.get('/', response_class=HTMLResponse)
        def index():
            return HOME_PAGE.format(metrics_path=self.config.metrics_path)

    def scrape(self) -> str:
        """Describe and collect every registered collector and render the result"""
        start_time = time.time()
        # scrapes run concurrently on the threadpool
        with self._counter_lock:
            self.scrape_count += 1

        try:
            descriptors = self.registry.describe_all()
            samples, failed = self.registry.collect_all()
            content = self.exporter.export_metrics(descriptors, samples)
        except ValueError:
            with self._counter_lock:
                self.scrape_errors += 1
            raise

        log_scrape(logger, len(samples), time.time() - start_time, errors=len(failed))
        return content

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
