"""Prometheus HTTP exporter, also serving as the health-check endpoint"""

from prometheus_client import start_http_server, Gauge, Counter
from prometheus_client.core import CollectorRegistry
from microgrid_notifier.utils.logger import get_logger


class PrometheusExporter:
    """Prometheus HTTP server for exposing telemetry and alerting metrics"""

    def __init__(self, config):
        """
        Initialize Prometheus exporter

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.logger = get_logger(self.__class__.__name__)

        self.enabled = config.get('prometheus', {}).get('enabled', True)
        self.host = config.get('prometheus', {}).get('host', '0.0.0.0')
        self.port = config.get('prometheus', {}).get('port', 3000)

        self.registry = CollectorRegistry()
        self.server = None
        self.running = False

        self._setup_metrics()

    def _setup_metrics(self):
        """Setup service metrics"""
        self.notifier_info = Gauge(
            'notifier_info',
            'Notifier information',
            ['version', 'service'],
            registry=self.registry
        )

        self.telemetry_value = Gauge(
            'microgrid_telemetry_value',
            'Latest telemetry reading',
            ['metric'],
            registry=self.registry
        )

        self.alerts_fired = Counter(
            'microgrid_alerts_fired_total',
            'Total number of threshold alerts fired',
            ['metric'],
            registry=self.registry
        )

        self.notification_failures = Counter(
            'microgrid_notification_failures_total',
            'Total number of failed notification deliveries',
            ['channel'],
            registry=self.registry
        )

        self.feed_errors = Counter(
            'microgrid_feed_errors_total',
            'Total number of failed feed fetches',
            ['feed'],
            registry=self.registry
        )

        self.feed_last_success = Gauge(
            'microgrid_feed_last_success_timestamp',
            'Last successful feed fetch timestamp',
            ['feed'],
            registry=self.registry
        )

        self.feed_duration = Gauge(
            'microgrid_feed_fetch_duration_seconds',
            'Feed fetch duration in seconds',
            ['feed'],
            registry=self.registry
        )

        self.feed_status = Gauge(
            'microgrid_feed_status',
            'Feed status (1=healthy, 0=unhealthy)',
            ['feed'],
            registry=self.registry
        )

    def start(self):
        """Start HTTP server"""
        if not self.enabled:
            self.logger.info("Prometheus exporter disabled")
            return

        try:
            self.logger.info(f"Starting Prometheus HTTP server on {self.host}:{self.port}")
            self.server = start_http_server(self.port, addr=self.host, registry=self.registry)
            self.running = True
            self.logger.info(f"Metrics available at http://{self.host}:{self.port}/metrics")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus HTTP server: {e}")
            raise

    def stop(self):
        """Stop HTTP server"""
        if not self.running:
            return
        # start_http_server returns (server, thread) on current prometheus_client releases
        if isinstance(self.server, tuple):
            self.server[0].shutdown()
        self.running = False
        self.logger.info("Prometheus HTTP server stopped")

    def record_sample(self, values):
        """Update telemetry gauges from a sample's values"""
        for metric_name, value in values.items():
            self.telemetry_value.labels(metric=metric_name).set(value)

    def record_alert(self, alert):
        self.alerts_fired.labels(metric=alert.metric_name).inc()

    def record_delivery(self, results):
        """Count failed deliveries from AlertManager.dispatch results"""
        for channel_name, success in results.items():
            if not success:
                self.notification_failures.labels(channel=channel_name).inc()

    def update_feed_metrics(self, feed, failed=False):
        """
        Update feed health metrics

        Args:
            feed: Feed to update metrics for
            failed: Whether the last fetch failed
        """
        feed_name = feed.get_name()

        if failed:
            self.feed_errors.labels(feed=feed_name).inc()

        if feed.last_success:
            self.feed_last_success.labels(feed=feed_name).set(feed.last_success)

        self.feed_duration.labels(feed=feed_name).set(feed.last_fetch_duration)

        status = 1 if feed.is_healthy() else 0
        self.feed_status.labels(feed=feed_name).set(status)
