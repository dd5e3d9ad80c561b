"""Notifier service orchestration"""

import signal
import threading
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from microgrid_notifier import __version__
from microgrid_notifier.alerts.alert_evaluator import AlertEvaluator, FiredAlert
from microgrid_notifier.alerts.alert_manager import AlertManager
from microgrid_notifier.alerts.threshold_rule import DEFAULT_COOLDOWN_MS, load_threshold_rules, rules_from_config
from microgrid_notifier.exporters.prometheus_exporter import PrometheusExporter
from microgrid_notifier.feeds.base import BaseFeed, FeedError
from microgrid_notifier.feeds.thingspeak_feed import ThingSpeakFeed
from microgrid_notifier.utils.logger import get_logger


class NotifierService:
    """Polls the telemetry feed, evaluates thresholds and dispatches alerts"""

    def __init__(self, config: Dict[str, Any], feed: Optional[BaseFeed] = None,
                 alert_manager: Optional[AlertManager] = None,
                 exporter: Optional[PrometheusExporter] = None):
        """
        Initialize service

        Args:
            config: Configuration dictionary
            feed: Feed override, built from config when omitted
            alert_manager: Alert manager override, built from config when omitted
            exporter: Exporter override, built from config when omitted
        """
        self.config = config
        self.logger = get_logger(self.__class__.__name__)
        self.running = False
        self.poll_thread = None
        self._stop_event = threading.Event()
        # Alert state is mutated in place, poll cycles must not overlap
        self._poll_lock = threading.Lock()

        self.interval = config['polling']['interval']
        self.reset_on_reconnect = config['polling'].get('reset_state_on_reconnect', False)

        self.feed = feed if feed is not None else ThingSpeakFeed(config['feed'])
        self.evaluator = AlertEvaluator(self._load_rules())
        self.alert_manager = alert_manager if alert_manager is not None else AlertManager(config['alerting'])
        self.exporter = exporter if exporter is not None else PrometheusExporter(config)

        self.logger.info(
            f"Service initialized: {self.evaluator.get_enabled_rule_count()} active rules, "
            f"poll interval {self.interval}s"
        )

    def _load_rules(self):
        """Load threshold rules from the rules file or inline config"""
        alerting = self.config['alerting']
        default_cooldown_ms = alerting.get('default_cooldown_ms', DEFAULT_COOLDOWN_MS)

        rules_file = alerting.get('rules_file')
        if rules_file:
            rules = load_threshold_rules(rules_file, default_cooldown_ms)
        else:
            rules = rules_from_config(alerting.get('rules') or [], default_cooldown_ms)

        if not rules:
            self.logger.warning("No threshold rules configured")
        return rules

    def _setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown"""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, initiating graceful shutdown...")
            self.stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run_poll_cycle(self, now: Optional[datetime] = None) -> List[FiredAlert]:
        """
        Fetch the latest sample, evaluate it and dispatch fired alerts

        Feed failures are logged and skip the cycle without touching alert
        state. Delivery failures never undo a fire.

        Args:
            now: Evaluation time, defaults to the current time

        Returns:
            Alerts fired in this cycle
        """
        with self._poll_lock:
            if not self.feed.is_configured():
                self.logger.info("Feed credentials missing. Skipping check.")
                return []

            was_failing = self.feed.error_count > 0

            try:
                sample = self.feed.run_fetch()
            except FeedError:
                self.exporter.update_feed_metrics(self.feed, failed=True)
                return []

            self.exporter.update_feed_metrics(self.feed)

            if was_failing and self.reset_on_reconnect:
                self.logger.info("Feed reconnected, resetting alert state")
                self.evaluator.reset_state()

            if sample is None:
                self.logger.info("Feed has no entries yet")
                return []

            readings = ', '.join(f"{name}={value}" for name, value in sample.values.items())
            self.logger.info(f"Telemetry - {readings}")
            self.exporter.record_sample(sample.values)

            fired = self.evaluator.evaluate_sample(sample.values, now)
            for alert in fired:
                self.exporter.record_alert(alert)
                results = self.alert_manager.dispatch(alert)
                self.exporter.record_delivery(results)

            return fired

    def start(self):
        """Start the service and block until stopped"""
        self.logger.info("Starting service...")
        self.running = True
        self._stop_event.clear()
        self._setup_signal_handlers()

        try:
            self.exporter.start()
            self.exporter.notifier_info.labels(
                version=__version__,
                service=self.config['service']['name']
            ).set(1)

            self.poll_thread = threading.Thread(
                target=self._run_poll_loop,
                daemon=True,
                name="feed-poller"
            )
            self.poll_thread.start()
            self.logger.info("Service started successfully")

            # Keep main thread alive
            while self.running:
                time.sleep(1)

        except KeyboardInterrupt:
            self.logger.info("Keyboard interrupt received")
            self.stop()
        except Exception as e:
            self.logger.error(f"Service error: {e}", exc_info=True)
            self.stop()
            raise

    def stop(self):
        """Stop the service"""
        if not self.running:
            return

        self.logger.info("Stopping service...")
        self.running = False
        self._stop_event.set()

        if self.poll_thread and self.poll_thread is not threading.current_thread():
            self.poll_thread.join(timeout=5)

        self.alert_manager.shutdown()
        self.exporter.stop()

        self.logger.info("Service stopped")

    def _run_poll_loop(self):
        """Run a poll cycle now and then once per interval"""
        self.logger.debug(f"Starting poll loop (interval: {self.interval}s)")

        while self.running:
            try:
                self.run_poll_cycle()
            except Exception as e:
                self.logger.error(f"Error in poll loop: {e}", exc_info=True)

            self._stop_event.wait(self.interval)
