"""
Alert manager for dispatching fired alerts to notification channels.
"""

import logging
from collections import defaultdict
from typing import Dict, List

from microgrid_notifier.alerts.alert_evaluator import FiredAlert
from microgrid_notifier.alerts.channels.base_channel import BaseChannel
from microgrid_notifier.alerts.channels.log_channel import LogChannel

logger = logging.getLogger(__name__)

SMS_REQUIRED_FIELDS = ['account_sid', 'auth_token', 'from_number', 'to_numbers']


class AlertManager:
    """Manages notification channels and alert delivery"""

    def __init__(self, config: Dict):
        """
        Initialize alert manager.

        Args:
            config: Alerting configuration dict
        """
        self.config = config
        self.sent_count = 0
        self.failure_counts: Dict[str, int] = defaultdict(int)

        self.channels: Dict[str, BaseChannel] = self._init_channels()

        logger.info(f"Alert manager initialized with channels: {', '.join(self.channels)}")

    def _init_channels(self) -> Dict[str, BaseChannel]:
        """Initialize notification channels based on config"""
        channels = {}
        channel_config = self.config.get('channels', {})

        sms_config = channel_config.get('sms', {})
        if sms_config.get('enabled', False):
            missing = [f for f in SMS_REQUIRED_FIELDS if not sms_config.get(f)]
            if missing:
                logger.warning(f"Twilio credentials missing ({', '.join(missing)}). "
                               "SMS notifications will be simulated.")
                channels['log'] = LogChannel({'target': self._recipients(sms_config)})
            else:
                from microgrid_notifier.alerts.channels.sms_channel import SmsChannel
                channels['sms'] = SmsChannel(sms_config)

        if channel_config.get('webhook', {}).get('enabled', False):
            from microgrid_notifier.alerts.channels.webhook_channel import WebhookChannel
            channels['webhook'] = WebhookChannel(channel_config['webhook'])

        if channel_config.get('log', {}).get('enabled', False) and 'log' not in channels:
            channels['log'] = LogChannel(channel_config['log'])

        if not channels:
            logger.warning("No notification channels enabled, alerts will only be logged")
            channels['log'] = LogChannel()

        return channels

    @staticmethod
    def _recipients(sms_config: Dict) -> str:
        to_numbers = sms_config.get('to_numbers') or []
        if isinstance(to_numbers, str):
            return to_numbers
        return ', '.join(to_numbers)

    def dispatch(self, alert: FiredAlert) -> Dict[str, bool]:
        """
        Send one alert through every channel.

        Delivery is best effort: failures are logged and counted but never
        raised, and the alert is not retried.

        Args:
            alert: Alert to deliver

        Returns:
            Channel name to delivery success
        """
        results = {}

        for channel_name, channel in self.channels.items():
            try:
                success = channel.send(alert)
            except Exception as e:
                logger.error(f"Error sending notification via {channel_name}: {e}", exc_info=True)
                success = False

            if success:
                self.sent_count += 1
                logger.info(f"Sent notification via {channel_name} for {alert.metric_name}")
            else:
                self.failure_counts[channel_name] += 1
                logger.error(f"Failed to send notification via {channel_name} for {alert.metric_name}")

            results[channel_name] = success

        return results

    def dispatch_all(self, alerts: List[FiredAlert]) -> List[Dict[str, bool]]:
        """Dispatch a batch of alerts in order"""
        return [self.dispatch(alert) for alert in alerts]

    def get_channel_names(self) -> List[str]:
        return list(self.channels)

    def shutdown(self) -> None:
        """Shutdown alert manager"""
        logger.info("Shutting down alert manager")
        self.channels.clear()
