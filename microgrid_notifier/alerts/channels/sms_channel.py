"""
SMS notification channel using the Twilio Messages REST API.
"""

import logging
from typing import Dict, List

import requests

from microgrid_notifier.alerts.channels.base_channel import BaseChannel

logger = logging.getLogger(__name__)

TWILIO_API_URL = 'https://api.twilio.com/2010-04-01'


class SmsChannel(BaseChannel):
    """SMS notification channel via Twilio"""

    name = 'sms'

    def __init__(self, config: Dict):
        """
        Initialize SMS channel.

        Args:
            config: SMS configuration dict with account_sid, auth_token,
                from_number and to_numbers
        """
        self.account_sid = config['account_sid']
        self.auth_token = config['auth_token']
        self.from_number = config['from_number']
        self.to_numbers = self._as_list(config['to_numbers'])
        self.api_url = config.get('api_url', TWILIO_API_URL).rstrip('/')
        self.timeout = config.get('timeout', 10)

        if not self.to_numbers:
            raise ValueError("SMS channel requires at least one recipient")

        logger.info(f"SMS channel initialized ({len(self.to_numbers)} recipients)")

    @staticmethod
    def _as_list(numbers) -> List[str]:
        if isinstance(numbers, str):
            return [numbers] if numbers else []
        return [n for n in numbers or [] if n]

    @property
    def messages_url(self) -> str:
        return f"{self.api_url}/Accounts/{self.account_sid}/Messages.json"

    def send(self, alert) -> bool:
        """
        Send SMS notification to every recipient.

        Args:
            alert: FiredAlert instance

        Returns:
            True if at least one message was accepted
        """
        body = self.format_message(alert)
        any_sent = False

        for to_number in self.to_numbers:
            try:
                response = requests.post(
                    self.messages_url,
                    data={'From': self.from_number, 'To': to_number, 'Body': body},
                    auth=(self.account_sid, self.auth_token),
                    timeout=self.timeout
                )
                response.raise_for_status()
                any_sent = True
                logger.info(f'SMS sent to {to_number}: "{body}"')

            except requests.exceptions.RequestException as e:
                logger.error(f"Failed to send SMS to {to_number} for {alert.metric_name}: {e}")

        return any_sent
