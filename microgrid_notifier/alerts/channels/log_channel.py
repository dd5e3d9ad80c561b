"""
Simulation channel that only logs the message.
"""

import logging
from typing import Dict, Optional

from microgrid_notifier.alerts.channels.base_channel import BaseChannel

logger = logging.getLogger(__name__)


class LogChannel(BaseChannel):
    """Logs alerts instead of delivering them"""

    name = 'log'

    def __init__(self, config: Optional[Dict] = None):
        config = config or {}
        self.target = config.get('target', '')

    def send(self, alert) -> bool:
        message = self.format_message(alert)
        if self.target:
            logger.warning(f'[SIMULATION] Sending SMS: "{message}" to {self.target}')
        else:
            logger.warning(f'[SIMULATION] Sending SMS: "{message}"')
        return True
