"""
Base notification channel interface.
"""

from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "SYSTEM ALERT: {{ label }} detected! Reading: {{ value }}{{ unit }} (Limit: {{ limit }}{{ unit }})"


def format_number(value: float) -> str:
    """Format a reading without a trailing .0 for whole numbers"""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


class BaseChannel(ABC):
    """Abstract base class for notification channels"""

    name = 'base'

    @abstractmethod
    def send(self, alert) -> bool:
        """
        Send alert notification.

        Args:
            alert: FiredAlert instance

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass

    def format_message(self, alert) -> str:
        """
        Format alert message from the rule's template.

        Args:
            alert: FiredAlert instance

        Returns:
            Message text
        """
        template = alert.message_template or DEFAULT_MESSAGE
        return self._substitute_template(template, alert)

    def _substitute_template(self, template: str, alert) -> str:
        """
        Substitute template variables.

        Supports:
            {{ value }} - Observed value
            {{ limit }} - Configured limit
            {{ unit }} - Unit label
            {{ metric }} - Metric name
            {{ label }} - Human readable rule name

        Args:
            template: Template string
            alert: FiredAlert instance

        Returns:
            Formatted string
        """
        try:
            result = template.replace('{{ value }}', format_number(alert.value))
            result = result.replace('{{ limit }}', format_number(alert.limit))
            result = result.replace('{{ unit }}', alert.unit)
            result = result.replace('{{ metric }}', alert.metric_name)
            result = result.replace('{{ label }}', alert.label)
            return result

        except (TypeError, ValueError) as e:
            logger.error(f"Error substituting template: {e}")
            return template
