"""
Alert evaluator for checking threshold rules against telemetry samples.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from microgrid_notifier.alerts.alert_state import AlertStateTable
from microgrid_notifier.alerts.threshold_rule import ThresholdRule, index_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FiredAlert:
    """A threshold crossing that passed its cooldown"""
    metric_name: str
    value: float
    limit: float
    direction: str
    unit: str
    label: str
    timestamp: datetime
    message_template: str = ""


def evaluate(sample: Mapping[str, Optional[float]], now: datetime,
             rules: Mapping[str, ThresholdRule], state: AlertStateTable) -> List[FiredAlert]:
    """
    Decide which metrics of a sample fire an alert.

    Each metric present in both ``sample`` and ``rules`` is checked on its
    own. A fire updates ``state`` for that metric; nothing else is mutated.

    Args:
        sample: Metric name to observed value
        now: Time of the evaluation
        rules: Metric name to threshold rule
        state: Alert state table, mutated in place

    Returns:
        Alerts to dispatch, in rule order
    """
    fired = []

    for metric_name, rule in rules.items():
        if not rule.enabled:
            continue

        value = sample.get(metric_name)
        if value is None:
            continue

        if rule.is_guarded(value):
            logger.debug(f"Skipping {metric_name}: value {value} treated as disconnected sensor")
            continue

        if not rule.is_breached(value):
            continue

        metric_state = state[metric_name]
        if not metric_state.cooldown_elapsed(now, rule.cooldown):
            logger.debug(f"Suppressing {metric_name} alert: within cooldown since {metric_state.last_fired_at}")
            continue

        metric_state.mark_fired(now)
        fired.append(FiredAlert(
            metric_name=metric_name,
            value=value,
            limit=rule.limit,
            direction=rule.direction,
            unit=rule.unit,
            label=rule.display_name,
            timestamp=now,
            message_template=rule.message,
        ))

    return fired


class AlertEvaluator:
    """Evaluates threshold rules against telemetry samples"""

    def __init__(self, rules: List[ThresholdRule], state: Optional[AlertStateTable] = None):
        """
        Initialize alert evaluator.

        Args:
            rules: Threshold rules to evaluate, one per metric
            state: Alert state table; a fresh one is created when omitted
        """
        self.rules: Dict[str, ThresholdRule] = index_rules(rules)
        self.state = state if state is not None else AlertStateTable(self.rules)

        logger.info(f"Alert evaluator initialized with {len(self.rules)} rules")

    def evaluate_sample(self, sample: Mapping[str, Optional[float]],
                        now: Optional[datetime] = None) -> List[FiredAlert]:
        """
        Evaluate all enabled rules against one sample.

        Args:
            sample: Metric name to observed value
            now: Evaluation time, defaults to the current UTC time

        Returns:
            Alerts that fired
        """
        if now is None:
            now = datetime.now(timezone.utc)

        fired = evaluate(sample, now, self.rules, self.state)
        for alert in fired:
            logger.info(f"Threshold crossed: {alert.metric_name}={alert.value} "
                        f"({alert.direction} {alert.limit})")
        return fired

    def reset_state(self) -> None:
        """Clear last-fire times for every metric"""
        self.state.reset()

    def add_rule(self, rule: ThresholdRule) -> None:
        """
        Add a new rule to the evaluator.

        Raises:
            ValueError: If the metric already has a rule
        """
        if rule.metric_name in self.rules:
            raise ValueError(f"Duplicate threshold rule for metric: {rule.metric_name}")
        self.rules[rule.metric_name] = rule
        logger.info(f"Added threshold rule: {rule.metric_name}")

    def remove_rule(self, metric_name: str) -> bool:
        """
        Remove the rule for a metric.

        Returns:
            True if rule was removed, False if not found
        """
        if metric_name in self.rules:
            del self.rules[metric_name]
            logger.info(f"Removed threshold rule: {metric_name}")
            return True

        logger.warning(f"Rule not found: {metric_name}")
        return False

    def get_rule_count(self) -> int:
        """Get total number of rules"""
        return len(self.rules)

    def get_enabled_rule_count(self) -> int:
        """Get number of enabled rules"""
        return sum(1 for rule in self.rules.values() if rule.enabled)
