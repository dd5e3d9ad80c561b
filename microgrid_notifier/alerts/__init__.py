"""
Threshold alerting for the microgrid notifier.
"""

from microgrid_notifier.alerts.threshold_rule import ThresholdRule, load_threshold_rules, rules_from_config
from microgrid_notifier.alerts.alert_state import AlertState, AlertStateTable
from microgrid_notifier.alerts.alert_evaluator import AlertEvaluator, FiredAlert, evaluate
from microgrid_notifier.alerts.alert_manager import AlertManager

__all__ = [
    'ThresholdRule',
    'load_threshold_rules',
    'rules_from_config',
    'AlertState',
    'AlertStateTable',
    'AlertEvaluator',
    'FiredAlert',
    'evaluate',
    'AlertManager',
]
