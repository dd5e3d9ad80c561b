"""
Threshold rule data structures and loading utilities.
"""

import yaml
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional
import logging

logger = logging.getLogger(__name__)

ABOVE = 'above'
BELOW = 'below'

DEFAULT_COOLDOWN_MS = 30 * 60 * 1000


@dataclass(frozen=True)
class ThresholdRule:
    """Threshold rule for a single telemetry metric"""
    metric_name: str
    direction: str  # above, below
    limit: float
    cooldown_ms: int = DEFAULT_COOLDOWN_MS
    zero_guard: bool = False
    label: str = ""
    unit: str = ""
    message: str = ""
    enabled: bool = True

    def __post_init__(self):
        """Validate rule configuration"""
        if not self.metric_name:
            raise ValueError("metric_name must not be empty")

        valid_directions = [ABOVE, BELOW]
        if self.direction not in valid_directions:
            raise ValueError(f"Invalid direction: {self.direction}. Must be one of {valid_directions}")

        if self.cooldown_ms < 0:
            raise ValueError(f"cooldown_ms must be >= 0, got {self.cooldown_ms}")

    @property
    def cooldown(self) -> timedelta:
        return timedelta(milliseconds=self.cooldown_ms)

    @property
    def display_name(self) -> str:
        """Human readable name used in notifications"""
        if self.label:
            return self.label
        prefix = 'High' if self.direction == ABOVE else 'Low'
        return f"{prefix} {self.metric_name.replace('_', ' ').title()}"

    def is_breached(self, value: float) -> bool:
        """
        Check whether a value crosses the limit in the configured direction.

        Equality with the limit is never a breach.
        """
        if self.direction == ABOVE:
            return value > self.limit
        return value < self.limit

    def is_guarded(self, value: float) -> bool:
        """True when the zero guard treats the value as a disconnected sensor"""
        return self.zero_guard and value <= 0


def rule_from_dict(rule_config: Mapping[str, Any],
                   default_cooldown_ms: int = DEFAULT_COOLDOWN_MS) -> ThresholdRule:
    """
    Build a ThresholdRule from a configuration mapping.

    Args:
        rule_config: Mapping with metric_name, direction, limit and optional fields
        default_cooldown_ms: Cooldown used when the rule doesn't set one

    Raises:
        KeyError: If a required key is missing
        ValueError: If a value is invalid
    """
    return ThresholdRule(
        metric_name=rule_config['metric_name'],
        direction=str(rule_config['direction']).lower(),
        limit=float(rule_config['limit']),
        cooldown_ms=int(rule_config.get('cooldown_ms', default_cooldown_ms)),
        zero_guard=bool(rule_config.get('zero_guard', False)),
        label=rule_config.get('label') or '',
        unit=rule_config.get('unit') or '',
        message=rule_config.get('message') or '',
        enabled=rule_config.get('enabled', True),
    )


def rules_from_config(rule_configs: List[Mapping[str, Any]],
                      default_cooldown_ms: int = DEFAULT_COOLDOWN_MS) -> List[ThresholdRule]:
    """
    Build rules from a list of configuration mappings.

    Raises:
        ValueError: If any entry is malformed, naming the entry
    """
    rules = []
    for position, rule_config in enumerate(rule_configs or []):
        if not isinstance(rule_config, Mapping):
            raise ValueError(f"Threshold rule #{position} must be a mapping, got {rule_config!r}")

        name = rule_config.get('metric_name', f"#{position}")
        try:
            rule = rule_from_dict(rule_config, default_cooldown_ms)
        except KeyError as e:
            raise ValueError(f"Invalid threshold rule {name}: missing key {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid threshold rule {name}: {e}")

        rules.append(rule)
        logger.debug(f"Loaded threshold rule: {rule.metric_name} {rule.direction} {rule.limit}")
    return rules


def index_rules(rules: List[ThresholdRule]) -> Dict[str, ThresholdRule]:
    """
    Index rules by metric name.

    Raises:
        ValueError: If two rules target the same metric
    """
    table: Dict[str, ThresholdRule] = {}
    for rule in rules:
        if rule.metric_name in table:
            raise ValueError(f"Duplicate threshold rule for metric: {rule.metric_name}")
        table[rule.metric_name] = rule
    return table


def load_threshold_rules(rules_file: str,
                         default_cooldown_ms: Optional[int] = None) -> List[ThresholdRule]:
    """
    Load threshold rules from YAML file.

    Args:
        rules_file: Path to YAML file with a threshold_rules list
        default_cooldown_ms: Cooldown for rules that don't set one

    Returns:
        List of ThresholdRule objects

    Raises:
        FileNotFoundError: If rules file doesn't exist
        ValueError: If rules file has invalid format
    """
    if default_cooldown_ms is None:
        default_cooldown_ms = DEFAULT_COOLDOWN_MS

    try:
        with open(rules_file, 'r') as f:
            config = yaml.safe_load(f)

        if not config or 'threshold_rules' not in config:
            logger.warning(f"No threshold_rules found in {rules_file}")
            return []

        rules = rules_from_config(config['threshold_rules'], default_cooldown_ms)
        logger.info(f"Loaded {len(rules)} threshold rules from {rules_file}")
        return rules

    except FileNotFoundError:
        logger.error(f"Threshold rules file not found: {rules_file}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML file {rules_file}: {e}")
        raise ValueError(f"Invalid YAML format: {e}")
