"""Configuration management"""

import os
import warnings
import yaml
from pathlib import Path
from typing import Dict, Any

DEFAULT_COOLDOWN_MS = 30 * 60 * 1000


def get_default_rules() -> list:
    """Threshold table of the reference microgrid deployment"""
    return [
        {'metric_name': 'voltage', 'direction': 'above', 'limit': 250,
         'label': 'High Voltage', 'unit': 'V'},
        {'metric_name': 'current', 'direction': 'above', 'limit': 15,
         'label': 'High Current', 'unit': 'A'},
        {'metric_name': 'temperature', 'direction': 'above', 'limit': 50,
         'label': 'High Temperature', 'unit': '°C'},
        {'metric_name': 'battery', 'direction': 'below', 'limit': 20,
         'label': 'Low Battery', 'unit': '%', 'zero_guard': True},
    ]


def get_default_config() -> Dict[str, Any]:
    """Get default configuration"""
    return {
        'service': {
            'name': 'Microgrid Notification Service',
            'log_level': 'INFO',
            'log_file': None,
            'log_format': 'text',
            # Per-module overrides, e.g. {'feeds': 'DEBUG'}
            'log_levels': {},
        },
        'feed': {
            'provider': 'thingspeak',
            'channel_id': None,
            'api_key': None,
            'base_url': 'https://api.thingspeak.com',
            'results': 1,
            'timeout': 10,
            'fields': {
                'field1': 'voltage',
                'field2': 'current',
                'field3': 'battery',
                'field4': 'load_power',
                'field5': 'temperature',
            },
        },
        'polling': {
            'interval': 60,
            # The dashboard profile clears alert state when the feed reconnects
            'reset_state_on_reconnect': False,
        },
        'prometheus': {
            'enabled': True,
            'port': 3000,
            'host': '0.0.0.0',
        },
        'alerting': {
            'rules_file': None,
            'default_cooldown_ms': DEFAULT_COOLDOWN_MS,
            'rules': get_default_rules(),
            'channels': {
                'sms': {
                    'enabled': True,
                    'account_sid': None,
                    'auth_token': None,
                    'from_number': None,
                    'to_numbers': [],
                    'timeout': 10,
                },
                'webhook': {
                    'enabled': False,
                    'url': '',
                    'method': 'POST',
                    'headers': {},
                    'timeout': 10,
                },
                'log': {
                    'enabled': False,
                },
            },
        },
    }


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from file and environment variables

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary
    """
    # Start with defaults
    config = get_default_config()

    # Load from YAML file if provided
    if config_path:
        if not Path(config_path).exists():
            raise ValueError(f"Config file not found: {config_path}")
        try:
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
        if yaml_config:
            if not isinstance(yaml_config, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping")
            config = merge_configs(config, yaml_config)
            config = resolve_paths(config, Path(config_path).parent)

    # Override with environment variables
    config = override_from_env(config)

    # Validate configuration
    validate_config(config)

    return config


def merge_configs(base: Dict, override: Dict) -> Dict:
    """Recursively merge two configuration dictionaries"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def resolve_paths(config: Dict, base_dir: Path) -> Dict:
    """Make a relative rules_file relative to the config file's directory"""
    rules_file = config['alerting'].get('rules_file')
    if rules_file and not Path(rules_file).is_absolute():
        config['alerting']['rules_file'] = str(base_dir / rules_file)
    return config


def override_from_env(config: Dict) -> Dict:
    """Override configuration from environment variables"""

    # Service settings
    if 'LOG_LEVEL' in os.environ:
        config['service']['log_level'] = os.environ['LOG_LEVEL'].upper()
    if 'LOG_FILE' in os.environ:
        config['service']['log_file'] = os.environ['LOG_FILE']
    if 'LOG_FORMAT' in os.environ:
        config['service']['log_format'] = os.environ['LOG_FORMAT'].lower()

    # Feed settings
    if 'THINGSPEAK_CHANNEL_ID' in os.environ:
        config['feed']['channel_id'] = os.environ['THINGSPEAK_CHANNEL_ID']
    if 'THINGSPEAK_API_KEY' in os.environ:
        config['feed']['api_key'] = os.environ['THINGSPEAK_API_KEY']

    # Polling settings
    if 'POLL_INTERVAL' in os.environ:
        config['polling']['interval'] = int(os.environ['POLL_INTERVAL'])

    # Prometheus / health endpoint settings
    if 'PORT' in os.environ:
        config['prometheus']['port'] = int(os.environ['PORT'])
    if 'PROMETHEUS_PORT' in os.environ:
        config['prometheus']['port'] = int(os.environ['PROMETHEUS_PORT'])
    if 'PROMETHEUS_HOST' in os.environ:
        config['prometheus']['host'] = os.environ['PROMETHEUS_HOST']

    # SMS settings
    sms = config['alerting']['channels']['sms']
    if 'TWILIO_ACCOUNT_SID' in os.environ:
        sms['account_sid'] = os.environ['TWILIO_ACCOUNT_SID']
    if 'TWILIO_AUTH_TOKEN' in os.environ:
        sms['auth_token'] = os.environ['TWILIO_AUTH_TOKEN']
    if 'TWILIO_PHONE_NUMBER' in os.environ:
        sms['from_number'] = os.environ['TWILIO_PHONE_NUMBER']
    if 'TARGET_PHONE_NUMBER' in os.environ:
        sms['to_numbers'] = [n.strip() for n in os.environ['TARGET_PHONE_NUMBER'].split(',') if n.strip()]

    return config


def validate_config(config: Dict):
    """
    Validate configuration values

    Raises:
        ValueError: If configuration is invalid
    """
    # Validate log level
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    log_level = str(config['service']['log_level']).upper()
    if log_level not in valid_log_levels:
        raise ValueError(f"Invalid log level: {log_level}. Must be one of {valid_log_levels}")

    log_levels = config['service'].get('log_levels') or {}
    if not isinstance(log_levels, dict):
        raise ValueError("service.log_levels must be a mapping of module to level")
    for module, level in log_levels.items():
        if str(level).upper() not in valid_log_levels:
            raise ValueError(f"Invalid log level for {module}: {level}. Must be one of {valid_log_levels}")

    valid_formats = ['text', 'json']
    log_format = config['service'].get('log_format', 'text')
    if log_format not in valid_formats:
        raise ValueError(f"Invalid log format: {log_format}. Must be one of {valid_formats}")

    # Validate feed
    feed = config['feed']
    if feed.get('provider') != 'thingspeak':
        raise ValueError(f"Unsupported feed provider: {feed.get('provider')}. Only 'thingspeak' is currently supported")

    results = feed.get('results', 1)
    if not (1 <= results <= 8000):
        raise ValueError(f"Invalid feed results: {results}. Must be between 1 and 8000")

    if feed.get('timeout', 10) <= 0:
        raise ValueError(f"Invalid feed timeout: {feed.get('timeout')}. Must be > 0")

    if not isinstance(feed.get('fields'), dict) or not feed['fields']:
        raise ValueError("feed.fields must be a non-empty mapping of field name to metric name")

    if not feed.get('channel_id') or not feed.get('api_key'):
        warnings.warn("ThingSpeak credentials missing, polls will be skipped")

    # Validate polling interval
    interval = config['polling']['interval']
    if interval <= 0:
        raise ValueError(f"Invalid polling interval: {interval}. Must be > 0")

    # Validate Prometheus port
    if config['prometheus'].get('enabled', True):
        port = config['prometheus']['port']
        if not (1 <= port <= 65535):
            raise ValueError(f"Invalid Prometheus port: {port}. Must be between 1 and 65535")

    # Validate alerting config
    alerting = config['alerting']

    cooldown = alerting.get('default_cooldown_ms', DEFAULT_COOLDOWN_MS)
    if cooldown < 0:
        raise ValueError(f"Invalid default_cooldown_ms: {cooldown}. Must be >= 0")

    if not isinstance(alerting.get('rules') or [], list):
        raise ValueError("alerting.rules must be a list")

    # Validate webhook channel
    if alerting['channels']['webhook'].get('enabled'):
        if not alerting['channels']['webhook'].get('url'):
            raise ValueError("Webhook channel enabled but url not set")

    channels_enabled = any(
        ch.get('enabled', False)
        for ch in alerting['channels'].values()
    )
    if not channels_enabled:
        warnings.warn("No notification channels configured, alerts will only be logged")
