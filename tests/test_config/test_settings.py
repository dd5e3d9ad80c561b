"""Tests for configuration loading"""

import pytest
import tempfile
import os

from microgrid_notifier.config.settings import get_default_config, load_config, merge_configs, validate_config

ENV_VARS = [
    'LOG_LEVEL', 'LOG_FILE', 'LOG_FORMAT', 'THINGSPEAK_CHANNEL_ID', 'THINGSPEAK_API_KEY',
    'POLL_INTERVAL', 'PORT', 'PROMETHEUS_PORT', 'PROMETHEUS_HOST', 'TWILIO_ACCOUNT_SID',
    'TWILIO_AUTH_TOKEN', 'TWILIO_PHONE_NUMBER', 'TARGET_PHONE_NUMBER',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write_yaml(content):
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write(content)
        return f.name


class TestLoadConfig:
    """Test load_config"""

    def test_defaults(self):
        with pytest.warns(UserWarning):
            config = load_config()

        assert config['polling']['interval'] == 60
        assert config['polling']['reset_state_on_reconnect'] is False
        assert config['alerting']['default_cooldown_ms'] == 1800000
        metrics = [r['metric_name'] for r in config['alerting']['rules']]
        assert metrics == ['voltage', 'current', 'temperature', 'battery']
        battery = config['alerting']['rules'][-1]
        assert battery['direction'] == 'below'
        assert battery['zero_guard'] is True

    def test_yaml_merge(self):
        temp_file = write_yaml("""
feed:
  channel_id: "99"
  api_key: "KEY"
polling:
  interval: 10
  reset_state_on_reconnect: true
""")
        try:
            config = load_config(temp_file)
        finally:
            os.unlink(temp_file)

        assert config['feed']['channel_id'] == "99"
        assert config['feed']['timeout'] == 10
        assert config['polling']['interval'] == 10
        assert config['polling']['reset_state_on_reconnect'] is True

    def test_rules_file_relative_to_config(self, tmp_path):
        """A relative rules_file is resolved next to the config file"""
        config_file = tmp_path / 'profiles' / 'dashboard.yaml'
        config_file.parent.mkdir()
        config_file.write_text('alerting:\n  rules_file: rules.yaml\n')

        with pytest.warns(UserWarning):
            config = load_config(str(config_file))

        assert config['alerting']['rules_file'] == str(tmp_path / 'profiles' / 'rules.yaml')

    def test_absolute_rules_file_kept(self, tmp_path):
        config_file = tmp_path / 'notifier.yaml'
        config_file.write_text('alerting:\n  rules_file: /etc/notifier/rules.yaml\n')

        with pytest.warns(UserWarning):
            config = load_config(str(config_file))

        assert config['alerting']['rules_file'] == '/etc/notifier/rules.yaml'

    def test_missing_file(self):
        with pytest.raises(ValueError, match="not found"):
            load_config("/nonexistent/config.yaml")

    def test_invalid_yaml(self):
        temp_file = write_yaml("polling: [")
        try:
            with pytest.raises(ValueError, match="Failed to load config"):
                load_config(temp_file)
        finally:
            os.unlink(temp_file)

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv('THINGSPEAK_CHANNEL_ID', '123')
        monkeypatch.setenv('THINGSPEAK_API_KEY', 'abc')
        monkeypatch.setenv('TWILIO_ACCOUNT_SID', 'AC1')
        monkeypatch.setenv('TWILIO_AUTH_TOKEN', 'tok')
        monkeypatch.setenv('TWILIO_PHONE_NUMBER', '+1555')
        monkeypatch.setenv('TARGET_PHONE_NUMBER', '+1666, +1777')
        monkeypatch.setenv('PORT', '8080')
        monkeypatch.setenv('LOG_LEVEL', 'debug')

        config = load_config()

        assert config['feed']['channel_id'] == '123'
        assert config['feed']['api_key'] == 'abc'
        sms = config['alerting']['channels']['sms']
        assert sms['account_sid'] == 'AC1'
        assert sms['from_number'] == '+1555'
        assert sms['to_numbers'] == ['+1666', '+1777']
        assert config['prometheus']['port'] == 8080
        assert config['service']['log_level'] == 'DEBUG'


class TestValidateConfig:
    """Test validate_config"""

    @pytest.fixture
    def config(self):
        config = get_default_config()
        config['feed']['channel_id'] = '1'
        config['feed']['api_key'] = 'K'
        return config

    def test_valid(self, config):
        validate_config(config)

    def test_invalid_interval(self, config):
        config['polling']['interval'] = 0
        with pytest.raises(ValueError, match="polling interval"):
            validate_config(config)

    def test_invalid_port(self, config):
        config['prometheus']['port'] = 70000
        with pytest.raises(ValueError, match="Prometheus port"):
            validate_config(config)

    def test_port_ignored_when_disabled(self, config):
        config['prometheus']['enabled'] = False
        config['prometheus']['port'] = 0
        validate_config(config)

    def test_invalid_log_level(self, config):
        config['service']['log_level'] = 'LOUD'
        with pytest.raises(ValueError, match="log level"):
            validate_config(config)

    def test_invalid_module_log_level(self, config):
        config['service']['log_levels'] = {'feeds': 'CHATTY'}
        with pytest.raises(ValueError, match='Invalid log level for feeds'):
            validate_config(config)

    def test_unsupported_provider(self, config):
        config['feed']['provider'] = 'influx'
        with pytest.raises(ValueError, match="Unsupported feed provider"):
            validate_config(config)

    def test_webhook_requires_url(self, config):
        config['alerting']['channels']['webhook']['enabled'] = True
        with pytest.raises(ValueError, match="url not set"):
            validate_config(config)

    def test_negative_cooldown(self, config):
        config['alerting']['default_cooldown_ms'] = -5
        with pytest.raises(ValueError, match="default_cooldown_ms"):
            validate_config(config)

    def test_missing_feed_credentials_warns(self, config):
        config['feed']['api_key'] = None
        with pytest.warns(UserWarning, match="ThingSpeak credentials missing"):
            validate_config(config)


class TestMergeConfigs:
    """Test merge_configs"""

    def test_nested_merge(self):
        result = merge_configs({'a': {'b': 1, 'c': 2}}, {'a': {'c': 3}})
        assert result == {'a': {'b': 1, 'c': 3}}

    def test_lists_replaced(self):
        result = merge_configs({'rules': [1, 2]}, {'rules': [3]})
        assert result == {'rules': [3]}
