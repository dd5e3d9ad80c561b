"""Telemetry threshold alerting for small solar and microgrid setups"""

__version__ = '1.0.0'
