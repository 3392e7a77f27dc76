"""
Configuration for the LIS platform.

Configuration is a plain dictionary: built-in defaults, overridden by an
optional JSON file, overridden by environment variables.
"""

import json
import os
from typing import Any, Dict, Optional

from .core.exceptions import ConfigurationError


DEFAULT_CONFIG: Dict[str, Any] = {
    # A student is silent when feedback count <= ratio * completed lectures.
    'silent_feedback_ratio': 0.0,
    'at_risk_grade_pct': 50.0,
    'enrollment_code_length': 6,
    'ai_min_data_points': 10,
    'openai_api_key': None,
    'openai_model': 'gpt-4o-mini',
    'openai_base_url': 'https://api.openai.com/v1',
    'openai_timeout': 30.0,
    'rest_host': '0.0.0.0',
    'rest_port': 8000,
    'log_level': 'INFO',
}

# environment variable -> (config key, parser)
ENV_OVERRIDES = {
    'LIS_SILENT_FEEDBACK_RATIO': ('silent_feedback_ratio', float),
    'LIS_AT_RISK_GRADE_PCT': ('at_risk_grade_pct', float),
    'LIS_ENROLLMENT_CODE_LENGTH': ('enrollment_code_length', int),
    'LIS_AI_MIN_DATA_POINTS': ('ai_min_data_points', int),
    'OPENAI_API_KEY': ('openai_api_key', str),
    'LIS_OPENAI_MODEL': ('openai_model', str),
    'LIS_OPENAI_BASE_URL': ('openai_base_url', str),
    'LIS_OPENAI_TIMEOUT': ('openai_timeout', float),
    'LIS_REST_HOST': ('rest_host', str),
    'LIS_REST_PORT': ('rest_port', int),
    'LIS_LOG_LEVEL': ('log_level', str),
}


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None,
                environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Build the effective configuration.

    Precedence, lowest first: defaults, JSON file at ``path``, environment,
    explicit ``overrides``.
    """
    config = dict(DEFAULT_CONFIG)

    if path:
        try:
            with open(path, 'r') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}")
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
        config.update(file_config)

    env = os.environ if environ is None else environ
    for var, (key, parser) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            config[key] = parser(raw)
        except ValueError:
            raise ConfigurationError(f"Invalid value for {var}: {raw!r}")

    if overrides:
        config.update(overrides)

    _validate(config)
    return config


def _validate(config: Dict[str, Any]) -> None:
    if config['silent_feedback_ratio'] < 0:
        raise ConfigurationError("silent_feedback_ratio cannot be negative")
    if config['enrollment_code_length'] < 4:
        raise ConfigurationError("enrollment_code_length must be at least 4")
