# /tests/test_config.py

import json

import pytest

from lis.config import DEFAULT_CONFIG, load_config
from lis.core.exceptions import ConfigurationError


def test_defaults_without_sources():
    assert load_config(environ={}) == DEFAULT_CONFIG


def test_precedence(tmp_path):
    path = tmp_path / "lis.json"
    path.write_text(json.dumps({'rest_port': 9000, 'silent_feedback_ratio': 0.2}))

    config = load_config(
        str(path),
        overrides={'silent_feedback_ratio': 0.3},
        environ={'LIS_REST_PORT': '9100', 'OPENAI_API_KEY': 'sk-env'},
    )

    assert config['rest_port'] == 9100
    assert config['silent_feedback_ratio'] == 0.3
    assert config['openai_api_key'] == 'sk-env'


@pytest.mark.parametrize("kwargs", [
    {'environ': {'LIS_REST_PORT': 'eighty'}},
    {'environ': {}, 'overrides': {'silent_feedback_ratio': -1}},
    {'environ': {}, 'overrides': {'enrollment_code_length': 2}},
    {'path': '/nonexistent/lis.json', 'environ': {}},
])
def test_invalid_config(kwargs):
    with pytest.raises(ConfigurationError):
        load_config(**kwargs)


def test_config_file_must_be_object(tmp_path):
    path = tmp_path / "lis.json"
    path.write_text("[1, 2]")

    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})
