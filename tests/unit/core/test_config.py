import json

import pytest
import yaml

from qa_runner.core.config import (
    CONFIG_ENV_VAR,
    GREP_ENV_VAR,
    ConfigManager,
    DEFAULT_CONFIG,
    get_test_root,
    merge_config,
    resolve_option,
)
from qa_runner.core.exceptions import ConfigParseError, InitError, QARunnerError


class TestMergeConfig:
    """Test configuration override merging"""

    def test_deep_merge(self):
        base = {'a': 1, 'b': {'x': 1, 'y': 2}}
        result = merge_config(base, '{"b": {"y": 3}, "c": 4}')

        assert result == {'a': 1, 'b': {'x': 1, 'y': 3}, 'c': 4}

    def test_inputs_not_mutated(self):
        base = {'b': {'x': 1}}
        override = {'b': {'x': 2}}

        result = merge_config(base, override)
        result['b']['x'] = 99

        assert base == {'b': {'x': 1}}
        assert override == {'b': {'x': 2}}

    def test_lists_replaced(self):
        result = merge_config({'reports': ['json', 'html']}, {'reports': ['junit']})
        assert result['reports'] == ['junit']

    def test_scalar_replaces_dict(self):
        result = merge_config({'executor': {'browser': 'chromium'}}, {'executor': False})
        assert result['executor'] is False

    def test_no_override_returns_copy(self):
        base = {'a': {'b': 1}}
        result = merge_config(base)

        assert result == base
        assert result is not base

    @pytest.mark.parametrize("override", ['{not json', '[1, 2]', '"text"', '42'])
    def test_invalid_override(self, override):
        with pytest.raises(ConfigParseError):
            merge_config({}, override)

    def test_parse_error_is_runner_error(self):
        with pytest.raises(QARunnerError) as exc_info:
            merge_config({}, '{')
        assert exc_info.value.phase == 'config'
        assert str(exc_info.value).startswith('[config] ')


class TestResolveOption:
    """Test flag and environment precedence"""

    def test_flag_wins(self, monkeypatch):
        monkeypatch.setenv(GREP_ENV_VAR, 'from-env')
        assert resolve_option('from-flag', GREP_ENV_VAR) == 'from-flag'

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv(GREP_ENV_VAR, 'from-env')
        assert resolve_option(None, GREP_ENV_VAR) == 'from-env'

    def test_neither(self, monkeypatch):
        monkeypatch.delenv(GREP_ENV_VAR, raising=False)
        assert resolve_option(None, GREP_ENV_VAR) is None


class TestConfigManager:
    """Test ConfigManager"""

    def test_yaml_layered_over_defaults(self, tmp_path):
        path = tmp_path / "qa-runner.yaml"
        path.write_text(yaml.dump({'gherkin': {'steps': ['steps.py']}, 'reports': ['html']}))

        manager = ConfigManager(path)

        assert manager.get('gherkin.steps') == ['steps.py']
        assert manager.get('gherkin.features') == DEFAULT_CONFIG['gherkin']['features']
        assert manager.get('reports') == ['html']
        assert manager.test_root == tmp_path.resolve()

    def test_json_config(self, tmp_path):
        path = tmp_path / "qa-runner.json"
        path.write_text(json.dumps({'output': 'reports'}))

        assert ConfigManager(path).get('output') == 'reports'

    def test_directory_path(self, tmp_path):
        (tmp_path / "qa-runner.yaml").write_text("output: out\n")
        manager = ConfigManager(tmp_path)

        assert manager.config_path == tmp_path / "qa-runner.yaml"
        assert manager.get('output') == 'out'

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(InitError):
            ConfigManager(tmp_path / "missing.yaml")

    def test_missing_default_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        manager = ConfigManager()

        assert manager.data == DEFAULT_CONFIG

    def test_env_config_path(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("output: env-out\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert ConfigManager().get('output') == 'env-out'

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "qa-runner.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(InitError):
            ConfigManager(path)

    def test_merged_applies_override(self, tmp_path):
        path = tmp_path / "qa-runner.yaml"
        path.write_text("executor:\n  browser: chromium\n  headless: true\n")
        manager = ConfigManager(path)

        merged = manager.merged('{"executor": {"headless": false}}')

        assert merged['executor'] == {'browser': 'chromium', 'headless': False}
        assert manager.get('executor.headless') is True

    def test_get_missing_key(self, tmp_path):
        path = tmp_path / "qa-runner.yaml"
        path.write_text("{}\n")

        assert ConfigManager(path).get('executor.browser', 'chromium') == 'chromium'


def test_get_test_root(tmp_path):
    config_file = tmp_path / "qa-runner.yaml"
    config_file.write_text("{}\n")

    assert get_test_root(config_file) == tmp_path.resolve()
    assert get_test_root(tmp_path) == tmp_path.resolve()
