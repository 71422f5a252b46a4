"""
Tests for Config - defaults, config file and environment.
"""

import pytest

from release_flow.config import Config
from release_flow.exceptions import ConfigurationError


class TestConfig:

    def test_defaults(self, tmp_path):
        config = Config(str(tmp_path), environ={})
        assert config.version_prefix == 'v'
        assert config.pipeline.branches == ('main', 'beta')
        assert config.git_user_name == 'GitHub Action'
        assert config.git_user_email == 'action@github.com'
        assert config.version_file == 'package.json'
        assert config.token is None
        assert config.api_url == 'https://api.github.com'

    def test_config_file(self, tmp_path):
        (tmp_path / '.release-flow').mkdir()
        (tmp_path / '.release-flow' / 'config').write_text(
            '[release-flow]\nversion_prefix = rel-\nsupported_branches = main,beta,alpha\n')
        config = Config(str(tmp_path), environ={})
        assert config.version_prefix == 'rel-'
        assert config.pipeline.branches == ('main', 'beta', 'alpha')

    def test_environment_overrides_file(self, tmp_path):
        (tmp_path / '.release-flow').mkdir()
        (tmp_path / '.release-flow' / 'config').write_text('[release-flow]\nversion_prefix = rel-\n')
        config = Config(str(tmp_path), environ={
            'INPUT_VERSION-PREFIX': 'ver-',
            'INPUT_GIT-USER-NAME': 'release-bot',
            'INPUT_VERSION-FILE': 'VERSION',
            'GITHUB_TOKEN': 'token',
            'GITHUB_REPOSITORY': 'acme/app',
        })
        assert config.version_prefix == 'ver-'
        assert config.git_user_name == 'release-bot'
        assert config.version_file == 'VERSION'
        assert config.token == 'token'
        assert config.repository == 'acme/app'

    def test_input_token_wins(self, tmp_path):
        config = Config(str(tmp_path), environ={'INPUT_TOKEN': 'input', 'GITHUB_TOKEN': 'env'})
        assert config.token == 'input'

    def test_unsupported_prefix_falls_back(self, tmp_path):
        config = Config(str(tmp_path), environ={'INPUT_VERSION-PREFIX': 'release/'})
        assert config.version_prefix == 'v'

    def test_invalid_branches(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Config(str(tmp_path), environ={'INPUT_SUPPORTED-BRANCHES': 'main'})

    def test_write_then_read(self, tmp_path):
        config = Config(str(tmp_path), environ={'INPUT_SUPPORTED-BRANCHES': 'main,beta,alpha'})
        config.write()
        assert Config(str(tmp_path), environ={}).pipeline.branches == ('main', 'beta', 'alpha')
