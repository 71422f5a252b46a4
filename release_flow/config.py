"""The config module provides the Config class.

Settings are read, in increasing priority, from the defaults, the optional
``.release-flow/config`` file and the environment (GitHub Actions inputs).
"""

import logging
import os
from configparser import ConfigParser
from typing import Mapping, Optional

from release_flow.constants import (CONFIG_DIR, CONFIG_FILE, CONFIG_SECTION, DEFAULT_BRANCHES,
                                    DEFAULT_COMMENT_TITLE, DEFAULT_GIT_USER_EMAIL,
                                    DEFAULT_GIT_USER_NAME, DEFAULT_PREFIX, DEFAULT_VERSION_FILE,
                                    GITHUB_API_URL, SUPPORTED_PREFIXES)
from release_flow.pipeline import BranchPipeline

logger = logging.getLogger(__name__)

# config file key -> action input name (INPUT_<NAME> in the environment)
_INPUTS = {
    'version_prefix': 'VERSION-PREFIX',
    'supported_branches': 'SUPPORTED-BRANCHES',
    'git_user_name': 'GIT-USER-NAME',
    'git_user_email': 'GIT-USER-EMAIL',
    'comment_title': 'COMMENT-TITLE',
    'version_file': 'VERSION-FILE',
}


class Config:
    """
    Settings of a release-flow run.

    Args:
        base_dir: Root of the repository holding ``.release-flow/config``
        environ: Environment mapping (default: os.environ)

    Examples:
        config = Config('.')
        config.version_prefix      # 'v'
        config.pipeline.branches   # ('main', 'beta')
    """

    def __init__(self, base_dir='.', environ: Optional[Mapping[str, str]] = None):
        self.__base_dir = base_dir
        self.__file = os.path.join(base_dir, CONFIG_DIR, CONFIG_FILE)
        self.__environ = os.environ if environ is None else environ
        self.__settings = {
            'version_prefix': DEFAULT_PREFIX,
            'supported_branches': ','.join(DEFAULT_BRANCHES),
            'git_user_name': DEFAULT_GIT_USER_NAME,
            'git_user_email': DEFAULT_GIT_USER_EMAIL,
            'comment_title': DEFAULT_COMMENT_TITLE,
            'version_file': DEFAULT_VERSION_FILE,
        }
        if os.path.exists(self.__file):
            self.read()
        self.__read_environ()
        self.__settings['version_prefix'] = self.__checked_prefix(self.__settings['version_prefix'])
        self.__pipeline = BranchPipeline(self.__settings['supported_branches'].split(','))

    def read(self):
        "Reads the [release-flow] section of the config file"
        config = ConfigParser()
        config.read(self.__file, encoding='utf-8')
        if not config.has_section(CONFIG_SECTION):
            logger.warning("%s has no [%s] section, ignored", self.__file, CONFIG_SECTION)
            return
        for key in _INPUTS:
            value = config[CONFIG_SECTION].get(key)
            if value:
                self.__settings[key] = value.strip()

    def write(self):
        "Writes the current settings to the config file"
        config = ConfigParser()
        config[CONFIG_SECTION] = dict(self.__settings)
        os.makedirs(os.path.dirname(self.__file), exist_ok=True)
        with open(self.__file, 'w', encoding='utf-8') as configfile:
            config.write(configfile)

    def __input(self, name) -> Optional[str]:
        value = self.__environ.get(f'INPUT_{name}')
        if value is None:
            value = self.__environ.get(f'INPUT_{name.replace("-", "_")}')
        return value.strip() if value and value.strip() else None

    def __read_environ(self):
        for key, name in _INPUTS.items():
            value = self.__input(name)
            if value is not None:
                self.__settings[key] = value

    @staticmethod
    def __checked_prefix(prefix):
        if prefix not in SUPPORTED_PREFIXES:
            logger.warning("Unsupported version prefix %r (supported: %s), using %r",
                           prefix, ', '.join(SUPPORTED_PREFIXES), DEFAULT_PREFIX)
            return DEFAULT_PREFIX
        return prefix

    @property
    def base_dir(self):
        return self.__base_dir

    @property
    def file(self):
        return self.__file

    @property
    def version_prefix(self) -> str:
        return self.__settings['version_prefix']

    @property
    def pipeline(self) -> BranchPipeline:
        return self.__pipeline

    @property
    def git_user_name(self) -> str:
        return self.__settings['git_user_name']

    @property
    def git_user_email(self) -> str:
        return self.__settings['git_user_email']

    @property
    def comment_title(self) -> str:
        return self.__settings['comment_title']

    @property
    def version_file(self) -> str:
        return self.__settings['version_file']

    @property
    def token(self) -> Optional[str]:
        return self.__input('TOKEN') or self.__environ.get('GITHUB_TOKEN') or None

    @property
    def repository(self) -> Optional[str]:
        return self.__environ.get('GITHUB_REPOSITORY') or None

    @property
    def api_url(self) -> str:
        return self.__environ.get('GITHUB_API_URL') or GITHUB_API_URL
