"""
Version identifier file.

The version of the project is recorded in a file of the repository. Two
formats are handled:

- JSON manifests (``package.json``...): the top level ``version`` key is
  updated, every other key is kept in place;
- any other file: the whole content is the version (``VERSION``).

Versions are always written without prefix.
"""

import json
import logging
import os
from typing import Optional

from release_flow import utils

logger = logging.getLogger(__name__)


class VersionFile:
    """Reads and writes the version of the project.

    Args:
        path: Path of the file, relative to ``base_dir`` (e.g., "package.json")
        base_dir: Root of the working tree
    """

    def __init__(self, path: str, base_dir: str = '.'):
        self.__relative_path = path
        self.__path = os.path.join(base_dir, path)

    @property
    def relative_path(self) -> str:
        "Path as given, used with git add"
        return self.__relative_path

    @property
    def path(self) -> str:
        return self.__path

    @property
    def is_json(self) -> bool:
        return self.__path.endswith('.json')

    def exists(self) -> bool:
        return os.path.exists(self.__path)

    def read(self) -> Optional[str]:
        "Returns the recorded version, None if the file or the key is missing."
        if not self.exists():
            return None
        content = utils.read(self.__path)
        if self.is_json:
            return json.loads(content).get('version')
        return content.strip() or None

    def write(self, version: str) -> None:
        """
        Record ``version`` (without prefix) in the file.

        A JSON manifest keeps its keys and their order. A missing file is
        created.
        """
        if self.is_json:
            data = json.loads(utils.read(self.__path)) if self.exists() else {}
            data['version'] = version
            utils.write(self.__path, json.dumps(data, indent=2, ensure_ascii=False) + '\n')
        else:
            utils.write(self.__path, f'{version}\n')
        logger.info("Wrote version %s to %s", version, self.__relative_path)
