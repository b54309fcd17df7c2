"""
Config Store - Keeps configuration objects such as keywords, credentials and tokens
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from trash_cleaner.errors import ConfigError


logger = logging.getLogger(__name__)


class ConfigStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        """Read a configuration object, None if it does not exist"""
        ...

    def put(self, key: str, value: Any) -> None:
        """Write a configuration object"""
        ...


class FileSystemConfigStore:
    """Stores each configuration object as a JSON file in a directory"""

    def __init__(self, config_dir: Union[str, Path]):
        self.config_dir = Path(config_dir)
        if not self.config_dir.is_dir():
            raise ConfigError(f"Invalid config directory path: {self.config_dir}")

    def get(self, key: str) -> Optional[Any]:
        config_path = self.config_dir / key
        if not config_path.exists():
            logger.debug(f"No config found for {key}")
            return None

        try:
            return json.loads(config_path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as error:
            raise ConfigError(f"Failed to read config '{key}': {error}") from error

    def put(self, key: str, value: Any) -> None:
        config_path = self.config_dir / key
        config_path.write_text(json.dumps(value, separators=(',', ':')), encoding='utf-8')
        logger.debug(f"Saved config {key} to {config_path}")
