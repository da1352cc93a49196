"""Configuration management for the drive client."""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from common.constants import DEFAULT_FOLDER_CACHE_SIZE, MAX_PART_SIZE_BYTES
from common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.alidrive' / 'config.json'


class Config:
    """Manages drive configuration stored in a JSON file."""

    DEFAULT_CONFIG = {
        "timeout": 30,
        "upload_timeout": 600,
        "max_part_size": MAX_PART_SIZE_BYTES,
        "use_internal_url": False,
        "is_album": False,
        "folder_cache_size": DEFAULT_FOLDER_CACHE_SIZE,
    }

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.alidrive/config.json)
        """
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.alidrive' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        config = self.DEFAULT_CONFIG.copy()
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, IOError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Config file unreadable, backing up [path={self.config_path}, error={e}]")
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError:
                    logger.warning(f"Could not back up config [path={backup_path}]")
                config = self.DEFAULT_CONFIG.copy()
        else:
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except IOError:
                logger.warning(f"Could not write default config [path={self.config_path}]")

        if os.environ.get('ALIDRIVE_REFRESH_TOKEN'):
            config['refresh_token'] = os.environ['ALIDRIVE_REFRESH_TOKEN']
        if os.environ.get('ALIDRIVE_TIMEOUT'):
            config['timeout'] = float(os.environ['ALIDRIVE_TIMEOUT'])
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.error(f"Failed to save config [path={self.config_path}, error={e}]")

    def get_refresh_token(self) -> Optional[str]:
        """
        Get stored refresh token.

        Returns:
            Refresh token string or None if not set
        """
        return self.data.get('refresh_token')

    def set_refresh_token(self, token: str) -> None:
        """
        Set refresh token and save to file.

        Args:
            token: Refresh token issued by the auth endpoint
        """
        self.data['refresh_token'] = token
        self.save()

    def get_timeout(self) -> float:
        """Request timeout in seconds for API calls."""
        return self.data.get('timeout', 30)

    def get_upload_timeout(self) -> float:
        """Request timeout in seconds for a single part upload."""
        return self.data.get('upload_timeout', 600)

    def get_max_part_size(self) -> int:
        size = int(self.data.get('max_part_size', MAX_PART_SIZE_BYTES))
        if size <= 0:
            raise ValueError(f"max_part_size must be positive, got {size}")
        return size

    def get_folder_cache_size(self) -> int:
        return int(self.data.get('folder_cache_size', DEFAULT_FOLDER_CACHE_SIZE))

    def use_internal_url(self) -> bool:
        return bool(self.data.get('use_internal_url', False))

    def is_album(self) -> bool:
        return bool(self.data.get('is_album', False))

    def __repr__(self) -> str:
        return f"Config(path={self.config_path})"
