"""
Application configuration and settings management.
"""
import json
import os
from typing import Dict, Any, Optional
from utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_SETTINGS_FILE = "settings.json"


class AppSettings:
    """Application settings backed by a JSON file."""

    def __init__(self, settings_file: str = DEFAULT_SETTINGS_FILE):
        """
        Initialize settings manager.

        Args:
            settings_file: Path to settings JSON file
        """
        self.settings_file = settings_file
        self._settings = self._load_default_settings()
        self.load()

    def _load_default_settings(self) -> Dict[str, Any]:
        return {
            "log_level": "INFO",
            "log_dir": "logs",
            "last_input_file": "",
            "last_output_directory": "output",
            "view_factor_sum_tolerance": 1e-3,
            "warn_on_view_factor_sums": True,
            "auto_save_settings": True,
            "max_recent_files": 10,
            "recent_files": []
        }

    def load(self) -> bool:
        """
        Load settings from file.

        Returns:
            True if loaded successfully, False if using defaults
        """
        if not os.path.exists(self.settings_file):
            logger.info("Settings file not found, using defaults")
            return False
        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                file_settings = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading settings from {self.settings_file}: {e}")
            return False

        if not isinstance(file_settings, dict):
            logger.error(f"Settings file {self.settings_file} does not contain a JSON object")
            return False

        self._settings.update(file_settings)
        logger.info(f"Settings loaded from {self.settings_file}")
        return True

    def save(self) -> bool:
        """
        Save settings to file.

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            directory = os.path.dirname(self.settings_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.settings_file, 'w', encoding='utf-8') as f:
                json.dump(self._settings, f, indent=2, ensure_ascii=False)
            logger.info(f"Settings saved to {self.settings_file}")
            return True
        except OSError as e:
            logger.error(f"Error saving settings: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self._settings.get(key, default)

    def set(self, key: str, value: Any, auto_save: bool = None) -> None:
        """
        Set setting value.

        Args:
            key: Setting key
            value: Setting value
            auto_save: Whether to auto-save (uses setting if None)
        """
        self._settings[key] = value

        if auto_save is None:
            auto_save = self.get("auto_save_settings", True)

        if auto_save:
            self.save()

    def update(self, settings: Dict[str, Any], auto_save: bool = None) -> None:
        self._settings.update(settings)

        if auto_save is None:
            auto_save = self.get("auto_save_settings", True)

        if auto_save:
            self.save()

    def add_recent_file(self, file_path: str, auto_save: bool = None) -> None:
        """
        Move file_path to the front of the recent files list and remember it
        as the last input file.

        Args:
            file_path: Path to recently used file
            auto_save: Whether to auto-save (uses setting if None)
        """
        recent_files = [f for f in self.get("recent_files", []) if f != file_path]
        recent_files.insert(0, file_path)
        recent_files = recent_files[:self.get("max_recent_files", 10)]

        self.update({"recent_files": recent_files, "last_input_file": file_path}, auto_save=auto_save)

    def get_all(self) -> Dict[str, Any]:
        return self._settings.copy()

    def reset_to_defaults(self) -> None:
        """Reset all settings to defaults."""
        self._settings = self._load_default_settings()
        self.save()
        logger.info("Settings reset to defaults")


class ConfigManager:
    """Global configuration manager."""

    _instance: Optional['ConfigManager'] = None
    _settings: Optional[AppSettings] = None

    def __new__(cls) -> 'ConfigManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._settings is None:
            self._settings = AppSettings(os.getenv("VIEW_FACTORS_SETTINGS", DEFAULT_SETTINGS_FILE))

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @classmethod
    def get_instance(cls) -> 'ConfigManager':
        return cls()

    @classmethod
    def reset(cls) -> None:
        """Forget the shared settings so the next access reloads them."""
        cls._instance = None
        cls._settings = None
