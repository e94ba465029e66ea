"""
Logging setup for command line runs.
"""
import logging
import logging.handlers
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = '%(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LoggingConfig:
    """Centralized logging configuration manager."""

    @staticmethod
    def setup_logging(
        log_level: str = "INFO",
        log_dir: Optional[str] = "logs",
        app_name: str = "view_factors",
        max_file_size: int = 5 * 1024 * 1024,  # 5MB
        backup_count: int = 3,
        console: bool = True
    ) -> logging.Logger:
        """
        Configure the root logger with a rotating file handler and a console handler.

        Args:
            log_level: Level name for the console and root logger
            log_dir: Directory for log files, or None to skip file logging
            app_name: Prefix of the log file name
            max_file_size: Maximum size of each log file in bytes
            backup_count: Number of rotated files to keep
            console: Whether to log to stderr

        Returns:
            Configured root logger
        """
        level = LoggingConfig.parse_level(log_level)

        logger = logging.getLogger()
        logger.setLevel(logging.DEBUG if log_dir else level)
        logger.handlers.clear()

        if log_dir:
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = os.path.join(log_dir, f"{app_name}_{timestamp}.log")

            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
            logger.addHandler(file_handler)
            logger.debug(f"Logging to {log_file}")

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(level)
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
            logger.addHandler(console_handler)

        return logger

    @staticmethod
    def parse_level(level: str) -> int:
        """
        Translate a level name to its numeric value.

        Raises:
            ValueError: For unknown level names
        """
        numeric_level = getattr(logging, str(level).upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(f"Unknown log level: {level}")
        return numeric_level

    @staticmethod
    def set_log_level(level: str) -> None:
        """
        Set logging level for the root logger and its console handlers.

        Args:
            level: New logging level
        """
        numeric_level = LoggingConfig.parse_level(level)
        root = logging.getLogger()
        for handler in root.handlers:
            if type(handler) is logging.StreamHandler:
                handler.setLevel(numeric_level)
        if not any(isinstance(h, logging.FileHandler) for h in root.handlers):
            root.setLevel(numeric_level)
