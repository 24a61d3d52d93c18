# reelsync/infrastructure/logging/log_manager.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Union, Optional


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
DEFAULT_LOG_FILE = 'logs/reelsync.log'

DEFAULT_LOGGING = {
    'level': 'INFO',
    'console': True,
    'loggers': {
        'domain': {'level': 'INFO'},
        'application.spin': {'level': 'INFO'},
        'infrastructure': {'level': 'WARNING'},
    },
}

LEVEL_ALIASES = {'WARN': logging.WARNING, 'FATAL': logging.CRITICAL}


class LogManager:
    """
    Owns the root handlers of the process.

    Config keys: level, format, date_format, console, console_level,
    file {enabled, path, level, max_bytes, backup_count} and
    loggers {name: {level, propagate}}.
    """
    def __init__(self):
        self.root_logger = logging.getLogger()
        self.loggers: Dict[str, logging.Logger] = {}
        self.handlers: Dict[str, logging.Handler] = {}
        self.initialized = False

    def initialize(self, config: Dict[str, Any], force: bool = False):
        """
        Args:
            config: Logging section of the engine configuration
            force: Drop the handlers of an earlier call and apply ``config``
        """
        if self.initialized and not force:
            return
        self.reset()

        level = self._get_log_level(config.get('level', 'INFO'))
        formatter = logging.Formatter(config.get('format', DEFAULT_FORMAT),
                                      config.get('date_format', DEFAULT_DATE_FORMAT))

        self.root_logger.setLevel(level)
        for handler in list(self.root_logger.handlers):
            self.root_logger.removeHandler(handler)

        if config.get('console', True):
            self._install('console', logging.StreamHandler(sys.stdout),
                          config.get('console_level', level), formatter)

        file_handler = self._build_file_handler(config.get('file') or {})
        if file_handler is not None:
            self._install('file', file_handler,
                          (config.get('file') or {}).get('level', level), formatter)

        self._configure_loggers(config.get('loggers') or {}, level)
        self.initialized = True
        self.root_logger.debug(f"Logging initialized with handlers {sorted(self.handlers)}")

    def _install(self, name: str, handler: logging.Handler, level, formatter: logging.Formatter):
        handler.setLevel(self._get_log_level(level))
        handler.setFormatter(formatter)
        self.root_logger.addHandler(handler)
        self.handlers[name] = handler

    @staticmethod
    def _build_file_handler(file_config: Dict[str, Any]) -> Optional[logging.Handler]:
        if not file_config.get('enabled', False):
            return None
        path = file_config.get('path', DEFAULT_LOG_FILE)
        if os.path.dirname(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
        return RotatingFileHandler(path,
                                   maxBytes=file_config.get('max_bytes', 10 * 1024 * 1024),
                                   backupCount=file_config.get('backup_count', 5))

    def _configure_loggers(self, logger_configs: Dict[str, Any], default_level: int):
        # shallow names first so "application.spin" overrides "application"
        for name in sorted(logger_configs, key=lambda n: n.count('.')):
            settings = logger_configs[name] or {}
            logger = logging.getLogger(name)
            logger.setLevel(self._get_log_level(settings.get('level', default_level)))
            logger.propagate = settings.get('propagate', True)
            self.loggers[name] = logger

    def reset(self):
        """Remove and close the handlers this manager installed."""
        for handler in self.handlers.values():
            self.root_logger.removeHandler(handler)
            handler.close()
        self.handlers = {}
        self.loggers = {}
        self.initialized = False

    @staticmethod
    def _get_log_level(level: Union[str, int]) -> int:
        if isinstance(level, int):
            return level
        name = str(level).upper()
        if name in LEVEL_ALIASES:
            return LEVEL_ALIASES[name]
        resolved = logging.getLevelName(name)
        return resolved if isinstance(resolved, int) else logging.INFO


log_manager = LogManager()


def initialize_logging(config: Optional[Dict[str, Any]] = None, force: bool = False) -> LogManager:
    """Configure the shared manager; console-only INFO logging when no config is given."""
    log_manager.initialize(config if config is not None else DEFAULT_LOGGING, force=force)
    return log_manager
