import logging
import logging.handlers
from pathlib import Path
import traceback

from grocery_inventory.config import config


class Logger:
    """Logging manager for the Grocery Inventory system."""

    _instance = None
    _loggers = {}

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the logger if not already initialized."""
        if self._initialized:
            return

        self._log_config = config.log_config
        self._log_dir = Path(self._log_config['directory'])

        if self._log_config['file_output'] and not self._log_dir.exists():
            self._log_dir.mkdir(parents=True)

        self._configure_package_logger()

        # Application logger
        self._app_logger = self.get_logger('app')

        self._initialized = True

    def _level(self):
        level_name = self._log_config['level'].upper()
        return getattr(logging, level_name, logging.INFO)

    def _configure_package_logger(self):
        """Configure the ``grocery_inventory`` logger that module loggers propagate to."""
        package_logger = logging.getLogger('grocery_inventory')
        package_logger.setLevel(self._level())

        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)

        for handler in self._build_handlers('grocery_inventory'):
            package_logger.addHandler(handler)

    def _build_handlers(self, name):
        formatter = logging.Formatter(self._log_config['format'])
        handlers = []

        if self._log_config['file_output']:
            log_file = self._log_dir / f"{name}.log"
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=self._log_config['max_size_mb'] * 1024 * 1024,
                backupCount=self._log_config['backup_count']
            )
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

        if self._log_config['console_output']:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            handlers.append(console_handler)

        return handlers

    def get_logger(self, name):
        """Get a logger with the specified name.

        Args:
            name: Name of the logger

        Returns:
            Configured logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        logger = logging.getLogger(name)
        logger.setLevel(self._level())

        # Remove existing handlers to prevent duplicates
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        for handler in self._build_handlers(name):
            logger.addHandler(handler)

        # Prevent propagation to root logger to avoid duplicates
        logger.propagate = False

        self._loggers[name] = logger
        return logger

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception with stack trace.

        Args:
            logger_name: Logger name
            exception: Exception object
            message: Optional message to include
        """
        logger = self.get_logger(logger_name)

        if message:
            logger.error(f"{message}: {str(exception)}")
        else:
            logger.error(str(exception))

        logger.error(traceback.format_exc())

    @property
    def app_logger(self):
        """Get the application logger."""
        return self._app_logger

# Global logger instance
logger = Logger()

def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)

def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    logger.log_exception(logger_name, exception, message)
