import os
import configparser
from pathlib import Path

CONFIG_ENV_VAR = 'GROCERY_INVENTORY_CONFIG'


class Config:
    """Configuration manager for the Grocery Inventory system."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config = configparser.ConfigParser(interpolation=None)
        self.load(os.environ.get(CONFIG_ENV_VAR))
        self._initialized = True

    def load(self, config_path=None):
        """Load configuration from an INI file.

        Defaults are always applied first; values in the file override them.
        A missing file is created with the defaults.

        Args:
            config_path: Optional path to the INI file
        """
        self._config_path = Path(config_path) if config_path else Path('config') / 'settings.ini'
        self._config = configparser.ConfigParser(interpolation=None)
        self._apply_defaults()

        if self._config_path.exists():
            self._config.read(self._config_path)
        else:
            self._save_config()

    def _apply_defaults(self):
        """Populate the parser with default sections."""
        self._config['DATABASE'] = {
            'url': 'sqlite:///grocery_inventory.db',
            'echo': 'False'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'True',
            'file_output': 'True'
        }

        self._config['CACHE'] = {
            'default_ttl': '30',
            'forecast_ttl': '300'
        }

        self._config['BUSINESS_RULES'] = {
            'default_lead_time': '7',
            'ordering_cost': '25.0',
            'holding_cost_rate': '0.25',
            'service_level_z': '1.65',
            'forecast_horizon_days': '30',
            'forecast_lookback_days': '90',
            'seasonal_period': '7',
            'low_stock_threshold': '10',
            'expiring_days_threshold': '30'
        }

    def _save_config(self):
        """Save configuration to file."""
        config_dir = self._config_path.parent
        if not config_dir.exists():
            config_dir.mkdir(parents=True)

        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value, persist=True):
        """Set configuration value."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))
        if persist:
            self._save_config()

    def get_db_url(self):
        """Get SQLAlchemy database URL."""
        return self.get('DATABASE', 'url', 'sqlite:///grocery_inventory.db')

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True),
            'file_output': self.get_boolean('LOGGING', 'file_output', True)
        }

    @property
    def cache_config(self):
        """Get cache configuration (TTL values in seconds)."""
        return {
            'default_ttl': self.get_int('CACHE', 'default_ttl', 30),
            'forecast_ttl': self.get_int('CACHE', 'forecast_ttl', 300)
        }

    @property
    def business_rules(self):
        """Get business rules configuration."""
        return {
            'default_lead_time': self.get_int('BUSINESS_RULES', 'default_lead_time', 7),
            'ordering_cost': self.get_float('BUSINESS_RULES', 'ordering_cost', 25.0),
            'holding_cost_rate': self.get_float('BUSINESS_RULES', 'holding_cost_rate', 0.25),
            'service_level_z': self.get_float('BUSINESS_RULES', 'service_level_z', 1.65),
            'forecast_horizon_days': self.get_int('BUSINESS_RULES', 'forecast_horizon_days', 30),
            'forecast_lookback_days': self.get_int('BUSINESS_RULES', 'forecast_lookback_days', 90),
            'seasonal_period': self.get_int('BUSINESS_RULES', 'seasonal_period', 7),
            'low_stock_threshold': self.get_int('BUSINESS_RULES', 'low_stock_threshold', 10),
            'expiring_days_threshold': self.get_int('BUSINESS_RULES', 'expiring_days_threshold', 30)
        }

# Global config instance
config = Config()
