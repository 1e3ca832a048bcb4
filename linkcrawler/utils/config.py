"""
Configuration management for the link crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, fields, replace


DEFAULT_USER_AGENT = "LinkCrawler/1.0 (+https://pypi.org/project/link-crawler/)"


class ConfigError(ValueError):
    """Raised when the crawl cannot start because of bad configuration."""


@dataclass(frozen=True)
class CrawlPolicy:
    """Read-only crawl policy shared by every component of a run."""
    seed_url: str = ""
    restrict_on_domain: bool = False
    limit: Optional[int] = None
    max_concurrency: int = 5
    request_timeout: float = 10.0
    max_depth: int = 50
    user_agent: str = DEFAULT_USER_AGENT
    max_content_size: int = 10 * 1024 * 1024


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "ERROR"
    file: Optional[str] = None
    format: str = "[%(asctime)s %(levelname)5s]: %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: Optional[int] = None
    metrics_enabled: bool = True


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlPolicy = field(default_factory=CrawlPolicy)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    verbosity: int = 0


def _build_section(cls, data: Optional[Dict[str, Any]], section: str):
    """Build a config dataclass from a YAML mapping, rejecting unknown keys."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Config section '{section}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in config section '{section}': {', '.join(sorted(unknown))}")
    return cls(**data)


def _is_int(value) -> bool:
    """bool is an int subclass, but `limit: true` is not a number."""
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _apply_overrides(section, overrides: Optional[Dict[str, Any]]):
    """Replace fields of a config section with the non-None override values."""
    if not overrides:
        return section
    return replace(section, **{key: value for key, value in overrides.items() if value is not None})


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self, overrides: Optional[Dict[str, Any]] = None,
                    verbosity: int = 0,
                    logging_overrides: Optional[Dict[str, Any]] = None,
                    monitoring_overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Load configuration from the YAML file (if any) and apply CLI overrides.

        Args:
            overrides: CrawlPolicy fields given on the command line; None values are ignored
            verbosity: Number of -v flags
            logging_overrides: LoggingConfig fields given on the command line
            monitoring_overrides: MonitoringConfig fields given on the command line

        Returns:
            Validated Config
        """
        config_data: Dict[str, Any] = {}
        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigError(f"Configuration file not found: {self.config_path}")
            try:
                with open(self.config_path, 'r') as file:
                    config_data = yaml.safe_load(file) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Cannot read configuration file {self.config_path}: {e}") from e
            if not isinstance(config_data, dict):
                raise ConfigError(f"Configuration file {self.config_path} must contain a mapping")

        unknown = set(config_data) - {'crawler', 'logging', 'monitoring'}
        if unknown:
            raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown))}")

        try:
            crawler_config = _build_section(CrawlPolicy, config_data.get('crawler'), 'crawler')
            logging_config = _build_section(LoggingConfig, config_data.get('logging'), 'logging')
            monitoring_config = _build_section(MonitoringConfig, config_data.get('monitoring'), 'monitoring')
        except TypeError as e:
            raise ConfigError(str(e)) from e

        crawler_config = _apply_overrides(crawler_config, overrides)
        logging_config = _apply_overrides(logging_config, logging_overrides)
        monitoring_config = _apply_overrides(monitoring_config, monitoring_overrides)

        # --limit 0 means "no limit"
        if _is_int(crawler_config.limit) and crawler_config.limit == 0:
            crawler_config = replace(crawler_config, limit=None)

        self._config = Config(
            crawler=crawler_config,
            logging=logging_config,
            monitoring=monitoring_config,
            verbosity=verbosity
        )

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ConfigError("Configuration not loaded")

        # Imported here: the normalizer depends on ConfigError from this module
        from ..crawler.normalizer import normalize_seed

        crawler = self._config.crawler
        logging_config = self._config.logging
        monitoring = self._config.monitoring

        # YAML scalars arrive untyped, so check types before comparing values
        if not isinstance(crawler.seed_url, str):
            raise ConfigError("seed_url must be a string")
        if not isinstance(crawler.user_agent, str):
            raise ConfigError("user_agent must be a string")
        for name in ('max_concurrency', 'max_depth', 'max_content_size'):
            if not _is_int(getattr(crawler, name)):
                raise ConfigError(f"{name} must be an integer")
        if crawler.limit is not None and not _is_int(crawler.limit):
            raise ConfigError("limit must be an integer")
        if not _is_number(crawler.request_timeout):
            raise ConfigError("request_timeout must be a number")
        if not isinstance(crawler.restrict_on_domain, bool):
            raise ConfigError("restrict_on_domain must be true or false")

        if not isinstance(logging_config.level, str):
            raise ConfigError("logging level must be a string")
        if not isinstance(logging_config.format, str):
            raise ConfigError("logging format must be a string")
        if logging_config.file is not None and not isinstance(logging_config.file, str):
            raise ConfigError("logging file must be a path")
        if not isinstance(logging_config.json, bool):
            raise ConfigError("logging json must be true or false")

        if monitoring.prometheus_port is not None and not _is_int(monitoring.prometheus_port):
            raise ConfigError("prometheus_port must be an integer")
        if not isinstance(monitoring.metrics_enabled, bool):
            raise ConfigError("metrics_enabled must be true or false")

        self._config.crawler = crawler = replace(crawler, seed_url=normalize_seed(crawler.seed_url))

        if crawler.limit is not None and crawler.limit < 0:
            raise ConfigError("limit must be a non-negative integer")

        if crawler.max_concurrency < 1:
            raise ConfigError("max_concurrency must be at least 1")

        if crawler.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

        if crawler.max_depth < 0:
            raise ConfigError("max_depth must be non-negative")

        if crawler.max_content_size < 1:
            raise ConfigError("max_content_size must be at least 1")

        port = monitoring.prometheus_port
        if port is not None and not 0 < port < 65536:
            raise ConfigError("prometheus_port must be between 1 and 65535")

        if not isinstance(getattr(logging, logging_config.level.upper(), None), int):
            raise ConfigError(f"Unknown log level: {logging_config.level}")

        logging.getLogger(__name__).debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ConfigError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: Optional[str] = None,
                overrides: Optional[Dict[str, Any]] = None,
                verbosity: int = 0,
                **section_overrides) -> Config:
    """Load configuration from file and command-line overrides."""
    return ConfigManager(config_path).load_config(overrides, verbosity, **section_overrides)
