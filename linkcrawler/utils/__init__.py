"""
Utility modules for the link crawler.
"""

from .config import Config, ConfigError, ConfigManager, CrawlPolicy, load_config

__all__ = ['Config', 'ConfigError', 'ConfigManager', 'CrawlPolicy', 'load_config']
