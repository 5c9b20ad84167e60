"""Configuration models and loaders for hicnsync."""

from .loader import ConfigError, DEFAULT_CONFIG_PATH, dump_example_config, load_config
from .models import DownloadPolicyConfig, HicnSyncConfig, RuntimeConfig, ServerConfig

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "DownloadPolicyConfig",
    "HicnSyncConfig",
    "RuntimeConfig",
    "ServerConfig",
    "dump_example_config",
    "load_config",
]
