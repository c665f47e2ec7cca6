from .loader import ConfigError, FeetaxConfig, SettingsError, load_config

__all__ = [
    "ConfigError",
    "FeetaxConfig",
    "SettingsError",
    "load_config",
]
