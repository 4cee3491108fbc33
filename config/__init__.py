"""Configuration module for loading and managing application settings"""
import os
from typing import Dict, Any
from .lib.load_settings_conf import load_settings_conf, SettingsError, SUPPORTED_NETWORKS, DEFAULTS
from .lib.load_env_secrets import load_env_secrets

__all__ = ['settings_conf', 'load_env_secrets', 'SettingsError', 'SUPPORTED_NETWORKS', 'DEFAULTS']

try:
    settings_conf: Dict[str, Any] = load_settings_conf(os.environ.get('FERNET_SETTINGS_DIR', '.'))
    
except SettingsError as e:
    # Re-raise the error but provide more context
    raise type(e)(
        f"Configuration Error\n"
        "=================\n\n"
        f"{str(e)}\n\n"
        "Please ensure settings.conf is properly configured.\n"
        "Run `python -m config` to write an example file."
    )
