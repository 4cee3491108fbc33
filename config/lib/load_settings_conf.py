"""Settings configuration loader module.

This module handles loading and parsing of the settings.conf file which contains
the service settings: the ledger network and contract, RPC endpoints, the hosted
auth service location and geocoding options.

The settings file uses INI format with a [DEFAULT] section containing key-value pairs.
Every setting has a built-in default, so the file itself is optional. Secrets are
never read from the file; they come from the environment (see load_env_secrets).

Example settings.conf:
    [DEFAULT]
    network = sepolia
    contract_address = 0x04b1c...
    rpc_timeout = 10

Raises:
    SettingsError: If the settings file is unreadable or contains invalid values
"""
from configparser import ConfigParser, Error as ConfigParserError
from pathlib import Path
from typing import Dict, Any, List
import logging
import os

logger = logging.getLogger(__name__)

class ConfigValidationError:
    """Helper class to format configuration validation errors"""
    def __init__(self):
        self.invalid: List[str] = []
        self.missing_sections: List[str] = []
    
    def has_errors(self) -> bool:
        """Check if any errors exist"""
        return bool(self.invalid or self.missing_sections)
    
    def format_message(self) -> str:
        """Format error message in a clean, readable way"""
        messages = []
        
        if self.missing_sections:
            messages.append("Missing required sections:")
            messages.extend(f"  - {item}" for item in self.missing_sections)
            
        if self.invalid:
            if messages:
                messages.append("")
            messages.append("Invalid settings:")
            messages.extend(f"  - {item}" for item in self.invalid)
            
        return "\n".join(messages)

class SettingsError(Exception):
    """Raised when there are issues loading or parsing the settings configuration."""
    pass

SUPPORTED_NETWORKS = ('sepolia', 'mainnet')

# Default settings
DEFAULTS = {
    'network': 'sepolia',
    'contract_address': '0x0',
    'rpc_url_mainnet': 'https://starknet-mainnet.public.blastapi.io/rpc/v0_7',
    'rpc_url_sepolia': 'https://starknet-sepolia.public.blastapi.io/rpc/v0_7',
    'rpc_timeout': '10',  # Seconds before a node call is abandoned
    'auth_service_url': 'https://services.cavos.xyz/api/v1/external',
    'geocoder': 'nominatim',  # nominatim | static
    'geocoding_url': 'https://nominatim.openstreetmap.org/search',
    'geocoding_country': 'Argentina',
    'session_file': os.path.expanduser('~/.fernet_barato/session.json'),
    'host': '0.0.0.0',
    'port': '8000',
    'cors_origins': '*'  # Comma separated
}

# Environment variables that override file settings
ENV_OVERRIDES = {
    'STARKNET_NETWORK': 'network',
    'CONTRACT_ADDRESS': 'contract_address',
    'CAVOS_SERVICE_URL': 'auth_service_url'
}

def load_settings_conf(settings_path: str = ".") -> Dict[str, Any]:
    """Load and parse settings.conf, falling back to defaults when absent
    
    Args:
        settings_path: Directory containing settings.conf
        
    Returns:
        Dictionary containing parsed and validated settings
        
    Raises:
        SettingsError: If parsing fails or validation fails
    """
    config_path = Path(settings_path) / 'settings.conf'
    settings = dict(DEFAULTS)
    
    if config_path.exists():
        parser = ConfigParser()
        try:
            parser.read(config_path)
        except ConfigParserError as e:
            raise SettingsError(f"Error parsing settings.conf: {str(e)}")
        settings.update(dict(parser['DEFAULT']))
    else:
        logger.info(f"No settings file at {config_path}, using defaults")
    
    for env_name, key in ENV_OVERRIDES.items():
        if os.environ.get(env_name):
            settings[key] = os.environ[env_name]
    
    return validate_settings(settings)

def validate_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Validate loaded settings.
    
    Args:
        settings: Dictionary of settings to validate
        
    Returns:
        Validated and processed settings
        
    Raises:
        SettingsError: If validation fails
    """
    errors = ConfigValidationError()
    
    if settings['network'] not in SUPPORTED_NETWORKS:
        errors.invalid.append(
            f"network: {settings['network']} (must be one of: {', '.join(SUPPORTED_NETWORKS)})"
        )
    
    try:
        settings['rpc_timeout'] = float(settings['rpc_timeout'])
        if settings['rpc_timeout'] <= 0:
            errors.invalid.append("rpc_timeout: must be positive")
    except (TypeError, ValueError):
        errors.invalid.append(f"rpc_timeout: {settings['rpc_timeout']} is not a number")
    
    try:
        settings['port'] = int(settings['port'])
    except (TypeError, ValueError):
        errors.invalid.append(f"port: {settings['port']} is not an integer")
    
    settings['cors_origins'] = [
        origin.strip() for origin in str(settings['cors_origins']).split(',') if origin.strip()
    ]
    
    if settings['geocoder'] not in ('nominatim', 'static'):
        errors.invalid.append(f"geocoder: {settings['geocoder']} (must be nominatim or static)")
    
    if errors.has_errors():
        raise SettingsError(
            "Settings Configuration Validation Failed\n\n" +
            errors.format_message()
        )
    
    return settings
