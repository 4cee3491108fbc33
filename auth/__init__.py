"""Authentication module backed by the hosted wallet service.

This module provides:
1. Request validation for sign-in, sign-up and execution
2. The hosted service client used for credentials and transaction submission
3. A FastAPI dependency resolving the caller's session
"""

import logging
import re
from typing import Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings_conf, load_env_secrets, SUPPORTED_NETWORKS
from session import SessionUser
from .hosted import HostedAuthClient, HostedServiceError

# Configure logging
logger = logging.getLogger(__name__)

# Constants
MIN_PASSWORD_LENGTH = 8
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

class AuthError(Exception):
    """Base exception for authentication errors."""
    pass

class ValidationError(AuthError):
    """Raised when a request field is missing or malformed."""
    pass

class ConfigurationError(AuthError):
    """Raised when a required secret is not configured."""
    pass

def require_fields(**fields) -> None:
    """Reject the request when any named field is absent or an empty string."""
    missing = [name for name, value in fields.items() if value is None or value == ""]
    if missing:
        logger.info(f"Missing required fields: {missing}")
        raise ValidationError(f"Missing required fields: {', '.join(fields)}")

def validate_email(email: str) -> str:
    if not EMAIL_PATTERN.match(email):
        logger.info(f"Invalid email format: {email}")
        raise ValidationError("Invalid email format")
    return email

def validate_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        logger.info(f"Password too short: {len(password)}")
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return password

def validate_network(network: str) -> str:
    if network not in SUPPORTED_NETWORKS:
        logger.info(f"Invalid network: {network}")
        raise ValidationError(
            f"Invalid network. Must be one of: {', '.join(SUPPORTED_NETWORKS)}"
        )
    return network

def require_secrets(*names: str) -> Dict[str, str]:
    """Return the named secrets, raising ConfigurationError for an unset one."""
    secrets = load_env_secrets()
    for name in names:
        if not secrets.get(name):
            logger.error(f"{name} not configured")
            raise ConfigurationError(f"{name} environment variable is not configured")
    return {name: secrets[name] for name in names}

def get_hosted_client() -> HostedAuthClient:
    """Client for the configured application.

    Raises:
        ConfigurationError: If CAVOS_APP_ID is not set
    """
    app_id = require_secrets('CAVOS_APP_ID')['CAVOS_APP_ID']
    return HostedAuthClient(app_id)

# FastAPI security scheme
auth_scheme = HTTPBearer(
    auto_error=True,  # Return 401 automatically if token is missing
    description="Access token issued by the hosted wallet service"
)

async def get_session_user(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
    x_wallet_address: Optional[str] = Header(None),
    x_network: Optional[str] = Header(None)
) -> SessionUser:
    """FastAPI dependency for getting the calling user's session.
    
    Args:
        credentials: Bearer access token
        x_wallet_address: The caller's wallet address
        x_network: Optional network, defaults to the configured one
        
    Returns:
        The session for this request
        
    Raises:
        HTTPException: If the wallet address is missing or the network is invalid
    """
    if not x_wallet_address:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Wallet-Address header required"
        )
    network = x_network or settings_conf['network']
    try:
        validate_network(network)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return SessionUser(
        access_token=credentials.credentials,
        wallet_address=x_wallet_address,
        network=network
    )

# Export public interface
__all__ = [
    'HostedAuthClient',
    'HostedServiceError',
    'get_hosted_client',
    'get_session_user',
    'auth_scheme',
    'require_fields',
    'require_secrets',
    'validate_email',
    'validate_password',
    'validate_network',
    'AuthError',
    'ValidationError',
    'ConfigurationError',
    'MIN_PASSWORD_LENGTH'
]
