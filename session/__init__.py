"""Session module for the signed-in user.

Each signed-in wallet has one session record (wallet address, access token,
network) kept in an injected storage backend under a key derived from the
wallet address. It is written on sign-in, replaced when a write refreshes the
access token, and removed on sign-out.
"""

import hmac
import json
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from .storage import Storage, MemoryStorage, FileStorage

logger = logging.getLogger(__name__)

SESSION_KEY = "fernet_barato_user"
DEFAULT_NETWORK = "sepolia"


class SessionUser(BaseModel):
    access_token: str
    wallet_address: str
    network: str = DEFAULT_NETWORK


def session_key(wallet_address: str) -> str:
    """Storage key of a wallet's session record."""
    return f"{SESSION_KEY}:{wallet_address.lower()}"


def load(storage: Storage, wallet_address: str) -> Optional[SessionUser]:
    """Restore a wallet's session; a missing or corrupt record gives None."""
    stored = storage.get_item(session_key(wallet_address))
    if not stored:
        return None
    try:
        user = SessionUser.model_validate_json(stored)
    except ValidationError as e:
        logger.warning(f"Discarding corrupt session record: {e}")
        return None
    if user.wallet_address.lower() != wallet_address.lower():
        logger.warning(f"Discarding session record stored under another wallet: {user.wallet_address}")
        return None
    return user


def save(storage: Storage, user: SessionUser) -> SessionUser:
    storage.set_item(session_key(user.wallet_address), user.model_dump_json())
    return user


def clear(storage: Storage, wallet_address: str) -> None:
    storage.remove_item(session_key(wallet_address))


def is_authenticated(storage: Storage, wallet_address: str) -> bool:
    user = load(storage, wallet_address)
    return user is not None and user.access_token != ""


def refresh_token(storage: Storage, user: SessionUser, access_token: Optional[str]) -> SessionUser:
    """Persist a refreshed access token when the wallet has a stored session."""
    if not access_token or access_token == user.access_token:
        return user
    updated = user.model_copy(update={'access_token': access_token})
    if load(storage, user.wallet_address) is not None:
        save(storage, updated)
    return updated


def owns(user: Optional[SessionUser], caller: SessionUser) -> bool:
    """Whether a stored session belongs to the caller: same wallet, same token."""
    return (
        user is not None
        and user.wallet_address.lower() == caller.wallet_address.lower()
        and hmac.compare_digest(user.access_token.encode(), caller.access_token.encode())
    )


def session_from_sign_in(result: Dict[str, Any], network: str) -> SessionUser:
    return SessionUser(
        access_token=result['access_token'],
        wallet_address=result['wallet_address'],
        network=network
    )


def session_from_callback(user_data: str) -> SessionUser:
    """Build a session from the redirect callback's decoded `user_data` JSON.

    Raises:
        ValueError: If the payload is not JSON or lacks the token or address
    """
    try:
        payload = json.loads(user_data)
        return SessionUser(
            access_token=payload['authData']['accessToken'],
            wallet_address=payload['wallet']['address'],
            network=payload['wallet'].get('network') or DEFAULT_NETWORK
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Missing field in callback user data: {e}") from e


__all__ = [
    'SESSION_KEY',
    'session_key',
    'owns',
    'SessionUser',
    'Storage',
    'MemoryStorage',
    'FileStorage',
    'load',
    'save',
    'clear',
    'is_authenticated',
    'refresh_token',
    'session_from_sign_in',
    'session_from_callback'
]
