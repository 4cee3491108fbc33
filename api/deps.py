"""Shared FastAPI dependencies and error translation."""

import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Query, status

from auth import (
    ConfigurationError, ValidationError, get_hosted_client, get_session_user,
    validate_network
)
from config import settings_conf
from contract import (
    ContractReader, ContractWriter, DecodeError, SubmissionError, WriteValidationError
)
from ranking import get_geocoder as build_geocoder
from rpc import RPCError
from session import FileStorage, SessionUser, Storage

logger = logging.getLogger(__name__)

_storage: Optional[Storage] = None

def get_storage() -> Storage:
    """Storage holding the persisted session record."""
    global _storage
    if _storage is None:
        _storage = FileStorage(settings_conf['session_file'])
    return _storage

def get_reader_factory() -> Callable[[str], ContractReader]:
    return ContractReader

def get_reader(
    network: Optional[str] = Query(None),
    factory: Callable[[str], ContractReader] = Depends(get_reader_factory)
) -> ContractReader:
    """Reader for the requested network, the configured one by default."""
    network = network or settings_conf['network']
    try:
        validate_network(network)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return factory(network)

def get_session_reader(
    user: SessionUser = Depends(get_session_user),
    factory: Callable[[str], ContractReader] = Depends(get_reader_factory)
) -> ContractReader:
    """Reader for the network of the calling session."""
    return factory(user.network)

def get_writer() -> ContractWriter:
    try:
        return ContractWriter(get_hosted_client())
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

def get_optional_writer() -> Optional[ContractWriter]:
    """Writer for best-effort calls; None when the service is not configured."""
    try:
        return ContractWriter(get_hosted_client())
    except ConfigurationError as e:
        logger.warning(f"Best-effort writes disabled: {e}")
        return None

def get_geocoder():
    return build_geocoder()

def read_error(e: Exception) -> HTTPException:
    """Translate a read failure into an HTTP error."""
    if isinstance(e, (RPCError, DecodeError)):
        logger.error(f"Contract read failed: {e}")
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Error reading from contract: {str(e)}"
        )
    if isinstance(e, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.error(f"Unexpected read error: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e)
    )

def write_error(e: Exception) -> HTTPException:
    """Translate a write failure into an HTTP error."""
    if isinstance(e, WriteValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, SubmissionError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Transaction failed: {str(e)}"
        )
    logger.error(f"Unexpected write error: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e)
    )
