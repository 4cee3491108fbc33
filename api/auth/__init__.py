"""Authentication API endpoints."""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Security, status
from pydantic import BaseModel, ConfigDict, Field

from auth import (
    ConfigurationError, HostedServiceError, ValidationError, get_hosted_client, get_session_user,
    require_fields, require_secrets, validate_email, validate_network, validate_password
)
from contract import Call, ContractWriter
import session
from session import SessionUser, Storage

from ..deps import get_optional_writer, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Authentication"]
)

class CredentialsRequest(BaseModel):
    """Request model for signing in or up."""
    email: Optional[str] = None
    password: Optional[str] = None
    network: Optional[str] = None

class SignInResponse(BaseModel):
    """Response model for sign-in."""
    success: bool
    message: str
    access_token: str
    wallet_address: str
    email: str

class SignUpData(BaseModel):
    email: str
    wallet_address: str
    created_at: Optional[str] = None

class SignUpResponse(BaseModel):
    """Response model for sign-up."""
    success: bool
    message: str
    data: SignUpData

class ExecuteRequest(BaseModel):
    """Request model for executing contract calls."""
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: Optional[str] = Field(None, alias="walletAddress")
    network: Optional[str] = None
    access_token: Optional[str] = Field(None, alias="accessToken")
    calls: Optional[Any] = None

def validation_error(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

def configuration_error(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

def parse_calls(calls: Any) -> List[Call]:
    """Validate the calls list of an execution request."""
    if not isinstance(calls, list):
        raise ValidationError("Calls must be an array")
    parsed = []
    for index, call in enumerate(calls):
        if (
            not isinstance(call, dict)
            or not call.get('contractAddress')
            or not call.get('entrypoint')
            or not isinstance(call.get('calldata'), list)
        ):
            raise ValidationError(
                f"Invalid call at index {index}. Must have contractAddress, entrypoint, and calldata"
            )
        parsed.append(Call(
            contract_address=call['contractAddress'],
            entrypoint=call['entrypoint'],
            calldata=[str(felt) for felt in call['calldata']]
        ))
    return parsed

@router.post("/api/v1/auth/signIn", response_model=SignInResponse)
async def sign_in(request: CredentialsRequest, storage: Storage = Depends(get_storage)):
    """Sign in through the hosted service and persist the session."""
    logger.info(f"Signin request received for {request.email} on {request.network}")
    try:
        require_fields(email=request.email, password=request.password, network=request.network)
        secrets = require_secrets('CAVOS_ORG_SECRET', 'CAVOS_APP_ID')
        validate_email(request.email)
        validate_network(request.network)
    except ConfigurationError as e:
        raise configuration_error(e)
    except ValidationError as e:
        raise validation_error(e)

    client = get_hosted_client()
    try:
        result = await asyncio.to_thread(
            client.sign_in,
            request.email,
            request.password,
            request.network,
            secrets['CAVOS_ORG_SECRET']
        )
    except HostedServiceError as e:
        logger.error(f"Signin error: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Login failed: {str(e)}"
        )

    await asyncio.to_thread(
        session.save, storage, session.session_from_sign_in(result, request.network)
    )
    logger.info(f"Signin successful for wallet {result['wallet_address']}")
    return {
        "success": True,
        "message": "Login successful",
        **result
    }

@router.post("/api/v1/auth/signUp", response_model=SignUpResponse)
async def sign_up(request: CredentialsRequest):
    """Register a user and their wallet through the hosted service."""
    logger.info(f"Signup request received for {request.email} on {request.network}")
    try:
        require_fields(email=request.email, password=request.password, network=request.network)
        secrets = require_secrets('CAVOS_ORG_SECRET', 'CAVOS_APP_ID')
        validate_email(request.email)
        validate_password(request.password)
        validate_network(request.network)
    except ConfigurationError as e:
        raise configuration_error(e)
    except ValidationError as e:
        raise validation_error(e)

    client = get_hosted_client()
    try:
        result = await asyncio.to_thread(
            client.sign_up,
            request.email,
            request.password,
            request.network,
            secrets['CAVOS_ORG_SECRET']
        )
    except HostedServiceError as e:
        logger.error(f"Signup error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Registration failed: {str(e)}"
        )

    return {
        "success": True,
        "message": "User registered successfully",
        "data": result
    }

@router.post("/api/v1/execute")
async def execute(request: ExecuteRequest):
    """Execute contract calls as one transaction for a signed-in wallet."""
    try:
        require_fields(
            walletAddress=request.wallet_address,
            calls=request.calls,
            accessToken=request.access_token,
            network=request.network
        )
        require_secrets('CAVOS_APP_ID')
        validate_network(request.network)
        calls = parse_calls(request.calls)
    except ConfigurationError as e:
        raise configuration_error(e)
    except ValidationError as e:
        raise validation_error(e)

    client = get_hosted_client()
    try:
        result = await asyncio.to_thread(
            client.execute_calls,
            request.wallet_address,
            request.network,
            request.access_token,
            calls
        )
    except HostedServiceError as e:
        logger.error(f"Execute transaction error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Transaction failed: {str(e)}"
        )

    logger.info(f"Transaction executed successfully: {result.tx_hash}")
    return {
        "success": True,
        "message": "Transaction executed successfully",
        "data": result.model_dump(by_alias=True)
    }

@router.get("/auth/callback")
async def auth_callback(
    background_tasks: BackgroundTasks,
    user_data: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    storage: Storage = Depends(get_storage),
    writer: Optional[ContractWriter] = Depends(get_optional_writer)
):
    """Complete a redirect sign-in and persist the session."""
    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Authentication failed: {error}"
        )
    if not user_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No authentication data received"
        )
    try:
        user = session.session_from_callback(unquote(user_data))
    except ValueError as e:
        logger.error(f"Callback processing error: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An error occurred during authentication"
        )

    await asyncio.to_thread(session.save, storage, user)
    if writer is not None:
        # Runs after the response is sent; never affects the sign-in
        background_tasks.add_task(writer.touch_last_connected, user)

    return {
        "success": True,
        "wallet_address": user.wallet_address,
        "network": user.network
    }

def no_session() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="No active session"
    )

@router.get("/session", response_model=SessionUser)
async def get_session(
    caller: SessionUser = Security(get_session_user),
    storage: Storage = Depends(get_storage)
):
    """Return the caller's persisted session."""
    user = await asyncio.to_thread(session.load, storage, caller.wallet_address)
    if not session.owns(user, caller):
        raise no_session()
    return user

@router.delete("/session")
async def sign_out(
    caller: SessionUser = Security(get_session_user),
    storage: Storage = Depends(get_storage)
):
    """Sign out by removing the caller's persisted session."""
    user = await asyncio.to_thread(session.load, storage, caller.wallet_address)
    if not session.owns(user, caller):
        raise no_session()
    await asyncio.to_thread(session.clear, storage, caller.wallet_address)
    return {"success": True}

# Export the router
__all__ = ['router']
