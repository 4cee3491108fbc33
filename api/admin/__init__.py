"""Administration endpoints for prices and stores."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Security, status
from pydantic import BaseModel, Field

from auth import get_session_user
from contract import ContractReader, ContractWriter, NewStore, WriteError
from session import SessionUser, Storage

from ..deps import get_session_reader, get_storage, get_writer, write_error
from ..stores import WriteResponse, write_response

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"]
)

class UpdatePriceRequest(BaseModel):
    """Request model for a price update; give cents or a currency amount."""
    price_in_cents: Optional[int] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0)

def to_cents(request: UpdatePriceRequest) -> int:
    if request.price_in_cents is not None:
        return request.price_in_cents
    if request.price is not None:
        return int((request.price * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="price_in_cents or price is required"
    )

async def require_admin(
    user: SessionUser = Security(get_session_user),
    reader: ContractReader = Depends(get_session_reader)
) -> SessionUser:
    """FastAPI dependency admitting only contract administrators."""
    if not await reader.is_admin(user.wallet_address):
        logger.warning(f"Rejected admin request from {user.wallet_address}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required"
        )
    return user

@router.get("/status")
async def admin_status(
    user: SessionUser = Security(get_session_user),
    reader: ContractReader = Depends(get_session_reader)
):
    return {
        "wallet_address": user.wallet_address,
        "is_admin": await reader.is_admin(user.wallet_address)
    }

@router.post("/stores", response_model=WriteResponse)
async def add_store(
    request: NewStore,
    user: SessionUser = Depends(require_admin),
    writer: ContractWriter = Depends(get_writer),
    storage: Storage = Depends(get_storage)
):
    try:
        result = await writer.add_store(user, request)
    except WriteError as e:
        raise write_error(e)
    return await write_response(storage, user, result)

@router.put("/stores/{store_id}/price", response_model=WriteResponse)
async def update_price(
    store_id: str,
    request: UpdatePriceRequest,
    user: SessionUser = Depends(require_admin),
    writer: ContractWriter = Depends(get_writer),
    storage: Storage = Depends(get_storage)
):
    try:
        result = await writer.update_price(user, store_id, to_cents(request))
    except WriteError as e:
        raise write_error(e)
    return await write_response(storage, user, result)

# Export the router
__all__ = ['router']
