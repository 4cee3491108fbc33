"""Store endpoints: ranked listing, details and community feedback."""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Security, status
from pydantic import BaseModel

from auth import get_session_user
from contract import (
    ContractReader, ContractWriter, Price, Report, StorePreview, StoreWithPrice, WriteError
)
from ranking import Coordinates, RankedStore, SortMode, rank_stores
import session
from session import SessionUser, Storage

from ..deps import (
    get_geocoder, get_reader, get_session_reader, get_storage, get_writer,
    read_error, write_error
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/stores",
    tags=["Stores"]
)

class ReportRequest(BaseModel):
    """Request model for reporting a store."""
    description: str

class WriteResponse(BaseModel):
    """Response model for contract writes, carrying the refreshed access token."""
    success: bool
    tx_hash: str
    access_token: Optional[str] = None

async def write_response(storage: Storage, user: SessionUser, result) -> WriteResponse:
    await asyncio.to_thread(session.refresh_token, storage, user, result.access_token)
    return WriteResponse(success=True, tx_hash=result.tx_hash, access_token=result.access_token)

""" Public Endpoints - No Authentication Required """
@router.get("/", response_model=List[RankedStore])
async def list_stores(
    sort: SortMode = Query(SortMode.PRICE),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    reader: ContractReader = Depends(get_reader),
    geocoder=Depends(get_geocoder)
):
    """All stores with prices, deltas from the cheapest and optional distances."""
    if (lat is None) != (lng is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="lat and lng must be given together"
        )
    try:
        stores = await reader.list_stores_with_prices()
    except Exception as e:
        raise read_error(e)
    origin = Coordinates(lat=lat, lng=lng) if lat is not None else None
    return await rank_stores(stores, sort, origin, geocoder)

@router.get("/preview", response_model=List[StorePreview])
async def preview_stores(
    limit: int = Query(2, ge=1, le=20),
    reader: ContractReader = Depends(get_reader)
):
    """The cheapest stores, for visitors who have not signed in."""
    return await reader.get_preview_stores(limit)

@router.get("/{store_id}", response_model=StoreWithPrice)
async def get_store(store_id: str, reader: ContractReader = Depends(get_reader)):
    try:
        return await reader.get_store_with_price(store_id)
    except Exception as e:
        raise read_error(e)

@router.get("/{store_id}/prices", response_model=List[Price])
async def get_price_history(store_id: str, reader: ContractReader = Depends(get_reader)):
    try:
        return await reader.get_price_history(store_id)
    except Exception as e:
        raise read_error(e)

@router.get("/{store_id}/reports", response_model=List[Report])
async def get_reports(store_id: str, reader: ContractReader = Depends(get_reader)):
    try:
        return await reader.get_reports(store_id)
    except Exception as e:
        raise read_error(e)

""" Protected Endpoints - Session Required """
@router.get("/{store_id}/thanked")
async def has_thanked(
    store_id: str,
    user: SessionUser = Security(get_session_user),
    reader: ContractReader = Depends(get_session_reader)
):
    """Whether the caller already thanked this store."""
    try:
        thanked = await reader.has_user_thanked(store_id, user.wallet_address)
    except Exception as e:
        raise read_error(e)
    return {"store_id": store_id, "thanked": thanked}

@router.post("/{store_id}/thanks", response_model=WriteResponse)
async def give_thanks(
    store_id: str,
    user: SessionUser = Security(get_session_user),
    writer: ContractWriter = Depends(get_writer),
    storage: Storage = Depends(get_storage)
):
    try:
        result = await writer.give_thanks(user, store_id)
    except WriteError as e:
        raise write_error(e)
    return await write_response(storage, user, result)

@router.post("/{store_id}/reports", response_model=WriteResponse)
async def submit_report(
    store_id: str,
    request: ReportRequest,
    user: SessionUser = Security(get_session_user),
    writer: ContractWriter = Depends(get_writer),
    storage: Storage = Depends(get_storage)
):
    try:
        result = await writer.submit_report(user, store_id, request.description)
    except WriteError as e:
        raise write_error(e)
    return await write_response(storage, user, result)

# Export the router
__all__ = ['router', 'WriteResponse', 'write_response']
