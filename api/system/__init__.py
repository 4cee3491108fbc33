"""System health endpoints."""

import asyncio
import logging
import time
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from config import settings_conf, SUPPORTED_NETWORKS
from rpc import RPCError, get_client

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/system",
    tags=["System"]
)

STARTED_AT = time.time()

class SystemHealth(BaseModel):
    """Model for system health data."""
    status: str
    uptime: float
    network: str
    contract_address: str
    blockchain_status: str
    block_number: Optional[int] = None

@router.get("/health", response_model=SystemHealth)
async def get_health(network: Optional[str] = Query(None)):
    """Report service uptime and whether the ledger node answers."""
    network = network if network in SUPPORTED_NETWORKS else settings_conf['network']
    block_number = None
    try:
        block_number = await asyncio.to_thread(get_client(network).starknet_blockNumber)
        blockchain_status = "connected"
    except RPCError as e:
        logger.error(f"Node health check failed on {network}: {e}")
        blockchain_status = f"error: {str(e)}"

    return SystemHealth(
        status="healthy" if block_number is not None else "degraded",
        uptime=time.time() - STARTED_AT,
        network=network,
        contract_address=settings_conf['contract_address'],
        blockchain_status=blockchain_status,
        block_number=block_number
    )

# Export the router
__all__ = ['router']
