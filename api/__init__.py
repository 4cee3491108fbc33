"""REST API module for the price comparison service.

This module provides HTTP endpoints for:
- Signing in and up through the hosted wallet service
- Executing contract calls on behalf of a signed-in wallet
- Listing stores ranked by price or distance
- Thanking and reporting stores
- Administering prices and stores
- System health monitoring
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings_conf

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    logger.info(
        f"Initializing API on {settings_conf['network']} "
        f"for contract {settings_conf['contract_address']}..."
    )
    
    yield
    
    # Shutdown
    logger.info("Shutting down API...")

# Create FastAPI app
app = FastAPI(
    title="Fernet Barato API",
    description="Store price comparison backed by an on-chain price contract",
    version=VERSION,
    lifespan=lifespan
)

# The web client signs requests with a bearer token and a wallet header
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings_conf["cors_origins"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "X-Wallet-Address", "X-Network"],
)

@app.get("/")
async def root():
    return {
        "name": "Fernet Barato API",
        "version": VERSION,
        "status": "running"
    }

from .auth import router as auth_router
from .stores import router as stores_router
from .admin import router as admin_router
from .system import router as system_router

app.include_router(auth_router)
app.include_router(stores_router)
app.include_router(admin_router)
app.include_router(system_router)
