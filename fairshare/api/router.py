"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from fairshare.api.routes import balances, splits

api_router = APIRouter()

# Include all route modules
api_router.include_router(splits.router)
api_router.include_router(balances.router)
