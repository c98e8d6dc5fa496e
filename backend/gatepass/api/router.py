"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from gatepass.api.routes import (
    auth, users, requests, guests, lodging, settlements, wardens
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(requests.router)
api_router.include_router(guests.router)
api_router.include_router(lodging.router)
api_router.include_router(settlements.router)
api_router.include_router(wardens.router)
