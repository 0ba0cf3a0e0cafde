"""Master API router — includes all sub-routers."""

from fastapi import APIRouter

from .routes.auth import router as auth_router
from .routes.catalog import router as catalog_router
from .routes.hub import router as hub_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router)
api_router.include_router(hub_router)
api_router.include_router(catalog_router)
