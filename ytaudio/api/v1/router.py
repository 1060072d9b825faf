"""Aggregate the API routers."""

from fastapi import APIRouter
from ytaudio.api.v1.conversions import router as conversions_router

api_router = APIRouter(prefix="/api")
api_router.include_router(conversions_router, tags=["conversions"])
