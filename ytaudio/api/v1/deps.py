"""Request-scoped access to the conversion service built during lifespan."""

from fastapi import HTTPException, Request

from ytaudio.jobs.service import ConversionService


def get_service(request: Request) -> ConversionService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Conversion service not initialized")
    return service
