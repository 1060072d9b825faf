"""Health check endpoint."""

import platform
import shutil
import sys

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service health, job counts, and whether yt-dlp is on PATH."""
    service = getattr(request.app.state, "service", None)
    runner = getattr(request.app.state, "runner", None)
    binary = runner.binary if runner is not None else "yt-dlp"

    return {
        "status": "healthy" if service is not None else "starting",
        "jobs": len(service.store) if service is not None else 0,
        "running": service.orchestrator.running if service is not None else 0,
        "ytdlp_available": shutil.which(binary) is not None,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
