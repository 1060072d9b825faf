"""ytaudio - YouTube to MP3 conversion service (FastAPI application)."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ytaudio.config import Settings, settings
from ytaudio.api.v1.router import api_router
from ytaudio.api.v1.health import router as health_router
from ytaudio.extraction.runner import ExtractionRunner
from ytaudio.jobs.orchestrator import Orchestrator
from ytaudio.jobs.service import ConversionService
from ytaudio.jobs.store import JobStore
from ytaudio.storage.workdirs import WorkdirAllocator

logger = logging.getLogger("ytaudio")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def build_runner(config: Settings) -> ExtractionRunner:
    return ExtractionRunner(
        binary=config.ytdlp_binary,
        audio_format=config.audio_format,
        audio_quality=config.audio_quality,
        output_template=config.output_template,
        retries=config.ytdlp_retries,
        retry_sleep=config.ytdlp_retry_sleep,
        attempt_delay=config.attempt_delay_seconds,
        cooldown=config.cooldown_seconds,
    )


def build_workdirs(config: Settings) -> WorkdirAllocator:
    return WorkdirAllocator(
        base_dir=config.workdir_base,
        prefix=config.workdir_prefix,
        ttl_hours=config.stale_workdir_ttl_hours,
    )


def build_service(
    runner: ExtractionRunner, workdirs: WorkdirAllocator
) -> ConversionService:
    """Wire one store, orchestrator and service around the given runner."""
    store = JobStore()
    orchestrator = Orchestrator(store=store, runner=runner, workdirs=workdirs)
    return ConversionService(store=store, orchestrator=orchestrator)


def create_app(
    config: Settings = settings,
    runner: Optional[ExtractionRunner] = None,
) -> FastAPI:
    """Build the application. Tests pass their own settings and runner."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.log_level)
        logger.info("Starting %s on port %d", config.app_name, config.port)

        workdirs = build_workdirs(config)
        logger.info("Work directories under %s", workdirs.base_dir)
        workdirs.cleanup_expired()

        job_runner = runner or build_runner(config)
        logger.info(
            "yt-dlp binary: %s (%d strategies)", job_runner.binary, len(job_runner.strategies)
        )
        service = build_service(job_runner, workdirs)
        app.state.runner = job_runner
        app.state.service = service

        yield

        logger.info("Shutting down %s", config.app_name)
        await service.orchestrator.stop()
        removed = await service.store.close()
        logger.info("Removed %d job(s)", removed)
        app.state.service = None

    app = FastAPI(
        title="ytaudio",
        description="Convert YouTube videos to downloadable MP3 files",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, tags=["health"])  # GET /health at root
    app.include_router(api_router)  # /api/convert, /api/status, /api/download
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
