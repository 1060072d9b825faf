"""Caller-facing conversion API: start, poll status, fetch the file.

None of these raise for expected conditions; each returns a tagged result
that the HTTP layer or CLI turns into its own representation.
"""

import logging

from ytaudio.jobs.errors import InvalidInputError, JobNotFoundError, JobNotReadyError
from ytaudio.jobs.models import ConvertResponse, FileResult, FileStatus
from ytaudio.jobs.orchestrator import Orchestrator
from ytaudio.jobs.store import JobStore

logger = logging.getLogger(__name__)


class ConversionService:
    def __init__(self, store: JobStore, orchestrator: Orchestrator):
        self.store = store
        self.orchestrator = orchestrator

    async def start_conversion(self, url: str) -> ConvertResponse:
        try:
            job_id = await self.orchestrator.start(url)
        except InvalidInputError as e:
            return ConvertResponse(id="", status="error", message=str(e))
        except OSError as e:
            logger.error("Could not start conversion for %s: %s", url, e)
            return ConvertResponse(
                id="", status="error", message=f"Failed to start conversion: {e}"
            )
        return ConvertResponse(id=job_id, status="processing", message="Conversion started")

    async def get_status(self, job_id: str) -> ConvertResponse:
        return await self.store.get_status(job_id)

    async def get_file(self, job_id: str) -> FileResult:
        try:
            content = await self.store.read_file(job_id)
        except JobNotFoundError as e:
            return FileResult(status=FileStatus.NOT_FOUND, message=str(e))
        except JobNotReadyError as e:
            return FileResult(status=FileStatus.NOT_READY, message=str(e))
        except OSError as e:
            logger.error("Could not read output of job %s: %s", job_id, e)
            return FileResult(status=FileStatus.UNAVAILABLE, message="MP3 file not found")
        return FileResult(
            status=FileStatus.READY,
            content=content,
            filename=f"{job_id}.mp3",
        )
