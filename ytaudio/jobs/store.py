"""In-memory job registry shared by the orchestrator and the query API."""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from ytaudio.jobs.errors import DuplicateJobError, JobNotFoundError, JobNotReadyError
from ytaudio.jobs.models import ConvertResponse, JobRecord, JobStatus

logger = logging.getLogger(__name__)

PROCESSING_MESSAGE = "Processing your video..."
COMPLETED_MESSAGE = "Conversion completed successfully"
NOT_FOUND_MESSAGE = "Job not found"


class JobStore:
    """Concurrency-safe map of job id -> JobRecord.

    Every mutation swaps a whole immutable record under the lock, so a reader
    sees either the old record or the new one, never a mix. The lock is held
    only for dictionary access; file reads and directory removal happen
    outside it.
    """

    def __init__(self):
        self._jobs: Dict[str, JobRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    def ids(self) -> List[str]:
        return list(self._jobs)

    async def insert(self, job: JobRecord) -> None:
        if job.status is not JobStatus.PROCESSING:
            raise ValueError(f"New jobs must be processing, got {job.status.value}")
        async with self._lock:
            if job.id in self._jobs:
                raise DuplicateJobError(f"Job {job.id} already exists")
            self._jobs[job.id] = job

    async def get(self, job_id: str) -> Optional[JobRecord]:
        async with self._lock:
            return self._jobs.get(job_id)

    async def get_status(self, job_id: str) -> ConvertResponse:
        job = await self.get(job_id)
        if job is None:
            return ConvertResponse(id=job_id, status="not_found", message=NOT_FOUND_MESSAGE)

        if job.status is JobStatus.ERROR:
            message = job.error
        elif job.status is JobStatus.COMPLETED:
            message = COMPLETED_MESSAGE
        else:
            message = PROCESSING_MESSAGE
        return ConvertResponse(id=job.id, status=job.status.value, message=message)

    async def mark_completed(self, job_id: str, output_path: Path) -> bool:
        async with self._lock:
            job = self._processing_job(job_id, "completed")
            if job is None:
                return False
            self._jobs[job_id] = job.completed(output_path)
        logger.info("Job %s completed: %s", job_id, output_path)
        return True

    async def mark_error(self, job_id: str, message: str) -> bool:
        async with self._lock:
            job = self._processing_job(job_id, "error")
            if job is None:
                return False
            self._jobs[job_id] = job.failed(message)
        logger.info("Job %s failed: %s", job_id, message)
        return True

    def _processing_job(self, job_id: str, target: str) -> Optional[JobRecord]:
        # Caller holds the lock.
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning("Cannot mark job %s %s: not in store", job_id, target)
            return None
        if job.status.is_terminal:
            logger.warning(
                "Cannot mark job %s %s: already %s", job_id, target, job.status.value
            )
            return None
        return job

    async def read_file(self, job_id: str) -> bytes:
        """Return the output file of a completed job.

        Raises JobNotFoundError / JobNotReadyError for absent or unfinished
        jobs, and OSError if the file cannot be read.
        """
        job = await self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if job.status is not JobStatus.COMPLETED:
            raise JobNotReadyError(job_id)
        return await asyncio.to_thread(job.output_path.read_bytes)

    async def evict(self, job_id: str) -> bool:
        """Drop a job record and delete its working directory."""
        async with self._lock:
            job = self._jobs.pop(job_id, None)
        if job is None:
            return False
        await asyncio.to_thread(shutil.rmtree, job.workdir, ignore_errors=True)
        logger.info("Evicted job %s", job_id)
        return True

    async def close(self) -> int:
        """Evict every job. Returns the number of jobs removed."""
        removed = 0
        for job_id in self.ids():
            if await self.evict(job_id):
                removed += 1
        return removed
