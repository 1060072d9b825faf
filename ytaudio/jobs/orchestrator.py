"""Turns a URL into a running conversion job.

Each job gets its own working directory and its own asyncio task. Tasks run
on the current event loop without a concurrency cap; ``start`` returns as soon
as the record is stored and the task is scheduled.
"""

import asyncio
import logging
from pathlib import Path
from typing import Set

from ytaudio.extraction.classifier import classify
from ytaudio.extraction.runner import ExtractionRunner
from ytaudio.jobs.errors import InvalidInputError
from ytaudio.jobs.models import JobRecord
from ytaudio.jobs.store import JobStore
from ytaudio.jobs.validation import is_valid_youtube_url
from ytaudio.storage.workdirs import WorkdirAllocator

logger = logging.getLogger(__name__)


class Orchestrator:
    def __init__(self, store: JobStore, runner: ExtractionRunner, workdirs: WorkdirAllocator):
        self._store = store
        self._runner = runner
        self._workdirs = workdirs
        self._tasks: Set[asyncio.Task] = set()

    @property
    def running(self) -> int:
        return len(self._tasks)

    async def start(self, url: str) -> str:
        """Create a job for ``url`` and launch its background task.

        Raises InvalidInputError for unsupported URLs and OSError when the
        working directory cannot be created.
        """
        if not url or not is_valid_youtube_url(url):
            raise InvalidInputError("Please enter a valid YouTube URL")
        url = url.strip()

        workdir = await asyncio.to_thread(self._workdirs.allocate)
        job = JobRecord(url=url, workdir=workdir)
        try:
            await self._store.insert(job)
        except Exception:
            await asyncio.to_thread(self._workdirs.remove, workdir)
            raise

        task = asyncio.create_task(
            self._process(job.id, url, workdir), name=f"convert-{job.id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info("Started job %s for %s", job.id, url)
        return job.id

    async def _process(self, job_id: str, url: str, workdir: Path) -> None:
        try:
            outcome = await self._runner.run(url, workdir, job_id=job_id)
            if outcome.succeeded:
                await self._store.mark_completed(job_id, outcome.output_path)
            else:
                await self._store.mark_error(job_id, classify(outcome.last_error).message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Job %s crashed", job_id)
            await self._store.mark_error(job_id, f"Conversion failed: {e}")

    async def join(self) -> None:
        """Wait for every in-flight job task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel in-flight tasks. Used only when the application shuts down."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
