"""Shared fixtures and fakes for the ytaudio test suite."""

import asyncio
from pathlib import Path
from typing import List, Optional

import pytest

from ytaudio.extraction.runner import ExtractionOutcome
from ytaudio.jobs.orchestrator import Orchestrator
from ytaudio.jobs.service import ConversionService
from ytaudio.jobs.store import JobStore
from ytaudio.storage.workdirs import WorkdirAllocator

VALID_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
FAKE_AUDIO = b"ID3\x03\x00fake mp3 payload"


class FakeProcess:
    """Stands in for asyncio.subprocess.Process."""

    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""):
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self):
        return self._stdout, self._stderr


def scripted_exec(steps: list, calls: List[dict]):
    """Build a fake create_subprocess_exec that plays back ``steps`` in order.

    Each step is either an exception instance (raised at launch) or a tuple
    ``(returncode, stderr_text, produced_filename_or_None)``.
    """

    async def fake_exec(*cmd, cwd=None, stdout=None, stderr=None):
        calls.append({"cmd": list(cmd), "cwd": cwd})
        step = steps[len(calls) - 1]
        if isinstance(step, Exception):
            raise step
        returncode, err, produced = step
        if produced:
            (Path(cwd) / produced).write_bytes(FAKE_AUDIO)
        return FakeProcess(returncode, b"[download] progress", err.encode())

    return fake_exec


class FakeRunner:
    """Replaces ExtractionRunner for orchestrator, service and API tests."""

    binary = "fake-yt-dlp"
    strategies = ("fake",)

    def __init__(
        self,
        produce: Optional[str] = "Some_Song.mp3",
        error: str = "",
        exc: Optional[Exception] = None,
        hold: bool = False,
    ):
        self.produce = produce
        self.error = error
        self.exc = exc
        self.hold = hold
        self.release: Optional[asyncio.Event] = None
        self.calls = []

    async def run(self, url, workdir, job_id="-"):
        self.calls.append((url, Path(workdir), job_id))
        if self.hold:
            if self.release is None:
                self.release = asyncio.Event()
            await self.release.wait()
        if self.exc is not None:
            raise self.exc
        if self.produce:
            path = Path(workdir) / self.produce
            path.write_bytes(FAKE_AUDIO)
            return ExtractionOutcome(output_path=path, attempts=1, strategy="fake")
        return ExtractionOutcome(last_error=self.error, attempts=1)


@pytest.fixture
def workdirs(tmp_path):
    return WorkdirAllocator(base_dir=str(tmp_path / "work"), prefix="ytmp3_")


@pytest.fixture
def store():
    return JobStore()


def make_service(store: JobStore, runner, workdirs: WorkdirAllocator) -> ConversionService:
    orchestrator = Orchestrator(store=store, runner=runner, workdirs=workdirs)
    return ConversionService(store=store, orchestrator=orchestrator)
