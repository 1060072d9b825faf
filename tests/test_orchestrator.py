"""Tests for jobs/orchestrator.py"""

import asyncio
import threading
from unittest.mock import AsyncMock, patch

import pytest

from ytaudio.extraction.classifier import ErrorCategory, classify
from ytaudio.extraction.runner import ExtractionRunner
from ytaudio.extraction.strategies import Strategy
from ytaudio.jobs.errors import DuplicateJobError, InvalidInputError
from ytaudio.jobs.models import JobStatus
from ytaudio.jobs.orchestrator import Orchestrator

from conftest import FAKE_AUDIO, VALID_URL, FakeRunner, scripted_exec

EXEC = "ytaudio.extraction.runner.asyncio.create_subprocess_exec"


def make_orchestrator(store, runner, workdirs):
    return Orchestrator(store=store, runner=runner, workdirs=workdirs)


def three_strategy_runner():
    strategies = tuple(Strategy(name=n, args=("--extractor-args", n)) for n in ("a", "b", "c"))
    return ExtractionRunner(strategies=strategies, sleep=AsyncMock())


class TestStart:

    @pytest.mark.asyncio
    async def test_valid_url_creates_processing_job(self, store, workdirs):
        runner = FakeRunner(hold=True)
        orchestrator = make_orchestrator(store, runner, workdirs)

        job_id = await orchestrator.start(VALID_URL)

        assert job_id
        status = await store.get_status(job_id)
        assert status.status == "processing"
        job = await store.get(job_id)
        assert job.url == VALID_URL
        assert job.workdir.is_dir()
        assert job.workdir.parent == workdirs.base_dir
        await orchestrator.stop()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url",
        ["", "   ", "not a url", "https://vimeo.com/123456", "https://youtube.com/playlist?list=123"],
    )
    async def test_invalid_url_never_reaches_store(self, store, workdirs, url):
        orchestrator = make_orchestrator(store, FakeRunner(), workdirs)

        with pytest.raises(InvalidInputError):
            await orchestrator.start(url)

        assert len(store) == 0
        assert not workdirs.base_dir.exists() or not any(workdirs.base_dir.iterdir())

    @pytest.mark.asyncio
    async def test_start_returns_before_job_finishes(self, store, workdirs):
        runner = FakeRunner(hold=True)
        orchestrator = make_orchestrator(store, runner, workdirs)

        job_id = await asyncio.wait_for(orchestrator.start(VALID_URL), timeout=5)
        while runner.release is None:
            await asyncio.sleep(0)

        assert orchestrator.running == 1
        assert (await store.get_status(job_id)).status == "processing"
        runner.release.set()
        await orchestrator.join()
        assert orchestrator.running == 0
        assert (await store.get_status(job_id)).status == "completed"

    @pytest.mark.asyncio
    async def test_concurrent_starts_get_distinct_ids(self, store, workdirs):
        orchestrator = make_orchestrator(store, FakeRunner(hold=True), workdirs)

        ids = await asyncio.gather(*(orchestrator.start(VALID_URL) for _ in range(25)))

        assert len(set(ids)) == 25
        assert sorted(store.ids()) == sorted(ids)
        workdirs_used = {(await store.get(i)).workdir for i in ids}
        assert len(workdirs_used) == 25
        await orchestrator.stop()

    @pytest.mark.asyncio
    async def test_workdir_failure_propagates(self, store, workdirs):
        orchestrator = make_orchestrator(store, FakeRunner(), workdirs)

        with patch.object(workdirs, "allocate", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                await orchestrator.start(VALID_URL)
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_insert_failure_removes_workdir_off_loop(self, store, workdirs):
        orchestrator = make_orchestrator(store, FakeRunner(), workdirs)
        loop_thread = threading.get_ident()
        removed = []
        real_remove = workdirs.remove

        def remove(path):
            removed.append((path, threading.get_ident()))
            real_remove(path)

        with patch.object(store, "insert", side_effect=DuplicateJobError("taken")), \
                patch.object(workdirs, "remove", side_effect=remove):
            with pytest.raises(DuplicateJobError):
                await orchestrator.start(VALID_URL)

        assert len(removed) == 1
        path, thread = removed[0]
        assert not path.exists()
        assert thread != loop_thread
        assert orchestrator.running == 0


class TestBackgroundTask:

    @pytest.mark.asyncio
    async def test_success_marks_completed(self, store, workdirs):
        orchestrator = make_orchestrator(store, FakeRunner(produce="Song.mp3"), workdirs)

        job_id = await orchestrator.start(VALID_URL)
        await orchestrator.join()

        job = await store.get(job_id)
        assert job.status is JobStatus.COMPLETED
        assert job.output_path == job.workdir / "Song.mp3"
        assert await store.read_file(job_id) == FAKE_AUDIO

    @pytest.mark.asyncio
    async def test_failure_stores_classified_message(self, store, workdirs):
        runner = FakeRunner(produce=None, error="ERROR: [youtube] x: Video unavailable")
        orchestrator = make_orchestrator(store, runner, workdirs)

        job_id = await orchestrator.start(VALID_URL)
        await orchestrator.join()

        status = await store.get_status(job_id)
        assert status.status == "error"
        assert status.message == classify("Video unavailable").message

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error(self, store, workdirs):
        runner = FakeRunner(exc=RuntimeError("kaboom"))
        orchestrator = make_orchestrator(store, runner, workdirs)

        job_id = await orchestrator.start(VALID_URL)
        await orchestrator.join()

        status = await store.get_status(job_id)
        assert status.status == "error"
        assert status.message == "Conversion failed: kaboom"

    @pytest.mark.asyncio
    async def test_terminal_status_is_stable(self, store, workdirs):
        orchestrator = make_orchestrator(store, FakeRunner(produce=None, error="boom"), workdirs)

        job_id = await orchestrator.start(VALID_URL)
        await orchestrator.join()

        seen = {(await store.get_status(job_id)).model_dump_json() for _ in range(5)}
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_runner_receives_job_context(self, store, workdirs):
        runner = FakeRunner()
        orchestrator = make_orchestrator(store, runner, workdirs)

        job_id = await orchestrator.start(VALID_URL)
        await orchestrator.join()

        url, workdir, passed_id = runner.calls[0]
        assert (url, passed_id) == (VALID_URL, job_id)
        assert workdir == (await store.get(job_id)).workdir


class TestLadderEndToEnd:
    """Real runner against a scripted yt-dlp."""

    @pytest.mark.asyncio
    async def test_last_failure_decides_the_message(self, store, workdirs):
        calls = []
        steps = [
            (1, "ERROR: Sign in to confirm you're not a bot", None),
            (1, "ERROR: something odd", None),
            (1, "ERROR: [youtube] abc: Video unavailable", None),
        ]
        orchestrator = make_orchestrator(store, three_strategy_runner(), workdirs)

        with patch(EXEC, side_effect=scripted_exec(steps, calls)):
            job_id = await orchestrator.start(VALID_URL)
            await orchestrator.join()

        message = (await store.get_status(job_id)).message
        assert message == classify("Video unavailable").message
        assert classify("Video unavailable").category is ErrorCategory.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_bot_detection_on_final_attempt(self, store, workdirs):
        calls = []
        steps = [
            (1, "ERROR: [youtube] abc: Video unavailable", None),
            (1, "ERROR: something odd", None),
            (1, "ERROR: [youtube] abc: Sign in to confirm you're not a bot", None),
        ]
        orchestrator = make_orchestrator(store, three_strategy_runner(), workdirs)

        with patch(EXEC, side_effect=scripted_exec(steps, calls)):
            job_id = await orchestrator.start(VALID_URL)
            await orchestrator.join()

        status = await store.get_status(job_id)
        assert status.status == "error"
        assert status.message == classify("Sign in to confirm").message

    @pytest.mark.asyncio
    async def test_second_strategy_completes_job(self, store, workdirs):
        calls = []
        steps = [(1, "ERROR: nope", None), (0, "", "Never_Gonna.mp3")]
        orchestrator = make_orchestrator(store, three_strategy_runner(), workdirs)

        with patch(EXEC, side_effect=scripted_exec(steps, calls)):
            job_id = await orchestrator.start(VALID_URL)
            await orchestrator.join()

        job = await store.get(job_id)
        assert len(calls) == 2
        assert job.status is JobStatus.COMPLETED
        assert job.output_path == job.workdir / "Never_Gonna.mp3"

    @pytest.mark.asyncio
    async def test_all_generic_failures_include_excerpt(self, store, workdirs):
        calls = []
        steps = [
            (1, "ERROR: alpha broke", None),
            (1, "ERROR: beta broke", None),
            (1, "ERROR: gamma broke\nTraceback line", None),
        ]
        orchestrator = make_orchestrator(store, three_strategy_runner(), workdirs)

        with patch(EXEC, side_effect=scripted_exec(steps, calls)):
            job_id = await orchestrator.start(VALID_URL)
            await orchestrator.join()

        status = await store.get_status(job_id)
        assert status.status == "error"
        assert "ERROR: gamma broke Traceback line" in status.message
        assert "alpha" not in status.message
