"""Runs yt-dlp through the strategy table until one attempt yields an audio file."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from ytaudio.extraction.classifier import needs_cooldown
from ytaudio.extraction.strategies import STRATEGIES, Strategy, base_args, build_command

logger = logging.getLogger(__name__)


@dataclass
class ExtractionOutcome:
    """Result of running the strategy ladder for one job."""
    output_path: Optional[Path] = None
    last_error: str = ""
    attempts: int = 0
    strategy: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.output_path is not None


@dataclass
class AttemptResult:
    output_path: Optional[Path] = None
    error: str = ""


class ExtractionRunner:
    """Sequential retry ladder around the yt-dlp executable.

    Strategies are tried strictly in order and never in parallel, so a single
    job never has two yt-dlp processes writing into its directory. The first
    strategy that leaves a file with the target extension in the working
    directory wins. Between failed attempts the runner waits
    ``attempt_delay`` seconds, or ``cooldown`` seconds when the failure looks
    like bot detection or rate limiting.
    """

    def __init__(
        self,
        binary: str = "yt-dlp",
        strategies: Sequence[Strategy] = STRATEGIES,
        audio_format: str = "mp3",
        audio_quality: str = "192K",
        output_template: str = "%(title)s.%(ext)s",
        retries: int = 2,
        retry_sleep: int = 3,
        attempt_delay: float = 2.0,
        cooldown: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not strategies:
            raise ValueError("At least one strategy is required")
        self.binary = binary
        self.strategies = tuple(strategies)
        self.audio_format = audio_format.lower().lstrip(".")
        self.attempt_delay = attempt_delay
        self.cooldown = cooldown
        self._common_args = base_args(
            audio_format=self.audio_format,
            audio_quality=audio_quality,
            output_template=output_template,
            retries=retries,
            retry_sleep=retry_sleep,
        )
        self._sleep = sleep

    async def run(self, url: str, workdir: Path, job_id: str = "-") -> ExtractionOutcome:
        workdir = Path(workdir)
        outcome = ExtractionOutcome()
        total = len(self.strategies)

        for index, strategy in enumerate(self.strategies):
            attempt = index + 1
            outcome.attempts = attempt
            logger.info(
                "Job %s attempt %d/%d with strategy %s", job_id, attempt, total, strategy.name
            )

            result = await self._attempt(url, workdir, strategy, job_id, attempt)
            if result.output_path is not None:
                outcome.output_path = result.output_path
                outcome.strategy = strategy.name
                logger.info(
                    "Job %s attempt %d succeeded: %s", job_id, attempt, result.output_path.name
                )
                return outcome

            outcome.last_error = result.error
            logger.info("Job %s attempt %d failed: %s", job_id, attempt, result.error.strip())

            if attempt < total:
                if needs_cooldown(result.error):
                    logger.info(
                        "Job %s throttled, cooling down for %.0fs", job_id, self.cooldown
                    )
                    await self._sleep(self.cooldown)
                else:
                    await self._sleep(self.attempt_delay)

        logger.info("Job %s exhausted all %d strategies", job_id, total)
        return outcome

    async def _attempt(
        self, url: str, workdir: Path, strategy: Strategy, job_id: str, attempt: int
    ) -> AttemptResult:
        cmd = build_command(self.binary, url, strategy, self._common_args)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(workdir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return AttemptResult(error=f"Command execution failed: {e}")

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            # the yt-dlp process must not outlive the job or its workdir
            if proc.returncode is None:
                logger.info("Job %s attempt %d cancelled, killing yt-dlp", job_id, attempt)
                proc.kill()
                await proc.wait()
            raise

        out_text = (stdout or b"").decode("utf-8", errors="replace")
        err_text = (stderr or b"").decode("utf-8", errors="replace")
        logger.debug("Job %s attempt %d exited with %s", job_id, attempt, proc.returncode)
        if out_text:
            logger.debug("Job %s attempt %d stdout: %s", job_id, attempt, out_text)

        if proc.returncode != 0:
            error = err_text.strip() or out_text.strip()
            return AttemptResult(error=error or f"yt-dlp exited with code {proc.returncode}")

        output = await asyncio.to_thread(self.find_output, workdir)
        if output is None:
            return AttemptResult(
                error=f"yt-dlp exited successfully but produced no {self.audio_format} file"
            )
        return AttemptResult(output_path=output)

    def find_output(self, workdir: Path) -> Optional[Path]:
        """First file in ``workdir`` (sorted by name) with the target extension."""
        suffix = "." + self.audio_format
        for path in sorted(Path(workdir).iterdir()):
            if path.is_file() and path.suffix.lower() == suffix:
                return path
        return None
