"""Command-line client: convert one URL to MP3 without running the web server.

Starts the job in-process, polls its status the same way the browser client
does, and writes the finished file to the output directory.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from ytaudio.config import settings
from ytaudio.jobs.models import FileStatus
from ytaudio.jobs.service import ConversionService
from ytaudio.jobs.validation import is_valid_youtube_url
from ytaudio.main import build_runner, build_service, build_workdirs, configure_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ytaudio", description="Convert a YouTube video to an MP3 file"
    )
    parser.add_argument("url", type=str, help="YouTube video URL")
    parser.add_argument(
        "--outdir", type=str, default=".", help="Output directory (default: current directory)"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.poll_interval_seconds,
        help=f"Seconds between status checks (default: {settings.poll_interval_seconds})",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every yt-dlp attempt")
    parser.add_argument("--json", action="store_true", help="Print the final status as JSON")
    return parser


async def poll_until_done(service: ConversionService, job_id: str, interval: float):
    """Poll get_status every ``interval`` seconds until the job is terminal."""
    while True:
        status = await service.get_status(job_id)
        if status.status != "processing":
            return status
        await asyncio.sleep(interval)


async def convert(
    service: ConversionService, url: str, outdir: Path, interval: float
) -> tuple:
    """Run one conversion end to end. Returns (exit_code, response, output_path)."""
    started = await service.start_conversion(url)
    if started.status == "error":
        code = EXIT_FAILED if is_valid_youtube_url(url) else EXIT_INVALID
        return code, started, None

    final = await poll_until_done(service, started.id, interval)
    if final.status != "completed":
        return EXIT_FAILED, final, None

    result = await service.get_file(started.id)
    if result.status is not FileStatus.READY:
        return EXIT_FAILED, final, None

    outdir.mkdir(parents=True, exist_ok=True)
    out_path = outdir / result.filename
    out_path.write_bytes(result.content)
    return EXIT_OK, final, out_path


async def run(args: argparse.Namespace) -> int:
    service = build_service(build_runner(settings), build_workdirs(settings))
    try:
        code, response, out_path = await convert(
            service, args.url, Path(args.outdir), args.interval
        )
    finally:
        await service.orchestrator.stop()
        await service.store.close()

    if args.json:
        payload = response.model_dump()
        payload["output"] = str(out_path) if out_path else None
        print(json.dumps(payload, indent=2))
    elif out_path is not None:
        print(f"Saved: {out_path}")
    else:
        print(f"Error: {response.message}", file=sys.stderr)
    return code


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else settings.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
