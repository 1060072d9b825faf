"""yt-dlp strategy table.

Each strategy is one client profile (player client, user agent, extra headers,
TLS relaxations). The runner tries them in the order listed here.
"""

from dataclasses import dataclass
from typing import List, Tuple

ANDROID_UA = "com.google.android.youtube/17.31.35 (Linux; U; Android 11) gzip"
IOS_UA = "com.google.ios.youtube/17.31.4 (iPhone14,3; U; CPU iOS 15_6 like Mac OS X)"
DESKTOP_UA = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Appended to throttled strategies to space out yt-dlp's own requests.
THROTTLE_ARGS = ("--sleep-interval", "1", "--max-sleep-interval", "3")


@dataclass(frozen=True)
class Strategy:
    """One set of distinguishing yt-dlp arguments."""
    name: str
    args: Tuple[str, ...]
    throttle: bool = True

    def cli_args(self) -> List[str]:
        extra = list(self.args)
        if self.throttle:
            extra.extend(THROTTLE_ARGS)
        return extra


STRATEGIES: Tuple[Strategy, ...] = (
    Strategy(
        name="android",
        args=(
            "--extractor-args", "youtube:player_client=android",
            "--user-agent", ANDROID_UA,
            "--no-check-certificates",
        ),
        throttle=False,
    ),
    Strategy(
        name="android_embedded",
        args=(
            "--extractor-args", "youtube:player_client=android_embedded",
            "--user-agent", ANDROID_UA,
        ),
    ),
    Strategy(
        name="ios",
        args=(
            "--extractor-args", "youtube:player_client=ios",
            "--user-agent", IOS_UA,
        ),
    ),
    Strategy(
        name="web",
        args=(
            "--extractor-args", "youtube:player_client=web",
            "--user-agent", DESKTOP_UA,
            "--add-header", "Accept-Language:en-US,en;q=0.9",
        ),
    ),
    Strategy(
        name="web_legacy",
        args=(
            "--extractor-args", "youtube:player_client=web",
            "--compat-options", "prefer-legacy-http-handler",
            "--no-check-certificates",
            "--prefer-insecure",
        ),
    ),
    Strategy(
        name="mediaconnect",
        args=(
            "--extractor-args", "youtube:player_client=mediaconnect",
            "--socket-timeout", "30",
        ),
    ),
)


def base_args(
    audio_format: str = "mp3",
    audio_quality: str = "192K",
    output_template: str = "%(title)s.%(ext)s",
    retries: int = 2,
    retry_sleep: int = 3,
) -> List[str]:
    """Arguments shared by every attempt: audio extraction and output naming."""
    return [
        "-x",
        "--audio-format", audio_format,
        "--audio-quality", audio_quality,
        "-o", output_template,
        "--restrict-filenames",
        "--no-playlist",
        "--retries", str(retries),
        "--retry-sleep", str(retry_sleep),
    ]


def build_command(binary: str, url: str, strategy: Strategy, common: List[str]) -> List[str]:
    """Full argv for one attempt. The URL goes after ``--`` so it is never parsed as an option."""
    return [binary, *common, *strategy.cli_args(), "--", url]
