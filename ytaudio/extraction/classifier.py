"""Maps raw yt-dlp failure text to user-facing error messages."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

# Longest raw excerpt shown to users in the generic message.
MAX_EXCERPT_CHARS = 300

# Raw substrings that always trigger the long cooldown between attempts.
COOLDOWN_SIGNALS = ("429", "sign in to confirm")


class ErrorCategory(str, Enum):
    BOT_DETECTION = "bot_detection"
    UNAVAILABLE = "unavailable"
    AGE_RESTRICTED = "age_restricted"
    RATE_LIMITED = "rate_limited"
    PREMIERE = "premiere"
    LIVE_STREAM = "live_stream"
    GENERIC = "generic"


@dataclass(frozen=True)
class ClassifiedError:
    category: ErrorCategory
    message: str


@dataclass(frozen=True)
class _Rule:
    category: ErrorCategory
    phrases: Tuple[str, ...]
    message: str


# Order matters: first match wins. "Sign in to confirm your age" must be seen
# as an age gate before the generic "sign in to confirm" bot check.
RULES: Tuple[_Rule, ...] = (
    _Rule(
        ErrorCategory.AGE_RESTRICTED,
        ("confirm your age",),
        "This video is age-restricted and cannot be downloaded without authentication.",
    ),
    _Rule(
        ErrorCategory.BOT_DETECTION,
        ("sign in to confirm", "not a bot"),
        "YouTube is currently blocking automated downloads. This is temporary - "
        "please try again in 10-15 minutes, or try a different video.",
    ),
    _Rule(
        ErrorCategory.BOT_DETECTION,
        ("failed to extract any player response",),
        "YouTube has updated their protection. Please try again in a few minutes, "
        "or contact support if the issue persists.",
    ),
    _Rule(
        ErrorCategory.UNAVAILABLE,
        ("video unavailable", "private video", "this video has been removed"),
        "This video is unavailable. It may be private, deleted, or region-restricted.",
    ),
    _Rule(
        ErrorCategory.AGE_RESTRICTED,
        ("age-restricted", "age_restricted", "age restricted"),
        "This video is age-restricted and cannot be downloaded without authentication.",
    ),
    _Rule(
        ErrorCategory.RATE_LIMITED,
        ("rate limit", "too many requests", "http error 429"),
        "YouTube is rate limiting requests. Please wait a few minutes before trying again.",
    ),
    _Rule(
        ErrorCategory.PREMIERE,
        ("premieres in",),
        "This video is a premiere that hasn't started yet. "
        "Please wait until it's available.",
    ),
    _Rule(
        ErrorCategory.LIVE_STREAM,
        ("live stream", "livestream", "live event"),
        "Live streams cannot be downloaded. "
        "Please wait until the stream ends or try a regular video.",
    ),
)


def excerpt(raw: str, max_lines: int = 2) -> str:
    """First non-empty lines of ``raw`` joined by spaces, capped in length."""
    lines = [line.strip() for line in (raw or "").splitlines() if line.strip()]
    text = " ".join(lines[:max_lines])
    if len(text) > MAX_EXCERPT_CHARS:
        text = text[: MAX_EXCERPT_CHARS - 3].rstrip() + "..."
    return text


def classify(raw: str) -> ClassifiedError:
    """Classify the last failure text of a job. Pure; first matching rule wins."""
    lowered = (raw or "").lower()
    for rule in RULES:
        if any(phrase in lowered for phrase in rule.phrases):
            return ClassifiedError(rule.category, rule.message)

    detail = excerpt(raw) or "Unknown error"
    return ClassifiedError(
        ErrorCategory.GENERIC,
        f"Download failed after multiple attempts. Last error: {detail}",
    )


def needs_cooldown(raw: str) -> bool:
    """True when the failure looks like bot detection or rate limiting.

    Any "sign in to confirm" prompt counts, including the age gate, which is
    reported as age-restricted but still comes from YouTube's sign-in wall.
    """
    lowered = (raw or "").lower()
    if any(signal in lowered for signal in COOLDOWN_SIGNALS):
        return True
    return classify(raw).category in (ErrorCategory.BOT_DETECTION, ErrorCategory.RATE_LIMITED)
