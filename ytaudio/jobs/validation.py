"""Accepted-URL predicate for conversion requests."""

from urllib.parse import parse_qs, urlparse

YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
SHORT_HOSTS = {"youtu.be", "www.youtu.be"}


def is_valid_youtube_url(url: str) -> bool:
    """True for single-video YouTube links.

    Accepts watch pages (``/watch?v=``), shorts (``/shorts/<id>``) and
    ``youtu.be/<id>`` links, with or without a scheme. Playlists, channels,
    feeds and other hosts are rejected.
    """
    if not url or not url.strip():
        return False
    url = url.strip()
    if "://" not in url:
        url = "https://" + url

    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False

    host = (parsed.hostname or "").lower()
    path = parsed.path

    if host in SHORT_HOSTS:
        return len(path.strip("/")) > 0

    if host not in YOUTUBE_HOSTS:
        return False

    if path.rstrip("/") == "/watch":
        return bool(parse_qs(parsed.query).get("v", [""])[0])

    if path.startswith("/shorts/"):
        return len(path[len("/shorts/"):].strip("/")) > 0

    return False
