"""Per-job scratch directories for yt-dlp output."""

import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class WorkdirAllocator:
    """Creates one exclusive temp directory per job under a common base.

    Directories are only removed explicitly (job eviction) or by
    ``cleanup_expired``, which clears leftovers from a previous process since
    job records do not survive a restart.
    """

    def __init__(
        self,
        base_dir: Optional[str] = None,
        prefix: str = "ytmp3_",
        ttl_hours: float = 2,
    ):
        self._base_dir = Path(base_dir) if base_dir else Path(tempfile.gettempdir())
        self._prefix = prefix
        self._ttl_seconds = ttl_hours * 3600

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def allocate(self) -> Path:
        """Create a fresh, uniquely named directory. Raises OSError on failure."""
        self._base_dir.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._base_dir))

    def remove(self, workdir: Path) -> None:
        shutil.rmtree(workdir, ignore_errors=True)

    def cleanup_expired(self) -> int:
        """Remove our directories older than the TTL. Returns count of removed dirs."""
        if not self._base_dir.exists():
            return 0
        now = time.time()
        removed = 0
        for entry in self._base_dir.iterdir():
            if not entry.name.startswith(self._prefix) or not entry.is_dir():
                continue
            try:
                age = now - os.path.getmtime(entry)
            except OSError:
                continue
            if age > self._ttl_seconds:
                shutil.rmtree(entry, ignore_errors=True)
                removed += 1
        if removed:
            logger.info("Removed %d stale work directories from %s", removed, self._base_dir)
        return removed
