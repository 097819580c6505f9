"""Download remote resources into the home directory.

A resource is only ever replaced atomically: the body is streamed into a
temporary sibling of the destination and renamed over it once complete
and non-empty, so an interrupted run never leaves a truncated file.
"""

import http.client
import logging
import os
import shutil
import tempfile
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, List

from .errors import TransientNetworkError
from .types import FetchOutcome, FetchStatus, Resource
from .utils import get_version

logger = logging.getLogger(__name__)


class Fetcher:
    """Fetches resources with a staleness check and bounded timeouts."""

    CHUNK_SIZE = 64 * 1024

    def __init__(
        self,
        connect_timeout: float = 10,
        timeout: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.connect_timeout = connect_timeout
        self.timeout = timeout
        self._clock = clock

    def is_fresh(self, resource: Resource) -> bool:
        """True if the destination is non-empty and younger than max_age."""
        try:
            st = resource.destination.stat()
        except FileNotFoundError:
            return False
        if st.st_size == 0:
            return False
        age = self._clock() - st.st_mtime
        return age <= resource.max_age.total_seconds()

    def fetch(self, resource: Resource) -> FetchOutcome:
        if self.is_fresh(resource):
            logger.info(
                f"{resource.destination} is recent, not downloading "
                f"{resource.name}"
            )
            return FetchOutcome(resource, FetchStatus.SKIPPED)

        logger.info(f"Downloading {resource.url} to {resource.destination}")
        try:
            size = self._download(resource)
        except TransientNetworkError as e:
            logger.warning(f"Download of {resource.name} failed: {e}")
            return FetchOutcome(resource, FetchStatus.FAILED, reason=str(e))
        except OSError as e:
            reason = f"Could not write {resource.destination}: {e}"
            logger.error(reason)
            return FetchOutcome(resource, FetchStatus.FAILED, reason=reason)

        logger.debug(f"Wrote {size} bytes to {resource.destination}")
        return FetchOutcome(resource, FetchStatus.DOWNLOADED, size=size)

    def verify(self, resources: Iterable[Resource]) -> List[Resource]:
        """Return the resources whose destination is missing or empty."""
        broken = []
        for resource in resources:
            dest = resource.destination
            if not dest.is_file() or dest.stat().st_size == 0:
                logger.warning(f"{dest} is missing or empty")
                broken.append(resource)
        return broken

    def _open(self, url: str):
        request = urllib.request.Request(
            url, headers={"User-Agent": f"dotboot/{get_version()}"}
        )
        try:
            return urllib.request.urlopen(
                request, timeout=self.connect_timeout
            )
        except urllib.error.HTTPError as e:
            raise TransientNetworkError(f"HTTP {e.code} from {url}")
        except urllib.error.URLError as e:
            raise TransientNetworkError(f"Could not reach {url}: {e.reason}")
        except (OSError, ValueError, http.client.HTTPException) as e:
            raise TransientNetworkError(f"Could not fetch {url}: {e}")

    def _download(self, resource: Resource) -> int:
        deadline = time.monotonic() + self.timeout
        dest = resource.destination
        if dest.is_symlink():
            # write through the link, like a shell redirect would
            dest = dest.resolve()

        with self._open(resource.url) as response:
            status = getattr(response, "status", None)
            if status is not None and not 200 <= status < 300:
                raise TransientNetworkError(
                    f"HTTP {status} from {resource.url}"
                )

            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent
            )
            tmp_path = Path(tmp_name)
            try:
                with os.fdopen(fd, "wb") as out:
                    size = self._copy_body(response, out, deadline, resource)
                    out.flush()
                    os.fsync(out.fileno())

                if size == 0:
                    raise TransientNetworkError(
                        f"Empty response body from {resource.url}"
                    )
                if dest.exists():
                    shutil.copymode(dest, tmp_path)
                else:
                    tmp_path.chmod(0o644)
                os.replace(tmp_path, dest)
            finally:
                if tmp_path.exists():
                    tmp_path.unlink()
        return size

    def _copy_body(
        self, response, out: BinaryIO, deadline: float, resource: Resource
    ) -> int:
        size = 0
        while True:
            if time.monotonic() > deadline:
                raise TransientNetworkError(
                    f"Timed out after {self.timeout}s downloading "
                    f"{resource.url}"
                )
            try:
                chunk = response.read(self.CHUNK_SIZE)
            except (OSError, http.client.HTTPException) as e:
                raise TransientNetworkError(
                    f"Error reading {resource.url}: {e}"
                )
            if not chunk:
                return size
            out.write(chunk)
            size += len(chunk)
