"""Download service with progress reporting."""

import os
from typing import Optional

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ecrpush.errors import PusherError


class DownloadService:
    """Streams remote files to disk behind a rich progress bar."""

    def __init__(self, logger, console, requests_module, timeout: float = 60.0):
        self.logger = logger
        self.console = console
        self.requests = requests_module
        self.timeout = timeout

    def download_file(
        self,
        url: str,
        dest_path: str,
        description: str = "Downloading...",
        mode: Optional[int] = None,
    ):
        self.logger.info("Downloading %s to %s", url, dest_path)

        try:
            with self.requests.get(url, stream=True, timeout=self.timeout, allow_redirects=True) as response:
                response.raise_for_status()
                total_size = int(response.headers.get("Content-Length", 0))

                os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)

                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    "•",
                    TimeElapsedColumn(),
                    console=self.console,
                ) as progress:
                    task = progress.add_task(f"[cyan]{description}", total=total_size or None)
                    with open(dest_path, "wb") as file_obj:
                        for chunk in response.iter_content(chunk_size=8192):
                            if not chunk:
                                continue
                            file_obj.write(chunk)
                            progress.update(task, advance=len(chunk))

        except self.requests.RequestException as exc:
            self._remove_partial(dest_path)
            raise PusherError(f"Download failed for {description}: {exc}") from exc
        except OSError as exc:
            self._remove_partial(dest_path)
            raise PusherError(f"Could not write {dest_path}: {exc}") from exc

        if mode is not None:
            try:
                os.chmod(dest_path, mode)
            except OSError as exc:
                raise PusherError(f"Could not set permissions on {dest_path}: {exc}") from exc

    def _remove_partial(self, dest_path: str):
        if os.path.exists(dest_path):
            try:
                os.remove(dest_path)
            except OSError as exc:
                self.logger.warning("Could not remove partial download %s: %s", dest_path, exc)
