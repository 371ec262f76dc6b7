"""
Batch resize and archive packaging.

``batch_resize`` fans files out to ``worker.resize_worker`` either in-process
(``workers <= 1``) or through a process pool.  The only state shared between
tasks is the append-only result list, sorted back into input order at the
end.
"""

import io
import logging
import zipfile
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from image_toolkit.image_io import unique_name, unique_path
from image_toolkit.transparency import scaled_size
from image_toolkit.worker import resize_worker

logger = logging.getLogger(__name__)


@dataclass
class ResizeResult:
    """One resized image ready for download."""
    file_name: str
    original_width: int
    original_height: int
    new_width: int
    new_height: int
    data: bytes

    def describe(self) -> str:
        return (f"{self.file_name}  ({self.original_width}x{self.original_height})"
                f" → ({self.new_width}x{self.new_height})")


@dataclass
class ResizeFailure:
    name: str
    error: str


def batch_resize(
    paths: list[Path],
    percent: float,
    workers: int = 1,
    progress: Callable[[int, int, str], None] | None = None,
) -> tuple[list[ResizeResult], list[ResizeFailure]]:
    """Resize every file by *percent*.

    *progress* is called as ``progress(done, total, name)`` after each file.
    Raises InvalidConfiguration for a non-positive percent before any work.
    """
    scaled_size(1, 1, percent)  # validates percent

    args_list = [{"index": i, "path": str(p), "percent": percent} for i, p in enumerate(paths)]
    total = len(args_list)
    raw: list[dict] = []

    if workers <= 1:
        for args in args_list:
            raw.append(resize_worker(args))
            if progress:
                progress(len(raw), total, raw[-1]["name"])
    else:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(resize_worker, args) for args in args_list]
            for future in as_completed(futures):
                raw.append(future.result())
                if progress:
                    progress(len(raw), total, raw[-1]["name"])

    raw.sort(key=lambda r: r["index"])

    results: list[ResizeResult] = []
    failures: list[ResizeFailure] = []
    taken: set[str] = set()
    for r in raw:
        if not r["success"]:
            logger.warning("Resize failed for %s: %s", r["name"], r["error"])
            failures.append(ResizeFailure(r["name"], r["error"]))
            continue
        name = unique_name(f"{Path(r['name']).stem}.png", taken)
        taken.add(name)
        (ow, oh), (nw, nh) = r["original_size"], r["new_size"]
        results.append(ResizeResult(name, ow, oh, nw, nh, r["data"]))

    logger.info("Batch resize at %s%%: %d succeeded, %d failed", percent, len(results), len(failures))
    return results, failures


def build_zip(results: list[ResizeResult]) -> bytes:
    """Package resized images into an in-memory zip archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for result in results:
            zf.writestr(result.file_name, result.data)
    return buffer.getvalue()


def write_results(results: list[ResizeResult], folder: Path) -> list[Path]:
    """Save each result into *folder* without overwriting existing files."""
    folder = Path(folder)
    folder.mkdir(parents=True, exist_ok=True)
    written = []
    for result in results:
        out_path = unique_path(folder / result.file_name)
        out_path.write_bytes(result.data)
        written.append(out_path)
    return written
