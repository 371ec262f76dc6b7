"""
Resize worker function for parallel image processing (Qt-free).

This module is imported in child processes spawned by
``concurrent.futures.ProcessPoolExecutor``.  It must **never** import
PyQt6; doing so can crash or hang on some platforms.
"""

from pathlib import Path

from image_toolkit.image_io import decode_image, encode_png
from image_toolkit.transparency import scale_image


def resize_worker(args: dict) -> dict:
    """Worker function for batch resizing. Runs in a separate process.

    Returns the PNG bytes and both sizes on success, or the error text on
    failure; exceptions never escape so one bad file cannot abort a batch.
    """
    idx = args["index"]
    img_path = Path(args["path"])
    percent = args["percent"]

    try:
        img = decode_image(img_path)
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        resized = scale_image(img, percent)
        return {
            "index": idx,
            "success": True,
            "name": img_path.name,
            "original_size": img.size,
            "new_size": resized.size,
            "data": encode_png(resized),
        }
    except Exception as e:
        return {"index": idx, "success": False, "name": img_path.name, "error": str(e)}
